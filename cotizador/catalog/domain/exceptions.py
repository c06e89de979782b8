"""Exceptions spécifiques au domaine Catalog."""


class CatalogDomainException(Exception):
    """Classe de base pour les exceptions du domaine Catalog."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class CatalogEntryNotFoundException(CatalogDomainException):
    def __init__(self, entry_id: int):
        super().__init__(f"Produit catalogue avec ID {entry_id} non trouvé.")
        self.entry_id = entry_id


class DuplicateCatalogEntryException(CatalogDomainException):
    """Levée lorsqu'un nom de produit existe déjà dans le catalogue."""
    def __init__(self, name: str):
        super().__init__(f"Un produit nommé '{name}' existe déjà dans le catalogue.")
        self.name = name


class CategoryNotFoundException(CatalogDomainException):
    def __init__(self, category_id: int):
        super().__init__(f"Catégorie avec ID {category_id} non trouvée.")
        self.category_id = category_id


class DuplicateCategoryException(CatalogDomainException):
    def __init__(self, name: str):
        super().__init__(f"La catégorie '{name}' existe déjà.")
        self.name = name


class InvalidCategoryNameException(CatalogDomainException):
    def __init__(self):
        super().__init__("Le nom de catégorie ne peut pas être vide.")
