"""Exceptions spécifiques au record store."""

from typing import Optional


class StoreException(Exception):
    """Classe de base pour les exceptions du record store."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        self.message = message
        self.original_exception = original_exception
        super().__init__(self.message)


class UnknownCollectionException(StoreException):
    """Levée lorsqu'une collection inconnue est demandée."""
    def __init__(self, collection: str):
        super().__init__(f"Collection '{collection}' inconnue.")
        self.collection = collection


class UnknownFieldException(StoreException):
    def __init__(self, collection: str, field: str):
        super().__init__(f"Champ '{field}' inconnu pour la collection '{collection}'.")
        self.collection = collection
        self.field = field


class DuplicateRecordException(StoreException):
    """Levée lorsqu'une contrainte d'unicité est violée (nom ou SKU déjà présent)."""
    def __init__(self, collection: str, original_exception: Optional[Exception] = None):
        super().__init__(f"Enregistrement en double dans '{collection}'.", original_exception)
        self.collection = collection


class StoreOperationException(StoreException):
    """Levée lorsqu'une opération de persistance échoue (connexion, SQL, ...)."""
    pass
