"""Exceptions spécifiques au domaine Quote."""

from typing import List, Optional


class QuoteDomainException(Exception):
    """Classe de base pour les exceptions du domaine Quote."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class QuoteInfoValidationException(QuoteDomainException):
    """Levée lorsque des champs client obligatoires sont vides (blocage de l'étape 1)."""
    def __init__(self, missing_fields: List[str]):
        super().__init__(f"Champs obligatoires manquants: {', '.join(missing_fields)}.")
        self.missing_fields = missing_fields


class QuoteNotFoundException(QuoteDomainException):
    """Levée lorsqu'un devis sauvegardé n'est pas trouvé."""
    def __init__(self, quote_id: int):
        super().__init__(f"Devis avec ID {quote_id} non trouvé.")
        self.quote_id = quote_id


class QuoteSessionNotFoundException(QuoteDomainException):
    def __init__(self, session_id: str):
        super().__init__(f"Session de devis '{session_id}' introuvable.")
        self.session_id = session_id


class EmptyQuoteException(QuoteDomainException):
    def __init__(self):
        super().__init__("Impossible de finaliser un devis sans articles.")


class FinalizationInProgressException(QuoteDomainException):
    """Levée lorsqu'une finalisation est déjà en cours pour la même session."""
    def __init__(self, quote_number: str):
        super().__init__(f"Finalisation déjà en cours pour le devis {quote_number}.")
        self.quote_number = quote_number


class FinalizationFailedException(QuoteDomainException):
    """Levée lorsque le document PDF n'a pas pu être généré."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception


class QuotePersistenceException(QuoteDomainException):
    """Levée lorsque l'enregistrement de l'historique échoue."""
    def __init__(self, message: str = "Erreur lors de l'enregistrement du devis.", original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception


class NoStagedDocumentException(QuoteDomainException):
    def __init__(self):
        super().__init__("Aucun document en attente d'analyse.")
