"""Exceptions spécifiques au tri des résultats d'extraction."""

from typing import List


class TriageException(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidSelectionException(TriageException):
    """Levée pour une sélection vide ou contenant des indices hors limites."""
    def __init__(self, indices: List[int], available: int):
        super().__init__(f"Sélection invalide {indices} ({available} candidats disponibles).")
        self.indices = indices
        self.available = available


class SelectionAlreadyResolvedException(TriageException):
    def __init__(self):
        super().__init__("Cette sélection a déjà été traitée.")


class UnresolvedSelectionException(TriageException):
    """Levée lorsqu'une nouvelle extraction est lancée alors que des candidats attendent une décision."""
    def __init__(self, pending_count: int):
        super().__init__(
            f"{pending_count} candidat(s) non sélectionné(s) attendent une décision "
            "(envoyer en revue ou ignorer)."
        )
        self.pending_count = pending_count


class NoOpenSelectionException(TriageException):
    def __init__(self):
        super().__init__("Aucune sélection de candidats en cours.")
