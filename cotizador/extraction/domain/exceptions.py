"""Exceptions spécifiques au domaine Extraction."""

from typing import List, Tuple, Optional


class ExtractionBaseException(Exception):
    """Classe de base pour les exceptions liées à l'extraction IA."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        self.message = message
        self.original_exception = original_exception
        super().__init__(self.message)


class ExtractionBackendException(ExtractionBaseException):
    """Levée lorsqu'un backend échoue (réseau, statut HTTP, réponse vide)."""
    pass


class ExtractionRateLimitedException(ExtractionBackendException):
    """Levée lorsqu'un backend signale un dépassement de quota (HTTP 429)."""
    def __init__(self, backend: str, original_exception: Optional[Exception] = None):
        super().__init__(f"Quota dépassé pour le backend '{backend}'.", original_exception)
        self.backend = backend


class ExtractionParsingException(ExtractionBaseException):
    """Levée lorsque la sortie d'un backend n'est pas un JSON conforme au schéma."""
    def __init__(self, message: str = "Réponse d'extraction illisible.", raw_output: str = None):
        super().__init__(message)
        self.raw_output = raw_output


class UnsupportedDocumentException(ExtractionBaseException):
    def __init__(self, mime_type: str):
        super().__init__(f"Type de document non supporté: '{mime_type}' (images ou PDF uniquement).")
        self.mime_type = mime_type


class DocumentConversionException(ExtractionBaseException):
    """Levée lorsque la rastérisation PDF ou le redimensionnement d'image échoue."""
    pass


class ExtractionFailure(ExtractionBaseException):
    """Tous les backends de la chaîne ont échoué."""
    def __init__(self, attempts: List[Tuple[str, str]]):
        self.attempts = attempts
        chain = " -> ".join(name for name, _ in attempts) or "(aucun backend)"
        details = "; ".join(f"{name}: {reason}" for name, reason in attempts)
        super().__init__(f"Extraction impossible via {chain}. {details}".strip())
