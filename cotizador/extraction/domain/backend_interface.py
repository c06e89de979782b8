import abc

from cotizador.extraction.domain.entities import DocumentPayload


class AbstractExtractionBackend(abc.ABC):
    """Interface abstraite pour un backend de vision (extraction de produits)."""

    name: str = "abstract"

    @abc.abstractmethod
    def accepts(self, mime_type: str) -> bool:
        """Indique si le backend accepte ce format nativement."""
        raise NotImplementedError

    @abc.abstractmethod
    async def extract(self, payload: DocumentPayload) -> str:
        """
        Soumet le document au modèle et retourne sa sortie textuelle brute.

        Args:
            payload: Le document (dans un format accepté par ce backend).

        Returns:
            Le texte renvoyé par le modèle, supposé contenir un objet JSON.

        Raises:
            ExtractionRateLimitedException: si le fournisseur signale un quota dépassé.
            ExtractionBackendException: pour toute autre erreur du fournisseur.
        """
        raise NotImplementedError
