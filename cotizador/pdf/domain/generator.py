from abc import ABC, abstractmethod
from typing import List

from cotizador.quotes.domain.entities import LineItem, QuoteInfo


class AbstractQuoteDocumentRenderer(ABC):
    """Interface abstraite pour le rendu du document de devis.

    Le rendu est une fonction pure de ses entrées: mêmes lignes et mêmes
    informations produisent le même document.
    """

    @abstractmethod
    async def render_quote_document(self, line_items: List[LineItem], info: QuoteInfo) -> bytes:
        """Génère le PDF d'un devis.

        Args:
            line_items: Lignes du devis (SKU déjà résolus si disponibles).
            info: Données client et métadonnées (numéro, date, taux d'IVA).

        Returns:
            Le contenu binaire du PDF généré.

        Raises:
            PDFGenerationException: Si une erreur survient durant la génération.
        """
        raise NotImplementedError
