import logging
from typing import List

# Domain
from cotizador.pdf.domain.generator import AbstractQuoteDocumentRenderer
from cotizador.pdf.domain.exceptions import PDFGenerationException
from cotizador.quotes.domain.entities import LineItem, QuoteInfo

logger = logging.getLogger(__name__)


class PDFService:
    """Service applicatif pour la génération du document de devis."""

    def __init__(self, renderer: AbstractQuoteDocumentRenderer):
        self.renderer = renderer

    async def render_quote(self, line_items: List[LineItem], info: QuoteInfo) -> bytes:
        """Génère le PDF d'un devis.

        Raises:
            PDFGenerationException: Si la génération échoue.
        """
        logger.info(f"[PDFService] Demande de génération PDF pour devis {info.quote_number}.")
        try:
            return await self.renderer.render_quote_document(line_items, info)
        except PDFGenerationException as e:
            logger.error(f"[PDFService] Échec génération PDF devis {info.quote_number}: {e}")
            raise
        except Exception as e:
            logger.error(f"[PDFService] Erreur inattendue génération PDF devis {info.quote_number}: {e}", exc_info=True)
            raise PDFGenerationException(f"Erreur inattendue: {e}", original_exception=e)

    @staticmethod
    def filename_for(info: QuoteInfo) -> str:
        return f"Cotizacion_{info.quote_number}.pdf"
