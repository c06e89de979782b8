from typing import Annotated
from fastapi import Depends

# Domain
from cotizador.pdf.domain.generator import AbstractQuoteDocumentRenderer

# Infrastructure
from cotizador.pdf.infrastructure.reportlab_generator import ReportLabQuoteRenderer

# Application
from cotizador.pdf.application.services import PDFService

# --- Renderer Dependency ---

def get_quote_renderer() -> AbstractQuoteDocumentRenderer:
    """Fournit l'implémentation concrète du rendu (ReportLab)."""
    return ReportLabQuoteRenderer()

QuoteRendererDep = Annotated[AbstractQuoteDocumentRenderer, Depends(get_quote_renderer)]

# --- PDF Service Dependency ---

def get_pdf_service(renderer: QuoteRendererDep) -> PDFService:
    return PDFService(renderer=renderer)

PDFServiceDep = Annotated[PDFService, Depends(get_pdf_service)]
