import logging
from typing import Annotated

from fastapi import Depends

from cotizador.storage.interfaces.dependencies import RecordStoreDep
from cotizador.catalog.interfaces.dependencies import CatalogReconcilerDep
from cotizador.extraction.interfaces.dependencies import ExtractionGatewayDep
from cotizador.pdf.interfaces.dependencies import PDFServiceDep
from cotizador.review_queue.interfaces.dependencies import PendingReviewServiceDep
from cotizador.triage.application.services import TriageController

# Repositories
from cotizador.quotes.infrastructure.persistence import SavedQuoteRepository

# Services
from cotizador.quotes.application.services import QuoteWorkflowService, SavedQuoteService
from cotizador.quotes.application.workspace import WorkspaceRegistry, workspace_registry

logger = logging.getLogger(__name__)

# --- Dépendances Repository ---
def get_saved_quote_repository(store: RecordStoreDep) -> SavedQuoteRepository:
    logger.debug("Fourniture de SavedQuoteRepository")
    return SavedQuoteRepository(store=store)

SavedQuoteRepositoryDep = Annotated[SavedQuoteRepository, Depends(get_saved_quote_repository)]

# --- Sessions en mémoire ---
def get_workspace_registry() -> WorkspaceRegistry:
    return workspace_registry

WorkspaceRegistryDep = Annotated[WorkspaceRegistry, Depends(get_workspace_registry)]

# --- Dépendances Service ---
def get_quote_workflow_service(
    gateway: ExtractionGatewayDep,
    review_service: PendingReviewServiceDep,
    reconciler: CatalogReconcilerDep,
    pdf_service: PDFServiceDep,
    saved_quote_repo: SavedQuoteRepositoryDep,
) -> QuoteWorkflowService:
    """Injecte QuoteWorkflowService avec ses dépendances."""
    logger.debug("Fourniture de QuoteWorkflowService")
    return QuoteWorkflowService(
        gateway=gateway,
        triage_controller=TriageController(),
        review_service=review_service,
        reconciler=reconciler,
        pdf_service=pdf_service,
        saved_quote_repo=saved_quote_repo,
    )

QuoteWorkflowServiceDep = Annotated[QuoteWorkflowService, Depends(get_quote_workflow_service)]


def get_saved_quote_service(saved_quote_repo: SavedQuoteRepositoryDep) -> SavedQuoteService:
    return SavedQuoteService(saved_quote_repo=saved_quote_repo)

SavedQuoteServiceDep = Annotated[SavedQuoteService, Depends(get_saved_quote_service)]
