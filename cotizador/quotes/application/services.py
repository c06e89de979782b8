import logging
from typing import Optional, List
from decimal import Decimal

from pydantic import BaseModel

# Domaine Quotes
from cotizador.quotes.domain.entities import LineItem, QuoteInfo, SavedQuote
from cotizador.quotes.domain.session import QuoteSession, QuoteStep
from cotizador.quotes.domain.exceptions import (
    QuoteInfoValidationException, QuoteNotFoundException, EmptyQuoteException,
    FinalizationInProgressException, FinalizationFailedException,
    QuotePersistenceException, NoStagedDocumentException,
)
from cotizador.quotes.application.workspace import QuoteWorkspace
from cotizador.quotes.infrastructure.persistence import SavedQuoteRepository

# Collaborateurs
from cotizador.core.config import settings
from cotizador.catalog.application.reconciler import CatalogReconciler
from cotizador.catalog.domain.entities import ReconciliationWarning
from cotizador.extraction.application.services import ExtractionGateway, prepare_document
from cotizador.pdf.application.services import PDFService
from cotizador.pdf.domain.exceptions import PDFGenerationException
from cotizador.review_queue.application.services import PendingReviewService
from cotizador.review_queue.domain.entities import PendingReviewRecord
from cotizador.storage.domain.exceptions import StoreException
from cotizador.triage.application.services import TriageController, TriageDecision, TriageOutcome
from cotizador.triage.domain.exceptions import NoOpenSelectionException

logger = logging.getLogger(__name__)


class FinalizationResult(BaseModel):
    """Résultat de la finalisation: le document est toujours présent."""
    document: bytes
    filename: str
    items: List[LineItem]
    saved_quote: Optional[SavedQuote] = None
    warnings: List[ReconciliationWarning] = []
    persistence_error: Optional[str] = None


class QuoteWorkflowService:
    """Service applicatif orchestrant le parcours d'un devis en 5 étapes."""

    def __init__(
        self,
        gateway: ExtractionGateway,
        triage_controller: TriageController,
        review_service: PendingReviewService,
        reconciler: CatalogReconciler,
        pdf_service: PDFService,
        saved_quote_repo: SavedQuoteRepository,
    ):
        self.gateway = gateway
        self.triage_controller = triage_controller
        self.review_service = review_service
        self.reconciler = reconciler
        self.pdf_service = pdf_service
        self.saved_quote_repo = saved_quote_repo

    # --- Étape 1: informations client ---

    @staticmethod
    def validate_info(info: QuoteInfo) -> List[str]:
        """Liste des champs obligatoires vides."""
        return info.missing_required_fields()

    def advance_from_info(self, session: QuoteSession) -> QuoteStep:
        missing = self.validate_info(session.info)
        if missing:
            logger.info(f"[QuoteWorkflow] Étape 1 bloquée, champs manquants: {missing}")
            raise QuoteInfoValidationException(missing)
        return session.advance()

    def advance(self, session: QuoteSession) -> QuoteStep:
        if session.step == QuoteStep.CUSTOMER_INFO:
            return self.advance_from_info(session)
        return session.advance()

    # --- Étape 2: ajout de lignes ---

    @staticmethod
    def _move_to_adjustment(session: QuoteSession):
        if session.items and session.step < QuoteStep.ADJUSTMENT:
            session.jump_to(QuoteStep.ADJUSTMENT)

    def add_item(self, session: QuoteSession, item: LineItem) -> LineItem:
        """Ajout d'une ligne déjà construite (ex: choix dans le catalogue)."""
        added = session.add_item(item)
        self._move_to_adjustment(session)
        return added

    def add_manual_item(self, session: QuoteSession, name: str, description: str = "") -> LineItem:
        item = LineItem(
            name=name.strip(),
            brand=settings.DEFAULT_BRAND,
            description=description,
            quantity=1,
            net_price=Decimal(0),
        )
        logger.info(f"[QuoteWorkflow] Ajout manuel '{item.name}' au devis {session.info.quote_number}")
        return self.add_item(session, item)

    def stage_document(self, workspace: QuoteWorkspace, content: bytes, mime_type: str, filename: str = None):
        """Prépare et met en attente un document (images réduites, PDF tels quels)."""
        payload = prepare_document(content, mime_type, filename)
        workspace.stage(payload)
        logger.info(f"[QuoteWorkflow] Document '{filename}' en attente ({payload.mime_type}, {len(payload.content)} octets)")
        return payload

    async def extract_staged(self, workspace: QuoteWorkspace) -> TriageDecision:
        """Soumet le document en attente puis trie le résultat.

        En cas d'échec d'extraction, le document reste en attente et la session est inchangée.
        """
        if workspace.staged_document is None:
            raise NoStagedDocumentException()
        workspace.ensure_no_open_selection()

        result = await self.gateway.extract(workspace.staged_document)
        workspace.discard_staged()

        decision = self.triage_controller.triage(result, workspace.session)
        if decision.outcome == TriageOutcome.SELECTION_REQUIRED:
            workspace.begin_selection(decision.selection)
        elif decision.outcome == TriageOutcome.AUTO_ADDED:
            self._move_to_adjustment(workspace.session)
        return decision

    def select_candidates(self, workspace: QuoteWorkspace, indices: List[int]) -> List[LineItem]:
        if workspace.selection is None or workspace.selection.is_resolved:
            raise NoOpenSelectionException()
        added = workspace.selection.select(indices)
        if workspace.selection.is_resolved:
            workspace.selection = None
        self._move_to_adjustment(workspace.session)
        return added

    async def send_remaining_to_queue(self, workspace: QuoteWorkspace) -> List[PendingReviewRecord]:
        if workspace.selection is None or workspace.selection.is_resolved:
            raise NoOpenSelectionException()
        records = await workspace.selection.send_remaining_to_queue(self.review_service)
        workspace.selection = None
        self._move_to_adjustment(workspace.session)
        return records

    def discard_remaining(self, workspace: QuoteWorkspace) -> int:
        if workspace.selection is None or workspace.selection.is_resolved:
            raise NoOpenSelectionException()
        count = workspace.selection.discard_remaining()
        workspace.selection = None
        return count

    # --- Étape 5: finalisation ---

    async def finalize(self, session: QuoteSession) -> FinalizationResult:
        """Réconciliation catalogue, rendu PDF puis enregistrement de l'historique.

        Un échec d'enregistrement n'empêche pas la remise du document.
        """
        if session.is_finalizing:
            raise FinalizationInProgressException(session.info.quote_number)
        if not session.items:
            raise EmptyQuoteException()
        missing = self.validate_info(session.info)
        if missing:
            logger.info(f"[QuoteWorkflow] Finalisation refusée, champs manquants: {missing}")
            raise QuoteInfoValidationException(missing)

        session.is_finalizing = True
        try:
            quote_number = session.info.quote_number
            logger.info(f"[QuoteWorkflow] Finalisation du devis {quote_number} ({len(session.items)} lignes)")

            report = await self.reconciler.reconcile(list(session.items))
            session.replace_all(report.items)

            try:
                document = await self.pdf_service.render_quote(session.items, session.info)
            except PDFGenerationException as e:
                raise FinalizationFailedException(str(e), e) from e

            saved_quote = None
            persistence_error = None
            try:
                saved_quote = await self.saved_quote_repo.add(
                    session.items, session.info, session.net_total, session.tax, session.total
                )
            except StoreException as e:
                error = QuotePersistenceException(
                    f"Le devis {quote_number} n'a pas pu être enregistré: {e.message}", e
                )
                logger.error(f"[QuoteWorkflow] {error.message}")
                persistence_error = error.message

            session.jump_to(QuoteStep.FINALIZE)
            return FinalizationResult(
                document=document,
                filename=self.pdf_service.filename_for(session.info),
                items=list(session.items),
                saved_quote=saved_quote,
                warnings=report.warnings,
                persistence_error=persistence_error,
            )
        finally:
            session.is_finalizing = False

    # --- Historique ---

    async def open_saved_quote(self, session: QuoteSession, quote_id: int) -> SavedQuote:
        """Recharge un devis sauvegardé dans la session, à l'étape d'ajustement."""
        saved = await self.saved_quote_repo.get_by_id(quote_id)
        if not saved:
            raise QuoteNotFoundException(quote_id)
        session.replace_all(saved.products)
        session.set_info(saved.info)
        session.jump_to(QuoteStep.ADJUSTMENT)
        logger.info(f"[QuoteWorkflow] Devis {saved.quote_number} (ID {quote_id}) rouvert.")
        return saved


class SavedQuoteService:
    """Consultation et suppression administrative de l'historique."""

    def __init__(self, saved_quote_repo: SavedQuoteRepository):
        self.saved_quote_repo = saved_quote_repo

    async def list_quotes(self) -> List[SavedQuote]:
        return await self.saved_quote_repo.list_all()

    async def get_quote(self, quote_id: int) -> SavedQuote:
        saved = await self.saved_quote_repo.get_by_id(quote_id)
        if not saved:
            raise QuoteNotFoundException(quote_id)
        return saved

    async def delete_quote(self, quote_id: int):
        if not await self.saved_quote_repo.delete(quote_id):
            raise QuoteNotFoundException(quote_id)
        logger.info(f"[SavedQuoteService] Devis ID {quote_id} supprimé de l'historique.")
