import logging
from enum import Enum
from typing import List, Optional, Set

from cotizador.extraction.domain.entities import ExtractedCandidate, ExtractionResult
from cotizador.quotes.domain.entities import LineItem
from cotizador.quotes.domain.session import QuoteSession
from cotizador.review_queue.application.services import PendingReviewService
from cotizador.review_queue.domain.entities import PendingReviewRecord
from cotizador.triage.domain.exceptions import InvalidSelectionException, SelectionAlreadyResolvedException
from cotizador.triage.domain.promotion import promote_candidate

logger = logging.getLogger(__name__)


class TriageOutcome(str, Enum):
    NOTHING_DETECTED = "nothing_detected"
    AUTO_ADDED = "auto_added"
    SELECTION_REQUIRED = "selection_required"


class TriageSelection:
    """Candidats multiples en attente du choix de l'utilisateur.

    Les candidats non choisis restent en attente jusqu'à une décision explicite:
    envoi en file de revue ou abandon.
    """

    def __init__(self, session: QuoteSession, candidates: List[ExtractedCandidate]):
        self.session = session
        self.candidates = candidates
        self.selected: Set[int] = set()
        self.added_items: List[LineItem] = []
        self._disposed = False

    @property
    def remaining(self) -> List[ExtractedCandidate]:
        return [c for i, c in enumerate(self.candidates) if i not in self.selected]

    @property
    def is_resolved(self) -> bool:
        return self._disposed or not self.remaining

    def select(self, indices: List[int]) -> List[LineItem]:
        """Ajoute au devis les candidats choisis (indices dans la liste d'origine)."""
        if self._disposed:
            raise SelectionAlreadyResolvedException()
        wanted = list(dict.fromkeys(indices))
        if not wanted or any(i < 0 or i >= len(self.candidates) or i in self.selected for i in wanted):
            raise InvalidSelectionException(indices, len(self.candidates))

        added = []
        for index in wanted:
            added.append(self.session.add_item(promote_candidate(self.candidates[index])))
            self.selected.add(index)
        self.added_items.extend(added)
        logger.info(f"[TriageSelection] {len(added)} candidat(s) ajouté(s), {len(self.remaining)} restant(s).")
        return added

    async def send_remaining_to_queue(self, review_service: PendingReviewService) -> List[PendingReviewRecord]:
        if self._disposed:
            raise SelectionAlreadyResolvedException()
        records = await review_service.enqueue(self.remaining)
        self._disposed = True
        return records

    def discard_remaining(self) -> int:
        """Abandon explicite des candidats non choisis."""
        if self._disposed:
            raise SelectionAlreadyResolvedException()
        count = len(self.remaining)
        self._disposed = True
        logger.info(f"[TriageSelection] {count} candidat(s) ignoré(s).")
        return count


class TriageDecision:
    def __init__(
        self,
        outcome: TriageOutcome,
        added_items: Optional[List[LineItem]] = None,
        selection: Optional[TriageSelection] = None,
    ):
        self.outcome = outcome
        self.added_items = added_items or []
        self.selection = selection


class TriageController:
    """Route un résultat d'extraction: rien, ajout direct ou sélection requise."""

    def triage(self, result: ExtractionResult, session: QuoteSession) -> TriageDecision:
        candidates = result.products
        if not candidates:
            logger.info("[TriageController] Aucun produit détecté.")
            return TriageDecision(TriageOutcome.NOTHING_DETECTED)

        if len(candidates) == 1 and not result.multiple_models_found:
            item = session.add_item(promote_candidate(candidates[0]))
            logger.info(f"[TriageController] Produit unique ajouté directement: '{item.name}'.")
            return TriageDecision(TriageOutcome.AUTO_ADDED, added_items=[item])

        logger.info(f"[TriageController] {len(candidates)} candidats, sélection requise.")
        return TriageDecision(
            TriageOutcome.SELECTION_REQUIRED,
            selection=TriageSelection(session, list(candidates)),
        )
