import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

from cotizador.core.config import settings
from cotizador.extraction.domain.entities import DocumentPayload
from cotizador.quotes.domain.exceptions import QuoteSessionNotFoundException
from cotizador.quotes.domain.session import QuoteSession
from cotizador.triage.application.services import TriageSelection
from cotizador.triage.domain.exceptions import UnresolvedSelectionException

logger = logging.getLogger(__name__)


class QuoteWorkspace:
    """Session de devis et état transitoire associé (document en attente, sélection en cours)."""

    def __init__(self, workspace_id: str, session: Optional[QuoteSession] = None, now: float = 0.0):
        self.id = workspace_id
        self.session = session or QuoteSession()
        self.staged_document: Optional[DocumentPayload] = None
        self.selection: Optional[TriageSelection] = None
        self.last_access = now

    def stage(self, payload: DocumentPayload):
        """Met un document en attente (remplace le précédent)."""
        self.staged_document = payload

    def discard_staged(self):
        self.staged_document = None

    def ensure_no_open_selection(self):
        if self.selection is not None and not self.selection.is_resolved:
            raise UnresolvedSelectionException(len(self.selection.remaining))

    def begin_selection(self, selection: TriageSelection):
        self.ensure_no_open_selection()
        self.selection = selection


class WorkspaceRegistry:
    """Sessions actives en mémoire, une par poste de travail.

    Une session sans accès depuis `idle_timeout` secondes est retirée au prochain
    passage par le registre, sauf si une finalisation est en cours.
    """

    def __init__(self, idle_timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._workspaces: Dict[str, QuoteWorkspace] = {}
        self.idle_timeout = idle_timeout if idle_timeout is not None else settings.QUOTE_SESSION_IDLE_MINUTES * 60
        self._clock = clock

    def create(self) -> QuoteWorkspace:
        self.purge_expired()
        workspace = QuoteWorkspace(uuid.uuid4().hex, now=self._clock())
        self._workspaces[workspace.id] = workspace
        logger.info(f"[WorkspaceRegistry] Session {workspace.id} créée ({workspace.session.info.quote_number}).")
        return workspace

    def get(self, workspace_id: str) -> QuoteWorkspace:
        self.purge_expired()
        workspace = self._workspaces.get(workspace_id)
        if workspace is None:
            raise QuoteSessionNotFoundException(workspace_id)
        workspace.last_access = self._clock()
        return workspace

    def remove(self, workspace_id: str) -> bool:
        return self._workspaces.pop(workspace_id, None) is not None

    def purge_expired(self) -> List[str]:
        """Retire les sessions inactives et renvoie leurs identifiants."""
        now = self._clock()
        expired = [
            workspace.id for workspace in self._workspaces.values()
            if now - workspace.last_access > self.idle_timeout and not workspace.session.is_finalizing
        ]
        for workspace_id in expired:
            del self._workspaces[workspace_id]
        if expired:
            logger.info(f"[WorkspaceRegistry] {len(expired)} session(s) inactive(s) expirée(s).")
        return expired

    def __len__(self) -> int:
        return len(self._workspaces)


workspace_registry = WorkspaceRegistry()
