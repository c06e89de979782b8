import logging
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, status, Path, UploadFile, File, Response
from pydantic import ValidationError

# Services Applicatifs (via dépendances)
from .dependencies import QuoteWorkflowServiceDep, SavedQuoteServiceDep, WorkspaceRegistryDep

# Schémas/DTOs
from cotizador.quotes.application.schemas import (
    QuoteInfoUpdate, LineItemCreate, LineItemUpdate, ManualItemCreate, SelectionRequest,
    QuoteSessionResponse, TriageResponse,
)
from cotizador.quotes.application.workspace import QuoteWorkspace, WorkspaceRegistry
from cotizador.quotes.domain.entities import LineItem, SavedQuote
from cotizador.review_queue.domain.entities import PendingReviewRecord

# Exceptions du Domaine (pour mapping)
from cotizador.quotes.domain.exceptions import (
    QuoteSessionNotFoundException, QuoteInfoValidationException, QuoteNotFoundException,
    EmptyQuoteException, FinalizationInProgressException, FinalizationFailedException,
    NoStagedDocumentException,
)
from cotizador.extraction.domain.exceptions import (
    ExtractionFailure, UnsupportedDocumentException, DocumentConversionException,
)
from cotizador.triage.domain.exceptions import TriageException, UnresolvedSelectionException
from cotizador.review_queue.domain.exceptions import ReviewPersistenceException

logger = logging.getLogger(__name__)

# --- Création du Routeur ---
quote_router = APIRouter()


def _workspace(registry: WorkspaceRegistry, session_id: str) -> QuoteWorkspace:
    try:
        return registry.get(session_id)
    except QuoteSessionNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

# --- Sessions de devis ---

@quote_router.post("/sessions", response_model=QuoteSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(registry: WorkspaceRegistryDep):
    """Démarre un nouveau devis (étape 1, nouveau numéro)."""
    workspace = registry.create()
    return QuoteSessionResponse.from_workspace(workspace)


@quote_router.get("/sessions/{session_id}", response_model=QuoteSessionResponse)
async def read_session(registry: WorkspaceRegistryDep, session_id: str):
    return QuoteSessionResponse.from_workspace(_workspace(registry, session_id))


@quote_router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(registry: WorkspaceRegistryDep, session_id: str):
    if not registry.remove(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session de devis introuvable.")


@quote_router.post("/sessions/{session_id}/reset", response_model=QuoteSessionResponse)
async def reset_session(registry: WorkspaceRegistryDep, session_id: str):
    workspace = _workspace(registry, session_id)
    workspace.session.reset()
    workspace.discard_staged()
    workspace.selection = None
    return QuoteSessionResponse.from_workspace(workspace)

# --- Navigation ---

@quote_router.post("/sessions/{session_id}/steps/next", response_model=QuoteSessionResponse)
async def next_step(registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str):
    """Étape suivante. Depuis l'étape 1, les champs client obligatoires sont vérifiés."""
    workspace = _workspace(registry, session_id)
    try:
        workflow.advance(workspace.session)
    except QuoteInfoValidationException as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": e.message, "missing_fields": e.missing_fields},
        )
    return QuoteSessionResponse.from_workspace(workspace)


@quote_router.post("/sessions/{session_id}/steps/previous", response_model=QuoteSessionResponse)
async def previous_step(registry: WorkspaceRegistryDep, session_id: str):
    workspace = _workspace(registry, session_id)
    workspace.session.retreat()
    return QuoteSessionResponse.from_workspace(workspace)


@quote_router.post("/sessions/{session_id}/steps/{step}", response_model=QuoteSessionResponse)
async def jump_to_step(registry: WorkspaceRegistryDep, session_id: str, step: int = Path(..., ge=1, le=5)):
    workspace = _workspace(registry, session_id)
    workspace.session.jump_to(step)
    return QuoteSessionResponse.from_workspace(workspace)

# --- Informations client ---

@quote_router.patch("/sessions/{session_id}/info", response_model=QuoteSessionResponse)
async def update_info(registry: WorkspaceRegistryDep, session_id: str, info_update: QuoteInfoUpdate):
    workspace = _workspace(registry, session_id)
    workspace.session.update_info(**info_update.model_dump(exclude_unset=True, exclude_none=True))
    return QuoteSessionResponse.from_workspace(workspace)

# --- Lignes ---

@quote_router.post("/sessions/{session_id}/items", response_model=LineItem, status_code=status.HTTP_201_CREATED)
async def add_item(
    registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str, item_in: LineItemCreate
):
    workspace = _workspace(registry, session_id)
    return workflow.add_item(workspace.session, LineItem(**item_in.model_dump()))


@quote_router.post("/sessions/{session_id}/items/manual", response_model=LineItem, status_code=status.HTTP_201_CREATED)
async def add_manual_item(
    registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str, item_in: ManualItemCreate
):
    workspace = _workspace(registry, session_id)
    return workflow.add_manual_item(workspace.session, item_in.name, item_in.description)


@quote_router.patch("/sessions/{session_id}/items/{item_id}", response_model=QuoteSessionResponse)
async def update_item(registry: WorkspaceRegistryDep, session_id: str, item_id: str, item_update: LineItemUpdate):
    """Mise à jour partielle d'une ligne (sans effet si la ligne n'existe pas)."""
    workspace = _workspace(registry, session_id)
    try:
        workspace.session.update_item(item_id, **item_update.model_dump(exclude_unset=True, exclude_none=True))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return QuoteSessionResponse.from_workspace(workspace)


@quote_router.delete("/sessions/{session_id}/items/{item_id}", response_model=QuoteSessionResponse)
async def remove_item(registry: WorkspaceRegistryDep, session_id: str, item_id: str):
    workspace = _workspace(registry, session_id)
    workspace.session.remove_item(item_id)
    return QuoteSessionResponse.from_workspace(workspace)

# --- Extraction IA ---

@quote_router.post("/sessions/{session_id}/documents", response_model=QuoteSessionResponse)
async def stage_document(
    registry: WorkspaceRegistryDep,
    workflow: QuoteWorkflowServiceDep,
    session_id: str,
    file: UploadFile = File(...),
):
    """Met en attente une image ou un PDF (pas encore soumis à l'extraction)."""
    workspace = _workspace(registry, session_id)
    content = await file.read()
    try:
        workflow.stage_document(workspace, content, file.content_type, file.filename)
    except UnsupportedDocumentException as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    except DocumentConversionException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return QuoteSessionResponse.from_workspace(workspace)


@quote_router.delete("/sessions/{session_id}/documents", response_model=QuoteSessionResponse)
async def discard_document(registry: WorkspaceRegistryDep, session_id: str):
    workspace = _workspace(registry, session_id)
    workspace.discard_staged()
    return QuoteSessionResponse.from_workspace(workspace)


@quote_router.post("/sessions/{session_id}/extractions", response_model=TriageResponse)
async def submit_extraction(registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str):
    """Soumet le document en attente à la chaîne d'extraction puis trie le résultat."""
    workspace = _workspace(registry, session_id)
    try:
        decision = await workflow.extract_staged(workspace)
    except NoStagedDocumentException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UnresolvedSelectionException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except UnsupportedDocumentException as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    except ExtractionFailure as e:
        logger.warning(f"Extraction échouée pour la session {session_id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": e.message, "attempts": [{"backend": b, "reason": r} for b, r in e.attempts]},
        )
    return TriageResponse.from_decision(decision, workspace)


@quote_router.post("/sessions/{session_id}/selection/select", response_model=List[LineItem])
async def select_candidates(
    registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str, request: SelectionRequest
):
    workspace = _workspace(registry, session_id)
    try:
        return workflow.select_candidates(workspace, request.indices)
    except TriageException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@quote_router.post("/sessions/{session_id}/selection/queue", response_model=List[PendingReviewRecord])
async def queue_remaining_candidates(registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str):
    """Envoie les candidats non choisis dans la file de revue."""
    workspace = _workspace(registry, session_id)
    try:
        return await workflow.send_remaining_to_queue(workspace)
    except TriageException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ReviewPersistenceException as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@quote_router.post("/sessions/{session_id}/selection/discard", response_model=QuoteSessionResponse)
async def discard_remaining_candidates(registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str):
    workspace = _workspace(registry, session_id)
    try:
        workflow.discard_remaining(workspace)
    except TriageException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return QuoteSessionResponse.from_workspace(workspace)

# --- Finalisation ---

@quote_router.post("/sessions/{session_id}/finalize")
async def finalize_quote(registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str):
    """Attribue les SKU, génère le PDF et enregistre l'historique.

    Le PDF est toujours renvoyé si sa génération réussit; les avertissements de
    réconciliation et une éventuelle erreur d'enregistrement sont signalés en en-têtes.
    """
    workspace = _workspace(registry, session_id)
    try:
        result = await workflow.finalize(workspace.session)
    except FinalizationInProgressException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except EmptyQuoteException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except QuoteInfoValidationException as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": e.message, "missing_fields": e.missing_fields},
        )
    except FinalizationFailedException as e:
        logger.error(f"Erreur API finalize pour la session {session_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    headers = {
        "Content-Disposition": f'attachment; filename="{result.filename}"',
        "X-Reconciliation-Warnings": str(len(result.warnings)),
    }
    if result.saved_quote is not None:
        headers["X-Saved-Quote-Id"] = str(result.saved_quote.id)
    if result.persistence_error:
        headers["X-Persistence-Error"] = quote(result.persistence_error)
    return Response(content=result.document, media_type="application/pdf", headers=headers)


@quote_router.post("/sessions/{session_id}/open/{quote_id}", response_model=QuoteSessionResponse)
async def open_saved_quote(
    registry: WorkspaceRegistryDep, workflow: QuoteWorkflowServiceDep, session_id: str, quote_id: int = Path(..., ge=1)
):
    """Recharge un devis de l'historique dans la session (étape 3)."""
    workspace = _workspace(registry, session_id)
    try:
        await workflow.open_saved_quote(workspace.session, quote_id)
    except QuoteNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return QuoteSessionResponse.from_workspace(workspace)

# --- Historique ---

@quote_router.get("/history", response_model=List[SavedQuote])
async def list_saved_quotes(saved_quote_service: SavedQuoteServiceDep):
    return await saved_quote_service.list_quotes()


@quote_router.get("/history/{quote_id}", response_model=SavedQuote)
async def read_saved_quote(saved_quote_service: SavedQuoteServiceDep, quote_id: int = Path(..., ge=1)):
    try:
        return await saved_quote_service.get_quote(quote_id)
    except QuoteNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@quote_router.delete("/history/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_saved_quote(saved_quote_service: SavedQuoteServiceDep, quote_id: int = Path(..., ge=1)):
    try:
        await saved_quote_service.delete_quote(quote_id)
    except QuoteNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
