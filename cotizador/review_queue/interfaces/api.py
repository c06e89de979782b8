import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status, Path
from pydantic import BaseModel

from .dependencies import PendingReviewServiceDep
from cotizador.catalog.domain.entities import CatalogEntry
from cotizador.review_queue.domain.entities import PendingReviewRecord, ApprovalForm
from cotizador.review_queue.domain.exceptions import (
    PendingRecordNotFoundException, InvalidReviewTransitionException, ReviewPersistenceException,
)

logger = logging.getLogger(__name__)

review_router = APIRouter()


class PendingReviewItem(PendingReviewRecord):
    """Élément en attente enrichi de la catégorie existante suggérée."""
    suggested_category: Optional[str] = None


@review_router.get("", response_model=List[PendingReviewItem])
async def list_pending_items(review_service: PendingReviewServiceDep):
    """Éléments en attente de revue, les plus récents d'abord."""
    records = await review_service.list_pending()
    items = []
    for record in records:
        suggested = await review_service.suggest_category(record)
        items.append(PendingReviewItem(**record.model_dump(), suggested_category=suggested))
    return items


@review_router.post("/{record_id}/approve", response_model=CatalogEntry, status_code=status.HTTP_201_CREATED)
async def approve_item(review_service: PendingReviewServiceDep, form: ApprovalForm, record_id: int = Path(..., ge=1)):
    """Approuve un élément: création de la fiche catalogue avec SKU."""
    try:
        return await review_service.approve(record_id, form)
    except PendingRecordNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidReviewTransitionException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ReviewPersistenceException as e:
        logger.error(f"Erreur API approve {record_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@review_router.post("/{record_id}/reject", response_model=PendingReviewRecord)
async def reject_item(review_service: PendingReviewServiceDep, record_id: int = Path(..., ge=1)):
    try:
        return await review_service.reject(record_id)
    except PendingRecordNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidReviewTransitionException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ReviewPersistenceException as e:
        logger.error(f"Erreur API reject {record_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
