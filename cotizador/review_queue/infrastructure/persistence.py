import logging
from typing import Optional, List, Dict, Any

from cotizador.storage.domain.store import AbstractRecordStore, PENDING_PRODUCTS
from cotizador.review_queue.domain.entities import PendingReviewRecord, ReviewStatus

logger = logging.getLogger(__name__)


class PendingProductRepository:
    """Accès à la collection "pending_products" via le record store."""

    def __init__(self, store: AbstractRecordStore):
        self.store = store

    async def get_by_id(self, record_id: int) -> Optional[PendingReviewRecord]:
        record = await self.store.find_one(PENDING_PRODUCTS, {"id": record_id})
        return PendingReviewRecord.model_validate(record) if record else None

    async def add_many(self, records: List[Dict[str, Any]]) -> List[PendingReviewRecord]:
        created = await self.store.insert_many(PENDING_PRODUCTS, records)
        return [PendingReviewRecord.model_validate(r) for r in created]

    async def list_by_status(self, status: ReviewStatus) -> List[PendingReviewRecord]:
        records = await self.store.list_all(
            PENDING_PRODUCTS, order_by="id", descending=True, filters={"status": status.value}
        )
        return [PendingReviewRecord.model_validate(r) for r in records]

    async def set_status(self, record_id: int, status: ReviewStatus) -> Optional[PendingReviewRecord]:
        record = await self.store.update(PENDING_PRODUCTS, record_id, {"status": status.value})
        return PendingReviewRecord.model_validate(record) if record else None
