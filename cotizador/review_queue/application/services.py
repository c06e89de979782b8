import logging
from typing import List, Optional

from cotizador.core.config import settings
from cotizador.core.schemas import DeliveryType
from cotizador.extraction.domain.entities import ExtractedCandidate
from cotizador.catalog.domain.entities import CatalogEntry
from cotizador.catalog.infrastructure.persistence import CatalogRepository, CategoryRepository
from cotizador.review_queue.domain.entities import PendingReviewRecord, ApprovalForm, ReviewStatus
from cotizador.review_queue.domain.exceptions import (
    PendingRecordNotFoundException, InvalidReviewTransitionException, ReviewPersistenceException,
)
from cotizador.review_queue.infrastructure.persistence import PendingProductRepository
from cotizador.storage.domain.exceptions import DuplicateRecordException, StoreException

logger = logging.getLogger(__name__)


class PendingReviewService:
    """Service applicatif de la file de revue des produits extraits non retenus."""

    def __init__(
        self,
        pending_repo: PendingProductRepository,
        catalog_repo: CatalogRepository,
        category_repo: CategoryRepository,
    ):
        self.pending_repo = pending_repo
        self.catalog_repo = catalog_repo
        self.category_repo = category_repo

    async def enqueue(self, candidates: List[ExtractedCandidate]) -> List[PendingReviewRecord]:
        """Insère les candidats en une seule opération, tous au statut "pending"."""
        if not candidates:
            return []
        records = [
            {
                "name": c.name,
                "brand": c.brand or settings.DEFAULT_BRAND,
                "description": c.description,
                "suggested_unit": c.suggested_unit.value,
                "spec_details": c.spec_details,
                "category": c.category,
                "status": ReviewStatus.PENDING.value,
            }
            for c in candidates
        ]
        try:
            created = await self.pending_repo.add_many(records)
        except StoreException as e:
            logger.error(f"[PendingReviewService] Échec mise en file de {len(records)} candidats: {e.message}")
            raise ReviewPersistenceException(f"Impossible d'envoyer les produits en revue: {e.message}") from e
        logger.info(f"[PendingReviewService] {len(created)} candidat(s) mis en file de revue.")
        return created

    async def list_pending(self) -> List[PendingReviewRecord]:
        """Éléments au statut "pending", les plus récents d'abord."""
        return await self.pending_repo.list_by_status(ReviewStatus.PENDING)

    async def _get_pending(self, record_id: int, target: ReviewStatus) -> PendingReviewRecord:
        record = await self.pending_repo.get_by_id(record_id)
        if not record:
            raise PendingRecordNotFoundException(record_id)
        if record.status != ReviewStatus.PENDING:
            raise InvalidReviewTransitionException(record_id, record.status.value, target.value)
        return record

    async def suggest_category(self, record: PendingReviewRecord) -> Optional[str]:
        """Catégorie existante correspondant (sans casse) à la catégorie suggérée, sinon None."""
        if not record.category:
            return None
        wanted = record.category.strip().lower()
        for category in await self.category_repo.list_all():
            if category.name.lower() == wanted:
                return category.name
        return None

    async def approve(self, record_id: int, form: ApprovalForm) -> CatalogEntry:
        """Crée la fiche catalogue (avec SKU) puis marque l'élément "approved".

        Si le catalogue contient déjà un produit du même nom (approbation relancée
        après un échec, ou produit ajouté entre-temps), la fiche existante est
        conservée et l'élément est simplement marqué "approved".
        """
        record = await self._get_pending(record_id, ReviewStatus.APPROVED)
        try:
            entry = await self.catalog_repo.get_by_name(record.name)
            if entry is not None:
                logger.info(
                    f"[PendingReviewService] '{record.name}' déjà au catalogue ({entry.sku}), fiche existante conservée."
                )
            else:
                entry = await self._create_entry(record, form)
        except StoreException as e:
            raise ReviewPersistenceException(f"Approbation impossible: {e.message}") from e

        try:
            await self.pending_repo.set_status(record_id, ReviewStatus.APPROVED)
        except StoreException as e:
            logger.error(
                f"[PendingReviewService] Fiche {entry.id} créée mais élément {record_id} non marqué: {e.message}"
            )
            raise ReviewPersistenceException(
                f"Produit ajouté au catalogue ({entry.sku}) mais statut non enregistré: {e.message}"
            ) from e
        logger.info(f"[PendingReviewService] Élément {record_id} approuvé -> fiche {entry.id} ({entry.sku}).")
        return entry

    async def _create_entry(self, record: PendingReviewRecord, form: ApprovalForm) -> CatalogEntry:
        brand = record.brand or settings.DEFAULT_BRAND
        unit = form.unit or record.suggested_unit
        sku = await self.catalog_repo.next_sku(brand, form.category)
        try:
            return await self.catalog_repo.add({
                "name": record.name,
                "brand": brand,
                "description": record.description,
                "unit": unit.value,
                "net_price": form.net_price,
                "delivery_type": form.delivery_type.value,
                "delivery_days": form.delivery_days if form.delivery_type == DeliveryType.IMPORT else 0,
                "category": form.category,
                "sku": sku,
            })
        except DuplicateRecordException:
            # Insertion concurrente du même nom: on adopte la fiche gagnante
            winner = await self.catalog_repo.get_by_name(record.name)
            if winner is None:
                raise
            logger.warning(f"[PendingReviewService] '{record.name}' inséré en parallèle, SKU {winner.sku} adopté.")
            return winner

    async def reject(self, record_id: int) -> PendingReviewRecord:
        await self._get_pending(record_id, ReviewStatus.REJECTED)
        try:
            updated = await self.pending_repo.set_status(record_id, ReviewStatus.REJECTED)
        except StoreException as e:
            raise ReviewPersistenceException(f"Rejet impossible: {e.message}") from e
        logger.info(f"[PendingReviewService] Élément {record_id} rejeté.")
        return updated
