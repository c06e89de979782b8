import logging
from typing import List

from cotizador.core.config import settings
from cotizador.quotes.domain.entities import LineItem
from cotizador.catalog.domain.entities import ReconciliationReport, ReconciliationWarning
from cotizador.catalog.infrastructure.persistence import CatalogRepository
from cotizador.storage.domain.exceptions import DuplicateRecordException, StoreException

logger = logging.getLogger(__name__)


class CatalogReconciler:
    """Attribue un SKU à chaque ligne du devis et enrichit le catalogue.

    Les lignes sont traitées une par une, dans l'ordre: deux lignes portant le
    même nouveau nom dans le même devis produisent une seule fiche et un seul
    SKU. Une erreur sur une ligne n'interrompt pas les suivantes.
    """

    def __init__(self, catalog_repo: CatalogRepository, default_brand: str = None, default_category: str = None):
        self.catalog_repo = catalog_repo
        self.default_brand = default_brand or settings.DEFAULT_BRAND
        self.default_category = default_category or settings.DEFAULT_CATEGORY

    async def reconcile(self, items: List[LineItem]) -> ReconciliationReport:
        report = ReconciliationReport()
        for item in items:
            if not item.name.strip():
                report.items.append(item)
                continue
            try:
                reconciled, created = await self._reconcile_item(item)
            except StoreException as e:
                logger.warning(f"[CatalogReconciler] Ligne '{item.name}' ({item.id}) sans SKU: {e.message}")
                report.warnings.append(
                    ReconciliationWarning(item_id=item.id, item_name=item.name, message=e.message)
                )
                report.items.append(item)
                continue
            if created:
                report.created += 1
            report.items.append(reconciled)
        logger.info(
            f"[CatalogReconciler] {len(report.items)} lignes traitées, {report.created} fiches créées, "
            f"{len(report.warnings)} avertissements."
        )
        return report

    async def _reconcile_item(self, item: LineItem):
        existing = await self.catalog_repo.get_by_name(item.name)
        if existing:
            logger.debug(f"[CatalogReconciler] '{item.name}' trouvé, SKU {existing.sku} réutilisé.")
            return item.model_copy(update={"sku": existing.sku}), False

        brand = item.brand or self.default_brand
        category = item.category or self.default_category
        sku = await self.catalog_repo.next_sku(brand, category)
        entry_data = {
            "name": item.name,
            "brand": brand,
            "description": item.description,
            "unit": item.unit.value,
            "net_price": item.net_price,
            "delivery_type": item.delivery_type.value,
            "delivery_days": item.delivery_days,
            "category": category,
            "sku": sku,
        }
        try:
            await self.catalog_repo.add(entry_data)
        except DuplicateRecordException:
            # Fiche créée entre-temps par une autre session: on adopte son SKU
            winner = await self.catalog_repo.get_by_name(item.name)
            if winner is None:
                raise
            logger.info(f"[CatalogReconciler] '{item.name}' créé en parallèle, SKU {winner.sku} adopté.")
            return item.model_copy(update={"sku": winner.sku}), False
        return item.model_copy(update={"sku": sku}), True
