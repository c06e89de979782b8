import logging
from typing import List

from cotizador.core.config import settings
from cotizador.quotes.domain.entities import LineItem
from cotizador.catalog.domain.entities import CatalogEntry, CatalogEntryUpdate, Category
from cotizador.catalog.domain.exceptions import (
    CatalogEntryNotFoundException, DuplicateCatalogEntryException,
    CategoryNotFoundException, DuplicateCategoryException, InvalidCategoryNameException,
)
from cotizador.catalog.infrastructure.persistence import CatalogRepository, CategoryRepository
from cotizador.storage.domain.exceptions import DuplicateRecordException

logger = logging.getLogger(__name__)


class CatalogService:
    """Service applicatif: recherche catalogue, administration des fiches et catégories."""

    def __init__(self, catalog_repo: CatalogRepository, category_repo: CategoryRepository):
        self.catalog_repo = catalog_repo
        self.category_repo = category_repo

    # --- Fiches produit ---

    async def search(self, query: str, limit: int = None) -> List[CatalogEntry]:
        """Recherche insensible à la casse sur nom, marque et catégorie."""
        limit = limit or settings.CATALOG_SEARCH_LIMIT
        if not query or not query.strip():
            return []
        logger.debug(f"[CatalogService] Recherche '{query}' (limit={limit})")
        return await self.catalog_repo.search(query, limit)

    @staticmethod
    def to_line_item(entry: CatalogEntry) -> LineItem:
        """Ligne de devis issue du catalogue (quantité 1, prix et logistique du catalogue)."""
        return LineItem(
            name=entry.name,
            brand=entry.brand,
            description=entry.description,
            quantity=1,
            unit=entry.unit,
            net_price=entry.net_price,
            delivery_type=entry.delivery_type,
            delivery_days=entry.delivery_days,
            category=entry.category,
            sku=entry.sku,
        )

    async def get_entry(self, entry_id: int) -> CatalogEntry:
        entry = await self.catalog_repo.get_by_id(entry_id)
        if not entry:
            raise CatalogEntryNotFoundException(entry_id)
        return entry

    async def list_entries(self) -> List[CatalogEntry]:
        return await self.catalog_repo.list_all()

    async def update_entry(self, entry_id: int, update: CatalogEntryUpdate) -> CatalogEntry:
        fields = update.model_dump(exclude_unset=True, exclude_none=True)
        logger.info(f"[CatalogService] MAJ fiche ID {entry_id}: {list(fields)}")
        try:
            entry = await self.catalog_repo.update(entry_id, fields)
        except DuplicateRecordException as e:
            raise DuplicateCatalogEntryException(fields.get("name", "")) from e
        if not entry:
            raise CatalogEntryNotFoundException(entry_id)
        return entry

    async def delete_entry(self, entry_id: int):
        if not await self.catalog_repo.delete(entry_id):
            raise CatalogEntryNotFoundException(entry_id)
        logger.info(f"[CatalogService] Fiche ID {entry_id} supprimée.")

    # --- Catégories ---

    async def list_categories(self) -> List[Category]:
        return await self.category_repo.list_all()

    async def add_category(self, name: str) -> Category:
        name = (name or "").strip()
        if not name:
            raise InvalidCategoryNameException()
        try:
            category = await self.category_repo.add(name)
        except DuplicateRecordException as e:
            raise DuplicateCategoryException(name) from e
        logger.info(f"[CatalogService] Catégorie '{name}' créée (ID {category.id}).")
        return category

    async def delete_category(self, category_id: int):
        if not await self.category_repo.delete(category_id):
            raise CategoryNotFoundException(category_id)
