import logging
from typing import Optional, List, Dict, Any

from cotizador.storage.domain.store import AbstractRecordStore, PRODUCTS, CATEGORIES

# Entités Domaine
from cotizador.catalog.domain.entities import CatalogEntry, Category

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["name", "brand", "category"]


class CatalogRepository:
    """Accès aux fiches catalogue (collection "products") via le record store."""

    def __init__(self, store: AbstractRecordStore):
        self.store = store

    async def get_by_id(self, entry_id: int) -> Optional[CatalogEntry]:
        record = await self.store.find_one(PRODUCTS, {"id": entry_id})
        return CatalogEntry.model_validate(record) if record else None

    async def get_by_name(self, name: str) -> Optional[CatalogEntry]:
        """Recherche exacte par nom (clé de réconciliation)."""
        record = await self.store.find_one(PRODUCTS, {"name": name})
        return CatalogEntry.model_validate(record) if record else None

    async def search(self, query: str, limit: int) -> List[CatalogEntry]:
        records = await self.store.search_text(PRODUCTS, SEARCH_FIELDS, query, limit=limit)
        return [CatalogEntry.model_validate(r) for r in records]

    async def list_all(self) -> List[CatalogEntry]:
        records = await self.store.list_all(PRODUCTS, order_by="name")
        return [CatalogEntry.model_validate(r) for r in records]

    async def add(self, entry_data: Dict[str, Any]) -> CatalogEntry:
        """Insère une fiche. Propage DuplicateRecordException si le nom existe."""
        record = await self.store.insert(PRODUCTS, entry_data)
        logger.info(f"Fiche catalogue ID {record['id']} créée: '{record['name']}' ({record.get('sku')}).")
        return CatalogEntry.model_validate(record)

    async def update(self, entry_id: int, fields: Dict[str, Any]) -> Optional[CatalogEntry]:
        record = await self.store.update(PRODUCTS, entry_id, fields)
        return CatalogEntry.model_validate(record) if record else None

    async def delete(self, entry_id: int) -> bool:
        return await self.store.delete(PRODUCTS, entry_id)

    async def next_sku(self, brand: str, category: str) -> str:
        return await self.store.next_sku(brand, category)


class CategoryRepository:
    def __init__(self, store: AbstractRecordStore):
        self.store = store

    async def list_all(self) -> List[Category]:
        records = await self.store.list_all(CATEGORIES, order_by="name")
        return [Category.model_validate(r) for r in records]

    async def add(self, name: str) -> Category:
        record = await self.store.insert(CATEGORIES, {"name": name})
        return Category.model_validate(record)

    async def delete(self, category_id: int) -> bool:
        return await self.store.delete(CATEGORIES, category_id)
