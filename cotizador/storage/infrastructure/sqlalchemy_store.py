import logging
import re
import unicodedata
from typing import Optional, List, Dict, Any, Type

from sqlalchemy import select, or_, update as sqlalchemy_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from cotizador.storage import models
from cotizador.storage.domain.store import (
    AbstractRecordStore, Record, RecordId,
    QUOTES, PRODUCTS, PENDING_PRODUCTS, CATEGORIES,
)
from cotizador.storage.domain.exceptions import (
    UnknownCollectionException, UnknownFieldException,
    DuplicateRecordException, StoreOperationException,
)

logger = logging.getLogger(__name__)

COLLECTION_TABLES: Dict[str, Type[SQLModel]] = {
    QUOTES: models.QuoteDB,
    PRODUCTS: models.ProductDB,
    PENDING_PRODUCTS: models.PendingProductDB,
    CATEGORIES: models.CategoryDB,
}

SKU_PREFIX_LENGTH = 3
SKU_COUNTER_DIGITS = 4


def sku_prefix(text: str) -> str:
    """Préfixe ASCII majuscule de 3 caractères ("Sin Categoría" -> "SIN")."""
    normalized = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    letters = re.sub(r"[^A-Za-z0-9]", "", normalized).upper()
    return letters[:SKU_PREFIX_LENGTH].ljust(SKU_PREFIX_LENGTH, "X")


class SQLAlchemyRecordStore(AbstractRecordStore):
    """Implémentation SQLAlchemy/SQLModel du record store.

    Chaque opération est validée (commit) immédiatement.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # --- Helpers ---

    def _table(self, collection: str) -> Type[SQLModel]:
        table = COLLECTION_TABLES.get(collection)
        if table is None:
            raise UnknownCollectionException(collection)
        return table

    def _column(self, collection: str, table: Type[SQLModel], field: str):
        if field not in table.model_fields:
            raise UnknownFieldException(collection, field)
        return getattr(table, field)

    @staticmethod
    def _to_record(row: SQLModel) -> Record:
        return row.model_dump()

    def _check_fields(self, collection: str, table: Type[SQLModel], fields: Dict[str, Any]):
        for field in fields:
            if field not in table.model_fields:
                raise UnknownFieldException(collection, field)

    # --- Lecture ---

    async def find_one(self, collection: str, filters: Dict[str, Any]) -> Optional[Record]:
        table = self._table(collection)
        stmt = select(table)
        for field, value in filters.items():
            stmt = stmt.where(self._column(collection, table, field) == value)
        stmt = stmt.limit(1)
        try:
            result = await self.session.execute(stmt)
            row = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"Erreur SQLAlchemy find_one({collection}, {filters}): {e}", exc_info=True)
            raise StoreOperationException(f"Lecture impossible dans '{collection}'.", e) from e
        if row is None:
            logger.debug(f"Aucun enregistrement dans '{collection}' pour {filters}.")
            return None
        return self._to_record(row)

    async def list_all(
        self,
        collection: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Record]:
        table = self._table(collection)
        stmt = select(table)
        for field, value in (filters or {}).items():
            stmt = stmt.where(self._column(collection, table, field) == value)
        if order_by:
            column = self._column(collection, table, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        try:
            result = await self.session.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Erreur SQLAlchemy list_all({collection}): {e}", exc_info=True)
            raise StoreOperationException(f"Listage impossible de '{collection}'.", e) from e
        return [self._to_record(row) for row in rows]

    async def search_text(self, collection: str, fields: List[str], query: str, limit: int = 20) -> List[Record]:
        table = self._table(collection)
        search_term = f"%{query.strip()}%"
        conditions = [self._column(collection, table, field).ilike(search_term) for field in fields]
        stmt = select(table).where(or_(*conditions)).limit(limit)
        try:
            result = await self.session.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Erreur SQLAlchemy search_text({collection}, '{query}'): {e}", exc_info=True)
            raise StoreOperationException(f"Recherche impossible dans '{collection}'.", e) from e
        logger.debug(f"Recherche '{query}' dans {collection}: {len(rows)} résultats.")
        return [self._to_record(row) for row in rows]

    # --- Écriture ---

    async def insert(self, collection: str, record: Record) -> Record:
        table = self._table(collection)
        self._check_fields(collection, table, record)
        row = table(**record)
        self.session.add(row)
        try:
            await self.session.commit()
            await self.session.refresh(row)
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Violation de contrainte à l'insertion dans '{collection}': {e.orig}")
            raise DuplicateRecordException(collection, e) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Erreur SQLAlchemy insert({collection}): {e}", exc_info=True)
            raise StoreOperationException(f"Insertion impossible dans '{collection}'.", e) from e
        logger.debug(f"Enregistrement ID {row.id} inséré dans '{collection}'.")
        return self._to_record(row)

    async def insert_many(self, collection: str, records: List[Record]) -> List[Record]:
        table = self._table(collection)
        rows = []
        for record in records:
            self._check_fields(collection, table, record)
            rows.append(table(**record))
        self.session.add_all(rows)
        try:
            await self.session.commit()
            for row in rows:
                await self.session.refresh(row)
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateRecordException(collection, e) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Erreur SQLAlchemy insert_many({collection}): {e}", exc_info=True)
            raise StoreOperationException(f"Insertion multiple impossible dans '{collection}'.", e) from e
        logger.info(f"{len(rows)} enregistrements insérés dans '{collection}'.")
        return [self._to_record(row) for row in rows]

    async def update(self, collection: str, record_id: RecordId, fields: Dict[str, Any]) -> Optional[Record]:
        table = self._table(collection)
        self._check_fields(collection, table, fields)
        try:
            row = await self.session.get(table, record_id)
            if row is None:
                logger.warning(f"Tentative MAJ de l'ID {record_id} absent de '{collection}'.")
                return None
            for field, value in fields.items():
                setattr(row, field, value)
            await self.session.commit()
            await self.session.refresh(row)
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateRecordException(collection, e) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Erreur SQLAlchemy update({collection}, {record_id}): {e}", exc_info=True)
            raise StoreOperationException(f"Mise à jour impossible dans '{collection}'.", e) from e
        return self._to_record(row)

    async def delete(self, collection: str, record_id: RecordId) -> bool:
        table = self._table(collection)
        try:
            row = await self.session.get(table, record_id)
            if row is None:
                return False
            await self.session.delete(row)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Erreur SQLAlchemy delete({collection}, {record_id}): {e}", exc_info=True)
            raise StoreOperationException(f"Suppression impossible dans '{collection}'.", e) from e
        logger.info(f"Enregistrement ID {record_id} supprimé de '{collection}'.")
        return True

    # --- Séquence SKU ---

    async def next_sku(self, brand: str, category: str) -> str:
        key = f"{sku_prefix(brand)}-{sku_prefix(category)}"
        # Deux tentatives: la seconde couvre la création concurrente de la ligne compteur
        for _ in range(2):
            stmt = (
                sqlalchemy_update(models.SkuSequenceDB)
                .where(models.SkuSequenceDB.key == key)
                .values(last_value=models.SkuSequenceDB.last_value + 1)
                .returning(models.SkuSequenceDB.last_value)
                .execution_options(synchronize_session=False)
            )
            try:
                result = await self.session.execute(stmt)
                value = result.scalar_one_or_none()
                if value is None:
                    self.session.add(models.SkuSequenceDB(key=key, last_value=1))
                    value = 1
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
                logger.debug(f"Compteur SKU '{key}' créé en parallèle, nouvelle tentative.")
                continue
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Erreur SQLAlchemy next_sku({key}): {e}", exc_info=True)
                raise StoreOperationException(f"Génération de SKU impossible pour '{key}'.", e) from e
            sku = f"{key}-{value:0{SKU_COUNTER_DIGITS}d}"
            logger.info(f"SKU généré: {sku}")
            return sku
        raise StoreOperationException(f"Génération de SKU impossible pour '{key}' (conflits répétés).")
