"""
Tests pour le record store SQLAlchemy (SQLite en mémoire).
"""
import pytest
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from cotizador.storage.domain.store import PRODUCTS, CATEGORIES, PENDING_PRODUCTS, QUOTES
from cotizador.storage.domain.exceptions import (
    DuplicateRecordException, UnknownCollectionException, UnknownFieldException,
)
from cotizador.storage.infrastructure.sqlalchemy_store import SQLAlchemyRecordStore, sku_prefix


@pytest.mark.parametrize("text, expected", [
    ("INPROTAR", "INP"),
    ("Sin Categoría", "SIN"),
    ("Iluminación", "ILU"),
    ("3M", "3MX"),
    ("", "XXX"),
    ("Ñandú", "NAN"),
])
def test_sku_prefix(text, expected):
    assert sku_prefix(text) == expected


@pytest.mark.asyncio
async def test_next_sku_sequence_per_pair(record_store):
    assert await record_store.next_sku("Schneider", "Tableros") == "SCH-TAB-0001"
    assert await record_store.next_sku("Schneider", "Tableros") == "SCH-TAB-0002"
    assert await record_store.next_sku("Schneider", "Iluminación") == "SCH-ILU-0001"
    assert await record_store.next_sku("SCHNEIDER ELECTRIC", "tableros eléctricos") == "SCH-TAB-0003"


@pytest.mark.asyncio
async def test_next_sku_shared_across_sessions(db_engine):
    """Le compteur est en base: deux sessions distinctes poursuivent la même séquence."""
    factory = sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as first_session, factory() as second_session:
        first = SQLAlchemyRecordStore(first_session)
        second = SQLAlchemyRecordStore(second_session)
        skus = [
            await first.next_sku("Legrand", "Enchufes"),
            await second.next_sku("Legrand", "Enchufes"),
            await first.next_sku("Legrand", "Enchufes"),
        ]

    assert skus == ["LEG-ENC-0001", "LEG-ENC-0002", "LEG-ENC-0003"]


@pytest.mark.asyncio
async def test_insert_find_update_delete(record_store):
    record = await record_store.insert(PRODUCTS, {"name": "Foco", "net_price": Decimal("990")})
    assert record["id"] is not None

    found = await record_store.find_one(PRODUCTS, {"name": "Foco"})
    assert found["net_price"] == Decimal("990")

    updated = await record_store.update(PRODUCTS, record["id"], {"brand": "Philips"})
    assert updated["brand"] == "Philips"

    assert await record_store.update(PRODUCTS, 999, {"brand": "X"}) is None
    assert await record_store.delete(PRODUCTS, record["id"]) is True
    assert await record_store.delete(PRODUCTS, record["id"]) is False
    assert await record_store.find_one(PRODUCTS, {"name": "Foco"}) is None


@pytest.mark.asyncio
async def test_duplicate_name_is_reported(record_store):
    await record_store.insert(CATEGORIES, {"name": "Tableros"})
    with pytest.raises(DuplicateRecordException):
        await record_store.insert(CATEGORIES, {"name": "Tableros"})
    # La session reste utilisable après le rollback
    assert len(await record_store.list_all(CATEGORIES)) == 1


@pytest.mark.asyncio
async def test_list_all_with_filters_and_order(record_store):
    await record_store.insert_many(PENDING_PRODUCTS, [
        {"name": "A", "status": "pending"},
        {"name": "B", "status": "rejected"},
        {"name": "C", "status": "pending"},
    ])
    rows = await record_store.list_all(PENDING_PRODUCTS, order_by="id", descending=True, filters={"status": "pending"})
    assert [r["name"] for r in rows] == ["C", "A"]


@pytest.mark.asyncio
async def test_search_text_is_case_insensitive(record_store):
    await record_store.insert(PRODUCTS, {"name": "Interruptor Doble", "brand": "Bticino"})
    await record_store.insert(PRODUCTS, {"name": "Cable", "brand": "Madeco", "category": "Conductores"})
    assert [r["name"] for r in await record_store.search_text(PRODUCTS, ["name", "brand"], "BTIC")] == ["Interruptor Doble"]
    assert [r["name"] for r in await record_store.search_text(PRODUCTS, ["category"], "conduct")] == ["Cable"]


@pytest.mark.asyncio
async def test_json_snapshot_round_trip(record_store):
    snapshot = {"products": [{"name": "Cable", "net_price": "450.50"}], "total": "536.10"}
    record = await record_store.insert(QUOTES, {"quote_number": "COT-1234", "products_data": snapshot})
    found = await record_store.find_one(QUOTES, {"id": record["id"]})
    assert found["products_data"] == snapshot


@pytest.mark.asyncio
async def test_unknown_collection_and_field(record_store):
    with pytest.raises(UnknownCollectionException):
        await record_store.find_one("orders", {"id": 1})
    with pytest.raises(UnknownFieldException):
        await record_store.find_one(PRODUCTS, {"colour": "red"})
    with pytest.raises(UnknownFieldException):
        await record_store.insert(PRODUCTS, {"name": "X", "colour": "red"})
