"""
Tests pour CatalogService (recherche et administration).
"""
import pytest
import pytest_asyncio
from decimal import Decimal

from cotizador.catalog.application.services import CatalogService
from cotizador.catalog.domain.entities import CatalogEntryUpdate
from cotizador.catalog.domain.exceptions import (
    CatalogEntryNotFoundException, DuplicateCatalogEntryException,
    DuplicateCategoryException, InvalidCategoryNameException, CategoryNotFoundException,
)
from cotizador.core.schemas import DeliveryType, UnitType


@pytest.fixture
def catalog_service(catalog_repo, category_repo):
    return CatalogService(catalog_repo=catalog_repo, category_repo=category_repo)


@pytest_asyncio.fixture
async def seeded(catalog_repo):
    await catalog_repo.add({"name": "Foco LED 50W", "brand": "Philips", "category": "Iluminación", "sku": "PHI-ILU-0001",
                            "net_price": Decimal("9990")})
    await catalog_repo.add({"name": "Cable THHN 12", "brand": "Madeco", "category": "Conductores", "sku": "MAD-CON-0001",
                            "unit": "m", "net_price": Decimal("450")})
    await catalog_repo.add({"name": "Tablero 12 polos", "brand": "Schneider", "category": "Tableros", "sku": "SCH-TAB-0001"})


@pytest.mark.asyncio
async def test_search_matches_name_brand_and_category(catalog_service, seeded):
    assert [e.name for e in await catalog_service.search("foco")] == ["Foco LED 50W"]
    assert [e.name for e in await catalog_service.search("MADECO")] == ["Cable THHN 12"]
    assert [e.name for e in await catalog_service.search("tablero")] == ["Tablero 12 polos"]


@pytest.mark.asyncio
async def test_search_empty_query(catalog_service, seeded):
    assert await catalog_service.search("") == []
    assert await catalog_service.search("   ") == []


@pytest.mark.asyncio
async def test_search_limit(catalog_service, seeded):
    assert len(await catalog_service.search("1", limit=1)) == 1


@pytest.mark.asyncio
async def test_to_line_item(catalog_service, seeded, catalog_repo):
    entry = await catalog_repo.get_by_name("Cable THHN 12")
    item = catalog_service.to_line_item(entry)
    assert item.quantity == 1
    assert item.unit == UnitType.METER
    assert item.net_price == Decimal("450")
    assert item.sku == "MAD-CON-0001"


@pytest.mark.asyncio
async def test_update_entry_keeps_sku(catalog_service, seeded, catalog_repo):
    entry = await catalog_repo.get_by_name("Foco LED 50W")
    updated = await catalog_service.update_entry(
        entry.id, CatalogEntryUpdate(net_price=Decimal("8990"), delivery_type=DeliveryType.IMPORT, delivery_days=30)
    )
    assert updated.net_price == Decimal("8990")
    assert updated.delivery_type == DeliveryType.IMPORT
    assert updated.sku == "PHI-ILU-0001"


@pytest.mark.asyncio
async def test_update_entry_duplicate_name(catalog_service, seeded, catalog_repo):
    entry = await catalog_repo.get_by_name("Foco LED 50W")
    with pytest.raises(DuplicateCatalogEntryException):
        await catalog_service.update_entry(entry.id, CatalogEntryUpdate(name="Cable THHN 12"))


@pytest.mark.asyncio
async def test_update_and_delete_missing_entry(catalog_service):
    with pytest.raises(CatalogEntryNotFoundException):
        await catalog_service.update_entry(999, CatalogEntryUpdate(brand="X"))
    with pytest.raises(CatalogEntryNotFoundException):
        await catalog_service.delete_entry(999)


@pytest.mark.asyncio
async def test_list_entries_sorted_by_name(catalog_service, seeded):
    names = [e.name for e in await catalog_service.list_entries()]
    assert names == sorted(names)


@pytest.mark.asyncio
async def test_categories_crud(catalog_service):
    created = await catalog_service.add_category("  Iluminación ")
    assert created.name == "Iluminación"
    await catalog_service.add_category("Conductores")

    assert [c.name for c in await catalog_service.list_categories()] == ["Conductores", "Iluminación"]

    with pytest.raises(DuplicateCategoryException):
        await catalog_service.add_category("Iluminación")
    with pytest.raises(InvalidCategoryNameException):
        await catalog_service.add_category("   ")

    await catalog_service.delete_category(created.id)
    with pytest.raises(CategoryNotFoundException):
        await catalog_service.delete_category(created.id)
