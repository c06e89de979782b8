import logging
from typing import List

from fastapi import APIRouter, HTTPException, status, Query, Path
from pydantic import BaseModel

from .dependencies import CatalogServiceDep
from cotizador.quotes.interfaces.dependencies import WorkspaceRegistryDep, QuoteWorkflowServiceDep
from cotizador.quotes.domain.entities import LineItem
from cotizador.quotes.domain.exceptions import QuoteSessionNotFoundException
from cotizador.catalog.domain.entities import CatalogEntry, CatalogEntryUpdate, Category
from cotizador.catalog.domain.exceptions import (
    CatalogEntryNotFoundException, DuplicateCatalogEntryException,
    CategoryNotFoundException, DuplicateCategoryException, InvalidCategoryNameException,
)

logger = logging.getLogger(__name__)

catalog_router = APIRouter()


class CategoryCreate(BaseModel):
    name: str

# --- Fiches produit ---

@catalog_router.get("/products", response_model=List[CatalogEntry])
async def list_or_search_products(
    catalog_service: CatalogServiceDep,
    q: str = Query(None, description="Recherche sur nom, marque ou catégorie"),
    limit: int = Query(20, ge=1, le=200),
):
    """Sans `q`: catalogue complet (administration). Avec `q`: recherche limitée."""
    if q is None:
        return await catalog_service.list_entries()
    return await catalog_service.search(q, limit=limit)


@catalog_router.patch("/products/{entry_id}", response_model=CatalogEntry)
async def update_product(catalog_service: CatalogServiceDep, update: CatalogEntryUpdate, entry_id: int = Path(..., ge=1)):
    try:
        return await catalog_service.update_entry(entry_id, update)
    except CatalogEntryNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuplicateCatalogEntryException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@catalog_router.delete("/products/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(catalog_service: CatalogServiceDep, entry_id: int = Path(..., ge=1)):
    try:
        await catalog_service.delete_entry(entry_id)
    except CatalogEntryNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@catalog_router.post("/products/{entry_id}/pick/{session_id}", response_model=LineItem, status_code=status.HTTP_201_CREATED)
async def pick_product_for_quote(
    catalog_service: CatalogServiceDep,
    workflow: QuoteWorkflowServiceDep,
    registry: WorkspaceRegistryDep,
    session_id: str,
    entry_id: int = Path(..., ge=1),
):
    """Ajoute une fiche catalogue comme ligne du devis en cours."""
    try:
        workspace = registry.get(session_id)
        entry = await catalog_service.get_entry(entry_id)
    except (QuoteSessionNotFoundException, CatalogEntryNotFoundException) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return workflow.add_item(workspace.session, catalog_service.to_line_item(entry))

# --- Catégories ---

@catalog_router.get("/categories", response_model=List[Category])
async def list_categories(catalog_service: CatalogServiceDep):
    return await catalog_service.list_categories()


@catalog_router.post("/categories", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(catalog_service: CatalogServiceDep, category_in: CategoryCreate):
    try:
        return await catalog_service.add_category(category_in.name)
    except InvalidCategoryNameException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateCategoryException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@catalog_router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(catalog_service: CatalogServiceDep, category_id: int = Path(..., ge=1)):
    try:
        await catalog_service.delete_category(category_id)
    except CategoryNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
