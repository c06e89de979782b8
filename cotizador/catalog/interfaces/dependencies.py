import logging
from typing import Annotated

from fastapi import Depends

from cotizador.storage.interfaces.dependencies import RecordStoreDep

# Repositories
from cotizador.catalog.infrastructure.persistence import CatalogRepository, CategoryRepository

# Services
from cotizador.catalog.application.services import CatalogService
from cotizador.catalog.application.reconciler import CatalogReconciler

logger = logging.getLogger(__name__)

# --- Dépendances Repository ---
def get_catalog_repository(store: RecordStoreDep) -> CatalogRepository:
    return CatalogRepository(store=store)

CatalogRepositoryDep = Annotated[CatalogRepository, Depends(get_catalog_repository)]


def get_category_repository(store: RecordStoreDep) -> CategoryRepository:
    return CategoryRepository(store=store)

CategoryRepositoryDep = Annotated[CategoryRepository, Depends(get_category_repository)]

# --- Dépendances Service ---
def get_catalog_service(
    catalog_repo: CatalogRepositoryDep,
    category_repo: CategoryRepositoryDep,
) -> CatalogService:
    """Injecte CatalogService avec ses dépendances."""
    logger.debug("Fourniture de CatalogService")
    return CatalogService(catalog_repo=catalog_repo, category_repo=category_repo)

CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]


def get_catalog_reconciler(catalog_repo: CatalogRepositoryDep) -> CatalogReconciler:
    return CatalogReconciler(catalog_repo=catalog_repo)

CatalogReconcilerDep = Annotated[CatalogReconciler, Depends(get_catalog_reconciler)]
