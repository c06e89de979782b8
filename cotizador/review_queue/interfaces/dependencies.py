from typing import Annotated

from fastapi import Depends

from cotizador.storage.interfaces.dependencies import RecordStoreDep
from cotizador.catalog.interfaces.dependencies import CatalogRepositoryDep, CategoryRepositoryDep
from cotizador.review_queue.infrastructure.persistence import PendingProductRepository
from cotizador.review_queue.application.services import PendingReviewService


def get_pending_product_repository(store: RecordStoreDep) -> PendingProductRepository:
    return PendingProductRepository(store=store)

PendingProductRepositoryDep = Annotated[PendingProductRepository, Depends(get_pending_product_repository)]


def get_pending_review_service(
    pending_repo: PendingProductRepositoryDep,
    catalog_repo: CatalogRepositoryDep,
    category_repo: CategoryRepositoryDep,
) -> PendingReviewService:
    return PendingReviewService(pending_repo=pending_repo, catalog_repo=catalog_repo, category_repo=category_repo)

PendingReviewServiceDep = Annotated[PendingReviewService, Depends(get_pending_review_service)]
