from typing import Annotated

from fastapi import APIRouter, Depends, Query

from storefront.api.v1.dependencies import get_uow
from storefront.domain.unit_of_work import UnitOfWork
from storefront.schemas.product_schema import CategoryProductsQuery, CategoryStorefront
from storefront.services.category_service import CategoryService
from storefront.utils.logger import get_logger

logger = get_logger("category_router")


class CategoryRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/categories", tags=["Categories"])
        self._register()

    def _register(self):
        # Flat list or nested tree depending on include_children
        self.router.get("/", response_model=None)(self._list_categories)
        self.router.get("/{slug}", response_model=CategoryStorefront)(self._get_category)

    async def _list_categories(
        self,
        include_children: bool = False,
        only_with_products: bool = True,
        uow: UnitOfWork = Depends(get_uow),
    ):
        logger.info(
            f"Listing categories include_children={include_children} "
            f"only_with_products={only_with_products}"
        )
        return CategoryService(uow).list_public(include_children, only_with_products)

    async def _get_category(
        self,
        slug: str,
        query: Annotated[CategoryProductsQuery, Query()],
        uow: UnitOfWork = Depends(get_uow),
    ):
        logger.info(f"Getting category page {slug}")
        return CategoryService(uow).storefront(slug, query)


category_router = CategoryRouter().router
