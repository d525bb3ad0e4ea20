from typing import Annotated

from fastapi import APIRouter, Depends, Query

from storefront.api.v1.dependencies import get_uow
from storefront.domain.unit_of_work import UnitOfWork
from storefront.schemas.product_schema import ProductDetail, ProductPage, ProductQuery
from storefront.services.product_service import ProductService
from storefront.utils.logger import get_logger

logger = get_logger("product_router")


class ProductRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/products", tags=["Products"])
        self._register()

    def _register(self):
        self.router.get("/", response_model=ProductPage)(self._list_products)
        self.router.get("/{slug}", response_model=ProductDetail)(self._get_product)

    async def _list_products(
        self,
        query: Annotated[ProductQuery, Query()],
        uow: UnitOfWork = Depends(get_uow),
    ):
        logger.info(f"Listing products page={query.page} limit={query.limit}")
        return ProductService(uow).list_public(query)

    async def _get_product(self, slug: str, uow: UnitOfWork = Depends(get_uow)):
        logger.info(f"Getting product {slug}")
        return ProductService(uow).get_public(slug)


product_router = ProductRouter().router
