from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, status

from storefront.api.v1.dependencies import get_uow, require_admin
from storefront.domain.unit_of_work import UnitOfWork
from storefront.models.user_model import User
from storefront.schemas.product_image_schema import ProductImageSchema
from storefront.schemas.product_schema import (
    AdminProductQuery,
    ProductAdminDetail,
    ProductCreate,
    ProductPage,
    ProductUpdate,
)
from storefront.services.product_image_service import ProductImageService
from storefront.services.product_service import ProductService
from storefront.utils.external_storage import get_storage
from storefront.utils.logger import get_logger

logger = get_logger("admin_product_router")


class AdminProductRouter:
    def __init__(self):
        self.router = APIRouter(
            prefix="/admin/products",
            tags=["Admin Products"],
            dependencies=[Depends(require_admin)],
        )
        self._register()

    def _register(self):
        self.router.get("/", response_model=ProductPage)(self._list_products)
        self.router.post("/", response_model=ProductAdminDetail, status_code=status.HTTP_201_CREATED)(
            self._create_product
        )
        self.router.get("/{product_id}", response_model=ProductAdminDetail)(self._get_product)
        self.router.patch("/{product_id}", response_model=ProductAdminDetail)(self._update_product)
        self.router.delete("/{product_id}", response_model=ProductAdminDetail)(self._delete_product)

        # Images; the fixed "order" path is registered before "{image_id}"
        self.router.get("/{product_id}/images", response_model=List[ProductImageSchema.Out])(
            self._list_images
        )
        self.router.post(
            "/{product_id}/images",
            response_model=List[ProductImageSchema.Out],
            status_code=status.HTTP_201_CREATED,
        )(self._upload_images)
        self.router.put("/{product_id}/images/order", response_model=List[ProductImageSchema.Out])(
            self._reorder_images
        )
        self.router.patch("/{product_id}/images/{image_id}", response_model=ProductImageSchema.Out)(
            self._update_image
        )
        self.router.delete("/{product_id}/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)(
            self._delete_image
        )

    # ---------------- products -----------------------------------------
    async def _list_products(
        self,
        query: Annotated[AdminProductQuery, Query()],
        uow: UnitOfWork = Depends(get_uow),
    ):
        logger.info(f"Listing products for admin page={query.page}")
        return ProductService(uow).list_admin(query)

    async def _create_product(
        self,
        payload: ProductCreate,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(require_admin),
    ):
        logger.info(f"Creating product {payload.sku}")
        return ProductService(uow).create(payload, current)

    async def _get_product(self, product_id: str, uow: UnitOfWork = Depends(get_uow)):
        logger.info(f"Getting product {product_id}")
        return ProductService(uow).get_admin(product_id)

    async def _update_product(
        self,
        product_id: str,
        payload: ProductUpdate,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(require_admin),
    ):
        logger.info(f"Updating product {product_id}")
        return ProductService(uow).update(product_id, payload, current)

    async def _delete_product(
        self,
        product_id: str,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(require_admin),
    ):
        logger.info(f"Deleting product {product_id}")
        return ProductService(uow).delete(product_id, current)

    # ---------------- images -------------------------------------------
    async def _list_images(self, product_id: str, uow: UnitOfWork = Depends(get_uow)):
        return ProductImageService(uow, get_storage).list(product_id)

    async def _upload_images(
        self,
        product_id: str,
        payload: ProductImageSchema.UploadBatch,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(require_admin),
    ):
        logger.info(f"Uploading {len(payload.images)} image(s) for product {product_id}")
        return ProductImageService(uow, get_storage).upload(product_id, payload, current)

    async def _reorder_images(
        self,
        product_id: str,
        payload: ProductImageSchema.Reorder,
        uow: UnitOfWork = Depends(get_uow),
    ):
        logger.info(f"Reordering images for product {product_id}")
        return ProductImageService(uow, get_storage).reorder(product_id, payload.image_ids)

    async def _update_image(
        self,
        product_id: str,
        image_id: str,
        payload: ProductImageSchema.Update,
        uow: UnitOfWork = Depends(get_uow),
    ):
        logger.info(f"Updating image {image_id} of product {product_id}")
        return ProductImageService(uow, get_storage).update(product_id, image_id, payload)

    async def _delete_image(
        self,
        product_id: str,
        image_id: str,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(require_admin),
    ):
        logger.info(f"Deleting image {image_id} of product {product_id}")
        ProductImageService(uow, get_storage).delete(product_id, image_id, current)
        return None


admin_product_router = AdminProductRouter().router
