import uuid
from typing import Callable, List, Optional

from storefront.domain.exceptions import (
    ImageLimitExceeded,
    InvalidImageOrder,
    ProductImageNotFound,
    ProductNotFound,
    StorageUnavailable,
)
from storefront.domain.unit_of_work import UnitOfWork
from storefront.models.product_model import Product, ProductImage
from storefront.models.user_model import User
from storefront.schemas.product_image_schema import ProductImageSchema
from storefront.services.category_service import invalidate_catalog_cache
from storefront.utils.external_storage import MinioClient, get_storage
from storefront.utils.image_validation import (
    MAX_IMAGES_PER_PRODUCT,
    MAX_IMAGES_PER_REQUEST,
    validate_base64_image,
)
from storefront.utils.logger import get_logger
from storefront.utils.sanitization import sanitize_alt_text


logger = get_logger("product_image_service")


class ProductImageService:
    def __init__(self, uow: UnitOfWork, storage_factory: Callable[[], MinioClient] = get_storage):
        self.uow = uow
        self._storage_factory = storage_factory

    def _active_product(self, product_id: str) -> Product:
        product = self.uow.products.get(product_id)
        if product is None or product.is_deleted:
            raise ProductNotFound(product_id)
        return product

    def _image(self, product_id: str, image_id: str) -> ProductImage:
        image = self.uow.product_images.get_for_product(product_id, image_id)
        if image is None:
            raise ProductImageNotFound(image_id)
        return image

    def list(self, product_id: str) -> List[ProductImageSchema.Out]:
        self._active_product(product_id)
        return [
            ProductImageSchema.Out.model_validate(image)
            for image in self.uow.product_images.get_by_product(product_id)
        ]

    def upload(
        self, product_id: str, batch: ProductImageSchema.UploadBatch, actor: Optional[User] = None
    ) -> List[ProductImageSchema.Out]:
        """Validate every image, store them, then record them on the product.

        The first image of a product without images becomes primary unless the
        batch marks one explicitly.
        """
        if len(batch.images) > MAX_IMAGES_PER_REQUEST:
            raise ImageLimitExceeded(MAX_IMAGES_PER_REQUEST, "request")

        uploaded_keys: List[str] = []
        storage: Optional[MinioClient] = None
        try:
            with self.uow:
                self._active_product(product_id)
                storage = self._storage_factory()

                existing = self.uow.product_images.count_for_product(product_id)
                if existing + len(batch.images) > MAX_IMAGES_PER_PRODUCT:
                    raise ImageLimitExceeded(MAX_IMAGES_PER_PRODUCT)

                validated = [
                    validate_base64_image(item.data, index)
                    for index, item in enumerate(batch.images)
                ]

                explicit_primary = any(item.is_primary for item in batch.images)
                if explicit_primary:
                    self.uow.product_images.clear_primary(product_id)
                next_order = self.uow.product_images.max_sort_order(product_id) + 1

                created: List[ProductImage] = []
                for index, (item, image) in enumerate(zip(batch.images, validated)):
                    key = f"products/{product_id}/{uuid.uuid4().hex}.{image.extension}"
                    url = storage.upload_bytes(key, image.content, image.mime_type)
                    uploaded_keys.append(key)
                    is_primary = item.is_primary or (
                        not explicit_primary and existing == 0 and index == 0
                    )
                    record = ProductImage(
                        product_id=product_id,
                        url=url,
                        object_key=key,
                        alt_text=sanitize_alt_text(item.alt_text) or None,
                        sort_order=next_order + index,
                        is_primary=is_primary,
                    )
                    self.uow.product_images.add(record)
                    created.append(record)
                self.uow.product_images.flush()
        except Exception:
            # Objects already written would otherwise be orphaned in the bucket
            self._discard_uploads(storage, uploaded_keys)
            raise

        invalidate_catalog_cache()
        logger.info(
            f"Images uploaded: product={product_id} count={len(created)} "
            f"by={actor.id if actor else None}"
        )
        return [ProductImageSchema.Out.model_validate(image) for image in created]

    def update(
        self, product_id: str, image_id: str, payload: ProductImageSchema.Update
    ) -> ProductImageSchema.Out:
        with self.uow:
            self._active_product(product_id)
            image = self._image(product_id, image_id)
            changes = payload.model_dump(exclude_unset=True)
            if "alt_text" in changes:
                image.alt_text = sanitize_alt_text(changes["alt_text"]) or None
            if changes.get("is_primary") is True:
                self.uow.product_images.clear_primary(product_id, keep_id=image.id)
                image.is_primary = True
            elif changes.get("is_primary") is False:
                image.is_primary = False
            self.uow.product_images.flush()

        invalidate_catalog_cache()
        return ProductImageSchema.Out.model_validate(image)

    def reorder(self, product_id: str, image_ids: List[str]) -> List[ProductImageSchema.Out]:
        with self.uow:
            self._active_product(product_id)
            images = {image.id: image for image in self.uow.product_images.get_by_product(product_id)}
            if len(set(image_ids)) != len(image_ids):
                raise InvalidImageOrder("duplicate image ids")
            if set(image_ids) != set(images):
                raise InvalidImageOrder("image ids must match the product's images exactly")
            for position, image_id in enumerate(image_ids):
                images[image_id].sort_order = position
            self.uow.product_images.flush()

        invalidate_catalog_cache()
        return [ProductImageSchema.Out.model_validate(images[i]) for i in image_ids]

    def delete(self, product_id: str, image_id: str, actor: Optional[User] = None) -> None:
        with self.uow:
            self._active_product(product_id)
            image = self._image(product_id, image_id)
            object_key = image.object_key
            was_primary = image.is_primary
            self.uow.product_images.delete(image)
            self.uow.product_images.flush()
            if was_primary:
                successor = self.uow.product_images.first_remaining(product_id, image_id)
                if successor is not None:
                    successor.is_primary = True

        invalidate_catalog_cache()
        logger.info(f"Image deleted: product={product_id} image={image_id} by={actor.id if actor else None}")
        if object_key:
            self._remove_object(object_key)

    @staticmethod
    def _discard_uploads(storage: Optional[MinioClient], keys: List[str]) -> None:
        """Best-effort removal of objects written by a batch that failed."""
        for key in keys:
            try:
                storage.remove_object(key)
            except Exception:
                logger.exception(f"Could not remove orphaned upload {key}")

    def _remove_object(self, object_key: str) -> None:
        # The database row is already gone; a stale object is only logged
        try:
            storage = self._storage_factory()
        except StorageUnavailable:
            logger.warning(f"Storage not configured, leaving object {object_key} in place")
            return
        if not storage.remove_object(object_key):
            logger.warning(f"Object {object_key} could not be removed from storage")
