import base64
import io
import os

import pytest
from PIL import Image

from storefront.domain.unit_of_work import UnitOfWork
from storefront.models.product_model import ProductImage
from storefront.schemas.product_image_schema import ProductImageSchema
from storefront.services.product_image_service import ProductImageService


def png_data_url(width=150, height=150) -> str:
    img = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


class FlakyStorage:
    """Accepts ``accept`` uploads, then fails; removals can fail as well."""

    def __init__(self, accept=1, removal_error=None):
        self.accept = accept
        self.removal_error = removal_error
        self.objects = {}
        self.remove_attempts = []

    def upload_bytes(self, object_name, content, content_type):
        if len(self.objects) >= self.accept:
            raise RuntimeError("bucket went away")
        self.objects[object_name] = content
        return f"https://cdn.example.com/{object_name}"

    def remove_object(self, object_name):
        self.remove_attempts.append(object_name)
        if self.removal_error is not None:
            raise self.removal_error
        return self.objects.pop(object_name, None) is not None


def _batch(count=2):
    return ProductImageSchema.UploadBatch(
        images=[ProductImageSchema.Upload(data=png_data_url()) for _ in range(count)]
    )


class TestUploadCleanup:
    def test_failed_batch_removes_objects_already_stored(self, db_session, make_product):
        product = make_product("Trail Runner")
        storage = FlakyStorage(accept=1)
        service = ProductImageService(UnitOfWork(db_session), lambda: storage)

        with pytest.raises(RuntimeError, match="bucket went away"):
            service.upload(product.id, _batch())

        assert storage.objects == {}
        assert len(storage.remove_attempts) == 1
        assert db_session.query(ProductImage).count() == 0

    def test_failing_cleanup_keeps_the_original_error(self, db_session, make_product):
        product = make_product("Trail Runner")
        storage = FlakyStorage(accept=2, removal_error=ConnectionError("storage unreachable"))
        service = ProductImageService(UnitOfWork(db_session), lambda: storage)

        with pytest.raises(RuntimeError, match="bucket went away"):
            service.upload(product.id, _batch(3))

        # every stored object is still attempted after the first removal fails
        assert storage.remove_attempts == list(storage.objects)
        assert len(storage.remove_attempts) == 2
        assert db_session.query(ProductImage).count() == 0

    def test_successful_batch_stores_every_image(self, db_session, make_product):
        product = make_product("Trail Runner")
        storage = FlakyStorage(accept=5)
        service = ProductImageService(UnitOfWork(db_session), lambda: storage)

        images = service.upload(product.id, _batch(2))

        assert len(images) == 2
        assert images[0].is_primary and not images[1].is_primary
        assert storage.remove_attempts == []
