import io

from minio import Minio
from minio.error import S3Error

from storefront.core.config import settings
from storefront.domain.exceptions import StorageUnavailable
from storefront.utils.logger import get_logger


logger = get_logger("external_storage")


class MinioClient:
    """Singleton object-store adapter for product images."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            if not settings.storage.is_configured:
                raise StorageUnavailable()

            secure = settings.storage.minio_use_ssl
            endpoint = settings.storage.minio_endpoint

            # Remove protocol prefix if present
            if endpoint.startswith("http://"):
                endpoint = endpoint[7:]
                secure = False
            elif endpoint.startswith("https://"):
                endpoint = endpoint[8:]
                secure = True

            client = Minio(
                endpoint,
                access_key=settings.storage.minio_access_key,
                secret_key=settings.storage.minio_secret_key,
                secure=secure,
            )
            # create bucket if not exists
            found = client.bucket_exists(bucket_name=settings.storage.minio_bucket)
            if not found:
                client.make_bucket(bucket_name=settings.storage.minio_bucket)

            cls._instance = super().__new__(cls)
            cls._instance._client = client
            cls._instance._bucket = settings.storage.minio_bucket
            cls._instance._secure = secure
            cls._instance._endpoint = endpoint
        return cls._instance

    # ------------------------------------------------------------------
    def get_public_url(self, object_name: str) -> str:
        """Direct URL of an object in the (public) product bucket."""
        endpoint = self._endpoint
        if self._secure and endpoint.endswith(":443"):
            endpoint = endpoint[:-4]
        scheme = "https" if self._secure else "http"
        return f"{scheme}://{endpoint}/{self._bucket}/{object_name}"

    def upload_bytes(self, object_name: str, content: bytes, content_type: str) -> str:
        """Store ``content`` under ``object_name`` and return its public URL."""
        self._client.put_object(
            bucket_name=self._bucket,
            object_name=object_name,
            data=io.BytesIO(content),
            length=len(content),
            content_type=content_type,
        )
        return self.get_public_url(object_name)

    def remove_object(self, object_name: str) -> bool:
        try:
            self._client.remove_object(bucket_name=self._bucket, object_name=object_name)
            return True
        except S3Error as e:
            logger.error(f"Failed to remove {object_name} from storage: {e}")
            return False


def get_storage() -> MinioClient:
    return MinioClient()
