import decimal
import functools
import json
import uuid
from datetime import date, datetime
from typing import Any, Callable

import redis
from pydantic import BaseModel
from sqlalchemy.orm.state import InstanceState

from storefront.core.config import settings
from storefront.utils.logger import get_logger


logger = get_logger("cache")


class CatalogEncoder(json.JSONEncoder):
    """JSON encoder for the UUID, Decimal and datetime values found in catalog rows."""

    def default(self, obj):
        if isinstance(obj, uuid.UUID):
            return str(obj)
        if isinstance(obj, decimal.Decimal):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, InstanceState):
            return None
        return super().default(obj)


class Cache:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._client = None
            cls._instance._ttl = settings.cache.ttl_seconds
            if not settings.cache.enabled:
                logger.info("Redis cache disabled by configuration")
                return cls._instance
            try:
                cls._instance._client = redis.from_url(
                    settings.cache.redis_url,
                    decode_responses=True,
                    socket_timeout=settings.cache.redis_socket_timeout,
                    socket_connect_timeout=settings.cache.redis_socket_connect_timeout,
                    retry_on_timeout=settings.cache.redis_retry_on_timeout,
                )
                logger.info(f"Redis cache initialized with URL: {settings.cache.redis_url}")
            except redis.RedisError as e:
                logger.warning(f"Failed to initialize Redis cache: {str(e)}. Caching will be disabled.")
                cls._instance._client = None
        return cls._instance

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def _serialize_value(self, value: Any) -> Any:
        """Turn pydantic models (and containers of them) into JSON-ready data."""
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if isinstance(value, list):
            return [self._serialize_value(item) for item in value]
        if isinstance(value, dict):
            return {k: self._serialize_value(v) for k, v in value.items()}
        return value

    # ------------------------------------------------------------------
    def get(self, key: str):
        if self._client is None:
            return None

        try:
            val = self._client.get(key)
            if val:
                logger.debug(f"Cache hit for key: {key}")
                return json.loads(val)
            logger.debug(f"Cache miss for key: {key}")
            return None
        except redis.RedisError as e:
            logger.error(f"Error retrieving from cache: {str(e)}")
            return None

    def set(self, key: str, value, ttl: int | None = None):
        if self._client is None:
            return

        try:
            payload = json.dumps(self._serialize_value(value), cls=CatalogEncoder)
            self._client.set(key, payload, ex=ttl or self._ttl)
            logger.debug(f"Set cache for key: {key}, TTL: {ttl or self._ttl}s")
        except (redis.RedisError, TypeError) as e:
            logger.error(f"Error setting cache: {str(e)}")

    def invalidate(self, key_prefix: str):
        if self._client is None:
            return

        try:
            keys = list(self._client.scan_iter(f"{key_prefix}*"))
            if keys:
                self._client.delete(*keys)
                logger.debug(f"Invalidated {len(keys)} keys with prefix: {key_prefix}")
        except redis.RedisError as e:
            logger.error(f"Error invalidating cache: {str(e)}")

    # ------------------------------------------------------------------
    def cacheable(self, key_builder: Callable, ttl: int | None = None):
        """Decorator for caching service results.

        Cached hits come back as plain JSON data, so decorated functions must
        return values a response model can validate either way.
        """

        def decorator(fn):
            @functools.wraps(fn)
            def wrapper(*args, **kwargs):
                if self._client is None:
                    return fn(*args, **kwargs)

                key = key_builder(*args, **kwargs)
                cached = self.get(key)
                if cached is not None:
                    return cached
                result = fn(*args, **kwargs)
                self.set(key, result, ttl)
                return result

            return wrapper

        return decorator


cache = Cache()
