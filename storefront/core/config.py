from pathlib import Path
from typing import List

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    database_url: str = Field(...)
    pool_size: int = Field(20)
    max_overflow: int = Field(30)
    pool_timeout: int = Field(60)  # seconds
    pool_recycle: int = Field(3600)  # recycle connections every hour
    pool_pre_ping: bool = Field(True)
    echo: bool = Field(False)


class AuthSettings(BaseModel):
    secret_key: str = Field(...)
    algorithm: str = Field("HS256")
    access_token_expires: int = Field(120)  # minutes
    max_failed_logins: int = Field(5)
    lockout_minutes: int = Field(15)


class StorageSettings(BaseModel):
    minio_endpoint: str = Field("minio:9000")
    minio_access_key: str = Field("")
    minio_secret_key: str = Field("")
    minio_bucket: str = Field("storefront")
    minio_use_ssl: bool = Field(True)

    @property
    def is_configured(self) -> bool:
        return bool(self.minio_access_key and self.minio_secret_key)


class CacheSettings(BaseModel):
    enabled: bool = True
    redis_url: str = "redis://localhost:6379/0"
    ttl_seconds: int = 300  # public catalog data goes stale quickly
    redis_socket_timeout: int = 5
    redis_socket_connect_timeout: int = 5
    redis_retry_on_timeout: bool = True


class RateLimitSettings(BaseModel):
    enabled: bool = True
    default_limit: str = "120/minute"
    login_limit: str = "10/minute"


class AppSettings(BaseSettings):
    debug: bool = Field(False)
    allowed_hosts: str = Field("http://localhost:3000,http://localhost:8000")
    database: DatabaseSettings
    auth: AuthSettings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        env_nested_delimiter="__",
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def _split_allowed_hosts(cls, v: str) -> List[str]:
        if not v or not v.strip():
            return []
        hosts = []
        for host in v.split(","):
            host = host.strip().rstrip("/")
            if host.startswith(("http://", "https://")):
                hosts.append(host)
        return hosts

    @property
    def allowed_hosts_list(self) -> List[str]:
        """CORS origins parsed from the comma separated ``allowed_hosts``."""
        hosts = self._split_allowed_hosts(self.allowed_hosts)
        return hosts or ["http://localhost:3000", "http://localhost:8000"]


settings: AppSettings = AppSettings()

if __name__ == "__main__":
    print(settings.model_dump(exclude={"auth": {"secret_key"}}))
