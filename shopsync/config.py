# shopsync/config.py
"""Environment-driven settings.

`Settings()` reads the environment (and `.env`) once; the instance is handed
to the factories in `db`, `fetcher`, `sync` and `main`. Only `LOG_LEVEL` is
read elsewhere (by `utils.get_logger`).
"""
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_PAGE_SIZE = 250


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, validation_alias=AliasChoices("DATABASE_URL", "POSTGRES_URL"))
    db_pool_size: int = Field(5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(10, validation_alias="DB_MAX_OVERFLOW")
    db_sslmode: Optional[str] = Field(None, validation_alias="DB_SSLMODE")

    store_domain: Optional[str] = Field(None, validation_alias="SHOPIFY_STORE_DOMAIN")
    access_token: Optional[str] = Field(None, validation_alias="SHOPIFY_ACCESS_TOKEN")
    api_version: str = Field("2025-04", validation_alias="SHOPIFY_API_VERSION")
    page_size: int = Field(MAX_PAGE_SIZE, validation_alias="CATALOG_PAGE_SIZE")
    max_pages: int = Field(100, validation_alias="CATALOG_MAX_PAGES")
    fetch_timeout: float = Field(30.0, validation_alias="CATALOG_TIMEOUT")
    fetch_retries: int = Field(3, validation_alias="CATALOG_FETCH_RETRIES")
    fetch_retry_delay: float = Field(1.0, validation_alias="CATALOG_RETRY_DELAY")
    fetch_retry_max_delay: float = Field(30.0, validation_alias="CATALOG_RETRY_MAX_DELAY")

    channel: str = Field("shopify", validation_alias="SYNC_CHANNEL")
    concurrency: int = Field(1, validation_alias="SYNC_CONCURRENCY")
    lock_name: str = Field("catalog-sync", validation_alias="SYNC_LOCK_NAME")
    schedule_enabled: bool = Field(False, validation_alias="SYNC_SCHEDULE_ENABLED")
    interval_minutes: int = Field(60, validation_alias="SYNC_INTERVAL_MINUTES")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("db_sslmode", "store_domain", "access_token", "database_url", mode="before")
    @classmethod
    def _blank_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("page_size")
    @classmethod
    def _cap_page_size(cls, v: int) -> int:
        return max(1, min(v, MAX_PAGE_SIZE))

    @field_validator("concurrency", "fetch_retries")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        return max(1, v)
