"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RemoteSourceSettings(BaseModel):
    base_url: HttpUrl = Field(default="https://jsonplaceholder.typicode.com")
    posts_path: str = Field(default="/posts", min_length=1)
    request_timeout_seconds: float = Field(default=10, gt=0, le=120)

    @property
    def posts_url(self) -> str:
        return f"{str(self.base_url).rstrip('/')}/{self.posts_path.lstrip('/')}"


class ConnectivitySettings(BaseModel):
    probe_url: HttpUrl = Field(
        default="https://clients3.google.com/generate_204",
        description="Lightweight endpoint hit with HEAD to decide whether we are online.",
    )
    timeout_seconds: float = Field(default=3, gt=0, le=30)
    assume_online: bool = False


class SearchSettings(BaseModel):
    debounce_seconds: float = Field(default=0.3, ge=0, le=10)
    storage_key: str = Field(default="searchText", min_length=1)
    store_path: Path | None = Field(
        default=None,
        description="JSON file holding the persisted search text; in-memory when unset.",
    )

    @field_validator("store_path", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class FeedSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POSTFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    remote: RemoteSourceSettings = Field(default_factory=RemoteSourceSettings)
    connectivity: ConnectivitySettings = Field(default_factory=ConnectivitySettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


@lru_cache
def get_settings() -> FeedSettings:
    """Return cached settings instance."""

    return FeedSettings()


__all__ = [
    "ConnectivitySettings",
    "FeedSettings",
    "RemoteSourceSettings",
    "SearchSettings",
    "get_settings",
]
