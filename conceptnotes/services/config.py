"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.workspace import Scope, Workspace

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_STORAGE_BASE = PROJECT_ROOT / "data" / "pod"
DEFAULT_STORAGE_URI = "local://pod/"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    storage_backend: Literal["local", "http"] = Field(
        default="local", description="Remote storage implementation"
    )
    storage_base_path: Path = Field(
        default=DEFAULT_STORAGE_BASE, description="Directory backing the local storage"
    )
    storage_base_uri: str = Field(
        default=DEFAULT_STORAGE_URI, description="URI prefix served by the storage backend"
    )
    storage_token: Optional[str] = Field(
        default=None, description="Bearer credential for the http storage backend"
    )
    storage_timeout: float = Field(default=30.0, gt=0)
    workspace_slug: str = Field(default="default", min_length=1)
    concept_prefix: Optional[str] = None
    tag_prefix: Optional[str] = None
    public_storage_root: Optional[str] = None
    private_storage_root: Optional[str] = None
    save_debounce_seconds: float = Field(
        default=1.5, gt=0, description="Quiet period before an edit is persisted"
    )
    default_scope: Scope = Field(
        default=Scope.PRIVATE, description="Scope of notes saved for the first time"
    )

    @field_validator("storage_base_path", mode="before")
    @classmethod
    def _normalize_base_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("STORAGE_BASE_PATH cannot be empty")
        return Path(value).expanduser().resolve()

    @field_validator("storage_base_uri")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("STORAGE_BASE_URI cannot be empty")
        return cleaned if cleaned.endswith("/") else f"{cleaned}/"

    def workspace(self) -> Workspace:
        """Build the workspace description, deriving unset prefixes from the base URI."""
        base = self.storage_base_uri
        slug = self.workspace_slug
        return Workspace(
            slug=slug,
            concept_prefix=self.concept_prefix or f"{base}{slug}/concepts#",
            tag_prefix=self.tag_prefix or f"{base}{slug}/tags#",
            public_storage_root=self.public_storage_root or f"{base}public/{slug}/",
            private_storage_root=self.private_storage_root or f"{base}private/{slug}/",
        )


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    load_dotenv()
    config = AppConfig(
        storage_backend=_read_env("STORAGE_BACKEND", "local").strip().lower(),
        storage_base_path=_read_env("STORAGE_BASE_PATH", str(DEFAULT_STORAGE_BASE)),
        storage_base_uri=_read_env("STORAGE_BASE_URI", DEFAULT_STORAGE_URI),
        storage_token=_read_env("STORAGE_TOKEN") or None,
        storage_timeout=float(_read_env("STORAGE_TIMEOUT", "30")),
        workspace_slug=_read_env("WORKSPACE_SLUG", "default"),
        concept_prefix=_read_env("CONCEPT_PREFIX") or None,
        tag_prefix=_read_env("TAG_PREFIX") or None,
        public_storage_root=_read_env("PUBLIC_STORAGE_ROOT") or None,
        private_storage_root=_read_env("PRIVATE_STORAGE_ROOT") or None,
        save_debounce_seconds=float(_read_env("SAVE_DEBOUNCE_SECONDS", "1.5")),
        default_scope=_read_env("DEFAULT_SCOPE", "private").strip().lower(),
    )
    if config.storage_backend == "local":
        # Ensure the local pod directory exists for downstream services.
        config.storage_base_path.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "PROJECT_ROOT",
    "DEFAULT_STORAGE_BASE",
    "DEFAULT_STORAGE_URI",
]
