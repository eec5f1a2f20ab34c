"""Workspace configuration models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NOTES_CONTAINER = "notes/"
IMAGES_CONTAINER = "images/"
INDEX_RESOURCE = "concepts.json"


class Scope(str, Enum):
    """Visibility partition of a workspace."""

    PUBLIC = "public"
    PRIVATE = "private"

    @property
    def other(self) -> "Scope":
        return Scope.PRIVATE if self is Scope.PUBLIC else Scope.PUBLIC


class Workspace(BaseModel):
    """Prefixes and storage roots shared by every component of a session."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "slug": "default",
                "concept_prefix": "https://alice.pod/default/concepts#",
                "tag_prefix": "https://alice.pod/default/tags#",
                "public_storage_root": "https://alice.pod/public/default/",
                "private_storage_root": "https://alice.pod/private/default/",
            }
        },
    )

    slug: str = Field(default="default", min_length=1)
    concept_prefix: str = Field(..., min_length=1, description="Prefix of concept URIs")
    tag_prefix: str = Field(..., min_length=1, description="Prefix of tag URIs")
    public_storage_root: str = Field(..., min_length=1)
    private_storage_root: str = Field(..., min_length=1)

    @field_validator("public_storage_root", "private_storage_root")
    @classmethod
    def _container_uri(cls, value: str) -> str:
        if not value.endswith("/"):
            raise ValueError("Storage roots must be container URIs ending with '/'")
        return value

    @model_validator(mode="after")
    def _check_namespaces(self) -> "Workspace":
        if self.concept_prefix == self.tag_prefix:
            raise ValueError("Concept and tag prefixes must differ")
        public, private = self.public_storage_root, self.private_storage_root
        if public.startswith(private) or private.startswith(public):
            raise ValueError("Public and private storage roots must not contain each other")
        return self

    def storage_root(self, scope: Scope) -> str:
        if scope is Scope.PUBLIC:
            return self.public_storage_root
        return self.private_storage_root

    def notes_container(self, scope: Scope) -> str:
        return f"{self.storage_root(scope)}{NOTES_CONTAINER}"

    def images_container(self, scope: Scope) -> str:
        return f"{self.storage_root(scope)}{IMAGES_CONTAINER}"

    def index_uri(self, scope: Scope) -> str:
        return f"{self.storage_root(scope)}{INDEX_RESOURCE}"

    def scope_of(self, uri: str | None) -> Scope | None:
        """Return the scope whose storage root contains ``uri``, if any."""
        if not uri:
            return None
        for scope in Scope:
            if uri.startswith(self.storage_root(scope)):
                return scope
        return None


__all__ = ["Scope", "Workspace", "NOTES_CONTAINER", "IMAGES_CONTAINER", "INDEX_RESOURCE"]
