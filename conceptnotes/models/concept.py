"""Concept and tag models."""

from __future__ import annotations

from datetime import datetime
from typing import FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Concept(BaseModel):
    """Graph-visible metadata of one note."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "Idea",
                "id": "Idea",
                "uri": "https://alice.pod/default/concepts#Idea",
                "refs": ["https://alice.pod/default/concepts#Other%20Idea"],
                "tags": ["https://alice.pod/default/tags#draft"],
                "stored_at": "https://alice.pod/private/default/notes/Idea",
                "modified": "2025-01-15T14:30:00Z",
            }
        },
    )

    name: str = Field(..., min_length=1, description="Human-readable name")
    id: str = Field(..., min_length=1, description="URL-safe identifier")
    uri: str = Field(..., description="Concept URI (prefix + id)")
    refs: FrozenSet[str] = Field(default_factory=frozenset, description="Referenced concept URIs")
    tags: FrozenSet[str] = Field(default_factory=frozenset, description="Referenced tag URIs")
    stored_at: str = Field(..., description="URI of the note resource")
    modified: datetime = Field(..., description="Last index write")

    @field_serializer("refs", "tags")
    def _sorted(self, value: FrozenSet[str]) -> List[str]:
        return sorted(value)


class Tag(BaseModel):
    """Reference-only label."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)
    uri: str


class ConceptSummary(BaseModel):
    """Lightweight link target used in listings."""

    name: str
    uri: str
    scope: str


__all__ = ["Concept", "Tag", "ConceptSummary"]
