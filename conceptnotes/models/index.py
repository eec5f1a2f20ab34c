"""Index and metadata models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .concept import Concept


class ConceptIndexDocument(BaseModel):
    """Persisted form of one scope's concept index."""

    concepts: List[Concept] = Field(default_factory=list)


class TagCount(BaseModel):
    """Tag with aggregated count."""

    tag_uri: str
    name: str
    count: int = Field(..., ge=0)


class IndexHealth(BaseModel):
    """Consistency metrics for both scopes of a workspace."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "workspace": "default",
                "public_count": 12,
                "private_count": 30,
                "duplicated": ["https://alice.pod/default/concepts#Idea"],
                "orphaned_notes": [],
                "checked_at": "2025-01-15T14:30:00Z",
            }
        }
    )

    workspace: str
    public_count: int = Field(..., ge=0)
    private_count: int = Field(..., ge=0)
    duplicated: List[str] = Field(
        default_factory=list, description="Concept URIs indexed in both scopes"
    )
    orphaned_notes: List[str] = Field(
        default_factory=list, description="Note resources no index entry points at"
    )
    checked_at: Optional[datetime] = None


class RebuildResponse(BaseModel):
    """Response from index rebuild."""

    status: str
    scope: str
    concepts_indexed: int


__all__ = ["ConceptIndexDocument", "TagCount", "IndexHealth", "RebuildResponse"]
