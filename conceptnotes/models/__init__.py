"""Pydantic models for data validation and serialization."""

from .concept import Concept, ConceptSummary, Tag
from .graph import GraphData, GraphLink, GraphNode
from .index import ConceptIndexDocument, IndexHealth, RebuildResponse, TagCount
from .note import (
    EMPTY_BODY,
    DocumentValue,
    MigrationResponse,
    Note,
    NoteStatus,
    NoteUpdate,
    NoteView,
    PrivacyUpdate,
)
from .workspace import Scope, Workspace

__all__ = [
    "Scope",
    "Workspace",
    "Concept",
    "ConceptSummary",
    "Tag",
    "ConceptIndexDocument",
    "IndexHealth",
    "RebuildResponse",
    "TagCount",
    "GraphData",
    "GraphLink",
    "GraphNode",
    "DocumentValue",
    "EMPTY_BODY",
    "Note",
    "NoteStatus",
    "NoteView",
    "NoteUpdate",
    "PrivacyUpdate",
    "MigrationResponse",
]
