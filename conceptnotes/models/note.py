"""Note-related Pydantic models."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .workspace import Scope

DocumentValue = List[Any]

# Body of a note that has never been edited (one empty paragraph).
EMPTY_BODY: DocumentValue = [{"children": [{"text": ""}]}]


class Note(BaseModel):
    """Content resource of a concept."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "uri": "https://alice.pod/private/default/notes/Idea",
                "body": [
                    {
                        "type": "paragraph",
                        "children": [
                            {"text": "see "},
                            {"type": "concept", "name": "Other Idea", "children": [{"text": ""}]},
                        ],
                    }
                ],
                "cover_image": None,
            }
        }
    )

    uri: str = Field(..., description="Storage URI of the note resource")
    body: DocumentValue = Field(default_factory=list, description="Editor document tree")
    cover_image: Optional[str] = Field(None, description="Cover image URI")


class NoteStatus(BaseModel):
    """Save state of an open note."""

    name: str
    state: str
    saved: bool
    saving: bool
    last_error: Optional[str] = None


class NoteView(NoteStatus):
    """Open note as shown to an editor."""

    scope: Scope
    stored_at: str
    value: Optional[DocumentValue] = None
    cover_image: Optional[str] = None


class NoteUpdate(BaseModel):
    """Editor change notification payload."""

    value: DocumentValue


class PrivacyUpdate(BaseModel):
    """Request to move a note to another scope."""

    scope: Scope


class MigrationResponse(BaseModel):
    """Outcome of a privacy change."""

    name: str
    scope: Scope
    stored_at: str
    status: str = Field(..., description="'complete' or 'partial'")
    notice: Optional[str] = None


__all__ = [
    "DocumentValue",
    "EMPTY_BODY",
    "Note",
    "NoteStatus",
    "NoteView",
    "NoteUpdate",
    "PrivacyUpdate",
    "MigrationResponse",
]
