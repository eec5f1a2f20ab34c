"""Note resource persistence."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import frontmatter

from ..models.note import DocumentValue, Note
from .storage import RemoteStorage, ResourceNotFound, StorageError

logger = logging.getLogger(__name__)

NOTE_CONTENT_TYPE = "text/markdown"
MAX_NOTE_BYTES = 1_048_576


class NoteNotFound(Exception):
    """The note resource does not exist."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"Note not found: {uri}")
        self.uri = uri


class NoteWriteFailed(Exception):
    """Writing a note resource was rejected or the storage was unreachable."""

    def __init__(self, uri: str, message: str) -> None:
        super().__init__(message)
        self.uri = uri
        self.message = message


def serialize_body(value: DocumentValue | None) -> str:
    """Canonical serialization used to compare edited and persisted bodies."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def dump_note(note: Note, *, concept_name: Optional[str] = None) -> str:
    """Render a note as front matter plus a JSON document body."""
    metadata: Dict[str, Any] = {}
    if concept_name:
        metadata["concept"] = concept_name
    if note.cover_image:
        metadata["cover_image"] = note.cover_image
    post = frontmatter.Post(serialize_body(note.body), **metadata)
    return frontmatter.dumps(post)


def load_note(uri: str, text: str) -> Note:
    post = frontmatter.loads(text)
    content = (post.content or "").strip()
    try:
        body = json.loads(content) if content else []
    except json.JSONDecodeError as exc:
        raise ValueError(f"Note body is not a JSON document tree: {uri}") from exc
    if not isinstance(body, list):
        raise ValueError(f"Note body must be a list of nodes: {uri}")
    cover_image = post.metadata.get("cover_image")
    return Note(
        uri=uri,
        body=body,
        cover_image=cover_image if isinstance(cover_image, str) else None,
    )


class NoteService:
    """Read, write and delete note resources on remote storage."""

    def __init__(self, storage: RemoteStorage) -> None:
        self.storage = storage

    async def read_note(self, uri: str) -> Note:
        """Raises NoteNotFound if the resource is absent."""
        try:
            raw = await self.storage.read_resource(uri)
        except ResourceNotFound as exc:
            raise NoteNotFound(uri) from exc
        return load_note(uri, raw.decode("utf-8"))

    async def write_note(self, note: Note, *, concept_name: Optional[str] = None) -> Note:
        """Create or overwrite ``note`` at ``note.uri``."""
        text = dump_note(note, concept_name=concept_name)
        if len(text.encode("utf-8")) > MAX_NOTE_BYTES:
            raise NoteWriteFailed(note.uri, "Note exceeds 1 MiB limit")
        try:
            await self.storage.write_resource(note.uri, text, content_type=NOTE_CONTENT_TYPE)
        except StorageError as exc:
            raise NoteWriteFailed(note.uri, f"Failed to write note {note.uri}: {exc.message}") from exc
        logger.info("Note written", extra={"uri": note.uri, "concept": concept_name})
        return note

    async def delete_note(self, uri: str) -> None:
        """Raises ResourceNotFound if already gone, StorageError on other failures."""
        await self.storage.delete_resource(uri)
        logger.info("Note deleted", extra={"uri": uri})


__all__ = [
    "NoteService",
    "NoteNotFound",
    "NoteWriteFailed",
    "serialize_body",
    "dump_note",
    "load_note",
    "NOTE_CONTENT_TYPE",
]
