"""Per-scope concept index persisted as a single resource."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from types import MappingProxyType
import time
from typing import Dict, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..models.concept import Concept
from ..models.index import ConceptIndexDocument
from ..models.workspace import Scope, Workspace
from .codec import concept_uri
from .storage import RemoteStorage, ResourceNotFound, StorageError

logger = logging.getLogger(__name__)

INDEX_CONTENT_TYPE = "application/json"


class IndexWriteFailed(Exception):
    """Persisting the index resource was rejected or the storage was unreachable."""

    def __init__(self, uri: str, message: str) -> None:
        super().__init__(message)
        self.uri = uri
        self.message = message


class IndexLoadFailed(Exception):
    """The index resource could not be read or parsed."""

    def __init__(self, uri: str, message: str) -> None:
        super().__init__(message)
        self.uri = uri
        self.message = message


class ScopeMismatch(ValueError):
    """A concept's note location lies outside the index's scope."""


@dataclass(frozen=True)
class IndexSnapshot:
    """Immutable view of an index; writes produce a new snapshot."""

    concepts: Mapping[str, Concept] = field(default_factory=lambda: MappingProxyType({}))
    version: int = 0

    def get(self, uri: str) -> Optional[Concept]:
        return self.concepts.get(uri)

    def all(self) -> Tuple[Concept, ...]:
        return tuple(self.concepts.values())

    def __len__(self) -> int:
        return len(self.concepts)

    def __contains__(self, uri: object) -> bool:
        return uri in self.concepts

    def with_concept(self, concept: Concept) -> "IndexSnapshot":
        updated: Dict[str, Concept] = dict(self.concepts)
        updated[concept.uri] = concept
        return IndexSnapshot(MappingProxyType(updated), self.version + 1)

    def without(self, uri: str) -> "IndexSnapshot":
        updated = {key: value for key, value in self.concepts.items() if key != uri}
        return IndexSnapshot(MappingProxyType(updated), self.version + 1)

    @classmethod
    def from_concepts(cls, concepts, version: int = 0) -> "IndexSnapshot":
        return cls(MappingProxyType({concept.uri: concept for concept in concepts}), version)


EMPTY_SNAPSHOT = IndexSnapshot()


class ConceptIndexStore:
    """Collection of concept records for one ``(workspace, scope)`` pair."""

    def __init__(self, storage: RemoteStorage, workspace: Workspace, scope: Scope) -> None:
        self.storage = storage
        self.workspace = workspace
        self.scope = scope
        self.uri = workspace.index_uri(scope)
        self._snapshot: Optional[IndexSnapshot] = None
        self._write_lock = asyncio.Lock()

    @property
    def snapshot(self) -> Optional[IndexSnapshot]:
        """Last loaded or written snapshot; ``None`` until :meth:`load` runs."""
        return self._snapshot

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def _current(self) -> IndexSnapshot:
        return self._snapshot or EMPTY_SNAPSHOT

    async def load(self) -> IndexSnapshot:
        """Read the index resource; a missing resource is an empty index."""
        try:
            raw = await self.storage.read_resource(self.uri)
        except ResourceNotFound:
            self._snapshot = EMPTY_SNAPSHOT
            return self._snapshot
        except StorageError as exc:
            raise IndexLoadFailed(self.uri, f"Failed to read index {self.uri}: {exc.message}") from exc

        try:
            document = ConceptIndexDocument.model_validate_json(raw)
        except ValidationError as exc:
            raise IndexLoadFailed(self.uri, f"Index {self.uri} is malformed: {exc}") from exc

        self._snapshot = IndexSnapshot.from_concepts(document.concepts)
        logger.info(
            "Concept index loaded",
            extra={"scope": self.scope.value, "uri": self.uri, "concept_count": len(self._snapshot)},
        )
        return self._snapshot

    async def ensure_loaded(self) -> IndexSnapshot:
        if self._snapshot is None:
            return await self.load()
        return self._snapshot

    def get(self, name: str) -> Optional[Concept]:
        return self._current().get(concept_uri(self.workspace, name))

    def get_by_uri(self, uri: str) -> Optional[Concept]:
        return self._current().get(uri)

    def all(self) -> Tuple[Concept, ...]:
        return self._current().all()

    async def upsert(self, concept: Concept) -> IndexSnapshot:
        """Replace any record with the same identity and persist the index."""
        stored_scope = self.workspace.scope_of(concept.stored_at)
        if stored_scope is not self.scope:
            raise ScopeMismatch(
                f"Concept {concept.name!r} is stored at {concept.stored_at}, "
                f"outside the {self.scope.value} storage root"
            )
        async with self._write_lock:
            snapshot = self._current().with_concept(concept)
            await self._persist(snapshot)
        logger.info(
            "Concept indexed",
            extra={"scope": self.scope.value, "concept": concept.name, "stored_at": concept.stored_at},
        )
        return snapshot

    async def remove(self, concept: Concept) -> IndexSnapshot:
        """Drop the record with ``concept``'s identity and persist the index."""
        async with self._write_lock:
            current = self._current()
            if concept.uri not in current:
                return current
            snapshot = current.without(concept.uri)
            await self._persist(snapshot)
        logger.info("Concept removed from index", extra={"scope": self.scope.value, "concept": concept.name})
        return snapshot

    async def replace_all(self, snapshot: IndexSnapshot) -> IndexSnapshot:
        """Persist ``snapshot`` as the whole index (used by rebuilds)."""
        async with self._write_lock:
            snapshot = IndexSnapshot(snapshot.concepts, self._current().version + 1)
            await self._persist(snapshot)
        return snapshot

    async def _persist(self, snapshot: IndexSnapshot) -> None:
        start_time = time.time()
        document = ConceptIndexDocument(
            concepts=sorted(snapshot.all(), key=lambda concept: concept.uri)
        )
        try:
            await self.storage.write_resource(
                self.uri, document.model_dump_json(indent=2), content_type=INDEX_CONTENT_TYPE
            )
        except StorageError as exc:
            logger.warning(
                "Concept index write failed",
                extra={"scope": self.scope.value, "uri": self.uri, "error": exc.message},
            )
            raise IndexWriteFailed(self.uri, f"Failed to write index {self.uri}: {exc.message}") from exc
        self._snapshot = snapshot
        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            "Concept index written",
            extra={
                "scope": self.scope.value,
                "version": snapshot.version,
                "concept_count": len(snapshot),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )


__all__ = [
    "ConceptIndexStore",
    "IndexSnapshot",
    "EMPTY_SNAPSHOT",
    "IndexWriteFailed",
    "IndexLoadFailed",
    "ScopeMismatch",
]
