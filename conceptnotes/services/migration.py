"""Move a concept and its note between the public and private scopes."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Mapping, Optional

from ..models.concept import Concept
from ..models.note import Note
from ..models.workspace import Scope
from .codec import default_note_uri
from .concepts import relocate_concept
from .index_store import ConceptIndexStore, IndexWriteFailed
from .notes import NoteService
from .storage import ResourceNotFound, StorageError

logger = logging.getLogger(__name__)


class ConceptNotFound(Exception):
    """Neither scope indexes the concept."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Concept not found: {name}")
        self.name = name


class PartialMigration(Exception):
    """
    The destination note was written but the indices were not both updated.

    The source note and its index entry are intact; the concept may be
    indexed in both scopes until a later migration attempt succeeds.
    """

    def __init__(self, name: str, step: str, message: str) -> None:
        super().__init__(message)
        self.name = name
        self.step = step
        self.message = message


class StaleDelete(Exception):
    """The source note was already gone when the migration tried to delete it."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"Source note already deleted: {uri}")
        self.uri = uri


@dataclass(frozen=True)
class MigrationResult:
    name: str
    source_scope: Scope
    target_scope: Scope
    concept: Concept
    source_deleted: bool
    notice: Optional[str] = None

    @property
    def stored_at(self) -> str:
        return self.concept.stored_at


class PrivacyMigrationCoordinator:
    """
    Orchestrates a scope change as five ordered steps.

    1. read the source note, 2. write it at the destination, 3. index the
    concept in the destination scope, 4. unindex it from the source scope,
    5. delete the source note. Step 5 only runs after 2-4 succeeded.
    """

    def __init__(self, notes: NoteService, stores: Mapping[Scope, ConceptIndexStore]) -> None:
        self.notes = notes
        self.stores = dict(stores)
        self.workspace = self.stores[Scope.PUBLIC].workspace

    async def make_private(self, name: str) -> MigrationResult:
        return await self.migrate(name, Scope.PRIVATE)

    async def make_public(self, name: str) -> MigrationResult:
        return await self.migrate(name, Scope.PUBLIC)

    async def migrate(self, name: str, target: Scope) -> MigrationResult:
        start_time = time.time()
        source = target.other
        source_store, target_store = self.stores[source], self.stores[target]
        await source_store.ensure_loaded()
        await target_store.ensure_loaded()

        concept = source_store.get(name)
        if concept is None:
            already_moved = target_store.get(name)
            if already_moved is None:
                raise ConceptNotFound(name)
            # An earlier attempt finished the index updates; retry the cleanup.
            deleted, notice = await self._delete_source(
                name, default_note_uri(self.workspace, name, source)
            )
            return MigrationResult(name, source, target, already_moved, deleted, notice)

        destination_uri = default_note_uri(self.workspace, name, target)
        extra = {"concept": name, "source": source.value, "target": target.value}
        logger.info("Migration started", extra={**extra, "destination": destination_uri})

        note = await self.notes.read_note(concept.stored_at)
        await self.notes.write_note(
            Note(uri=destination_uri, body=note.body, cover_image=note.cover_image),
            concept_name=name,
        )

        moved = relocate_concept(concept, destination_uri)
        try:
            await target_store.upsert(moved)
        except IndexWriteFailed as exc:
            logger.warning("Migration interrupted before indexing destination", extra=extra)
            raise PartialMigration(
                name,
                "index_destination",
                f"{name} was copied to {target.value} storage but could not be indexed there; "
                f"it is still {source.value}. Retry to finish the move.",
            ) from exc

        try:
            await source_store.remove(concept)
        except IndexWriteFailed as exc:
            logger.warning("Migration interrupted before unindexing source", extra=extra)
            raise PartialMigration(
                name,
                "unindex_source",
                f"{name} is now {target.value} but is still listed as {source.value}. "
                "Retry to finish the move.",
            ) from exc

        deleted, notice = await self._delete_source(name, concept.stored_at)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Migration complete",
            extra={**extra, "source_deleted": deleted, "duration_ms": f"{duration_ms:.2f}"},
        )
        return MigrationResult(name, source, target, moved, deleted, notice)

    async def _delete_source(self, name: str, uri: str) -> tuple[bool, Optional[str]]:
        try:
            await self._delete(uri)
        except StaleDelete as exc:
            logger.info(str(exc), extra={"concept": name, "uri": uri})
            return True, None
        except StorageError as exc:
            logger.warning(
                "Failed to delete migrated source note",
                extra={"concept": name, "uri": uri, "error": exc.message},
            )
            return False, f"The previous copy of {name} at {uri} could not be deleted."
        return True, None

    async def _delete(self, uri: str) -> None:
        try:
            await self.notes.delete_note(uri)
        except ResourceNotFound as exc:
            raise StaleDelete(uri) from exc


__all__ = [
    "PrivacyMigrationCoordinator",
    "MigrationResult",
    "ConceptNotFound",
    "PartialMigration",
    "StaleDelete",
]
