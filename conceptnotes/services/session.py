"""Editing session of one note: load, debounced save, links, privacy."""

from __future__ import annotations

import logging
import time
from typing import List, Mapping, Optional, Tuple

from ..models.concept import Concept, ConceptSummary
from ..models.note import EMPTY_BODY, DocumentValue, Note, NoteStatus, NoteView
from ..models.workspace import Scope, Workspace
from .codec import concept_uri, default_note_uri, encode_name
from .concepts import build_concept, usable_names
from .extractor import extract_references
from .graph_view import CombinedGraphView
from .index_store import ConceptIndexStore
from .migration import MigrationResult, PrivacyMigrationCoordinator
from .notes import NoteNotFound, NoteService
from .save_controller import DEFAULT_SAVE_DELAY, DebouncedSaveController, Scheduler
from .storage import ResourceNotFound, StorageError

logger = logging.getLogger(__name__)


class SaveInProgress(Exception):
    """A save for this note is in flight."""

    def __init__(self, name: str, action: str) -> None:
        super().__init__(f"Cannot {action} {name!r} while it is being saved")
        self.name = name
        self.action = action


class NoteSession:
    """State exposed to an editor for one open note."""

    def __init__(
        self,
        name: str,
        *,
        workspace: Workspace,
        notes: NoteService,
        stores: Mapping[Scope, ConceptIndexStore],
        graph: CombinedGraphView,
        migrations: PrivacyMigrationCoordinator,
        default_scope: Scope = Scope.PRIVATE,
        delay: float = DEFAULT_SAVE_DELAY,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        encode_name(name)
        self.name = name
        self.workspace = workspace
        self.notes = notes
        self.stores = dict(stores)
        self.graph = graph
        self.migrations = migrations
        self.default_scope = default_scope
        self.controller = DebouncedSaveController(
            self._persist, delay=delay, scheduler=scheduler, name=name
        )
        self._note: Optional[Note] = None

    @property
    def uri(self) -> str:
        return concept_uri(self.workspace, self.name)

    @property
    def concept(self) -> Optional[Concept]:
        located = self.graph.locate(self.name)
        return located[1] if located else None

    @property
    def scope(self) -> Scope:
        return self._location()[0]

    @property
    def stored_at(self) -> str:
        scope, concept = self._location()
        if concept is not None:
            return concept.stored_at
        return default_note_uri(self.workspace, self.name, scope)

    @property
    def note(self) -> Optional[Note]:
        return self._note

    @property
    def current_value(self) -> Optional[DocumentValue]:
        return self.controller.current_value

    @property
    def saved(self) -> bool:
        return self.controller.saved

    @property
    def saving(self) -> bool:
        return self.controller.saving

    def _location(self) -> Tuple[Scope, Optional[Concept]]:
        located = self.graph.locate(self.name)
        if located is None:
            return self.default_scope, None
        return located

    async def open(self) -> "NoteSession":
        """Load the indices and the note body (an empty body if none is stored)."""
        for store in self.stores.values():
            await store.ensure_loaded()
        uri = self.stored_at
        try:
            self._note = await self.notes.read_note(uri)
        except NoteNotFound:
            self._note = None
            self.controller.load(EMPTY_BODY, persisted=False)
        else:
            self.controller.load(self._note.body, persisted=True)
        logger.info(
            "Note opened",
            extra={"note": self.name, "uri": uri, "exists": self._note is not None},
        )
        return self

    def on_change(self, value: DocumentValue) -> None:
        self.controller.on_change(value)

    async def save(self) -> bool:
        if self.controller.saving:
            raise SaveInProgress(self.name, "save")
        return await self.controller.save()

    async def _persist(self, value: DocumentValue) -> None:
        await self._write(value, self._note)

    async def _write(self, value: DocumentValue, base: Optional[Note]) -> None:
        """Write the note body, then the recomputed concept record."""
        start_time = time.time()
        scope, existing = self._location()
        stored_at = existing.stored_at if existing else default_note_uri(self.workspace, self.name, scope)
        note = (base or Note(uri=stored_at)).model_copy(update={"uri": stored_at, "body": value})
        await self.notes.write_note(note, concept_name=self.name)
        self._note = note

        references = extract_references(value)
        concept = build_concept(
            self.name,
            self.workspace,
            scope,
            existing=existing,
            ref_names=usable_names(references.concepts, source=self.name),
            tag_names=usable_names(references.tags, source=self.name, kind="tag"),
            storage_uri=stored_at,
        )
        await self.stores[scope].upsert(concept)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Note and index saved",
            extra={
                "note": self.name,
                "scope": scope.value,
                "refs_count": len(concept.refs),
                "tags_count": len(concept.tags),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )

    def backlinks(self) -> List[ConceptSummary]:
        return self.graph.backlink_summaries(self.name)

    def links(self) -> List[ConceptSummary]:
        return self.graph.links_of(self.name)

    async def make_private(self) -> MigrationResult:
        return await self.migrate(Scope.PRIVATE)

    async def make_public(self) -> MigrationResult:
        return await self.migrate(Scope.PUBLIC)

    async def migrate(self, target: Scope) -> MigrationResult:
        if self.controller.saving:
            raise SaveInProgress(self.name, f"make {target.value}")
        async with self.controller.exclusive():
            result = await self.migrations.migrate(self.name, target)
            if self._note is not None:
                self._note = self._note.model_copy(update={"uri": result.stored_at})
        return result

    async def set_cover_image(self, image_uri: Optional[str]) -> Note:
        """
        Point the note's cover at ``image_uri`` and persist the note resource.

        A stored note keeps its stored body; unsaved edits follow in the next
        save. A note that was never stored is saved in full (note and index).
        """
        if self.controller.saving:
            raise SaveInProgress(self.name, "update the cover of")
        async with self.controller.exclusive():
            if self._note is None:
                value = self.current_value or EMPTY_BODY
                await self._write(value, Note(uri=self.stored_at, cover_image=image_uri))
                self.controller.mark_persisted(value)
            else:
                note = self._note.model_copy(update={"cover_image": image_uri})
                await self.notes.write_note(note, concept_name=self.name)
                self._note = note
        return self._note

    async def delete(self) -> None:
        """Remove the concept from its index, then delete the note resource."""
        if self.controller.saving:
            raise SaveInProgress(self.name, "delete")
        async with self.controller.exclusive():
            scope, concept = self._location()
            uri = concept.stored_at if concept else default_note_uri(self.workspace, self.name, scope)
            if concept is not None:
                await self.stores[scope].remove(concept)
            try:
                await self.notes.delete_note(uri)
            except ResourceNotFound:
                logger.info("Deleted note had no stored resource", extra={"note": self.name, "uri": uri})
            except StorageError as exc:
                logger.warning(
                    "Failed to delete note resource",
                    extra={"note": self.name, "uri": uri, "error": exc.message},
                )
            self._note = None
            self.controller.load(EMPTY_BODY, persisted=False)

    def status(self) -> NoteStatus:
        error = self.controller.last_error
        return NoteStatus(
            name=self.name,
            state=self.controller.state.value,
            saved=self.saved,
            saving=self.saving,
            last_error=str(error) if error else None,
        )

    def view(self) -> NoteView:
        status = self.status()
        return NoteView(
            **status.model_dump(),
            scope=self.scope,
            stored_at=self.stored_at,
            value=self.current_value,
            cover_image=self._note.cover_image if self._note else None,
        )


__all__ = ["NoteSession", "SaveInProgress"]
