"""Workspace wiring: storage, indices, graph view, sessions."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import time
from typing import Dict, List, Optional

from ..models.concept import Concept
from ..models.index import IndexHealth
from ..models.workspace import Scope
from .codec import InvalidName, decode_id
from .concepts import build_concept, usable_names
from .config import AppConfig, get_config
from .extractor import extract_references
from .graph_view import CombinedGraphView
from .images import ImageService
from .index_store import ConceptIndexStore, IndexSnapshot
from .migration import PrivacyMigrationCoordinator
from .notes import NoteNotFound, NoteService
from .save_controller import Scheduler
from .session import NoteSession
from .storage import RemoteStorage, create_storage

logger = logging.getLogger(__name__)


class WorkspaceService:
    """Owns the per-scope indices of one workspace and its open note sessions."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        storage: RemoteStorage | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.config = config or get_config()
        self.workspace = self.config.workspace()
        self.storage = storage or create_storage(self.config)
        self.scheduler = scheduler
        self.notes = NoteService(self.storage)
        self.images = ImageService(self.storage, self.workspace)
        self.stores: Dict[Scope, ConceptIndexStore] = {
            scope: ConceptIndexStore(self.storage, self.workspace, scope) for scope in Scope
        }
        self.graph = CombinedGraphView(self.stores[Scope.PUBLIC], self.stores[Scope.PRIVATE])
        self.migrations = PrivacyMigrationCoordinator(self.notes, self.stores)
        self._sessions: Dict[str, NoteSession] = {}

    async def load(self) -> None:
        for store in self.stores.values():
            await store.load()

    async def open_note(self, name: str) -> NoteSession:
        """Return the session of ``name``, opening it on first use."""
        session = self._sessions.get(name)
        if session is None:
            session = NoteSession(
                name,
                workspace=self.workspace,
                notes=self.notes,
                stores=self.stores,
                graph=self.graph,
                migrations=self.migrations,
                default_scope=self.config.default_scope,
                delay=self.config.save_debounce_seconds,
                scheduler=self.scheduler,
            )
            await session.open()
            self._sessions[name] = session
        return session

    def close_note(self, name: str) -> None:
        """Forget a session; a save in flight still completes."""
        session = self._sessions.pop(name, None)
        if session is not None:
            session.controller.close()

    async def close(self) -> None:
        for name in list(self._sessions):
            session = self._sessions[name]
            self.close_note(name)
            await session.controller.wait_for_save()

    async def list_concepts(self, scope: Optional[Scope] = None) -> List[Concept]:
        scopes = [scope] if scope else list(Scope)
        concepts: List[Concept] = []
        for item in scopes:
            await self.stores[item].ensure_loaded()
            concepts.extend(self.stores[item].all())
        return sorted(concepts, key=lambda concept: concept.name.lower())

    async def health(self) -> IndexHealth:
        """Report duplicated index entries and note resources nothing points at."""
        for store in self.stores.values():
            await store.ensure_loaded()
        orphaned: List[str] = []
        for scope, store in self.stores.items():
            referenced = {concept.stored_at for concept in store.all()}
            children = await self.storage.list_children(self.workspace.notes_container(scope))
            orphaned.extend(uri for uri in children if not uri.endswith("/") and uri not in referenced)
        return IndexHealth(
            workspace=self.workspace.slug,
            public_count=len(self.stores[Scope.PUBLIC].all()),
            private_count=len(self.stores[Scope.PRIVATE].all()),
            duplicated=self.graph.duplicated(),
            orphaned_notes=sorted(orphaned),
            checked_at=datetime.now(timezone.utc),
        )

    async def rebuild_index(self, scope: Scope) -> int:
        """Re-derive ``scope``'s index from the note resources stored in it."""
        start_time = time.time()
        container = self.workspace.notes_container(scope)
        concepts: List[Concept] = []
        for uri in await self.storage.list_children(container):
            if uri.endswith("/"):
                continue
            try:
                name = decode_id(uri[len(container):])
                note = await self.notes.read_note(uri)
                references = extract_references(note.body)
                concepts.append(
                    build_concept(
                        name,
                        self.workspace,
                        scope,
                        ref_names=usable_names(references.concepts, source=name),
                        tag_names=usable_names(references.tags, source=name, kind="tag"),
                        storage_uri=uri,
                    )
                )
            except (InvalidName, NoteNotFound, ValueError) as exc:
                logger.warning("Skipping note during rebuild", extra={"uri": uri, "error": str(exc)})

        await self.stores[scope].replace_all(IndexSnapshot.from_concepts(concepts))
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Concept index rebuilt",
            extra={
                "scope": scope.value,
                "concept_count": len(concepts),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return len(concepts)


# Singleton instance for dependency injection
_workspace_service: WorkspaceService | None = None


def get_workspace_service() -> WorkspaceService:
    """Get or create the workspace service singleton."""
    global _workspace_service
    if _workspace_service is None:
        _workspace_service = WorkspaceService()
    return _workspace_service


def reset_workspace_service() -> None:
    """Drop the singleton (useful for tests)."""
    global _workspace_service
    _workspace_service = None


__all__ = ["WorkspaceService", "get_workspace_service", "reset_workspace_service"]
