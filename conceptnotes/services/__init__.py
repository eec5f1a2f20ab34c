"""Service layer for the concept graph engine and its storage."""

from .codec import InvalidName, decode_id, default_note_uri, encode_name
from .concepts import build_concept
from .config import AppConfig, get_config, reload_config
from .extractor import ExtractedReferences, extract_references
from .graph_view import CombinedGraphView
from .images import ImageService, UnsupportedImage
from .index_store import ConceptIndexStore, IndexSnapshot, IndexWriteFailed, ScopeMismatch
from .migration import (
    ConceptNotFound,
    MigrationResult,
    PartialMigration,
    PrivacyMigrationCoordinator,
    StaleDelete,
)
from .notes import NoteNotFound, NoteService, NoteWriteFailed
from .save_controller import AsyncioScheduler, DebouncedSaveController, SaveState, Scheduler
from .session import NoteSession, SaveInProgress
from .storage import HttpStorage, LocalStorage, RemoteStorage, ResourceNotFound, StorageError
from .workspace import WorkspaceService, get_workspace_service, reset_workspace_service

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "InvalidName",
    "encode_name",
    "decode_id",
    "default_note_uri",
    "ExtractedReferences",
    "extract_references",
    "build_concept",
    "ConceptIndexStore",
    "IndexSnapshot",
    "IndexWriteFailed",
    "ScopeMismatch",
    "CombinedGraphView",
    "PrivacyMigrationCoordinator",
    "MigrationResult",
    "ConceptNotFound",
    "PartialMigration",
    "StaleDelete",
    "NoteService",
    "NoteNotFound",
    "NoteWriteFailed",
    "DebouncedSaveController",
    "SaveState",
    "Scheduler",
    "AsyncioScheduler",
    "NoteSession",
    "SaveInProgress",
    "ImageService",
    "UnsupportedImage",
    "RemoteStorage",
    "HttpStorage",
    "LocalStorage",
    "StorageError",
    "ResourceNotFound",
    "WorkspaceService",
    "get_workspace_service",
    "reset_workspace_service",
]
