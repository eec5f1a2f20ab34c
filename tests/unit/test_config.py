from pathlib import Path

import pytest
from pydantic import ValidationError

from conceptnotes.models.workspace import Scope, Workspace
from conceptnotes.services import config as config_module

ENV_KEYS = [
    "STORAGE_BACKEND",
    "STORAGE_BASE_URI",
    "STORAGE_TOKEN",
    "WORKSPACE_SLUG",
    "CONCEPT_PREFIX",
    "TAG_PREFIX",
    "PUBLIC_STORAGE_ROOT",
    "PRIVATE_STORAGE_ROOT",
    "SAVE_DEBOUNCE_SECONDS",
    "DEFAULT_SCOPE",
]


@pytest.fixture(autouse=True)
def restore_config_cache(monkeypatch):
    """
    Ensure configuration cache is cleared between tests.
    """
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    config_module.reload_config()
    yield
    monkeypatch.undo()
    config_module.reload_config()


def test_defaults_derive_workspace_from_base_uri(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STORAGE_BASE_PATH", str(tmp_path))
    monkeypatch.setenv("STORAGE_BASE_URI", "https://alice.pod")

    cfg = config_module.reload_config()
    workspace = cfg.workspace()

    assert cfg.storage_base_path == tmp_path.resolve()
    assert cfg.storage_base_uri == "https://alice.pod/"
    assert cfg.save_debounce_seconds == 1.5
    assert cfg.default_scope is Scope.PRIVATE
    assert workspace.concept_prefix == "https://alice.pod/default/concepts#"
    assert workspace.tag_prefix == "https://alice.pod/default/tags#"
    assert workspace.index_uri(Scope.PUBLIC) == "https://alice.pod/public/default/concepts.json"


def test_explicit_prefixes_override_defaults(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STORAGE_BASE_PATH", str(tmp_path))
    monkeypatch.setenv("WORKSPACE_SLUG", "research")
    monkeypatch.setenv("CONCEPT_PREFIX", "https://vocab.example/c#")
    monkeypatch.setenv("DEFAULT_SCOPE", "PUBLIC")
    monkeypatch.setenv("SAVE_DEBOUNCE_SECONDS", "0.25")

    cfg = config_module.reload_config()
    workspace = cfg.workspace()

    assert workspace.slug == "research"
    assert workspace.concept_prefix == "https://vocab.example/c#"
    assert workspace.private_storage_root == "local://pod/private/research/"
    assert cfg.default_scope is Scope.PUBLIC
    assert cfg.save_debounce_seconds == 0.25


def test_rejects_unknown_backend(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STORAGE_BASE_PATH", str(tmp_path))
    monkeypatch.setenv("STORAGE_BACKEND", "ftp")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_workspace_rejects_overlapping_roots() -> None:
    with pytest.raises(ValidationError):
        Workspace(
            concept_prefix="https://a/c#",
            tag_prefix="https://a/t#",
            public_storage_root="https://a/",
            private_storage_root="https://a/private/",
        )


def test_workspace_rejects_shared_prefix() -> None:
    with pytest.raises(ValidationError):
        Workspace(
            concept_prefix="https://a/x#",
            tag_prefix="https://a/x#",
            public_storage_root="https://a/public/",
            private_storage_root="https://a/private/",
        )
