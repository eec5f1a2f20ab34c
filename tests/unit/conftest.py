from pathlib import Path
from typing import Callable, List

import pytest

from conceptnotes.models.workspace import Scope, Workspace
from conceptnotes.services.config import AppConfig
from conceptnotes.services.index_store import ConceptIndexStore
from conceptnotes.services.notes import NoteService
from conceptnotes.services.save_controller import Scheduler, TimerHandle
from conceptnotes.services.storage import LocalStorage

BASE_URI = "https://alice.pod/"


class FakeTimer(TimerHandle):
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler(Scheduler):
    """Timers that only run when a test calls :meth:`fire`."""

    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled and not timer.fired]

    def fire(self) -> int:
        due = self.pending
        for timer in due:
            timer.fired = True
            timer.callback()
        return len(due)


@pytest.fixture
def workspace() -> Workspace:
    return Workspace(
        slug="default",
        concept_prefix=f"{BASE_URI}default/concepts#",
        tag_prefix=f"{BASE_URI}default/tags#",
        public_storage_root=f"{BASE_URI}public/default/",
        private_storage_root=f"{BASE_URI}private/default/",
    )


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        storage_base_path=tmp_path / "pod",
        storage_base_uri=BASE_URI,
        save_debounce_seconds=1.5,
    )


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "pod", BASE_URI)


@pytest.fixture
def stores(storage: LocalStorage, workspace: Workspace) -> dict:
    return {scope: ConceptIndexStore(storage, workspace, scope) for scope in Scope}


@pytest.fixture
def note_service(storage: LocalStorage) -> NoteService:
    return NoteService(storage)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
