"""Debounced, single-flight persistence of an edited note."""

from __future__ import annotations

import abc
import asyncio
from contextlib import asynccontextmanager
from enum import Enum
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from ..models.note import EMPTY_BODY, DocumentValue
from .notes import serialize_body

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DELAY = 1.5

SaveFunction = Callable[[DocumentValue], Awaitable[None]]


class SaveState(str, Enum):
    IDLE = "idle"
    PENDING_SAVE = "pending_save"
    SAVING = "saving"


class TimerHandle(abc.ABC):
    @abc.abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running if it has not run yet."""


class Scheduler(abc.ABC):
    """Source of quiet-period timers."""

    @abc.abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""


class AsyncioScheduler(Scheduler):
    """Timers on the running event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        # asyncio.TimerHandle already provides cancel().
        return asyncio.get_running_loop().call_later(delay, callback)  # type: ignore[return-value]


class DebouncedSaveController:
    """
    Coalesce edits into one save after a quiet period, one save at a time.

    States: ``IDLE`` -> ``PENDING_SAVE`` on any edit (the timer is re-armed on
    every edit), ``PENDING_SAVE`` -> ``SAVING`` when the timer fires and the
    value differs from what was last persisted, ``SAVING`` -> ``IDLE`` (or
    back to ``PENDING_SAVE`` when edits arrived meanwhile) once the write
    settles. Only the latest value is ever written; a save that would overlap
    the one in flight is not started.
    """

    def __init__(
        self,
        save_fn: SaveFunction,
        *,
        delay: float = DEFAULT_SAVE_DELAY,
        scheduler: Optional[Scheduler] = None,
        name: str = "",
    ) -> None:
        self._save_fn = save_fn
        self.delay = delay
        self.scheduler = scheduler or AsyncioScheduler()
        self.name = name
        self._value: Optional[DocumentValue] = None
        self._persisted: Optional[str] = None
        self._edited = False
        self._state = SaveState.IDLE
        self._timer: Optional[TimerHandle] = None
        self._missed_tick = False
        self._task: Optional[asyncio.Future] = None
        self.last_error: Optional[Exception] = None

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def current_value(self) -> Optional[DocumentValue]:
        return self._value

    @property
    def saving(self) -> bool:
        return self._state is SaveState.SAVING

    @property
    def saved(self) -> bool:
        """True if nothing was edited or the current value matches the persisted body."""
        if not self._edited or self._value is None:
            return True
        return serialize_body(self._value) == self._persisted

    def load(self, value: DocumentValue, *, persisted: bool) -> None:
        """Reset to ``value`` as read from storage (``persisted=False`` for a new note)."""
        self._cancel_timer()
        self._value = value
        self._persisted = serialize_body(value) if persisted else None
        self._edited = False
        if self._state is not SaveState.SAVING:
            self._state = SaveState.IDLE

    def on_change(self, value: DocumentValue) -> None:
        """Record an edit and restart the quiet period."""
        self._value = value
        self._edited = True
        if self._state is not SaveState.SAVING:
            self._state = SaveState.PENDING_SAVE
        self._arm()

    async def save(self) -> bool:
        """
        Persist the current value immediately.

        Returns False without writing when a save is already in flight or
        nothing has been loaded; otherwise whether the write succeeded.
        """
        if self._state is SaveState.SAVING:
            logger.info("Manual save skipped: save in flight", extra={"note": self.name})
            return False
        if self._value is None:
            return False
        self._cancel_timer()
        return await self._start(self._value)

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """
        Hold the save slot while another operation writes the stored note.

        The controller reports ``SAVING`` for the duration; timer ticks and
        manual saves are deferred, and an unsaved value is picked up by a
        fresh quiet period once the block exits. Raises RuntimeError if a
        save is already in flight.
        """
        if self._state is SaveState.SAVING:
            raise RuntimeError(f"Save in flight for {self.name!r}")
        if self._timer is not None:
            self._cancel_timer()
            self._missed_tick = True
        self._state = SaveState.SAVING
        try:
            yield
        finally:
            self._settle()

    def mark_persisted(self, value: DocumentValue) -> None:
        """Record ``value`` as written by an operation outside the save cycle."""
        self._persisted = serialize_body(value)

    async def wait_for_save(self) -> None:
        """Wait until the save in flight, if any, has settled."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)

    def close(self) -> None:
        """Drop the pending timer; a save in flight still completes."""
        self._cancel_timer()
        if self._state is SaveState.PENDING_SAVE:
            self._state = SaveState.IDLE

    def _arm(self) -> None:
        self._cancel_timer()
        self._timer = self.scheduler.call_later(self.delay, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _needs_save(self, value: Optional[DocumentValue]) -> bool:
        if value is None:
            return False
        if self._persisted is None and value == EMPTY_BODY:
            return False
        return serialize_body(value) != self._persisted

    def _on_timer(self) -> None:
        self._timer = None
        if self._state is SaveState.SAVING:
            self._missed_tick = True
            return
        if self._state is not SaveState.PENDING_SAVE:
            return
        if not self._needs_save(self._value):
            self._state = SaveState.IDLE
            return
        self._start(self._value)

    def _start(self, value: DocumentValue) -> asyncio.Future:
        self._state = SaveState.SAVING
        self._task = asyncio.ensure_future(self._run(value))
        return self._task

    async def _run(self, value: DocumentValue) -> bool:
        succeeded = False
        try:
            await self._save_fn(value)
        except Exception as exc:
            self.last_error = exc
            logger.exception("Note save failed", extra={"note": self.name})
        else:
            self._persisted = serialize_body(value)
            self.last_error = None
            succeeded = True
            logger.info("Note saved", extra={"note": self.name})
        finally:
            self._settle()
        return succeeded

    def _settle(self) -> None:
        missed, self._missed_tick = self._missed_tick, False
        if self._timer is not None:
            self._state = SaveState.PENDING_SAVE
        elif missed and self._needs_save(self._value):
            self._state = SaveState.PENDING_SAVE
            self._arm()
        else:
            self._state = SaveState.IDLE


__all__ = [
    "DebouncedSaveController",
    "SaveState",
    "Scheduler",
    "AsyncioScheduler",
    "TimerHandle",
    "DEFAULT_SAVE_DELAY",
]
