import asyncio

import pytest

from conceptnotes.models.note import EMPTY_BODY
from conceptnotes.services.notes import NoteWriteFailed
from conceptnotes.services.save_controller import DebouncedSaveController, SaveState


def body(text: str) -> list:
    return [{"type": "paragraph", "children": [{"text": text}]}]


class RecordingSave:
    """Save function that records values and can be held open or made to fail."""

    def __init__(self) -> None:
        self.values = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.gate = None
        self.fail_with = None

    async def __call__(self, value) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.fail_with is not None:
                raise self.fail_with
            self.values.append(value)
        finally:
            self.in_flight -= 1


@pytest.fixture
def recorder() -> RecordingSave:
    return RecordingSave()


@pytest.fixture
def controller(recorder, scheduler) -> DebouncedSaveController:
    controller = DebouncedSaveController(recorder, delay=1.5, scheduler=scheduler, name="Idea")
    controller.load(EMPTY_BODY, persisted=False)
    return controller


@pytest.mark.asyncio
async def test_edits_within_quiet_period_coalesce(controller, recorder, scheduler) -> None:
    controller.on_change(body("v1"))
    controller.on_change(body("v2"))
    controller.on_change(body("v3"))

    assert controller.state is SaveState.PENDING_SAVE
    assert len(scheduler.pending) == 1
    assert scheduler.pending[0].delay == 1.5

    scheduler.fire()
    await controller.wait_for_save()

    assert recorder.values == [body("v3")]
    assert controller.state is SaveState.IDLE
    assert controller.saved


@pytest.mark.asyncio
async def test_untouched_empty_note_is_not_saved(controller, recorder, scheduler) -> None:
    assert controller.saved

    controller.on_change([{"children": [{"text": ""}]}])
    scheduler.fire()
    await controller.wait_for_save()

    assert recorder.values == []
    assert controller.state is SaveState.IDLE


@pytest.mark.asyncio
async def test_unchanged_persisted_value_is_not_saved_again(recorder, scheduler) -> None:
    controller = DebouncedSaveController(recorder, scheduler=scheduler)
    controller.load(body("hello"), persisted=True)

    controller.on_change(body("hello"))
    scheduler.fire()
    await controller.wait_for_save()

    assert recorder.values == []
    assert controller.saved


@pytest.mark.asyncio
async def test_saved_flag_tracks_last_successful_save(controller, scheduler) -> None:
    controller.on_change(body("v"))
    assert not controller.saved

    await controller.save()
    assert controller.saved

    controller.on_change(body("v'"))
    assert not controller.saved

    scheduler.fire()
    await controller.wait_for_save()
    assert controller.saved


@pytest.mark.asyncio
async def test_at_most_one_save_in_flight(controller, recorder, scheduler) -> None:
    recorder.gate = asyncio.Event()
    controller.on_change(body("v1"))
    scheduler.fire()
    await asyncio.sleep(0)
    assert controller.saving

    controller.on_change(body("v2"))
    assert controller.state is SaveState.SAVING
    assert await controller.save() is False
    # The quiet period ends while the first save is still running.
    scheduler.fire()
    assert recorder.in_flight == 1

    recorder.gate.set()
    await controller.wait_for_save()
    assert controller.state is SaveState.PENDING_SAVE
    assert len(scheduler.pending) == 1

    scheduler.fire()
    await controller.wait_for_save()

    assert recorder.values == [body("v1"), body("v2")]
    assert recorder.max_in_flight == 1
    assert controller.saved


@pytest.mark.asyncio
async def test_edit_during_save_keeps_its_timer(controller, recorder, scheduler) -> None:
    recorder.gate = asyncio.Event()
    controller.on_change(body("v1"))
    scheduler.fire()
    await asyncio.sleep(0)

    controller.on_change(body("v2"))
    recorder.gate.set()
    await controller.wait_for_save()

    assert controller.state is SaveState.PENDING_SAVE
    scheduler.fire()
    await controller.wait_for_save()
    assert recorder.values[-1] == body("v2")


@pytest.mark.asyncio
async def test_failed_save_keeps_value_for_retry(controller, recorder, scheduler) -> None:
    recorder.fail_with = NoteWriteFailed("uri", "storage unreachable")
    controller.on_change(body("v1"))
    scheduler.fire()
    await controller.wait_for_save()

    assert controller.state is SaveState.IDLE
    assert not controller.saved
    assert controller.current_value == body("v1")
    assert isinstance(controller.last_error, NoteWriteFailed)

    recorder.fail_with = None
    controller.on_change(body("v2"))
    scheduler.fire()
    await controller.wait_for_save()

    assert recorder.values == [body("v2")]
    assert controller.last_error is None


@pytest.mark.asyncio
async def test_manual_save_cancels_pending_timer(controller, recorder, scheduler) -> None:
    controller.on_change(body("v1"))

    assert await controller.save() is True

    assert scheduler.pending == []
    assert recorder.values == [body("v1")]


@pytest.mark.asyncio
async def test_close_drops_pending_edit(controller, recorder, scheduler) -> None:
    controller.on_change(body("v1"))

    controller.close()

    assert scheduler.pending == []
    assert controller.state is SaveState.IDLE
    assert recorder.values == []


@pytest.mark.asyncio
async def test_exclusive_defers_ticks_until_released(controller, recorder, scheduler) -> None:
    controller.on_change(body("v1"))

    async with controller.exclusive():
        assert controller.state is SaveState.SAVING
        assert scheduler.pending == []
        assert await controller.save() is False
        controller.on_change(body("v2"))
        scheduler.fire()
        assert recorder.values == []

    assert controller.state is SaveState.PENDING_SAVE
    assert len(scheduler.pending) == 1

    scheduler.fire()
    await controller.wait_for_save()
    assert recorder.values == [body("v2")]
    assert controller.saved


@pytest.mark.asyncio
async def test_exclusive_rearms_timer_cancelled_on_entry(controller, recorder, scheduler) -> None:
    controller.on_change(body("v1"))

    async with controller.exclusive():
        pass

    assert controller.state is SaveState.PENDING_SAVE
    assert len(scheduler.pending) == 1


@pytest.mark.asyncio
async def test_exclusive_settles_idle_when_value_was_persisted(controller, recorder, scheduler) -> None:
    controller.on_change(body("v1"))

    async with controller.exclusive():
        controller.mark_persisted(body("v1"))

    assert controller.state is SaveState.IDLE
    assert scheduler.pending == []
    assert controller.saved


@pytest.mark.asyncio
async def test_exclusive_rejected_while_save_in_flight(controller, recorder, scheduler) -> None:
    recorder.gate = asyncio.Event()
    controller.on_change(body("v1"))
    pending = asyncio.ensure_future(controller.save())
    await asyncio.sleep(0)

    with pytest.raises(RuntimeError):
        async with controller.exclusive():
            pass

    recorder.gate.set()
    assert await pending is True
