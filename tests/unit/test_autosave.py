"""Tests for the debounced autosave scheduler, driven by a virtual clock."""

import asyncio
import threading

from hotel_cms.core.autosave import AutosaveScheduler, SaveStatus
from tests.unit.fakes import FakeClock


class Recorder:
    """Save callback counting calls; returns ``result`` or raises ``error``."""

    def __init__(self, result: bool = True) -> None:
        self.calls = 0
        self.result = result
        self.error: Exception | None = None
        self.release: threading.Event | None = None

    def __call__(self) -> bool:
        self.calls += 1
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.result


def _scheduler(save: Recorder, clock: FakeClock) -> tuple[AutosaveScheduler, list[SaveStatus]]:
    scheduler = AutosaveScheduler(save, clock=clock, delay=2.0, settle_delay=3.0)
    statuses: list[SaveStatus] = []
    scheduler.subscribe(statuses.append)
    return scheduler, statuses


def test_rapid_edits_coalesce_into_one_save() -> None:
    async def scenario() -> None:
        save, clock = Recorder(), FakeClock()
        scheduler, statuses = _scheduler(save, clock)

        for _ in range(3):
            scheduler.mark_dirty()
            clock.advance(1.0)
        assert save.calls == 0
        assert scheduler.status == "dirty"

        clock.advance(1.0)
        await scheduler.wait_for_save()
        assert save.calls == 1
        assert statuses == ["dirty", "saving", "saved"]
        assert not scheduler.is_dirty

    asyncio.run(scenario())


def test_saved_settles_back_to_idle() -> None:
    async def scenario() -> None:
        save, clock = Recorder(), FakeClock()
        scheduler, statuses = _scheduler(save, clock)
        scheduler.mark_dirty()
        clock.advance(2.0)
        await scheduler.wait_for_save()
        clock.advance(3.0)
        assert statuses == ["dirty", "saving", "saved", "idle"]

    asyncio.run(scenario())


def test_edit_during_save_gets_its_own_save() -> None:
    async def scenario() -> None:
        save, clock = Recorder(), FakeClock()
        save.release = threading.Event()
        scheduler, statuses = _scheduler(save, clock)

        scheduler.mark_dirty()
        clock.advance(2.0)
        await asyncio.sleep(0)
        assert scheduler.status == "saving"

        scheduler.mark_dirty()
        clock.advance(2.0)
        assert scheduler.status == "saving"
        assert save.calls == 1

        save.release.set()
        await scheduler.wait_for_save()
        assert scheduler.status == "dirty"
        assert scheduler.is_dirty

        clock.advance(2.0)
        await scheduler.wait_for_save()
        assert save.calls == 2
        assert statuses == ["dirty", "saving", "saved", "dirty", "saving", "saved"]
        assert not scheduler.is_dirty

    asyncio.run(scenario())


def test_degraded_save_ends_in_error_and_next_edit_goes_dirty() -> None:
    async def scenario() -> None:
        save, clock = Recorder(result=False), FakeClock()
        scheduler, statuses = _scheduler(save, clock)
        scheduler.mark_dirty()
        clock.advance(2.0)
        await scheduler.wait_for_save()
        assert scheduler.status == "error"
        assert scheduler.is_dirty

        scheduler.mark_dirty()
        assert statuses == ["dirty", "saving", "error", "dirty"]

    asyncio.run(scenario())


def test_exception_in_save_is_recorded() -> None:
    async def scenario() -> None:
        save, clock = Recorder(), FakeClock()
        save.error = OSError("disk full")
        scheduler, _ = _scheduler(save, clock)
        scheduler.mark_dirty()
        clock.advance(2.0)
        await scheduler.wait_for_save()
        assert scheduler.status == "error"
        assert isinstance(scheduler.last_error, OSError)

    asyncio.run(scenario())


def test_save_now_skips_the_debounce() -> None:
    async def scenario() -> None:
        save, clock = Recorder(), FakeClock()
        scheduler, _ = _scheduler(save, clock)
        scheduler.mark_dirty()
        assert await scheduler.save_now()
        assert save.calls == 1
        assert clock.pending == 1  # only the settle timer
        clock.advance(10.0)
        assert save.calls == 1

    asyncio.run(scenario())


def test_flush_without_edits_does_not_save() -> None:
    async def scenario() -> None:
        save, clock = Recorder(), FakeClock()
        scheduler, _ = _scheduler(save, clock)
        assert await scheduler.flush()
        assert save.calls == 0

        scheduler.mark_dirty()
        assert await scheduler.flush()
        assert save.calls == 1

    asyncio.run(scenario())


def test_unsubscribe_stops_notifications() -> None:
    save, clock = Recorder(), FakeClock()
    scheduler = AutosaveScheduler(save, clock=clock)
    seen: list[SaveStatus] = []
    unsubscribe = scheduler.subscribe(seen.append)
    unsubscribe()
    scheduler.mark_dirty()
    assert seen == []
    scheduler.close()
    assert clock.pending == 0
