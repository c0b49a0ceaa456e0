"""Debounced autosave with an explicit save status.

Status moves ``idle -> dirty -> saving -> saved | error``; ``saved`` settles
back to ``idle`` after a short delay and any edit moves ``saved``/``error``
back to ``dirty``. At most one save runs at a time: a timer that expires
while a save is in flight is deferred into a fresh debounce window once the
save finishes.

The save callback is blocking (it talks to the network) and runs on a worker
thread via ``asyncio.to_thread``. Timers come from an injectable clock so tests
can fast-forward time.
"""

import asyncio
from collections.abc import Callable
from typing import Literal

from loguru import logger

from hotel_cms.config import AUTOSAVE_DELAY, SAVED_SETTLE_DELAY
from hotel_cms.protocols import ClockProtocol, TimerHandle

SaveStatus = Literal["idle", "dirty", "saving", "saved", "error"]

StatusListener = Callable[[SaveStatus], None]


class LoopClock:
    """ClockProtocol backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class AutosaveScheduler:
    """Coalesce edits into saves.

    ``save`` returns True when the data reached the remote store and False
    when it was only kept locally; both False and an exception end in ``error``.
    """

    def __init__(
        self,
        save: Callable[[], bool],
        *,
        clock: ClockProtocol | None = None,
        delay: float = AUTOSAVE_DELAY,
        settle_delay: float = SAVED_SETTLE_DELAY,
    ) -> None:
        self._save = save
        self._clock = clock or LoopClock()
        self.delay = delay
        self.settle_delay = settle_delay

        self._status: SaveStatus = "idle"
        self._listeners: list[StatusListener] = []
        self._timer: TimerHandle | None = None
        self._settle_timer: TimerHandle | None = None
        self._task: asyncio.Task[bool] | None = None
        self._version = 0
        self._saved_version = 0
        self._save_pending = False
        self.last_error: BaseException | None = None

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def is_dirty(self) -> bool:
        return self._version != self._saved_version

    @property
    def saving(self) -> bool:
        return self._task is not None

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Call listener on every status change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_status(self, status: SaveStatus) -> None:
        if status == self._status:
            return
        logger.debug("Autosave status {} -> {}", self._status, status)
        self._status = status
        for listener in list(self._listeners):
            listener(status)

    def _cancel_timers(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._settle_timer is not None:
            self._settle_timer.cancel()
            self._settle_timer = None

    def _restart_debounce(self) -> None:
        self._cancel_timers()
        self._timer = self._clock.call_later(self.delay, self._on_timer)

    def mark_dirty(self) -> None:
        """Record an edit and (re)start the quiet-period timer."""
        self._version += 1
        if self._task is None:
            self._set_status("dirty")
        self._restart_debounce()

    def _on_timer(self) -> None:
        self._timer = None
        if self._task is not None:
            self._save_pending = True
            return
        if not self.is_dirty:
            return
        self._start_save()

    def _on_settle(self) -> None:
        self._settle_timer = None
        if self._status == "saved":
            self._set_status("idle")

    def _start_save(self) -> asyncio.Task[bool]:
        self._cancel_timers()
        self._task = asyncio.get_running_loop().create_task(self._run_save())
        return self._task

    async def _run_save(self) -> bool:
        version = self._version
        self._set_status("saving")
        ok = False
        try:
            ok = bool(await asyncio.to_thread(self._save))
            self.last_error = None
        except Exception as e:
            logger.warning("Save failed: {}", e, exc_info=True)
            self.last_error = e
        finally:
            self._task = None

        if ok:
            self._saved_version = version
            self._set_status("saved")
            self._settle_timer = self._clock.call_later(self.settle_delay, self._on_settle)
        else:
            self._set_status("error")

        if self._save_pending or self._version != version:
            # Edits arrived while saving: they get their own debounce window.
            self._save_pending = False
            self._set_status("dirty")
            self._restart_debounce()
        return ok

    async def save_now(self) -> bool:
        """Cancel the pending timer and save immediately, after any in-flight save.

        Returns True if the data reached the remote store.
        """
        self._cancel_timers()
        while self._task is not None:
            await asyncio.shield(self._task)
        self._save_pending = False
        return await self._start_save()

    async def wait_for_save(self) -> None:
        """Wait until no save is in flight. A pending timer is left alone."""
        while self._task is not None:
            await asyncio.shield(self._task)

    async def flush(self) -> bool:
        """Save right away if there are unsaved edits; used before closing a session."""
        await self.wait_for_save()
        if self.is_dirty or self._timer is not None:
            return await self.save_now()
        return self._status != "error"

    def close(self) -> None:
        """Drop pending timers. An in-flight save is not interrupted."""
        self._cancel_timers()
