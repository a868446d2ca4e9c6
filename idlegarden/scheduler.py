from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Upper bound on ticks replayed by a single advance() call
MAX_CATCH_UP = 3600


class CommandQueue:
    """Funnels commands from any thread onto the tick thread.

    Producers call submit() and may wait on the returned Future; the tick
    thread calls drain() before each tick so commands never interleave with
    each other or with a tick.
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[tuple[Callable[[], Any], Future]] = queue.SimpleQueue()

    def submit(self, fn: Callable[[], Any]) -> Future:
        future: Future = Future()
        self._queue.put((fn, future))
        return future

    def drain(self) -> int:
        """Run every queued command in submission order. Returns how many ran."""
        ran = 0
        while True:
            try:
                fn, future = self._queue.get_nowait()
            except queue.Empty:
                return ran
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(fn())
            except Exception as exc:
                logger.exception("Queued command failed")
                future.set_exception(exc)
            ran += 1


class FixedIntervalScheduler:
    """Invokes *callback(now)* once per elapsed *interval* of clock time.

    The callback is a pure function of the tick time, so tests and
    simulations can drive it with advance() and a fake clock while a host
    uses run_forever().
    """

    def __init__(
        self,
        callback: Callable[[float], Any],
        interval: float = 1.0,
        commands: CommandQueue | None = None,
        max_catch_up: int = MAX_CATCH_UP,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self.commands = commands
        self.max_catch_up = max_catch_up
        self.next_tick: float | None = None
        self.ticks_run = 0

    def start(self, now: float) -> None:
        self.next_tick = now + self.interval

    def advance(self, now: float) -> int:
        """Run all ticks due at or before *now*. Returns the number run.

        If more than max_catch_up ticks are due, the backlog is dropped and
        the schedule restarts from *now*.
        """
        if self.next_tick is None:
            self.start(now)
        if self.commands is not None:
            self.commands.drain()

        ran = 0
        while self.next_tick <= now:
            if ran >= self.max_catch_up:
                logger.warning(
                    "Scheduler fell %.0fs behind; skipping backlog",
                    now - self.next_tick,
                )
                self.next_tick = now + self.interval
                break
            self.callback(self.next_tick)
            self.next_tick += self.interval
            ran += 1
        self.ticks_run += ran
        return ran

    def run_forever(
        self,
        stop: threading.Event,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Block, ticking on schedule until *stop* is set."""
        self.start(clock())
        while not stop.is_set():
            self.advance(clock())
            delay = max(0.0, self.next_tick - clock())
            stop.wait(delay)
        if self.commands is not None:
            self.commands.drain()
