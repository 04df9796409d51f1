from __future__ import annotations

import asyncio
import logging
from typing import Callable


logger = logging.getLogger(__name__)


class CountdownTimer:
    """Per-request countdown driven by loop timers.

    Ticks are scheduled against the start time, so they do not drift. Only one
    countdown runs per timer instance: `start` stops the previous one first.
    """

    def __init__(self, *, tick_interval_s: float = 1.0) -> None:
        if tick_interval_s <= 0:
            raise ValueError(f"tick_interval_s must be > 0, got {tick_interval_s!r}")
        self._tick_interval_s = float(tick_interval_s)
        self._handle: asyncio.TimerHandle | None = None
        self._generation = 0
        self._remaining = 0
        self._ticks = 0
        self._started_at = 0.0
        self._on_tick: Callable[[int], None] | None = None
        self._on_exhausted: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def tick_interval_s(self) -> float:
        return self._tick_interval_s

    def start(self, initial_s: int, on_tick: Callable[[int], None], on_exhausted: Callable[[], None]) -> None:
        self.stop()
        loop = asyncio.get_running_loop()
        self._generation += 1
        self._remaining = max(int(initial_s), 0)
        self._ticks = 0
        self._started_at = loop.time()
        self._on_tick = on_tick
        self._on_exhausted = on_exhausted
        self._schedule_next(loop)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._generation += 1
        self._on_tick = None
        self._on_exhausted = None

    def _schedule_next(self, loop: asyncio.AbstractEventLoop) -> None:
        when = self._started_at + (self._ticks + 1) * self._tick_interval_s
        self._handle = loop.call_at(when, self._tick, self._generation)

    def _tick(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._handle = None
        self._ticks += 1
        self._remaining = max(self._remaining - 1, 0)

        on_tick, on_exhausted = self._on_tick, self._on_exhausted
        # Exhaustion replaces the last tick; no zero tick is emitted.
        if self._remaining < 1:
            self.stop()
            if on_exhausted is not None:
                try:
                    on_exhausted()
                except Exception:
                    logger.exception("countdown exhausted callback failed")
            return

        if on_tick is not None:
            try:
                on_tick(self._remaining)
            except Exception:
                logger.exception("countdown tick callback failed; stopping")
                self.stop()
                return
        # The callback may have stopped or restarted this timer.
        if generation != self._generation:
            return
        self._schedule_next(asyncio.get_running_loop())
