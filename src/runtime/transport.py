from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Union

from src.playground.types import HangScenario, ResponseRecord, Scenario, SuccessScenario
from src.utils.cancel import CancellationToken


logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """Any transport failure that is neither a timeout nor a cancellation."""


@dataclass(frozen=True)
class Settled:
    record: ResponseRecord


@dataclass(frozen=True)
class TimedOut:
    pass


@dataclass(frozen=True)
class Cancelled:
    pass


TransportOutcome = Union[Settled, TimedOut, Cancelled]

TIMED_OUT = TimedOut()
CANCELLED = Cancelled()


class MockTransport:
    """In-process stand-in for a remote call.

    `SuccessScenario` settles after a fixed latency, `HangScenario` never does.
    The deadline and the token can end either one first. Exactly one outcome is
    delivered per call; every timer and token subscription is released as soon
    as it is.
    """

    def __init__(self, *, latency_s: float = 0.5, clock: Callable[[], float] = time.perf_counter) -> None:
        if latency_s < 0:
            raise ValueError(f"latency_s must be >= 0, got {latency_s!r}")
        self._latency_s = float(latency_s)
        self._clock = clock
        self._pending = 0

    @property
    def latency_s(self) -> float:
        return self._latency_s

    @property
    def pending_calls(self) -> int:
        """Number of calls still holding timers or token subscriptions."""
        return self._pending

    async def execute(
        self, scenario: Scenario, token: CancellationToken, deadline_ms: float
    ) -> TransportOutcome:
        if not isinstance(scenario, (SuccessScenario, HangScenario)):
            raise TransportError(f"Unsupported scenario: {scenario!r}")
        if deadline_ms <= 0:
            raise TransportError(f"Deadline must be positive, got {deadline_ms!r}")
        if token.cancelled:
            return CANCELLED

        loop = asyncio.get_running_loop()
        fut: asyncio.Future[TransportOutcome] = loop.create_future()
        start = self._clock()
        handles: list[asyncio.TimerHandle] = []
        unsubscribe: Callable[[], None] = lambda: None
        released = False

        def _release() -> None:
            nonlocal released
            if released:
                return
            released = True
            for h in handles:
                h.cancel()
            handles.clear()
            unsubscribe()
            self._pending -= 1

        def _deliver(outcome: TransportOutcome) -> None:
            if fut.done():
                logger.debug("transport outcome %s suppressed (already delivered)", type(outcome).__name__)
                return
            _release()
            fut.set_result(outcome)

        def _settle(s: SuccessScenario) -> None:
            elapsed_ms = int(round((self._clock() - start) * 1000))
            _deliver(
                Settled(
                    ResponseRecord(
                        status_code=s.status_code,
                        status_text=s.status_text,
                        duration_ms=elapsed_ms,
                        body=s.body,
                    )
                )
            )

        self._pending += 1
        if isinstance(scenario, SuccessScenario):
            handles.append(loop.call_later(self._latency_s, _settle, scenario))
        handles.append(loop.call_later(float(deadline_ms) / 1000.0, _deliver, TIMED_OUT))
        unsubscribe = token.on_cancel(lambda: _deliver(CANCELLED))

        try:
            return await fut
        finally:
            # Covers the awaiting task itself being cancelled.
            _release()
