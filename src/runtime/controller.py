from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

from src.config.load_config import AppConfig
from src.playground.scenarios import resolve
from src.playground.types import (
    FAILURE_MESSAGE,
    TIMEOUT_MESSAGE,
    CancelReason,
    LifecycleSnapshot,
    LifecycleStatus,
    RequestIntent,
    ResponseRecord,
    Scenario,
)
from src.runtime.countdown import CountdownTimer
from src.runtime.transport import Cancelled, MockTransport, Settled, TimedOut
from src.utils.cancel import CancellationToken
from src.utils.latch import SettleLatch


logger = logging.getLogger(__name__)

Listener = Callable[[LifecycleSnapshot], None]


class InvalidTimeoutError(ValueError):
    def __init__(self, timeout_s: Any, *, min_s: int, max_s: int) -> None:
        super().__init__(f"timeout_s must be in [{min_s}..{max_s}], got {timeout_s!r}")
        self.timeout_s = timeout_s
        self.min_s = min_s
        self.max_s = max_s


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


@dataclass
class _Outstanding:
    """Everything owned by one submitted request."""

    seq: int
    intent: RequestIntent
    timeout_s: int
    token: CancellationToken = field(default_factory=CancellationToken)
    latch: SettleLatch = field(default_factory=SettleLatch)
    task: asyncio.Task | None = None


class LifecycleController:
    """Owns the single outstanding request and its observable state.

    States: idle -> sending -> success | error, and sending -> idle on cancel.
    Every path that ends a request goes through the request's SettleLatch, so
    the transport deadline and the countdown can both try to time a request
    out while only the first one takes effect. Late callbacks from a previous
    request are ignored because they carry a different `_Outstanding`.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        transport: MockTransport | None = None,
        timer: CountdownTimer | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or AppConfig()
        self._transport = transport or MockTransport(latency_s=self._config.transport.latency_s)
        self._timer = timer or CountdownTimer(tick_interval_s=self._config.countdown.tick_interval_s)
        self._clock = clock

        self._status = LifecycleStatus.IDLE
        self._response: ResponseRecord | None = None
        self._error_message: str | None = None
        self._timeout_s = self._config.timeouts.default_s
        self._remaining_s = self._timeout_s
        self._seq = 0
        self._current: _Outstanding | None = None

        self._listeners: list[Listener] = []
        self._events: deque[dict[str, Any]] = deque(maxlen=self._config.trace.max_events)

    # ── Observation ────────────────────────────────────────────────

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def status(self) -> LifecycleStatus:
        return self._status

    @property
    def response(self) -> ResponseRecord | None:
        return self._response

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def remaining_s(self) -> int:
        return self._remaining_s

    @property
    def in_progress(self) -> bool:
        return self._status.in_progress

    def snapshot(self) -> LifecycleSnapshot:
        return LifecycleSnapshot(
            status=self._status,
            remaining_s=self._remaining_s,
            timeout_s=self._timeout_s,
            request_seq=self._seq,
            response=self._response,
            error_message=self._error_message,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def events(self, *, limit: int | None = None) -> list[dict[str, Any]]:
        items = list(self._events)
        if limit is not None:
            items = items[-int(limit):] if limit > 0 else []
        return items

    # ── Actions ────────────────────────────────────────────────────

    def submit(self, intent: RequestIntent, timeout_s: int | None = None) -> asyncio.Task:
        """Start a request and return the task driving it.

        Must be called from inside a running event loop. An outstanding request
        is superseded silently: its token is invalidated before the new one starts.
        """
        timeout = self._validate_timeout(timeout_s)
        loop = asyncio.get_running_loop()

        prev = self._current
        if prev is not None and not prev.latch.settled:
            self._abort(prev, reason=CancelReason.SUPERSEDED)

        self._seq += 1
        run = _Outstanding(seq=self._seq, intent=intent, timeout_s=timeout)
        self._current = run
        scenario = resolve(intent.target, method=intent.method, body=intent.body)

        self._timeout_s = timeout
        self._remaining_s = timeout
        self._response = None
        self._error_message = None
        self._status = LifecycleStatus.SENDING
        self._trace(
            run,
            "request_submitted",
            {
                "method": intent.method.value,
                "target": intent.target,
                "has_body": intent.body is not None,
                "timeout_s": timeout,
                "scenario": type(scenario).__name__,
            },
        )
        logger.info("request #%d %s %s sending (timeout=%ss)", run.seq, intent.method.value, intent.target, timeout)
        self._publish()

        run.task = loop.create_task(self._drive(run, scenario), name=f"playground-request-{run.seq}")
        self._timer.start(
            timeout,
            on_tick=lambda remaining: self._on_tick(run, remaining),
            on_exhausted=lambda: self._on_timeout(run, source="countdown"),
        )
        return run.task

    def cancel(self, reason: CancelReason = CancelReason.USER) -> bool:
        """Return to idle if a request is in progress.

        Returns True when a request was actually cancelled. Calling it in any
        other state, or repeatedly, changes nothing.
        """
        run = self._current
        if run is None or run.latch.settled or not self._status.in_progress:
            return False
        self._abort(run, reason=reason)
        self._status = LifecycleStatus.IDLE
        self._error_message = None
        self._response = None
        self._remaining_s = run.timeout_s
        logger.info("request #%d canceled (%s)", run.seq, reason.value)
        self._publish()
        return True

    def notify_fields_edited(self) -> bool:
        """The request parameters changed: cancel silently if something is in flight."""
        return self.cancel(reason=CancelReason.FIELDS_EDITED)

    async def wait_settled(self) -> None:
        run = self._current
        if run is None or run.task is None:
            return
        await run.task

    async def aclose(self) -> None:
        self.cancel(reason=CancelReason.SHUTDOWN)
        self._timer.stop()
        run = self._current
        if run is not None and run.task is not None and not run.task.done():
            await run.task

    # ── Internals ──────────────────────────────────────────────────

    def _validate_timeout(self, timeout_s: int | None) -> int:
        t = self._config.timeouts
        if timeout_s is None:
            return t.default_s
        if isinstance(timeout_s, bool) or not isinstance(timeout_s, int) or not t.contains(timeout_s):
            raise InvalidTimeoutError(timeout_s, min_s=t.min_s, max_s=t.max_s)
        return timeout_s

    def _is_live(self, run: _Outstanding) -> bool:
        return run is self._current and not run.latch.settled

    def _abort(self, run: _Outstanding, *, reason: CancelReason) -> None:
        if not run.latch.fire(("canceled", reason)):
            return
        self._timer.stop()
        run.token.request_cancel()
        event_type = "request_superseded" if reason is CancelReason.SUPERSEDED else "request_canceled"
        self._trace(run, event_type, {"reason": reason.value, "remaining_s": self._remaining_s})

    async def _drive(self, run: _Outstanding, scenario: Scenario) -> None:
        deadline_ms = run.timeout_s * self._timer.tick_interval_s * 1000.0
        try:
            outcome = await self._transport.execute(scenario, run.token, deadline_ms)
        except asyncio.CancelledError:
            if self._is_live(run):
                self.cancel(reason=CancelReason.SHUTDOWN)
            raise
        except Exception as e:
            self._on_failure(run, e)
            return

        if isinstance(outcome, Settled):
            self._on_settled(run, outcome.record)
        elif isinstance(outcome, TimedOut):
            self._on_timeout(run, source="transport")
        elif isinstance(outcome, Cancelled):
            # Whoever raised the token already applied the transition.
            logger.debug("request #%d transport observed cancellation", run.seq)

    def _on_tick(self, run: _Outstanding, remaining: int) -> None:
        if not self._is_live(run):
            return
        self._remaining_s = remaining
        self._publish()

    def _on_settled(self, run: _Outstanding, record: ResponseRecord) -> None:
        if run is not self._current or not run.latch.fire("settled"):
            logger.debug("request #%d late settlement ignored", run.seq)
            return
        self._timer.stop()
        self._response = record
        self._error_message = None
        self._status = LifecycleStatus.SUCCESS
        self._trace(
            run,
            "request_succeeded",
            {"status": record.status_code, "status_text": record.status_text, "duration_ms": record.duration_ms},
        )
        logger.info("request #%d settled %d %s in %dms", run.seq, record.status_code, record.status_text, record.duration_ms)
        self._publish()

    def _on_timeout(self, run: _Outstanding, *, source: str) -> None:
        if run is not self._current or not run.latch.fire("timed_out"):
            logger.debug("request #%d timeout from %s suppressed", run.seq, source)
            return
        self._timer.stop()
        run.token.request_cancel()
        self._remaining_s = 0
        self._response = None
        self._error_message = TIMEOUT_MESSAGE
        self._status = LifecycleStatus.ERROR
        self._trace(run, "request_timed_out", {"source": source, "timeout_s": run.timeout_s})
        logger.info("request #%d timed out after %ss (%s)", run.seq, run.timeout_s, source)
        self._publish()

    def _on_failure(self, run: _Outstanding, exc: BaseException) -> None:
        if run is not self._current or not run.latch.fire("failed"):
            logger.debug("request #%d late failure ignored: %s", run.seq, exc)
            return
        self._timer.stop()
        run.token.request_cancel()
        self._response = None
        self._error_message = FAILURE_MESSAGE
        self._status = LifecycleStatus.ERROR
        self._trace(run, "request_failed", {"error": str(exc), "type": type(exc).__name__})
        logger.warning("request #%d failed: %s", run.seq, exc)
        self._publish()

    def _trace(self, run: _Outstanding, event_type: str, payload: dict[str, Any]) -> None:
        self._events.append(
            {
                "event_id": _new_id("evt"),
                "created_at": self._clock(),
                "event_type": event_type,
                "request_seq": run.seq,
                "payload": payload,
            }
        )

    def _publish(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("lifecycle listener failed")
