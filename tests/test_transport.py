from __future__ import annotations

import asyncio

import pytest

from src.playground.types import HangScenario, SuccessScenario
from src.runtime.transport import Cancelled, MockTransport, Settled, TimedOut, TransportError
from src.utils.cancel import CancellationToken


OK = SuccessScenario(status_code=200, status_text="OK", body={"k": "v"})


def test_success_settles_after_latency() -> None:
    async def scenario() -> None:
        transport = MockTransport(latency_s=0.02)
        token = CancellationToken()
        outcome = await transport.execute(OK, token, deadline_ms=1000)
        assert isinstance(outcome, Settled)
        assert outcome.record.status_code == 200
        assert outcome.record.status_text == "OK"
        assert outcome.record.body == {"k": "v"}
        assert 15 <= outcome.record.duration_ms < 500
        assert transport.pending_calls == 0
        assert token.subscriber_count == 0

    asyncio.run(scenario())


def test_hang_times_out_at_deadline() -> None:
    async def scenario() -> None:
        transport = MockTransport(latency_s=0.01)
        loop = asyncio.get_running_loop()
        t0 = loop.time()
        outcome = await transport.execute(HangScenario(), CancellationToken(), deadline_ms=50)
        assert isinstance(outcome, TimedOut)
        assert loop.time() - t0 >= 0.04
        assert transport.pending_calls == 0

    asyncio.run(scenario())


def test_deadline_before_latency_times_out() -> None:
    async def scenario() -> None:
        transport = MockTransport(latency_s=0.2)
        outcome = await transport.execute(OK, CancellationToken(), deadline_ms=20)
        assert isinstance(outcome, TimedOut)

    asyncio.run(scenario())


def test_cancel_releases_resources_synchronously() -> None:
    async def scenario() -> None:
        transport = MockTransport(latency_s=0.01)
        token = CancellationToken()
        task = asyncio.create_task(transport.execute(HangScenario(), token, deadline_ms=5000))
        await asyncio.sleep(0.02)
        assert transport.pending_calls == 1
        assert token.subscriber_count == 1

        token.request_cancel()
        assert transport.pending_calls == 0
        assert token.subscriber_count == 0

        outcome = await task
        assert isinstance(outcome, Cancelled)

    asyncio.run(scenario())


def test_cancel_after_settlement_is_inert() -> None:
    async def scenario() -> None:
        transport = MockTransport(latency_s=0.0)
        token = CancellationToken()
        outcome = await transport.execute(OK, token, deadline_ms=1000)
        token.request_cancel()
        assert isinstance(outcome, Settled)
        assert transport.pending_calls == 0

    asyncio.run(scenario())


def test_already_cancelled_token_short_circuits() -> None:
    async def scenario() -> None:
        token = CancellationToken()
        token.request_cancel()
        outcome = await MockTransport(latency_s=0.01).execute(OK, token, deadline_ms=1000)
        assert isinstance(outcome, Cancelled)

    asyncio.run(scenario())


def test_invalid_inputs_raise_transport_error() -> None:
    async def scenario() -> None:
        transport = MockTransport()
        with pytest.raises(TransportError):
            await transport.execute(OK, CancellationToken(), deadline_ms=0)
        with pytest.raises(TransportError):
            await transport.execute("not-a-scenario", CancellationToken(), deadline_ms=100)  # type: ignore[arg-type]

    asyncio.run(scenario())


def test_awaiting_task_cancellation_cleans_up() -> None:
    async def scenario() -> None:
        transport = MockTransport(latency_s=0.01)
        token = CancellationToken()
        task = asyncio.create_task(transport.execute(HangScenario(), token, deadline_ms=5000))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert transport.pending_calls == 0
        assert token.subscriber_count == 0

    asyncio.run(scenario())
