from __future__ import annotations

from src.utils.cancel import CancellationToken
from src.utils.latch import SettleLatch


def test_cancel_is_idempotent_and_fires_callbacks_once() -> None:
    token = CancellationToken()
    calls: list[str] = []
    token.on_cancel(lambda: calls.append("a"))
    token.on_cancel(lambda: calls.append("b"))

    token.request_cancel()
    token.request_cancel()

    assert token.cancelled
    assert calls == ["a", "b"]
    assert token.subscriber_count == 0


def test_subscribe_after_cancel_fires_immediately() -> None:
    token = CancellationToken()
    token.request_cancel()
    calls: list[int] = []
    token.on_cancel(lambda: calls.append(1))
    assert calls == [1]


def test_unsubscribe_prevents_callback() -> None:
    token = CancellationToken()
    calls: list[int] = []
    unsubscribe = token.on_cancel(lambda: calls.append(1))
    unsubscribe()
    unsubscribe()
    token.request_cancel()
    assert calls == []


def test_failing_callback_does_not_break_cancel_path() -> None:
    token = CancellationToken()
    calls: list[int] = []

    def boom() -> None:
        raise RuntimeError("boom")

    token.on_cancel(boom)
    token.on_cancel(lambda: calls.append(1))
    token.request_cancel()
    assert calls == [1]


def test_tokens_are_independent() -> None:
    old, new = CancellationToken(), CancellationToken()
    old.request_cancel()
    assert not new.cancelled


def test_latch_first_fire_wins() -> None:
    latch = SettleLatch()
    assert not latch.settled
    assert latch.fire("timed_out")
    assert not latch.fire("settled")
    assert latch.settled
    assert latch.outcome == "timed_out"
