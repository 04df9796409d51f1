from __future__ import annotations

import logging
from typing import Callable


logger = logging.getLogger(__name__)


class CancellationToken:
    """One token per outstanding request.

    Raising it is idempotent and irreversible. Subscribers registered with
    ``on_cancel`` are invoked synchronously, exactly once, from ``request_cancel``.
    """

    def __init__(self) -> None:
        self._cancel_requested = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    def request_cancel(self) -> None:
        if self._cancel_requested:
            return
        self._cancel_requested = True
        callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            _invoke(cb)

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it.

        If the token is already cancelled the callback fires immediately.
        """
        if self._cancel_requested:
            _invoke(callback)
            return lambda: None
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)


def _invoke(callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception:
        logger.exception("cancel callback failed")
