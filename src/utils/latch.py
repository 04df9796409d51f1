from __future__ import annotations

from typing import Any


class SettleLatch:
    """One-shot gate: the first ``fire`` wins, every later call is inert."""

    def __init__(self) -> None:
        self._settled = False
        self._outcome: Any = None

    @property
    def settled(self) -> bool:
        return self._settled

    @property
    def outcome(self) -> Any:
        return self._outcome

    def fire(self, outcome: Any = None) -> bool:
        if self._settled:
            return False
        self._settled = True
        self._outcome = outcome
        return True
