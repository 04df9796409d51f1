from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


TIMEOUT_MESSAGE = "Request timed out"
FAILURE_MESSAGE = "Request failed"

_BODY_METHODS = {"POST", "PUT"}


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: str | HttpMethod) -> HttpMethod:
        if isinstance(value, HttpMethod):
            return value
        raw = str(value or "").strip().upper()
        try:
            return cls(raw)
        except ValueError as e:
            raise ValueError(f"Unsupported method: {value!r}") from e

    @property
    def accepts_body(self) -> bool:
        return self.value in _BODY_METHODS


@dataclass(frozen=True)
class RequestIntent:
    method: HttpMethod
    target: str
    body: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", HttpMethod.parse(self.method))
        object.__setattr__(self, "target", str(self.target))
        # Only POST/PUT carry a body.
        if not self.method.accepts_body or self.body == "":
            object.__setattr__(self, "body", None)


@dataclass(frozen=True)
class SuccessScenario:
    status_code: int
    status_text: str
    body: Any = None


@dataclass(frozen=True)
class HangScenario:
    """Never completes on its own; only a deadline or cancellation ends it."""


Scenario = Union[SuccessScenario, HangScenario]


@dataclass(frozen=True)
class ResponseRecord:
    status_code: int
    status_text: str
    duration_ms: int
    body: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status_code,
            "status_text": self.status_text,
            "duration_ms": self.duration_ms,
            "body": self.body,
        }


class LifecycleStatus(Enum):
    IDLE = "idle"
    SENDING = "sending"
    # Declared for display purposes; no transition enters it.
    WAITING = "waiting"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def in_progress(self) -> bool:
        return self in (LifecycleStatus.SENDING, LifecycleStatus.WAITING)


class CancelReason(Enum):
    USER = "user"
    FIELDS_EDITED = "fields_edited"
    SUPERSEDED = "superseded"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class LifecycleSnapshot:
    status: LifecycleStatus
    remaining_s: int
    timeout_s: int
    request_seq: int = 0
    response: ResponseRecord | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "remaining_s": self.remaining_s,
            "timeout_s": self.timeout_s,
            "request_seq": self.request_seq,
            "response": self.response.to_dict() if self.response is not None else None,
            "error_message": self.error_message,
        }
