from __future__ import annotations

from src.playground.types import HangScenario, HttpMethod, Scenario, SuccessScenario


HANG = HangScenario()


def resolve(target: str, *, method: HttpMethod | str = HttpMethod.GET, body: str | None = None) -> Scenario:
    """Map a request target to its mock outcome.

    Case-sensitive substring match, first rule wins, anything else hangs.
    The payloads are echoed verbatim into the response record.
    """
    t = str(target or "")
    if "/success" in t:
        return SuccessScenario(
            status_code=200,
            status_text="OK",
            body={"method": HttpMethod.parse(method).value, "url": t, "body": body},
        )
    if "/not-modified" in t:
        return SuccessScenario(status_code=304, status_text="Not Modified", body=None)
    if "/not-found" in t:
        return SuccessScenario(status_code=404, status_text="Not Found", body={"error": "Not Found", "url": t})
    return HANG
