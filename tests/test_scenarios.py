from __future__ import annotations

import pytest

from src.playground.scenarios import resolve
from src.playground.types import HangScenario, HttpMethod, RequestIntent, SuccessScenario


def test_success_echoes_request() -> None:
    s = resolve("http://x/success", method=HttpMethod.POST, body='{"a": 1}')
    assert isinstance(s, SuccessScenario)
    assert (s.status_code, s.status_text) == (200, "OK")
    assert s.body == {"method": "POST", "url": "http://x/success", "body": '{"a": 1}'}


def test_not_modified_has_no_body() -> None:
    s = resolve("http://x/not-modified")
    assert s == SuccessScenario(status_code=304, status_text="Not Modified", body=None)


def test_not_found_carries_error_payload() -> None:
    s = resolve("http://x/not-found")
    assert isinstance(s, SuccessScenario)
    assert (s.status_code, s.status_text) == (404, "Not Found")
    assert s.body["error"] == "Not Found"


@pytest.mark.parametrize(
    "target",
    ["http://x/unknown", "", "http://x/SUCCESS", "http://x/succes", "http://x/Not-Found", "http://x/notfound"],
)
def test_unmatched_targets_hang(target: str) -> None:
    assert isinstance(resolve(target), HangScenario)


def test_first_rule_wins() -> None:
    s = resolve("http://x/not-found/success")
    assert isinstance(s, SuccessScenario) and s.status_code == 200
    s2 = resolve("http://x/not-found/not-modified")
    assert isinstance(s2, SuccessScenario) and s2.status_code == 304


def test_resolution_is_deterministic() -> None:
    assert resolve("http://x/success?q=1") == resolve("http://x/success?q=1")
    assert resolve("http://x/other") == resolve("http://x/other")


def test_intent_drops_body_for_get_and_delete() -> None:
    assert RequestIntent(method=HttpMethod.GET, target="http://x", body="abc").body is None
    assert RequestIntent(method="delete", target="http://x", body="abc").body is None
    assert RequestIntent(method="put", target="http://x", body="abc").body == "abc"
    assert RequestIntent(method="post", target="http://x", body="").body is None


def test_method_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        HttpMethod.parse("PATCH")
