from __future__ import annotations

import httpx
import pytest

from combine_engine.exceptions import NarrativeError
from combine_engine.services.narrative_service import NarrativeService


def _service(handler, **kwargs) -> NarrativeService:
    return NarrativeService(
        url="http://narrative.test/explain",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_disabled_without_url():
    service = NarrativeService(url="")

    assert service.enabled is False
    assert service.explain(ranked=None, target_odds=4.0) is None


def test_returns_trimmed_explanation():
    service = _service(lambda request: httpx.Response(201, json={"explanation": "  Solid picks.  "}))

    assert service.request_explanation({"targetOdds": 4.0}) == "Solid picks."


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"text": "wrong key"}),
        httpx.Response(200, json={"explanation": "   "}),
    ],
)
def test_bad_responses_raise_narrative_error(response):
    service = _service(lambda request: response)

    with pytest.raises(NarrativeError):
        service.request_explanation({"targetOdds": 4.0})


@pytest.mark.parametrize("status", [200, 202, 203])
def test_any_success_status_is_accepted(status):
    service = _service(lambda request: httpx.Response(status, json={"explanation": "Queued rationale."}))

    assert service.request_explanation({"targetOdds": 4.0}) == "Queued rationale."


def test_redirect_status_is_not_a_success():
    service = _service(lambda request: httpx.Response(304))

    with pytest.raises(NarrativeError):
        service.request_explanation({"targetOdds": 4.0})


def test_timeout_raises_narrative_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(NarrativeError) as exc_info:
        _service(handler, timeout=0.5).request_explanation({})

    assert "timeout" in exc_info.value.message
    assert exc_info.value.details["url"] == "http://narrative.test/explain"
