from __future__ import annotations

import json

import httpx
import pytest

from combine_engine.config import MAX_COMBINATIONS
from combine_engine.engine import process_generate_request
from combine_engine.exceptions import GenerationLimitError, InvalidConfigError
from combine_engine.services.combination_service import CombinationService
from combine_engine.services.narrative_service import NarrativeService


def test_returns_best_combination_near_target(generate_payload):
    result = CombinationService().generate(generate_payload, request_id="test")

    assert result["found"] is True
    best = result["best"]
    assert 2 <= best["legCount"] <= 3
    assert 3.6 <= best["totalOdds"] <= 4.4
    assert best["difference"] == pytest.approx(abs(best["totalOdds"] - 4.0), abs=0.01)
    assert len(result["alternatives"]) == 4
    assert result["combinationsEvaluated"] >= 5
    assert result["suggestion"] is None
    assert result["explanation"] is None
    assert result["metadata"]["fixturesAnalyzed"] == 3
    assert result["metadata"]["oddsBand"] == [1.6, 10.0]
    assert result["metadata"]["requestId"] == "test"


def test_alternatives_follow_best_in_ranking_order(generate_payload):
    result = CombinationService().generate(generate_payload)

    ranked = [result["best"]] + result["alternatives"]
    keys = [r["difference"] for r in ranked]
    assert keys == sorted(keys)


def test_same_request_gives_same_answer(generate_payload):
    service = CombinationService()

    first = service.generate(generate_payload)
    second = service.generate(generate_payload)

    assert first["best"] == second["best"]
    assert first["alternatives"] == second["alternatives"]


def test_unreachable_target_is_not_found(generate_payload):
    payload = {**generate_payload, "targetOdds": 900.0, "maxMatches": 2}

    result = CombinationService().generate(payload)

    assert result["found"] is False
    assert result["best"] is None
    assert result["alternatives"] == []
    assert result["combinationsEvaluated"] == 0
    assert result["suggestion"]


def test_dropped_fixtures_are_reported(generate_payload):
    payload = dict(generate_payload)
    payload["fixtures"] = generate_payload["fixtures"] + [
        {"id": "bad", "teams": "X vs Y", "candidates": [{"marketType": "victory", "value": "X", "odds": 1.0}]}
    ]

    result = CombinationService().generate(payload)

    assert result["found"] is True
    assert result["droppedFixtures"] == [{"fixtureId": "bad", "reason": "no valid candidates"}]
    assert result["droppedCandidates"][0]["fixtureId"] == "bad"


def test_progress_events_are_ordered(generate_payload):
    events = []

    CombinationService().generate(generate_payload, progress=lambda pct, msg: events.append(pct))

    assert events == [10, 30, 50, 70, 100]


def test_invalid_config_is_raised_before_search(generate_payload):
    events = []
    payload = {**generate_payload, "maxMatches": 12}

    with pytest.raises(InvalidConfigError):
        CombinationService().generate(payload, progress=lambda pct, msg: events.append(pct))

    assert events == [10]


def test_result_limit_propagates(generate_payload):
    service = CombinationService(max_results=1)

    with pytest.raises(GenerationLimitError):
        service.generate(generate_payload)


def test_pruning_does_not_change_the_answer(generate_payload):
    plain = CombinationService(enable_pruning=False).generate(generate_payload)
    pruned = CombinationService(enable_pruning=True).generate(generate_payload)

    assert plain["best"] == pruned["best"]
    assert plain["alternatives"] == pruned["alternatives"]
    assert plain["combinationsEvaluated"] == pruned["combinationsEvaluated"]


def test_explanation_is_fetched_when_requested(generate_payload):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"explanation": "Two solid favourites."})

    narrative = NarrativeService(url="http://narrative.test/explain", transport=httpx.MockTransport(handler))
    service = CombinationService(narrative_service=narrative)
    events = []

    result = service.generate(
        {**generate_payload, "includeExplanation": True},
        progress=lambda pct, msg: events.append(pct),
    )

    assert result["explanation"] == "Two solid favourites."
    assert seen["body"]["targetOdds"] == 4.0
    assert seen["body"]["combination"] == result["best"]
    assert 85 in events


def test_explanation_falls_back_when_provider_fails(generate_payload):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    narrative = NarrativeService(
        url="http://narrative.test/explain",
        fallback_text="No rationale today.",
        transport=httpx.MockTransport(handler),
    )

    result = CombinationService(narrative_service=narrative).generate(
        {**generate_payload, "includeExplanation": True}
    )

    assert result["found"] is True
    assert result["explanation"] == "No rationale today."


def test_explanation_not_requested_skips_provider(generate_payload):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("narrative provider must not be called")

    narrative = NarrativeService(url="http://narrative.test/explain", transport=httpx.MockTransport(handler))

    result = CombinationService(narrative_service=narrative).generate(generate_payload)

    assert result["explanation"] is None


def test_process_generate_request_entry_point(generate_payload):
    result = process_generate_request(generate_payload, request_id="engine-test")

    assert result["found"] is True
    assert result["metadata"]["requestId"] == "engine-test"


def test_eight_leg_search_over_sixteen_fixtures_stays_bounded():
    markets = ["victory", "total_goals", "btts", "corners", "handicap", "shots_on_target"]
    fixtures = [
        {
            "id": f"fx-{i}",
            "teams": f"Home {i} vs Away {i}",
            "candidates": [
                {"marketType": markets[i % 6], "value": "A", "odds": round(1.6 + 0.03 * i, 2), "confidence": 60 + i},
                {"marketType": markets[(i + 2) % 6], "value": "B", "odds": round(2.1 - 0.02 * i, 2), "confidence": 85 - i},
            ],
        }
        for i in range(16)
    ]
    payload = {"fixtures": fixtures, "targetOdds": 100.0, "maxMatches": 8}

    result = CombinationService().generate(payload)

    assert result["found"] is True
    assert result["best"]["difference"] < 0.5
    assert 6 <= result["best"]["legCount"] <= 8
    assert len(result["alternatives"]) == 4
    assert 5 <= result["combinationsEvaluated"] < MAX_COMBINATIONS
