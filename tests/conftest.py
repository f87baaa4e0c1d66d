from __future__ import annotations

import os
import tempfile
from decimal import Decimal

# Keep rotating log files out of the source tree while the app module is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="combine_engine_logs_"))

import pytest

from combine_engine.engine.models import (
    CandidateSelection,
    CatalogEntry,
    Fixture,
    MarketType,
    SearchConfig,
)


@pytest.fixture
def make_candidate():
    """Factory for CandidateSelection values."""

    def _make(market_type, odds, confidence=70.0, value=None) -> CandidateSelection:
        market = MarketType(market_type)
        return CandidateSelection(
            market_type=market,
            value=value or f"{market.value} pick",
            odds=Decimal(str(odds)),
            confidence=float(confidence),
        )

    return _make


@pytest.fixture
def make_entry():
    """Factory for CatalogEntry values."""

    def _make(fixture_id, *candidates, teams=None) -> CatalogEntry:
        return CatalogEntry(
            Fixture(fixture_id, teams or f"Home {fixture_id} vs Away {fixture_id}"),
            tuple(candidates),
        )

    return _make


@pytest.fixture
def three_fixture_catalog(make_entry, make_candidate) -> list[CatalogEntry]:
    """Three fixtures with a result and a total goals pick each, odds 1.8 to 2.2."""
    return [
        make_entry("f1", make_candidate("victory", 1.9, 80), make_candidate("total_goals", 2.1, 60)),
        make_entry("f2", make_candidate("victory", 2.0, 75), make_candidate("total_goals", 1.8, 65)),
        make_entry("f3", make_candidate("victory", 2.2, 55), make_candidate("total_goals", 1.95, 90)),
    ]


@pytest.fixture
def default_config() -> SearchConfig:
    return SearchConfig(target_odds=4.0, max_matches=3, min_odds_ratio=0.4, max_odds_ratio=2.5)


@pytest.fixture
def raw_fixtures() -> list[dict[str, object]]:
    """Fixture payload as the catalog provider sends it."""
    return [
        {
            "id": "psg-om",
            "teams": "Paris SG vs Marseille",
            "candidates": [
                {"marketType": "victory", "value": "Paris SG", "odds": 1.9, "confidence": 80},
                {"marketType": "total_goals", "value": "Over 2.5", "odds": 2.1, "confidence": 60},
            ],
        },
        {
            "id": "ol-losc",
            "teams": "Lyon vs Lille",
            "candidates": [
                {"marketType": "btts", "value": "Yes", "odds": 2.0, "confidence": 75},
                {"marketType": "corners", "value": "Over 9.5", "odds": 1.8, "confidence": 65},
            ],
        },
        {
            "id": 42,
            "homeTeam": "Nice",
            "awayTeam": "Monaco",
            "candidates": [
                {"marketType": "handicap", "value": "Monaco -1", "odds": 2.2, "confidence": 55},
                {"marketType": "victory", "value": "Monaco", "odds": 1.95, "confidence": 90},
            ],
        },
    ]


@pytest.fixture
def generate_payload(raw_fixtures) -> dict[str, object]:
    return {
        "fixtures": raw_fixtures,
        "targetOdds": 4.0,
        "maxMatches": 3,
        "minOddsRatio": 0.4,
        "maxOddsRatio": 2.5,
        "forbiddenMarketPairs": [["victory", "shots_on_target"]],
        "alternativesCount": 4,
    }
