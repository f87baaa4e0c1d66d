# combine_engine/engine/models.py
"""
Domain models for the combination engine.

Everything here is a value: built once per request, never mutated after
construction.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Any, FrozenSet, Optional, Tuple


class MarketType(str, Enum):
    VICTORY = "victory"
    TOTAL_GOALS = "total_goals"
    BOTH_TEAMS_SCORE = "btts"
    SHOTS_ON_TARGET = "shots_on_target"
    HANDICAP = "handicap"
    CORNERS = "corners"


MARKET_TYPE_ALIASES: Dict[str, MarketType] = {
    "result": MarketType.VICTORY,
    "outright_result": MarketType.VICTORY,
    "match_result": MarketType.VICTORY,
    "victoire": MarketType.VICTORY,
    "total": MarketType.TOTAL_GOALS,
    "over_under": MarketType.TOTAL_GOALS,
    "both_teams_score": MarketType.BOTH_TEAMS_SCORE,
    "both_teams_to_score": MarketType.BOTH_TEAMS_SCORE,
    "tirs_cadres": MarketType.SHOTS_ON_TARGET,
    "shots": MarketType.SHOTS_ON_TARGET,
}


def parse_market_type(raw: Any) -> Optional[MarketType]:
    """Resolve a raw market tag to a MarketType, or None when unknown."""
    if isinstance(raw, MarketType):
        return raw
    if not isinstance(raw, str):
        return None
    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return MarketType(key)
    except ValueError:
        return MARKET_TYPE_ALIASES.get(key)


def known_market_types() -> Tuple[str, ...]:
    return tuple(m.value for m in MarketType)


MarketPair = FrozenSet[MarketType]


@dataclass(frozen=True)
class Fixture:
    fixture_id: str
    teams: str


@dataclass(frozen=True)
class CandidateSelection:
    market_type: MarketType
    value: str
    odds: Decimal
    confidence: float
    explanation: Optional[str] = None


@dataclass(frozen=True)
class CatalogEntry:
    """One fixture with the (at most two) candidates offered for it."""
    fixture: Fixture
    candidates: Tuple[CandidateSelection, ...]


@dataclass(frozen=True)
class SelectionChoice:
    fixture: Fixture
    candidate: CandidateSelection

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fixtureId": self.fixture.fixture_id,
            "teams": self.fixture.teams,
            "marketType": self.candidate.market_type.value,
            "value": self.candidate.value,
            "odds": float(self.candidate.odds),
            "confidence": self.candidate.confidence,
        }


@dataclass(frozen=True)
class Combination:
    selections: Tuple[SelectionChoice, ...]
    total_odds: Decimal = field(init=False)
    aggregate_confidence: float = field(default=0.0)

    def __post_init__(self):
        total = Decimal("1")
        for choice in self.selections:
            total *= choice.candidate.odds
        object.__setattr__(self, "total_odds", total)

    def __len__(self) -> int:
        return len(self.selections)

    @property
    def fixture_ids(self) -> Tuple[str, ...]:
        return tuple(c.fixture.fixture_id for c in self.selections)

    @property
    def market_types(self) -> FrozenSet[MarketType]:
        return frozenset(c.candidate.market_type for c in self.selections)

    def with_confidence(self, confidence: float) -> "Combination":
        return Combination(self.selections, aggregate_confidence=confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selections": [c.to_dict() for c in self.selections],
            "totalOdds": round(float(self.total_odds), 2),
            "aggregateConfidence": round(self.aggregate_confidence, 2),
            "legCount": len(self.selections),
        }


@dataclass(frozen=True)
class SearchConfig:
    target_odds: float
    max_matches: int
    min_odds_ratio: float = 0.4
    max_odds_ratio: float = 2.5
    forbidden_market_pairs: FrozenSet[MarketPair] = frozenset()
    alternatives_count: int = 4
    exactness_tolerance: float = 0.10

    @property
    def min_total_odds(self) -> Decimal:
        return Decimal(str(self.target_odds)) * Decimal(str(self.min_odds_ratio))

    @property
    def max_total_odds(self) -> Decimal:
        return Decimal(str(self.target_odds)) * Decimal(str(self.max_odds_ratio))

    def in_band(self, odds: Decimal) -> bool:
        return self.min_total_odds <= odds <= self.max_total_odds

    def conflicting_markets(self, market_type: MarketType) -> FrozenSet[MarketType]:
        """Market types that may not share a fixture with ``market_type``."""
        others = set()
        for pair in self.forbidden_market_pairs:
            if market_type in pair:
                others.update(m for m in pair if m != market_type)
        return frozenset(others)


@dataclass(frozen=True)
class RankedCombination:
    combination: Combination
    difference: Decimal
    is_exact: bool

    def to_dict(self) -> Dict[str, Any]:
        data = self.combination.to_dict()
        data["difference"] = round(float(self.difference), 2)
        data["isExact"] = self.is_exact
        return data


@dataclass(frozen=True)
class SelectionResult:
    best: RankedCombination
    alternatives: Tuple[RankedCombination, ...]
