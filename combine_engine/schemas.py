# combine_engine/schemas.py

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Dict, Any, Optional


class FixtureIn(BaseModel):
    """
    Fixture as handed over by the catalog provider.

    Candidates are kept loose on purpose: malformed ones are dropped during
    catalog ingestion instead of failing the whole request.
    """
    id: Optional[str] = Field(None, description="Fixture ID as string")
    teams: Optional[str] = None
    candidates: Optional[List[Any]] = None

    @field_validator('id', mode='before')
    @classmethod
    def convert_to_string(cls, v):
        """Convert any ID value to string"""
        if v is None:
            return None
        return str(v)

    model_config = ConfigDict(extra="allow")


class GenerateRequest(BaseModel):
    fixtures: List[FixtureIn]
    target_odds: Optional[float] = Field(None, alias="targetOdds")
    max_matches: Optional[int] = Field(None, alias="maxMatches")
    min_odds_ratio: Optional[float] = Field(None, alias="minOddsRatio")
    max_odds_ratio: Optional[float] = Field(None, alias="maxOddsRatio")
    forbidden_market_pairs: Optional[List[List[str]]] = Field(None, alias="forbiddenMarketPairs")
    alternatives_count: Optional[int] = Field(None, alias="alternativesCount")
    include_explanation: bool = Field(False, alias="includeExplanation")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "fixtures": [
                    {
                        "id": "psg-om",
                        "teams": "Paris SG vs Marseille",
                        "candidates": [
                            {"marketType": "victory", "value": "Paris SG", "odds": 1.85, "confidence": 78},
                            {"marketType": "total_goals", "value": "Over 2.5", "odds": 1.80, "confidence": 72}
                        ]
                    }
                ],
                "targetOdds": 4.0,
                "maxMatches": 3,
                "minOddsRatio": 0.4,
                "maxOddsRatio": 2.5,
                "forbiddenMarketPairs": [["victory", "shots_on_target"]],
                "alternativesCount": 4
            }
        }
    )


class SelectionOut(BaseModel):
    fixture_id: str = Field(..., alias="fixtureId")
    teams: str
    market_type: str = Field(..., alias="marketType")
    value: str
    odds: float
    confidence: float

    model_config = ConfigDict(populate_by_name=True)


class CombinationOut(BaseModel):
    selections: List[SelectionOut]
    total_odds: float = Field(..., alias="totalOdds")
    aggregate_confidence: float = Field(..., alias="aggregateConfidence")
    difference: float
    is_exact: bool = Field(..., alias="isExact")
    leg_count: int = Field(..., alias="legCount")

    model_config = ConfigDict(populate_by_name=True)


class DroppedFixture(BaseModel):
    fixture_id: Optional[str] = Field(None, alias="fixtureId")
    reason: str

    model_config = ConfigDict(populate_by_name=True)


class DroppedCandidate(BaseModel):
    fixture_id: str = Field(..., alias="fixtureId")
    index: int
    reason: str

    model_config = ConfigDict(populate_by_name=True)


class GenerateResponse(BaseModel):
    found: bool
    best: Optional[CombinationOut] = None
    alternatives: List[CombinationOut] = Field(default_factory=list)
    combinations_evaluated: int = Field(0, alias="combinationsEvaluated")
    suggestion: Optional[str] = None
    explanation: Optional[str] = None
    dropped_fixtures: List[DroppedFixture] = Field(default_factory=list, alias="droppedFixtures")
    dropped_candidates: List[DroppedCandidate] = Field(default_factory=list, alias="droppedCandidates")
    metadata: Optional[Dict[str, Any]] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class PublicConfigResponse(BaseModel):
    target_odds_min: float = Field(..., alias="targetOddsMin")
    target_odds_max: float = Field(..., alias="targetOddsMax")
    min_matches: int = Field(..., alias="minMatches")
    max_matches: int = Field(..., alias="maxMatches")
    default_min_odds_ratio: float = Field(..., alias="defaultMinOddsRatio")
    default_max_odds_ratio: float = Field(..., alias="defaultMaxOddsRatio")
    default_alternatives_count: int = Field(..., alias="defaultAlternativesCount")
    max_catalog_fixtures: int = Field(..., alias="maxCatalogFixtures")
    market_types: List[str] = Field(..., alias="marketTypes")
    forbidden_market_pairs: List[List[str]] = Field(..., alias="forbiddenMarketPairs")
    narrative_enabled: bool = Field(..., alias="narrativeEnabled")

    model_config = ConfigDict(populate_by_name=True)


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    engine_version: str
    engine_status: str
    narrative_provider: str
    log_dir: str
    timestamp: str
    endpoints: Dict[str, str]
