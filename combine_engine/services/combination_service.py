"""
Combination Service

Orchestration boundary around the engine:
- Request validation into a SearchConfig
- Catalog ingestion with dropped-fixture reporting
- Streaming generation, scoring and bounded ranking
- Progress events for the caller
- Result shaping (found / not found)
"""

import logging
import time
from typing import Dict, Any, Callable, Optional

from ..config import (
    ENGINE_VERSION,
    ENABLE_ODDS_PRUNING,
    GENERATION_TIMEOUT_SECONDS,
    MAX_COMBINATIONS,
    ERROR_MESSAGES,
)
from ..engine.catalog import build_catalog
from ..engine.confidence_scorer import ConfidenceScorer
from ..engine.generator import CombinationGenerator, OddsFeasibilityPruner, SearchDeadline
from ..engine.selector import BestCombinationSelector, RankingBoundPruner, RankingBuffer
from .narrative_service import NarrativeService
from .validation_service import ValidationService

logger = logging.getLogger("combine_api.services")

ProgressCallback = Callable[[int, str], None]


def log_progress(request_id: str) -> ProgressCallback:
    """Default observer: one log line per progress step."""
    def _observer(percentage: int, message: str) -> None:
        logger.info(f"[{request_id}] [PROGRESS] {percentage}% - {message}")
    return _observer


class CombinationService:
    """Service for generating the recommended combined bet."""

    def __init__(
        self,
        validation_service: Optional[ValidationService] = None,
        narrative_service: Optional[NarrativeService] = None,
        scorer: Optional[ConfidenceScorer] = None,
        enable_pruning: bool = ENABLE_ODDS_PRUNING,
        timeout_seconds: Optional[float] = GENERATION_TIMEOUT_SECONDS,
        max_results: Optional[int] = MAX_COMBINATIONS,
    ):
        self.validation_service = validation_service or ValidationService()
        self.narrative_service = narrative_service or NarrativeService()
        self.scorer = scorer or ConfidenceScorer()
        self.enable_pruning = enable_pruning
        self.timeout_seconds = timeout_seconds
        self.max_results = max_results

    def _build_generator(self, buffer: RankingBuffer) -> CombinationGenerator:
        pruners = [OddsFeasibilityPruner()] if self.enable_pruning else []
        pruners.append(RankingBoundPruner(buffer))
        deadline = SearchDeadline(self.timeout_seconds) if self.timeout_seconds else None
        return CombinationGenerator(
            pruners=pruners,
            deadline=deadline,
            max_results=self.max_results
        )

    def generate(
        self,
        payload: Any,
        request_id: str = "unknown",
        progress: Optional[ProgressCallback] = None
    ) -> Dict[str, Any]:
        """
        Run one full recommendation.

        Combinations are scored as the search streams them and only the
        ``1 + alternativesCount`` best are kept; the rest of the search skips
        branches that cannot beat the worst kept one.

        Args:
            payload: GenerateRequest model or equivalent dict
            request_id: Request identifier for logging
            progress: observer called with (percentage, message)

        Returns:
            GenerateResult dictionary (camelCase keys)

        Raises:
            InvalidConfigError: search parameters out of range
            GenerationTimeoutError: search deadline expired
            GenerationLimitError: too many in-band combinations
        """
        start_time = time.time()
        notify = progress or log_progress(request_id)
        payload = self.validation_service.normalize_payload(payload)

        # Step 1: Validate search config
        notify(10, "Validating search configuration")
        config = self.validation_service.build_search_config(payload, request_id)

        # Step 2: Ingest catalog
        notify(30, "Ingesting fixture catalog")
        raw_fixtures = self.validation_service.extract_fixtures(payload)
        entries, report = build_catalog(raw_fixtures)

        # Step 3: Enumerate and rank
        notify(50, "Generating candidate combinations")
        buffer = RankingBuffer(config.target_odds, 1 + config.alternatives_count)
        generator = self._build_generator(buffer)
        for combination in generator.iter_combinations(entries, config):
            buffer.offer(combination.with_confidence(self.scorer.score(combination)))

        logger.info(
            f"[{request_id}] [SEARCH] {buffer.seen} combinations evaluated in band "
            f"[{float(config.min_total_odds):.2f}, {float(config.max_total_odds):.2f}] | "
            f"fixtures={len(entries)} | nodes={generator.last_nodes_visited}"
        )

        result: Dict[str, Any] = {
            "found": False,
            "best": None,
            "alternatives": [],
            "combinationsEvaluated": buffer.seen,
            "suggestion": None,
            "explanation": None,
            "droppedFixtures": report.dropped_fixtures,
            "droppedCandidates": report.dropped_candidates,
            "metadata": {},
        }

        if not len(buffer):
            result["suggestion"] = ERROR_MESSAGES["NO_COMBINATION_SUGGESTION"]
            logger.info(
                f"[{request_id}] [SEARCH] {ERROR_MESSAGES['NO_COMBINATION']} "
                f"for target {config.target_odds}"
            )
        else:
            # Step 4: Select
            notify(70, "Selecting the best combination")
            selector = BestCombinationSelector(exactness_tolerance=config.exactness_tolerance)
            selection = selector.select(buffer.ordered(), config.target_odds, config.alternatives_count)

            result["found"] = True
            result["best"] = selection.best.to_dict()
            result["alternatives"] = [alt.to_dict() for alt in selection.alternatives]

            logger.info(
                f"[{request_id}] [TARGET] Best: {result['best']['totalOdds']:.2f}x "
                f"({result['best']['legCount']} legs, "
                f"confidence {result['best']['aggregateConfidence']:.1f}%, "
                f"exact={result['best']['isExact']}) | "
                f"{len(result['alternatives'])} alternatives"
            )

            # Step 5: Optional narrative
            if payload.get("includeExplanation", payload.get("include_explanation")):
                notify(85, "Requesting combination rationale")
                result["explanation"] = self.narrative_service.explain(
                    selection.best, config.target_odds, request_id
                )

        duration = time.time() - start_time
        result["metadata"] = {
            "durationSeconds": round(duration, 4),
            "fixturesAnalyzed": len(entries),
            "targetOdds": config.target_odds,
            "oddsBand": [
                round(float(config.min_total_odds), 4),
                round(float(config.max_total_odds), 4),
            ],
            "truncatedFixtures": report.truncated_fixtures,
            "engineVersion": ENGINE_VERSION,
            "requestId": request_id,
        }

        notify(100, "Analysis complete")
        return result
