"""
Combined Bet Engine
Public Engine Interface

Stable, import-safe API surface exposed to the service layer and to
non-HTTP callers. The engine itself is pure: no I/O, no shared state.

Pipeline:
- Catalog ingestion (malformed candidates dropped and reported)
- Depth-first combination generation under constraint checks
- Confidence scoring (mean member confidence)
- Best combination selection against the target odds
"""

from typing import Any, Dict, Optional, Callable
import logging

from ..config import ENGINE_VERSION
from ..exceptions import (
    CombineEngineError,
    InvalidConfigError,
    MalformedCandidateError,
    GenerationTimeoutError,
    GenerationLimitError,
)
from .catalog import IngestionReport, build_catalog, parse_candidate
from .confidence_scorer import ConfidenceScorer
from .constraints import ConstraintValidator
from .generator import (
    BranchPruner,
    CombinationGenerator,
    OddsFeasibilityPruner,
    SearchDeadline,
    SuffixOddsBounds,
)
from .models import (
    CandidateSelection,
    CatalogEntry,
    Combination,
    Fixture,
    MarketType,
    RankedCombination,
    SearchConfig,
    SelectionChoice,
    SelectionResult,
    known_market_types,
)
from .selector import BestCombinationSelector, RankingBoundPruner, RankingBuffer

logger = logging.getLogger("combine_engine.engine")

# ---------------------------------------------------------------------
# Versioning
# ---------------------------------------------------------------------

__version__ = ENGINE_VERSION


# ---------------------------------------------------------------------
# Primary public API
# ---------------------------------------------------------------------

def process_generate_request(
    payload: Dict[str, Any],
    request_id: str = "engine",
    progress: Optional[Callable[[int, str], None]] = None,
) -> Dict[str, Any]:
    """
    Primary public API for combination generation.

    Process:
    1. Validates the search configuration (all violations reported at once)
    2. Ingests the fixture catalog, dropping malformed candidates
    3. Streams feasible combinations inside the odds band
    4. Scores them and keeps the best against the target odds
    5. Returns the best combination plus ranked alternatives

    Args:
        payload: GenerateRequest-shaped dictionary (camelCase keys)
        request_id: identifier used in log lines
        progress: optional observer called with (percentage, message)

    Returns:
        GenerateResult dictionary; ``found`` is False when no combination
        fits the acceptance band

    Raises:
        InvalidConfigError: If search parameters are out of range
        GenerationTimeoutError: If the search deadline expires
        GenerationLimitError: If too many combinations fall in the band
    """
    from ..services.combination_service import CombinationService

    try:
        return CombinationService().generate(payload, request_id=request_id, progress=progress)

    except CombineEngineError:
        # Already normalized, propagate cleanly
        raise

    except Exception as e:
        logger.exception("[ENGINE] Unexpected error during generation")
        raise CombineEngineError(f"Combination generation failed: {str(e)}") from e


# ---------------------------------------------------------------------
# Utility functions for engine status
# ---------------------------------------------------------------------

def get_engine_status() -> Dict[str, Any]:
    """
    Get current engine status and configuration.

    Returns:
        Dictionary with engine version, search limits and feature list
    """
    from ..config import (
        ENABLE_ODDS_PRUNING,
        GENERATION_TIMEOUT_SECONDS,
        MAX_COMBINATIONS,
        MAX_CATALOG_FIXTURES,
        MIN_MATCHES,
        MAX_MATCHES_LIMIT,
        TARGET_ODDS_MIN,
        TARGET_ODDS_MAX,
    )

    return {
        "version": __version__,
        "initialized": True,
        "engine_type": "Combined Bet Engine v1.0",
        "market_types": list(known_market_types()),
        "odds_pruning": ENABLE_ODDS_PRUNING,
        "generation_timeout_seconds": GENERATION_TIMEOUT_SECONDS,
        "max_combinations": MAX_COMBINATIONS,
        "limits": {
            "target_odds": [TARGET_ODDS_MIN, TARGET_ODDS_MAX],
            "max_matches": [MIN_MATCHES, MAX_MATCHES_LIMIT],
            "max_catalog_fixtures": MAX_CATALOG_FIXTURES,
        },
        "features": [
            "Exhaustive Depth-First Combination Search",
            "Forbidden Same-Fixture Market Pairs",
            "Market Diversification",
            "Target Odds Ranking With Confidence Tie-Break",
            "Ranked Alternatives",
            "Bounded Top-K Ranking While Streaming",
            "Deterministic Generation",
        ]
    }


# ---------------------------------------------------------------------
# Explicit export list
# ---------------------------------------------------------------------

__all__ = [
    # Core API
    "process_generate_request",
    "get_engine_status",

    # Components
    "build_catalog",
    "parse_candidate",
    "IngestionReport",
    "ConstraintValidator",
    "CombinationGenerator",
    "BranchPruner",
    "OddsFeasibilityPruner",
    "SearchDeadline",
    "SuffixOddsBounds",
    "ConfidenceScorer",
    "BestCombinationSelector",
    "RankingBuffer",
    "RankingBoundPruner",

    # Models
    "CandidateSelection",
    "CatalogEntry",
    "Combination",
    "Fixture",
    "MarketType",
    "RankedCombination",
    "SearchConfig",
    "SelectionChoice",
    "SelectionResult",

    # Exceptions
    "CombineEngineError",
    "InvalidConfigError",
    "MalformedCandidateError",
    "GenerationTimeoutError",
    "GenerationLimitError",

    # Version
    "__version__",
]
