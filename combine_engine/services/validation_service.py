"""
Validation Service

Turns a generate request into an immutable SearchConfig:
- Domain range checks for every search parameter
- Forbidden market pair parsing
- Catalog size check

Every violation is collected and reported together; nothing is clamped.
"""

import logging
import math
from typing import Dict, Any, List, FrozenSet

from ..config import (
    TARGET_ODDS_MIN,
    TARGET_ODDS_MAX,
    MIN_MATCHES,
    MAX_MATCHES_LIMIT,
    DEFAULT_MIN_ODDS_RATIO,
    DEFAULT_MAX_ODDS_RATIO,
    DEFAULT_ALTERNATIVES_COUNT,
    MAX_ALTERNATIVES_COUNT,
    DEFAULT_FORBIDDEN_MARKET_PAIRS,
    EXACTNESS_TOLERANCE,
    MAX_CATALOG_FIXTURES,
)
from ..engine.models import MarketPair, SearchConfig, parse_market_type
from ..exceptions import InvalidConfigError

logger = logging.getLogger("combine_api.services")

_MISSING = object()


def _lookup(payload: Dict[str, Any], camel: str, snake: str) -> Any:
    if camel in payload:
        return payload[camel]
    return payload.get(snake, _MISSING)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ValidationService:
    """Service for validating generate requests."""

    def normalize_payload(self, payload: Any) -> Dict[str, Any]:
        """Accept a pydantic model or a plain dict."""
        if hasattr(payload, "model_dump"):
            payload = payload.model_dump(by_alias=True)
        if not isinstance(payload, dict):
            raise InvalidConfigError([
                {"field": "payload", "message": "request body must be an object"}
            ])
        return payload

    def build_search_config(
        self,
        payload: Any,
        request_id: str = "unknown"
    ) -> SearchConfig:
        """
        Validate the search parameters of a generate request.

        Args:
            payload: Request payload (dict or GenerateRequest)
            request_id: Request identifier for logging

        Returns:
            SearchConfig for this request

        Raises:
            InvalidConfigError: listing every violated field
        """
        payload = self.normalize_payload(payload)
        violations: List[Dict[str, str]] = []

        def violation(field: str, message: str) -> None:
            violations.append({"field": field, "message": message})

        # targetOdds
        target_odds = _lookup(payload, "targetOdds", "target_odds")
        if target_odds is _MISSING or target_odds is None:
            violation("targetOdds", "is required")
        elif not _is_number(target_odds):
            violation("targetOdds", f"must be a number (got {target_odds!r})")
        elif not TARGET_ODDS_MIN <= target_odds <= TARGET_ODDS_MAX:
            violation(
                "targetOdds",
                f"must be between {TARGET_ODDS_MIN} and {TARGET_ODDS_MAX} (got {target_odds})"
            )

        # maxMatches
        max_matches = _lookup(payload, "maxMatches", "max_matches")
        if max_matches is _MISSING or max_matches is None:
            violation("maxMatches", "is required")
        elif not _is_integer(max_matches):
            violation("maxMatches", f"must be an integer (got {max_matches!r})")
        elif not MIN_MATCHES <= max_matches <= MAX_MATCHES_LIMIT:
            violation(
                "maxMatches",
                f"must be between {MIN_MATCHES} and {MAX_MATCHES_LIMIT} (got {max_matches})"
            )

        # Odds ratio band
        min_ratio = _lookup(payload, "minOddsRatio", "min_odds_ratio")
        if min_ratio is _MISSING or min_ratio is None:
            min_ratio = DEFAULT_MIN_ODDS_RATIO
        max_ratio = _lookup(payload, "maxOddsRatio", "max_odds_ratio")
        if max_ratio is _MISSING or max_ratio is None:
            max_ratio = DEFAULT_MAX_ODDS_RATIO

        ratios_ok = True
        if not _is_number(min_ratio) or not 0 < min_ratio <= 1:
            violation("minOddsRatio", f"must be a number in (0, 1] (got {min_ratio!r})")
            ratios_ok = False
        if not _is_number(max_ratio) or max_ratio < 1:
            violation("maxOddsRatio", f"must be a number >= 1 (got {max_ratio!r})")
            ratios_ok = False
        if ratios_ok and min_ratio >= max_ratio:
            violation("maxOddsRatio", "must be greater than minOddsRatio")

        # alternativesCount
        alternatives_count = _lookup(payload, "alternativesCount", "alternatives_count")
        if alternatives_count is _MISSING or alternatives_count is None:
            alternatives_count = DEFAULT_ALTERNATIVES_COUNT
        elif not _is_integer(alternatives_count) or not 0 <= alternatives_count <= MAX_ALTERNATIVES_COUNT:
            violation(
                "alternativesCount",
                f"must be an integer between 0 and {MAX_ALTERNATIVES_COUNT} "
                f"(got {alternatives_count!r})"
            )

        # forbiddenMarketPairs
        raw_pairs = _lookup(payload, "forbiddenMarketPairs", "forbidden_market_pairs")
        if raw_pairs is _MISSING or raw_pairs is None:
            raw_pairs = [list(p) for p in DEFAULT_FORBIDDEN_MARKET_PAIRS]
        forbidden_pairs = self._parse_forbidden_pairs(raw_pairs, violation)

        # fixtures
        fixtures = _lookup(payload, "fixtures", "fixtures")
        if fixtures is _MISSING or fixtures is None:
            violation("fixtures", "is required")
        elif not isinstance(fixtures, list):
            violation("fixtures", f"must be a list (got {type(fixtures).__name__})")
        elif len(fixtures) > MAX_CATALOG_FIXTURES:
            violation(
                "fixtures",
                f"too many fixtures: {len(fixtures)} (max: {MAX_CATALOG_FIXTURES})"
            )

        if violations:
            logger.warning(
                f"[{request_id}] [VALIDATION] Rejected search config | "
                f"fields: {', '.join(v['field'] for v in violations)}"
            )
            raise InvalidConfigError(violations)

        config = SearchConfig(
            target_odds=float(target_odds),
            max_matches=max_matches,
            min_odds_ratio=float(min_ratio),
            max_odds_ratio=float(max_ratio),
            forbidden_market_pairs=forbidden_pairs,
            alternatives_count=alternatives_count,
            exactness_tolerance=EXACTNESS_TOLERANCE,
        )

        logger.debug(
            f"[{request_id}] [VALIDATION] Search config accepted | "
            f"target={config.target_odds} | max_matches={config.max_matches} | "
            f"ratios={config.min_odds_ratio}/{config.max_odds_ratio} | "
            f"forbidden_pairs={len(config.forbidden_market_pairs)}"
        )

        return config

    @staticmethod
    def _parse_forbidden_pairs(raw_pairs: Any, violation) -> FrozenSet[MarketPair]:
        if not isinstance(raw_pairs, list):
            violation("forbiddenMarketPairs", "must be a list of [market, market] pairs")
            return frozenset()

        pairs = set()
        for index, raw_pair in enumerate(raw_pairs):
            field = f"forbiddenMarketPairs[{index}]"
            if not isinstance(raw_pair, (list, tuple)) or len(raw_pair) != 2:
                violation(field, "must be a pair of two market types")
                continue

            first = parse_market_type(raw_pair[0])
            second = parse_market_type(raw_pair[1])
            if first is None or second is None:
                violation(field, f"unknown market type in {list(raw_pair)!r}")
                continue
            if first == second:
                violation(field, "must name two different market types")
                continue

            pairs.add(frozenset((first, second)))

        return frozenset(pairs)

    def extract_fixtures(self, payload: Any) -> List[Any]:
        """Raw fixture list of an already validated request."""
        payload = self.normalize_payload(payload)
        fixtures = _lookup(payload, "fixtures", "fixtures")
        return fixtures if isinstance(fixtures, list) else []
