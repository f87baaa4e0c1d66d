# combine_engine/engine/catalog.py
"""
Selection catalog ingestion.

Turns the raw fixture dicts handed over by the catalog provider into
immutable CatalogEntry values. Malformed candidates are dropped here, at
ingestion, and reported back instead of failing the whole request:
upstream annotation often fails for a subset of fixtures.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from ..config import DEFAULT_CONFIDENCE, MAX_CANDIDATES_PER_FIXTURE
from ..exceptions import MalformedCandidateError
from .models import CandidateSelection, CatalogEntry, Fixture, parse_market_type

logger = logging.getLogger(__name__)


@dataclass
class IngestionReport:
    dropped_fixtures: List[Dict[str, Any]] = field(default_factory=list)
    dropped_candidates: List[Dict[str, Any]] = field(default_factory=list)
    truncated_fixtures: List[Dict[str, Any]] = field(default_factory=list)
    accepted_fixtures: int = 0
    accepted_candidates: int = 0

    def drop_fixture(self, fixture_id: Optional[str], reason: str) -> None:
        self.dropped_fixtures.append({"fixtureId": fixture_id, "reason": reason})

    def drop_candidate(self, fixture_id: str, index: int, reason: str) -> None:
        self.dropped_candidates.append(
            {"fixtureId": fixture_id, "index": index, "reason": reason}
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "droppedFixtures": list(self.dropped_fixtures),
            "droppedCandidates": list(self.dropped_candidates),
            "truncatedFixtures": list(self.truncated_fixtures),
            "acceptedFixtures": self.accepted_fixtures,
            "acceptedCandidates": self.accepted_candidates,
        }


def _extract_fixture_id(raw: Dict[str, Any]) -> Optional[str]:
    fixture_id = raw.get("id")
    if fixture_id is None:
        fixture_id = raw.get("fixture_id", raw.get("fixtureId"))
    if fixture_id is None or isinstance(fixture_id, bool):
        return None
    fixture_id = str(fixture_id).strip()
    return fixture_id or None


def _extract_teams(raw: Dict[str, Any]) -> Optional[str]:
    teams = raw.get("teams")
    if isinstance(teams, str) and teams.strip():
        return teams.strip()
    home = raw.get("homeTeam", raw.get("home_team"))
    away = raw.get("awayTeam", raw.get("away_team"))
    if isinstance(home, str) and isinstance(away, str) and home.strip() and away.strip():
        return f"{home.strip()} vs {away.strip()}"
    return None


def parse_candidate(raw: Any, fixture_id: Optional[str] = None) -> CandidateSelection:
    """
    Parse one raw candidate dict.

    Raises:
        MalformedCandidateError: missing fields, unknown market type,
            odds <= 1.0 or confidence outside [0, 100]
    """
    if not isinstance(raw, dict):
        raise MalformedCandidateError("candidate is not an object", fixture_id=fixture_id)

    raw_type = raw.get("marketType", raw.get("market_type", raw.get("type")))
    market_type = parse_market_type(raw_type)
    if market_type is None:
        raise MalformedCandidateError(
            f"unknown market type: {raw_type!r}", fixture_id=fixture_id
        )

    value = raw.get("value")
    if not isinstance(value, str) or not value.strip():
        raise MalformedCandidateError("missing value", fixture_id=fixture_id)

    raw_odds = raw.get("odds")
    if raw_odds is None or isinstance(raw_odds, bool):
        raise MalformedCandidateError("missing odds", fixture_id=fixture_id)
    try:
        odds = Decimal(str(raw_odds))
    except InvalidOperation:
        raise MalformedCandidateError(f"odds not numeric: {raw_odds!r}", fixture_id=fixture_id)
    if not odds.is_finite() or odds <= 1:
        raise MalformedCandidateError(f"odds must exceed 1.0 (got {raw_odds})", fixture_id=fixture_id)

    raw_confidence = raw.get("confidence", DEFAULT_CONFIDENCE)
    if raw_confidence is None:
        raw_confidence = DEFAULT_CONFIDENCE
    try:
        confidence = float(raw_confidence)
    except (TypeError, ValueError):
        raise MalformedCandidateError(
            f"confidence not numeric: {raw_confidence!r}", fixture_id=fixture_id
        )
    if not 0.0 <= confidence <= 100.0:
        raise MalformedCandidateError(
            f"confidence must be within 0-100 (got {raw_confidence})", fixture_id=fixture_id
        )

    explanation = raw.get("explanation")
    return CandidateSelection(
        market_type=market_type,
        value=value.strip(),
        odds=odds,
        confidence=confidence,
        explanation=explanation if isinstance(explanation, str) else None,
    )


def build_catalog(
    raw_fixtures: List[Any],
    max_candidates: int = MAX_CANDIDATES_PER_FIXTURE,
) -> Tuple[List[CatalogEntry], IngestionReport]:
    """
    Build the working set of catalog entries.

    Args:
        raw_fixtures: fixture dicts with ``id``, ``teams`` and ``candidates``
        max_candidates: candidates considered per fixture, surplus is ignored

    Returns:
        (entries in input order, ingestion report)
    """
    report = IngestionReport()
    entries: List[CatalogEntry] = []
    seen_ids = set()

    for position, raw in enumerate(raw_fixtures):
        if not isinstance(raw, dict):
            report.drop_fixture(None, f"fixture at position {position} is not an object")
            logger.warning(f"[CATALOG] Dropped fixture at position {position}: not an object")
            continue

        fixture_id = _extract_fixture_id(raw)
        if fixture_id is None:
            report.drop_fixture(None, f"fixture at position {position} has no id")
            logger.warning(f"[CATALOG] Dropped fixture at position {position}: missing id")
            continue

        if fixture_id in seen_ids:
            report.drop_fixture(fixture_id, "duplicate fixture id")
            logger.warning(f"[CATALOG] Dropped duplicate fixture {fixture_id}")
            continue

        teams = _extract_teams(raw)
        if teams is None:
            report.drop_fixture(fixture_id, "missing teams")
            logger.warning(f"[CATALOG] Dropped fixture {fixture_id}: missing teams")
            continue

        raw_candidates = raw.get("candidates")
        if raw_candidates is None:
            raw_candidates = raw.get("elements")
        if not isinstance(raw_candidates, list):
            report.drop_fixture(fixture_id, "candidates is not a list")
            logger.warning(f"[CATALOG] Dropped fixture {fixture_id}: candidates is not a list")
            continue

        if len(raw_candidates) > max_candidates:
            report.truncated_fixtures.append(
                {"fixtureId": fixture_id, "offered": len(raw_candidates)}
            )
            logger.warning(
                f"[CATALOG] Fixture {fixture_id} offered {len(raw_candidates)} candidates, "
                f"keeping the first {max_candidates}"
            )

        candidates = []
        for index, raw_candidate in enumerate(raw_candidates[:max_candidates]):
            try:
                candidates.append(parse_candidate(raw_candidate, fixture_id))
            except MalformedCandidateError as e:
                report.drop_candidate(fixture_id, index, e.message)
                logger.warning(
                    f"[CATALOG] Dropped candidate {index} of fixture {fixture_id}: {e.message}"
                )

        if not candidates:
            report.drop_fixture(fixture_id, "no valid candidates")
            logger.warning(f"[CATALOG] Dropped fixture {fixture_id}: no valid candidates")
            continue

        seen_ids.add(fixture_id)
        entries.append(CatalogEntry(Fixture(fixture_id, teams), tuple(candidates)))
        report.accepted_candidates += len(candidates)

    report.accepted_fixtures = len(entries)

    logger.info(
        f"[CATALOG] Catalog built: {report.accepted_fixtures} fixtures, "
        f"{report.accepted_candidates} candidates | "
        f"dropped {len(report.dropped_fixtures)} fixtures, "
        f"{len(report.dropped_candidates)} candidates"
    )

    return entries, report
