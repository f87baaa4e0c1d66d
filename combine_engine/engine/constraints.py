# combine_engine/engine/constraints.py
"""
Legality rules for extending a partial combination.
"""

from typing import AbstractSet, Optional, Sequence

from .models import CandidateSelection, Fixture, MarketType, SearchConfig, SelectionChoice

FIXTURE_ALREADY_USED = "fixture_uniqueness"
FORBIDDEN_PAIR = "forbidden_pair"
CAPACITY = "capacity"
DIVERSIFICATION = "diversification"


class ConstraintValidator:
    """
    Pure predicate deciding whether a candidate may join a partial combination.

    Rules are checked in order and the first failure rejects:
    fixture uniqueness, forbidden same-fixture market pair, capacity,
    market diversification.
    """

    def __init__(self, config: SearchConfig):
        self.config = config

    def rejection_reason(
        self,
        partial: Sequence[SelectionChoice],
        fixture: Fixture,
        candidate: CandidateSelection,
        used_market_types: AbstractSet[MarketType],
    ) -> Optional[str]:
        """Name of the first violated rule, or None if the extension is legal."""
        if any(choice.fixture.fixture_id == fixture.fixture_id for choice in partial):
            return FIXTURE_ALREADY_USED

        conflicting = self.config.conflicting_markets(candidate.market_type)
        if conflicting:
            for choice in partial:
                if (choice.fixture.fixture_id == fixture.fixture_id
                        and choice.candidate.market_type in conflicting):
                    return FORBIDDEN_PAIR

        if len(partial) >= self.config.max_matches:
            return CAPACITY

        if partial and len(set(used_market_types) | {candidate.market_type}) < 2:
            return DIVERSIFICATION

        return None

    def is_extensible(
        self,
        partial: Sequence[SelectionChoice],
        fixture: Fixture,
        candidate: CandidateSelection,
        used_market_types: AbstractSet[MarketType],
    ) -> bool:
        return self.rejection_reason(partial, fixture, candidate, used_market_types) is None
