# combine_engine/engine/generator.py
"""
Depth-first enumeration of every feasible combination.

The search walks the fixture list in order. From a partial combination it
tries each later fixture in turn and, for that fixture, each offered
candidate the ConstraintValidator accepts. A combination is emitted at the
moment it is built if it has at least two selections and its odds product
lies inside the acceptance band. Emission does not stop the branch: longer
in-band combinations are produced too. Every recursive call receives its own
immutable snapshot (tuple of choices, Decimal odds, frozenset of market
types), so emitted combinations never alias each other.

``iter_combinations`` streams results in discovery order; ``generate`` is the
list form. Extra pruning can be plugged in through BranchPruner objects
without changing either; a SearchDeadline provides coarse cooperative
cancellation between top-level branches.
"""

import logging
import time
from bisect import bisect_left
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, FrozenSet, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..config import MAX_CANDIDATES_PER_FIXTURE
from ..exceptions import GenerationLimitError, GenerationTimeoutError
from .constraints import ConstraintValidator
from .models import CatalogEntry, Combination, MarketType, SearchConfig, SelectionChoice

logger = logging.getLogger(__name__)


class SearchDeadline:
    """Cooperative cancellation token for one search call."""

    def __init__(self, seconds: Optional[float], clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self._started = clock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    def expired(self) -> bool:
        if not self.seconds:
            return False
        return self.elapsed >= self.seconds

    def check(self) -> None:
        if self.expired():
            raise GenerationTimeoutError(
                f"Combination search exceeded {self.seconds}s",
                elapsed=self.elapsed
            )


class BranchPruner:
    """
    Hook for cutting work that cannot yield a wanted combination.

    ``prepare`` runs once per search. ``can_prune(index, depth, running_odds)``
    answers whether extending the partial combination (``depth`` selections,
    product ``running_odds``) with fixtures ``index..n-1`` can still produce
    a wanted combination; the answer must stay True for every later index.
    ``can_discard(total_odds)`` drops a single in-band combination before it
    is built. A pruner must never cut a combination that is still wanted.
    """

    def prepare(self, entries: Sequence[CatalogEntry], config: SearchConfig) -> None:
        pass

    def can_prune(self, index: int, depth: int, running_odds: Decimal) -> bool:
        return False

    def can_discard(self, total_odds: Decimal) -> bool:
        return False


class SuffixOddsBounds:
    """
    Odds reachable by extending a partial combination with fixtures
    ``index..n-1``.

    For up to ``EXACT_SLOTS`` extra picks the sorted set of every product
    (one pick per fixture) is kept, so a narrow window is checked exactly.
    Longer extensions fall back to the interval between the product of the
    ``k`` lowest and the ``k`` best remaining odds.
    """

    # Float slack so rounding never prunes a valid branch
    RELATIVE_SLACK = 1e-9
    EXACT_SLOTS = 3

    def __init__(self, entries: Sequence[CatalogEntry], max_matches: int):
        self.max_matches = max_matches
        offered = [
            np.array([float(c.odds) for c in e.candidates[:MAX_CANDIDATES_PER_FIXTURE]], dtype=float)
            for e in entries
        ]
        count = len(offered)

        self.best_products: List[List[float]] = []
        self.lowest_products: List[List[float]] = []
        for index in range(count):
            best = np.sort([o.max() for o in offered[index:]])[::-1]
            lowest = np.sort([o.min() for o in offered[index:]])
            self.best_products.append(np.cumprod(best).tolist())
            self.lowest_products.append(np.cumprod(lowest).tolist())
        self.best_products.append([])
        self.lowest_products.append([])

        exact_slots = min(self.EXACT_SLOTS, max_matches)
        sets = [np.ones(1)] + [np.empty(0) for _ in range(exact_slots)]
        self.exact_products: List[List[List[float]]] = [[s.tolist() for s in sets]]
        for index in range(count - 1, -1, -1):
            extended = [np.ones(1)]
            for k in range(1, exact_slots + 1):
                picked = np.multiply.outer(offered[index], sets[k - 1]).ravel()
                extended.append(np.unique(np.concatenate([sets[k], picked])))
            sets = extended
            self.exact_products.append([s.tolist() for s in sets])
        self.exact_products.reverse()

    def reaches(self, index: int, depth: int, running: float, low: float, high: float) -> bool:
        """Whether some extension from ``index`` on has total odds in [low, high]."""
        slots = min(self.max_matches - depth, len(self.best_products[index]))
        if slots <= 0:
            return False
        low = low / running * (1 - self.RELATIVE_SLACK)
        high = high / running * (1 + self.RELATIVE_SLACK)
        exact = self.exact_products[index]
        lowest = self.lowest_products[index]
        best = self.best_products[index]

        for k in range(1, slots + 1):
            # Odds exceed 1.0, so longer extensions only go higher
            if lowest[k - 1] > high:
                break
            if best[k - 1] < low:
                continue
            if k >= len(exact):
                return True
            values = exact[k]
            position = bisect_left(values, low)
            if position < len(values) and values[position] <= high:
                return True
        return False


class OddsFeasibilityPruner(BranchPruner):
    """
    Acceptance band bound checks.

    Every odds value exceeds 1.0, so short extensions are checked against
    the exact products of the remaining fixtures and long ones against the
    lowest and best products they can reach. Subtrees that cannot land in
    the band are cut. The result set is unchanged.
    """

    def __init__(self):
        self._bounds: Optional[SuffixOddsBounds] = None
        self._band: Tuple[float, float] = (0.0, 0.0)

    def prepare(self, entries: Sequence[CatalogEntry], config: SearchConfig) -> None:
        self._bounds = SuffixOddsBounds(entries, config.max_matches)
        self._band = (float(config.min_total_odds), float(config.max_total_odds))

    def can_prune(self, index: int, depth: int, running_odds: Decimal) -> bool:
        if self._bounds is None:
            return False
        return not self._bounds.reaches(index, depth, float(running_odds), *self._band)


@dataclass
class _SearchContext:
    entries: Sequence[CatalogEntry]
    config: SearchConfig
    validator: ConstraintValidator
    min_total: Decimal
    max_total: Decimal
    emitted: int = 0
    nodes_visited: int = 0


class CombinationGenerator:
    """Exhaustive, bounded enumeration of feasible combinations."""

    def __init__(
        self,
        pruners: Sequence[BranchPruner] = (),
        deadline: Optional[SearchDeadline] = None,
        max_results: Optional[int] = None,
    ):
        self.pruners = tuple(pruners)
        self.deadline = deadline
        self.max_results = max_results
        self.last_nodes_visited = 0

    def iter_combinations(
        self,
        entries: Sequence[CatalogEntry],
        config: SearchConfig
    ) -> Iterator[Combination]:
        """
        Stream every combination satisfying cardinality, constraint and odds
        band rules, in deterministic discovery order.

        Pruners are consulted while the stream is consumed, so a pruner fed
        by the consumer tightens the rest of the search.

        Raises:
            GenerationTimeoutError: deadline expired between top-level branches
            GenerationLimitError: more than ``max_results`` combinations emitted
        """
        entries = [e for e in entries if e.candidates]
        for pruner in self.pruners:
            pruner.prepare(entries, config)

        ctx = _SearchContext(
            entries=entries,
            config=config,
            validator=ConstraintValidator(config),
            min_total=config.min_total_odds,
            max_total=config.max_total_odds,
        )

        logger.debug(
            f"[GENERATOR] Search started | fixtures={len(entries)} | "
            f"band=[{float(ctx.min_total):.2f}, {float(ctx.max_total):.2f}] | "
            f"max_matches={config.max_matches} | pruners={len(self.pruners)}"
        )

        try:
            yield from self._search(ctx, 0, (), Decimal("1"), frozenset())
        finally:
            self.last_nodes_visited = ctx.nodes_visited
            logger.debug(
                f"[GENERATOR] Search finished | combinations={ctx.emitted} | "
                f"nodes={ctx.nodes_visited}"
            )

    def generate(
        self,
        entries: Sequence[CatalogEntry],
        config: SearchConfig
    ) -> List[Combination]:
        """
        Enumerate every feasible combination.

        Args:
            entries: ordered catalog entries
            config: immutable search configuration

        Returns:
            Combinations in deterministic discovery order; empty when none fit
        """
        return list(self.iter_combinations(entries, config))

    def _pruned(self, index: int, depth: int, running_odds: Decimal) -> bool:
        return any(p.can_prune(index, depth, running_odds) for p in self.pruners)

    def _search(
        self,
        ctx: _SearchContext,
        start: int,
        partial: Tuple[SelectionChoice, ...],
        running_odds: Decimal,
        used_market_types: FrozenSet[MarketType],
    ) -> Iterator[Combination]:
        ctx.nodes_visited += 1
        depth = len(partial)
        count = len(ctx.entries)

        for index in range(start, count):
            # Top-level branch boundary
            if not partial and self.deadline is not None:
                self.deadline.check()

            if self._pruned(index, depth, running_odds):
                break

            entry = ctx.entries[index]
            for candidate in entry.candidates[:MAX_CANDIDATES_PER_FIXTURE]:
                extended_odds = running_odds * candidate.odds

                emit = (
                    depth >= 1
                    and ctx.min_total <= extended_odds <= ctx.max_total
                    and not any(p.can_discard(extended_odds) for p in self.pruners)
                )
                descend = (
                    depth + 1 < ctx.config.max_matches
                    and index + 1 < count
                    and not self._pruned(index + 1, depth + 1, extended_odds)
                )
                if not (emit or descend):
                    continue

                if not ctx.validator.is_extensible(partial, entry.fixture, candidate, used_market_types):
                    continue

                extended = partial + (SelectionChoice(entry.fixture, candidate),)

                if emit:
                    ctx.emitted += 1
                    if self.max_results is not None and ctx.emitted > self.max_results:
                        raise GenerationLimitError(
                            f"More than {self.max_results} combinations fall inside the odds band",
                            limit=self.max_results
                        )
                    yield Combination(extended)

                if descend:
                    yield from self._search(
                        ctx,
                        index + 1,
                        extended,
                        extended_odds,
                        used_market_types | {candidate.market_type},
                    )
