# combine_engine/engine/selector.py
"""
Ranking of generated combinations against the target odds.
"""

import heapq
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_ALTERNATIVES_COUNT, EXACTNESS_TOLERANCE
from .generator import BranchPruner, SuffixOddsBounds
from .models import CatalogEntry, Combination, RankedCombination, SearchConfig, SelectionResult

logger = logging.getLogger(__name__)


class BestCombinationSelector:
    """
    Picks the combination closest to the target odds.

    Ranking key, ascending: distance to target, then negated aggregate
    confidence. The sort is stable, so combinations tied on both keys keep
    their generation order and the outcome stays deterministic.
    """

    def __init__(self, exactness_tolerance: float = EXACTNESS_TOLERANCE):
        self.exactness_tolerance = exactness_tolerance

    @staticmethod
    def ranking_key(combination: Combination, target: Decimal) -> Tuple[Decimal, float]:
        return abs(combination.total_odds - target), -combination.aggregate_confidence

    def rank(self, combination: Combination, target: Decimal) -> RankedCombination:
        difference = abs(combination.total_odds - target)
        tolerance = target * Decimal(str(self.exactness_tolerance))
        return RankedCombination(
            combination=combination,
            difference=difference,
            is_exact=difference < tolerance,
        )

    def select(
        self,
        combinations: Sequence[Combination],
        target_odds: float,
        alternatives_count: int = DEFAULT_ALTERNATIVES_COUNT,
    ) -> SelectionResult:
        """
        Rank ``combinations`` and return the best plus ranked alternatives.

        Args:
            combinations: non-empty list of scored combinations
            target_odds: the user's target
            alternatives_count: how many runners-up to return

        Returns:
            SelectionResult with ``best`` and up to ``alternatives_count``
            alternatives in ranking order

        Raises:
            ValueError: if ``combinations`` is empty; the caller handles the
                no-result outcome before selecting
        """
        if not combinations:
            raise ValueError("select() requires at least one combination")
        if alternatives_count < 0:
            raise ValueError("alternatives_count cannot be negative")

        target = Decimal(str(target_odds))
        ordered = sorted(combinations, key=lambda c: self.ranking_key(c, target))

        best = self.rank(ordered[0], target)
        alternatives = tuple(
            self.rank(c, target) for c in ordered[1:1 + alternatives_count]
        )

        logger.debug(
            f"[SELECTOR] Best total odds {float(best.combination.total_odds):.2f} "
            f"(target {target_odds}, diff {float(best.difference):.3f}, "
            f"exact={best.is_exact}) | {len(alternatives)} alternatives"
        )

        return SelectionResult(best=best, alternatives=alternatives)


class RankingBuffer:
    """
    Keeps the ``capacity`` best combinations offered so far.

    Ranking key, ascending: distance to target, negated aggregate confidence,
    discovery order. The heap root is the worst combination kept, so each
    offer costs O(log capacity) and memory stays bounded however many
    combinations stream through.
    """

    def __init__(self, target_odds: float, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.target = Decimal(str(target_odds))
        self.capacity = capacity
        self.seen = 0
        # (-difference, confidence, -order, combination)
        self._heap: List[tuple] = []

    def __len__(self) -> int:
        return len(self._heap)

    @property
    def worst_difference(self) -> Optional[Decimal]:
        """Difference of the worst kept combination once the buffer is full."""
        if len(self._heap) < self.capacity:
            return None
        return -self._heap[0][0]

    def offer(self, combination: Combination) -> bool:
        difference = abs(combination.total_odds - self.target)
        item = (-difference, combination.aggregate_confidence, -self.seen, combination)
        self.seen += 1

        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, item)
            return True
        if item > self._heap[0]:
            heapq.heapreplace(self._heap, item)
            return True
        return False

    def extend(self, combinations: Iterable[Combination]) -> "RankingBuffer":
        for combination in combinations:
            self.offer(combination)
        return self

    def ordered(self) -> List[Combination]:
        """Kept combinations, best first."""
        return [item[3] for item in sorted(self._heap, reverse=True)]


class RankingBoundPruner(BranchPruner):
    """
    Cuts branches that cannot beat the worst combination in a full
    RankingBuffer.

    A subtree is cut only when no reachable total odds lies within the
    worst kept difference of the target, so ties that the confidence key
    could still break are always explored.
    """

    def __init__(self, buffer: RankingBuffer):
        self.buffer = buffer
        self._bounds: Optional[SuffixOddsBounds] = None
        self._target = float(buffer.target)

    def prepare(self, entries: Sequence[CatalogEntry], config: SearchConfig) -> None:
        self._bounds = SuffixOddsBounds(entries, config.max_matches)

    def can_prune(self, index: int, depth: int, running_odds: Decimal) -> bool:
        worst = self.buffer.worst_difference
        if worst is None or self._bounds is None:
            return False
        margin = float(worst)
        return not self._bounds.reaches(
            index, depth, float(running_odds), self._target - margin, self._target + margin
        )

    def can_discard(self, total_odds: Decimal) -> bool:
        worst = self.buffer.worst_difference
        return worst is not None and abs(total_odds - self.buffer.target) > worst
