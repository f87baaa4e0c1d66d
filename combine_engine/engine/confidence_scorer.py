# combine_engine/engine/confidence_scorer.py

import numpy as np
from typing import List, Sequence
import logging

from .models import Combination

logger = logging.getLogger(__name__)


class ConfidenceScorer:
    """
    Aggregate confidence of a combination.

    The score is the arithmetic mean of the member confidences (each 0-100),
    so it stays within [0, 100]. An empty combination scores 0.
    """

    def score(self, combination: Combination) -> float:
        """
        Calculate the aggregate confidence of a combination.

        Args:
            combination: Combination to score

        Returns:
            Mean member confidence, 0.0 for an empty combination
        """
        if not combination.selections:
            return 0.0

        confidences = np.array(
            [choice.candidate.confidence for choice in combination.selections],
            dtype=float
        )
        return float(np.mean(confidences))

    def score_many(self, combinations: Sequence[Combination]) -> List[Combination]:
        """Return copies of ``combinations`` carrying their aggregate confidence."""
        scored = [c.with_confidence(self.score(c)) for c in combinations]

        if scored:
            logger.debug(
                f"Scored {len(scored)} combinations | "
                f"mean confidence={np.mean([c.aggregate_confidence for c in scored]):.2f}"
            )

        return scored
