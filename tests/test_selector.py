from __future__ import annotations

from decimal import Decimal

import pytest

from combine_engine.engine.models import Combination, Fixture, SearchConfig, SelectionChoice
from combine_engine.engine.confidence_scorer import ConfidenceScorer
from combine_engine.engine.generator import CombinationGenerator, OddsFeasibilityPruner
from combine_engine.engine.selector import BestCombinationSelector, RankingBoundPruner, RankingBuffer


@pytest.fixture
def make_combination(make_candidate):
    """Two-leg combination with the given odds and per-leg confidence."""

    def _make(first_odds, second_odds, confidence=70.0, tag="x") -> Combination:
        combination = Combination((
            SelectionChoice(Fixture(f"{tag}1", "A vs B"), make_candidate("victory", first_odds, confidence)),
            SelectionChoice(Fixture(f"{tag}2", "C vs D"), make_candidate("total_goals", second_odds, confidence)),
        ))
        return combination.with_confidence(confidence)

    return _make


def test_tie_on_difference_prefers_higher_confidence(make_combination):
    below = make_combination(1.75, 2.0, confidence=60, tag="low")   # 3.5
    above = make_combination(1.5, 3.0, confidence=85, tag="high")   # 4.5

    result = BestCombinationSelector().select([below, above], 4.0)

    assert result.best.combination is above
    assert result.best.difference == Decimal("0.5")
    assert [alt.combination for alt in result.alternatives] == [below]


def test_closest_combination_wins_over_confidence(make_combination):
    close = make_combination(2.0, 1.95, confidence=40, tag="close")   # 3.9
    far = make_combination(2.5, 2.5, confidence=95, tag="far")        # 6.25

    result = BestCombinationSelector().select([far, close], 4.0)

    assert result.best.combination is close


def test_alternatives_are_ranked_bounded_and_exclude_best(make_combination):
    combinations = [
        make_combination(1.5, 1.5, tag="a"),    # 2.25
        make_combination(2.0, 2.0, tag="b"),    # 4.0
        make_combination(1.9, 2.0, tag="c"),    # 3.8
        make_combination(2.5, 2.0, tag="d"),    # 5.0
        make_combination(3.0, 3.0, tag="e"),    # 9.0
        make_combination(2.1, 2.0, tag="f"),    # 4.2
    ]
    selector = BestCombinationSelector()

    result = selector.select(combinations, 4.0, alternatives_count=3)

    assert result.best.combination.total_odds == Decimal("4.00")
    assert len(result.alternatives) == 3
    assert result.best.combination not in [alt.combination for alt in result.alternatives]

    keys = [selector.ranking_key(alt.combination, Decimal("4.0")) for alt in result.alternatives]
    assert keys == sorted(keys)
    assert keys[0] >= selector.ranking_key(result.best.combination, Decimal("4.0"))


def test_best_is_optimal_over_the_evaluated_set(make_combination):
    combinations = [
        make_combination(1.6, 2.4, confidence=70, tag="a"),   # 3.84
        make_combination(1.7, 2.4, confidence=90, tag="b"),   # 4.08
        make_combination(1.6, 2.6, confidence=80, tag="c"),   # 4.16
        make_combination(2.0, 1.92, confidence=95, tag="d"),  # 3.84
    ]

    result = BestCombinationSelector().select(combinations, 4.0)
    best_diff = result.best.difference

    for combination in combinations:
        diff = abs(combination.total_odds - Decimal("4.0"))
        assert diff >= best_diff
        if diff == best_diff:
            assert combination.aggregate_confidence <= result.best.combination.aggregate_confidence


def test_full_ties_keep_generation_order(make_combination):
    first = make_combination(2.0, 2.0, confidence=70, tag="first")
    second = make_combination(2.0, 2.0, confidence=70, tag="second")

    result = BestCombinationSelector().select([first, second], 4.0)

    assert result.best.combination is first
    assert result.alternatives[0].combination is second


def test_exact_match_classification(make_combination):
    selector = BestCombinationSelector(exactness_tolerance=0.10)
    target = Decimal("4.0")

    assert selector.rank(make_combination(1.9, 2.0), target).is_exact         # diff 0.2
    assert not selector.rank(make_combination(1.75, 2.0), target).is_exact    # diff 0.5
    assert not selector.rank(make_combination(2.2, 2.0), target).is_exact     # diff 0.4, boundary


def test_zero_alternatives(make_combination):
    result = BestCombinationSelector().select(
        [make_combination(2.0, 2.0, tag="a"), make_combination(1.9, 2.0, tag="b")],
        4.0,
        alternatives_count=0,
    )

    assert result.alternatives == ()


def test_empty_input_is_rejected():
    with pytest.raises(ValueError):
        BestCombinationSelector().select([], 4.0)


def test_negative_alternatives_count_is_rejected(make_combination):
    with pytest.raises(ValueError):
        BestCombinationSelector().select([make_combination(2.0, 2.0)], 4.0, alternatives_count=-1)


def test_ranked_combination_serializes_difference(make_combination):
    ranked = BestCombinationSelector().rank(make_combination(1.9, 2.0, confidence=75), Decimal("4.0"))

    data = ranked.to_dict()

    assert data["totalOdds"] == 3.8
    assert data["difference"] == 0.2
    assert data["isExact"] is True
    assert data["aggregateConfidence"] == 75.0
    assert data["legCount"] == 2
    assert data["selections"][0]["fixtureId"] == "x1"
    assert data["selections"][0]["marketType"] == "victory"


def test_ranking_buffer_keeps_the_sorted_head(make_combination):
    combinations = [
        make_combination(1.5, 1.5, confidence=60, tag="a"),   # 2.25
        make_combination(2.0, 2.0, confidence=50, tag="b"),   # 4.0
        make_combination(1.9, 2.0, confidence=70, tag="c"),   # 3.8
        make_combination(2.1, 2.0, confidence=70, tag="d"),   # 4.2
        make_combination(2.0, 2.1, confidence=80, tag="e"),   # 4.2
        make_combination(2.0, 2.0, confidence=50, tag="f"),   # 4.0, full tie with b
        make_combination(3.0, 3.0, confidence=99, tag="g"),   # 9.0
    ]
    expected = BestCombinationSelector().select(combinations, 4.0, alternatives_count=3)

    buffer = RankingBuffer(4.0, capacity=4).extend(combinations)
    kept = BestCombinationSelector().select(buffer.ordered(), 4.0, alternatives_count=3)

    assert buffer.seen == len(combinations)
    assert len(buffer) == 4
    assert kept.best.combination is expected.best.combination
    assert [a.combination for a in kept.alternatives] == [a.combination for a in expected.alternatives]
    assert buffer.ordered()[:2] == [combinations[1], combinations[5]]


def test_ranking_buffer_reports_worst_difference_once_full(make_combination):
    buffer = RankingBuffer(4.0, capacity=2)

    assert buffer.offer(make_combination(2.5, 2.0, tag="a"))    # 5.0
    assert buffer.worst_difference is None
    assert buffer.offer(make_combination(1.9, 2.0, tag="b"))    # 3.8
    assert buffer.worst_difference == Decimal("1.00")
    assert buffer.offer(make_combination(2.1, 2.0, tag="c"))    # 4.2
    assert buffer.worst_difference == Decimal("0.20")
    assert not buffer.offer(make_combination(3.0, 3.0, tag="d"))


def test_ranking_buffer_rejects_zero_capacity():
    with pytest.raises(ValueError):
        RankingBuffer(4.0, capacity=0)


@pytest.mark.parametrize("target,max_matches", [(6.0, 3), (25.0, 5), (60.0, 7)])
def test_bounded_search_finds_the_exhaustive_top_ranks(make_entry, make_candidate, target, max_matches):
    markets = ["victory", "total_goals", "btts", "corners", "handicap", "shots_on_target"]
    entries = [
        make_entry(
            f"f{i}",
            make_candidate(markets[i % 6], 1.55 + 0.07 * (i % 5), 55 + 3 * i),
            make_candidate(markets[(i + 3) % 6], 1.65 + 0.06 * (i % 4), 85 - 2 * i),
        )
        for i in range(10)
    ]
    config = SearchConfig(target_odds=target, max_matches=max_matches)
    scorer = ConfidenceScorer()
    selector = BestCombinationSelector()

    everything = scorer.score_many(CombinationGenerator().generate(entries, config))
    expected = selector.select(everything, target, alternatives_count=4)

    buffer = RankingBuffer(target, capacity=5)
    generator = CombinationGenerator(pruners=[OddsFeasibilityPruner(), RankingBoundPruner(buffer)])
    for combination in generator.iter_combinations(entries, config):
        buffer.offer(combination.with_confidence(scorer.score(combination)))
    actual = selector.select(buffer.ordered(), target, alternatives_count=4)

    def signatures(result):
        ranked = (result.best,) + tuple(result.alternatives)
        return [
            tuple((c.fixture.fixture_id, c.candidate.market_type.value) for c in r.combination.selections)
            for r in ranked
        ]

    assert signatures(actual) == signatures(expected)
    assert [r.difference for r in (actual.best,) + tuple(actual.alternatives)] == \
        [r.difference for r in (expected.best,) + tuple(expected.alternatives)]
    assert buffer.seen < len(everything)
