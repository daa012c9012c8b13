from decimal import Decimal

import pytest

from app.services.aggregation import (
    StoreAggregate,
    format_average,
    rank_top_stores,
    rating_distribution,
    store_stats,
    summarize,
    weighted_average,
)
from app.services.errors import InvalidArgumentError


def test_store_stats_mixed_scores():
    stats = store_stats([5, 5, 4, 3, 1])
    assert stats.count == 5
    assert stats.average == Decimal("3.60")
    assert str(stats.average) == "3.60"
    assert stats.distribution == {1: 1, 2: 0, 3: 1, 4: 1, 5: 2}


def test_store_stats_empty_set_has_zero_average():
    stats = store_stats([])
    assert stats.count == 0
    assert str(stats.average) == "0.00"
    assert stats.distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}


def test_average_serializes_with_two_decimals():
    data = store_stats([4, 4]).model_dump(mode="json")
    assert data["average"] == "4.00"


def test_format_average_rounds_half_up():
    assert format_average(2, 3) == Decimal("0.67")
    assert format_average(7, 2) == Decimal("3.50")
    assert format_average(0, 0) == Decimal("0.00")


def test_summarize_rejects_out_of_range_scores():
    with pytest.raises(InvalidArgumentError):
        summarize({6: 1})


def test_rating_distribution_always_lists_every_level_descending():
    buckets = rating_distribution({5: 3, 1: 2})
    assert [(b.score, b.count) for b in buckets] == [(5, 3), (4, 0), (3, 0), (2, 0), (1, 2)]


def test_rank_top_stores_skips_unrated_and_breaks_ties_by_count():
    aggregates = [
        StoreAggregate(store_id=1, count=0, total=0),
        StoreAggregate(store_id=2, count=2, total=9),  # 4.50, count 2
        StoreAggregate(store_id=3, count=10, total=45),  # 4.50, count 10
        StoreAggregate(store_id=4, count=4, total=18),  # 4.50, count 4
        StoreAggregate(store_id=5, count=1, total=5),  # 5.00
    ]
    ranked = rank_top_stores(aggregates, 10)
    assert [a.store_id for a in ranked] == [5, 3, 4, 2]


def test_rank_top_stores_breaks_full_ties_by_store_id_and_truncates():
    aggregates = [
        StoreAggregate(store_id=9, count=2, total=8),
        StoreAggregate(store_id=3, count=2, total=8),
        StoreAggregate(store_id=6, count=2, total=8),
    ]
    assert [a.store_id for a in rank_top_stores(aggregates, 2)] == [3, 6]


def test_rank_top_stores_uses_exact_average_not_rounded_one():
    # 899/200 = 4.495 displays as 4.50 but ranks below a true 4.50
    aggregates = [
        StoreAggregate(store_id=1, count=200, total=899),
        StoreAggregate(store_id=2, count=2, total=9),
    ]
    ranked = rank_top_stores(aggregates, 5)
    assert ranked[0].average == ranked[1].average == Decimal("4.50")
    assert [a.store_id for a in ranked] == [2, 1]


def test_weighted_average_counts_every_rating():
    average, total = weighted_average(
        [StoreAggregate(store_id=1, count=1, total=5), StoreAggregate(store_id=2, count=3, total=3)]
    )
    assert total == 4
    assert average == Decimal("2.00")


def test_weighted_average_of_nothing():
    assert weighted_average([]) == (Decimal("0.00"), 0)
