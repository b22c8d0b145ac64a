"""Tests for review rating aggregates."""

from __future__ import annotations

import math
from types import SimpleNamespace

from reviewsite.stats import DetailedStats, ReviewStats, detailed_stats, round1, simple_stats


def _row(overall=4, teacher=4, material=4, connection=4, price=None, satisfaction=None):
    return {
        "overall_rating": overall,
        "teacher_quality": teacher,
        "material_quality": material,
        "connection_quality": connection,
        "price_rating": price,
        "satisfaction_rating": satisfaction,
    }


class TestSimpleStats:
    def test_empty(self):
        assert simple_stats([]) == ReviewStats(count=0, avg=None)
        assert simple_stats(None) == ReviewStats(count=0, avg=None)

    def test_mean(self):
        assert simple_stats([{"rating": 4}, {"rating": 5}, {"rating": 3}]) == ReviewStats(count=3, avg=4.0)

    def test_non_finite_ratings_are_ignored(self):
        items = [
            {"rating": 4},
            {"rating": 5},
            {"rating": None},
            {"rating": "5"},
            {"rating": math.nan},
            {"rating": math.inf},
            {"rating": True},
            {},
        ]
        assert simple_stats(items) == ReviewStats(count=2, avg=4.5)

    def test_accepts_objects(self):
        assert simple_stats([SimpleNamespace(rating=3.5)]).avg == 3.5


def test_round1_is_half_up():
    assert round1(4.25) == 4.3
    assert round1(4.35) == 4.4
    assert round1(4.24) == 4.2
    assert round1(13 / 3) == 4.3


class TestDetailedStats:
    def test_empty(self):
        assert detailed_stats([]) == DetailedStats(
            count=0,
            overall=None,
            teacher_quality=None,
            material_quality=None,
            connection_quality=None,
            price_count=0,
            price=None,
            satisfaction_count=0,
            satisfaction=None,
        )

    def test_incomplete_core_row_excluded_but_optional_counted(self):
        rows = [
            _row(5, 5, 5, 5),
            _row(4, 4, 4, 3),
            _row(1, 1, None, 1, price=2, satisfaction=3),
        ]
        stats = detailed_stats(rows)
        assert stats.count == 2
        assert stats.overall == 4.5
        assert stats.material_quality == 4.5
        assert stats.connection_quality == 4.0
        assert stats.price_count == 1
        assert stats.price == 2.0
        assert stats.satisfaction_count == 1
        assert stats.satisfaction == 3.0

    def test_optional_dimensions_are_independent(self):
        rows = [_row(price=5), _row(satisfaction=4), _row(price=4, satisfaction=2)]
        stats = detailed_stats(rows)
        assert stats.count == 3
        assert (stats.price_count, stats.price) == (2, 4.5)
        assert (stats.satisfaction_count, stats.satisfaction) == (2, 3.0)

    def test_non_finite_core_value_disqualifies_row(self):
        stats = detailed_stats([_row(math.nan, 5, 5, 5), _row(3, 3, 3, 3)])
        assert stats.count == 1
        assert stats.overall == 3.0
