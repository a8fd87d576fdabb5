from __future__ import annotations

import pytest

from barops.series.baseline import (
    ComparableNight,
    average_series,
    baseline_fraction_at_index,
    build_baseline_fractions,
    build_fallback_fractions,
    interpolated_baseline_fraction,
    normalize_fractions,
)


def test_even_nights_give_linear_baseline():
    series = [[100, 100, 100, 100]] * 4
    assert build_baseline_fractions(series) == pytest.approx([0.25, 0.5, 0.75, 1.0])


def test_shorter_nights_repeat_their_last_value():
    fractions = build_baseline_fractions([[50, 50], [100, 0, 0, 0]])
    assert fractions == pytest.approx([0.75, 1.0, 1.0, 1.0])


def test_empty_history_uses_sentinel():
    assert build_baseline_fractions([]) == [0.02]
    assert build_baseline_fractions([[0, 0], [0, 0, 0]]) == [0.02]


def test_baseline_is_monotone_and_bounded():
    fractions = build_baseline_fractions([[10, 0, 30, 5, 0], [0, 0, 50], [7, 7, 7, 7, 7, 7]])
    assert all(0.0 <= value <= 1.0 for value in fractions)
    assert all(a <= b + 1e-12 for a, b in zip(fractions, fractions[1:]))


def test_fallback_fractions():
    assert build_fallback_fractions(4) == pytest.approx([0.25, 0.5, 0.75, 1.0])
    assert build_fallback_fractions(1) == [1.0]
    assert build_fallback_fractions(0) == [0.0]


def test_normalize_fractions_truncates_or_extends():
    assert normalize_fractions([0.1, 0.2, 0.3], 2) == pytest.approx([0.1, 0.2])
    assert normalize_fractions([0.5], 3) == pytest.approx([0.5, 0.75, 1.0])
    assert normalize_fractions([], 2) == pytest.approx([0.5, 1.0])


def test_baseline_lookups():
    fractions = [0.25, 0.5, 0.75, 1.0]
    assert baseline_fraction_at_index(fractions, 10) == 1.0
    assert baseline_fraction_at_index(fractions, -3) == 0.25
    assert baseline_fraction_at_index([], 0) == 0.02
    assert interpolated_baseline_fraction(fractions, 22.5, 15) == pytest.approx(0.625)


def test_average_series_only_uses_rows_with_the_index():
    assert average_series([[1, 2], [3]]) == pytest.approx([2.0, 2.0])
    assert average_series([]) == []


def test_comparable_night_from_bucket_revenue():
    night = ComparableNight.from_bucket_revenue([100, 300], [20.0, 22.0])
    assert night.total_revenue_cents == 400
    assert night.cumulative_fractions == pytest.approx([0.25, 1.0])
    assert night.to_dict()["wagePercentByBucket"] == [20.0, 22.0]
