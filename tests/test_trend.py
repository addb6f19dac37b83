"""Tests for the composite trend score."""

import math

import pytest

from kwscope.schema import KeywordRecord
from kwscope.trend import composite_trend_scores, is_in_top_percentile, top_trending


def _record(keyword, yoy, three_month):
    return KeywordRecord(keyword=keyword, search_volume=100, yoy_change_percent=yoy, three_month_change_percent=three_month)


@pytest.fixture
def records():
    return [
        _record("rocket", 400, 80),
        _record("climber", 100, 20),
        _record("flat", 0, 0),
        _record("sinking", -50, -30),
        KeywordRecord(keyword="unknown", search_volume=100, yoy_change_percent=10),
    ]


class TestCompositeScore:
    """0.6 * z(yoy) + 0.4 * z(three month)."""

    def test_ordering(self, records):
        scores = {s.keyword: s.score for s in composite_trend_scores(records)}
        assert scores["rocket"] > scores["climber"] > scores["flat"] > scores["sinking"]

    def test_missing_data_sorts_last(self, records):
        scores = {s.keyword: s.score for s in composite_trend_scores(records)}
        assert scores["unknown"] == -math.inf

    def test_zscores_centered(self, records):
        valid = [s.score for s in composite_trend_scores(records) if s.score != -math.inf]
        assert sum(valid) == pytest.approx(0.0, abs=1e-9)

    def test_no_trend_data_scores_zero(self):
        records = [KeywordRecord(keyword="a", search_volume=1), KeywordRecord(keyword="b", search_volume=1)]
        assert [s.score for s in composite_trend_scores(records)] == [0.0, 0.0]

    def test_identical_changes(self):
        records = [_record("a", 10, 10), _record("b", 10, 10)]
        assert [s.score for s in composite_trend_scores(records)] == [0.0, 0.0]


class TestTopTrending:
    """Top percentile selection."""

    def test_rounds_up(self, records):
        top = top_trending(records, percentile=15)
        assert [t.keyword for t in top] == ["rocket"]

    def test_half(self, records):
        top = top_trending(records, percentile=50)
        assert [t.keyword for t in top] == ["rocket", "climber"]

    def test_never_includes_missing(self, records):
        top = top_trending(records, percentile=100)
        assert "unknown" not in [t.keyword for t in top]
        assert len(top) == 4

    def test_membership(self, records):
        assert is_in_top_percentile("ROCKET", records)
        assert not is_in_top_percentile("sinking", records)
        assert not is_in_top_percentile("rocket", [])
