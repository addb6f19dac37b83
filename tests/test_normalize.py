"""Tests for batch normalization."""

import pytest

from kwscope.normalize import ULTRA_BROAD_MIN_VOLUME, BatchStats, compute_signals, normalize
from kwscope.schema import KeywordRecord


def _record(keyword, volume, cpc=0.0, competition=None, yoy=None, three_month=None):
    return KeywordRecord(
        keyword=keyword,
        search_volume=volume,
        cpc_low=cpc,
        cpc_high=cpc,
        competition_indexed=competition,
        yoy_change_percent=yoy,
        three_month_change_percent=three_month,
    )


class TestNormalize:
    """Min-max scaling."""

    def test_basic(self):
        assert normalize(5, 0, 10) == 0.5

    def test_degenerate_range_is_zero(self):
        assert normalize(3, 3, 3) == 0.0


class TestComputeSignals:
    """Batch signal computation."""

    def test_volume_scale(self):
        records = [_record("a", 100), _record("b", 1000), _record("c", 10000)]
        signals = compute_signals(records)

        assert signals[0].normalized_volume == 0.0
        assert signals[1].normalized_volume == pytest.approx(900 / 9900)
        assert signals[2].normalized_volume == 1.0

    def test_equal_cpc_normalizes_to_zero(self):
        records = [_record("a", 100, cpc=2), _record("b", 200, cpc=2)]
        signals = compute_signals(records)

        assert all(s.normalized_cpc == 0.0 for s in signals)

    def test_zero_cpc_ignored_for_bounds(self):
        records = [_record("free", 100, cpc=0), _record("low", 100, cpc=1), _record("high", 100, cpc=3)]
        stats = BatchStats.from_records(records)
        signals = compute_signals(records, stats)

        assert stats.cpc_min == 1
        assert stats.cpc_max == 3
        assert signals[0].normalized_cpc == 0.0
        assert signals[1].normalized_cpc == 0.0
        assert signals[2].normalized_cpc == 1.0

    def test_no_priced_keywords(self):
        stats = BatchStats.from_records([_record("a", 100), _record("b", 200)])
        assert (stats.cpc_min, stats.cpc_max) == (0.0, 1.0)

    def test_inverted_competition(self):
        records = [_record("easy", 100, competition=0), _record("hard", 100, competition=100)]
        signals = compute_signals(records)

        assert signals[0].normalized_inverted_competition == 1.0
        assert signals[1].normalized_inverted_competition == 0.0

    def test_equal_competition_inverts_to_one(self):
        records = [_record("a", 100, competition=50), _record("b", 200, competition=50)]
        signals = compute_signals(records)

        assert all(s.normalized_inverted_competition == 1.0 for s in signals)

    def test_growth_uses_yoy_then_three_month(self):
        records = [_record("a", 100, yoy=-50), _record("b", 100, three_month=50), _record("c", 100)]
        signals = compute_signals(records)

        assert [s.growth_rate for s in signals] == [-50, 50, 0]
        assert signals[0].normalized_growth == 0.0
        assert signals[1].normalized_growth == 1.0
        assert signals[2].normalized_growth == 0.5

    def test_signals_in_unit_interval(self):
        records = [
            _record("a", 1, cpc=0, competition=None, yoy=-100),
            _record("b", 5_000_000, cpc=50, competition=100, three_month=900),
            _record("c", 42, cpc=0.3, competition=12),
        ]
        for s in compute_signals(records):
            for value in (s.normalized_volume, s.normalized_cpc, s.normalized_growth, s.normalized_inverted_competition):
                assert 0.0 <= value <= 1.0


class TestBatchStats:
    """Ultra-broad threshold."""

    def test_floor_at_five_million(self):
        stats = BatchStats.from_records([_record("a", 100), _record("b", 2000)])
        assert stats.top_volume == 2000
        assert stats.ultra_broad_volume == ULTRA_BROAD_MIN_VOLUME

    def test_top_percent_position(self):
        # 200 keywords: index floor(200 * 0.01) = 2 of the descending list
        records = [_record(f"kw{i}", v) for i, v in enumerate([9e6, 8e6, 7e6] + [10] * 197)]
        stats = BatchStats.from_records(records)

        assert stats.top_volume == 7e6
        assert stats.ultra_broad_volume == 7e6

    def test_empty_batch(self):
        stats = BatchStats.from_records([])
        assert stats.size == 0
        assert stats.ultra_broad_volume == ULTRA_BROAD_MIN_VOLUME
