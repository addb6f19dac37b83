"""Tests for per-strategy ranking."""

import pytest

from kwscope.normalize import BatchStats, compute_signals
from kwscope.ranking import rank, score_and_rank, score_strategy
from kwscope.schema import KeywordRecord
from kwscope.strategies import STRATEGIES, StrategyContext, get_strategy


@pytest.fixture
def batch():
    records = [
        KeywordRecord(keyword=f"buy running shoes size {i}", search_volume=100 * (i + 1),
                      cpc_low=1, cpc_high=1 + i / 10, competition_indexed=(i * 7) % 100,
                      yoy_change_percent=i * 5 - 20)
        for i in range(25)
    ]
    records.append(KeywordRecord(keyword="Acme trail shoes", search_volume=800, cpc_low=2, cpc_high=3,
                                 competition_indexed=40))
    records.append(KeywordRecord(keyword="Nike shoes", search_volume=90_000, cpc_low=1, cpc_high=2,
                                 competition_indexed=80))
    return records


class TestScoreAndRank:
    """End-to-end strategy ranking."""

    def test_one_result_per_strategy_in_order(self, batch):
        results = score_and_rank(batch)
        assert [r.strategy for r in results] == [s.name for s in STRATEGIES]

    def test_at_most_ten_sorted_descending(self, batch):
        for result in score_and_rank(batch):
            assert len(result.results) <= 10
            scores = [item.score for item in result.results]
            assert scores == sorted(scores, reverse=True)

    def test_top_n(self, batch):
        for result in score_and_rank(batch, top_n=3):
            assert len(result.results) <= 3

    def test_brand_protection_needs_brand(self, batch):
        by_name = {r.strategy: r for r in score_and_rank(batch)}
        assert by_name["Brand Protection"].results == []

        by_name = {r.strategy: r for r in score_and_rank(batch, brand_name="acme")}
        assert [i.keyword for i in by_name["Brand Protection"].results] == ["Acme trail shoes"]

    def test_best_roi_excludes_branded(self, batch):
        by_name = {r.strategy: r for r in score_and_rank(batch)}
        keywords = [i.keyword for i in by_name["Best ROI"].results]
        assert "Nike shoes" not in keywords
        assert "Acme trail shoes" not in keywords
        assert keywords

    def test_long_tail_excludes_short_keywords(self, batch):
        by_name = {r.strategy: r for r in score_and_rank(batch)}
        assert all(i.record.word_count >= 4 for i in by_name["Long-Tail"].results)

    def test_defensive_only_defensive(self, batch):
        by_name = {r.strategy: r for r in score_and_rank(batch)}
        assert [i.keyword for i in by_name["Defensive"].results] == ["Nike shoes"]

    def test_zero_volume_ignored(self):
        records = [KeywordRecord(keyword="ghost", search_volume=0), KeywordRecord(keyword="real one here", search_volume=10)]
        for result in score_and_rank(records):
            assert "ghost" not in [i.keyword for i in result.results]

    def test_empty_batch(self):
        results = score_and_rank([])
        assert len(results) == len(STRATEGIES)
        assert all(r.results == [] for r in results)

    def test_does_not_mutate_batch(self, batch):
        before = [r.model_dump() for r in batch]
        score_and_rank(batch, brand_name="acme")
        assert [r.model_dump() for r in batch] == before


class TestRank:
    """Stable ordering."""

    def test_ties_keep_batch_order(self):
        records = [KeywordRecord(keyword=f"same keyword {i}", search_volume=100) for i in range(12)]
        stats = BatchStats.from_records(records)
        signals = compute_signals(records, stats)
        result = score_strategy(get_strategy("Quick Win"), records, signals, StrategyContext(stats=stats))

        assert [i.keyword for i in result.results] == [f"same keyword {i}" for i in range(10)]

    def test_rank_truncates(self):
        records = [KeywordRecord(keyword=f"k{i}", search_volume=i + 1) for i in range(5)]
        stats = BatchStats.from_records(records)
        signals = compute_signals(records, stats)
        scored = score_strategy(get_strategy("High Value"), records, signals, StrategyContext(stats=stats), top_n=5).results

        top = rank(scored, top_n=2)
        assert [i.keyword for i in top] == ["k4", "k3"]
