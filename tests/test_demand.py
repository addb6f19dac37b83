"""Tests for the Demand and Interest scores."""

import pytest

from kwscope.demand import (
    demand_competition_score,
    demand_cpc_score,
    demand_trend_score,
    demand_volume_score,
    interest_competition_score,
    interest_cpc_score,
    interest_trend_score,
    interest_volume_score,
    is_seasonal,
    linear_trend,
    recent_momentum,
    score_demand,
    score_keyword,
)
from kwscope.schema import IntentType, KeywordRecord

RISING = tuple(float(v) for v in range(100, 1300, 50))      # 24 months, +50 per month
FLAT = (1000.0,) * 24


def _record(keyword="running shoes", series=FLAT, competition=None, cpc=0.0, volume=1000):
    return KeywordRecord(
        keyword=keyword,
        search_volume=volume,
        cpc_low=cpc,
        cpc_high=cpc,
        competition_indexed=competition,
        monthly_search_series=series,
    )


class TestSeriesStatistics:
    def test_perfect_line(self):
        slope, r_squared = linear_trend([10, 20, 30, 40])
        assert slope == pytest.approx(10)
        assert r_squared == pytest.approx(1.0)

    def test_flat_series_has_no_fit(self):
        assert linear_trend(FLAT) == (0.0, 0.0)

    def test_too_short(self):
        assert linear_trend([5]) == (0.0, 0.0)
        assert linear_trend([]) == (0.0, 0.0)

    def test_momentum_needs_six_points(self):
        assert recent_momentum([1, 2, 3, 10, 20], overall_slope=1.0) == 0

    def test_momentum_directions(self):
        accelerating = [100, 100, 100, 100, 200, 300]
        slowing = [100, 200, 300, 400, 400, 400]
        assert recent_momentum(accelerating, overall_slope=linear_trend(accelerating)[0]) == 1
        assert recent_momentum(slowing, overall_slope=linear_trend(slowing)[0]) == -1
        assert recent_momentum(RISING, overall_slope=50.0) == 0

    def test_momentum_flat_overall(self):
        assert recent_momentum(FLAT, overall_slope=0.0) == 0

    def test_seasonality(self):
        assert is_seasonal([100, 100, 100, 100, 100, 200] * 2) is True
        assert is_seasonal([100, 110] * 6) is False
        assert is_seasonal([100, 300] * 5) is False
        assert is_seasonal([0.0] * 12) is False


class TestTrendScores:
    """Growth is the slope as a percent of the mean, gated by R^2."""

    def test_strong_growth(self):
        # slope 50 over mean 675 -> 7.4% per month
        assert demand_trend_score(RISING) == 10
        assert interest_trend_score(RISING) == 10

    def test_stable(self):
        assert demand_trend_score(FLAT) == 4
        assert interest_trend_score(FLAT) == 5

    def test_short_series_defaults(self):
        assert demand_trend_score([100, 200]) == 4
        assert interest_trend_score([100, 200]) == 5

    def test_steep_decline(self):
        falling = tuple(reversed(RISING))
        assert demand_trend_score(falling) == 1
        assert interest_trend_score(falling) == 1

    def test_noisy_decline_only_counts_for_interest(self):
        noisy = [1000, 200, 1000, 200, 900, 150, 850, 100, 800, 50]
        _, r_squared = linear_trend(noisy)
        assert r_squared < 0.6
        assert demand_trend_score(noisy) == 4
        assert interest_trend_score(noisy) == 1


class TestComponentScores:
    @pytest.mark.parametrize("volume,demand,interest", [
        (50_000, 10, 10),
        (10_000, 7, 8),
        (1_000, 4, 5),
        (999, 1, 2),
    ])
    def test_volume(self, volume, demand, interest):
        assert demand_volume_score(volume) == demand
        assert interest_volume_score(volume) == interest

    @pytest.mark.parametrize("competition,demand,interest", [
        (71, 1, 10),
        (70, 1, 7),
        (50, 4, 7),
        (40, 7, 7),
        (30, 7, 4),
        (20, 10, 4),
        (0, 10, 2),
    ])
    def test_competition(self, competition, demand, interest):
        assert demand_competition_score(competition) == demand
        assert interest_competition_score(competition) == interest

    @pytest.mark.parametrize("cpc,demand,interest", [
        (0.5, 1, 6),
        (1.0, 4, 10),
        (3.0, 7, 10),
        (5.0, 7, 7),
        (7.0, 10, 7),
        (9.0, 10, 4),
    ])
    def test_cpc(self, cpc, demand, interest):
        assert demand_cpc_score(cpc) == demand
        assert interest_cpc_score(cpc) == interest


class TestScoreKeyword:
    def test_transactional_keyword(self):
        score = score_keyword(_record("buy running shoes", series=RISING, competition=20, cpc=8.0))

        # last 12 months average 975 -> lowest volume tier
        assert score.intent == IntentType.TRANSACTIONAL
        assert score.demand.volume_score == 1
        assert score.demand_score == 1 + 10 + 10 + 10 + 10
        assert score.interest_score == 2 + 10 + 4 + 4 + 5
        assert score.demand_interpretation == "Very High Demand - Prioritize"
        assert score.interest_interpretation == "Moderate - Emerging Curiosity"
        assert score.demand.seasonality_flag is True

    def test_informational_keyword(self):
        score = score_keyword(_record("how to lace running shoes", competition=80, cpc=2.0))

        assert score.demand_score == 4 + 4 + 1 + 4 + 3
        assert score.interest_score == 5 + 5 + 10 + 10 + 10
        assert score.demand_interpretation == "Low Demand - Monitor/Avoid"
        assert score.interest_interpretation == "Very High Interest - Cultural Buzz"

    def test_no_history_uses_average_volume(self):
        score = score_keyword(_record(series=(), volume=60_000))

        assert score.demand.volume_score == 10
        assert score.demand.trend_score == 4
        assert score.interest.trend_score == 5
        assert score.demand.recent_momentum == 0
        assert score.demand.seasonality_flag is False

    def test_missing_competition_counts_as_zero(self):
        score = score_keyword(_record(competition=None))
        assert score.demand.competition_score == 10
        assert score.interest.competition_score == 2

    def test_explicit_intent(self):
        score = score_keyword(_record("running shoes"), intent=IntentType.NAVIGATIONAL)
        assert score.intent == IntentType.NAVIGATIONAL
        assert score.demand.intent_score == 5
        assert score.interest.intent_score == 8

    def test_scores_stay_in_range(self):
        falling = tuple(reversed(RISING))
        score = score_keyword(_record(series=falling, competition=100, cpc=0.0))
        assert 0 <= score.demand_score <= 50
        assert 0 <= score.interest_score <= 50

    def test_to_dict(self):
        data = score_keyword(_record("buy running shoes")).to_dict()

        assert data["intent"] == "Transactional"
        assert set(data["demand_breakdown"]) == {
            "volume_score", "trend_score", "competition_score", "cpc_score",
            "intent_score", "recent_momentum", "seasonality_flag",
        }
        assert "recent_momentum" not in data["interest_breakdown"]
        assert data["demand_interpretation"] == score_keyword(_record("buy running shoes")).demand_interpretation


def test_score_demand_batch_order_and_overrides():
    records = [_record("buy spikes"), _record("spikes")]
    scores = score_demand(records, {"spikes": IntentType.COMMERCIAL})

    assert [s.keyword for s in scores] == ["buy spikes", "spikes"]
    assert [s.intent for s in scores] == [IntentType.TRANSACTIONAL, IntentType.COMMERCIAL]
    assert score_demand([]) == []
