"""Demand and Interest scores (0-50) from a keyword's monthly history.

Both scores add five 1-10 component scores: volume, trend, competition,
CPC and intent. They read the same signals in opposite directions. Demand
rewards commercial pressure (high CPC, transactional intent, little
competition). Interest rewards curiosity (informational intent, crowded
topics, mid-range CPC). Demand also gets a +/-1 recent momentum modifier.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from .intent import classify_intent
from .schema import IntentType, KeywordRecord

MAX_SCORE = 50
RECENT_MONTHS = 12
MIN_TREND_POINTS = 3
MIN_MOMENTUM_POINTS = 6
MOMENTUM_THRESHOLD = 25.0
SEASONALITY_AMPLITUDE = 0.3

DEMAND_INTERPRETATIONS = (
    (40, "Very High Demand - Prioritize"),
    (30, "Strong - Good for Growth"),
    (20, "Moderate - Nurture"),
)
DEMAND_FALLBACK = "Low Demand - Monitor/Avoid"
INTEREST_INTERPRETATIONS = (
    (40, "Very High Interest - Cultural Buzz"),
    (30, "Strong Interest - Build Authority"),
    (20, "Moderate - Emerging Curiosity"),
)
INTEREST_FALLBACK = "Low Interest - Limited Awareness"


# =============================================================================
# Series statistics
# =============================================================================

def linear_trend(values: Sequence[float]) -> Tuple[float, float]:
    """
    Least-squares slope and R^2 of ``values`` against their month index.

    R^2 is 0 for a flat series and clipped to [0, 1]. Fewer than two points
    give (0, 0).
    """
    y = np.asarray(values, dtype=float)
    if len(y) < 2:
        return 0.0, 0.0
    fit = stats.linregress(np.arange(len(y), dtype=float), y)
    slope = float(np.nan_to_num(fit.slope))
    r_squared = float(np.clip(np.nan_to_num(fit.rvalue ** 2), 0.0, 1.0))
    return slope, r_squared


def monthly_growth(values: Sequence[float]) -> Tuple[float, float, float]:
    """Slope, R^2 and the slope as a percent of the mean volume."""
    slope, r_squared = linear_trend(values)
    mean = float(np.mean(values)) if len(values) else 0.0
    growth = slope / mean * 100 if mean > 0 else 0.0
    return slope, r_squared, growth


def recent_momentum(values: Sequence[float], overall_slope: float) -> int:
    """+1 / -1 when the last three months trend 25% faster / slower than the whole series."""
    if len(values) < MIN_MOMENTUM_POINTS or overall_slope == 0:
        return 0
    recent_slope, _ = linear_trend(values[-3:])
    change = (recent_slope - overall_slope) / abs(overall_slope) * 100
    if change >= MOMENTUM_THRESHOLD:
        return 1
    if change <= -MOMENTUM_THRESHOLD:
        return -1
    return 0


def is_seasonal(values: Sequence[float]) -> bool:
    if len(values) < 12:
        return False
    mean = float(np.mean(values))
    if mean <= 0:
        return False
    return bool((max(values) - min(values)) / mean > SEASONALITY_AMPLITUDE)


# =============================================================================
# Component scores
# =============================================================================

def demand_trend_score(values: Sequence[float]) -> int:
    if len(values) < MIN_TREND_POINTS:
        return 4
    _, r2, g = monthly_growth(values)
    if g >= 7 and r2 > 0.8:
        return 10
    elif 3 <= g < 7 and r2 > 0.7:
        return 8
    elif 1 <= g < 3 and r2 > 0.6:
        return 6
    elif -1 <= g < 1 and r2 > 0.5:
        return 4
    elif -3 <= g < -1:
        return 2
    elif g < -3 and r2 > 0.6:
        return 1
    return 4


def interest_trend_score(values: Sequence[float]) -> int:
    if len(values) < MIN_TREND_POINTS:
        return 5
    _, r2, g = monthly_growth(values)
    if g >= 7 and r2 > 0.8:
        return 10
    elif 3 <= g < 7 and r2 > 0.7:
        return 9
    elif 1 <= g < 3 and r2 > 0.6:
        return 7
    elif -1 <= g < 1 and r2 > 0.5:
        return 5
    elif -3 <= g < -1:
        return 3
    elif g < -3:
        return 1
    return 5


def demand_volume_score(avg_volume: float) -> int:
    if avg_volume >= 50_000:
        return 10
    if avg_volume >= 10_000:
        return 7
    if avg_volume >= 1_000:
        return 4
    return 1


def interest_volume_score(avg_volume: float) -> int:
    if avg_volume >= 50_000:
        return 10
    if avg_volume >= 10_000:
        return 8
    if avg_volume >= 1_000:
        return 5
    return 2


def demand_competition_score(competition: float) -> int:
    # open markets are easier to win
    if competition >= 70:
        return 1
    if competition >= 50:
        return 4
    if competition >= 30:
        return 7
    return 10


def interest_competition_score(competition: float) -> int:
    # crowded topics are widely talked about
    if competition > 70:
        return 10
    if competition >= 40:
        return 7
    if competition >= 20:
        return 4
    return 2


def demand_cpc_score(avg_cpc: float) -> int:
    if avg_cpc >= 7:
        return 10
    if avg_cpc >= 3:
        return 7
    if avg_cpc >= 1:
        return 4
    return 1


def interest_cpc_score(avg_cpc: float) -> int:
    if avg_cpc < 1:
        return 6
    if avg_cpc <= 3:
        return 10
    if avg_cpc <= 7:
        return 7
    return 4


DEMAND_INTENT_SCORES = {
    IntentType.TRANSACTIONAL: 10,
    IntentType.COMMERCIAL: 7,
    IntentType.NAVIGATIONAL: 5,
    IntentType.INFORMATIONAL: 3,
}
INTEREST_INTENT_SCORES = {
    IntentType.INFORMATIONAL: 10,
    IntentType.COMMERCIAL: 8,
    IntentType.NAVIGATIONAL: 8,
    IntentType.TRANSACTIONAL: 5,
}


def _interpret(score: float, bands, fallback: str) -> str:
    for floor, label in bands:
        if score >= floor:
            return label
    return fallback


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class DemandBreakdown:
    volume_score: int
    trend_score: int
    competition_score: int
    cpc_score: int
    intent_score: int
    recent_momentum: int
    seasonality_flag: bool


@dataclass(frozen=True)
class InterestBreakdown:
    volume_score: int
    trend_score: int
    competition_score: int
    cpc_score: int
    intent_score: int


@dataclass(frozen=True)
class DemandScore:
    keyword: str
    intent: IntentType
    demand_score: float
    interest_score: float
    demand: DemandBreakdown
    interest: InterestBreakdown

    @property
    def demand_interpretation(self) -> str:
        return _interpret(self.demand_score, DEMAND_INTERPRETATIONS, DEMAND_FALLBACK)

    @property
    def interest_interpretation(self) -> str:
        return _interpret(self.interest_score, INTEREST_INTERPRETATIONS, INTEREST_FALLBACK)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "intent": self.intent.value,
            "demand_score": self.demand_score,
            "interest_score": self.interest_score,
            "demand_breakdown": asdict(self.demand),
            "interest_breakdown": asdict(self.interest),
            "demand_interpretation": self.demand_interpretation,
            "interest_interpretation": self.interest_interpretation,
        }


def score_keyword(record: KeywordRecord, intent: Optional[IntentType] = None) -> DemandScore:
    """
    Demand and Interest scores for one keyword.

    The volume components use the mean of the last 12 months, or the
    average monthly searches when the record has no history. A missing
    competition index counts as 0. ``intent`` defaults to the rule-based
    classification of the keyword text.
    """
    series = [float(v) for v in record.monthly_search_series]
    recent = series[-RECENT_MONTHS:]
    avg_volume = float(np.mean(recent)) if recent else float(record.search_volume)
    competition = record.competition_indexed or 0.0
    if intent is None:
        intent = classify_intent(record.keyword)

    overall_slope, _ = linear_trend(series)
    demand = DemandBreakdown(
        volume_score=demand_volume_score(avg_volume),
        trend_score=demand_trend_score(series),
        competition_score=demand_competition_score(competition),
        cpc_score=demand_cpc_score(record.avg_cpc),
        intent_score=DEMAND_INTENT_SCORES[intent],
        recent_momentum=recent_momentum(series, overall_slope),
        seasonality_flag=is_seasonal(series),
    )
    interest = InterestBreakdown(
        volume_score=interest_volume_score(avg_volume),
        trend_score=interest_trend_score(series),
        competition_score=interest_competition_score(competition),
        cpc_score=interest_cpc_score(record.avg_cpc),
        intent_score=INTEREST_INTENT_SCORES[intent],
    )

    demand_base = (
        demand.volume_score + demand.trend_score + demand.competition_score
        + demand.cpc_score + demand.intent_score
    )
    interest_total = (
        interest.volume_score + interest.trend_score + interest.competition_score
        + interest.cpc_score + interest.intent_score
    )
    return DemandScore(
        keyword=record.keyword,
        intent=intent,
        demand_score=round(float(min(MAX_SCORE, max(0, demand_base + demand.recent_momentum))), 2),
        interest_score=round(float(min(MAX_SCORE, max(0, interest_total))), 2),
        demand=demand,
        interest=interest,
    )


def score_demand(
    records: Iterable[KeywordRecord],
    intents: Optional[Dict[str, IntentType]] = None,
) -> List[DemandScore]:
    """Score a batch in order. ``intents`` overrides the classified intent per keyword."""
    intents = intents or {}
    scores = [score_keyword(r, intents.get(r.keyword)) for r in records]
    logging.debug(f"Scored demand/interest for {len(scores)} keywords")
    return scores
