"""Advertising / SEO strategies: weighted scores plus eligibility filters.

Each strategy is a ``Strategy`` value holding a fixed linear combination of
normalized signals and an optional ``keep`` predicate applied before ranking.
The weights are part of the contract and must not be tuned per batch.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .normalize import BatchStats
from .schema import CompetitionLevel, KeywordRecord, NormalizedSignals


# =============================================================================
# Intent Vocabularies
# =============================================================================
# Matching is case-insensitive substring containment on the full keyword,
# so "sale" also matches "wholesale" and "vs" matches "canvas".

# Intent boost for the Best ROI score
ROI_TRANSACTIONAL_TERMS = ("buy", "purchase", "order", "shop", "sale", "subscription", "sign up")
ROI_COMMERCIAL_TERMS = (
    "price", "cost", "cheap", "deal", "discount",
    "best", "top", "review", "compare", "vs", "alternative",
)

# Modifiers that rescue a short keyword from being ultra-broad
BROAD_COMMERCIAL_MODIFIERS = (
    "buy", "purchase", "best", "top", "cheap", "near me",
    "price", "cost", "deal", "discount", "review",
)

# Low-intent detection
INTENT_TRANSACTIONAL_TERMS = (
    "buy", "purchase", "price", "cost", "cheap", "deal", "discount",
    "order", "shop", "sale", "subscription", "sign up",
)
INTENT_COMMERCIAL_TERMS = ("best", "top", "review", "compare", "vs", "alternative")
INTENT_LOCAL_TERMS = ("near me", "near", "nearby", "location")

# A capitalised word anywhere in the keyword ("Nike shoes", "iPhone case")
TITLE_CASE_PATTERN = re.compile(r"[A-Z][a-z]+")

TRANSACTIONAL_INTENT_BOOST = 0.5
COMMERCIAL_INTENT_BOOST = 0.3

DEFENSIVE_MIN_COMPETITION = 67
DEFENSIVE_MIN_VOLUME = 50_000
LONG_TAIL_MIN_WORDS = 4
BEST_ROI_MIN_CPC = 0.50


# =============================================================================
# Weight Vectors
# =============================================================================

HIGH_VALUE_WEIGHTS = {"volume": 0.45, "cpc": 0.35, "inverted_competition": 0.20}
HIGH_POTENTIAL_WEIGHTS = {"growth": 0.50, "inverted_competition": 0.30, "volume": 0.20}
QUICK_WIN_WEIGHTS = {"inverted_competition": 0.60, "volume": 0.25, "cpc": 0.15}
DEFENSIVE_WEIGHTS = {"volume": 0.50, "cpc": 0.30, "inverted_competition": 0.20}
BUDGET_FRIENDLY_WEIGHTS = {"volume": 0.50, "low_cpc": 0.35, "inverted_competition": 0.15}
LONG_TAIL_WEIGHTS = {"long_tail": 0.40, "inverted_competition": 0.30, "volume": 0.20, "cpc": 0.10}
BRAND_PROTECTION_WEIGHTS = {"volume": 0.50, "cpc": 0.30, "inverted_competition": 0.20}
BEST_ROI_WEIGHTS = {"volume": 0.35, "low_cpc": 0.35, "inverted_competition": 0.20, "intent": 0.10}
# The defensive component only applies to defensive keywords
BEST_OVERALL_WEIGHTS = {"high_value": 0.35, "quick_win": 0.30, "high_potential": 0.25, "defensive": 0.10}


def _weighted(weights: Dict[str, float], **components: float) -> float:
    return sum(weight * components[name] for name, weight in weights.items())


def _contains_any(text: str, terms) -> bool:
    return any(term in text for term in terms)


# =============================================================================
# Predicates
# =============================================================================

def is_defensive(record: KeywordRecord) -> bool:
    """High competition (index >= 67 or labelled High) and volume above 50k."""
    high_competition = (
        (record.competition_indexed or 0) >= DEFENSIVE_MIN_COMPETITION
        or record.competition_label == CompetitionLevel.HIGH
    )
    return high_competition and record.search_volume > DEFENSIVE_MIN_VOLUME


def is_brand_keyword(record: KeywordRecord, brand_name: str) -> bool:
    if not brand_name:
        return False
    return brand_name.lower() in record.keyword.lower()


def is_ultra_broad(record: KeywordRecord, stats: BatchStats) -> bool:
    """
    Head terms too broad to convert efficiently.

    Either the volume sits above max(5M, top-1% batch volume), or the keyword
    is shorter than three words and carries no commercial modifier.
    """
    if record.search_volume > stats.ultra_broad_volume:
        return True
    has_modifier = _contains_any(record.keyword.lower(), BROAD_COMMERCIAL_MODIFIERS)
    return record.word_count < 3 and not has_modifier


def has_low_intent(record: KeywordRecord) -> bool:
    """No transactional, commercial or local term anywhere in the keyword."""
    text = record.keyword.lower()
    return not (
        _contains_any(text, INTENT_TRANSACTIONAL_TERMS)
        or _contains_any(text, INTENT_COMMERCIAL_TERMS)
        or _contains_any(text, INTENT_LOCAL_TERMS)
    )


def is_suspiciously_branded(record: KeywordRecord) -> bool:
    """
    Likely a navigational brand query.

    Huge, cheap, uncontested keywords (volume > 100k, competition < 33,
    avg CPC < 1) or anything with a Title-Case word in it.
    """
    cheap_head_term = (
        record.search_volume > 100_000
        and (record.competition_indexed or 0) < 33
        and record.avg_cpc < 1
    )
    return cheap_head_term or bool(TITLE_CASE_PATTERN.search(record.keyword))


def intent_boost(keyword: str) -> float:
    text = keyword.lower()
    if _contains_any(text, ROI_TRANSACTIONAL_TERMS):
        return TRANSACTIONAL_INTENT_BOOST
    if _contains_any(text, ROI_COMMERCIAL_TERMS):
        return COMMERCIAL_INTENT_BOOST
    return 0.0


# =============================================================================
# Scores
# =============================================================================

def high_value_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    return _weighted(
        HIGH_VALUE_WEIGHTS,
        volume=signals.normalized_volume,
        cpc=signals.normalized_cpc,
        inverted_competition=signals.normalized_inverted_competition,
    )


def high_potential_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    return _weighted(
        HIGH_POTENTIAL_WEIGHTS,
        growth=signals.normalized_growth,
        inverted_competition=signals.normalized_inverted_competition,
        volume=signals.normalized_volume,
    )


def quick_win_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    return _weighted(
        QUICK_WIN_WEIGHTS,
        inverted_competition=signals.normalized_inverted_competition,
        volume=signals.normalized_volume,
        cpc=signals.normalized_cpc,
    )


def defensive_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    return _weighted(
        DEFENSIVE_WEIGHTS,
        volume=signals.normalized_volume,
        cpc=signals.normalized_cpc,
        inverted_competition=signals.normalized_inverted_competition,
    )


def budget_friendly_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    return _weighted(
        BUDGET_FRIENDLY_WEIGHTS,
        volume=signals.normalized_volume,
        low_cpc=1 - signals.normalized_cpc,
        inverted_competition=signals.normalized_inverted_competition,
    )


def long_tail_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    return _weighted(
        LONG_TAIL_WEIGHTS,
        long_tail=1.0 if record.word_count >= LONG_TAIL_MIN_WORDS else 0.0,
        inverted_competition=signals.normalized_inverted_competition,
        volume=signals.normalized_volume,
        cpc=signals.normalized_cpc,
    )


def brand_protection_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    return _weighted(
        BRAND_PROTECTION_WEIGHTS,
        volume=signals.normalized_volume,
        cpc=signals.normalized_cpc,
        inverted_competition=signals.normalized_inverted_competition,
    )


def best_roi_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    return _weighted(
        BEST_ROI_WEIGHTS,
        volume=signals.normalized_volume,
        low_cpc=1 - signals.normalized_cpc,
        inverted_competition=signals.normalized_inverted_competition,
        intent=intent_boost(record.keyword),
    )


def best_overall_score(record: KeywordRecord, signals: NormalizedSignals) -> float:
    score = (
        BEST_OVERALL_WEIGHTS["high_value"] * high_value_score(record, signals)
        + BEST_OVERALL_WEIGHTS["quick_win"] * quick_win_score(record, signals)
        + BEST_OVERALL_WEIGHTS["high_potential"] * high_potential_score(record, signals)
    )
    if is_defensive(record):
        score += BEST_OVERALL_WEIGHTS["defensive"] * defensive_score(record, signals)
    return score


# =============================================================================
# Strategy Table
# =============================================================================

@dataclass(frozen=True)
class StrategyContext:
    """Batch-level inputs the filters need besides the keyword itself."""
    stats: BatchStats
    brand_name: str = ""


ScoreFn = Callable[[KeywordRecord, NormalizedSignals], float]
KeepFn = Callable[[KeywordRecord, NormalizedSignals, StrategyContext], bool]


@dataclass(frozen=True)
class Strategy:
    name: str
    description: str
    score: ScoreFn
    keep: Optional[KeepFn] = None
    weights: Dict[str, float] = field(default_factory=dict)

    def accepts(self, record: KeywordRecord, signals: NormalizedSignals, context: StrategyContext) -> bool:
        return self.keep is None or self.keep(record, signals, context)


def _keep_best_roi(record: KeywordRecord, signals: NormalizedSignals, context: StrategyContext) -> bool:
    return (
        signals.avg_cpc >= BEST_ROI_MIN_CPC
        and not is_ultra_broad(record, context.stats)
        and not has_low_intent(record)
        and not is_suspiciously_branded(record)
    )


HIGH_VALUE = "High Value"
HIGH_POTENTIAL = "High Potential"
QUICK_WIN = "Quick Win"
DEFENSIVE = "Defensive"
BUDGET_FRIENDLY = "Budget-Friendly"
LONG_TAIL = "Long-Tail"
BRAND_PROTECTION = "Brand Protection"
BEST_ROI = "Best ROI"
BEST_OVERALL = "Best Overall"

STRATEGIES: List[Strategy] = [
    Strategy(
        HIGH_VALUE,
        "Keywords with high search volume and CPC, ideal for revenue generation",
        high_value_score,
        weights=HIGH_VALUE_WEIGHTS,
    ),
    Strategy(
        HIGH_POTENTIAL,
        "Keywords with strong growth trends and lower competition",
        high_potential_score,
        weights=HIGH_POTENTIAL_WEIGHTS,
    ),
    Strategy(
        QUICK_WIN,
        "Low competition keywords with decent volume, easy to rank",
        quick_win_score,
        weights=QUICK_WIN_WEIGHTS,
    ),
    Strategy(
        DEFENSIVE,
        "High competition, high volume keywords likely to be branded terms",
        defensive_score,
        keep=lambda record, signals, context: is_defensive(record),
        weights=DEFENSIVE_WEIGHTS,
    ),
    Strategy(
        BUDGET_FRIENDLY,
        "High volume keywords with low CPC, maximize ROI on limited budgets",
        budget_friendly_score,
        keep=lambda record, signals, context: signals.avg_cpc > 0,
        weights=BUDGET_FRIENDLY_WEIGHTS,
    ),
    Strategy(
        LONG_TAIL,
        "Specific 4+ word phrases with targeted intent and lower competition",
        long_tail_score,
        keep=lambda record, signals, context: record.word_count >= LONG_TAIL_MIN_WORDS,
        weights=LONG_TAIL_WEIGHTS,
    ),
    Strategy(
        BRAND_PROTECTION,
        "Keywords containing your brand name to protect brand presence",
        brand_protection_score,
        keep=lambda record, signals, context: is_brand_keyword(record, context.brand_name),
        weights=BRAND_PROTECTION_WEIGHTS,
    ),
    Strategy(
        BEST_ROI,
        "Commercial or transactional intent, CPC of at least $0.50 and achievable competition; "
        "excludes ultra-broad, low-intent and navigational/branded terms",
        best_roi_score,
        keep=_keep_best_roi,
        weights=BEST_ROI_WEIGHTS,
    ),
    Strategy(
        BEST_OVERALL,
        "Balanced keywords across all metrics for optimal performance",
        best_overall_score,
        weights=BEST_OVERALL_WEIGHTS,
    ),
]


def get_strategy(name: str) -> Strategy:
    """Look up a strategy by display name (case-insensitive)."""
    for strategy in STRATEGIES:
        if strategy.name.lower() == name.lower():
            return strategy
    raise KeyError(f"Unknown strategy: {name}")
