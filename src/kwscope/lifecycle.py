"""Lifecycle classification: one mutually exclusive trend label per keyword.

The classifier is a priority-ordered cascade; the first matching rule wins.
Two rule sets exist. With at least 24 months of history the growth rules key
off year-over-year change; without it they fall back to three month change
at different cut-offs.

Per-keyword series statistics are computed once in a pre-pass
(``TrendProfile``) instead of inside each rule.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np

from .extract import competition_level_for_index, has_yoy_data as detect_yoy_data, normalize_keyword_text
from .schema import CompetitionLevel, KeywordRecord, LifecycleCategory


COMPETITION_VALUES = {
    CompetitionLevel.LOW: 0.3,
    CompetitionLevel.MEDIUM: 0.6,
    CompetitionLevel.HIGH: 0.9,
}
# Used when neither a label nor an index is known
UNKNOWN_COMPETITION_VALUE = COMPETITION_VALUES[CompetitionLevel.MEDIUM]


def competition_value(record: KeywordRecord) -> float:
    """Map the competition label (or the bucketed index) to 0.3 / 0.6 / 0.9."""
    if record.competition_label is not None:
        return COMPETITION_VALUES[record.competition_label]
    if record.competition_indexed is not None:
        return COMPETITION_VALUES[competition_level_for_index(record.competition_indexed)]
    return UNKNOWN_COMPETITION_VALUE


def coefficient_of_variation(series: Sequence[float]) -> float:
    """
    Population standard deviation over mean, in percent.

    0 for an empty series or a zero mean.
    """
    if len(series) == 0:
        return 0.0
    values = np.asarray(series, dtype=float)
    mean = float(values.mean())
    if mean == 0:
        return 0.0
    return float(values.std() / mean * 100)


@dataclass(frozen=True)
class TrendProfile:
    """Inputs of the lifecycle cascade for one keyword."""
    keyword: str
    yoy: float
    three_month: float
    bid_high: float
    volume: float
    competition_value: float
    coefficient_of_variation: float

    @classmethod
    def from_record(cls, record: KeywordRecord) -> "TrendProfile":
        return cls(
            keyword=record.keyword,
            yoy=record.yoy_change_percent or 0.0,
            three_month=record.three_month_change_percent or 0.0,
            bid_high=record.cpc_high,
            volume=record.search_volume,
            competition_value=competition_value(record),
            coefficient_of_variation=coefficient_of_variation(record.monthly_search_series),
        )


def classify_keyword(profile: TrendProfile, has_yoy_data: bool) -> LifecycleCategory:
    """Run the lifecycle cascade for one keyword. First match wins."""
    yoy = profile.yoy
    three_month = profile.three_month
    volume = profile.volume

    if has_yoy_data:
        has_growth = yoy > 20 or three_month > 20
    else:
        has_growth = three_month > 15

    # Growth tiers
    if (yoy > 1000) if has_yoy_data else (three_month > 1000):
        return LifecycleCategory.ULTRA_GROWTH
    if (yoy >= 100) if has_yoy_data else (three_month >= 80):
        return LifecycleCategory.EXTREME_GROWTH
    if (50 <= yoy < 100) if has_yoy_data else (60 <= three_month < 80):
        return LifecycleCategory.HIGH_GROWTH
    if (40 <= yoy < 50) if has_yoy_data else (40 <= three_month < 60):
        return LifecycleCategory.RISING_STAR
    if has_yoy_data and yoy > 30 and three_month > 20:
        return LifecycleCategory.GREAT_POTENTIAL
    if not has_yoy_data and three_month > 30:
        # The momentum check can never pass here; kept as found in the
        # rule set until its intent is confirmed.
        if has_yoy_data and three_month > yoy + 20:
            return LifecycleCategory.MOMENTUM_BUILDING
        return LifecycleCategory.HAS_POTENTIAL
    if has_yoy_data and three_month > yoy + 20 and yoy >= 0:
        return LifecycleCategory.MOMENTUM_BUILDING
    if (15 <= yoy < 30) if has_yoy_data else (15 <= three_month <= 30):
        return LifecycleCategory.STEADY_GROWTH
    if three_month > 30:
        return LifecycleCategory.HAS_POTENTIAL

    # Volume / value profiles
    if 25_000 <= volume <= 100_000 and has_growth:
        return LifecycleCategory.HIGH_IMPACT
    if 1_000 <= volume <= 5_000 and profile.competition_value < 0.4 and has_growth:
        return LifecycleCategory.QUICK_WIN
    if profile.coefficient_of_variation < 40 and volume >= 1_000:
        return LifecycleCategory.SOLID_PERFORMER
    if ((has_yoy_data and yoy > 30) or three_month > 30) and volume < 15_000:
        return LifecycleCategory.HIDDEN_GEM
    if profile.bid_high > 50:
        return LifecycleCategory.HIGH_VALUE
    if volume >= 100_000:
        return LifecycleCategory.HIGH_VOLUME

    # Decline
    if has_yoy_data and yoy >= 0 and three_month < -5:
        return LifecycleCategory.START_DECLINING
    if has_yoy_data and yoy < 0 and three_month < 0:
        return LifecycleCategory.DECLINING
    if not has_yoy_data and three_month < -10:
        return LifecycleCategory.DECLINING

    return LifecycleCategory.STANDARD


def classify(
    records: Sequence[KeywordRecord],
    has_yoy_data: Optional[bool] = None,
) -> Dict[str, LifecycleCategory]:
    """
    Assign one lifecycle category to every keyword of a batch.

    Args:
        records: Keyword records; rows without search volume are skipped
        has_yoy_data: Whether the batch has 24+ months of history. Detected
            from the monthly series when None.

    Returns:
        Dict mapping keyword text to its category, in batch order
    """
    batch = [r for r in records if r.search_volume > 0]
    if not batch:
        return {}
    if has_yoy_data is None:
        has_yoy_data = detect_yoy_data(batch)

    logging.debug(f"Classifying {len(batch)} keywords (yoy rules: {has_yoy_data})")
    profiles = [TrendProfile.from_record(r) for r in batch]
    return {p.keyword: classify_keyword(p, has_yoy_data) for p in profiles}


def _normalized_index(categories: Dict[str, LifecycleCategory]) -> Dict[str, LifecycleCategory]:
    index: Dict[str, LifecycleCategory] = {}
    for text, category in categories.items():
        index.setdefault(normalize_keyword_text(text), category)
    return index


def category_lookup(categories: Dict[str, LifecycleCategory]) -> Callable[[str], LifecycleCategory]:
    """
    Build a keyword -> category lookup over one classification map.

    The normalized index is built once, so looking up a whole batch stays
    linear. Matching is exact first, then case- and space-insensitive;
    keywords that were never classified are Standard.
    """
    index = _normalized_index(categories)

    def lookup(keyword: str) -> LifecycleCategory:
        if keyword in categories:
            return categories[keyword]
        return index.get(normalize_keyword_text(keyword), LifecycleCategory.STANDARD)

    return lookup


def lookup_category(categories: Dict[str, LifecycleCategory], keyword: str) -> LifecycleCategory:
    """Category for a single ``keyword``. Use ``category_lookup`` for many."""
    if keyword in categories:
        return categories[keyword]
    return category_lookup(categories)(keyword)


def category_counts(categories: Dict[str, LifecycleCategory]) -> Dict[LifecycleCategory, int]:
    """Number of keywords per category, in cascade order, empty categories omitted."""
    counts = Counter(categories.values())
    return {c: counts[c] for c in LifecycleCategory if counts[c]}


def group_by_category(categories: Dict[str, LifecycleCategory]) -> Dict[LifecycleCategory, List[str]]:
    """Keywords of each category, in cascade order."""
    groups: Dict[LifecycleCategory, List[str]] = {}
    for keyword, category in categories.items():
        groups.setdefault(category, []).append(keyword)
    return {c: groups[c] for c in LifecycleCategory if c in groups}


def filter_by_category(
    records: Iterable[KeywordRecord],
    categories: Dict[str, LifecycleCategory],
    category: LifecycleCategory,
) -> List[KeywordRecord]:
    """Records whose assigned category is ``category``."""
    lookup = category_lookup(categories)
    return [r for r in records if lookup(r.keyword) == category]
