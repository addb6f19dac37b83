"""Composite trend score: which keywords are moving fastest relative to the batch.

Each keyword with both a YoY and a three month change gets
``0.6 * z(yoy) + 0.4 * z(three_month)``, where z is the population z-score
across those keywords. Long-term change dominates; recent momentum breaks ties.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from scipy import stats

from .extract import normalize_keyword_text
from .schema import KeywordRecord

YOY_WEIGHT = 0.6
THREE_MONTH_WEIGHT = 0.4
DEFAULT_TOP_PERCENTILE = 15.0


@dataclass(frozen=True)
class TrendScore:
    record: KeywordRecord
    score: float

    @property
    def keyword(self) -> str:
        return self.record.keyword


def _zscores(values: List[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        z = stats.zscore(arr)
    # zero spread -> everybody sits on the mean
    return np.nan_to_num(z, nan=0.0, posinf=0.0, neginf=0.0)


def composite_trend_scores(records: Sequence[KeywordRecord]) -> List[TrendScore]:
    """
    Score every record, in batch order.

    Records missing either change get -inf so they sort last. When no record
    has both changes, everybody scores 0.
    """
    valid = [
        r for r in records
        if r.yoy_change_percent is not None and r.three_month_change_percent is not None
    ]
    if not valid:
        return [TrendScore(r, 0.0) for r in records]

    yoy_z = _zscores([r.yoy_change_percent for r in valid])
    three_month_z = _zscores([r.three_month_change_percent for r in valid])
    composite = {
        id(r): float(YOY_WEIGHT * y + THREE_MONTH_WEIGHT * t)
        for r, y, t in zip(valid, yoy_z, three_month_z)
    }
    return [TrendScore(r, composite.get(id(r), -math.inf)) for r in records]


def top_trending(
    records: Sequence[KeywordRecord],
    percentile: float = DEFAULT_TOP_PERCENTILE,
) -> List[TrendScore]:
    """
    The top ``percentile`` percent of keywords by composite trend score.

    Keywords without trend data are never included. The cut rounds up, so a
    non-empty scored batch always yields at least one keyword.
    """
    scored = [s for s in composite_trend_scores(records) if s.score != -math.inf]
    ranked = sorted(scored, key=lambda s: s.score, reverse=True)
    count = math.ceil(len(ranked) * (percentile / 100))
    logging.debug(f"Top {percentile:g}% trending: {count}/{len(ranked)} keywords")
    return ranked[:count]


def is_in_top_percentile(
    keyword: str,
    records: Sequence[KeywordRecord],
    percentile: float = DEFAULT_TOP_PERCENTILE,
) -> bool:
    if not records:
        return False
    wanted = normalize_keyword_text(keyword)
    return any(normalize_keyword_text(s.keyword) == wanted for s in top_trending(records, percentile))
