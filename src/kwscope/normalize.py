"""Batch min-max normalization of keyword signals.

Bounds are computed once per batch (``BatchStats``) and shared by every
strategy, so the per-keyword work is O(1) after a single O(n) pre-pass.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .schema import KeywordRecord, NormalizedSignals


# Volume above which a keyword is always treated as ultra-broad
ULTRA_BROAD_MIN_VOLUME = 5_000_000
# Share of the batch (by volume, descending) considered the head
TOP_VOLUME_SHARE = 0.01


def normalize(value: float, min_value: float, max_value: float) -> float:
    """
    Min-max scale ``value`` into [0, 1] relative to ``min_value``/``max_value``.

    Returns 0 when the range is degenerate (all values equal) instead of
    dividing by zero.
    """
    if max_value == min_value:
        return 0.0
    return (value - min_value) / (max_value - min_value)


def _clip(value: float) -> float:
    return float(max(0.0, min(1.0, value)))


@dataclass(frozen=True)
class BatchStats:
    """Per-batch aggregates shared by scoring and filtering."""
    size: int
    volume_min: float
    volume_max: float
    cpc_min: float
    cpc_max: float
    growth_min: float
    growth_max: float
    competition_min: float
    competition_max: float
    top_volume: float

    @property
    def ultra_broad_volume(self) -> float:
        """Volume above which a keyword is too broad to be efficient."""
        return max(ULTRA_BROAD_MIN_VOLUME, self.top_volume)

    @classmethod
    def from_records(cls, records: Sequence[KeywordRecord]) -> "BatchStats":
        """
        Compute signal bounds for a batch.

        CPC bounds only consider keywords with a positive average bid, so
        zero-bid keywords do not stretch the CPC scale. With no priced
        keyword at all the CPC range falls back to [0, 1].
        """
        if not records:
            return cls(0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 0.0, float(ULTRA_BROAD_MIN_VOLUME))

        volumes = np.array([r.search_volume for r in records], dtype=float)
        cpcs = np.array([r.avg_cpc for r in records], dtype=float)
        priced = cpcs[cpcs > 0]
        growths = np.array([r.growth_rate for r in records], dtype=float)
        competitions = np.array([r.competition_indexed or 0.0 for r in records], dtype=float)

        # Volume at the top-1% position of the descending volume list
        descending = np.sort(volumes)[::-1]
        top_volume = float(descending[int(math.floor(len(descending) * TOP_VOLUME_SHARE))])

        return cls(
            size=len(records),
            volume_min=float(volumes.min()),
            volume_max=float(volumes.max()),
            cpc_min=float(priced.min()) if priced.size else 0.0,
            cpc_max=float(priced.max()) if priced.size else 1.0,
            growth_min=float(growths.min()),
            growth_max=float(growths.max()),
            competition_min=float(competitions.min()),
            competition_max=float(competitions.max()),
            top_volume=top_volume or float(ULTRA_BROAD_MIN_VOLUME),
        )


def signals_for(record: KeywordRecord, stats: BatchStats) -> NormalizedSignals:
    """Normalize one keyword against precomputed batch bounds."""
    avg_cpc = record.avg_cpc
    growth_rate = record.growth_rate
    competition = normalize(record.competition_indexed or 0.0, stats.competition_min, stats.competition_max)
    return NormalizedSignals(
        normalized_volume=_clip(normalize(record.search_volume, stats.volume_min, stats.volume_max)),
        # zero-bid keywords sit below the priced range and clip to 0
        normalized_cpc=_clip(normalize(avg_cpc, stats.cpc_min, stats.cpc_max)),
        normalized_growth=_clip(normalize(growth_rate, stats.growth_min, stats.growth_max)),
        normalized_inverted_competition=_clip(1.0 - competition),
        avg_cpc=avg_cpc,
        growth_rate=growth_rate,
    )


def compute_signals(
    records: Sequence[KeywordRecord],
    stats: Optional[BatchStats] = None,
) -> List[NormalizedSignals]:
    """
    Compute normalized signals for every keyword of a batch.

    Args:
        records: Ingested keyword records (search volume > 0)
        stats: Optional precomputed bounds; computed from ``records`` if None

    Returns:
        One NormalizedSignals per record, in batch order
    """
    if stats is None:
        stats = BatchStats.from_records(records)
    logging.debug(
        f"Signal bounds: volume=[{stats.volume_min:g}, {stats.volume_max:g}] "
        f"cpc=[{stats.cpc_min:g}, {stats.cpc_max:g}] growth=[{stats.growth_min:g}, {stats.growth_max:g}]"
    )
    return [signals_for(r, stats) for r in records]
