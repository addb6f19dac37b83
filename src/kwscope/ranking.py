"""Rank keywords per strategy and assemble the top-N lists."""

import logging
from typing import List, Optional, Sequence

from .normalize import BatchStats, compute_signals
from .schema import KeywordRecord, NormalizedSignals, ScoredKeyword, StrategyResult
from .strategies import STRATEGIES, Strategy, StrategyContext

DEFAULT_TOP_N = 10


def rank(scored: Sequence[ScoredKeyword], top_n: int = DEFAULT_TOP_N) -> List[ScoredKeyword]:
    """
    Sort by score descending and keep the first ``top_n``.

    ``sorted`` is stable, so equal scores keep their batch order.
    """
    return sorted(scored, key=lambda s: s.score, reverse=True)[:top_n]


def score_strategy(
    strategy: Strategy,
    records: Sequence[KeywordRecord],
    signals: Sequence[NormalizedSignals],
    context: StrategyContext,
    top_n: int = DEFAULT_TOP_N,
) -> StrategyResult:
    """Filter, score and rank one strategy over a normalized batch."""
    scored = [
        ScoredKeyword(record=record, signals=sig, strategy=strategy.name, score=strategy.score(record, sig))
        for record, sig in zip(records, signals)
        if strategy.accepts(record, sig, context)
    ]
    logging.debug(f"{strategy.name}: {len(scored)}/{len(records)} keywords eligible")
    return StrategyResult(
        strategy=strategy.name,
        description=strategy.description,
        results=rank(scored, top_n),
    )


def score_and_rank(
    records: Sequence[KeywordRecord],
    brand_name: str = "",
    top_n: int = DEFAULT_TOP_N,
    strategies: Optional[Sequence[Strategy]] = None,
) -> List[StrategyResult]:
    """
    Score a keyword batch under every strategy.

    Signals are normalized once for the whole batch and shared by all
    strategies. Lists are independent views: a keyword may appear in
    several of them or in none.

    Args:
        records: Keyword records; rows without search volume are ignored
        brand_name: Brand used by the Brand Protection strategy
        top_n: Maximum entries per strategy
        strategies: Strategies to run (default: all, in display order)

    Returns:
        One StrategyResult per strategy, in strategy order
    """
    strategies = STRATEGIES if strategies is None else strategies
    batch = [r for r in records if r.search_volume > 0]
    if not batch:
        return [StrategyResult(strategy=s.name, description=s.description) for s in strategies]

    stats = BatchStats.from_records(batch)
    signals = compute_signals(batch, stats)
    context = StrategyContext(stats=stats, brand_name=brand_name or "")

    logging.debug(f"Scoring {len(batch)} keywords across {len(strategies)} strategies")
    return [score_strategy(s, batch, signals, context, top_n) for s in strategies]
