"""kwscope - keyword strategy scoring and lifecycle classification."""

# Import the main entry points and typed config classes for convenience
from kwscope.config import (
    KwscopeConfig,
    RankingConfig,
    LifecycleConfig,
    TrendConfig,
    OutputConfig,
    load_config,
    ConfigValidationError,
)
from kwscope.demand import score_demand
from kwscope.extract import ingest
from kwscope.intent import classify_intent
from kwscope.lifecycle import classify, lookup_category
from kwscope.ranking import score_and_rank
from kwscope.schema import IntentType, KeywordRecord, LifecycleCategory, ScoredKeyword, StrategyResult

__all__ = [
    # Modules
    "schema",
    "extract",
    "normalize",
    "strategies",
    "ranking",
    "lifecycle",
    "trend",
    "intent",
    "demand",
    "io",
    "pipeline",
    "config",
    # Core API
    "ingest",
    "score_and_rank",
    "classify",
    "lookup_category",
    "classify_intent",
    "score_demand",
    "IntentType",
    "KeywordRecord",
    "LifecycleCategory",
    "ScoredKeyword",
    "StrategyResult",
    # Config types
    "KwscopeConfig",
    "RankingConfig",
    "LifecycleConfig",
    "TrendConfig",
    "OutputConfig",
    "load_config",
    "ConfigValidationError",
]

__version__ = "1.0.0"
