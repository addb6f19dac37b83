"""
Keyword data models for kwscope.

Uses Pydantic V2 for strict validation with type coercion and custom validators.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, ConfigDict


# ============================================================================
# Enum Definitions
# ============================================================================

class CompetitionLevel(str, Enum):
    """Keyword Planner competition buckets."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class LifecycleCategory(str, Enum):
    """Mutually exclusive growth/volume lifecycle labels."""
    ULTRA_GROWTH = "Ultra Growth"
    EXTREME_GROWTH = "Extreme Growth"
    HIGH_GROWTH = "High Growth"
    RISING_STAR = "Rising Star"
    GREAT_POTENTIAL = "Great Potential"
    MOMENTUM_BUILDING = "Momentum Building"
    STEADY_GROWTH = "Steady Growth"
    HAS_POTENTIAL = "Has Potential"
    HIGH_IMPACT = "High Impact"
    QUICK_WIN = "Quick Win"
    SOLID_PERFORMER = "Solid Performer"
    HIDDEN_GEM = "Hidden Gem"
    HIGH_VALUE = "High Value"
    HIGH_VOLUME = "High Volume"
    START_DECLINING = "Start Declining"
    DECLINING = "Declining"
    STANDARD = "Standard"


class IntentType(str, Enum):
    """Search intent, checked in declaration order."""
    TRANSACTIONAL = "Transactional"
    COMMERCIAL = "Commercial"
    INFORMATIONAL = "Informational"
    NAVIGATIONAL = "Navigational"


# ============================================================================
# Keyword Data Models
# ============================================================================

class KeywordRecord(BaseModel):
    """
    One keyword row of a batch, as produced by the signal extractor.

    Records are frozen: every derived view (signals, scores, categories)
    is computed into new objects and the batch itself is never mutated.
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )

    keyword: str = Field(default="", description="The keyword phrase, original casing")
    search_volume: float = Field(default=0, ge=0, description="Average monthly searches")
    cpc_low: float = Field(default=0, ge=0, description="Top of page bid (low range)")
    cpc_high: float = Field(default=0, ge=0, description="Top of page bid (high range)")
    competition_indexed: Optional[float] = Field(default=None, ge=0, le=100, description="Competition index (0-100)")
    competition_label: Optional[CompetitionLevel] = Field(default=None, description="Low / Medium / High")
    yoy_change_percent: Optional[float] = Field(default=None, description="Year-over-year change in percent")
    three_month_change_percent: Optional[float] = Field(default=None, description="Three month change in percent")
    monthly_search_series: Tuple[float, ...] = Field(default=(), description="Chronological monthly searches")

    @field_validator("keyword")
    @classmethod
    def clean_keyword(cls, v: str) -> str:
        """Collapse internal whitespace. Casing is kept for brand detection."""
        return " ".join(v.split())

    @field_validator("competition_label", mode="before")
    @classmethod
    def coerce_competition_label(cls, v: Any) -> Optional[str]:
        """Accept labels in any casing; anything unrecognised becomes None."""
        if v is None or isinstance(v, CompetitionLevel):
            return v
        label = str(v).strip().capitalize()
        if label in {level.value for level in CompetitionLevel}:
            return label
        return None

    @property
    def avg_cpc(self) -> float:
        return (self.cpc_low + self.cpc_high) / 2

    @property
    def growth_rate(self) -> float:
        """YoY change when non-zero, otherwise the three month change."""
        return self.yoy_change_percent or self.three_month_change_percent or 0.0

    @property
    def word_count(self) -> int:
        return len(self.keyword.split())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return self.model_dump(mode="json")


class NormalizedSignals(BaseModel):
    """Batch-relative signals for one keyword, each scaled to [0, 1]."""

    model_config = ConfigDict(frozen=True)

    normalized_volume: float = Field(ge=0, le=1)
    normalized_cpc: float = Field(ge=0, le=1)
    normalized_growth: float = Field(ge=0, le=1)
    normalized_inverted_competition: float = Field(ge=0, le=1)
    avg_cpc: float = Field(default=0, ge=0)
    growth_rate: float = 0.0


class ScoredKeyword(BaseModel):
    """A keyword, its batch signals and the score one strategy gave it."""

    model_config = ConfigDict(frozen=True)

    record: KeywordRecord
    signals: NormalizedSignals
    strategy: str
    score: float

    @property
    def keyword(self) -> str:
        return self.record.keyword

    def to_dict(self) -> Dict[str, Any]:
        """Flatten record, signals and score into one row."""
        row = self.record.to_dict()
        row.update(self.signals.model_dump())
        row["strategy"] = self.strategy
        row["score"] = self.score
        return row


class StrategyResult(BaseModel):
    """Top-N list for one strategy."""

    strategy: str
    description: str = ""
    results: List[ScoredKeyword] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "description": self.description,
            "results": [r.to_dict() for r in self.results],
        }


# ============================================================================
# Validation Functions
# ============================================================================

def validate_record(data: Dict[str, Any]) -> KeywordRecord:
    """
    Validate a single keyword dictionary.

    Args:
        data: Keyword data dictionary using model field names

    Returns:
        Validated KeywordRecord instance

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return KeywordRecord(**data)


def validate_records(items: List[Dict[str, Any]]) -> List[KeywordRecord]:
    """
    Validate a list of keyword dictionaries.

    Args:
        items: List of keyword data dictionaries

    Returns:
        List of validated KeywordRecord instances

    Raises:
        ValueError: If validation fails with detailed error messages

    Example:
        >>> records = validate_records([{"keyword": "buy running shoes", "search_volume": 1200}])
        >>> records[0].avg_cpc
        0.0
    """
    from pydantic import ValidationError

    validated = []
    errors = []

    for i, item in enumerate(items):
        try:
            validated.append(validate_record(item))
        except ValidationError as e:
            for err in e.errors():
                loc = ".".join(str(l) for l in err["loc"])
                errors.append(f"Item {i}, {loc}: {err['msg']}")

    if errors:
        raise ValueError("; ".join(errors))

    return validated


def items_to_dicts(items: List[BaseModel]) -> List[Dict[str, Any]]:
    """Convert model instances back to dictionaries for JSON serialization."""
    return [item.to_dict() for item in items]
