"""Signal extraction: raw Keyword Planner rows -> KeywordRecord.

This is the only place that knows about human-readable export column names
("Avg. monthly searches", "Top of page bid (low range)", ...). Everything
downstream works on KeywordRecord.

Malformed or missing values never raise: numbers degrade to 0 and percent
changes to None (absent) or 0 (present but unparseable).
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .schema import CompetitionLevel, KeywordRecord


# =============================================================================
# Column aliases
# =============================================================================
# First entry is the Google Ads Keyword Planner export header.

COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "keyword": ("Keyword", "keyword"),
    "search_volume": ("Avg. monthly searches", "search_volume", "searchVolume"),
    "cpc_low": ("Top of page bid (low range)", "cpc_low", "cpcLow"),
    "cpc_high": ("Top of page bid (high range)", "cpc_high", "cpcHigh"),
    "competition_indexed": ("Competition (indexed value)", "competition_indexed", "competitionIndexed"),
    "competition_label": ("Competition", "competition", "competitionLabel"),
    "yoy_change_percent": ("YoY change", "yoy_change", "yoyChange"),
    "three_month_change_percent": ("Three month change", "three_month_change", "threeMonthChange"),
    "monthly_search_series": ("monthly_search_series", "monthlySearchSeries", "monthlySearches"),
}

MONTH_COLUMN_PREFIX = "Searches: "
MONTH_COLUMN_FORMAT = "%b %Y"

# Months of history needed before year-over-year comparisons are trusted
YOY_MONTHS_REQUIRED = 24


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _first_present(row: Dict[str, Any], field: str) -> Any:
    for key in COLUMN_ALIASES[field]:
        value = row.get(key)
        if not _is_missing(value):
            return value
    return None


def parse_number(value: Any) -> float:
    """
    Parse a loosely typed numeric cell.

    Handles ints, floats, numpy scalars and strings with thousands
    separators ("12,100"). Anything else, including NaN/inf, is 0.
    """
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        try:
            number = float(cleaned)
        except (ValueError, OverflowError):
            return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_percentage(value: Any) -> float:
    """
    Parse a percent-change cell such as "12.5%", "-40%", 300 or "N/A".

    Strings are stripped of '%' and whitespace and parsed as floats; numbers
    are taken as already being in percent. Unparseable input gives 0.
    """
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        if value.strip().upper() == "N/A":
            return 0.0
        return parse_number(value.replace("%", "").strip())
    return parse_number(value)


def competition_level_for_index(index: float) -> CompetitionLevel:
    """Bucket a 0-100 competition index: <33 Low, <67 Medium, else High."""
    if index < 33:
        return CompetitionLevel.LOW
    if index < 67:
        return CompetitionLevel.MEDIUM
    return CompetitionLevel.HIGH


def _month_sort_key(column: str) -> Tuple[datetime, str]:
    label = column[len(MONTH_COLUMN_PREFIX):].strip()
    try:
        return datetime.strptime(label, MONTH_COLUMN_FORMAT), column
    except ValueError:
        return datetime.max, column


def extract_monthly_series(row: Dict[str, Any]) -> Tuple[float, ...]:
    """
    Pull the chronological monthly search series out of a row.

    Keyword Planner exports carry one "Searches: MMM YYYY" column per month.
    Rows that already hold a list (plain numbers, or {"month", "volume"}
    objects) are accepted as-is, in their given order.
    """
    month_columns = [k for k in row.keys() if isinstance(k, str) and k.startswith(MONTH_COLUMN_PREFIX)]
    if month_columns:
        month_columns.sort(key=_month_sort_key)
        return tuple(parse_number(row.get(k)) for k in month_columns)

    series = _first_present(row, "monthly_search_series")
    if not isinstance(series, (list, tuple)):
        return ()
    values = []
    for point in series:
        if isinstance(point, dict):
            values.append(parse_number(point.get("volume")))
        else:
            values.append(parse_number(point))
    return tuple(values)


def extract(row: Dict[str, Any]) -> KeywordRecord:
    """
    Convert one raw, column-keyed row into a KeywordRecord.

    Absent volumes and bids become 0, absent percent changes stay None.
    Never raises for malformed values.
    """
    raw_keyword = _first_present(row, "keyword")
    keyword = str(raw_keyword) if raw_keyword is not None else ""

    competition_raw = _first_present(row, "competition_indexed")
    competition_indexed = None
    if competition_raw is not None:
        competition_indexed = min(100.0, max(0.0, parse_number(competition_raw)))

    yoy_raw = _first_present(row, "yoy_change_percent")
    three_month_raw = _first_present(row, "three_month_change_percent")

    return KeywordRecord(
        keyword=keyword,
        search_volume=max(0.0, parse_number(_first_present(row, "search_volume"))),
        cpc_low=max(0.0, parse_number(_first_present(row, "cpc_low"))),
        cpc_high=max(0.0, parse_number(_first_present(row, "cpc_high"))),
        competition_indexed=competition_indexed,
        competition_label=_first_present(row, "competition_label"),
        yoy_change_percent=parse_percentage(yoy_raw) if yoy_raw is not None else None,
        three_month_change_percent=parse_percentage(three_month_raw) if three_month_raw is not None else None,
        monthly_search_series=extract_monthly_series(row),
    )


def ingest(rows: Iterable[Dict[str, Any]]) -> List[KeywordRecord]:
    """
    Extract a batch and drop rows that cannot take part in scoring.

    Keywords with no search volume (or no keyword text) are removed here,
    so nothing downstream ever sees them.
    """
    records = [extract(row) for row in rows]
    kept = [r for r in records if r.search_volume > 0 and r.keyword]
    dropped = len(records) - len(kept)
    if dropped:
        logging.debug(f"Ingestion dropped {dropped} rows without search volume or keyword")
    return kept


def has_yoy_data(records: Iterable[KeywordRecord], min_months: int = YOY_MONTHS_REQUIRED) -> bool:
    """True when the batch carries at least ``min_months`` months of history."""
    longest = max((len(r.monthly_search_series) for r in records), default=0)
    return longest >= min_months


def normalize_keyword_text(keyword: Optional[str]) -> str:
    """Lookup key for keyword text: lowercase, trimmed, single-spaced."""
    if not keyword:
        return ""
    return " ".join(str(keyword).lower().split())
