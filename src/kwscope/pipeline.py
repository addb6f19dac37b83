import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .config import config_to_dict, get_lifecycle_config, get_ranking_config, get_trend_config
from .demand import score_demand
from .extract import has_yoy_data as detect_yoy_data, ingest
from .intent import classify_intents
from .io import read_keyword_rows, write_output
from .lifecycle import category_counts, classify
from .ranking import score_and_rank
from .trend import top_trending

BRAND_ENV_VAR = "KWSCOPE_BRAND_NAME"


def build_payload(
    rows: List[Dict[str, Any]],
    brand_name: str = "",
    top_n: int = 10,
    has_yoy_data: Optional[bool] = None,
    yoy_months_required: int = 24,
    top_percentile: float = 15.0,
) -> Dict[str, Any]:
    """Run the whole engine over raw rows and return a JSON-ready dict."""
    records = ingest(rows)
    if has_yoy_data is None:
        has_yoy_data = detect_yoy_data(records, min_months=yoy_months_required)

    strategies = score_and_rank(records, brand_name=brand_name, top_n=top_n)
    categories = classify(records, has_yoy_data=has_yoy_data)
    trending = top_trending(records, percentile=top_percentile)
    intents = classify_intents(records)
    demand = score_demand(records, intents)

    return {
        "keyword_count": len(records),
        "has_yoy_data": has_yoy_data,
        "strategies": [s.to_dict() for s in strategies],
        "categories": {k: c.value for k, c in categories.items()},
        "category_counts": {c.value: n for c, n in category_counts(categories).items()},
        "trending": [{"keyword": t.keyword, "score": t.score} for t in trending],
        "intents": {k: i.value for k, i in intents.items()},
        "demand": [d.to_dict() for d in demand],
    }


def run_engine(
    input_path: Optional[str] = None,
    rows: Optional[List[Dict[str, Any]]] = None,
    brand_name: Optional[str] = None,
    top_n: Optional[int] = None,
    has_yoy_data: Optional[bool] = None,
    output: Optional[str] = None,
    save_csv: Optional[str] = None,
    config=None,
    verbose: bool = False,
    use_run_dir: bool = False,
) -> Dict[str, Any]:
    """
    Load keyword rows, score and classify them, and optionally write results.

    Explicit arguments win over config values; the brand name finally falls
    back to the KWSCOPE_BRAND_NAME environment variable (.env supported).

    Raises:
        ValueError: If neither input_path nor rows is given
    """
    load_dotenv()

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if rows is None:
        if input_path is None:
            raise ValueError("run_engine needs either input_path or rows")
        rows = read_keyword_rows(input_path)

    ranking_cfg = get_ranking_config(config)
    lifecycle_cfg = get_lifecycle_config(config)
    trend_cfg = get_trend_config(config)
    output_cfg = config_to_dict(config).get("output", {})

    if brand_name is None:
        brand_name = ranking_cfg.get("brand_name") or os.getenv(BRAND_ENV_VAR, "")
    if top_n is None:
        top_n = int(ranking_cfg.get("top_n", 10))
    if has_yoy_data is None:
        has_yoy_data = lifecycle_cfg.get("has_yoy_data")

    payload = build_payload(
        rows,
        brand_name=brand_name,
        top_n=top_n,
        has_yoy_data=has_yoy_data,
        yoy_months_required=int(lifecycle_cfg.get("yoy_months_required", 24)),
        top_percentile=float(trend_cfg.get("top_percentile", 15.0)),
    )
    logging.info(
        f"Scored {payload['keyword_count']} keywords "
        f"({'year-over-year' if payload['has_yoy_data'] else 'three month'} lifecycle rules)"
    )

    if output:
        write_output(
            payload,
            output,
            save_csv,
            pretty=bool(output_cfg.get("pretty_print", True)),
            use_run_dir=use_run_dir,
            default_format=str(output_cfg.get("format", "json")),
        )

    return payload
