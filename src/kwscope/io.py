"""
Input/Output utilities for kwscope.

Reads Keyword Planner style exports (CSV, TSV, XLSX, JSON) into raw rows for
the signal extractor, and writes engine results as JSON, CSV or a styled
Excel workbook.
"""

import json
import logging
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import openpyxl
from openpyxl.formatting.rule import ColorScaleRule
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter


# =============================================================================
# Color Palette
# =============================================================================

REPORT_COLORS = {
    "primary": "0D47A1",      # Dark blue
    "secondary": "1976D2",    # Medium blue
    "text": "212121",         # Dark gray
    "good": "4CAF50",         # Green
    "mid": "FFEB3B",          # Yellow
    "bad": "F44336",          # Red
}

HEADER_MARKERS = ("Avg. monthly searches", "Keyword")


# =============================================================================
# Readers
# =============================================================================

def _decode(raw: bytes) -> str:
    """Keyword Planner CSVs are UTF-16 with a BOM; everything else UTF-8."""
    if raw.startswith(b"\xff\xfe") or raw.startswith(b"\xfe\xff"):
        return raw.decode("utf-16")
    return raw.decode("utf-8-sig")


def _find_header_line(lines: List[str], sep: str) -> int:
    """
    Index of the column header line.

    Planner exports put a report title and a date range above the header,
    e.g. "Keyword Stats 2024-05-01 at 10_11_12" / "May 1, 2023 - April 30, 2024".
    """
    for i, line in enumerate(lines):
        cells = [c.strip().strip('"') for c in line.split(sep)]
        if HEADER_MARKERS[0] in cells or (cells and cells[0] in ("Keyword", "keyword")):
            return i
    return 0


def _frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df = df.dropna(how="all")
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def _read_delimited(path: Path) -> List[Dict[str, Any]]:
    text = _decode(path.read_bytes())
    lines = text.splitlines()
    if not lines:
        return []
    sep = "\t" if path.suffix.lower() == ".tsv" or any("\t" in line for line in lines[:5]) else ","
    header_line = _find_header_line(lines, sep)
    df = pd.read_csv(StringIO(text), sep=sep, skiprows=header_line, dtype=str, keep_default_na=True)
    return _frame_to_rows(df)


def _read_excel(path: Path) -> List[Dict[str, Any]]:
    raw = pd.read_excel(path, header=None, dtype=object, engine="openpyxl")
    header_row = 0
    for i, values in enumerate(raw.itertuples(index=False)):
        cells = [str(v).strip() for v in values if v is not None and not pd.isna(v)]
        if HEADER_MARKERS[0] in cells or (cells and cells[0] in ("Keyword", "keyword")):
            header_row = i
            break
    df = pd.read_excel(path, header=header_row, dtype=object, engine="openpyxl")
    return _frame_to_rows(df)


def read_keyword_rows(input_path: str) -> List[Dict[str, Any]]:
    """
    Read a keyword export into raw, column-keyed rows.

    Args:
        input_path: .csv, .tsv, .xlsx or .json file

    Returns:
        One dict per data row keyed by the original column names; empty
        cells are None

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file type is unsupported or the JSON is not a list
    """
    path = Path(input_path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    ext = path.suffix.lower()
    if ext in (".csv", ".tsv", ".txt"):
        rows = _read_delimited(path)
    elif ext in (".xlsx", ".xlsm"):
        rows = _read_excel(path)
    elif ext == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{input_path}: expected a JSON array of keyword objects")
        rows = [row for row in data if isinstance(row, dict)]
    else:
        raise ValueError(f"Unsupported input format '{ext}' (use .csv, .tsv, .xlsx or .json)")

    logging.info(f"Read {len(rows)} rows from {path}")
    return rows


# =============================================================================
# Basic Writers
# =============================================================================

def write_json(payload: Any, output_path: str, pretty: bool = True) -> None:
    """Write payload to JSON file or stdout."""
    indent = 2 if pretty else None
    if output_path == "-":
        print(json.dumps(payload, ensure_ascii=False, indent=indent))
        return
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=indent)
        f.write("\n")
    logging.info(f"Saved JSON to {path}")


def flatten_strategy_rows(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """One row per (strategy, ranked keyword), with its lifecycle category."""
    categories = payload.get("categories", {})
    rows = []
    for result in payload.get("strategies", []):
        for position, item in enumerate(result.get("results", []), start=1):
            rows.append({
                "strategy": result["strategy"],
                "rank": position,
                "keyword": item["keyword"],
                "score": round(float(item["score"]), 4),
                "search_volume": item.get("search_volume"),
                "avg_cpc": item.get("avg_cpc"),
                "competition_indexed": item.get("competition_indexed"),
                "growth_rate": item.get("growth_rate"),
                "category": categories.get(item["keyword"], "Standard"),
            })
    return rows


def write_csv(rows: List[Dict], csv_path: str) -> None:
    """Write rows to CSV file."""
    if not csv_path:
        return
    path = Path(csv_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows)
    df.to_csv(path, index=False)
    logging.info(f"Saved CSV to {path}")


# =============================================================================
# Excel Report
# =============================================================================

def _style_header(cell) -> None:
    cell.font = Font(bold=True, color="FFFFFF")
    cell.fill = PatternFill(start_color=REPORT_COLORS["primary"],
                            end_color=REPORT_COLORS["primary"], fill_type="solid")
    cell.alignment = Alignment(horizontal="center")


def _write_table(sheet, df: pd.DataFrame, start_row: int = 1) -> None:
    for c_idx, column in enumerate(df.columns, 1):
        _style_header(sheet.cell(row=start_row, column=c_idx, value=column))
    for r_idx, values in enumerate(df.itertuples(index=False), start_row + 1):
        for c_idx, value in enumerate(values, 1):
            sheet.cell(row=r_idx, column=c_idx, value=None if pd.isna(value) else value)


def _auto_fit_columns(sheet) -> None:
    """Auto-fit column widths based on content."""
    for column in sheet.columns:
        max_length = 0
        column_letter = get_column_letter(column[0].column)
        for cell in column:
            if cell.value is not None:
                max_length = max(max_length, len(str(cell.value)))
        sheet.column_dimensions[column_letter].width = min(60, max(12, max_length + 2))


def _create_summary_sheet(workbook: openpyxl.Workbook, payload: Dict[str, Any], report_title: str) -> None:
    sheet = workbook.create_sheet("Summary", 0)

    sheet.merge_cells("A1:D1")
    sheet["A1"] = report_title
    sheet["A1"].font = Font(size=20, bold=True, color=REPORT_COLORS["primary"])

    sheet["A2"] = f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}"
    sheet["A2"].font = Font(size=11, italic=True, color=REPORT_COLORS["text"])

    sheet["A4"] = "Keywords scored"
    sheet["B4"] = payload.get("keyword_count", 0)
    sheet["A5"] = "Lifecycle rules"
    sheet["B5"] = "Year-over-year" if payload.get("has_yoy_data") else "Three month"
    for row in (4, 5):
        sheet[f"A{row}"].font = Font(bold=True)

    sheet["A7"] = "LIFECYCLE DISTRIBUTION"
    sheet["A7"].font = Font(size=14, bold=True, color=REPORT_COLORS["secondary"])
    total = sum(payload.get("category_counts", {}).values()) or 1
    for i, (category, count) in enumerate(payload.get("category_counts", {}).items(), start=8):
        sheet[f"A{i}"] = category
        sheet[f"B{i}"] = count
        sheet[f"C{i}"] = f"{count / total * 100:.1f}%"

    _auto_fit_columns(sheet)


def _create_strategy_sheet(workbook: openpyxl.Workbook, strategy: str, rows: List[Dict[str, Any]]) -> None:
    sheet = workbook.create_sheet(strategy[:31])
    df = pd.DataFrame(rows).drop(columns=["strategy"], errors="ignore")
    if df.empty:
        sheet["A1"] = "No eligible keywords"
        sheet["A1"].font = Font(italic=True, color=REPORT_COLORS["text"])
        return
    _write_table(sheet, df)

    score_col = get_column_letter(list(df.columns).index("score") + 1)
    sheet.conditional_formatting.add(
        f"{score_col}2:{score_col}{len(df) + 1}",
        ColorScaleRule(
            start_type="min", start_color=REPORT_COLORS["bad"],
            mid_type="percentile", mid_value=50, mid_color=REPORT_COLORS["mid"],
            end_type="max", end_color=REPORT_COLORS["good"],
        ),
    )
    _auto_fit_columns(sheet)
    sheet.freeze_panes = "A2"


def _create_lifecycle_sheet(workbook: openpyxl.Workbook, payload: Dict[str, Any]) -> None:
    sheet = workbook.create_sheet("Lifecycle")
    df = pd.DataFrame(
        [{"keyword": k, "category": c} for k, c in payload.get("categories", {}).items()],
        columns=["keyword", "category"],
    )
    _write_table(sheet, df)
    _auto_fit_columns(sheet)
    sheet.freeze_panes = "A2"


def _create_demand_sheet(workbook: openpyxl.Workbook, payload: Dict[str, Any]) -> None:
    scores = payload.get("demand") or []
    if not scores:
        return
    sheet = workbook.create_sheet("Demand")
    df = pd.DataFrame(
        [
            {
                "keyword": s["keyword"],
                "intent": s["intent"],
                "demand_score": s["demand_score"],
                "demand": s["demand_interpretation"],
                "interest_score": s["interest_score"],
                "interest": s["interest_interpretation"],
                "seasonal": "yes" if s["demand_breakdown"].get("seasonality_flag") else "no",
            }
            for s in scores
        ]
    )
    _write_table(sheet, df)
    _auto_fit_columns(sheet)
    sheet.freeze_panes = "A2"


def write_excel(
    payload: Dict[str, Any],
    xlsx_path: str,
    report_title: str = "Keyword Opportunity Report",
) -> None:
    """Write a workbook: summary, one sheet per strategy, lifecycle table, demand scores."""
    if not xlsx_path:
        return
    path = Path(xlsx_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    workbook = openpyxl.Workbook()
    if "Sheet" in workbook.sheetnames:
        del workbook["Sheet"]

    _create_summary_sheet(workbook, payload, report_title)
    rows = flatten_strategy_rows(payload)
    for result in payload.get("strategies", []):
        _create_strategy_sheet(workbook, result["strategy"], [r for r in rows if r["strategy"] == result["strategy"]])
    _create_lifecycle_sheet(workbook, payload)
    _create_demand_sheet(workbook, payload)

    workbook.save(path)
    logging.info(f"Saved Excel report to {path}")


# =============================================================================
# Dispatch
# =============================================================================

def generate_run_id() -> str:
    """Generate a timestamped run ID in YYYYMMDDHHMM format."""
    return datetime.now().strftime("%Y%m%d%H%M")


def get_run_dir(base_dir: str = "./data", run_id: Optional[str] = None) -> Path:
    """
    Get or create a timestamped run directory.

    Returns:
        Path to the run directory (e.g., ./data/run_id=202506151430/)
    """
    if run_id is None:
        run_id = generate_run_id()
    run_dir = Path(base_dir) / f"run_id={run_id}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def write_output(
    payload: Dict[str, Any],
    output_path: str,
    save_csv: Optional[str] = None,
    pretty: bool = True,
    use_run_dir: bool = False,
    run_id: Optional[str] = None,
    default_format: str = "json",
) -> Optional[Path]:
    """
    Write engine output in the format implied by the file extension.

    Args:
        payload: Result dict from pipeline.run_engine
        output_path: .json / .csv / .xlsx path, or "-" for stdout JSON
        save_csv: Optional additional CSV of the flattened strategy rows
        pretty: Indent JSON output
        use_run_dir: If True, wrap outputs in ./data/run_id=YYYYMMDDHHMM/
        run_id: Optional run ID used with use_run_dir
        default_format: json / csv / xlsx, used as the extension when
            output_path has none

    Returns:
        Path to the run directory if use_run_dir=True, otherwise None.
    """
    if output_path == "-":
        write_json(payload, output_path, pretty=pretty)
        return None

    path = Path(output_path)
    if not path.suffix:
        path = path.with_suffix(f".{default_format.lower()}")
    ext = path.suffix.lower()

    run_dir = None
    if use_run_dir:
        run_dir = get_run_dir(run_id=run_id)
        path = run_dir / path.name
        logging.info(f"Writing outputs to run directory: {run_dir}")

    if ext == ".xlsx":
        write_excel(payload, str(path))
    elif ext == ".csv":
        write_csv(flatten_strategy_rows(payload), str(path))
    else:
        write_json(payload, str(path), pretty=pretty)

    if save_csv:
        csv_path = run_dir / Path(save_csv).name if run_dir else save_csv
        write_csv(flatten_strategy_rows(payload), str(csv_path))

    return run_dir
