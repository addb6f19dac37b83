import json
import logging
import sys
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import ConfigValidationError, KwscopeConfig, get_lifecycle_config, get_ranking_config, get_trend_config, load_config
from .demand import score_demand
from .extract import has_yoy_data as detect_yoy_data, ingest
from .io import read_keyword_rows
from .lifecycle import category_counts, classify
from .pipeline import run_engine
from .ranking import score_and_rank
from .schema import LifecycleCategory, StrategyResult
from .strategies import get_strategy
from .trend import top_trending

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="kwscope - rank keywords by advertising strategy and classify their lifecycle",
)


def setup_logging(verbose: bool):
    """Setup logging with rich handler for pretty output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=verbose)],
    )


def _load_config_or_exit(config_path: Optional[str]) -> KwscopeConfig:
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        err_console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        sys.exit(2)
    except ConfigValidationError as e:
        err_console.print("[bold red]Configuration Error:[/bold red]")
        for error in e.errors:
            err_console.print(f"  [red]•[/red] {error}")
        err_console.print("\n[dim]Check your kwscope.yaml for typos or invalid values.[/dim]")
        sys.exit(2)


def _read_rows_or_exit(input_file: str) -> List[Dict[str, Any]]:
    try:
        return read_keyword_rows(input_file)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Error loading {input_file}: {e}[/red]")
        sys.exit(1)


def display_strategy_table(result: StrategyResult):
    """Display one strategy's top list."""
    if not result.results:
        console.print(f"[yellow]{result.strategy}: no eligible keywords.[/yellow]")
        return

    table = Table(
        title=f"{result.strategy}",
        caption=result.description,
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Keyword", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Volume", justify="right")
    table.add_column("Avg CPC", justify="right")
    table.add_column("Comp", justify="right")
    table.add_column("Growth", justify="right")
    table.add_column("Score", justify="right", style="bold green")

    for position, item in enumerate(result.results, start=1):
        record = item.record
        competition = "-" if record.competition_indexed is None else f"{record.competition_indexed:.0f}"
        row = [
            str(position),
            record.keyword,
            f"{record.search_volume:,.0f}",
            f"${item.signals.avg_cpc:.2f}",
            competition,
            f"{item.signals.growth_rate:+.0f}%",
            f"{item.score:.3f}",
        ]
        table.add_row(*row)

    console.print(table)


def display_category_counts(categories: Dict[str, LifecycleCategory]):
    table = Table(title="Lifecycle Distribution", header_style="bold magenta", border_style="dim")
    table.add_column("Category", style="yellow")
    table.add_column("Keywords", justify="right")
    table.add_column("Share", justify="right", style="dim")
    total = len(categories) or 1
    for category, count in category_counts(categories).items():
        table.add_row(category.value, str(count), f"{count / total * 100:.1f}%")
    console.print(table)


@app.command()
def run(
    input_file: str = typer.Argument(..., help="Keyword export (.csv, .tsv, .xlsx or .json)"),
    brand: Optional[str] = typer.Option(None, "--brand", "-b", help="Brand name for Brand Protection"),
    top_n: Optional[int] = typer.Option(None, "--top-n", min=1, help="Keywords per strategy (default 10)"),
    yoy: Optional[bool] = typer.Option(None, "--yoy/--no-yoy", help="Force lifecycle rule set (default: detect)"),
    output: str = typer.Option("kwscope_report.json", "--output", "-o", help="Path to JSON/CSV/XLSX file or '-' for stdout"),
    save_csv: Optional[str] = typer.Option(None, "--save-csv"),
    config_path: Optional[str] = typer.Option(None, "--config", help="YAML config (default: ./kwscope.yaml if present)"),
    table_output: bool = typer.Option(False, "--table", help="Also display results as tables"),
    use_run_dir: bool = typer.Option(False, "--run-dir", help="Save outputs in ./data/run_id=YYYYMMDDHHMM/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="DEBUG logs to stderr"),
):
    """
    Score, rank and classify a keyword export and write the full report.

    Example:
        kwscope run planner.csv --brand acme -o report.xlsx
    """
    setup_logging(verbose)
    cfg = _load_config_or_exit(config_path)
    rows = _read_rows_or_exit(input_file)

    payload = run_engine(
        rows=rows,
        brand_name=brand,
        top_n=top_n,
        has_yoy_data=yoy,
        output=output,
        save_csv=save_csv,
        config=cfg,
        verbose=verbose,
        use_run_dir=use_run_dir,
    )

    if table_output and output != "-":
        for result in payload["strategies"]:
            console.print(Panel(
                "\n".join(f"{i}. {r['keyword']}  [dim]{r['score']:.3f}[/dim]" for i, r in enumerate(result["results"], 1))
                or "[yellow]no eligible keywords[/yellow]",
                title=result["strategy"],
                border_style="blue",
            ))

    if payload["keyword_count"] == 0:
        console.print("[yellow]⚠ No keywords with search volume found in the input.[/yellow]")
        sys.exit(1)
    if output != "-":
        console.print(f"\n[green]✓[/green] Scored {payload['keyword_count']} keywords across {len(payload['strategies'])} strategies")
        console.print(f"[dim]Saved to: {output}[/dim]")


@app.command()
def rank(
    input_file: str = typer.Argument(..., help="Keyword export (.csv, .tsv, .xlsx or .json)"),
    brand: Optional[str] = typer.Option(None, "--brand", "-b", help="Brand name for Brand Protection"),
    top_n: Optional[int] = typer.Option(None, "--top-n", min=1),
    strategy: Optional[str] = typer.Option(None, "--strategy", "-s", help="Only show this strategy"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables"),
    config_path: Optional[str] = typer.Option(None, "--config"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Show the top keywords for every advertising strategy."""
    setup_logging(verbose)
    cfg = _load_config_or_exit(config_path)
    ranking_cfg = get_ranking_config(cfg)
    records = ingest(_read_rows_or_exit(input_file))

    selected = None
    if strategy:
        try:
            selected = [get_strategy(strategy)]
        except KeyError as e:
            err_console.print(f"[red]{e.args[0]}[/red]")
            sys.exit(1)

    results = score_and_rank(
        records,
        brand_name=brand if brand is not None else ranking_cfg.get("brand_name", ""),
        top_n=top_n or int(ranking_cfg.get("top_n", 10)),
        strategies=selected,
    )

    if as_json:
        console.print_json(json.dumps([r.to_dict() for r in results], ensure_ascii=False))
        return
    for result in results:
        display_strategy_table(result)


@app.command("classify")
def classify_keywords(
    input_file: str = typer.Argument(..., help="Keyword export (.csv, .tsv, .xlsx or .json)"),
    yoy: Optional[bool] = typer.Option(None, "--yoy/--no-yoy", help="Force lifecycle rule set (default: detect)"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only list keywords in this category"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables"),
    config_path: Optional[str] = typer.Option(None, "--config"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Assign one lifecycle category to every keyword."""
    setup_logging(verbose)
    cfg = _load_config_or_exit(config_path)
    lifecycle_cfg = get_lifecycle_config(cfg)
    records = ingest(_read_rows_or_exit(input_file))

    if yoy is None:
        yoy = lifecycle_cfg.get("has_yoy_data")
    if yoy is None:
        yoy = detect_yoy_data(records, min_months=int(lifecycle_cfg.get("yoy_months_required", 24)))
    categories = classify(records, has_yoy_data=yoy)

    if category:
        wanted = category.strip().lower()
        categories = {k: c for k, c in categories.items() if c.value.lower() == wanted}

    if as_json:
        console.print_json(json.dumps({k: c.value for k, c in categories.items()}, ensure_ascii=False))
        return

    console.print(f"[dim]Lifecycle rules: {'year-over-year' if yoy else 'three month'}[/dim]")
    table = Table(title="Keyword Lifecycle", header_style="bold magenta", border_style="dim")
    table.add_column("Keyword", style="cyan", max_width=50)
    table.add_column("Category", style="yellow")
    for keyword, cat in categories.items():
        table.add_row(keyword, cat.value)
    console.print(table)
    display_category_counts(categories)


@app.command()
def trends(
    input_file: str = typer.Argument(..., help="Keyword export (.csv, .tsv, .xlsx or .json)"),
    percentile: Optional[float] = typer.Option(None, "--percentile", "-p", min=0.1, max=100.0, help="Top share to show (default 15)"),
    config_path: Optional[str] = typer.Option(None, "--config"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """List the fastest-trending keywords by composite YoY / three month score."""
    setup_logging(verbose)
    cfg = _load_config_or_exit(config_path)
    if percentile is None:
        percentile = float(get_trend_config(cfg).get("top_percentile", 15.0))
    records = ingest(_read_rows_or_exit(input_file))

    trending = top_trending(records, percentile=percentile)
    if not trending:
        console.print("[yellow]No keywords with both YoY and three month change.[/yellow]")
        return

    table = Table(title=f"Top {percentile:g}% Trending", header_style="bold magenta", border_style="dim")
    table.add_column("Keyword", style="cyan", max_width=50)
    table.add_column("YoY", justify="right")
    table.add_column("3M", justify="right")
    table.add_column("Composite", justify="right", style="bold green")
    for t in trending:
        table.add_row(
            t.keyword,
            f"{t.record.yoy_change_percent:+.0f}%",
            f"{t.record.three_month_change_percent:+.0f}%",
            f"{t.score:.2f}",
        )
    console.print(table)




@app.command()
def demand(
    input_file: str = typer.Argument(..., help="Keyword export (.csv, .tsv, .xlsx or .json)"),
    sort_by: str = typer.Option("demand", "--sort", help="Sort by 'demand' or 'interest'"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Only show the first N keywords"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Score commercial Demand and informational Interest (0-50) per keyword."""
    setup_logging(verbose)
    if sort_by not in ("demand", "interest"):
        err_console.print(f"[red]Unknown sort key '{sort_by}', expected 'demand' or 'interest'[/red]")
        sys.exit(1)
    records = ingest(_read_rows_or_exit(input_file))

    scores = sorted(score_demand(records), key=lambda s: getattr(s, f"{sort_by}_score"), reverse=True)
    if limit:
        scores = scores[:limit]

    if as_json:
        console.print_json(json.dumps([s.to_dict() for s in scores], ensure_ascii=False))
        return

    table = Table(title="Demand vs Interest", header_style="bold magenta", border_style="dim")
    table.add_column("Keyword", style="cyan", max_width=40)
    table.add_column("Intent", style="dim")
    table.add_column("Demand", justify="right", style="bold green")
    table.add_column("", style="green")
    table.add_column("Interest", justify="right", style="bold blue")
    table.add_column("", style="blue")
    table.add_column("Seasonal", justify="center")
    for s in scores:
        table.add_row(
            s.keyword,
            s.intent.value,
            f"{s.demand_score:.0f}",
            s.demand_interpretation,
            f"{s.interest_score:.0f}",
            s.interest_interpretation,
            "✓" if s.demand.seasonality_flag else "",
        )
    console.print(table)
