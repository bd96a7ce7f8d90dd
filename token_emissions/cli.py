"""CLI entry point for the token emissions engine.

Usage:
    token-emissions show arbitrum
    token-emissions show arbitrum --output json --save results/arb.json
    token-emissions batch arbitrum optimism celestia
    token-emissions compare arbitrum optimism --output csv
    token-emissions reseed arbitrum
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress

from .calculator.comparison import (
    compute_aggregate_market_emissions,
    compute_comparison_rows,
    compute_inflation_periods,
)
from .core.config import EngineConfig, get_config, reload_config
from .core.exceptions import EmissionsError
from .core.models import ProjectEmissionsResult
from .orchestrator import EmissionsOrchestrator
from .output.formatters import CSVFormatter, JSONFormatter, TableFormatter

# Initialize app
app = typer.Typer(
    name="token-emissions",
    help="Token supply emission simulation and calibration engine",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load_config(env_file: Optional[Path]) -> EngineConfig:
    try:
        return reload_config(env_file) if env_file else get_config()
    except EmissionsError as e:
        console.print(f"[red]{e.message}[/]")
        raise typer.Exit(1)


def _read_tokens(tokens: List[str], tokens_file: Optional[Path]) -> List[str]:
    ids = list(tokens)
    if tokens_file:
        if not tokens_file.exists():
            console.print(f"[red]File not found: {tokens_file}[/]")
            raise typer.Exit(1)
        with open(tokens_file, "r", encoding="utf-8") as f:
            ids.extend(line.strip() for line in f if line.strip() and not line.startswith("#"))
    if not ids:
        console.print("[red]No tokens given[/]")
        raise typer.Exit(1)
    return ids


def _resolve_batch(orchestrator: EmissionsOrchestrator, ids: List[str]) -> dict[str, ProjectEmissionsResult]:
    with Progress(console=console, transient=True) as progress:
        task = progress.add_task("Resolving", total=len(set(ids)))

        def on_progress(token_id: str, completed: int, total: int) -> None:
            progress.update(task, completed=completed, description=f"Resolved {token_id}")

        results = asyncio.run(orchestrator.get_batch_project_emissions(ids, on_progress=on_progress))

    missing = [t for t in dict.fromkeys(i.strip().lower() for i in ids) if t not in results]
    if missing:
        console.print(f"[yellow]No data for: {', '.join(missing)}[/]")
    return results


def _emit_rows(rows, output: str, title: str, save: Optional[Path]) -> None:
    output_lower = output.lower()
    if output_lower == "json":
        formatted = JSONFormatter().format_rows(rows)
    elif output_lower == "csv":
        formatted = CSVFormatter().format_rows(rows)
    else:
        formatted = TableFormatter(use_rich=save is None).format_rows(rows, title=title)

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        save.write_text(formatted, encoding="utf-8")
        console.print(f"[green]Saved to {save}[/]")
    elif output_lower == "table":
        console.print(formatted, end="")
    else:
        print(formatted)


OUTPUT_OPTION = typer.Option("table", "--output", "-o", help="Output format: table, json, csv")
SAVE_OPTION = typer.Option(None, "--save", "-s", help="Save output to file")
ENV_OPTION = typer.Option(None, "--env-file", help="Path to .env file")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
FILE_OPTION = typer.Option(None, "--file", "-f", help="File with token ids (one per line)")


def _show_result(result: ProjectEmissionsResult, output: str, save: Optional[Path]) -> None:
    output_lower = output.lower()
    if output_lower == "json":
        formatter = JSONFormatter()
    elif output_lower == "csv":
        formatter = CSVFormatter()
    else:
        formatter = TableFormatter()

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        formatter.format_to_file(result, str(save))
        console.print(f"[green]Saved to {save}[/]")
    elif output_lower == "table":
        console.print(formatter.format(result), end="")
    else:
        print(formatter.format(result))


@app.command()
def show(
    token: str = typer.Argument(..., help="CoinGecko token id (e.g., arbitrum)"),
    output: str = OUTPUT_OPTION,
    save: Optional[Path] = SAVE_OPTION,
    env_file: Optional[Path] = ENV_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Show the calibrated emission schedule of a token, building it if needed.

    Examples:
        token-emissions show arbitrum
        token-emissions show celestia --output json
    """
    setup_logging(verbose)
    orchestrator = EmissionsOrchestrator(config=_load_config(env_file))

    result = asyncio.run(orchestrator.get_project_emissions(token))
    if result is None:
        console.print(f"[yellow]No emissions data for {token}; market data or allocation research unavailable[/]")
        raise typer.Exit(1)

    _show_result(result, output, save)


@app.command()
def reseed(
    token: str = typer.Argument(..., help="CoinGecko token id"),
    keep_research: bool = typer.Option(
        False,
        "--keep-research",
        help="Rebuild from the cached allocation research",
    ),
    output: str = OUTPUT_OPTION,
    env_file: Optional[Path] = ENV_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Clear every cached copy of a token's schedule and rebuild it."""
    setup_logging(verbose)
    orchestrator = EmissionsOrchestrator(config=_load_config(env_file))

    result = asyncio.run(
        orchestrator.invalidate_and_rebuild(token, refresh_research=not keep_research)
    )
    if result is None:
        console.print(f"[yellow]Rebuild failed for {token}; cache is now empty for it[/]")
        raise typer.Exit(1)

    console.print(f"[green]Rebuilt {result.token.symbol}[/]")
    _show_result(result, output, None)


@app.command()
def batch(
    tokens: List[str] = typer.Argument(None, help="CoinGecko token ids"),
    tokens_file: Optional[Path] = FILE_OPTION,
    output_dir: Path = typer.Option(
        Path("results"),
        "--output-dir", "-d",
        help="Output directory for results",
    ),
    output_format: str = typer.Option("json", "--format", help="Output format: json, csv"),
    env_file: Optional[Path] = ENV_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Resolve many tokens concurrently and save one file per token.

    Tokens that cannot be resolved are reported and skipped.
    """
    setup_logging(verbose)
    ids = _read_tokens(tokens or [], tokens_file)
    orchestrator = EmissionsOrchestrator(config=_load_config(env_file))

    console.print(f"[bold]Processing {len(ids)} tokens...[/]")
    results = _resolve_batch(orchestrator, ids)

    output_dir.mkdir(parents=True, exist_ok=True)
    if output_format == "csv":
        formatter, ext = CSVFormatter(), ".csv"
    else:
        formatter, ext = JSONFormatter(), ".json"

    for token_id, result in results.items():
        output_path = output_dir / f"{token_id}{ext}"
        formatter.format_to_file(result, str(output_path))
        console.print(f"  [green]Saved: {output_path}[/]")

    console.print(f"\n[bold]Complete: {len(results)}/{len(set(ids))} successful[/]")


@app.command()
def compare(
    tokens: List[str] = typer.Argument(None, help="CoinGecko token ids"),
    tokens_file: Optional[Path] = FILE_OPTION,
    output: str = OUTPUT_OPTION,
    save: Optional[Path] = SAVE_OPTION,
    env_file: Optional[Path] = ENV_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Compare circulating, locked and upcoming unlock shares across tokens."""
    setup_logging(verbose)
    ids = _read_tokens(tokens or [], tokens_file)
    results = _resolve_batch(EmissionsOrchestrator(config=_load_config(env_file)), ids)
    _emit_rows(compute_comparison_rows(list(results.values())), output, "Supply Comparison", save)


@app.command()
def market(
    tokens: List[str] = typer.Argument(None, help="CoinGecko token ids"),
    tokens_file: Optional[Path] = FILE_OPTION,
    output: str = OUTPUT_OPTION,
    save: Optional[Path] = SAVE_OPTION,
    env_file: Optional[Path] = ENV_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """USD value unlocked per month across a set of tokens."""
    setup_logging(verbose)
    ids = _read_tokens(tokens or [], tokens_file)
    results = _resolve_batch(EmissionsOrchestrator(config=_load_config(env_file)), ids)
    _emit_rows(compute_aggregate_market_emissions(list(results.values())), output, "Market Emissions", save)


@app.command()
def inflation(
    tokens: List[str] = typer.Argument(None, help="CoinGecko token ids"),
    tokens_file: Optional[Path] = FILE_OPTION,
    output: str = OUTPUT_OPTION,
    save: Optional[Path] = SAVE_OPTION,
    env_file: Optional[Path] = ENV_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Annualized supply inflation for years 1-3 and the latest month."""
    setup_logging(verbose)
    ids = _read_tokens(tokens or [], tokens_file)
    results = _resolve_batch(EmissionsOrchestrator(config=_load_config(env_file)), ids)
    _emit_rows(compute_inflation_periods(list(results.values())), output, "Supply Inflation", save)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"Token Emissions Engine v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
