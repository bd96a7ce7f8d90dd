"""Output formatters for emissions results.

Provides multiple output formats:
- JSON: Machine-readable, complete data
- CSV: Spreadsheet-compatible, monthly supply by allocation
- Table: Human-readable CLI output
"""

import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.models import ProjectEmissionsResult

logger = logging.getLogger(__name__)


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, result: ProjectEmissionsResult) -> str:
        """Format the result as a string."""
        pass

    def format_to_file(self, result: ProjectEmissionsResult, filepath: str) -> None:
        """Write formatted result to a file."""
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(self.format(result))


class JSONFormatter(OutputFormatter):
    """Formats results as JSON."""

    def __init__(self, indent: int = 2, include_series: bool = True):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
            include_series: Include per-allocation monthly curves
        """
        self.indent = indent
        self.include_series = include_series

    def format(self, result: ProjectEmissionsResult) -> str:
        """Format result as JSON string."""
        data = result.model_dump(mode="json")
        if not self.include_series:
            for alloc in data["allocations"]:
                alloc.pop("cumulative_supply", None)
        return json.dumps(data, indent=self.indent)

    def format_rows(self, rows: Sequence[BaseModel]) -> str:
        """Format view-model rows as a JSON array."""
        return json.dumps([row.model_dump(mode="json") for row in rows], indent=self.indent)


class CSVFormatter(OutputFormatter):
    """Formats the windowed schedule as CSV, one row per month."""

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def format(self, result: ProjectEmissionsResult) -> str:
        """Format result as CSV string."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=self.delimiter)

        writer.writerow(
            ["month", "month_index", "total_supply", "inflation_rate"]
            + [alloc.category for alloc in result.allocations]
        )

        for i, month in enumerate(result.months):
            row: list[Any] = [
                month,
                result.window_start + i,
                f"{result.total_supply_time_series[i]:.2f}",
                f"{result.inflation_rate[i]:.6f}",
            ]
            row.extend(f"{alloc.cumulative_supply[i]:.2f}" for alloc in result.allocations)
            writer.writerow(row)

        return output.getvalue()

    def format_rows(self, rows: Sequence[BaseModel]) -> str:
        """Format view-model rows as CSV with a header."""
        output = io.StringIO()
        if not rows:
            return ""
        fields = list(type(rows[0]).model_fields)
        writer = csv.DictWriter(output, fieldnames=fields, delimiter=self.delimiter)
        writer.writeheader()
        for row in rows:
            writer.writerow(row.model_dump(mode="json"))
        return output.getvalue()


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _usd(value: float) -> str:
    if abs(value) >= 1e9:
        return f"${value / 1e9:,.2f}B"
    if abs(value) >= 1e6:
        return f"${value / 1e6:,.2f}M"
    return f"${value:,.0f}"


class TableFormatter(OutputFormatter):
    """Formats results as human-readable tables for CLI output."""

    def __init__(self, use_rich: bool = True, width: int = 100, max_months: int = 12):
        """
        Initialize table formatter.

        Args:
            use_rich: Use rich for colored output
            width: Maximum table width
            max_months: Number of schedule months shown
        """
        self.use_rich = use_rich
        self.width = width
        self.max_months = max_months

    def _console(self, output: io.StringIO) -> Console:
        return Console(file=output, force_terminal=self.use_rich, no_color=not self.use_rich, width=self.width)

    def format(self, result: ProjectEmissionsResult) -> str:
        """Format result as readable tables."""
        output = io.StringIO()
        console = self._console(output)
        token = result.token
        calibration = result.calibration

        console.print(Panel(
            f"[bold cyan]{token.symbol}[/] - {token.name}\n"
            f"[dim]Token ID: {token.token_id}"
            f"{f' | {token.category}' if token.category else ''}[/]\n"
            f"Price ${token.current_price:,.4f} | MCap {_usd(token.market_cap)} | "
            f"Circulating {token.circulating_supply:,.0f} / {token.total_supply:,.0f}\n"
            f"Calibrated by {calibration.method.value}: month {calibration.current_index} "
            f"of {result.horizon_months} (TGE {calibration.anchor_month:%Y-%m})",
            title="Token Emissions",
            expand=False,
        ))

        alloc_table = Table(title="Allocations")
        alloc_table.add_column("Category", style="cyan")
        alloc_table.add_column("Group", style="dim")
        alloc_table.add_column("%", justify="right", style="green")
        alloc_table.add_column("Tokens", justify="right")
        alloc_table.add_column("Vesting")
        for alloc in result.allocations:
            vesting = alloc.vesting_type.value
            if alloc.tge_percent:
                vesting += f", {alloc.tge_percent:.0f}% TGE"
            if alloc.cliff_months:
                vesting += f", {alloc.cliff_months}mo cliff"
            if alloc.vesting_months:
                vesting += f", {alloc.vesting_months}mo"
            alloc_table.add_row(
                alloc.category,
                alloc.standard_group.display_name,
                _pct(alloc.percentage),
                f"{alloc.total_tokens:,.0f}",
                vesting,
            )
        console.print(alloc_table)

        schedule_table = Table(title=f"Schedule (first {min(self.max_months, len(result.months))} months)")
        schedule_table.add_column("Month", style="cyan")
        schedule_table.add_column("Total Supply", justify="right")
        schedule_table.add_column("Inflation", justify="right", style="yellow")
        for i, month in enumerate(result.months[: self.max_months]):
            schedule_table.add_row(
                month,
                f"{result.total_supply_time_series[i]:,.0f}",
                f"{result.inflation_rate[i] * 100:.2f}%",
            )
        console.print(schedule_table)

        if result.cliff_events:
            console.print("\n[bold]Cliff unlocks:[/]")
            for event in result.cliff_events:
                console.print(f"  {event.month or event.month_index}  {event.label}: {event.amount:,.0f}")

        if result.notes:
            console.print(f"\n[dim]{result.notes}[/]")

        return output.getvalue()

    def format_rows(self, rows: Sequence[BaseModel], title: str | None = None) -> str:
        """Render view-model rows as a table, one column per field."""
        output = io.StringIO()
        console = self._console(output)
        if not rows:
            console.print("[yellow]No rows[/]")
            return output.getvalue()

        fields = [name for name in type(rows[0]).model_fields if name != "image"]
        table = Table(title=title)
        for name in fields:
            table.add_column(name.replace("_", " "), justify="left" if name in ("project", "symbol", "token_id", "name", "month") else "right")

        for row in rows:
            values = []
            for name in fields:
                value = getattr(row, name)
                if isinstance(value, float):
                    if name.endswith("_pct"):
                        values.append(_pct(value))
                    elif name.endswith("_inflation"):
                        values.append(_pct(value * 100))
                    elif "value" in name or name == "market_cap":
                        values.append(_usd(value))
                    else:
                        values.append(f"{value:,.2f}")
                else:
                    values.append(str(value))
            table.add_row(*values)

        console.print(table)
        return output.getvalue()

    def format_to_file(self, result: ProjectEmissionsResult, filepath: str) -> None:
        """Write formatted output to file (no ANSI codes)."""
        use_rich = self.use_rich
        self.use_rich = False
        try:
            content = self.format(result)
        finally:
            self.use_rich = use_rich

        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
