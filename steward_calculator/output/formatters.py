"""Output formatters for steward token calculations.

Provides multiple output formats:
- JSON: Machine-readable, complete data
- CSV: Day-by-day price series export
- Table: Human-readable CLI output

Rounding happens only here; the calculators never round.
"""

import csv
import io
import json
import logging
from abc import ABC, abstractmethod

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.models import PriceSeries, TokenCalculation
from ..core.types import VestingEventKind

logger = logging.getLogger(__name__)

PRICE_DECIMALS = 2
TOKEN_DECIMALS = 2
PERCENTAGE_DECIMALS = 1
DATE_FORMAT = "%b %d, %Y"


def format_currency(amount: float, decimals: int = PRICE_DECIMALS) -> str:
    """Format a USD amount, e.g. 1234.5 -> "$1,234.50"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.{decimals}f}"


def format_tokens(amount: float, decimals: int = TOKEN_DECIMALS) -> str:
    """Format a token amount with thousands separators."""
    return f"{amount:,.{decimals}f}"


def format_percentage(value: float, decimals: int = PERCENTAGE_DECIMALS) -> str:
    """Format a 0-100 percentage, e.g. 25 -> "25.0%"."""
    return f"{value:.{decimals}f}%"


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, result: TokenCalculation) -> str:
        """Format the result as a string."""
        pass

    def format_to_file(self, result: TokenCalculation, filepath: str) -> None:
        """Write formatted result to a file."""
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(self.format(result))


class JSONFormatter(OutputFormatter):
    """Formats calculations as JSON."""

    def __init__(self, indent: int = 2, include_series: bool = True):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
            include_series: Include every daily price point
        """
        self.indent = indent
        self.include_series = include_series

    def format(self, result: TokenCalculation) -> str:
        """Format result as JSON string."""
        data = result.model_dump(mode="json")
        data["average_price"] = result.average_price
        if not self.include_series:
            data["price_series"].pop("points", None)
        return json.dumps(data, indent=self.indent)


class PriceSeriesCSVFormatter(OutputFormatter):
    """Exports the day-by-day price series as CSV."""

    HEADER = ["Date", "Price (USD)", "Running Average (USD)", "Type"]

    def __init__(self, delimiter: str = ",", decimals: int = 6):
        """
        Initialize CSV formatter.

        Args:
            delimiter: CSV delimiter
            decimals: Decimal places for prices
        """
        self.delimiter = delimiter
        self.decimals = decimals

    def format(self, result: TokenCalculation | PriceSeries) -> str:
        """Format the price series (of a calculation, or a bare series) as CSV."""
        series = result.price_series if isinstance(result, TokenCalculation) else result

        output = io.StringIO()
        writer = csv.writer(output, delimiter=self.delimiter, lineterminator="\n")
        writer.writerow(self.HEADER)

        for point, running in zip(series.points, series.running_averages()):
            writer.writerow([
                point.date.isoformat(),
                f"{point.price:.{self.decimals}f}",
                f"{running:.{self.decimals}f}",
                point.origin.display_name,
            ])

        return output.getvalue()


class TableFormatter(OutputFormatter):
    """Formats calculations as rich tables for CLI output."""

    def __init__(self, width: int = 100, show_schedule: bool = True):
        """
        Initialize table formatter.

        Args:
            width: Maximum table width
            show_schedule: Include the month-by-month vesting table
        """
        self.width = width
        self.show_schedule = show_schedule

    def format(self, result: TokenCalculation) -> str:
        """Format result as readable tables (with ANSI colors)."""
        output = io.StringIO()
        console = Console(file=output, force_terminal=True, width=self.width)
        self.render(result, console)
        return output.getvalue()

    def format_to_file(self, result: TokenCalculation, filepath: str) -> None:
        """Write plain tables (no ANSI codes) to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            console = Console(file=f, no_color=True, width=self.width)
            self.render(result, console)

    def render(self, result: TokenCalculation, console: Console) -> None:
        """Print all sections of a calculation to a console."""
        role = result.role
        series = result.price_series
        period = series.period
        schedule = result.vesting_schedule

        console.print(Panel(
            f"[bold cyan]{role.name}[/] - {role.description}\n"
            f"[dim]Annual compensation: {format_currency(role.annual_compensation, 0)}[/]",
            title="Steward Token Calculation",
            expand=False,
        ))

        price_table = Table(title="Price", show_header=False)
        price_table.add_column("Field", style="cyan")
        price_table.add_column("Value", style="green")
        price_table.add_row("Average Price", format_currency(series.average_price))
        current = format_currency(series.current_price_snapshot)
        if result.used_fallback_price:
            current += " [yellow](fallback)[/]"
        price_table.add_row("Current Price", current)
        if result.price_change_pct is not None:
            price_table.add_row("Current vs Average", format_percentage(result.price_change_pct))
        price_table.add_row(
            "Window",
            f"{period.start.strftime(DATE_FORMAT)} - {period.end.strftime(DATE_FORMAT)} "
            f"({period.total_days} days)",
        )
        price_table.add_row("Historical Days", str(period.historical_days))
        price_table.add_row("Projected Days", str(period.projected_days))
        console.print(price_table)

        distribution_pct = 100 * schedule.distribution_vested_fraction
        alloc_table = Table(title="Token Allocation", show_header=False)
        alloc_table.add_column("Metric", style="cyan")
        alloc_table.add_column("Value", style="green")
        alloc_table.add_row("Total Tokens", format_tokens(result.total_tokens))
        alloc_table.add_row("Current Value", format_currency(result.current_value))
        alloc_table.add_row(
            "At Distribution",
            f"{format_tokens(schedule.tokens_at_distribution)} "
            f"({format_percentage(distribution_pct)} on "
            f"{schedule.distribution_date.strftime(DATE_FORMAT)})",
        )
        alloc_table.add_row("Monthly Vesting", format_tokens(schedule.monthly_vesting_amount))
        alloc_table.add_row("Available Now", format_tokens(result.tokens_available_now))
        alloc_table.add_row("Vesting Progress", format_percentage(result.vesting_progress))
        if result.next_milestone:
            m = result.next_milestone
            alloc_table.add_row(
                "Next Milestone",
                f"{m.kind.display_name} on {m.date.strftime(DATE_FORMAT)}",
            )
        console.print(alloc_table)

        if self.show_schedule:
            vest_table = Table(title="Vesting Schedule")
            vest_table.add_column("Date", style="cyan")
            vest_table.add_column("Event")
            vest_table.add_column("Tokens", justify="right", style="green")
            vest_table.add_column("Cumulative", justify="right", style="dim")
            for event in schedule.events:
                label = event.kind.display_name
                if event.kind == VestingEventKind.DISTRIBUTION:
                    label = f"[bold]{label}[/]"
                vest_table.add_row(
                    event.date.isoformat(),
                    label,
                    format_tokens(event.tokens),
                    format_percentage(event.cumulative_percentage),
                )
            console.print(vest_table)

        if result.quality_flags:
            console.print("\n[bold yellow]Data Quality Flags:[/]")
            for flag in result.quality_flags:
                icon = "!" if flag.severity != "info" else "i"
                console.print(escape(f"  [{icon}] {flag.field}: {flag.issue}"))
