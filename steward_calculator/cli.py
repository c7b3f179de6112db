"""CLI entry point for the Steward Token Calculator.

Usage:
    steward-calc calculate steward
    steward-calc calculate lead_steward --output json --save results/lead.json
    steward-calc export-prices prices.csv
    steward-calc schedule --tokens 3794.47
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .core.config import CalculatorConfig
from .core.exceptions import CalculatorError
from .orchestrator import StewardCalculatorOrchestrator, build_vesting_schedule
from .output.formatters import (
    JSONFormatter,
    PriceSeriesCSVFormatter,
    TableFormatter,
    format_currency,
    format_percentage,
    format_tokens,
)
from .providers.price.synthetic import SyntheticHistoryProvider

# Initialize app
app = typer.Typer(
    name="steward-calc",
    help="Steward token allocation and vesting calculator",
    add_completion=False,
)

console = Console()
# Log records go to stderr so JSON on stdout stays parseable
log_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=log_console, show_time=False, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _parse_date(value: Optional[str], option: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        console.print(f"[red]Invalid date for {option}: {value}. Use YYYY-MM-DD[/]")
        raise typer.Exit(1)


def _load_config(config: Optional[Path]) -> CalculatorConfig:
    try:
        return CalculatorConfig.load(config)
    except CalculatorError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)


@app.command()
def calculate(
    role: Optional[str] = typer.Argument(None, help="Role id (e.g., steward, lead_steward)"),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save", "-s",
        help="Save output to file",
    ),
    as_of: Optional[str] = typer.Option(
        None,
        "--as-of", "-d",
        help="Reference date (YYYY-MM-DD), defaults to today",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to calculator config YAML",
    ),
    demo_fallback: bool = typer.Option(
        False,
        "--demo-fallback",
        help="Use synthetic demo history if no real history is available",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Calculate a role's token allocation and vesting schedule.

    Examples:
        steward-calc calculate
        steward-calc calculate lead_steward --output json
    """
    setup_logging(verbose)
    as_of_date = _parse_date(as_of, "--as-of")
    calculator_config = _load_config(config)

    output_lower = output.lower()
    if output_lower not in ("table", "json"):
        console.print(f"[red]Invalid output format: {output}[/]")
        raise typer.Exit(1)

    try:
        orchestrator = StewardCalculatorOrchestrator(
            config=calculator_config,
            history_fallback=(
                SyntheticHistoryProvider(end_date=as_of_date) if demo_fallback else None
            ),
        )
        result = orchestrator.calculate(role, as_of=as_of_date)
    except CalculatorError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    if output_lower == "json":
        formatter = JSONFormatter()
        print(formatter.format(result))
    else:
        formatter = TableFormatter()
        formatter.render(result, console)

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        save_path = save.with_suffix(".json" if output_lower == "json" else ".txt")
        formatter.format_to_file(result, str(save_path))
        console.print(f"[green]Saved to {save_path}[/]")


@app.command("export-prices")
def export_prices(
    path: Path = typer.Argument(..., help="CSV file to write"),
    as_of: Optional[str] = typer.Option(
        None,
        "--as-of", "-d",
        help="Reference date (YYYY-MM-DD), defaults to today",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to calculator config YAML",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Export the day-by-day price series (date, price, running average, type) as CSV."""
    setup_logging(verbose)
    as_of_date = _parse_date(as_of, "--as-of")
    calculator_config = _load_config(config)

    try:
        orchestrator = StewardCalculatorOrchestrator(config=calculator_config)
        series = orchestrator.build_price_series(as_of=as_of_date)
    except CalculatorError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    PriceSeriesCSVFormatter().format_to_file(series, str(path))
    console.print(
        f"[green]Exported {series.period.total_days} days "
        f"({series.period.historical_days} historical, {series.period.projected_days} projected) "
        f"to {path}[/]"
    )


@app.command()
def schedule(
    tokens: float = typer.Option(..., "--tokens", "-t", help="Total tokens granted"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to calculator config YAML",
    ),
) -> None:
    """Show the vesting schedule for a token amount (no network access)."""
    calculator_config = _load_config(config)

    try:
        vesting = build_vesting_schedule(tokens, calculator_config.vesting)
    except CalculatorError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    table = Table(title=f"Vesting Schedule for {format_tokens(tokens)} tokens")
    table.add_column("Date", style="cyan")
    table.add_column("Event")
    table.add_column("Tokens", justify="right", style="green")
    table.add_column("Cumulative", justify="right", style="dim")
    for event in vesting.events:
        table.add_row(
            event.date.isoformat(),
            event.kind.display_name,
            format_tokens(event.tokens),
            format_percentage(event.cumulative_percentage),
        )
    console.print(table)
    console.print(
        f"Monthly: {format_tokens(vesting.monthly_vesting_amount)}  "
        f"At distribution ({vesting.distribution_date}): "
        f"{format_tokens(vesting.tokens_at_distribution)}"
    )


@app.command()
def roles(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to calculator config YAML",
    ),
) -> None:
    """List configured roles and their compensation."""
    calculator_config = _load_config(config)

    table = Table(title="Roles")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Annual", justify="right", style="green")
    table.add_column("Monthly", justify="right")
    for role in calculator_config.roles.values():
        table.add_row(
            role.id,
            role.name,
            format_currency(role.annual_compensation, 0),
            format_currency(role.monthly_compensation or 0, 0),
        )
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"Steward Token Calculator v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
