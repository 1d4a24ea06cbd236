"""
CLI interface for EnergyIQ.

Runs the conversational calculator and gives command-line access to
tariffs, calculation history, exports and tips.
"""

import sqlite3
import sys
from enum import Enum
from typing import Iterable, List, Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from energyiq.config.loader import Settings, load_settings
from energyiq.config.logging_config import setup_logging
from energyiq.core.calculator import summarize_history
from energyiq.core.dialogue import DialogueController, Message
from energyiq.core.formatting import format_currency, format_duration, format_kwh
from energyiq.core.rates import RATE_TABLE, all_rates, lookup_rate
from energyiq.core.tips import random_energy_tips, rule_suggestions
from energyiq.export.charts import write_chart_png
from energyiq.export.report import write_pdf_report
from energyiq.export.tabular import write_csv
from energyiq.sdk.assistant_client import EnergyAssistant
from energyiq.storage.models import CalculationResult
from energyiq.storage.repository import HistoryRepository, get_repository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

QUIT_COMMANDS = {"quit", "exit", "q"}


class ExportFormat(str, Enum):
    CSV = "csv"
    PDF = "pdf"
    PNG = "png"


_EXPORTERS = {
    ExportFormat.CSV: write_csv,
    ExportFormat.PDF: write_pdf_report,
    ExportFormat.PNG: write_chart_png,
}


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file (defaults to $ENERGYIQ_CONFIG)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """EnergyIQ household energy calculator."""
    try:
        settings = load_settings(config)
    except (FileNotFoundError, yaml.YAMLError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        console.print("EnergyIQ - Use --help to see available commands")


def _open_repository(ctx: typer.Context) -> HistoryRepository:
    settings: Settings = ctx.obj
    return get_repository(settings.history.db_path, settings.history.capacity)


def _repository(ctx: typer.Context) -> HistoryRepository:
    """Open the history or exit with a failure code."""
    try:
        return _open_repository(ctx)
    except (sqlite3.Error, OSError) as e:
        console.print(f"[red]History database unavailable:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


def _load_result(ctx: typer.Context, result_id: str) -> CalculationResult:
    """Fetch a saved result or exit with a failure code."""
    result = _repository(ctx).get(result_id)
    if result is None:
        console.print(f"[red]No saved calculation with id[/] {result_id}")
        sys.exit(EXIT_CODE_FAIL)
    return result


@app.command()
def init(ctx: typer.Context):
    """Initialize the calculation history database."""
    settings: Settings = ctx.obj
    try:
        initialize_schema(settings.history.db_path)
        console.print(f"[green]✓[/] History database ready at {settings.history.db_path}")
        sys.exit(EXIT_CODE_PASS)
    except (sqlite3.Error, OSError) as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


def _print_messages(messages: Iterable[Message]) -> None:
    for message in messages:
        console.print(Panel(Text(message.text), title="EnergyIQ", title_align="left",
                            border_style="green"))
        if message.options:
            labels = "  ".join(f"[{option.value}] {option.label}" for option in message.options)
            console.print(Text(f"Options: {labels}", style="dim"))


@app.command()
def chat(
    ctx: typer.Context,
    country: Optional[str] = typer.Option(
        None,
        "--country",
        help="Country whose electricity tariff is used (overrides config)"
    )
):
    """
    Calculate your monthly electricity use in a guided conversation.

    Answer each question, or pick one of the suggested options. Type
    `reset` to start over and `quit` to leave.
    """
    settings: Settings = ctx.obj
    tariff = lookup_rate(country) if country else settings.tariff.resolve()
    console.print(
        f"[dim]Using {tariff.country} tariff: {tariff.currency}{tariff.rate_per_kwh}/kWh "
        f"({tariff.source})[/]"
    )

    try:
        history = _open_repository(ctx)
    except (sqlite3.Error, OSError) as e:
        console.print(f"[yellow]History unavailable, results will not be saved:[/] {str(e)}")
        history = None

    controller = DialogueController(
        tariff,
        history=history,
        assistant=EnergyAssistant.from_config(settings.assistant)
    )
    _print_messages(controller.start())

    while True:
        try:
            text = console.input("[bold cyan]You:[/] ")
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        if text.strip().lower() in QUIT_COMMANDS:
            break
        _print_messages(controller.handle(text))

    console.print("👋 Goodbye!")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def rates(
    region: Optional[str] = typer.Option(
        None,
        "--region",
        "-r",
        help="Only show one region (e.g. Asia, Europe)"
    )
):
    """List electricity tariffs for every supported country."""
    entries = all_rates(region)
    if not entries:
        console.print(f"[yellow]No tariffs for region[/] {region}")
        sys.exit(EXIT_CODE_FAIL)

    table = Table(title="Residential Electricity Tariffs")
    table.add_column("Country")
    table.add_column("Region")
    table.add_column("Rate / kWh", justify="right")
    table.add_column("≈ USD / kWh", justify="right")
    for entry in entries:
        table.add_row(
            f"{entry.flag} {entry.country}",
            entry.region,
            f"{entry.currency}{entry.rate_per_kwh:,.2f}",
            f"${entry.usd_per_kwh:.4f}"
        )
    console.print(table)


@app.command()
def rate(country: str = typer.Argument(..., help="Country name, e.g. India or UK")):
    """Show the tariff for one country."""
    try:
        entry = RATE_TABLE.get_tariff(country)
    except ValueError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(
        f"{entry.flag} [bold]{entry.country}[/] ({entry.region}): "
        f"{entry.currency}{entry.rate_per_kwh:,.2f}/kWh (≈ ${entry.usd_per_kwh:.4f})"
    )


@app.command()
def history(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        help="Show at most this many results"
    )
):
    """List saved calculations, newest first."""
    results = _repository(ctx).list(limit)
    if not results:
        console.print("\n[bold yellow]No saved calculations yet[/]")
        console.print("Run `energyiq chat` to calculate your consumption.\n")
        return

    table = Table(title="Calculation History")
    table.add_column("ID")
    table.add_column("Date")
    table.add_column("Devices", justify="right")
    table.add_column("Monthly kWh", justify="right")
    table.add_column("Monthly Cost", justify="right")
    table.add_column("Country")
    for result in results:
        table.add_row(
            result.id,
            f"{result.timestamp:%Y-%m-%d %H:%M}",
            str(len(result.devices)),
            f"{result.total_monthly_kwh:,.2f}",
            format_currency(result.total_monthly_cost, result.currency),
            result.country
        )
    console.print(table)


@app.command()
def summary(ctx: typer.Context):
    """Overview of all saved calculations with a few energy tips."""
    stats = summarize_history(_repository(ctx).list())
    currency = stats.latest.currency if stats.latest else "₹"

    table = Table(title="Energy Dashboard")
    table.add_column("Calculations", justify="right")
    table.add_column("Devices Analyzed", justify="right")
    table.add_column("Avg Monthly Cost", justify="right")
    table.add_row(
        str(stats.total_calculations),
        str(stats.total_devices),
        format_currency(stats.average_monthly_cost, currency)
    )
    console.print(table)

    if stats.latest is None:
        console.print("\n[dim]No saved calculations yet. Run `energyiq chat` to start.[/]")
    else:
        latest = stats.latest
        console.print(
            f"\nLatest ({latest.timestamp:%Y-%m-%d %H:%M}): {format_kwh(latest.total_monthly_kwh)}/month, "
            f"{format_currency(latest.total_monthly_cost, latest.currency)}/month"
        )

    console.print("\n[bold]Quick Tips[/]")
    _print_tips(random_energy_tips(3))


def _display_result(result: CalculationResult) -> None:
    """Display a calculation as a device breakdown table."""
    table = Table(title=f"Calculation {result.id}")
    table.add_column("Device")
    table.add_column("Qty", justify="right")
    table.add_column("Watts", justify="right")
    table.add_column("Usage/Day", justify="right")
    table.add_column("Daily kWh", justify="right")
    table.add_column("Monthly kWh", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Share", justify="right")
    for item in result.devices:
        table.add_row(
            item.device.type.label,
            str(item.device.quantity),
            f"{item.device.wattage}W",
            format_duration(item.device.hours_per_day),
            f"{item.daily_kwh:.2f}",
            f"{item.monthly_kwh:.2f}",
            format_currency(item.monthly_cost, result.currency),
            f"{item.percentage:.2f}%"
        )
    console.print(table)

    console.print(f"⚡ Daily Usage: {format_kwh(result.total_daily_kwh)}")
    console.print(f"📅 Monthly Usage: {format_kwh(result.total_monthly_kwh)}")
    console.print(f"💰 Estimated Monthly Cost: {format_currency(result.total_monthly_cost, result.currency)}")
    console.print(f"🌍 Rate: {result.currency}{result.rate_per_kwh}/kWh ({result.country})")


@app.command()
def show(ctx: typer.Context, result_id: str = typer.Argument(..., help="Calculation id")):
    """Show the device breakdown of a saved calculation."""
    _display_result(_load_result(ctx, result_id))


@app.command()
def delete(ctx: typer.Context, result_id: str = typer.Argument(..., help="Calculation id")):
    """Delete one saved calculation."""
    if not _repository(ctx).remove(result_id):
        console.print(f"[red]No saved calculation with id[/] {result_id}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Deleted {result_id}")


@app.command("clear-history")
def clear_history(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation")
):
    """Delete every saved calculation."""
    if not yes and not typer.confirm("Delete all saved calculations?"):
        console.print("Aborted.")
        sys.exit(EXIT_CODE_FAIL)
    _repository(ctx).clear()
    console.print("[green]✓[/] History cleared")


@app.command()
def export(
    ctx: typer.Context,
    result_id: str = typer.Argument(..., help="Calculation id"),
    fmt: ExportFormat = typer.Option(
        ExportFormat.CSV,
        "--format",
        "-f",
        help="Output format"
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file (defaults to energyiq-<id>.<format>)"
    )
):
    """Export a saved calculation as CSV, a PDF report or a PNG chart."""
    result = _load_result(ctx, result_id)
    path = output or f"energyiq-{result.id}.{fmt.value}"
    try:
        written = _EXPORTERS[fmt](result, path)
    except OSError as e:
        console.print(f"[red]Error writing export:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Exported to {written}")


@app.command()
def tips(
    ctx: typer.Context,
    result_id: str = typer.Argument(..., help="Calculation id"),
    use_ai: bool = typer.Option(
        True,
        "--ai/--rules",
        help="Ask the AI assistant (falls back to built-in tips) or use device rules"
    )
):
    """Energy-saving tips for a saved calculation."""
    settings: Settings = ctx.obj
    result = _load_result(ctx, result_id)

    if not use_ai:
        suggestions = rule_suggestions(result)
        if not suggestions:
            console.print("[dim]No suggestions for these devices.[/]")
            return
        for suggestion in suggestions:
            console.print(
                f"{suggestion.icon} [bold]{suggestion.title}[/] [dim]({suggestion.priority})[/]"
            )
            console.print(f"   {suggestion.description}")
            console.print(f"   [green]{suggestion.savings_estimate}[/]")
        return

    report = EnergyAssistant.from_config(settings.assistant).generate_tips(result)
    if report.source != "ai":
        console.print("[yellow]AI tips unavailable, showing built-in tips[/]")
    _print_tips(report.tips)
    console.print(f"\n💰 Estimated savings: [bold green]{report.estimated_savings}[/]")


def _print_tips(energy_tips: List) -> None:
    for i, tip in enumerate(energy_tips, start=1):
        console.print(f"{i}. {tip.icon} [bold]{tip.title}[/]")
        console.print(f"   {tip.description}")
        if tip.savings:
            console.print(f"   [green]Savings: {tip.savings}[/]")


@app.command()
def ask(ctx: typer.Context, question: str = typer.Argument(..., help="Any electricity question")):
    """Ask the AI assistant a one-off question."""
    settings: Settings = ctx.obj
    reply = EnergyAssistant.from_config(settings.assistant).answer_question(question)
    if reply.source == "ai":
        console.print(Panel(Text(reply.text), title="🤖 AI Answer", title_align="left"))
    else:
        console.print(Text(f"⚠️ {reply.text}", style="yellow"))


if __name__ == "__main__":
    app()
