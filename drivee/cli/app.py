"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.http_entity_store import HttpEntityStore
from ..adapters.memory_entity_store import MemoryEntityStore
from ..config import AppConfig, get_default_config_path
from ..domain.availability import AvailabilityEngine
from ..domain.exceptions import BookingConflictError, DriveeError
from ..domain.payroll import PayrollCalculator
from ..domain.periods import resolve_payroll_period, resolve_tax_periods
from ..domain.receivables import AGING_BUCKETS
from ..domain.tax import FilingState, TaxAggregator
from ..services.booking_service import BookingService, EntityStoreProtocol
from ..services.report_service import ReportService

app = typer.Typer(
    name="drivee",
    help="Lesson availability, booking and financial reports for driving schools",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled sample data instead of the entity store."),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]

FILING_STYLES = {
    FilingState.OVERDUE: "bold red",
    FilingState.URGENT: "bold yellow",
    FilingState.PENDING: "cyan",
    FilingState.CURRENT: "green",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """Load the YAML config; mock mode runs on defaults when none exists."""
    config_path = config_file or get_default_config_path()
    if mock and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_store(config: AppConfig, mock: bool) -> EntityStoreProtocol:
    if mock:
        console.print("[yellow]⚠  MOCK MODE: using sample data, changes are not saved[/yellow]\n")
        return MemoryEntityStore.from_json()

    if not config.store.base_url:
        raise ValueError("store.base_url is not configured. Set it in config.yaml or use --mock.")

    return HttpEntityStore(
        base_url=config.store.base_url,
        api_key=config.store.api_key,
        timeout=config.store.timeout_seconds,
    )


def _parse_date(value: Optional[str], tz: str, label: str) -> Optional[pendulum.DateTime]:
    if value is None:
        return None
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz)
    except ValueError as e:
        raise ValueError(f"Could not parse {label} '{value}' (expected YYYY-MM-DD): {e}") from e


def _money(value: float) -> str:
    return f"{value:,.2f}"


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


@app.command()
def slots(
    instructor_id: Annotated[str, typer.Argument(help="Instructor id")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Day to check (YYYY-MM-DD). Defaults to today.")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List the free lesson slots for an instructor on one day.

    Examples:

        drivee slots ins-aoife --date 2025-03-20 --mock
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)
        day = _parse_date(date, config.timezone, "date") or pendulum.now(config.timezone)

        service = BookingService(store, AvailabilityEngine(config.to_working_hours()))
        available = asyncio.run(service.get_available_slots(instructor_id, day))

    except (DriveeError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not available:
        console.print(f"[yellow]⚠ No available slots for {instructor_id} on {day.format('DD.MM.YYYY')}.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(available)} available slot(s) on {day.format('dddd, DD.MM.YYYY')}:[/bold green]\n")
    for slot in available:
        console.print(f"  {slot.format_display()}")
    console.print()


@app.command()
def book(
    instructor_id: Annotated[str, typer.Argument(help="Instructor id")],
    date: Annotated[str, typer.Option("--date", "-d", help="Lesson day (YYYY-MM-DD)")],
    start_time: Annotated[str, typer.Option("--time", "-t", help="Start time (HH:mm)")],
    student_id: Annotated[str, typer.Option("--student", help="Student id")],
    vehicle_id: Annotated[str, typer.Option("--vehicle", help="Vehicle id")],
    duration: Annotated[int, typer.Option("--duration", help="Lesson length in minutes")] = 60,
    price: Annotated[float, typer.Option("--price", help="Lesson price")] = 50.0,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Book a lesson after re-checking the instructor's calendar.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)
        try:
            start = pendulum.from_format(f"{date} {start_time}", "YYYY-MM-DD HH:mm", tz=config.timezone)
        except ValueError as e:
            raise ValueError(f"Could not parse lesson start '{date} {start_time}': {e}") from e
        end = start.add(minutes=duration)

        service = BookingService(store, AvailabilityEngine(config.to_working_hours()))
        booking = asyncio.run(
            service.commit_booking(
                instructor_id=instructor_id,
                student_id=student_id,
                vehicle_id=vehicle_id,
                start=start,
                end=end,
                price=price,
                extra_fields={"duration_minutes": duration},
            )
        )

    except BookingConflictError as e:
        console.print(f"[bold yellow]✗ {escape(str(e))}[/bold yellow]")
        for conflict in e.conflicts:
            console.print(f"  [dim]Conflicts with {conflict.id} ({conflict.time_range}, {conflict.status})[/dim]")
        raise typer.Exit(1)

    except (DriveeError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(
        f"[bold green]✓ Booked {booking.id}[/bold green] for {instructor_id}: {booking.time_range}"
    )


@app.command()
def cancel(
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Cancel a booking so its slot can be offered again.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)
        service = BookingService(store, AvailabilityEngine(config.to_working_hours()))
        booking = asyncio.run(service.cancel_booking(booking_id))

    except (DriveeError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"[green]✓ Booking {booking.id} cancelled.[/green]")


def _report_service(config: AppConfig, store: EntityStoreProtocol) -> ReportService:
    return ReportService(
        store,
        PayrollCalculator(config.to_payroll_policy()),
        TaxAggregator(config.to_tax_policy()),
        timezone=config.timezone,
    )


@app.command()
def payroll(
    period: Annotated[str, typer.Option("--period", "-p", help="current, last, year or custom")] = "current",
    start: Annotated[Optional[str], typer.Option("--start", help="Custom period start (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Custom period end (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show instructor commission, bonuses and withholding for a period.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)
        tz = config.timezone
        report_period = resolve_payroll_period(
            period,
            pendulum.now(tz),
            _parse_date(start, tz, "start date"),
            _parse_date(end, tz, "end date"),
        )
        report = asyncio.run(_report_service(config, store).payroll_report(report_period))

    except (DriveeError, FileNotFoundError, ValueError) as e:
        _fail(e)

    table = Table(title=f"Payroll - {report.period.label}", show_header=True, header_style="bold cyan")
    table.add_column("Instructor", style="bold yellow")
    table.add_column("Lessons", justify="right")
    table.add_column("Revenue", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Bonus", justify="right")
    table.add_column("Gross", justify="right")
    table.add_column("Net", justify="right", style="green")

    for row in report.rows:
        table.add_row(
            row.name or row.instructor_id,
            str(row.lessons),
            _money(row.revenue),
            f"{row.commission_rate:g}%",
            _money(row.bonus),
            _money(row.gross_pay),
            _money(row.net_pay),
        )

    summary = report.summary
    console.print()
    console.print(table)
    console.print(f"Total revenue: {_money(summary.total_revenue)}")
    console.print(f"Total gross pay: {_money(summary.total_gross_pay)}")
    console.print(f"Total tax withheld: {_money(summary.total_tax)}")
    console.print(f"Total NI: {_money(summary.total_ni)}")
    console.print(f"Total net pay: {_money(summary.total_net_pay)}")
    console.print(f"Active instructors: {summary.active_instructors}")
    console.print()


@app.command()
def tax(
    period: Annotated[str, typer.Option("--period", "-p", help="current, last, year or custom")] = "current",
    start: Annotated[Optional[str], typer.Option("--start", help="Custom period start (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Custom period end (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the VAT position for a period and the filing deadline state.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)
        tz = config.timezone
        now = pendulum.now(tz)
        current_period, previous_period = resolve_tax_periods(
            period,
            now,
            _parse_date(start, tz, "start date"),
            _parse_date(end, tz, "end date"),
        )
        result = asyncio.run(
            _report_service(config, store).tax_report(current_period, previous_period, now)
        )

    except (DriveeError, FileNotFoundError, ValueError) as e:
        _fail(e)

    report = result.current
    comparison = result.comparison
    filing = result.filing

    table = Table(title=f"VAT Summary - {report.period.label}", show_header=True, header_style="bold cyan")
    table.add_column("Line", style="bold")
    table.add_column("Amount", justify="right")
    table.add_column("Change", justify="right", style="dim")
    table.add_row("Gross sales", _money(report.gross_sales), f"{comparison.gross_sales_change:+.1f}%")
    table.add_row("Net sales", _money(report.net_sales), f"{comparison.net_sales_change:+.1f}%")
    table.add_row("VAT collected", _money(report.tax_collected), f"{comparison.tax_collected_change:+.1f}%")
    table.add_row("VAT deductible", _money(report.tax_deductible), "")
    table.add_row(
        "Net VAT refundable" if report.is_refundable else "Net VAT due",
        _money(abs(report.net_tax_due)),
        f"{comparison.net_tax_due_change:+.1f}%",
    )

    console.print()
    console.print(table)
    console.print(f"Rate: {report.tax_rate:g}% | Transactions: {report.transaction_count}")
    for payment_type, amount in sorted(report.by_type.items()):
        console.print(f"  {payment_type}: {_money(amount)}")

    style = FILING_STYLES[filing.state]
    console.print(
        f"\n[{style}]{filing.message}[/{style}] "
        f"(due {filing.due_date.format('DD.MM.YYYY')}, {filing.days_until_due} days)\n"
    )


@app.command()
def aging(
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show outstanding invoice balances grouped by days overdue.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)
        result = asyncio.run(
            _report_service(config, store).receivables_report(pendulum.now(config.timezone))
        )

    except (DriveeError, FileNotFoundError, ValueError) as e:
        _fail(e)

    aging_report = result.aging
    table = Table(title="Receivables Aging", show_header=True, header_style="bold cyan")
    table.add_column("Days overdue", style="bold")
    table.add_column("Invoices")
    table.add_column("Amount due", justify="right")

    for bucket, _ in AGING_BUCKETS:
        numbers = ", ".join(item.invoice.invoice_number or item.invoice.id for item in aging_report.buckets[bucket])
        table.add_row(bucket, numbers or "-", _money(aging_report.totals[bucket]))

    console.print()
    console.print(table)
    console.print(f"Overdue invoices: {aging_report.overdue_count}")
    console.print(f"Total overdue: {_money(aging_report.grand_total)}")
    console.print(f"Total outstanding: {_money(aging_report.total_outstanding)}")

    if result.by_student:
        students = Table(title="Outstanding by Student", show_header=True, header_style="bold cyan")
        students.add_column("Student", style="bold yellow")
        students.add_column("Balance", justify="right")
        for student_id, balance in result.by_student:
            students.add_row(student_id or "-", _money(balance))
        console.print()
        console.print(students)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]drivee[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
