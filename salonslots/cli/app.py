"""
Main CLI application using Typer.
"""

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.log_notifier import LogNotifier
from ..adapters.memory_store import DEFAULT_MOCK_DATA, InMemorySalonStore
from ..adapters.supabase_store import SupabaseSalonStore
from ..config import SalonConfig, get_default_config_path
from ..domain.exceptions import SalonSchedulingError
from ..domain.models import TimeSlot
from ..domain.working_hours import parse_hhmm
from ..services.availability import AvailabilityService
from ..services.booking import BookingRequest, BookingService
from ..services.staff_assigner import StaffAutoAssigner

app = typer.Typer(
    name="salonslots",
    help="Find bookable appointment slots and book salon services",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the in-memory store seeded with demo appointments."),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _configure_logging(level: str, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], verbose: bool) -> SalonConfig:
    config = SalonConfig.load_from_yaml(config_file or get_default_config_path())
    _configure_logging(config.log_level, verbose)
    return config


def _build_store(config: SalonConfig, mock: bool):
    """Pick the Supabase store when configured, the in-memory store otherwise."""
    if config.supabase is not None and not mock:
        return SupabaseSalonStore.from_config(config.supabase, timezone=config.business.timezone)
    return InMemorySalonStore.from_config(config, mock_data=DEFAULT_MOCK_DATA if mock else None)


def _parse_date(value: str) -> date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as e:
        console.print(f"[red]Could not parse date '{value}': {e}[/red]")
        raise typer.Exit(1)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _group_slots(slots: List[TimeSlot]) -> List[tuple]:
    """Group slots into morning, afternoon and evening like the booking wizard."""
    return [
        ("Morning", [slot for slot in slots if slot.hour < 12]),
        ("Afternoon", [slot for slot in slots if 12 <= slot.hour < 16]),
        ("Evening", [slot for slot in slots if slot.hour >= 16]),
    ]


@app.command()
def slots(
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    service: Annotated[str, typer.Argument(help="Service id")],
    staff: Annotated[Optional[str], typer.Option("--staff", "-s", help="Check conflicts for this staff id")] = None,
    only_available: Annotated[bool, typer.Option("--only-available", help="Hide blocked slots.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show candidate slots for a service on a date.

    Examples:

        salonslots slots 2026-11-02 gel-manicure

        salonslots slots 2026-11-02 gel-manicure --staff anna --mock
    """
    try:
        config = _load_config(config_file, verbose)
        target_day = _parse_date(day)
        store = _build_store(config, mock)
        availability = AvailabilityService(store, store)

        result = asyncio.run(availability.get_available_slots(target_day, service, staff))

        if not result:
            console.print(f"[yellow]⚠ No slots on {target_day.isoformat()} (closed or unknown service).[/yellow]")
            return

        if not staff:
            console.print("[dim]No staff given: conflicts are not checked.[/dim]")

        table = Table(
            title=f"{service} on {target_day.isoformat()}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Part of day", style="bold")
        table.add_column("Slots")

        for label, group in _group_slots(result):
            shown = [slot for slot in group if slot.available or not only_available]
            if not shown:
                continue
            cells = [
                f"[green]{slot.label()}[/green]" if slot.available else f"[dim strike]{slot.label()}[/dim strike]"
                for slot in shown
            ]
            table.add_row(label, " ".join(cells))

        console.print()
        console.print(table)
        bookable = sum(1 for slot in result if slot.available)
        console.print(f"\n[bold green]✓ {bookable} of {len(result)} slot(s) bookable[/bold green]\n")

    except (FileNotFoundError, ValueError, SalonSchedulingError) as e:
        _fail(e)


@app.command()
def assign(
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    service: Annotated[str, typer.Argument(help="Service id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Find the first qualified staff member who is free at a given time.
    """
    try:
        config = _load_config(config_file, verbose)
        target_day = _parse_date(day)
        store = _build_store(config, mock)
        assigner = StaffAutoAssigner(store, AvailabilityService(store, store))

        staff_id = asyncio.run(assigner.find_staff(service, target_day, parse_hhmm(start)))

        if staff_id is None:
            console.print("[yellow]⚠ Nobody is free at that time, please choose a different time.[/yellow]")
            raise typer.Exit(2)

        console.print(f"[bold green]✓ Assigned staff:[/bold green] {staff_id}")

    except (FileNotFoundError, ValueError, SalonSchedulingError) as e:
        _fail(e)


@app.command()
def book(
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    service: Annotated[str, typer.Argument(help="Service id")],
    name: Annotated[str, typer.Option("--name", help="Client name")],
    email: Annotated[str, typer.Option("--email", help="Client e-mail")],
    phone: Annotated[str, typer.Option("--phone", help="Client phone")] = "",
    staff: Annotated[Optional[str], typer.Option("--staff", "-s", help="Staff id; assigned automatically if omitted")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Notes for the salon")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Book a slot. Without Supabase configured the booking only lives for this run.
    """
    try:
        config = _load_config(config_file, verbose)
        request = BookingRequest(
            service_id=service,
            appointment_date=_parse_date(day),
            appointment_time=start,
            staff_id=staff,
            client_name=name,
            client_email=email,
            client_phone=phone,
            notes=notes,
        )
        store = _build_store(config, mock)
        availability = AvailabilityService(store, store)
        booking = BookingService(
            store,
            store,
            availability,
            notifier=LogNotifier(timezone=config.business.timezone),
        )

        appointment = asyncio.run(booking.book(request))
        local_start = appointment.start_time.in_timezone(config.business.timezone)

        console.print(Panel.fit(
            f"[bold green]✓ Booking received[/bold green]\n\n"
            f"[bold]Code:[/bold] {appointment.confirmation_code}\n"
            f"[bold]When:[/bold] {local_start.format('DD.MM.YYYY HH:mm')}\n"
            f"[bold]Staff:[/bold] {appointment.staff_id}\n"
            f"[bold]Status:[/bold] {appointment.status.value}",
            title="Booking"
        ))

    except SalonSchedulingError as e:
        if e.retryable:
            console.print(f"[yellow]⚠ {e}[/yellow]")
            raise typer.Exit(3)
        _fail(e)

    except (FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def hours(
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD), defaults to today")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show opening hours for the coming seven days.
    """
    try:
        config = _load_config(config_file, verbose)
        first_day = _parse_date(start) if start else pendulum.today(config.business.timezone).date()
        store = _build_store(config, mock)

        week = asyncio.run(AvailabilityService(store, store).opening_hours_for_week(first_day))

        table = Table(title="Opening hours", show_header=True, header_style="bold cyan")
        table.add_column("Date", style="bold yellow")
        table.add_column("Weekday")
        table.add_column("Hours")

        for current, day_hours in week:
            if day_hours.open:
                window = f"{day_hours.start.strftime('%H:%M')} - {day_hours.end.strftime('%H:%M')}"
            else:
                window = "[dim]closed[/dim]"
            table.add_row(current.isoformat(), current.strftime("%A"), window)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SalonSchedulingError) as e:
        _fail(e)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
