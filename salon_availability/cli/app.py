"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AvailabilityError
from ..adapters.http_client import BackendClient
from ..adapters.json_store import JsonScheduleStore
from ..services.availability_service import AvailabilityService, EngineSettings
from ..services.boundary import AvailabilityRequestHandler

app = typer.Typer(
    name="salon-availability",
    help="Employee availability, time slots and booking validation",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the raw result as JSON.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]
ServiceOption = Annotated[Optional[str], typer.Option("--service", "-s", help="Service ID (price and default duration)")]
DurationOption = Annotated[Optional[str], typer.Option("--duration", "-d", help="Slot duration in minutes")]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=False, show_path=False)],
        force=True,
    )


def build_handler(config: AppConfig) -> AvailabilityRequestHandler:
    """Wire the configured data source into the availability service."""
    source = config.data_source

    if source.kind == "http":
        provider = BackendClient(
            base_url=source.base_url,
            api_token=source.api_token,
            timezone=config.timezone,
            timeout_seconds=source.timeout_seconds,
        )
    else:
        provider = JsonScheduleStore(data_file=source.path, timezone=config.timezone)

    settings = EngineSettings(
        timezone=config.timezone,
        default_duration_minutes=config.defaults.duration_minutes,
        horizon_days=config.defaults.horizon_days,
        suggestion_limit=config.defaults.suggestion_limit,
        suggestion_days=config.defaults.suggestion_days,
    )
    service = AvailabilityService(
        schedule_provider=provider,
        appointment_provider=provider,
        service_catalog=provider,
        settings=settings,
    )
    return AvailabilityRequestHandler(service)


def _run(
    config_file: Optional[Path],
    verbose: bool,
    operation: Callable[[AvailabilityRequestHandler], Awaitable[Dict[str, Any]]],
) -> Dict[str, Any]:
    """Load config, run one boundary operation and map failures to exit code 1."""
    try:
        config_path = config_file or get_default_config_path()
        config = AppConfig.load_from_yaml(config_path)
        _configure_logging("DEBUG" if verbose else config.log_level)

        handler = build_handler(config)
        return asyncio.run(operation(handler))

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (AvailabilityError, ValueError) as e:
        logger.debug("Request failed", exc_info=True)
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _slot_table(title: str, slots) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Date", style="dim")
    table.add_column("Time", style="bold")
    table.add_column("Status")
    table.add_column("Price", justify="right")

    for slot in slots:
        status = "[green]available[/green]" if slot["available"] else f"[red]{slot['reason'] or 'unavailable'}[/red]"
        price = f"{slot['price']:.2f}" if slot.get("price") is not None else "-"
        table.add_row(slot["date"], f"{slot['start_time']} – {slot['end_time']}", status, price)

    return table


@app.command()
def days(
    employee_id: Annotated[str, typer.Argument(help="Employee ID")],
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD), defaults to today")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD), defaults to 30 days after start")] = None,
    service: ServiceOption = None,
    duration: DurationOption = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    Show per-day availability for a date range.

    Examples:

        salon-availability days emp-1 --start 2024-11-25 --end 2024-11-29
    """
    result = _run(
        config_file,
        verbose,
        lambda handler: handler.get_employee_availability(
            {
                "employee_id": employee_id,
                "start_date": start,
                "end_date": end,
                "service_id": service,
                "duration": duration,
            }
        ),
    )

    if as_json:
        console.print_json(data=result)
        return

    table = Table(title=f"Availability for {employee_id}", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Status")
    table.add_column("Slots", justify="right")
    table.add_column("Available", justify="right")

    styles = {"working": "green", "fully_booked": "yellow", "unavailable": "dim"}
    for day in result["data"]:
        style = styles.get(day["status"], "white")
        table.add_row(
            day["date"],
            f"[{style}]{day['status']}[/{style}]",
            str(day["total_slots"]),
            str(day["available_slots"]),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def slots(
    employee_id: Annotated[str, typer.Argument(help="Employee ID")],
    date: Annotated[str, typer.Option("--date", help="Date (YYYY-MM-DD)")],
    service: ServiceOption = None,
    duration: DurationOption = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    List every time slot of a single day.
    """
    result = _run(
        config_file,
        verbose,
        lambda handler: handler.get_time_slots(
            {
                "employee_id": employee_id,
                "date": date,
                "service_id": service,
                "duration": duration,
            }
        ),
    )

    if as_json:
        console.print_json(data=result)
        return

    meta = result["meta"]
    console.print()
    if not result["data"]:
        console.print(f"[yellow]⚠ {employee_id} is not available on {meta['date']}.[/yellow]\n")
        return

    console.print(_slot_table(f"Slots for {employee_id} on {meta['date']} ({meta['duration']} min)", result["data"]))
    console.print(
        f"\n[bold]{meta['available_slots']}[/bold] of [bold]{meta['total_slots']}[/bold] slot(s) available\n"
    )


@app.command()
def validate(
    employee_id: Annotated[str, typer.Argument(help="Employee ID")],
    start: Annotated[str, typer.Option("--start", help="Booking start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Booking end (ISO 8601)")],
    service: ServiceOption = None,
    exclude: Annotated[Optional[str], typer.Option("--exclude", help="Appointment ID to ignore when re-validating an edit")] = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    Check whether a booking can be made and suggest alternatives if not.
    """
    result = _run(
        config_file,
        verbose,
        lambda handler: handler.validate_booking(
            {
                "employee_id": employee_id,
                "service_id": service,
                "scheduled_start": start,
                "scheduled_end": end,
                "exclude_appointment_id": exclude,
            }
        ),
    )

    if as_json:
        console.print_json(data=result)
        return

    console.print()
    if result["valid"]:
        console.print(Panel.fit("[bold green]✓ Booking is valid[/bold green]", title="Validation"))
        console.print()
        return

    console.print(Panel.fit(f"[bold red]✗ {result['reason']}[/bold red]", title="Validation"))

    for conflict in result["conflicts"]:
        console.print(f"  [dim]conflicts with[/dim] {conflict['id']} ({conflict['scheduled_start']} – {conflict['scheduled_end']})")

    if result["suggestions"]:
        console.print()
        console.print(_slot_table("Suggested alternatives", result["suggestions"]))
    console.print()


@app.command(name="next")
def next_available(
    employee_id: Annotated[str, typer.Argument(help="Employee ID")],
    service: ServiceOption = None,
    duration: DurationOption = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    Find the next open slot within the configured horizon.
    """
    result = _run(
        config_file,
        verbose,
        lambda handler: handler.get_next_available(
            {"employee_id": employee_id, "service_id": service, "duration": duration}
        ),
    )

    if as_json:
        console.print_json(data=result)
        return

    console.print()
    if result["available"]:
        slot = result["next_slot"]
        console.print(
            f"[bold green]✓ Next available:[/bold green] {slot['date']} "
            f"{slot['start_time']} – {slot['end_time']}"
        )
    else:
        console.print(f"[yellow]⚠ {result['reason']}[/yellow]")
    console.print()


@app.command()
def summary(
    employee_id: Annotated[str, typer.Argument(help="Employee ID")],
    date: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD), defaults to today")] = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    Show working status, slot counts and utilization for one day.
    """
    result = _run(
        config_file,
        verbose,
        lambda handler: handler.get_availability_summary({"employee_id": employee_id, "date": date}),
    )

    if as_json:
        console.print_json(data=result)
        return

    lines = [
        f"[bold]Working:[/bold] {'yes' if result['is_working'] else 'no'}",
        f"[bold]Slots:[/bold] {result['available_slots']} available / {result['total_slots']} total",
        f"[bold]Booked:[/bold] {result['booked_slots']}",
        f"[bold]Utilization:[/bold] {result['utilization_rate']:.2f}%",
    ]
    if result["next_available"]:
        next_slot = result["next_available"]
        lines.append(f"[bold]Next available:[/bold] {next_slot['date']} {next_slot['time']}")

    console.print()
    console.print(Panel.fit("\n".join(lines), title=f"{employee_id} – {result['date']}"))
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salon-availability[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
