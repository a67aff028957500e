"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Dict, List, Optional, Union

import typer
from pendulum import Date, DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.booking_api_client import BookingApiClient
from ..adapters.mock_booking_client import MockBookingClient
from ..config import AppConfig
from ..domain.exceptions import BookingError, BookingValidationError, SlotAlreadyBookedError
from ..domain.models import AvailableSlot
from ..domain.time_utils import parse_date
from ..services.booking_request import ClientDetails
from ..services.booking_service import BookingService

app = typer.Typer(
    name="bookingslots",
    help="Consult availability and book appointments on public booking pages",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = {
    1: "Lunes",
    2: "Martes",
    3: "Miércoles",
    4: "Jueves",
    5: "Viernes",
    6: "Sábado",
    7: "Domingo",
}

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use the bundled sample data instead of the API.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _setup(config_file: Optional[Path], verbose: bool) -> AppConfig:
    config = AppConfig.load(config_file)
    _configure_logging(logging.DEBUG if verbose else config.get_log_level())
    return config


def _build_service(config: AppConfig, mock: bool) -> BookingService:
    if mock:
        return BookingService(MockBookingClient(data_file=config.mock_data_file))
    return BookingService(BookingApiClient(base_url=config.base_url, timeout=config.request_timeout))


def _resolve_slug(slug: Optional[str], config: AppConfig) -> str:
    resolved = slug or config.default_slug
    if not resolved:
        raise ValueError("No slug given and no default_slug configured.")
    return resolved


def _format_date(date: Date) -> str:
    return f"{WEEKDAY_NAMES[date.isoweekday()]}, {date.format('DD.MM.YYYY')}"


def _format_local(instant: DateTime, tz: str) -> str:
    return instant.in_timezone(tz).format("DD.MM.YYYY HH:mm")


def _render_slots(date: Date, slots: List[AvailableSlot], title: Optional[str] = None) -> None:
    if not slots:
        console.print(f"[yellow]⚠ No hay horarios disponibles para {_format_date(date)}.[/yellow]")
        return

    table = Table(
        title=title or _format_date(date),
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Hora", style="bold")
    table.add_column("Estado")

    for slot in slots:
        status = "[green]Disponible[/green]" if slot.is_available else "[dim]No disponible[/dim]"
        table.add_row(slot.time, status)

    console.print()
    console.print(table)
    console.print()


def _parse_custom_fields(values: List[str]) -> Dict[str, Union[str, bool]]:
    """Parse ``name=value`` pairs; ``true``/``false`` become booleans."""
    fields: Dict[str, Union[str, bool]] = {}
    for item in values:
        if "=" not in item:
            raise ValueError(f"Custom field must look like name=value, got '{item}'")
        name, value = item.split("=", 1)
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            fields[name.strip()] = lowered == "true"
        else:
            fields[name.strip()] = value.strip()
    return fields


@app.command()
def slots(
    slug: Annotated[Optional[str], typer.Argument(help="Public slug of the agenda.")] = None,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD). Without it the first available date is chosen.")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the slot list for a date.

    Examples:

        # First date with a free slot
        bookingslots slots consulta-laboral

        # Specific date
        bookingslots slots consulta-laboral --date 2026-10-21

        # Sample data, no backend needed
        bookingslots slots consulta-laboral --mock
    """
    try:
        config = _setup(config_file, verbose)
        agenda = _resolve_slug(slug, config)
        service = _build_service(config, mock)

        if mock:
            console.print("[yellow]⚠  MODO MOCK: usando datos de prueba[/yellow]\n")

        if date:
            selected = parse_date(date)
            slot_list = asyncio.run(service.slots_for_date(agenda, selected))
            _render_slots(selected, slot_list)
        else:
            selection = asyncio.run(service.initial_selection(agenda))
            if selection.is_fallback:
                console.print(
                    "[yellow]⚠ No hay horarios disponibles en el periodo de reserva.[/yellow]"
                )
            _render_slots(
                selection.date,
                selection.slots,
                title=f"Primera fecha disponible: {_format_date(selection.date)}",
            )

    except (BookingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def dates(
    slug: Annotated[Optional[str], typer.Argument(help="Public slug of the agenda.")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List the dates that can be selected in the booking calendar.
    """
    try:
        config = _setup(config_file, verbose)
        agenda = _resolve_slug(slug, config)
        service = _build_service(config, mock)

        selectable = asyncio.run(service.selectable_dates(agenda))
        if not selectable:
            console.print("[yellow]⚠ No hay fechas disponibles.[/yellow]")
            return

        console.print(f"[bold green]✓ {len(selectable)} fecha(s) seleccionable(s):[/bold green]\n")
        for day in selectable:
            console.print(f"  {_format_date(day)}")
        console.print()

    except (BookingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def book(
    slug: Annotated[str, typer.Argument(help="Public slug of the agenda.")],
    date: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", "-t", help="Slot start (HH:MM)")],
    name: Annotated[str, typer.Option("--name", help="Client name")],
    email: Annotated[str, typer.Option("--email", help="Client email")],
    phone: Annotated[str, typer.Option("--phone")] = "",
    company: Annotated[str, typer.Option("--company")] = "",
    address: Annotated[str, typer.Option("--address")] = "",
    notes: Annotated[str, typer.Option("--notes")] = "",
    field: Annotated[Optional[List[str]], typer.Option("--field", "-f", help="Custom field as name=value (repeatable)")] = None,
    accept_terms: Annotated[bool, typer.Option("--accept-terms/--no-accept-terms", help="Accept the booking terms.")] = True,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Book an appointment.

    Example:

        bookingslots book consulta-laboral --date 2026-10-21 --time 16:00 \\
            --name "Ana Ruiz" --email ana@example.com --phone 600000000 \\
            --field "Tipo de asunto=Despido" --field "Acepto tratamiento de datos=true"
    """
    try:
        config = _setup(config_file, verbose)
        service = _build_service(config, mock)
        selected = parse_date(date)

        client = ClientDetails(
            name=name,
            email=email,
            phone=phone,
            company=company,
            address=address,
            notes=notes,
            custom_fields=_parse_custom_fields(field or []),
        )

        confirmation = asyncio.run(
            service.submit_booking(
                slug=slug,
                date=selected,
                time=time,
                client=client,
                terms_accepted=accept_terms,
            )
        )

        console.print(Panel.fit(
            f"[bold green]✓ ¡Cita reservada![/bold green]\n\n"
            f"[bold]Fecha:[/bold] {_format_date(selected)} {time}\n"
            f"[bold]Hora en {config.timezone}:[/bold] {_format_local(confirmation.start, config.timezone)}\n"
            f"[bold]Estado:[/bold] {confirmation.status}\n"
            f"[bold]Código de confirmación:[/bold] {confirmation.confirmation_code}",
            title="Reserva"
        ))

    except SlotAlreadyBookedError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        _render_slots(selected, e.refreshed_slots, title="Horarios actualizados")
        raise typer.Exit(1)

    except BookingValidationError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        for key, message in e.field_errors.items():
            console.print(f"  [red]•[/red] {key}: {message}")
        raise typer.Exit(1)

    except (BookingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
