"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_store import JsonBookingStore, JsonPromoStore, dump_bookings
from ..adapters.sample_data import generate_sample_day
from ..config import AppConfig, load_config
from ..domain.discounts import format_euros
from ..domain.exceptions import PromoRejectedError, SenseaError
from ..domain.loyalty import LoyaltyCard
from ..domain.models import SessionType, format_minutes
from ..domain.promo_codes import ClientType, generate_random_code
from ..services.availability import AvailabilityService
from ..services.loyalty import LoyaltyService
from ..services.pricing import PricingService

app = typer.Typer(
    name="sensea",
    help="Session availability and promo pricing for sensory-therapy bookings",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = ["Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi", "Samedi", "Dimanche"]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
TypeOption = Annotated[
    SessionType,
    typer.Option("--type", "-t", help="Session type"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logs.")] = False,
):
    """
    Session availability and promo pricing for sensory-therapy bookings.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Erreur:[/bold red] {message}")
    raise typer.Exit(1)


def _load(config_file: Optional[Path]) -> AppConfig:
    try:
        return load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))


def _parse_date(value: str, tz: str):
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        _fail(f"Date invalide '{value}' (attendu YYYY-MM-DD): {e}")


def _availability(config: AppConfig) -> AvailabilityService:
    store = JsonBookingStore(config.bookings_file, timezone=config.timezone)
    return AvailabilityService(config=config, booking_store=store)


def _promo_store(config: AppConfig) -> JsonPromoStore:
    return JsonPromoStore(config.promos_file, config.promo_usage_file, timezone=config.timezone)


@app.command()
def slots(
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    session_type: TypeOption = SessionType.REGULAR,
    show_all: Annotated[bool, typer.Option("--all", help="List every slot of the day, booked or not.")] = False,
    config_file: ConfigOption = None,
):
    """
    List the bookable slots of a day.

    Examples:

        sensea slots 2026-10-19
        sensea slots 2026-10-19 --type discovery
        sensea slots 2026-10-19 --all
    """
    config = _load(config_file)
    date = _parse_date(day, config.timezone)

    try:
        service = _availability(config)
        if show_all:
            times = [slot.time_label for slot in service.possible_slots(date, session_type)]
        else:
            times = [slot.start.format("HH:mm") for slot in service.get_available_slots(date, session_type)]
    except SenseaError as e:
        _fail(str(e))

    weekday = WEEKDAY_NAMES[date.weekday()]
    if not times:
        console.print(f"[yellow]⚠ Aucun créneau disponible le {weekday} {date.format('DD/MM/YYYY')}.[/yellow]")
        return

    label = service.duration_labels()[session_type].label
    console.print(f"\n[bold green]✓ {len(times)} créneau(x) – {label} – {weekday} {date.format('DD/MM/YYYY')}[/bold green]\n")
    for time_label in times:
        console.print(f"  {time_label}")
    console.print()


@app.command()
def dates(
    year: Annotated[int, typer.Argument(help="Year")],
    month: Annotated[int, typer.Argument(help="Month (1-12)")],
    session_type: TypeOption = SessionType.REGULAR,
    config_file: ConfigOption = None,
):
    """
    List the dates of a month that still have a free slot.
    """
    if not 1 <= month <= 12:
        _fail(f"Mois invalide: {month}")

    config = _load(config_file)
    try:
        available = _availability(config).get_available_dates(year, month, session_type)
    except SenseaError as e:
        _fail(str(e))

    if not available:
        console.print("[yellow]⚠ Aucune date disponible ce mois-ci.[/yellow]")
        return

    for date in available:
        console.print(f"  {WEEKDAY_NAMES[date.weekday()]} {date.format('DD/MM/YYYY')}")


@app.command()
def check(
    start: Annotated[str, typer.Argument(help="Requested start (YYYY-MM-DD HH:mm)")],
    session_type: TypeOption = SessionType.REGULAR,
    config_file: ConfigOption = None,
):
    """
    Check that a requested start time can be booked.
    """
    config = _load(config_file)
    try:
        requested = pendulum.from_format(start, "YYYY-MM-DD HH:mm", tz=config.timezone)
    except ValueError as e:
        _fail(f"Horaire invalide '{start}': {e}")

    try:
        errors = _availability(config).validate_slot(requested, session_type)
    except SenseaError as e:
        _fail(str(e))

    if errors:
        for error in errors:
            console.print(f"[red]✗ {error}[/red]")
        raise typer.Exit(1)

    console.print("[green]✓ Créneau disponible[/green]")


@app.command()
def quote(
    session_type: TypeOption = SessionType.REGULAR,
    code: Annotated[Optional[str], typer.Option("--code", help="Promo code typed by the client.")] = None,
    user: Annotated[Optional[str], typer.Option("--user", help="Client user id.")] = None,
    client_type: Annotated[Optional[ClientType], typer.Option("--client-type", help="Client type.")] = None,
    config_file: ConfigOption = None,
):
    """
    Show the price of a session, with a promo code or the best automatic promo.
    """
    config = _load(config_file)
    service = PricingService(config=config, promo_store=_promo_store(config))

    try:
        result = service.quote(session_type, code=code, user_id=user, client_type=client_type)
    except PromoRejectedError as e:
        _fail(e.message)
    except SenseaError as e:
        _fail(str(e))

    table = Table(show_header=False)
    table.add_column("", style="bold")
    table.add_column("", justify="right")
    table.add_row("Prix", format_euros(result.original_price))
    if result.applied is not None and result.promo is not None:
        name = result.promo.code or result.promo.name or result.promo.id
        table.add_row(f"Remise {name} ({result.label})", f"-{format_euros(result.applied.discount_amount)}")
    table.add_row("Total", f"[bold green]{format_euros(result.final_price)}[/bold green]")

    console.print()
    console.print(table)
    console.print()


@app.command()
def schedule(config_file: ConfigOption = None):
    """
    Show opening hours, lunch break and session durations.
    """
    config = _load(config_file)

    table = Table(title="Horaires d'ouverture", show_header=True, header_style="bold cyan")
    table.add_column("Jour", style="bold yellow")
    table.add_column("Horaires")
    for weekday, name in enumerate(WEEKDAY_NAMES):
        hours = config.business_hours.get(weekday)
        table.add_row(name, f"{hours.open} - {hours.close}" if hours else "[dim]Fermé[/dim]")

    console.print()
    console.print(table)
    console.print(f"\nPause déjeuner: {config.lunch_break.start} - {config.lunch_break.end}")
    console.print(f"Premier créneau: {config.first_slot_time}\n")

    sessions = Table(title="Séances", show_header=True, header_style="bold cyan")
    sessions.add_column("Type", style="bold yellow")
    sessions.add_column("Durée")
    sessions.add_column("Pause")
    sessions.add_column("Prix", justify="right")
    for session_type in SessionType:
        settings = config.sessions.for_type(session_type)
        sessions.add_row(
            session_type.value,
            f"{settings.display_minutes} min",
            f"{settings.pause_minutes} min",
            format_euros(settings.price),
        )
    console.print(sessions)
    console.print()


@app.command()
def sample_day(
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed for reproducible output.")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write the bookings to a JSON file.")] = None,
    config_file: ConfigOption = None,
):
    """
    Generate a random sample agenda for a day.
    """
    config = _load(config_file)
    date = _parse_date(day, config.timezone)
    past = date < pendulum.today(config.timezone).date()

    try:
        bookings = generate_sample_day(config, date, seed=seed, past=past)
    except SenseaError as e:
        _fail(str(e))

    if not bookings:
        console.print("[yellow]⚠ Jour fermé, aucune réservation générée.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Heure", style="bold")
    table.add_column("Type")
    table.add_column("Fin (pause incluse)")
    table.add_column("Statut")
    for booking in bookings:
        start_minutes = booking.start.hour * 60 + booking.start.minute
        table.add_row(
            booking.start.format("HH:mm"),
            booking.session_type.value,
            format_minutes(start_minutes + booking.blocked_minutes),
            booking.status.value,
        )
    console.print(table)

    if output is not None:
        dump_bookings(bookings, output)
        console.print(f"[green]✓ {len(bookings)} réservation(s) écrites dans {output}[/green]")


@app.command()
def new_code(
    length: Annotated[int, typer.Option("--length", help="Code length.")] = 8,
    config_file: ConfigOption = None,
):
    """
    Generate a promo code that does not clash with stored ones.
    """
    config = _load(config_file)
    store = _promo_store(config)
    try:
        code = generate_random_code(length, exists=store.code_exists)
    except (ValueError, SenseaError) as e:
        _fail(str(e))
    console.print(code)


@app.command()
def loyalty(
    sessions: Annotated[int, typer.Argument(help="Number of completed sessions.")],
    config_file: ConfigOption = None,
):
    """
    Show loyalty card progress after a number of completed sessions.

    Examples:

        sensea loyalty 4
    """
    if sessions < 0:
        _fail(f"Nombre de séances invalide: {sessions}")

    config = _load(config_file)
    service = LoyaltyService(config)
    card = LoyaltyCard()
    for _ in range(sessions):
        service.record_session(card)

    console.print(
        f"\nCarte fidélité: {card.sessions_count}/{service.sessions_required} séances "
        f"({service.progress_percent(card)}%)"
    )
    if card.free_session_available:
        console.print("[bold green]✓ Séance offerte disponible[/bold green]\n")
    else:
        console.print(f"Encore {service.sessions_remaining(card)} séance(s) avant la séance offerte\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]sensea[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
