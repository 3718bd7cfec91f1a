"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.table import Table

from ..adapters.json_store import JsonDataStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SlotEngineError
from ..domain.slot_engine import SlotEngine
from ..domain.template_resolver import CANONICAL_LOCALE, get_locale
from ..services.availability import AvailabilityService, professionals_for_service

app = typer.Typer(
    name="salonslots",
    help="Compute bookable appointment slots for salon professionals",
    add_completion=False
)

console = Console()


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the given config file, or the default one when it exists."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()


def _open_store(config: AppConfig, data_file: Optional[Path]) -> JsonDataStore:
    path = data_file or config.data_file
    if path is None:
        console.print("[red]Error: no data file given. Use --data or set data_file in the config.[/red]")
        raise typer.Exit(1)
    return JsonDataStore(
        path,
        timezone=config.timezone,
        locale=get_locale(config.weekday_locale),
    )


def _parse_date(value: Optional[str], tz: str):
    if not value:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Error parsing date '{value}': {e}[/red]")
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Appointment slot availability for salons and barbershops.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def slots(
    professional: Annotated[str, typer.Argument(help="Professional id or name")],
    service: Annotated[str, typer.Argument(help="Service id or name")],
    date: Annotated[Optional[str], typer.Option("--date", help="Date to book (YYYY-MM-DD). Defaults to today.")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", help="Path to the JSON data export")] = None,
):
    """
    List the start times at which a professional can take a service.

    Examples:

        salonslots slots ana corte --date 2026-10-20

        salonslots slots prof-1 svc-1 --data establishment.json
    """
    try:
        config = _load_config(config_file)
        store = _open_store(config, data_file)
        day = _parse_date(date, config.timezone)

        found_professional = store.find_professional(professional)
        if found_professional is None:
            console.print(f"[bold red]Error:[/bold red] Unknown professional '{professional}'")
            raise typer.Exit(1)

        found_service = store.find_service(service)
        if found_service is None:
            console.print(f"[bold red]Error:[/bold red] Unknown service '{service}'")
            raise typer.Exit(1)

        if not found_professional.offers(found_service.id):
            console.print(
                f"[yellow]⚠ {found_professional.display_name()} does not perform "
                f"{found_service.display_name()}.[/yellow]"
            )
            raise typer.Exit(1)

        availability = AvailabilityService(
            booking_source=store,
            slot_engine=SlotEngine.from_config(config, locale=CANONICAL_LOCALE),
        )
        available = asyncio.run(
            availability.find_slots(
                professional=found_professional,
                service=found_service,
                day=day,
            )
        )

        console.print()
        console.print(
            f"[bold cyan]{found_professional.display_name()}[/bold cyan] · "
            f"{found_service.display_name()} ({found_service.duration_minutes} min) · "
            f"{day.format('DD/MM/YYYY')}"
        )

        if not available:
            console.print("[yellow]⚠ No available times on this date.[/yellow]\n")
            return

        console.print(f"[bold green]✓ {len(available)} available time(s):[/bold green]\n")
        console.print("  " + "  ".join(available))
        console.print()

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def professionals(
    service: Annotated[Optional[str], typer.Option("--service", "-s", help="Only professionals performing this service")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", help="Path to the JSON data export")] = None,
):
    """
    List professionals and the services they perform.
    """
    try:
        config = _load_config(config_file)
        store = _open_store(config, data_file)

        listed = store.list_professionals()
        if service:
            found_service = store.find_service(service)
            if found_service is None:
                console.print(f"[bold red]Error:[/bold red] Unknown service '{service}'")
                raise typer.Exit(1)
            listed = professionals_for_service(found_service, listed)

        if not listed:
            console.print("[yellow]No professionals found.[/yellow]")
            return

        service_names = {s.id: s.display_name() for s in store.list_services()}

        table = Table(
            title="Professionals",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("ID", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("Services")

        for professional in listed:
            table.add_row(
                professional.id,
                professional.display_name(),
                ", ".join(service_names.get(sid, sid) for sid in professional.service_ids)
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
