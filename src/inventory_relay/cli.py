"""CLI interface for inventory-relay."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from inventory_relay import __version__
from inventory_relay.config import RelaySettings, load_settings, merge_settings
from inventory_relay.database.engine import get_session, init_db
from inventory_relay.database.repository import VehicleRepository
from inventory_relay.dom.page import PlaywrightDocument
from inventory_relay.errors import RelayError
from inventory_relay.models.pydantic_models import (
    IngestResult,
    ScrapeSource,
    VehicleRead,
    VinDecodingResult,
)
from inventory_relay.normalization.vin import VinDecoder
from inventory_relay.posting.orchestrator import PostingOrchestrator, PostingTask
from inventory_relay.relay.auth import StaticIdentityProvider
from inventory_relay.relay.hub import RelayHub
from inventory_relay.scrapers.browser import BrowserConfig, BrowserManager
from inventory_relay.services.ingest_service import IngestService
from inventory_relay.services.scrape_service import ScrapePassResult, ScrapeService

app = typer.Typer(
    name="inventory-relay",
    help="Scrape dealer inventory, store it per owner and fill marketplace listings",
    add_completion=False,
)
console = Console()

OWNER_ENVVAR = "INVENTORY_RELAY_OWNER"
DEFAULT_STORAGE_STATE = Path("data/storage_state.json")


def output_json(data: Any) -> None:
    """Output JSON to stdout."""
    print(json.dumps(data, indent=2, ensure_ascii=False))


def format_price(cents: int | None) -> str:
    return f"${cents / 100:,.0f}" if cents is not None else "-"


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"inventory-relay version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Dealer inventory relay."""
    setup_logging(verbose)


def _load_settings(config: Path | None) -> RelaySettings:
    try:
        return load_settings(config)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e


async def _connect(settings: RelaySettings, owner: str | None) -> RelayHub:
    """Build a relay hub and, when an owner is given, authenticate as them."""
    tokens = {owner: owner} if owner else {}
    hub = RelayHub(get_session, settings, StaticIdentityProvider(tokens, admins=set(tokens)))
    if owner:
        response = await hub.authenticate(owner)
        if not response.ok:
            console.print(f"[red]Authentication failed: {response.error}[/red]")
            raise typer.Exit(1)
    return hub


def _vehicle_table(title: str, vehicles: list[VehicleRead]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Vehicle", style="white", max_width=40)
    table.add_column("VIN", style="dim")
    table.add_column("Price", style="green", justify="right")
    table.add_column("Mileage", style="blue", justify="right")
    table.add_column("Color", style="magenta")
    table.add_column("Status", style="yellow")
    for vehicle in vehicles:
        table.add_row(
            str(vehicle.id),
            " ".join(str(p) for p in (vehicle.year, vehicle.make, vehicle.model) if p),
            vehicle.vin or "-",
            format_price(vehicle.price),
            f"{vehicle.mileage:,}" if vehicle.mileage is not None else "-",
            vehicle.exterior_color.value,
            vehicle.status.value,
        )
    return table


def _print_scrape_result(result: ScrapePassResult, json_output: bool) -> None:
    response = result.response
    if json_output:
        output_json({
            "source": result.batch.source.value,
            "found": len(result.batch.vehicles),
            "dropped": result.batch.dropped,
            "sent": result.sent,
            "response": response.model_dump(mode="json") if response else None,
        })
        return

    console.print(
        f"Found [bold]{len(result.batch.vehicles)}[/bold] vehicles "
        f"([dim]{result.batch.dropped} cards dropped[/dim])"
    )
    if response is None:
        console.print("[yellow]Nothing sent.[/yellow]")
        return
    console.print(
        f"[green]{response.inserted} inserted[/green], "
        f"[blue]{response.updated} updated[/blue], "
        f"[red]{len(response.errors)} errored[/red]"
    )
    if not response.ok:
        console.print(f"[red]{response.error}[/red]")
    for error in response.errors:
        console.print(f"  [red]#{error.index}[/red] {error.vin or '-'}: {error.reason}")


@app.command()
def init_database(
    db_path: Path | None = typer.Option(
        None,
        "--db",
        "-d",
        help="Path to SQLite database file.",
    ),
    echo: bool = typer.Option(False, "--echo", help="Show SQL statements."),
) -> None:
    """Initialize the database, creating all tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")

    try:
        init_db(db_path, echo=echo)
        db_location = db_path or "data/inventory_relay.db"
        console.print(f"[green]Database initialized at: {db_location}[/green]")
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1) from e


@app.command()
def scrape(
    url: str = typer.Argument(..., help="Inventory page URL."),
    source: ScrapeSource | None = typer.Option(
        None, "--source", "-s", help="Inventory site. Detected from the URL when omitted."
    ),
    owner: str | None = typer.Option(None, "--owner", "-o", envvar=OWNER_ENVVAR, help="Owner id."),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run browser headless."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Settings YAML."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Scrape a live inventory page and ingest the vehicles."""
    settings = _load_settings(config)

    async def run() -> ScrapePassResult:
        hub = await _connect(settings, owner)
        return await ScrapeService(hub.relay, settings).scrape_url(url, source, headless)

    try:
        result = asyncio.run(run())
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e
    _print_scrape_result(result, json_output)


@app.command()
def scrape_file(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved HTML page."),
    source: ScrapeSource = typer.Option(..., "--source", "-s", help="Inventory site."),
    url: str = typer.Option("", "--url", help="Original page URL, for resolving image links."),
    owner: str | None = typer.Option(None, "--owner", "-o", envvar=OWNER_ENVVAR, help="Owner id."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Settings YAML."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Scrape a saved inventory page and ingest the vehicles."""
    settings = _load_settings(config)
    html = path.read_text(encoding="utf-8")

    async def run() -> ScrapePassResult:
        hub = await _connect(settings, owner)
        return await ScrapeService(hub.relay, settings).scrape_html(html, source, url=url)

    _print_scrape_result(asyncio.run(run()), json_output)


@app.command()
def ingest(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of vehicles."),
    owner: str | None = typer.Option(None, "--owner", "-o", envvar=OWNER_ENVVAR, help="Owner id."),
    source: str | None = typer.Option(None, "--source", "-s", help="Source tag for the batch."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Upsert a JSON batch of vehicles for an owner."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1) from e

    vehicles = payload.get("vehicles", []) if isinstance(payload, dict) else payload
    if not isinstance(vehicles, list):
        console.print("[red]Expected a list of vehicles[/red]")
        raise typer.Exit(1)

    with get_session() as session:
        result: IngestResult = IngestService(session).ingest_batch(vehicles, owner, source)

    if json_output:
        output_json({
            "counts": result.counts,
            "errors": [error.model_dump(mode="json") for error in result.errored],
        })
        return

    counts = result.counts
    console.print(
        f"[green]{counts['inserted']} inserted[/green], "
        f"[blue]{counts['updated']} updated[/blue], "
        f"[red]{counts['errored']} errored[/red] of {counts['total']}"
    )
    for error in result.errored:
        console.print(f"  [red]#{error.index}[/red] {error.vin or '-'}: {error.reason}")


@app.command()
def pending(
    owner: str = typer.Option(..., "--owner", "-o", envvar=OWNER_ENVVAR, help="Owner id."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """List vehicles waiting to be posted."""
    with get_session() as session:
        vehicles = IngestService(session).get_pending_vehicles(owner)

    if json_output:
        output_json([vehicle.model_dump(mode="json") for vehicle in vehicles])
        return

    if not vehicles:
        console.print("[yellow]No pending vehicles.[/yellow]")
        return
    console.print(_vehicle_table(f"Pending vehicles ({len(vehicles)})", vehicles))


@app.command(name="list")
def list_vehicles(
    owner: str | None = typer.Option(None, "--owner", "-o", envvar=OWNER_ENVVAR, help="Owner id."),
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum number of vehicles to show."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """List stored vehicles, newest first."""
    with get_session() as session:
        repo = VehicleRepository(session)
        vehicles = [VehicleRead.model_validate(v) for v in repo.list_vehicles(owner, limit)]
        total = repo.count_vehicles(owner)

    if json_output:
        output_json({
            "vehicles": [vehicle.model_dump(mode="json") for vehicle in vehicles],
            "count": len(vehicles),
            "total": total,
        })
        return

    if not vehicles:
        console.print("[yellow]No vehicles found.[/yellow]")
        return
    console.print(_vehicle_table(f"Vehicles ({len(vehicles)} of {total})", vehicles))


@app.command()
def login(
    storage_state: Path = typer.Option(
        DEFAULT_STORAGE_STATE, "--storage-state", help="Where to save the session."
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Settings YAML."),
) -> None:
    """Open a browser to log in to the marketplace and save the session."""
    settings = _load_settings(config)

    async def run() -> None:
        async with BrowserManager(BrowserConfig(headless=False)) as browser:
            await browser.open(settings.marketplace_create_url)
            console.input("Log in in the browser window, then press [bold]Enter[/bold] here... ")
            await browser.save_storage_state(storage_state)

    asyncio.run(run())
    console.print(f"[green]Session saved to {storage_state}[/green]")


@app.command()
def post(
    owner: str = typer.Option(..., "--owner", "-o", envvar=OWNER_ENVVAR, help="Owner id."),
    headless: bool = typer.Option(False, "--headless/--no-headless", help="Run browser headless."),
    storage_state: Path = typer.Option(
        DEFAULT_STORAGE_STATE,
        "--storage-state",
        help="Playwright storage state saved by login; skipped when missing.",
    ),
    alternate_injection: bool | None = typer.Option(
        None,
        "--alternate-injection/--script-injection",
        help="Fill inputs by native typing instead of script injection.",
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Settings YAML."),
) -> None:
    """Fill a marketplace listing form for every pending vehicle."""
    settings = merge_settings(
        _load_settings(config), {"use_alternate_injection": alternate_injection}
    )

    def on_progress(task: PostingTask, index: int, total: int) -> None:
        style = "green" if task.error is None else "red"
        suffix = f": {task.error}" if task.error else ""
        line = f"[{index}/{total}] {task.label} {task.state.value}{suffix}"
        console.print(f"[{style}]{line}[/{style}]", highlight=False)

    async def run() -> Any:
        hub = await _connect(settings, owner)
        browser_config = BrowserConfig(headless=headless, storage_state=storage_state)
        async with BrowserManager(browser_config) as browser:
            page = await browser.open(settings.marketplace_create_url)
            document = PlaywrightDocument(
                page, use_alternate_injection=settings.use_alternate_injection
            )

            async def fresh_form() -> PlaywrightDocument:
                await page.goto(settings.marketplace_create_url, wait_until="domcontentloaded")
                return document

            hub.attach_document(fresh_form)
            orchestrator = PostingOrchestrator(hub.relay, settings, progress_callback=on_progress)
            return await orchestrator.run()

    result = asyncio.run(run())
    if result.error:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)
    console.print(
        f"\n[bold]Done:[/bold] [green]{result.posted} filled[/green], "
        f"[red]{result.errored} failed[/red]"
    )


@app.command()
def decode_vin(
    vin: str | None = typer.Argument(None, help="17-character VIN."),
    vehicle_id: int | None = typer.Option(
        None, "--vehicle-id", help="Decode a stored vehicle's VIN and save the attributes."
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Settings YAML."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Decode a VIN with the NHTSA vPIC service."""
    if vin is None and vehicle_id is None:
        console.print("[red]Give a VIN or --vehicle-id[/red]")
        raise typer.Exit(1)
    decoder_settings = _load_settings(config).vin_decoder

    async def run() -> VinDecodingResult:
        async with VinDecoder(decoder_settings.base_url, decoder_settings.timeout) as decoder:
            if vehicle_id is None:
                return await decoder.decode((vin or "").strip().upper())
            with get_session() as session:
                return await IngestService(session).decode_and_store_vin(vehicle_id, decoder)

    try:
        result = asyncio.run(run())
    except RelayError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from e

    if json_output:
        output_json(result.model_dump(mode="json"))
        if not result.success:
            raise typer.Exit(1)
        return

    if not result.success:
        console.print(f"[red]Decoding failed: {result.error}[/red]")
        raise typer.Exit(1)

    title = f"VIN {vin.strip().upper()}" if vin else f"Vehicle {vehicle_id}"
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for field in ("body_style", "fuel_type", "transmission", "engine", "vehicle_type", "drivetrain"):
        table.add_row(field.replace("_", " ").title(), getattr(result, field) or "-")
    console.print(table)


if __name__ == "__main__":
    app()
