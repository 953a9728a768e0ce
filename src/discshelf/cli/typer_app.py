"""
DiscShelf Typer CLI Application

Commands:
    lookup       Resolve a barcode into a metadata match
    clean-title  Show how a retail product title is normalized
    search       Browse metadata search results page by page
    scan         Enter barcodes by hand and resolve them one after another
    cache        Inspect or clear the persistent lookup cache
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated, Iterable, Optional

import typer
from rich.console import Console
from rich.table import Table

from discshelf import __version__
from discshelf.cli.context import CliContext, LogLevel, get_cli_context, set_cli_context
from discshelf.cli.error_handler import handle_cli_error
from discshelf.cli.json_formatter import format_json_output
from discshelf.config.loader import load_settings
from discshelf.config.models import Settings
from discshelf.containers import create_container
from discshelf.core.matching.models import ProductRecord, ResolutionResult
from discshelf.core.normalization import clean_title, extract_physical_edition, extract_year
from discshelf.scanner.models import ScanOutcome, ScanStatus
from discshelf.scanner.session import ScannerSession
from discshelf.shared.constants import CacheDefaults
from discshelf.shared.errors import DiscShelfError
from discshelf.shared.logging import setup_structured_logger
from discshelf.shared.validation import sanitize_input

console = Console()

QUIT_WORDS = frozenset({"q", "quit", "exit"})

_STATUS_STYLES = {
    ScanStatus.COMPLETED: "green",
    ScanStatus.SCANNED: "cyan",
    ScanStatus.FAILED: "red",
    ScanStatus.INVALID: "red",
    ScanStatus.DUPLICATE: "yellow",
    ScanStatus.PROCESSING: "yellow",
    ScanStatus.RATE_LIMITED: "yellow",
}


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(f"DiscShelf v{__version__}")
        raise typer.Exit


app = typer.Typer(
    name="discshelf",
    help="Identify DVDs and Blu-rays by barcode and match them to a movie catalog.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

cache_app = typer.Typer(help="Inspect or clear the persistent lookup cache.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")


@app.callback()
def main(
    log_level: Annotated[
        Optional[LogLevel],
        typer.Option("--log-level", case_sensitive=False, help="Override the configured log level."),
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a TOML configuration file."),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version information and exit.",
        ),
    ] = False,
) -> None:
    """Process the global options shared by every command."""
    set_cli_context(CliContext(log_level=log_level, config_path=config))


def _bootstrap() -> Settings:
    """Configure logging and load settings for a command."""
    context = get_cli_context()
    override = context.log_level.value if context.log_level else None
    setup_structured_logger(level=override or "INFO")

    settings = load_settings(context.config_path)
    setup_structured_logger(
        level=override or settings.logging.level,
        log_file=settings.logging.file,
        use_rich_console=settings.logging.rich_console,
    )

    if settings.cache.directory is None:
        cache = settings.cache.model_copy(update={"directory": str(Path.home() / CacheDefaults.DIRECTORY)})
        settings = settings.model_copy(update={"cache": cache})
    return settings


def _render_result(result: ResolutionResult) -> None:
    edition = result.physical_edition
    table = Table(title=f"Barcode {result.upc_data.barcode}", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    table.add_row("Product", result.upc_data.raw_title)
    table.add_row("Clean title", result.clean_title)
    table.add_row("Year", str(result.extracted_year or "-"))
    if result.is_placeholder:
        table.add_row("Match", "[yellow]No match found[/yellow]")
    else:
        table.add_row("Match", f"{result.match.title} ({getattr(result.match, 'release_year', None) or '?'})")
        table.add_row("Media type", getattr(result.match, "media_type", "-"))
    table.add_row("Confidence", f"{result.confidence:.1f}")
    review = "[yellow]yes[/yellow]" if result.needs_review else "[green]no[/green]"
    table.add_row("Needs review", review)
    table.add_row("Format", edition.format)
    table.add_row("Edition", edition.edition)
    table.add_row("Region", edition.region)
    if edition.distributor:
        table.add_row("Distributor", edition.distributor)
    if edition.features:
        table.add_row("Features", ", ".join(edition.features))
    table.add_row("Identifier", edition.unique_identifier)
    console.print(table)


@app.command("lookup")
def lookup_command(
    barcode: Annotated[str, typer.Argument(help="UPC/EAN barcode (8-18 digits).")],
    json_output: Annotated[bool, typer.Option("--json", help="Print machine-readable JSON.")] = False,
) -> None:
    """Resolve a barcode into a product and its best metadata match."""
    try:
        settings = _bootstrap()
        engine = create_container(settings).resolution_engine()
        result = asyncio.run(engine.resolve(barcode))

        if json_output:
            typer.echo(format_json_output(True, "lookup", data=result.to_dict()).decode("utf-8"))
        else:
            _render_result(result)
    except DiscShelfError as e:
        raise typer.Exit(handle_cli_error(e, "lookup", json_output=json_output)) from e


@app.command("clean-title")
def clean_title_command(
    text: Annotated[str, typer.Argument(help="Retail product title.")],
) -> None:
    """Show the cleaned title, year and edition details for a product title."""
    raw = sanitize_input(text)
    edition = extract_physical_edition(ProductRecord(barcode="", raw_title=raw))

    table = Table(show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Clean title", clean_title(raw))
    table.add_row("Year", str(extract_year(raw) or "-"))
    table.add_row("Format", edition.format)
    table.add_row("Edition", edition.edition)
    table.add_row("Region", edition.region)
    table.add_row("Release type", edition.release_type)
    if edition.features:
        table.add_row("Features", ", ".join(edition.features))
    console.print(table)


@app.command("search")
def search_command(
    query: Annotated[str, typer.Argument(help="Title to search for.")],
    page: Annotated[int, typer.Option("--page", "-p", min=1, help="Result page.")] = 1,
) -> None:
    """Search the metadata catalog."""
    try:
        settings = _bootstrap()
        engine = create_container(settings).resolution_engine()
        results = asyncio.run(engine.search_titles(sanitize_input(query), page))
    except DiscShelfError as e:
        raise typer.Exit(handle_cli_error(e, "search")) from e

    table = Table(title=f"Results for '{query}' (page {results.page} of {max(results.total_pages, 1)})")
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Title", style="bold")
    table.add_column("Year")
    table.add_column("Popularity", justify="right")
    for result in results.results:
        table.add_row(
            str(result.id),
            result.media_type,
            result.display_title,
            str(result.release_year or "-"),
            f"{result.popularity:.1f}",
        )
    console.print(table)
    if results.has_next:
        console.print(f"[dim]More results: --page {results.page + 1}[/dim]")


def _print_outcome(outcome: ScanOutcome) -> None:
    style = _STATUS_STYLES.get(outcome.status, "white")
    console.print(f"[{style}]{outcome.message}[/{style}]")
    if outcome.status is ScanStatus.COMPLETED and isinstance(outcome.result, ResolutionResult):
        result = outcome.result
        review = " [yellow](needs review)[/yellow]" if result.needs_review else ""
        console.print(f"  {result.match.title} - confidence {result.confidence:.1f}{review}")


async def _scan_lines(session: ScannerSession, lines: Iterable[str]) -> None:
    for line in lines:
        text = line.strip()
        if not text:
            continue
        if text.lower() in QUIT_WORDS:
            break
        _print_outcome(await session.submit_manual(text))


@app.command("scan")
def scan_command() -> None:
    """Type or paste barcodes, one per line; 'q' or end of input stops."""
    try:
        settings = _bootstrap()
        container = create_container(settings)
    except DiscShelfError as e:
        raise typer.Exit(handle_cli_error(e, "scan")) from e

    async def run() -> dict:
        session = container.scanner_session()
        await _scan_lines(session, sys.stdin)
        return session.stats()

    console.print("Enter barcodes (8-18 digits). Type 'q' to finish.")
    try:
        stats = asyncio.run(run())
    except KeyboardInterrupt as e:
        raise typer.Exit(handle_cli_error(e, "scan")) from e
    console.print(f"Processed {len(stats['scanned_barcodes'])} barcode(s).")


@cache_app.command("stats")
def cache_stats_command() -> None:
    """Show cache size and counters."""
    try:
        settings = _bootstrap()
        cache = create_container(settings).cache()
    except DiscShelfError as e:
        raise typer.Exit(handle_cli_error(e, "cache stats")) from e

    if cache is None:
        console.print("Cache is disabled.")
        return

    stats = cache.stats()
    table = Table(title="Lookup cache", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Location", str(settings.cache.directory))
    table.add_row("Size", f"{stats.total_mb:.2f} MB of {stats.max_mb:.2f} MB")
    table.add_row("Bytes", f"{stats.total_bytes} / {stats.max_bytes}")
    console.print(table)


@cache_app.command("clear")
def cache_clear_command(
    namespace: Annotated[
        Optional[str],
        typer.Option("--namespace", "-n", help="Only clear this namespace (upc, search, details, match)."),
    ] = None,
) -> None:
    """Remove cached entries."""
    try:
        settings = _bootstrap()
        cache = create_container(settings).cache()
    except DiscShelfError as e:
        raise typer.Exit(handle_cli_error(e, "cache clear")) from e

    if cache is None:
        console.print("Cache is disabled.")
        return

    removed = cache.clear(namespace)
    scope = f"namespace '{namespace}'" if namespace else "all namespaces"
    console.print(f"Removed {removed} cached entr{'y' if removed == 1 else 'ies'} from {scope}.")
