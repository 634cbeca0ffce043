from __future__ import annotations

import asyncio
import json
import sys
from functools import wraps
from typing import Any, Callable, List, Optional, Tuple, TypeVar

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import AppSettings
from .errors import GeoError
from .geofeed import GeofeedStore, load_geofeed
from .logging_config import setup_logging
from .models import GeoResult
from .providers import available_providers, get_provider
from .resolver import Resolver, result_from_entry

console = Console()
config = AppSettings()

F = TypeVar("F", bound=Callable[..., Any])


def format_error_message(error: Exception, context: Optional[str] = None) -> str:
    """Format error message for user display."""
    label = type(error).__name__
    if isinstance(error, GeoError) and error.context:
        label = f"{label} [{error.context}]"
    message = f"{context}: {label}" if context else label
    if str(error):
        message += f" - {error}"
    return message


def handle_cli_errors(context: str = "") -> Callable[[F], F]:
    """Decorator turning GeoError into a message and the error's exit code."""

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                click.echo("Operation cancelled by user", err=True)
                sys.exit(130)
            except GeoError as e:
                click.echo(format_error_message(e, context), err=True)
                sys.exit(e.exit_code)

        return wrapper  # type: ignore

    return decorator


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Logging level (default: LOG_LEVEL or WARNING).")
def cli(log_level: Optional[str]) -> None:
    """
    tracegeo: IP geolocation for network diagnostics.
    """
    setup_logging(
        log_level or config.LOG_LEVEL, config.MASK_SENSITIVE_DATA, log_file=config.LOG_FILE
    )


def _print_results(results: List[Tuple[str, GeoResult]]) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    for column in ("IP", "AS", "Location", "Owner", "Coordinates", "Source"):
        table.add_column(column)
    for ip, result in results:
        coordinates = (
            f"{result.latitude:.4f}, {result.longitude:.4f}" if result.has_coordinates else "-"
        )
        table.add_row(
            ip,
            f"AS{result.asnumber}" if result.asnumber else "-",
            result.location() or "-",
            result.owner or "-",
            coordinates,
            result.source,
        )
    console.print(table)


async def _lookup_logic_async(
    resolver: Resolver, ips: Tuple[str, ...]
) -> List[Tuple[str, GeoResult]]:
    return [(ip, await resolver.resolve_ip(ip)) for ip in ips]


@cli.command()
@click.argument("ips", nargs=-1, required=True)
@click.option(
    "--provider",
    "providers",
    multiple=True,
    help="Provider to consult when the geofeed has no match; repeat for fallbacks.",
)
@click.option("--race", is_flag=True, help="Query all providers at once, first answer wins.")
@click.option("--geofeed", "geofeed_path", type=click.Path(dir_okay=False), default=None)
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds.")
@click.option("--token", default=None, help="Access token for providers that need one.")
@click.option("--extended", is_flag=True, help="Request coordinates where optional.")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@handle_cli_errors(context="Lookup")
def lookup(
    ips: Tuple[str, ...],
    providers: Tuple[str, ...],
    race: bool,
    geofeed_path: Optional[str],
    timeout: Optional[float],
    token: Optional[str],
    extended: bool,
    as_json: bool,
) -> None:
    """Resolve one or more IP addresses."""
    settings = AppSettings()
    names = list(providers) or settings.PROVIDERS
    resolver = Resolver(
        GeofeedStore(geofeed_path if geofeed_path is not None else settings.GEOFEED_PATH),
        [get_provider(name, settings) for name in names],
        timeout=timeout or settings.TIMEOUT,
        token=token if token is not None else settings.TOKEN,
        extended=extended or settings.EXTENDED,
        strategy="race" if race else settings.STRATEGY,
    )
    results = asyncio.run(_lookup_logic_async(resolver, ips))

    if as_json:
        click.echo(json.dumps({ip: result.to_dict() for ip, result in results}, indent=2))
    else:
        _print_results(results)


@cli.command()
def providers() -> None:
    """List the available providers."""
    table = Table(show_header=True, header_style="bold cyan")
    for column in ("Name", "Network", "Token", "Base URL override", "Description"):
        table.add_column(column)
    for descriptor in available_providers():
        table.add_row(
            descriptor.name,
            "yes" if descriptor.requires_network else "no",
            "yes" if descriptor.requires_token else "no",
            "yes" if descriptor.supports_base_url else "no",
            descriptor.description,
        )
    console.print(table)


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--ip", "ips", multiple=True, help="Show the entry matching this address.")
@handle_cli_errors(context="Geofeed")
def geofeed(path: str, ips: Tuple[str, ...]) -> None:
    """Validate a geofeed file and optionally test addresses against it."""
    index = load_geofeed(path)
    click.echo(f"Loaded {len(index)} entries from {path}")
    if index.skipped:
        click.echo(f"Skipped {index.skipped} malformed rows")

    for ip in ips:
        entry = index.lookup(ip)
        if entry is None:
            click.echo(f"{ip}: no match")
            continue
        result = result_from_entry(entry)
        click.echo(f"{ip}: {entry.cidr} -> {result.location()}")


def main() -> None:  # pragma: no cover
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
