"""
CLI for the image cache.

Commands:
    imgcache resolve ID - Resolve the URI to display for a resource
    imgcache fetch ID SOURCE - Cache an image from a URL or data payload
    imgcache path ID - Show where a resource is cached
    imgcache delete ID - Remove one cached image
    imgcache clear - Remove every cached image
    imgcache config - Show current configuration
    imgcache version - Print version
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from imgcache import __version__
from imgcache.cache.store import ImageCacheStore
from imgcache.config import Settings, clear_settings_cache, get_settings
from imgcache.exceptions import ConfigurationError
from imgcache.logging import setup_logging
from imgcache.resolution.policy import ImageResolver

app = typer.Typer(
    name="imgcache",
    help="Offline-capable image cache",
    no_args_is_help=True,
)

console = Console(soft_wrap=True)
error_console = Console(stderr=True)


def _load_settings() -> Settings:
    try:
        clear_settings_cache()
        settings = get_settings()
    except ValueError as e:
        # pydantic's ValidationError is a ValueError
        raise ConfigurationError("Invalid configuration", context={"error": str(e)}) from e
    setup_logging(settings.LOG_LEVEL)
    return settings


def _settings_or_exit() -> Settings:
    try:
        return _load_settings()
    except ConfigurationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def resolve(
    resource_id: Annotated[str, typer.Argument(help="Resource ID (e.g. a course ID)")],
    authoritative: Annotated[
        Optional[str],
        typer.Option("--authoritative", "-a", help="System-of-record image URL"),
    ] = None,
    legacy: Annotated[
        Optional[str],
        typer.Option("--legacy", "-l", help="Deprecated fallback image URL"),
    ] = None,
    wait: Annotated[
        bool,
        typer.Option("--wait/--no-wait", help="Report the background upgrade result"),
    ] = True,
) -> None:
    """Resolve the URI to display for a resource.

    Prints the immediate answer, then the cached path if a background
    upgrade completes.
    """
    settings = _settings_or_exit()

    async def _run() -> None:
        resolver = ImageResolver.from_settings(settings)
        try:
            resolution = resolver.resolve(
                resource_id,
                authoritative,
                legacy,
                on_upgrade=lambda uri: console.print(f"[green]upgraded[/green] {uri}"),
            )
            console.print(f"[cyan]{resolution.origin.value}[/cyan] {resolution.uri}")
            if not wait:
                resolution.cancel()
        finally:
            await resolver.close()

    asyncio.run(_run())


@app.command()
def fetch(
    resource_id: Annotated[str, typer.Argument(help="Resource ID to cache under")],
    source: Annotated[str, typer.Argument(help="Image URL or data: payload")],
) -> None:
    """Cache an image for a resource."""
    settings = _settings_or_exit()

    async def _run() -> None:
        store = ImageCacheStore.from_settings(settings)
        try:
            path = await store.write(resource_id, source)
        finally:
            await store.close()

        if path is None:
            error_console.print(f"[red]Failed to cache image for {resource_id}[/red]")
            raise typer.Exit(1)
        console.print(str(path))

    asyncio.run(_run())


@app.command()
def path(
    resource_id: Annotated[str, typer.Argument(help="Resource ID")],
) -> None:
    """Show the cache path for a resource and whether it is cached."""
    store = ImageCacheStore.from_settings(_settings_or_exit())
    cached = store.exists(resource_id)
    status = "[green]cached[/green]" if cached else "[dim]missing[/dim]"
    console.print(f"{store.path_for(resource_id)} {status}")


@app.command()
def delete(
    resource_id: Annotated[str, typer.Argument(help="Resource ID")],
) -> None:
    """Remove one cached image."""
    store = ImageCacheStore.from_settings(_settings_or_exit())
    store.delete(resource_id)
    console.print(f"Deleted {resource_id}")


@app.command()
def clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation"),
    ] = False,
) -> None:
    """Remove every cached image."""
    store = ImageCacheStore.from_settings(_settings_or_exit())
    if not yes:
        typer.confirm(f"Delete everything under {store.root}?", abort=True)
    store.clear()
    console.print("Image cache cleared")


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = _settings_or_exit()

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.display().items():
        table.add_row(key, str(value))

    console.print(table)


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"imgcache version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
