"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import importlib.util
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from xdl import __version__
from xdl.capture.har import DEFAULT_CHUNK_SIZE, load_har, replay_har
from xdl.core import DownloadManager
from xdl.engine import MediaEngine
from xdl.exceptions import XdlError
from xdl.media import close_connection_pool
from xdl.models.config import XdlConfig
from xdl.storage.config_manager import ConfigManager, default_config_file
from xdl.utils.hosts import dedupe_hosts, extract_host, is_host_allowed

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_hosts_table,
    print_stats_table,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("xdl")

app = typer.Typer(
    name="xdl",
    help=(
        "Resolve and download web media, including the best MP4 rendition of"
        " Twitter/X videos. Use 'xdl <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
hosts_app = typer.Typer(help="Manage the hosts on which the download button is shown.")
app.add_typer(hosts_app, name="hosts")


def _config_manager(ctx: typer.Context) -> ConfigManager:
    return ConfigManager(ctx.obj["config_file"])


def _load_config(ctx: typer.Context) -> XdlConfig:
    try:
        return _config_manager(ctx).load_config()
    except XdlError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


def _fail(error: Exception) -> typer.Exit:
    console.print(format_error_with_suggestions(error))
    return typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar="XDL_CONFIG",
        help="Path to the configuration file.",
        dir_okay=False,
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """xdl media downloader"""
    if version:
        console.print(f"[bold]xdl[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("xdl").setLevel(log_level)

    ctx.obj = {"config_file": config_file or default_config_file()}

    if show_config:
        config = _load_config(ctx)
        print_config(ctx.obj["config_file"], config)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    ctx: typer.Context,
    image_folder: str = typer.Option(
        "", "--image-folder", help="Sub-folder of the download dir for images."
    ),
    video_folder: str = typer.Option(
        "", "--video-folder", help="Sub-folder of the download dir for videos."
    ),
    download_dir: str = typer.Option(
        "~/Downloads", "--download-dir", help="Directory that downloads are saved in."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration without asking."
    ),
):
    """Write a configuration file with default settings."""
    config_manager = _config_manager(ctx)
    if (
        config_manager.config_file_path.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        config_manager.save_new_config(
            {
                "image_folder": image_folder,
                "video_folder": video_folder,
                "download_dir": download_dir,
            }
        )
    except XdlError as e:
        raise _fail(e) from e
    console.print(
        f"[bold green]✓ Configuration saved to '{config_manager.config_file_path}'"
        "[/bold green]"
    )


@app.command()
def validate(ctx: typer.Context):
    """Validate the current configuration."""
    print_validation_table(_load_config(ctx))


def _replay(
    config: XdlConfig, har_file: Path, tab: int, chunk_size: int
) -> MediaEngine:
    engine = MediaEngine(config)
    har = load_har(har_file)
    count = replay_har(engine, har, tab, chunk_size)
    log.debug(f"Replayed {count} events from '{har_file}'.")
    return engine


@app.command()
def resolve(
    ctx: typer.Context,
    har_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="HAR archive exported from the browser."
    ),
    media_id: str = typer.Option(
        "", "--media-id", "-m", help="Media id of the video (default: last seen)."
    ),
    tab: int = typer.Option(0, "--tab", "-t", min=0, help="Tab id to replay into."),
    chunk_size: int = typer.Option(
        DEFAULT_CHUNK_SIZE, "--chunk-size", min=1, help="Replay chunk size in bytes."
    ),
    show_stats: bool = typer.Option(
        False, "--stats", help="Show what the engine observed."
    ),
):
    """Print the best downloadable video URL found in a HAR archive."""
    config = _load_config(ctx)
    try:
        engine = _replay(config, har_file, tab, chunk_size)
        url = engine.resolve(tab, media_id)
    except XdlError as e:
        raise _fail(e) from e

    if show_stats:
        print_stats_table(engine.stats, len(engine.registry))
    if not url:
        console.print("[red]✗ Unable to resolve Twitter video URL.[/red]")
        raise typer.Exit(code=1)
    typer.echo(url)


@app.command()
def download(
    ctx: typer.Context,
    har_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="HAR archive exported from the browser."
    ),
    media_id: str = typer.Option(
        "", "--media-id", "-m", help="Media id of the video (default: last seen)."
    ),
    tab: int = typer.Option(0, "--tab", "-t", min=0, help="Tab id to replay into."),
):
    """Resolve the best video in a HAR archive and download it."""
    config = _load_config(ctx)

    async def _download_async() -> Path:
        try:
            engine = _replay(config, har_file, tab, DEFAULT_CHUNK_SIZE)
            manager = DownloadManager(config, engine)
            return await manager.download_twitter_video(tab, media_id)
        finally:
            await close_connection_pool()

    try:
        path = asyncio.run(_download_async())
    except XdlError as e:
        raise _fail(e) from e
    except Exception as e:
        log.debug("Full traceback:", exc_info=True)
        raise _fail(e) from e
    console.print(f"[green]✓ Saved to[/green] {escape(str(path))}")


@app.command()
def fetch(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Direct URL of an image or video."),
    media_type: str = typer.Option(
        "image", "--type", help="Media type, selects the target folder (image|video)."
    ),
):
    """Download a media URL into the configured folder."""
    if media_type not in ("image", "video"):
        console.print("[red]✗ --type must be 'image' or 'video'.[/red]")
        raise typer.Exit(code=1)
    config = _load_config(ctx)

    async def _fetch_async() -> Path:
        try:
            return await DownloadManager(config).download_media(url, media_type)
        finally:
            await close_connection_pool()

    try:
        path = asyncio.run(_fetch_async())
    except XdlError as e:
        raise _fail(e) from e
    except Exception as e:
        log.debug("Full traceback:", exc_info=True)
        raise _fail(e) from e
    console.print(f"[green]✓ Saved to[/green] {escape(str(path))}")


@app.command()
def proxy(
    ctx: typer.Context,
    port: int = typer.Option(8080, "--port", "-p", help="Port to listen on."),
    listen_host: str = typer.Option(
        "127.0.0.1", "--listen-host", help="Interface to listen on."
    ),
):
    """Run an intercepting proxy that feeds browser traffic into the engine."""
    from mitmproxy.tools.main import mitmdump

    config = _load_config(ctx)
    script = importlib.util.find_spec("xdl.capture.mitm_script").origin
    os.environ["XDL_CONFIG"] = str(ctx.obj["config_file"])
    console.print(
        f"[cyan]Proxy listening on {listen_host}:{port}. "
        f"Control endpoint: http://{config.control_host}/resolve[/cyan]"
    )
    mitmdump(["--listen-host", listen_host, "--listen-port", str(port), "-s", script])


@hosts_app.command("list")
def hosts_list(ctx: typer.Context):
    """Show the allowed hosts."""
    print_hosts_table(_load_config(ctx).allowed_hosts)


@hosts_app.command("add")
def hosts_add(
    ctx: typer.Context,
    host: str = typer.Argument(..., help="Domain or URL to allow."),
):
    """Allow a host (a URL is reduced to its host name)."""
    hostname = extract_host(host)
    if not hostname:
        console.print("[red]✗ Enter a valid domain or URL.[/red]")
        raise typer.Exit(code=1)
    config = _load_config(ctx)
    try:
        _config_manager(ctx).update_config(
            allowed_hosts=dedupe_hosts([*config.allowed_hosts, hostname])
        )
    except XdlError as e:
        raise _fail(e) from e
    console.print(f"[green]✓ Added {hostname}[/green]")


@hosts_app.command("remove")
def hosts_remove(
    ctx: typer.Context,
    host: str = typer.Argument(..., help="Host to remove."),
):
    """Remove a host from the allow-list."""
    hostname = extract_host(host)
    config = _load_config(ctx)
    if hostname not in config.allowed_hosts:
        console.print(f"[yellow]⚠️  {escape(host)} is not in the allow-list.[/yellow]")
        raise typer.Exit(code=1)
    try:
        _config_manager(ctx).update_config(
            allowed_hosts=[h for h in config.allowed_hosts if h != hostname]
        )
    except XdlError as e:
        raise _fail(e) from e
    console.print(f"[green]✓ Removed {hostname}[/green]")


@hosts_app.command("check")
def hosts_check(
    ctx: typer.Context,
    host: str = typer.Argument(..., help="Host name or page URL to check."),
):
    """Check whether the download button is active for a host."""
    hostname = extract_host(host)
    if is_host_allowed(hostname, _load_config(ctx).allowed_hosts):
        console.print(f"[green]✓ {hostname} is allowed.[/green]")
        return
    console.print(f"[yellow]✗ {escape(hostname or host)} is not allowed.[/yellow]")
    raise typer.Exit(code=1)
