"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from xdl.models.config import XdlConfig
from xdl.models.stats import EngineStats


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the values in your configuration file (xdl --show-config).",
            "• Run `xdl init --force` to write a fresh configuration.",
        ],
        "UnresolvedMediaError": [
            "• Play the video in the browser before exporting the HAR archive.",
            "• Export the HAR with content ('Save all as HAR with content').",
            "• Check that the media id matches the video you want.",
        ],
        "MissingTabContextError": [
            "• Pass a non-negative tab id with --tab.",
        ],
        "CaptureError": [
            "• Make sure the file is a HAR archive exported from browser devtools.",
        ],
        "DownloadError": [
            "• The download request is missing its URL or data.",
        ],
        "ClientResponseError": [
            "• The media server rejected the request.",
            "• Resolved URLs expire; capture the traffic again and retry.",
        ],
        "TimeoutError": [
            "• A download timed out. Check your internet connection.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config: XdlConfig):
    """Displays the current configuration."""
    console = Console()
    content = ""
    for key in sorted(XdlConfig.get_ini_keys()):
        value = getattr(config, key)
        if isinstance(value, list):
            value = ", ".join(value)
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: XdlConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    download_root = Path(config.download_dir).expanduser()
    table.add_row("Download Dir:", str(download_root))
    table.add_row("Image Folder:", config.image_folder or "[dim](root)[/dim]")
    table.add_row("Video Folder:", config.video_folder or "[dim](root)[/dim]")
    table.add_row("Media Host:", config.media_host)
    table.add_row("API Patterns:", str(len(config.api_url_patterns)))
    table.add_row("Allowed Hosts:", ", ".join(config.allowed_hosts) or "[dim]none[/dim]")
    table.add_row("Proxy Control:", f"http://{config.control_host}/")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_hosts_table(hosts: list[str]):
    """Displays the host allow-list."""
    console = Console()
    if not hosts:
        console.print("[dim]No hosts added yet.[/dim]")
        return
    table = Table(title="Allowed Hosts")
    table.add_column("#", style="dim")
    table.add_column("Host", style="cyan")
    for i, host in enumerate(hosts, 1):
        table.add_row(str(i), host)
    console.print(table)


def print_stats_table(stats: EngineStats, tabs: int):
    """Displays engine counters after a replay."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right", width=22)
    table.add_column(style="white", justify="left")

    table.add_row("Media requests:", str(stats.requests_tracked))
    table.add_row("Tapped responses:", str(stats.streams_tapped))
    table.add_row(
        "Parsed / discarded:",
        f"[green]{stats.streams_parsed}[/green] / "
        f"[yellow]{stats.streams_discarded}[/yellow]",
    )
    table.add_row(
        "Variants seen:",
        f"{stats.variants_registered} ({stats.variants_replaced} upgrades)",
    )
    table.add_row("Open sessions:", str(tabs))

    console.print(
        Panel(
            table,
            title="[bold]Engine Summary[/bold]",
            border_style="cyan",
            expand=False,
        )
    )
