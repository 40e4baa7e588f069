"""
Console entry point for `xdl` and `python -m xdl`.

Errors that escape a command are rendered as a Rich panel; application errors
exit with status 1, an interrupt exits with 130.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from xdl.cli.app import app
from xdl.cli.formatters import format_error_with_suggestions
from xdl.exceptions import XdlError

log = logging.getLogger("xdl")


def _command_context() -> dict[str, str]:
    command = " ".join(arg for arg in sys.argv[1:] if not arg.startswith("-"))
    return {"command": command or "(none)"}


def main() -> None:
    # Resolved URLs and paths may contain non-ASCII characters
    if os.name == "nt":
        for stream in (sys.stdout, sys.stderr):
            stream.reconfigure(encoding="utf-8", errors="replace")

    console = Console(stderr=True)
    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  xdl interrupted.[/yellow]")
        sys.exit(130)
    except XdlError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, _command_context()))
        log.debug("Unhandled error:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
