"""Rich console and logging setup shared by the CLI and the proxy server."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

console = Console()
err_console = Console(stderr=True)


def setup_rich_logging(log_level: str = "info", *, console: Console | None = None) -> None:
    """Route the root logger and uvicorn's loggers through one RichHandler.

    Args:
        log_level: Logging level (debug, info, warning, error).
        console: Rich console to log to (a new stderr console if not provided).

    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.addHandler(handler)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False


def print_error_message(message: str, suggestion: str | None = None) -> None:
    """Print an error, plus an optional hint, to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {message}")
    if suggestion:
        err_console.print(f"[yellow]{suggestion}[/yellow]")
