"""Command-line interface for assistant-core."""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003 - Typer evaluates annotations at runtime
from typing import Annotated

import typer
from pydantic import TypeAdapter, ValidationError
from rich.markup import escape
from rich.table import Table

from assistant_core.chat.context import build_context, select_history
from assistant_core.chat.models import ChatMessage
from assistant_core.chat.scoring import score_message
from assistant_core.chat.tokens import estimate_tokens
from assistant_core.config import load_settings
from assistant_core.constants import DEFAULT_CONTEXT_TOKENS, RECENT_MESSAGE_WINDOW
from assistant_core.core.utils import console, print_error_message, setup_rich_logging

app = typer.Typer(
    name="assistant-core",
    help="Conversation context management and model proxy for the project assistant.",
    add_completion=True,
    no_args_is_help=True,
)

_HISTORY = TypeAdapter(list[ChatMessage])


@app.callback()
def main() -> None:
    """Conversation context tools and local model proxy."""
    import dotenv  # noqa: PLC0415

    dotenv.load_dotenv()


@app.command("proxy")
def proxy_cmd(
    host: Annotated[str, typer.Option("--host", help="Host to bind the server to")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port to bind the server to")] = 3001,
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Logging level (debug, info, warning, error)"),
    ] = "info",
    config_file: Annotated[
        str | None,
        typer.Option("--config-file", help="Path to a TOML config file"),
    ] = None,
) -> None:
    """Run the local model proxy for web clients."""
    import uvicorn  # noqa: PLC0415

    from assistant_core.proxy.api import create_app  # noqa: PLC0415

    setup_rich_logging(log_level)
    settings = load_settings(config_file)
    if not settings.provider.api_key:
        print_error_message(
            "No API key configured.",
            "Set CLAUDE_API_KEY in your environment or .env file.",
        )
        raise typer.Exit(1)

    console.print(f"[bold green]Starting assistant-core proxy on {host}:{port}[/bold green]")
    uvicorn.run(create_app(settings), host=host, port=port, log_level=log_level.lower())


@app.command("score")
def score_cmd(
    text: Annotated[str, typer.Argument(help="Message text to score")],
) -> None:
    """Show the importance score of a message."""
    importance = score_message(text)

    table = Table(title="Message importance")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("score", str(importance.score))
    table.add_row("keywords", ", ".join(importance.matched_keywords) or "-")
    table.add_row("key decision", str(importance.is_key_decision))
    table.add_row("requirement", str(importance.is_requirement))
    table.add_row("action item", str(importance.is_action_item))
    table.add_row("high priority", str(importance.is_high_priority))
    table.add_row("technical decision", str(importance.is_technical_decision))
    table.add_row("tokens", str(estimate_tokens(text)))
    console.print(table)


@app.command("assemble")
def assemble_cmd(
    history_file: Annotated[
        Path,
        typer.Argument(help="JSON file with a list of {role, content} messages, oldest first"),
    ],
    message: Annotated[str, typer.Argument(help="The new user message")],
    max_tokens: Annotated[
        int,
        typer.Option("--max-tokens", help="Token budget for history and summary"),
    ] = DEFAULT_CONTEXT_TOKENS,
    recent_window: Annotated[
        int,
        typer.Option("--recent-window", help="How many of the latest messages are always considered"),
    ] = RECENT_MESSAGE_WINDOW,
    summary: Annotated[
        str | None,
        typer.Option("--summary", help="Conversation summary to prepend"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the selected messages as JSON"),
    ] = False,
) -> None:
    """Show which history messages would be sent with MESSAGE."""
    try:
        history = _HISTORY.validate_json(history_file.read_bytes())
    except (OSError, ValidationError) as exc:
        print_error_message(f"Could not read history from {history_file}: {exc}")
        raise typer.Exit(1) from exc

    messages = build_context(
        history,
        summary,
        message,
        max_tokens,
        recent_window=recent_window,
    )
    if as_json:
        typer.echo(json.dumps([m.model_dump() for m in messages], indent=2))
        return

    table = Table(title=f"Context ({len(messages)} of {len(history) + 1} messages)")
    table.add_column("#", justify="right")
    table.add_column("Role", style="cyan")
    table.add_column("Tokens", justify="right")
    table.add_column("Content")
    for index, chat_message in enumerate(messages, start=1):
        table.add_row(
            str(index),
            chat_message.role,
            str(estimate_tokens(chat_message.content)),
            escape(chat_message.content),
        )
    console.print(table)

    selection = select_history(history, summary, max_tokens, recent_window=recent_window)
    console.print(
        f"History tokens: [bold]{selection.total_tokens}[/bold] / {max_tokens} "
        f"({selection.recent_count} recent, {selection.important_count} important)",
    )
