"""
Dialogue Store CLI

Command-line interface for inspecting and maintaining the dialogue store.

Usage:
    dialogue-store stats                       # Conversation and history statistics
    dialogue-store search "hello" --favorites  # Search stored conversations
    dialogue-store history --character aoi     # List the history log
    dialogue-store export -o backup.json       # Export conversations
    dialogue-store export --history            # Export the history log
    dialogue-store import backup.json          # Import conversations under fresh ids
    dialogue-store clear --yes                 # Remove conversations and history
    dialogue-store serve --port 8000           # Run the HTTP API
"""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dialogue_store import __version__
from dialogue_store.config import get_settings
from dialogue_store.errors import DataImportError, DialogueStoreError
from dialogue_store.models import EMOTIONS
from dialogue_store.store import DialogueStore

console = Console()

T = TypeVar("T")


def configure_cli_logging() -> None:
    logging.disable(logging.CRITICAL)


def build_store() -> DialogueStore:
    """Store wired to the configured backend."""
    return DialogueStore.from_settings(get_settings())


def run_with_store(action: Callable[[DialogueStore], Awaitable[T]]) -> T:
    """Open the configured store, run ``action`` and always close the store."""

    async def runner() -> T:
        store = build_store()
        await store.initialize()
        try:
            return await action(store)
        finally:
            await store.close()

    try:
        return asyncio.run(runner())
    except DataImportError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        if e.reason:
            console.print(f"[dim]{escape(e.reason)}[/dim]")
        sys.exit(1)
    except (DialogueStoreError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


def _format_time(value) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="DialogueStore")
def cli():
    """DialogueStore - Conversation history and search store."""
    configure_cli_logging()


@cli.command()
def stats():
    """Show conversation and history statistics."""

    async def collect(store: DialogueStore):
        return await store.stats.stats(), await store.history.stats()

    conversation_stats, history_stats = run_with_store(collect)

    table = Table(title="Conversations", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total conversations", str(conversation_stats.total_conversations))
    table.add_row("Total messages", str(conversation_stats.total_messages))
    table.add_row("Average length", f"{conversation_stats.average_length:.1f}")
    table.add_row("Favorite character", conversation_stats.favorite_character or "-")
    console.print(table)

    emotions = Table(title="Emotions", show_header=True, header_style="bold cyan")
    emotions.add_column("Emotion", style="cyan")
    emotions.add_column("Count", justify="right")
    for emotion, count in conversation_stats.emotion_distribution.items():
        emotions.add_row(emotion, str(count))
    console.print(emotions)

    history = Table(title="History", show_header=True, header_style="bold cyan")
    history.add_column("Metric", style="cyan")
    history.add_column("Value", justify="right")
    history.add_row("Logged sessions", str(history_stats.total_conversations))
    history.add_row("Logged messages", str(history_stats.total_messages))
    history.add_row(
        "Average messages per session",
        f"{history_stats.average_messages_per_conversation:.1f}",
    )
    for character_id, count in history_stats.character_distribution.items():
        history.add_row(f"Sessions with {character_id}", str(count))
    console.print(history)


@cli.command()
@click.argument("query", default="")
@click.option("--character", "character_id", help="Only conversations with this character.")
@click.option("--favorites", is_flag=True, help="Only favorite conversations.")
@click.option(
    "--emotion",
    "emotions",
    multiple=True,
    type=click.Choice(EMOTIONS),
    help="Emotion present in the emotional arc (repeatable).",
)
@click.option("--min-length", type=int, help="Minimum number of messages.")
@click.option("--max-length", type=int, help="Maximum number of messages.")
@click.option(
    "--sort-by",
    type=click.Choice(["date", "length", "rating", "title"]),
    default="date",
    show_default=True,
)
@click.option("--order", type=click.Choice(["asc", "desc"]), default="desc", show_default=True)
@click.option("--limit", type=int, default=20, show_default=True)
@click.option("--offset", type=int, default=0, show_default=True)
def search(
    query: str,
    character_id: str | None,
    favorites: bool,
    emotions: tuple[str, ...],
    min_length: int | None,
    max_length: int | None,
    sort_by: str,
    order: str,
    limit: int,
    offset: int,
):
    """Search stored conversations by title or message text."""
    filters = {
        "character_id": character_id,
        "is_favorite": True if favorites else None,
        "emotions": list(emotions) or None,
        "min_length": min_length,
        "max_length": max_length,
    }

    results = run_with_store(
        lambda store: store.search.search(
            query,
            filters={k: v for k, v in filters.items() if v is not None},
            sort_by=sort_by,
            sort_order=order,
            limit=limit,
            offset=offset,
        )
    )

    if not results:
        console.print("[yellow]No conversations found[/yellow]")
        return

    table = Table(
        title=f"Conversations ({len(results)} found)",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Character", style="green")
    table.add_column("Messages", justify="right")
    table.add_column("Last activity")
    table.add_column("★", justify="center")
    for conversation in results:
        table.add_row(
            conversation.id,
            conversation.title,
            conversation.character_id,
            str(len(conversation.messages)),
            _format_time(conversation.last_message_at),
            "★" if conversation.is_favorite else "",
        )
    console.print(table)


@cli.command()
@click.option("--character", "character_id", help="Only sessions with this character.")
@click.option("--search", "text", help="Match scenario title or description.")
def history(character_id: str | None, text: str | None):
    """List the history log, most recent first."""

    async def collect(store: DialogueStore):
        if text:
            entries = await store.history.search(text)
        else:
            entries = await store.history.load()
        if character_id:
            entries = [e for e in entries if e.character_id == character_id]
        return entries

    entries = run_with_store(collect)
    if not entries:
        console.print("[yellow]No history entries found[/yellow]")
        return

    table = Table(
        title=f"History ({len(entries)} entries)",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("ID", style="cyan")
    table.add_column("Character", style="green")
    table.add_column("Scenario")
    table.add_column("Messages", justify="right")
    table.add_column("Ended")
    table.add_column("Rating", justify="right")
    for entry in entries:
        table.add_row(
            entry.id,
            entry.character_id,
            entry.scenario.title,
            str(entry.message_count),
            _format_time(entry.end_time),
            f"{entry.rating:.1f}" if entry.rating is not None else "-",
        )
    console.print(table)


@cli.command(name="export")
@click.option("--id", "ids", multiple=True, help="Conversation id to export (repeatable).")
@click.option("--history", "export_history", is_flag=True, help="Export the history log instead.")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to a file instead of stdout.",
)
def export_command(ids: tuple[str, ...], export_history: bool, output: Path | None):
    """Export conversations (default) or the history log as JSON."""
    if export_history:
        payload = run_with_store(lambda store: store.transfer.export_history_json())
    else:
        payload = run_with_store(
            lambda store: store.transfer.export_conversations_json(list(ids) or None)
        )

    if output is None:
        click.echo(payload)
        return
    output.write_text(payload, encoding="utf-8")
    console.print(f"[green]✓ Exported to {output}[/green]")


@cli.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--history",
    "import_history",
    is_flag=True,
    help="Replace the history log, session archive and settings.",
)
def import_command(path: Path, import_history: bool):
    """Import an export file. Conversations are added under fresh ids."""
    payload = path.read_text(encoding="utf-8")

    if import_history:
        ok = run_with_store(lambda store: store.transfer.import_history(payload))
        if not ok:
            console.print("[red]History could not be written to storage[/red]")
            sys.exit(1)
        console.print("[green]✓ History restored[/green]")
        return

    count = run_with_store(lambda store: store.transfer.import_conversations(payload))
    console.print(f"[green]✓ Imported {count} conversation(s)[/green]")


@cli.command()
@click.option("--yes", is_flag=True, help="Skip confirmation prompt (use with caution).")
def clear(yes: bool):
    """Remove every conversation, summary and history entry."""
    if not yes:
        console.print(
            Panel.fit(
                "[bold red]Clear Dialogue Store[/bold red]\n"
                "This removes all conversations, summaries, favorites and history.",
                border_style="red",
            )
        )
        if not click.confirm("Continue?", default=False, show_default=True):
            console.print("[yellow]Clear cancelled.[/yellow]")
            return

    if not run_with_store(lambda store: store.clear_all()):
        console.print("[red]Some records could not be removed[/red]")
        sys.exit(1)
    console.print("[green]✓ Dialogue store cleared[/green]")


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to API_HOST).")
@click.option("--port", default=None, type=int, help="Port (defaults to API_PORT).")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API server."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"[cyan]Starting API server on {host}:{port}[/cyan]")
    uvicorn.run("dialogue_store.api.main:app", host=host, port=port, reload=reload)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
