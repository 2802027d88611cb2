"""Command line interface for data sessions saved across process runs."""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from .config import config
from .exceptions import DataSessionError
from .keys import extract_name, format_key, is_session_key
from .persistence import SqlitePersistenceBridge
from .schemas import DataSessionEntry

console = Console()
app = typer.Typer(
    name="data-sessions",
    help="Inspect and clear data sessions shared across process runs",
    rich_markup_mode="rich",
    add_completion=False,
)

DbPathOption = typer.Option(
    None,
    "--db-path",
    help="SQLite file holding shared data sessions (defaults to persistence.db_path)",
)


def _bridge(db_path: Path | None) -> SqlitePersistenceBridge:
    return SqlitePersistenceBridge(db_path or config.db_path)


def _run(coro) -> Any:
    try:
        return asyncio.run(coro)
    except DataSessionError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e


async def _load_all(bridge: SqlitePersistenceBridge) -> list[tuple[str, Any]]:
    try:
        rows = []
        for key in await bridge.keys():
            if is_session_key(key):
                rows.append((extract_name(key), await bridge.load(key)))
        return rows
    finally:
        await bridge.close()


async def _load_one(bridge: SqlitePersistenceBridge, name: str) -> Any:
    try:
        return await bridge.load(format_key(name))
    finally:
        await bridge.close()


async def _clear(bridge: SqlitePersistenceBridge, names: list[str]) -> list[str]:
    try:
        cleared = []
        for name in names:
            if await bridge.clear(format_key(name)):
                cleared.append(name)
        return cleared
    finally:
        await bridge.close()


def _preview(value: Any, width: int = 60) -> str:
    text = json.dumps(value)
    if len(text) > width:
        text = text[: width - 1] + "…"
    return escape(text)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Data sessions command line."""
    if verbose:
        config.config["logging"]["verbose"] = True
    config.configure_logging()


@app.command("list")
def list_sessions(db_path: Path | None = DbPathOption) -> None:
    """List every saved data session."""
    bridge = _bridge(db_path)
    rows = _run(_load_all(bridge))

    if not rows:
        console.print(f"[yellow]No saved data sessions in {bridge.db_path}[/yellow]")
        return

    table = Table(title=f"Data sessions ({bridge.db_path})")
    table.add_column("Name", style="cyan")
    table.add_column("Timestamp", justify="right")
    table.add_column("Depends on", justify="right")
    table.add_column("Data")

    for name, value in rows:
        try:
            entry = DataSessionEntry.model_validate(value)
        except ValueError:
            table.add_row(name, "-", "-", f"[red]malformed[/red] {_preview(value)}")
            continue
        depends = len(entry.depends_on_timestamps or [])
        table.add_row(name, str(entry.timestamp), str(depends), _preview(entry.data))

    console.print(table)


@app.command("show")
def show_session(
    name: str = typer.Argument(..., help="Data session name"),
    db_path: Path | None = DbPathOption,
) -> None:
    """Print one saved data session as JSON."""
    value = _run(_load_one(_bridge(db_path), name))
    if value is None:
        console.print(f"[yellow]⚠️ Could not find saved data session {name!r}[/yellow]")
        raise typer.Exit(1)
    console.print_json(json.dumps(value))


@app.command("clear")
def clear_session(
    name: str = typer.Argument(..., help="Data session name"),
    db_path: Path | None = DbPathOption,
) -> None:
    """Remove one saved data session."""
    cleared = _run(_clear(_bridge(db_path), [name]))
    if cleared:
        console.print(f"[green]✅ Cleared data session {name!r}[/green]")
    else:
        console.print(f"[yellow]⚠️ Could not find saved data session {name!r}[/yellow]")


@app.command("clear-all")
def clear_all_sessions(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    db_path: Path | None = DbPathOption,
) -> None:
    """Remove every saved data session."""
    bridge = _bridge(db_path)
    names = [name for name, _ in _run(_load_all(bridge))]
    if not names:
        console.print("[yellow]No saved data sessions to clear[/yellow]")
        return

    if not yes and not Confirm.ask(f"Clear {len(names)} saved data sessions?"):
        console.print("Aborted")
        raise typer.Exit(1)

    cleared = _run(_clear(bridge, names))
    console.print(f"[green]✅ Cleared {len(cleared)} data sessions[/green]")


if __name__ == "__main__":
    app()
