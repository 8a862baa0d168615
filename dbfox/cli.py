from __future__ import annotations

import asyncio
import json
from typing import Optional

import questionary
import typer
from rich.console import Console
from rich.table import Table

from .db import Engine
from .errors import DbFoxError
from .logging import setup_logging
from .manager import ConnectionManager
from .query import QueryOutcome, QueryRunner
from .settings import Settings, load_settings
from .tui.components import BRAND_STYLE, cell_text, render_result_rows

app = typer.Typer(
    add_completion=False,
    help="dbfox: terminal client for Postgres, MySQL and SQLite",
    rich_markup_mode="rich",
)
console = Console()


def _parse_engine(value: str | None) -> Engine | None:
    if value is None:
        return None
    raw = value.strip().lower()
    for engine in Engine.ordered():
        if raw in (engine.value, engine.scheme, engine.label.lower()):
            return engine
    choices = ", ".join(e.value for e in Engine.ordered())
    raise typer.BadParameter(f"unknown engine {value!r} (choose from: {choices})")


def _default_ports(settings: Settings) -> dict[Engine, int | None]:
    return {e: settings.port_for(e) for e in Engine.ordered()}


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN CALLBACK
# ═══════════════════════════════════════════════════════════════════════════════

@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    engine: Optional[str] = typer.Option(None, "--engine", "-e", help="Preselect postgres, mysql or sqlite"),
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Prefill hostname (file path for sqlite)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Override the engine's default port"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Prefill username"),
):
    """
    [bold]dbfox[/bold]: browse databases and run SQL from the terminal.

    [dim]Run without arguments to launch the interactive client.[/dim]

    [bold]Keys:[/bold]
      Up/Down   move      Enter  select / connect / run
      Tab       cycle panes in the table view
      Esc       back from the connection form
      q         quit (selection screens), Ctrl-C anywhere

    [bold]Examples:[/bold]
      dbfox                                   # interactive client
      dbfox -e postgres -u admin              # preselect engine and user
      dbfox query -e sqlite -d app.db "select * from users"
    """
    if ctx.invoked_subcommand is None:
        _interactive_menu(engine=_parse_engine(engine), host=host, port=port, user=user)
        raise typer.Exit(code=0)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command("engines", help="List supported engines and their connection defaults")
def engines() -> None:
    settings = load_settings()
    table = Table(title="[bold]Engines[/bold]")
    table.add_column("Engine", style="bold")
    table.add_column("Scheme", style="cyan")
    table.add_column("Port", justify="right")
    table.add_column("System database", style="dim")
    for engine in Engine.ordered():
        port = settings.port_for(engine)
        table.add_row(
            engine.label,
            engine.scheme,
            "-" if port is None else str(port),
            engine.default_database or "(file)",
        )
    console.print(table)


async def _run_query(
    settings: Settings,
    engine: Engine,
    host: str,
    port: int | None,
    user: str,
    password: str,
    database: str | None,
    sql: str,
) -> QueryOutcome:
    manager = ConnectionManager(connect_timeout=settings.DBFOX_CONNECT_TIMEOUT_SEC)
    try:
        await manager.connect_to_default(engine, host, port, user, password)
        if database and engine is not Engine.SQLITE:
            await manager.connect_to_named(database)
        return await QueryRunner(manager).run(sql)
    finally:
        await manager.close()


@app.command("query", help="Run one SQL statement and print the result")
def query(
    sql: str = typer.Argument(..., help="SQL to run"),
    engine: str = typer.Option("sqlite", "--engine", "-e", help="postgres, mysql or sqlite"),
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Server hostname"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Server port"),
    user: str = typer.Option("", "--user", "-u", help="Username"),
    password: Optional[str] = typer.Option(None, "--password", help="Password (prompted when omitted)"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Database name, or file path for sqlite"),
    json_out: bool = typer.Option(False, "--json", help="Output rows as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo log lines to stderr"),
) -> None:
    settings = load_settings()
    setup_logging(settings, console=verbose)
    kind = _parse_engine(engine) or Engine.SQLITE

    if kind is Engine.SQLITE:
        target_host = database or host or ""
    else:
        target_host = host or settings.DBFOX_DEFAULT_HOST
        if password is None:
            password = questionary.password("Password:", style=BRAND_STYLE).ask()
    port = port if port is not None else settings.port_for(kind)

    try:
        outcome = asyncio.run(
            _run_query(settings, kind, target_host, port, user, password or "", database, sql)
        )
    except DbFoxError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    if json_out:
        payload = {"rows": outcome.rows, "message": outcome.message, "rows_affected": outcome.rows_affected}
        typer.echo(json.dumps(payload, default=cell_text))
        return
    if outcome.message:
        console.print(f"[green]✓[/green] {outcome.message}")
        return
    console.print(render_result_rows(outcome.rows))
    console.print(f"[dim]{len(outcome.rows)} row(s)[/dim]")


# ═══════════════════════════════════════════════════════════════════════════════
# INTERACTIVE CLIENT
# ═══════════════════════════════════════════════════════════════════════════════

async def _run_router(router, manager: ConnectionManager) -> None:
    from .tui.keys import TerminalKeys

    keys = TerminalKeys()
    try:
        with keys.attached(), router.console.screen(hide_cursor=True) as display:
            await router.run(keys, display)
    finally:
        await manager.close()


def _interactive_menu(
    *,
    engine: Engine | None = None,
    host: str | None = None,
    port: int | None = None,
    user: str | None = None,
) -> None:
    """Launch the keyboard-driven client."""
    from .tui.navigator import Navigator
    from .tui.router import Router
    from .tui.state import ConnectionInput, UIState
    # Import screens to register them
    from .tui import screens  # noqa: F401

    settings = load_settings()
    setup_logging(settings)

    state = UIState()
    if engine is not None:
        state.selected_db_type = Engine.ordered().index(engine)
    state.connection_input = ConnectionInput(
        username=user or settings.DBFOX_DEFAULT_USER or "",
        hostname=host or "",
        port=port,
    )
    manager = ConnectionManager(connect_timeout=settings.DBFOX_CONNECT_TIMEOUT_SEC)
    nav = Navigator(
        state,
        manager,
        default_ports=_default_ports(settings),
        default_host=settings.DBFOX_DEFAULT_HOST,
    )
    router = Router(
        console=console,
        state=state,
        nav=nav,
    )

    try:
        asyncio.run(_run_router(router, manager))
    except KeyboardInterrupt:
        console.print("\n[dim]👋 Interrupted. Goodbye![/]")


def main():
    app()
