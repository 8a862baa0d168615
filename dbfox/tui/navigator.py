"""Screen and focus state machine driven by key events."""
from __future__ import annotations

import logging
from collections.abc import Mapping

from ..db import Engine, split_host_port
from ..errors import DbFoxError
from ..manager import ConnectionManager
from ..query import QueryRunner
from .keys import KeyEvent, KeyKind
from .state import ConnectionInput, Focus, InputField, Screen, UIState

logger = logging.getLogger(__name__)

EXIT = "exit"


def move_up(index: int) -> int:
    return index - 1 if index > 0 else index


def move_down(index: int, count: int) -> int:
    return index + 1 if index < count - 1 else index


class Navigator:
    """Consumes one key per call and advances the session.

    Screen order is linear:
    - DB type selection -> connection input -> database selection -> table view
    - Esc on the connection form goes back to DB type selection
    - Tab cycles focus inside the table view

    Database calls are awaited in place, so a key is fully handled (and any
    error recorded) before the next one is read.
    """

    SCREEN_LABELS = {
        Screen.DB_TYPE_SELECTION: "Engine",
        Screen.CONNECTION_INPUT: "Connect",
        Screen.DATABASE_SELECTION: "Database",
        Screen.TABLE_VIEW: "Tables",
    }

    def __init__(
        self,
        state: UIState,
        manager: ConnectionManager,
        runner: QueryRunner | None = None,
        *,
        default_ports: Mapping[Engine, int | None] | None = None,
        default_host: str = "localhost",
    ):
        """Initialize with the session state and the connection it drives.

        Args:
            state: Shared UI state; the navigator is its only writer
            manager: Owner of the connection slot
            runner: SQL runner for the editor; built on `manager` when omitted
            default_ports: Per-engine ports used when the form has none
            default_host: Hostname used when the form field is left empty
        """
        self.state = state
        self.manager = manager
        self.runner = runner or QueryRunner(manager)
        self.default_ports = dict(default_ports or {})
        self.default_host = default_host
        # Restored whenever the connection form is abandoned.
        self._input_defaults = state.connection_input.copy()
        self.state.add_to_history(self.state.screen.value)

    # ── navigation ───────────────────────────────────────────────────────

    def current(self) -> Screen:
        """Get the current screen.

        Returns:
            Screen the router should draw
        """
        return self.state.screen

    def breadcrumbs(self) -> str:
        """Generate breadcrumb navigation string.

        Returns:
            Breadcrumb path like "Engine > Connect > Database"
        """
        order = list(Screen)
        upto = order.index(self.state.screen)
        return " > ".join(self.SCREEN_LABELS[s] for s in order[: upto + 1])

    async def go(self, screen: Screen) -> None:
        """Move to a screen and record the visit.

        Entering database selection reloads the database list.

        Args:
            screen: Screen to show next
        """
        self.state.screen = screen
        self.state.add_to_history(screen.value)
        if screen is Screen.DATABASE_SELECTION:
            await self.refresh_databases()

    def home(self) -> None:
        """Back to engine selection, discarding the connection form."""
        self.state.screen = Screen.DB_TYPE_SELECTION
        self.state.add_to_history(self.state.screen.value)
        self.state.connection_input = self._input_defaults.copy()
        self.state.connection_error = None

    def cycle_focus(self) -> None:
        """Move focus to the next table-view pane."""
        self.state.focus = self.state.focus.next()

    # ── data refresh ─────────────────────────────────────────────────────

    async def refresh_databases(self) -> None:
        """Reload the database list, keeping the selection in range.

        A failure empties the list and is shown as a connection error.
        """
        s = self.state
        try:
            s.databases = await self.manager.list_databases()
        except DbFoxError as e:
            logger.error("Error fetching databases: %s", e)
            s.databases = []
            s.connection_error = f"Error fetching databases: {e}"
        s.selected_database = min(s.selected_database, max(len(s.databases) - 1, 0))

    async def refresh_tables(self) -> None:
        """Reload the table list and reset selection and expansion.

        A failure empties the list and is shown on the status line.
        """
        s = self.state
        try:
            s.tables = await self.manager.list_tables()
        except DbFoxError as e:
            logger.error("Error fetching tables: %s", e)
            s.tables = []
            s.status_message = f"Error fetching tables: {e}"
        s.selected_table = 0
        s.expanded_table = None

    # ── key dispatch ─────────────────────────────────────────────────────

    async def handle_key(self, key: KeyEvent) -> str | None:
        """Handle one key on the current screen.

        Args:
            key: Key event read by the router

        Returns:
            "exit" when the session should end, otherwise None
        """
        screen = self.current()
        if screen is Screen.DB_TYPE_SELECTION:
            return await self._on_db_type_selection(key)
        if screen is Screen.CONNECTION_INPUT:
            return await self._on_connection_input(key)
        if screen is Screen.DATABASE_SELECTION:
            return await self._on_database_selection(key)
        return await self._on_table_view(key)

    @staticmethod
    def _is_quit(key: KeyEvent, *, letter: bool) -> bool:
        if key.kind is KeyKind.QUIT:
            return True
        return letter and key.kind is KeyKind.CHAR and key.char == "q"

    async def _on_db_type_selection(self, key: KeyEvent) -> str | None:
        s = self.state
        if self._is_quit(key, letter=True):
            return EXIT
        if key.kind is KeyKind.UP:
            s.selected_db_type = move_up(s.selected_db_type)
        elif key.kind is KeyKind.DOWN:
            s.selected_db_type = move_down(s.selected_db_type, len(Engine.ordered()))
        elif key.kind is KeyKind.ENTER:
            s.connection_error = None
            await self.go(Screen.CONNECTION_INPUT)
        return None

    async def _on_connection_input(self, key: KeyEvent) -> str | None:
        form = self.state.connection_input
        if self._is_quit(key, letter=False):
            return EXIT
        if key.kind is KeyKind.ESC:
            self.home()
        elif key.kind is KeyKind.CHAR:
            form.append(key.char)
        elif key.kind is KeyKind.BACKSPACE:
            form.backspace()
        elif key.kind is KeyKind.ENTER:
            if form.current_field is InputField.HOSTNAME:
                await self._connect_default(form)
            else:
                form.advance()
        return None

    async def _connect_default(self, form: ConnectionInput) -> None:
        """First-hop connect from the form; errors stay on the form."""
        s = self.state
        engine = s.engine
        port = form.port if form.port is not None else self.default_ports.get(engine, engine.default_port)
        hostname = form.hostname.strip()
        if engine is not Engine.SQLITE:
            hostname, port = split_host_port(hostname or self.default_host, port)
        try:
            await self.manager.connect_to_default(engine, hostname, port, form.username, form.password)
        except DbFoxError as e:
            s.connection_error = str(e)
            return
        s.connection_error = None
        s.selected_database = 0
        await self.go(Screen.DATABASE_SELECTION)

    async def _on_database_selection(self, key: KeyEvent) -> str | None:
        s = self.state
        if self._is_quit(key, letter=True):
            return EXIT
        if key.kind is KeyKind.UP:
            s.selected_database = move_up(s.selected_database)
        elif key.kind is KeyKind.DOWN:
            s.selected_database = move_down(s.selected_database, len(s.databases))
        elif key.kind is KeyKind.ENTER and s.databases:
            name = s.databases[s.selected_database]
            try:
                await self.manager.connect_to_named(name)
            except DbFoxError as e:
                logger.error("Error connecting to database %s: %s", name, e)
                s.connection_error = str(e)
                return None
            s.connection_error = None
            s.clear_table_view()
            await self.go(Screen.TABLE_VIEW)
            await self.refresh_tables()
        return None

    async def _on_table_view(self, key: KeyEvent) -> str | None:
        s = self.state
        if self._is_quit(key, letter=False):
            return EXIT
        if key.kind is KeyKind.TAB:
            self.cycle_focus()
        elif s.focus is Focus.TABLES_LIST:
            if key.kind is KeyKind.UP:
                s.selected_table = move_up(s.selected_table)
            elif key.kind is KeyKind.DOWN:
                s.selected_table = move_down(s.selected_table, len(s.tables))
            elif key.kind is KeyKind.ENTER:
                await self.toggle_selected_table()
        elif s.focus is Focus.SQL_EDITOR:
            if key.kind is KeyKind.CHAR:
                s.sql_editor += key.char
            elif key.kind is KeyKind.BACKSPACE:
                s.sql_editor = s.sql_editor[:-1]
            elif key.kind is KeyKind.ENTER:
                if s.sql_editor.strip():
                    await self.run_editor_sql()
                else:
                    s.sql_editor = ""
        return None

    async def toggle_selected_table(self) -> None:
        """Expand the selected table (fetching its schema) or collapse it."""
        s = self.state
        if not s.tables:
            s.status_message = "No tables available."
            return
        if s.selected_table >= len(s.tables):
            logger.error("Selected table index out of bounds: %d", s.selected_table)
            return

        if s.expanded_table == s.selected_table:
            s.expanded_table = None
            s.schema_view = None
            return

        name = s.tables[s.selected_table]
        try:
            schema = await self.manager.describe_table(name)
        except DbFoxError as e:
            logger.error("Error describing table %s: %s", name, e)
            s.status_message = f"Error describing table {name}: {e}"
            return
        s.table_schemas[name] = schema
        s.expanded_table = s.selected_table
        s.schema_view = schema

    async def run_editor_sql(self) -> None:
        """Run the editor buffer and clear it.

        Success replaces the result pane; failure keeps the previous
        result and reports the error on the status line.
        """
        s = self.state
        sql = s.sql_editor
        try:
            outcome = await self.runner.run(sql)
        except DbFoxError as e:
            logger.error("Error executing query: %s", e)
            s.status_message = f"Query failed: {e}"
        else:
            s.query_result = outcome.rows
            s.status_message = outcome.message or f"{len(outcome.rows)} row(s) returned."
        s.sql_editor = ""
