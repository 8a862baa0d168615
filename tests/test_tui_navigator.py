"""Unit tests for the Navigator state machine."""
from __future__ import annotations

import asyncio
import random

import pytest

from dbfox.tui.keys import KeyEvent, KeyKind
from dbfox.tui.navigator import EXIT, Navigator, move_down, move_up
from dbfox.tui.state import ConnectionInput, Focus, InputField, Screen, UIState

UP = KeyEvent.of(KeyKind.UP)
DOWN = KeyEvent.of(KeyKind.DOWN)
ENTER = KeyEvent.of(KeyKind.ENTER)
ESC = KeyEvent.of(KeyKind.ESC)
TAB = KeyEvent.of(KeyKind.TAB)
BACKSPACE = KeyEvent.of(KeyKind.BACKSPACE)
QUIT = KeyEvent.of(KeyKind.QUIT)


def typed(text: str) -> list[KeyEvent]:
    return [KeyEvent.text(ch) for ch in text]


def press(nav: Navigator, *keys: KeyEvent) -> str | None:
    result = None
    for key in keys:
        result = asyncio.run(nav.handle_key(key))
    return result


@pytest.fixture
def nav(manager) -> Navigator:
    return Navigator(UIState(), manager)


def _login(nav: Navigator, hostname: str = "localhost") -> None:
    press(nav, ENTER, *typed("admin"), ENTER, *typed("pw"), ENTER, *typed(hostname), ENTER)


@pytest.fixture
def table_nav(nav) -> Navigator:
    """Navigator already sitting on the table view of `sales`."""
    _login(nav)
    press(nav, DOWN, ENTER)
    assert nav.state.screen is Screen.TABLE_VIEW
    return nav


# ── index movement ───────────────────────────────────────────────────────

def test_move_helpers_clamp():
    """Index helpers stop at both ends."""
    assert move_up(0) == 0
    assert move_up(2) == 1
    assert move_down(2, 3) == 2
    assert move_down(0, 3) == 1
    assert move_down(0, 0) == 0


def test_index_stays_in_bounds_for_any_sequence():
    """Random Up/Down sequences never leave [0, size-1]."""
    rng = random.Random(1234)
    for size in range(0, 6):
        index = 0
        for _ in range(200):
            index = move_up(index) if rng.random() < 0.5 else move_down(index, size)
            if size == 0:
                assert index == 0
            else:
                assert 0 <= index <= size - 1


# ── engine selection ─────────────────────────────────────────────────────

def test_db_type_selection_clamps(nav):
    """Engine selection clamps instead of wrapping."""
    press(nav, UP)
    assert nav.state.selected_db_type == 0

    press(nav, DOWN, DOWN, DOWN, DOWN)
    assert nav.state.selected_db_type == 2

    press(nav, UP)
    assert nav.state.selected_db_type == 1


def test_db_type_enter_opens_connection_form(nav):
    """Enter on an engine opens the connection form for it."""
    press(nav, DOWN, ENTER)

    assert nav.state.screen is Screen.CONNECTION_INPUT
    assert nav.state.engine.label == "MySQL"


@pytest.mark.parametrize("key", [KeyEvent.text("q"), QUIT])
def test_db_type_quit(nav, key):
    """q and Ctrl-C both quit from engine selection."""
    assert press(nav, key) == EXIT


# ── connection form ──────────────────────────────────────────────────────

def test_connection_fields_advance_on_enter(nav):
    """Enter moves username -> password -> hostname."""
    press(nav, ENTER, *typed("admin"))
    form = nav.state.connection_input
    assert form.username == "admin"
    assert form.current_field is InputField.USERNAME

    press(nav, ENTER, *typed("pw"))
    assert form.password == "pw"
    assert form.current_field is InputField.PASSWORD

    press(nav, ENTER, *typed("db.local"))
    assert form.hostname == "db.local"
    assert form.current_field is InputField.HOSTNAME


def test_connection_backspace(nav):
    """Backspace edits the active field only."""
    press(nav, ENTER, *typed("adminx"), BACKSPACE)
    assert nav.state.connection_input.username == "admin"

    press(nav, ENTER, BACKSPACE)
    assert nav.state.connection_input.password == ""


def test_q_is_typeable_in_connection_form(nav):
    """q is text on the form; Ctrl-C still quits."""
    assert press(nav, ENTER, KeyEvent.text("q")) is None
    assert nav.state.connection_input.username == "q"
    assert press(nav, QUIT) == EXIT


def test_esc_discards_connection_input(nav):
    """Esc returns to engine selection with a fresh form."""
    press(nav, ENTER, *typed("admin"), ENTER, *typed("pw"), ESC)

    assert nav.state.screen is Screen.DB_TYPE_SELECTION
    assert nav.state.connection_input == ConnectionInput()


def test_esc_restores_prefilled_values(manager):
    """Esc restores CLI/settings prefills, not blanks."""
    state = UIState(connection_input=ConnectionInput(username="preset", hostname="db"))
    nav = Navigator(state, manager)

    press(nav, ENTER, *typed("xyz"), ESC)

    assert state.connection_input.username == "preset"
    assert state.connection_input.hostname == "db"


def test_successful_connect_lists_databases(nav, manager, fake_server):
    """A good connect moves on and loads the database list."""
    _login(nav)

    assert nav.state.screen is Screen.DATABASE_SELECTION
    assert nav.state.databases == ["postgres", "sales"]
    assert nav.state.connection_error is None
    assert fake_server.opened[0].dsn == "postgresql://admin:pw@localhost:5432/postgres"


def test_hostname_may_carry_port(nav, fake_server):
    """host:port in the hostname field overrides the port."""
    _login(nav, hostname="db.local:6000")

    assert fake_server.opened[0].dsn == "postgresql://admin:pw@db.local:6000/postgres"


def test_empty_hostname_uses_default_host(manager, fake_server):
    """An empty hostname falls back to the configured host."""
    nav = Navigator(UIState(), manager, default_host="pg.internal")
    press(nav, ENTER, ENTER, ENTER, ENTER)

    assert fake_server.opened[0].dsn == "postgresql://:@pg.internal:5432/postgres"


def test_configured_port_is_used(manager, fake_server):
    """Per-engine ports from settings reach the DSN."""
    from dbfox.db import Engine

    nav = Navigator(UIState(), manager, default_ports={Engine.POSTGRES: 6432})
    _login(nav)

    assert ":6432/" in fake_server.opened[0].dsn


def test_failed_connect_stays_and_records_error(nav, fake_server):
    """A driver error keeps the form and shows the message."""
    fake_server.fail = "could not translate host name"
    _login(nav)

    assert nav.state.screen is Screen.CONNECTION_INPUT
    assert nav.state.connection_error == "Connection error: could not translate host name"


def test_connect_timeout_is_reported(nav, manager, fake_server):
    """A slow server times out and leaves the slot empty."""
    fake_server.delay = 5.0
    manager.connect_timeout = 0.05
    _login(nav, hostname="10.255.255.1")

    assert nav.state.screen is Screen.CONNECTION_INPUT
    assert nav.state.connection_error == "Connection timed out"
    assert manager.connected is False


def test_retry_after_failure(nav, fake_server):
    """Enter on the hostname field retries after an error."""
    fake_server.fail = "refused"
    _login(nav)
    fake_server.fail = None

    press(nav, ENTER)

    assert nav.state.screen is Screen.DATABASE_SELECTION
    assert nav.state.connection_error is None


# ── database selection ──────────────────────────────────────────────────

def test_database_selection_clamps(nav):
    """Database selection clamps to the list."""
    _login(nav)

    press(nav, UP)
    assert nav.state.selected_database == 0
    press(nav, DOWN, DOWN, DOWN)
    assert nav.state.selected_database == 1


def test_database_list_refreshed_on_entry(nav, fake_server):
    """Re-entering database selection reloads the list."""
    _login(nav)
    fake_server.databases = ["postgres", "sales", "archive"]

    asyncio.run(nav.go(Screen.DATABASE_SELECTION))

    assert nav.state.databases == ["postgres", "sales", "archive"]


def test_database_enter_opens_table_view(nav, manager):
    """Enter connects to the chosen database and lists its tables."""
    _login(nav)
    press(nav, DOWN, ENTER)

    assert nav.state.screen is Screen.TABLE_VIEW
    assert manager.database == "sales"
    assert nav.state.tables == ["orders", "customers"]
    assert nav.state.selected_table == 0
    assert nav.state.focus is Focus.TABLES_LIST


def test_database_connect_failure_stays(nav, fake_server):
    """A failed named connect stays on database selection."""
    _login(nav)
    fake_server.fail = 'database "sales" does not exist'

    press(nav, DOWN, ENTER)

    assert nav.state.screen is Screen.DATABASE_SELECTION
    assert "does not exist" in nav.state.connection_error


def test_database_selection_quit(nav):
    """q quits from database selection."""
    _login(nav)
    assert press(nav, KeyEvent.text("q")) == EXIT


def test_empty_database_list_ignores_keys(nav, fake_server):
    """Keys on an empty database list change nothing."""
    fake_server.databases = []
    _login(nav)

    press(nav, DOWN, ENTER)

    assert nav.state.selected_database == 0
    assert nav.state.screen is Screen.DATABASE_SELECTION


# ── table view ───────────────────────────────────────────────────────────

def test_tab_cycles_focus(table_nav):
    """Tab cycles tables -> editor -> result -> tables."""
    seen = []
    for _ in range(4):
        seen.append(table_nav.state.focus)
        press(table_nav, TAB)

    assert seen == [Focus.TABLES_LIST, Focus.SQL_EDITOR, Focus.QUERY_RESULT, Focus.TABLES_LIST]


def test_table_selection_only_moves_in_tables_list(table_nav):
    """Up/Down move the table cursor only while the list has focus."""
    press(table_nav, DOWN, DOWN, DOWN)
    assert table_nav.state.selected_table == 1

    press(table_nav, TAB, UP)
    assert table_nav.state.selected_table == 1


def test_table_selection_with_no_tables(nav, fake_server):
    """An empty table list reports it instead of expanding."""
    fake_server.tables = []
    _login(nav)
    press(nav, DOWN, ENTER)

    press(nav, DOWN, UP, DOWN, ENTER)

    assert nav.state.selected_table == 0
    assert nav.state.expanded_table is None
    assert nav.state.status_message == "No tables available."


def test_expand_orders_scenario(table_nav):
    """Enter on a table describes it and marks it expanded."""
    press(table_nav, ENTER)

    state = table_nav.state
    assert state.expanded_table == 0
    assert state.table_schemas["orders"].table_name == "orders"
    assert state.table_schemas["orders"].column_names() == ["id", "customer_id", "note"]
    assert state.schema_view is state.table_schemas["orders"]


def test_enter_twice_collapses(table_nav):
    """Enter on the expanded table collapses it."""
    press(table_nav, ENTER, ENTER)

    assert table_nav.state.expanded_table is None
    assert table_nav.state.schema_view is None


def test_expanding_another_table_replaces_expansion(table_nav):
    """Only one table is expanded at a time."""
    press(table_nav, ENTER, DOWN, ENTER)

    assert table_nav.state.expanded_table == 1
    assert table_nav.state.expanded_table_name == "customers"


def test_reexpanding_uses_schema_cache(table_nav, manager):
    """Expanding the same table again hits the schema cache."""
    press(table_nav, ENTER, ENTER, ENTER)

    assert table_nav.state.expanded_table == 0
    assert manager.current.calls["describe_table"] == 1


def test_describe_failure_keeps_previous_state(table_nav, fake_server):
    """A describe error keeps the current expansion."""
    press(table_nav, ENTER)
    fake_server.tables = ["orders", "ghost"]
    asyncio.run(table_nav.refresh_tables())
    table_nav.state.expanded_table = 0

    press(table_nav, DOWN, ENTER)

    assert table_nav.state.expanded_table == 0
    assert "ghost" in table_nav.state.status_message


def test_typing_only_reaches_editor_when_focused(table_nav):
    """Characters go to the editor only when it has focus."""
    press(table_nav, *typed("abc"))
    assert table_nav.state.sql_editor == ""

    press(table_nav, TAB, *typed("select 1x"), BACKSPACE)
    assert table_nav.state.sql_editor == "select 1"


def test_editor_enter_runs_select(table_nav):
    """Enter runs a SELECT and shows its rows."""
    press(table_nav, TAB, *typed("select * from customers"), ENTER)

    state = table_nav.state
    assert state.query_result == [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}]
    assert state.status_message == "2 row(s) returned."
    assert state.sql_editor == ""


def test_editor_enter_runs_write(table_nav, fake_server):
    """Enter runs a write and shows the success message."""
    press(table_nav, TAB, *typed("insert into t values (1)"), ENTER)

    assert fake_server.executed == ["insert into t values (1)"]
    assert table_nav.state.query_result == []
    assert table_nav.state.status_message == "Non-SELECT query executed successfully."


def test_editor_failure_keeps_previous_result(table_nav, fake_server):
    """A failing query keeps the old result and clears the editor."""
    press(table_nav, TAB, *typed("select * from t"), ENTER)
    previous = table_nav.state.query_result
    fake_server.query_error = "syntax error"

    press(table_nav, *typed("selec oops"), ENTER)

    assert table_nav.state.query_result == previous
    assert table_nav.state.sql_editor == ""
    assert "syntax error" in table_nav.state.status_message


def test_editor_enter_on_blank_buffer_clears_it(table_nav, manager):
    """Enter on a blank editor runs nothing and resets it."""
    press(table_nav, TAB, *typed("   "), ENTER)

    assert manager.current.calls["query"] == 0
    assert manager.current.calls["execute"] == 0
    assert table_nav.state.sql_editor == ""


def test_table_view_quit(table_nav):
    """Only Ctrl-C quits from the table view."""
    assert press(table_nav, KeyEvent.text("q")) is None
    assert press(table_nav, QUIT) == EXIT


# ── bookkeeping ──────────────────────────────────────────────────────────

def test_breadcrumbs_follow_screen(nav):
    """Breadcrumbs grow with the screens visited."""
    assert nav.breadcrumbs() == "Engine"
    _login(nav)
    assert nav.breadcrumbs() == "Engine > Connect > Database"


def test_history_records_visits(table_nav):
    """Every screen visit is recorded in order."""
    assert table_nav.state.session_history == [
        "db_type_selection",
        "connection_input",
        "database_selection",
        "table_view",
    ]


def test_ipv6_hostname_keeps_default_port(nav, fake_server):
    """A bare IPv6 address is a host, not host:port."""
    _login(nav, hostname="::1")

    assert fake_server.opened[0].dsn == "postgresql://admin:pw@[::1]:5432/postgres"


def test_bracketed_ipv6_hostname_with_port(nav, fake_server):
    """[addr]:port overrides the port for IPv6 hosts."""
    _login(nav, hostname="[fe80::2]:6000")

    assert fake_server.opened[0].dsn == "postgresql://admin:pw@[fe80::2]:6000/postgres"
