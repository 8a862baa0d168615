"""Session state shared by the navigator (writer) and the screens (readers)."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from ..db import Engine, Row, TableSchema


class Screen(str, Enum):
    DB_TYPE_SELECTION = "db_type_selection"
    CONNECTION_INPUT = "connection_input"
    DATABASE_SELECTION = "database_selection"
    TABLE_VIEW = "table_view"


class Focus(str, Enum):
    TABLES_LIST = "tables_list"
    SQL_EDITOR = "sql_editor"
    QUERY_RESULT = "query_result"

    def next(self) -> Focus:
        return _FOCUS_CYCLE[self]


_FOCUS_CYCLE = {
    Focus.TABLES_LIST: Focus.SQL_EDITOR,
    Focus.SQL_EDITOR: Focus.QUERY_RESULT,
    Focus.QUERY_RESULT: Focus.TABLES_LIST,
}


class InputField(str, Enum):
    USERNAME = "username"
    PASSWORD = "password"
    HOSTNAME = "hostname"


_FIELD_ORDER = [InputField.USERNAME, InputField.PASSWORD, InputField.HOSTNAME]


@dataclass
class ConnectionInput:
    """Connection form, edited one key at a time."""

    username: str = ""
    password: str = ""
    hostname: str = ""
    port: int | None = None
    current_field: InputField = InputField.USERNAME

    @property
    def field_index(self) -> int:
        return _FIELD_ORDER.index(self.current_field)

    def append(self, ch: str) -> None:
        f = self.current_field.value
        setattr(self, f, getattr(self, f) + ch)

    def backspace(self) -> None:
        f = self.current_field.value
        setattr(self, f, getattr(self, f)[:-1])

    def advance(self) -> bool:
        """Move to the next field. Returns False when already on the last one."""
        idx = self.field_index
        if idx + 1 >= len(_FIELD_ORDER):
            return False
        self.current_field = _FIELD_ORDER[idx + 1]
        return True

    def copy(self) -> ConnectionInput:
        return replace(self)


@dataclass
class UIState:
    """UI session state.

    Only the navigator mutates this; screens render it as-is.
    """

    screen: Screen = Screen.DB_TYPE_SELECTION
    focus: Focus = Focus.TABLES_LIST

    # Selection indices
    selected_db_type: int = 0
    selected_database: int = 0
    selected_table: int = 0
    expanded_table: int | None = None

    connection_input: ConnectionInput = field(default_factory=ConnectionInput)
    connection_error: str | None = None

    databases: list[str] = field(default_factory=list)
    tables: list[str] = field(default_factory=list)
    table_schemas: dict[str, TableSchema] = field(default_factory=dict)

    sql_editor: str = ""
    query_result: list[Row] = field(default_factory=list)
    status_message: str | None = None

    # Set when a schema fetch completes; the table view draws it in detail.
    schema_view: TableSchema | None = None

    # Session history for debugging
    session_history: list[str] = field(default_factory=list)

    @property
    def engine(self) -> Engine:
        return Engine.ordered()[self.selected_db_type]

    @property
    def expanded_table_name(self) -> str | None:
        if self.expanded_table is None or self.expanded_table >= len(self.tables):
            return None
        return self.tables[self.expanded_table]

    def add_to_history(self, screen: str) -> None:
        self.session_history.append(screen)

    def clear_table_view(self) -> None:
        """Forget everything tied to the previous database."""
        self.tables = []
        self.selected_table = 0
        self.expanded_table = None
        self.table_schemas = {}
        self.schema_view = None
        self.query_result = []
        self.sql_editor = ""
        self.status_message = None
        self.focus = Focus.TABLES_LIST
