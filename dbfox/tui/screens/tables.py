"""Table view: tables list, SQL editor and query result panes."""
from __future__ import annotations

from rich.console import RenderableType
from rich.layout import Layout
from rich.panel import Panel
from rich.text import Text

from ..components import (
    FOCUSED_BORDER,
    IDLE_BORDER,
    SELECTED_STYLE,
    column_line,
    help_line,
    render_result_rows,
    render_schema,
    stack,
)
from ..router import Router, register_screen
from ..state import Focus, Screen, UIState


def _border(state: UIState, focus: Focus) -> str:
    return FOCUSED_BORDER if state.focus is focus else IDLE_BORDER


def tables_pane(state: UIState) -> RenderableType:
    """Table names; the expanded one lists its columns underneath."""
    text = Text()
    if not state.tables:
        text.append("No tables", style="dim")
    for i, name in enumerate(state.tables):
        if i:
            text.append("\n")
        text.append(name, style=SELECTED_STYLE if i == state.selected_table else "white")
        schema = state.table_schemas.get(name)
        if state.expanded_table == i and schema is not None:
            for col in schema.columns:
                text.append(f"\n  ├─ {column_line(col)}", style="grey62")
    return Panel(text, title="Tables", border_style=_border(state, Focus.TABLES_LIST))


def editor_pane(state: UIState) -> RenderableType:
    body = Text(state.sql_editor)
    if state.focus is Focus.SQL_EDITOR:
        body.append("█", style="blink")
    return Panel(body, title="SQL Query", border_style=_border(state, Focus.SQL_EDITOR))


def result_pane(state: UIState) -> RenderableType:
    status = None
    if state.status_message:
        status = Text(state.status_message, style="cyan")
    return Panel(
        stack(status, render_result_rows(state.query_result)),
        title="Query Result",
        border_style=_border(state, Focus.QUERY_RESULT),
    )


@register_screen(Screen.TABLE_VIEW)
def render_table_view(router: Router) -> RenderableType:
    state = router.state
    layout = Layout()
    layout.split_column(Layout(name="main", ratio=19), Layout(name="help", size=1))
    layout["main"].split_row(Layout(name="tables", ratio=3), Layout(name="right", ratio=7))

    right = [Layout(editor_pane(state), name="editor", ratio=1)]
    if state.schema_view is not None and state.expanded_table is not None:
        right.append(Layout(render_schema(state.schema_view), name="schema", ratio=1))
    right.append(Layout(result_pane(state), name="result", ratio=1))
    layout["right"].split_column(*right)

    layout["tables"].update(tables_pane(state))
    layout["help"].update(
        help_line(
            ("Tab", "yellow", "- to navigate"),
            ("Enter", "green", "- to expand table / execute SQL query"),
            ("Ctrl-C", "red", "- to quit"),
        )
    )
    return layout
