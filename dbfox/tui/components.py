"""Reusable UI components for the TUI."""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import questionary
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..db import Column, Row, TableSchema

if TYPE_CHECKING:
    from ..manager import ConnectionManager
    from .router import Router


# ═══════════════════════════════════════════════════════════════════════════════
# BRAND STYLING
# ═══════════════════════════════════════════════════════════════════════════════

BRAND_STYLE = questionary.Style([
    ("qmark", "fg:#00b4d8 bold"),         # Cyan accent
    ("question", "bold"),
    ("answer", "fg:#90e0ef bold"),         # Light cyan for answers
    ("highlighted", "fg:#00b4d8 bold"),    # Highlighted item
    ("pointer", "fg:#00b4d8 bold"),        # Arrow pointer
    ("selected", "fg:#90e0ef"),            # Selected item
])

SELECTED_STYLE = "bold black on yellow"
FOCUSED_BORDER = "yellow"
IDLE_BORDER = "white"


# ═══════════════════════════════════════════════════════════════════════════════
# HEADER (context bar)
# ═══════════════════════════════════════════════════════════════════════════════

def render_header(manager: ConnectionManager) -> RenderableType:
    """Compact context bar: what we're connected to, if anything."""
    target = manager.target
    if manager.connected and target is not None:
        content = (
            f"  [bold]Engine[/bold] [cyan]{target.engine.label}[/cyan]  "
            f"[bold]At[/bold] [dim]{target.describe(manager.database)}[/dim]"
        )
    else:
        content = "  [yellow]Not connected[/yellow]"
    return Panel.fit(content, border_style="dim")


def render_breadcrumbs(router: Router) -> RenderableType:
    return Text(router.nav.breadcrumbs(), style="dim")


def render_error(title: str, cause: str, action: str | None = None) -> RenderableType:
    """Friendly error panel with 3-part structure."""
    content = f"[bold red]✗ {title}[/bold red]\n\n"
    content += f"[yellow]Cause:[/yellow] {cause}"

    if action:
        content += f"\n\n[dim]→ {action}[/dim]"

    return Panel.fit(content, border_style="red", title="Error")


def help_line(*pairs: tuple[str, str, str]) -> RenderableType:
    """Key hints, e.g. ("Enter", "green", "to select")."""
    text = Text(justify="center")
    for i, (key, color, action) in enumerate(pairs):
        if i:
            text.append(", ")
        text.append(key, style=f"bold {color}")
        text.append(f" {action}")
    return text


def selectable_list(
    items: Sequence[str],
    selected: int,
    *,
    title: str,
    empty: str = "(none)",
) -> RenderableType:
    lines = Text()
    if not items:
        lines.append(empty, style="dim")
    for i, item in enumerate(items):
        if i:
            lines.append("\n")
        lines.append(item, style=SELECTED_STYLE if i == selected else "white")
    return Panel(lines, title=title, title_align="center", border_style=IDLE_BORDER, width=60)


# ═══════════════════════════════════════════════════════════════════════════════
# SCHEMA & RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

def column_line(col: Column) -> str:
    return f"{col.name}: {col.data_type} (Nullable: {col.is_nullable}, Default: {col.default!r})"


def render_schema(schema: TableSchema) -> RenderableType:
    table = Table(title=f"[bold]{schema.table_name}[/bold]", expand=True)
    table.add_column("Column", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Nullable")
    table.add_column("Default", style="dim")
    for col in schema.columns:
        table.add_row(col.name, col.data_type, "yes" if col.is_nullable else "no", col.default or "")
    return table


def cell_text(value: object) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_result_rows(rows: list[Row]) -> RenderableType:
    """Rows as a table; headers come from the first row."""
    if not rows:
        return Text("No results", style="dim")
    headers = list(rows[0].keys())
    table = Table(expand=True, header_style="yellow")
    for h in headers:
        table.add_column(h, overflow="fold")
    for row in rows:
        table.add_row(*(cell_text(row.get(h)) for h in headers))
    return table


def stack(*parts: RenderableType | None) -> RenderableType:
    return Group(*(p for p in parts if p is not None))
