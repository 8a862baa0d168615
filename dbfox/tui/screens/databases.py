"""Database selection: lists what the first connection can see."""
from __future__ import annotations

from rich.console import RenderableType

from ..components import (
    help_line,
    render_breadcrumbs,
    render_error,
    render_header,
    selectable_list,
    stack,
)
from ..router import Router, register_screen
from ..state import Screen


@register_screen(Screen.DATABASE_SELECTION)
def render_database_selection(router: Router) -> RenderableType:
    state = router.state
    error = None
    if state.connection_error:
        error = render_error("Database error", state.connection_error)
    return stack(
        render_header(router.nav.manager),
        render_breadcrumbs(router),
        selectable_list(
            state.databases,
            state.selected_database,
            title="Select Database",
            empty="No databases found",
        ),
        error,
        help_line(
            ("Up/Down", "yellow", "to navigate"),
            ("Enter", "green", "to select"),
            ("q", "red", "to quit"),
        ),
    )
