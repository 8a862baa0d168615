"""Engine selection: first screen."""
from __future__ import annotations

from rich.console import RenderableType

from ...db import Engine
from ..components import help_line, render_breadcrumbs, render_header, selectable_list, stack
from ..router import Router, register_screen
from ..state import Screen


@register_screen(Screen.DB_TYPE_SELECTION)
def render_db_type_selection(router: Router) -> RenderableType:
    labels = [e.label for e in Engine.ordered()]
    return stack(
        render_header(router.nav.manager),
        render_breadcrumbs(router),
        selectable_list(labels, router.state.selected_db_type, title="Select Database Type"),
        help_line(
            ("Up/Down", "yellow", "to navigate"),
            ("Enter", "green", "to select"),
            ("q", "red", "to quit"),
        ),
    )
