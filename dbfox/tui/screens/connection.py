"""Connection form: username, password, hostname."""
from __future__ import annotations

from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text

from ...db import Engine
from ..components import help_line, render_breadcrumbs, render_error, stack
from ..router import Router, register_screen
from ..state import InputField, Screen


def form_lines(router: Router) -> list[str]:
    form = router.state.connection_input
    host_label = "File" if router.state.engine is Engine.SQLITE else "Hostname"
    lines = [
        f"Username: {form.username}",
        f"Password: {'*' * len(form.password)}",
        f"{host_label}: {form.hostname}",
    ]
    lines[form.field_index] += " <"
    return lines


@register_screen(Screen.CONNECTION_INPUT)
def render_connection_input(router: Router) -> RenderableType:
    state = router.state
    body = Panel(
        Text("\n".join(form_lines(router))),
        title=f"Enter Connection Details ({state.engine.label})",
        title_align="center",
        width=60,
    )
    error = None
    if state.connection_error:
        error = render_error(
            "Could not connect",
            state.connection_error,
            "Check the details and press Enter on the last field to retry",
        )
    on_last = state.connection_input.current_field is InputField.HOSTNAME
    return stack(
        render_breadcrumbs(router),
        body,
        error,
        help_line(
            ("Enter", "green", "to connect" if on_last else "to confirm input"),
            ("Esc", "red", "to go back"),
            ("Ctrl-C", "red", "to quit"),
        ),
    )
