"""Main loop and screen registry for the TUI."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Protocol

from rich.console import RenderableType
from rich.text import Text

from .keys import KeyEvent
from .navigator import EXIT
from .state import Screen

if TYPE_CHECKING:
    from rich.console import Console

    from .navigator import Navigator
    from .state import UIState

logger = logging.getLogger(__name__)


class KeySource(Protocol):
    async def next(self) -> KeyEvent: ...


class Display(Protocol):
    def update(self, renderable: RenderableType) -> None: ...


class Router:
    """Main event loop.

    Each cycle draws the current screen from state, waits for one key and
    hands it to the navigator. The navigator finishes (including any
    database call) before the next draw.
    """

    def __init__(
        self,
        console: Console,
        state: UIState,
        nav: Navigator,
    ):
        """Initialize router with shared session objects.

        Args:
            console: Rich console the screens are drawn on
            state: UI state read by the screen renderers
            nav: Navigator that owns screen transitions
        """
        self.console = console
        self.state = state
        self.nav = nav

    def render(self) -> RenderableType:
        """Build the renderable for the navigator's current screen.

        Falls back to engine selection when no renderer is registered.

        Returns:
            Rich renderable for the current screen
        """
        screen = self.nav.current()
        screen_fn = SCREENS.get(screen)
        if screen_fn is None:
            logger.warning("No renderer for screen %r, returning to engine selection", screen)
            self.nav.home()
            screen = self.nav.current()
            screen_fn = SCREENS.get(screen)
        if screen_fn is None:
            return Text(f"Unknown screen: {screen.value}", style="yellow")
        return screen_fn(self)

    async def run(self, keys: KeySource, display: Display) -> None:
        """Run until the navigator asks to exit.

        Args:
            keys: Source of key events, awaited one at a time
            display: Live display that receives each frame
        """
        while True:
            display.update(self.render())
            key = await keys.next()
            result = await self.nav.handle_key(key)
            if result == EXIT:
                logger.info("Session ended after %d screen visits", len(self.state.session_history))
                break


# Screen registry - maps screens to render functions
SCREENS: dict[Screen, Callable[[Router], RenderableType]] = {}


def register_screen(screen: Screen):
    """Decorator to register a screen render function.

    Usage:
        @register_screen(Screen.TABLE_VIEW)
        def render_table_view(router: Router) -> RenderableType:
            ...
    """
    def decorator(fn: Callable[[Router], RenderableType]):
        SCREENS[screen] = fn
        return fn
    return decorator
