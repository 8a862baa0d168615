"""TUI (Terminal User Interface) module for dbfox.

Keyboard-driven screens: engine -> connect -> database -> tables.
"""
from .navigator import Navigator
from .router import Router
from .state import UIState

__all__ = ["Navigator", "Router", "UIState"]
