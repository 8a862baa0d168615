"""Keyboard input: raw terminal keys -> a small fixed vocabulary."""
from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys


class KeyKind(str, Enum):
    UP = "up"
    DOWN = "down"
    ENTER = "enter"
    ESC = "esc"
    TAB = "tab"
    BACKSPACE = "backspace"
    CHAR = "char"
    QUIT = "quit"


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyKind
    char: str = ""

    @classmethod
    def of(cls, kind: KeyKind) -> KeyEvent:
        return cls(kind)

    @classmethod
    def text(cls, ch: str) -> KeyEvent:
        return cls(KeyKind.CHAR, ch)


_SPECIAL = {
    Keys.Up: KeyKind.UP,
    Keys.Down: KeyKind.DOWN,
    Keys.ControlM: KeyKind.ENTER,
    Keys.ControlJ: KeyKind.ENTER,
    Keys.Escape: KeyKind.ESC,
    Keys.ControlI: KeyKind.TAB,
    Keys.ControlH: KeyKind.BACKSPACE,
    Keys.ControlC: KeyKind.QUIT,
}


def translate(press: KeyPress) -> list[KeyEvent]:
    """Map one prompt_toolkit key press to zero or more key events."""
    key = press.key
    if isinstance(key, Keys):
        if key in _SPECIAL:
            return [KeyEvent.of(_SPECIAL[key])]
        if key == Keys.BracketedPaste:
            text = " ".join(press.data.splitlines())
            return [KeyEvent.text(ch) for ch in text if ch.isprintable()]
        return []
    if len(key) == 1 and key.isprintable():
        return [KeyEvent.text(key)]
    return []


class TerminalKeys:
    """Async key source reading the terminal in raw mode.

    Must be attached from inside a running event loop:

        with keys.attached():
            key = await keys.next()
    """

    # A lone ESC is only reported once no further bytes follow it.
    ESCAPE_FLUSH_SEC = 0.05

    def __init__(self, inp: Input | None = None):
        self._input = inp or create_input()
        self._queue: asyncio.Queue[KeyEvent] = asyncio.Queue()
        self._flush_handle: asyncio.TimerHandle | None = None

    @contextmanager
    def attached(self) -> Iterator[TerminalKeys]:
        with self._input.raw_mode(), self._input.attach(self._on_ready):
            try:
                yield self
            finally:
                if self._flush_handle is not None:
                    self._flush_handle.cancel()

    def _push(self, presses: list[KeyPress]) -> None:
        for press in presses:
            for event in translate(press):
                self._queue.put_nowait(event)

    def _on_ready(self) -> None:
        self._push(self._input.read_keys())
        if self._flush_handle is not None:
            self._flush_handle.cancel()
        loop = asyncio.get_running_loop()
        self._flush_handle = loop.call_later(self.ESCAPE_FLUSH_SEC, self._flush)

    def _flush(self) -> None:
        self._flush_handle = None
        self._push(self._input.flush_keys())

    async def next(self) -> KeyEvent:
        return await self._queue.get()
