"""Virtual terminal for testing -- implements the Terminal protocol in-memory.

All output is captured in a buffer for assertions, and ``feed`` plays
keystrokes into whatever input handler the app registered.
"""

from __future__ import annotations

from typing import Callable


class VirtualTerminal:
    """In-memory terminal that records all writes for test inspection."""

    def __init__(self, columns: int = 80) -> None:
        self._columns = columns
        self._buffer: list[str] = []
        self._started = False
        self._input_handler: Callable[[str], None] | None = None
        self._cursor_visible = True
        self.bells = 0

    @property
    def columns(self) -> int:
        return self._columns

    @columns.setter
    def columns(self, value: int) -> None:
        self._columns = value

    @property
    def started(self) -> bool:
        return self._started

    # -- Terminal protocol: lifecycle ---------------------------------------

    def start(self, on_input: Callable[[str], None]) -> None:
        self._input_handler = on_input
        self._started = True

    def stop(self) -> None:
        self._started = False
        self._input_handler = None

    # -- Terminal protocol: output ------------------------------------------

    def write(self, data: str) -> None:
        self._buffer.append(data)

    def move_by(self, lines: int) -> None:
        if lines > 0:
            self._buffer.append(f"\x1b[{lines}B")
        elif lines < 0:
            self._buffer.append(f"\x1b[{-lines}A")

    def move_to_column(self, column: int) -> None:
        self._buffer.append(f"\x1b[{column + 1}G")

    def hide_cursor(self) -> None:
        self._cursor_visible = False
        self._buffer.append("\x1b[?25l")

    def show_cursor(self) -> None:
        self._cursor_visible = True
        self._buffer.append("\x1b[?25h")

    def clear_to_eol(self) -> None:
        self._buffer.append("\x1b[K")

    def bell(self) -> None:
        self.bells += 1
        self._buffer.append("\x07")

    # -- Test helpers -------------------------------------------------------

    def feed(self, data: str) -> None:
        """Deliver input as if each key had been typed separately."""
        if self._input_handler is None:
            raise RuntimeError("terminal is not started")
        for key in _split_keys(data):
            self._input_handler(key)

    def get_output(self) -> str:
        return "".join(self._buffer)

    def clear_output(self) -> None:
        self._buffer.clear()


def _split_keys(data: str) -> list[str]:
    # Escape sequences are fed whole; only plain text is split per character.
    if data.startswith("\x1b"):
        return [data]
    return list(data)
