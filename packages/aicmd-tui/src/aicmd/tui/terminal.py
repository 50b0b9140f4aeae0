"""Terminal abstraction for a single editable row.

``Terminal`` is the narrow surface the line editor's renderer needs;
``ProcessTerminal`` implements it on the controlling tty. Keys arrive via
``loop.add_reader`` on stdin, so input handling and redraws run on the
event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import termios
import tty
from typing import Callable, Protocol, TextIO

from aicmd.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START, StdinBuffer

logger = logging.getLogger(__name__)

CSI = "\x1b["

PASTE_MODE_ON = f"{CSI}?2004h"
PASTE_MODE_OFF = f"{CSI}?2004l"
CURSOR_HIDDEN = f"{CSI}?25l"
CURSOR_VISIBLE = f"{CSI}?25h"
ERASE_TO_EOL = f"{CSI}K"
BELL = "\x07"

DEFAULT_COLUMNS = 80
READ_CHUNK = 4096
ESCAPE_TIMEOUT = 0.01


class Terminal(Protocol):
    """What the renderer and app need from a terminal."""

    def start(self, on_input: Callable[[str], None]) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    def move_by(self, lines: int) -> None: ...

    def move_to_column(self, column: int) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_to_eol(self) -> None: ...

    def bell(self) -> None: ...


class ProcessTerminal:
    """The process's controlling terminal in raw mode.

    Output goes to *output* (default ``sys.stderr``) so that a caller can
    print the submitted line alone on stdout, e.g. inside ``$(...)``.
    """

    def __init__(self, output: TextIO | None = None, input_fd: int | None = None) -> None:
        self._output = output or sys.stderr
        self._fd = sys.stdin.fileno() if input_fd is None else input_fd
        self._on_input: Callable[[str], None] | None = None
        self._saved_mode: list | None = None
        self._reading = False

        self._keys = StdinBuffer(timeout=ESCAPE_TIMEOUT)
        self._keys.on_data(self._deliver)
        self._keys.on_paste(lambda text: self._deliver(BRACKETED_PASTE_START + text + BRACKETED_PASTE_END))

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._output.fileno()).columns
        except (ValueError, OSError):
            return DEFAULT_COLUMNS

    def start(self, on_input: Callable[[str], None]) -> None:
        """Switch to raw mode with bracketed paste and start reading keys."""
        self._on_input = on_input
        self._saved_mode = termios.tcgetattr(self._fd)
        tty.setraw(self._fd)
        self._emit(PASTE_MODE_ON)

        if not self._reading:
            asyncio.get_running_loop().add_reader(self._fd, self._read_keys)
            self._reading = True

    def stop(self) -> None:
        """Restore the saved tty mode; safe to call more than once."""
        self._emit(PASTE_MODE_OFF + CURSOR_VISIBLE)
        self._keys.clear()

        if self._reading:
            try:
                asyncio.get_running_loop().remove_reader(self._fd)
            except (RuntimeError, ValueError):
                logger.debug("stdin reader already detached")
            self._reading = False

        if self._saved_mode is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_mode)
            self._saved_mode = None
        self._on_input = None

    def write(self, data: str) -> None:
        self._emit(data)

    def move_by(self, lines: int) -> None:
        """Move up (negative) or down (positive) by *lines* rows."""
        if lines:
            self._emit(f"{CSI}{abs(lines)}{'A' if lines < 0 else 'B'}")

    def move_to_column(self, column: int) -> None:
        """Place the cursor at zero-based *column* of the current row."""
        self._emit(f"{CSI}{column + 1}G")

    def hide_cursor(self) -> None:
        self._emit(CURSOR_HIDDEN)

    def show_cursor(self) -> None:
        self._emit(CURSOR_VISIBLE)

    def clear_to_eol(self) -> None:
        self._emit(ERASE_TO_EOL)

    def bell(self) -> None:
        self._emit(BELL)

    def _deliver(self, data: str) -> None:
        if self._on_input is not None:
            self._on_input(data)

    def _read_keys(self) -> None:
        try:
            raw = os.read(self._fd, READ_CHUNK)
        except OSError as e:
            logger.debug("stdin read failed: %s", e)
            return
        if raw:
            self._keys.process(raw.decode("utf-8", errors="replace"))

    def _emit(self, data: str) -> None:
        try:
            self._output.write(data)
            self._output.flush()
        except OSError as e:
            logger.debug("terminal write failed: %s", e)
