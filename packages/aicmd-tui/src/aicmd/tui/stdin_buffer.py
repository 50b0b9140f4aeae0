"""Split raw stdin chunks into one key sequence per event.

A single read may carry several keys (fast typing, key repeat) or only the
first bytes of an escape sequence. Complete sequences are emitted at once;
an unfinished tail waits for its continuation, and a lone ESC is emitted
as the escape key when nothing follows within the timeout. Bracketed
pastes are collected whole and emitted separately.
"""

from __future__ import annotations

import asyncio
from typing import Callable

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"


def _escape_length(text: str) -> int | None:
    """Length of the escape sequence at the start of *text*, or ``None`` if cut short."""
    if len(text) < 2:
        return None
    introducer = text[1]
    if introducer == "[":
        # CSI: parameter and intermediate bytes, then one final byte in @..~
        for i in range(2, len(text)):
            if 0x40 <= ord(text[i]) <= 0x7E:
                return i + 1
        return None
    if introducer == "O":
        # SS3: exactly one more character
        return 3 if len(text) >= 3 else None
    # ESC <char>: alt-modified key
    return 2


def extract_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences plus an unfinished remainder."""
    sequences: list[str] = []
    pos = 0
    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue
        length = _escape_length(buffer[pos:])
        if length is None:
            return sequences, buffer[pos:]
        sequences.append(buffer[pos : pos + length])
        pos += length
    return sequences, ""


class StdinBuffer:
    """Turns arbitrary stdin chunks into key and paste callbacks."""

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._timeout = timeout
        self._pending = ""
        self._paste: str | None = None
        self._flush_handle: asyncio.TimerHandle | None = None

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Called with each complete key sequence."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Called with the text of each finished bracketed paste."""
        self._on_paste = callback

    def process(self, data: str) -> None:
        """Feed a chunk read from stdin."""
        self._cancel_flush()
        data = self._pending + data
        self._pending = ""

        while data:
            if self._paste is not None:
                collected = self._paste + data
                end = collected.find(BRACKETED_PASTE_END)
                if end == -1:
                    self._paste = collected
                    return
                pasted = collected[:end]
                self._paste = None
                data = collected[end + len(BRACKETED_PASTE_END) :]
                if self._on_paste:
                    self._on_paste(pasted)
                continue

            start = data.find(BRACKETED_PASTE_START)
            keys = data if start == -1 else data[:start]
            sequences, rest = extract_sequences(keys)
            self._emit_keys(sequences)
            if start == -1:
                self._hold(rest)
                return
            self._paste = ""
            data = data[start + len(BRACKETED_PASTE_START) :]

    def flush(self) -> list[str]:
        """Give up waiting: return the unfinished tail as one sequence."""
        self._cancel_flush()
        tail, self._pending = self._pending, ""
        return [tail] if tail else []

    def clear(self) -> None:
        """Drop everything buffered, including a half-received paste."""
        self._cancel_flush()
        self._pending = ""
        self._paste = None

    def get_buffer(self) -> str:
        return self._pending

    def _emit_keys(self, sequences: list[str]) -> None:
        if self._on_data:
            for sequence in sequences:
                self._on_data(sequence)

    def _hold(self, rest: str) -> None:
        if not rest:
            return
        self._pending = rest
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Nobody could deliver the continuation; emit now.
            self._emit_keys(self.flush())
            return
        self._flush_handle = loop.call_later(self._timeout, self._on_flush_timeout)

    def _on_flush_timeout(self) -> None:
        self._flush_handle = None
        self._emit_keys(self.flush())

    def _cancel_flush(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
