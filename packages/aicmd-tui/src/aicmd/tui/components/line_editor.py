"""LineEditor component - single-line text input with horizontal scrolling.

The editing primitives (insert, delete, cursor motion) are public so a
wrapper can run its own logic around each one before or after delegating.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from aicmd.tui.keybindings import EditorAction, EditorKeybindingsManager, get_editor_keybindings
from aicmd.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from aicmd.tui.utils import (
    dim,
    get_segmenter,
    is_punctuation_char,
    is_whitespace_char,
    truncate_to_width,
    visible_width,
)

_segmenter = get_segmenter()

MOTION_ACTIONS: tuple[EditorAction, ...] = (
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
)

DELETE_ACTIONS: tuple[EditorAction, ...] = (
    "deleteCharBackward",
    "deleteCharForward",
    "deleteWordBackward",
    "deleteWordForward",
    "deleteToLineStart",
    "deleteToLineEnd",
)


@dataclass
class RenderedLine:
    """One rendered editor row.

    ``overlay_span`` holds the ``(start, end)`` columns of the decoration
    drawn after the text; it is empty (``start == end``) when there is none.
    """

    text: str
    cursor_column: int
    overlay_span: tuple[int, int]


class LineEditor:
    """Single-line editable buffer with a cursor offset in ``0..len(value)``."""

    def __init__(
        self,
        prompt: str = "> ",
        keybindings: EditorKeybindingsManager | None = None,
    ) -> None:
        self.prompt = prompt
        self._keybindings = keybindings
        self._value: str = ""
        self._cursor: int = 0

        self.on_submit: Callable[[str], None] | None = None

        # Bracketed paste mode
        self._paste_buffer: str = ""
        self._is_in_paste: bool = False

    @property
    def keybindings(self) -> EditorKeybindingsManager:
        return self._keybindings or get_editor_keybindings()

    # -- buffer access ------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    def get_value(self) -> str:
        return self._value

    def set_value(self, value: str, cursor: int | None = None) -> None:
        """Replace the buffer. The cursor defaults to the end of *value*."""
        self._value = value
        self._cursor = len(value) if cursor is None else max(0, min(cursor, len(value)))

    # -- input dispatch -----------------------------------------------------

    def resolve_action(self, data: str) -> EditorAction | None:
        """Return the editing action *data* is bound to, if any."""
        kb = self.keybindings
        for action in (*DELETE_ACTIONS, *MOTION_ACTIONS, "submit"):
            if kb.matches(data, action):
                return action
        return None

    def perform(self, action: EditorAction) -> None:
        """Run the primitive bound to *action*."""
        handlers: dict[str, Callable[[], None]] = {
            "cursorLeft": self.move_left,
            "cursorRight": self.move_right,
            "cursorWordLeft": self.move_word_backwards,
            "cursorWordRight": self.move_word_forwards,
            "cursorLineStart": self.move_line_start,
            "cursorLineEnd": self.move_line_end,
            "deleteCharBackward": self.delete_char_backward,
            "deleteCharForward": self.delete_char_forward,
            "deleteWordBackward": self.delete_word_backward,
            "deleteWordForward": self.delete_word_forward,
            "deleteToLineStart": self.delete_to_line_start,
            "deleteToLineEnd": self.delete_to_line_end,
            "submit": self.submit,
        }
        handler = handlers.get(action)
        if handler is not None:
            handler()

    def extract_paste(self, data: str) -> str | None:
        """Accumulate bracketed paste input.

        Returns the pasted text (newlines removed) once the paste is
        complete, ``""`` while a paste is still being collected, and
        ``None`` when *data* is not part of a paste.
        """
        if BRACKETED_PASTE_START in data:
            self._is_in_paste = True
            self._paste_buffer = ""
            data = data.replace(BRACKETED_PASTE_START, "")

        if not self._is_in_paste:
            return None

        self._paste_buffer += data
        end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end_index == -1:
            return ""

        content = self._paste_buffer[:end_index]
        self._is_in_paste = False
        self._paste_buffer = ""
        return content.replace("\r\n", "").replace("\r", "").replace("\n", "")

    # -- primitives: insertion / submit ---------------------------------------

    def insert_text(self, text: str) -> None:
        self._value = self._value[: self._cursor] + text + self._value[self._cursor :]
        self._cursor += len(text)

    def submit(self) -> None:
        if self.on_submit:
            self.on_submit(self._value)

    # -- primitives: deletion -------------------------------------------------

    def delete_char_backward(self) -> None:
        if self._cursor == 0:
            return
        graphemes = _segmenter.segment(self._value[: self._cursor])
        gl = len(graphemes[-1]) if graphemes else 1
        self._value = self._value[: self._cursor - gl] + self._value[self._cursor :]
        self._cursor -= gl

    def delete_char_forward(self) -> None:
        if self._cursor >= len(self._value):
            return
        graphemes = _segmenter.segment(self._value[self._cursor :])
        gl = len(graphemes[0]) if graphemes else 1
        self._value = self._value[: self._cursor] + self._value[self._cursor + gl :]

    def delete_word_backward(self) -> None:
        if self._cursor == 0:
            return
        old_cursor = self._cursor
        self.move_word_backwards()
        delete_from = self._cursor
        self._value = self._value[:delete_from] + self._value[old_cursor:]

    def delete_word_forward(self) -> None:
        if self._cursor >= len(self._value):
            return
        old_cursor = self._cursor
        self.move_word_forwards()
        delete_to = self._cursor
        self._cursor = old_cursor
        self._value = self._value[:old_cursor] + self._value[delete_to:]

    def delete_to_line_start(self) -> None:
        if self._cursor == 0:
            return
        self._value = self._value[self._cursor :]
        self._cursor = 0

    def delete_to_line_end(self) -> None:
        if self._cursor >= len(self._value):
            return
        self._value = self._value[: self._cursor]

    # -- primitives: cursor motion --------------------------------------------

    def move_left(self) -> None:
        if self._cursor > 0:
            graphemes = _segmenter.segment(self._value[: self._cursor])
            self._cursor -= len(graphemes[-1]) if graphemes else 1

    def move_right(self) -> None:
        if self._cursor < len(self._value):
            graphemes = _segmenter.segment(self._value[self._cursor :])
            self._cursor += len(graphemes[0]) if graphemes else 1

    def move_line_start(self) -> None:
        self._cursor = 0

    def move_line_end(self) -> None:
        self._cursor = len(self._value)

    def move_word_backwards(self) -> None:
        if self._cursor == 0:
            return
        graphemes = _segmenter.segment(self._value[: self._cursor])

        # Skip trailing whitespace
        while graphemes and is_whitespace_char(graphemes[-1]):
            self._cursor -= len(graphemes.pop())

        if graphemes:
            if is_punctuation_char(graphemes[-1]):
                while graphemes and is_punctuation_char(graphemes[-1]):
                    self._cursor -= len(graphemes.pop())
            else:
                while (
                    graphemes
                    and not is_whitespace_char(graphemes[-1])
                    and not is_punctuation_char(graphemes[-1])
                ):
                    self._cursor -= len(graphemes.pop())

    def move_word_forwards(self) -> None:
        if self._cursor >= len(self._value):
            return
        graphemes = _segmenter.segment(self._value[self._cursor :])
        idx = 0

        # Skip leading whitespace
        while idx < len(graphemes) and is_whitespace_char(graphemes[idx]):
            self._cursor += len(graphemes[idx])
            idx += 1

        if idx < len(graphemes):
            if is_punctuation_char(graphemes[idx]):
                while idx < len(graphemes) and is_punctuation_char(graphemes[idx]):
                    self._cursor += len(graphemes[idx])
                    idx += 1
            else:
                while (
                    idx < len(graphemes)
                    and not is_whitespace_char(graphemes[idx])
                    and not is_punctuation_char(graphemes[idx])
                ):
                    self._cursor += len(graphemes[idx])
                    idx += 1

    # -- rendering ------------------------------------------------------------

    def render(
        self,
        width: int,
        postdisplay: str = "",
        style: Callable[[str], str] = dim,
    ) -> RenderedLine:
        """Render the prompt, the visible part of the buffer and *postdisplay*.

        The buffer scrolls horizontally to keep the cursor in view. The
        decoration is truncated to the columns left over and wrapped in
        *style*; the last column stays free for the cursor.
        """
        available = max(1, width - visible_width(self.prompt) - 1)

        before = self._value[: self._cursor]
        after = self._value[self._cursor :]

        if visible_width(self._value) > available:
            before_graphemes = _segmenter.segment(before)
            while before_graphemes and visible_width("".join(before_graphemes)) > available - 1:
                before_graphemes.pop(0)
            before = "".join(before_graphemes)
            after = truncate_to_width(after, available - visible_width(before), ellipsis="")

        head = self.prompt + before
        body = head + after
        cursor_column = visible_width(head)
        overlay_start = visible_width(body)

        room = max(0, width - 1 - overlay_start)
        decoration = truncate_to_width(postdisplay, room, ellipsis="…") if postdisplay else ""
        overlay_end = overlay_start + visible_width(decoration)

        return RenderedLine(
            text=body + style(decoration),
            cursor_column=cursor_column,
            overlay_span=(overlay_start, overlay_end),
        )
