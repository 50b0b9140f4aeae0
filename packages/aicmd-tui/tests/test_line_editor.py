"""Tests for the LineEditor component."""

from __future__ import annotations

from aicmd.tui.components.line_editor import LineEditor
from aicmd.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from aicmd.tui.utils import DIM, UNDIM, strip_ansi

KEY_LEFT = "\x1b[D"
KEY_RIGHT = "\x1b[C"
KEY_HOME = "\x1b[H"
KEY_END = "\x1b[F"
KEY_ENTER = "\r"
KEY_BACKSPACE = "\x7f"
KEY_DELETE = "\x1b[3~"
CTRL_W = "\x17"
CTRL_U = "\x15"
CTRL_K = "\x0b"
ALT_B = "\x1bb"
ALT_F = "\x1bf"


def editor_with(text: str, cursor: int | None = None) -> LineEditor:
    ed = LineEditor()
    ed.set_value(text, cursor)
    return ed


def press(ed: LineEditor, key: str) -> None:
    action = ed.resolve_action(key)
    assert action is not None, f"{key!r} is not bound"
    ed.perform(action)


class TestValueAndCursor:
    def test_initial_state(self) -> None:
        ed = LineEditor()
        assert ed.get_value() == ""
        assert ed.cursor == 0

    def test_set_value_puts_cursor_at_end(self) -> None:
        ed = editor_with("git status")
        assert ed.cursor == 10

    def test_set_value_clamps_cursor(self) -> None:
        ed = editor_with("abc", cursor=99)
        assert ed.cursor == 3
        ed.set_value("abc", cursor=-4)
        assert ed.cursor == 0


class TestInsertion:
    def test_typing(self) -> None:
        ed = LineEditor()
        for ch in "git st":
            ed.insert_text(ch)
        assert ed.get_value() == "git st"
        assert ed.cursor == 6

    def test_insert_at_cursor(self) -> None:
        ed = editor_with("ac", cursor=1)
        ed.insert_text("b")
        assert ed.get_value() == "abc"
        assert ed.cursor == 2

    def test_bracketed_paste_strips_newlines(self) -> None:
        ed = LineEditor()
        assert ed.extract_paste(f"{BRACKETED_PASTE_START}echo a\necho b{BRACKETED_PASTE_END}") == "echo aecho b"

    def test_extract_paste_across_chunks(self) -> None:
        ed = LineEditor()
        assert ed.extract_paste("x") is None
        assert ed.extract_paste(f"{BRACKETED_PASTE_START}ls ") == ""
        assert ed.extract_paste(f"-la{BRACKETED_PASTE_END}") == "ls -la"


class TestDeletion:
    def test_backspace(self) -> None:
        ed = editor_with("git sta")
        press(ed, KEY_BACKSPACE)
        assert ed.get_value() == "git st"

    def test_delete_forward(self) -> None:
        ed = editor_with("abc", cursor=0)
        press(ed, KEY_DELETE)
        assert ed.get_value() == "bc"
        assert ed.cursor == 0

    def test_backspace_removes_whole_grapheme(self) -> None:
        ed = editor_with("cafe\u0301")
        press(ed, KEY_BACKSPACE)
        assert ed.get_value() == "caf"

    def test_delete_word_backward(self) -> None:
        ed = editor_with("git commit -m")
        press(ed, CTRL_W)
        assert ed.get_value() == "git commit -"

    def test_delete_to_line_start_and_end(self) -> None:
        ed = editor_with("hello world", cursor=5)
        press(ed, CTRL_K)
        assert ed.get_value() == "hello"
        press(ed, CTRL_U)
        assert ed.get_value() == ""
        assert ed.cursor == 0


class TestMotion:
    def test_left_right(self) -> None:
        ed = editor_with("abc")
        press(ed, KEY_LEFT)
        assert ed.cursor == 2
        press(ed, KEY_RIGHT)
        assert ed.cursor == 3
        press(ed, KEY_RIGHT)
        assert ed.cursor == 3

    def test_home_end(self) -> None:
        ed = editor_with("abc")
        press(ed, KEY_HOME)
        assert ed.cursor == 0
        press(ed, KEY_END)
        assert ed.cursor == 3

    def test_word_motion(self) -> None:
        ed = editor_with("git status --short")
        press(ed, ALT_B)
        assert ed.cursor == len("git status --")
        press(ed, ALT_B)
        assert ed.cursor == len("git status ")
        press(ed, ALT_F)
        assert ed.cursor == len("git status --")


class TestResolveAndPerform:
    def test_resolve_action(self) -> None:
        ed = LineEditor()
        assert ed.resolve_action(KEY_LEFT) == "cursorLeft"
        assert ed.resolve_action(KEY_BACKSPACE) == "deleteCharBackward"
        assert ed.resolve_action(KEY_ENTER) == "submit"
        assert ed.resolve_action("a") is None
        assert ed.resolve_action("\t") is None

    def test_submit_callback(self) -> None:
        ed = editor_with("ls -la")
        submitted: list[str] = []
        ed.on_submit = submitted.append
        press(ed, KEY_ENTER)
        assert submitted == ["ls -la"]


class TestRender:
    def test_plain_line(self) -> None:
        ed = editor_with("git st")
        line = ed.render(40)
        assert line.text == "> git st"
        assert line.cursor_column == 8
        assert line.overlay_span == (8, 8)

    def test_postdisplay_is_dimmed_after_buffer(self) -> None:
        ed = editor_with("git st")
        line = ed.render(40, postdisplay="atus")
        assert line.text == f"> git st{DIM}atus{UNDIM}"
        assert line.overlay_span == (8, 12)
        assert line.cursor_column == 8

    def test_postdisplay_after_buffer_even_with_cursor_inside(self) -> None:
        ed = editor_with("git st", cursor=2)
        line = ed.render(40, postdisplay="atus")
        assert strip_ansi(line.text) == "> git status"
        assert line.cursor_column == 4

    def test_postdisplay_truncated_to_width(self) -> None:
        ed = editor_with("ls")
        line = ed.render(12, postdisplay="  → command ls -la")
        # 12 columns, one kept free for the cursor: "> ls" + 7 columns
        assert strip_ansi(line.text) == "> ls  → co…"
        assert line.overlay_span == (4, 11)

    def test_long_buffer_scrolls_to_keep_cursor_visible(self) -> None:
        ed = editor_with("x" * 100)
        line = ed.render(20)
        assert line.cursor_column <= 19
        assert len(strip_ansi(line.text)) <= 20
