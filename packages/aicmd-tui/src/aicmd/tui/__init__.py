"""aicmd-tui: raw-mode terminal primitives and a single-line editor."""

# Components
from aicmd.tui.components import (
    DELETE_ACTIONS,
    MOTION_ACTIONS,
    LineEditor,
    RenderedLine,
    Spinner,
)

# Keybindings
from aicmd.tui.keybindings import (
    DEFAULT_EDITOR_KEYBINDINGS,
    EditorAction,
    EditorKeybindingsConfig,
    EditorKeybindingsManager,
    get_editor_keybindings,
    set_editor_keybindings,
)

# Keyboard input handling
from aicmd.tui.keys import Key, KeyId, is_printable, matches_key, normalize_key_id, parse_key

# Input buffering
from aicmd.tui.stdin_buffer import StdinBuffer, extract_sequences

# Terminal interface and implementation
from aicmd.tui.terminal import ProcessTerminal, Terminal

# Utilities
from aicmd.tui.utils import dim, strip_ansi, truncate_to_width, visible_width

__all__ = [
    # Components
    "DELETE_ACTIONS",
    "MOTION_ACTIONS",
    "LineEditor",
    "RenderedLine",
    "Spinner",
    # Keybindings
    "DEFAULT_EDITOR_KEYBINDINGS",
    "EditorAction",
    "EditorKeybindingsConfig",
    "EditorKeybindingsManager",
    "get_editor_keybindings",
    "set_editor_keybindings",
    # Keys
    "Key",
    "KeyId",
    "is_printable",
    "matches_key",
    "normalize_key_id",
    "parse_key",
    # Stdin buffer
    "StdinBuffer",
    "extract_sequences",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Utilities
    "dim",
    "strip_ansi",
    "truncate_to_width",
    "visible_width",
]
