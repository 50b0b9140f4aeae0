"""Editor actions and the keys bound to them."""

from __future__ import annotations

from typing import Literal

from aicmd.tui.keys import KeyId, matches_key

EditorAction = Literal[
    # Motion
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteWordBackward",
    "deleteWordForward",
    "deleteToLineStart",
    "deleteToLineEnd",
    # Line
    "submit",
    "reset",
    "eof",
    # Suggestions
    "suggest",
    "accept",
    "cancel",
]

KeyBinding = KeyId | list[KeyId]
EditorKeybindingsConfig = dict[EditorAction, KeyBinding]

# Emacs-style defaults, as in readline/zle.
DEFAULT_EDITOR_KEYBINDINGS: dict[EditorAction, KeyBinding] = {
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorWordLeft": ["alt+left", "ctrl+left", "alt+b"],
    "cursorWordRight": ["alt+right", "ctrl+right", "alt+f"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    "deleteCharBackward": "backspace",
    "deleteCharForward": "delete",
    "deleteWordBackward": ["ctrl+w", "alt+backspace"],
    "deleteWordForward": ["alt+d", "alt+delete"],
    "deleteToLineStart": "ctrl+u",
    "deleteToLineEnd": "ctrl+k",
    "submit": "enter",
    "reset": "ctrl+c",
    "eof": "ctrl+d",
    "suggest": "ctrl+z",
    "accept": "tab",
    "cancel": ["escape", "ctrl+c"],
}


def _as_keys(binding: KeyBinding) -> list[KeyId]:
    return list(binding) if isinstance(binding, list) else [binding]


class EditorKeybindingsManager:
    """Resolves editor actions to keys; overrides replace an action's defaults."""

    def __init__(self, config: EditorKeybindingsConfig | None = None) -> None:
        self._bindings: dict[EditorAction, list[KeyId]] = {}
        self.set_config(config or {})

    def set_config(self, config: EditorKeybindingsConfig) -> None:
        """Rebuild the table from the defaults plus *config*."""
        merged = {**DEFAULT_EDITOR_KEYBINDINGS, **config}
        self._bindings = {action: _as_keys(binding) for action, binding in merged.items()}

    def get_keys(self, action: EditorAction) -> list[KeyId]:
        return self._bindings.get(action, [])

    def matches(self, data: str, action: EditorAction) -> bool:
        """True when the key sequence *data* is bound to *action*."""
        return any(matches_key(data, key) for key in self.get_keys(action))


_default_manager: EditorKeybindingsManager | None = None


def get_editor_keybindings() -> EditorKeybindingsManager:
    """The shared manager used by editors built without their own."""
    global _default_manager
    if _default_manager is None:
        _default_manager = EditorKeybindingsManager()
    return _default_manager


def set_editor_keybindings(manager: EditorKeybindingsManager) -> None:
    global _default_manager
    _default_manager = manager
