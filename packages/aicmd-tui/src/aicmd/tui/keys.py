"""Keyboard input parsing and matching for the line editor.

Decodes the legacy (xterm/VT) sequences a terminal sends in raw mode into
key identifiers such as ``"ctrl+z"``, ``"alt+b"`` or ``"right"``, and checks
raw input against a configured identifier with :func:`matches_key`.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    home = "home"
    end = "end"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Canonical modifier order used by normalize_key_id / parse_key
_MODIFIER_ORDER = ("ctrl", "alt", "shift")

# xterm modifier parameter (1 + bitmask shift=1, alt=2, ctrl=4)
_XTERM_MODIFIERS: dict[int, tuple[str, ...]] = {
    2: ("shift",),
    3: ("alt",),
    4: ("alt", "shift"),
    5: ("ctrl",),
    6: ("ctrl", "shift"),
    7: ("ctrl", "alt"),
    8: ("ctrl", "alt", "shift"),
}

LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[Z": "shift+tab",
}

_CSI_LETTER_KEYS = {"A": "up", "B": "down", "C": "right", "D": "left", "H": "home", "F": "end"}
_CSI_TILDE_KEYS = {"2": "insert", "3": "delete", "5": "pageUp", "6": "pageDown"}

_MODIFIED_LETTER_RE = re.compile(r"^\x1b\[1;(\d)([ABCDHF])$")
_MODIFIED_TILDE_RE = re.compile(r"^\x1b\[(\d+);(\d)~$")

# Control characters that are not ctrl+<letter>
_SPECIAL_CTRL_CHARS: dict[str, str] = {
    "\x00": "ctrl+space",
    "\x1c": "ctrl+\\",
    "\x1d": "ctrl+]",
    "\x1e": "ctrl+^",
    "\x1f": "ctrl+-",
}

_ALIASES: dict[str, str] = {
    "esc": "escape",
    "return": "enter",
    "del": "delete",
}


# ---------------------------------------------------------------------------
# Key id normalization
# ---------------------------------------------------------------------------


def _join(modifiers: tuple[str, ...] | list[str], key: str) -> str:
    ordered = [m for m in _MODIFIER_ORDER if m in modifiers]
    return "+".join([*ordered, key])


def normalize_key_id(key_id: KeyId) -> str | None:
    """Return the canonical form of *key_id* (``"Shift+Ctrl+X"`` -> ``"ctrl+shift+x"``).

    Returns ``None`` for an empty or modifier-only identifier.
    """
    if not key_id:
        return None
    if key_id == "+":
        return "+"

    parts = key_id.split("+")
    # "ctrl++" style ids keep a literal plus as the key
    if key_id.endswith("++"):
        parts = [*key_id[:-2].split("+"), "+"]

    modifiers: list[str] = []
    key_parts: list[str] = []
    for part in parts:
        lower = part.lower()
        if lower in _MODIFIER_ORDER:
            modifiers.append(lower)
        elif part:
            key_parts.append(part)

    if len(key_parts) != 1:
        return None

    key = key_parts[0]
    key = _ALIASES.get(key.lower(), key)
    if len(key) == 1:
        key = key.lower()
    return _join(modifiers, key)


# ---------------------------------------------------------------------------
# Parsing raw input
# ---------------------------------------------------------------------------


def parse_key(data: str) -> KeyId | None:  # noqa: C901
    """Decode one complete input sequence into a canonical key id.

    Returns ``None`` for input that is not a single key (e.g. pasted text).
    """
    if not data:
        return None

    if data == "\x1b":
        return "escape"
    if data in ("\r", "\n"):
        return "enter"
    if data == "\t":
        return "tab"
    if data in ("\x7f", "\x08"):
        return "backspace"
    if data == " ":
        return "space"

    legacy = LEGACY_KEY_SEQUENCES.get(data)
    if legacy is not None:
        return legacy

    match = _MODIFIED_LETTER_RE.match(data)
    if match:
        modifiers = _XTERM_MODIFIERS.get(int(match.group(1)))
        if modifiers is None:
            return None
        return _join(modifiers, _CSI_LETTER_KEYS[match.group(2)])

    match = _MODIFIED_TILDE_RE.match(data)
    if match:
        key = _CSI_TILDE_KEYS.get(match.group(1))
        modifiers = _XTERM_MODIFIERS.get(int(match.group(2)))
        if key is None or modifiers is None:
            return None
        return _join(modifiers, key)

    if len(data) == 1:
        if data in _SPECIAL_CTRL_CHARS:
            return _SPECIAL_CTRL_CHARS[data]
        code = ord(data)
        if 1 <= code <= 26:
            return f"ctrl+{chr(code + 96)}"
        if code < 32 or 0x80 <= code <= 0x9F:
            return None
        return data

    # Meta key: ESC followed by a single key
    if data.startswith("\x1b") and len(data) == 2:
        inner = parse_key(data[1:])
        if inner is None or inner.startswith("alt+"):
            return None
        parts = inner.split("+")
        return _join(["alt", *parts[:-1]], parts[-1])

    return None


def matches_key(data: str, key_id: KeyId) -> bool:
    """Return ``True`` if *data* (raw terminal input) is the key named *key_id*."""
    expected = normalize_key_id(key_id)
    if expected is None:
        return False
    parsed = parse_key(data)
    if parsed is None:
        return False
    if parsed == expected:
        return True
    # Uppercase letters arrive as plain characters, not shift+<letter>
    if expected.startswith("shift+") and len(expected) == 7:
        return data == expected[-1].upper()
    return False


def is_printable(data: str) -> bool:
    """Return ``True`` if *data* contains no control characters."""
    return bool(data) and not any(
        ord(ch) < 32 or ord(ch) == 0x7F or (0x80 <= ord(ch) <= 0x9F) for ch in data
    )
