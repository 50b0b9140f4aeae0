"""Terminal text utilities: ANSI stripping, width measurement, truncation.

Widths are measured per grapheme cluster so that combining marks and
emoji sequences occupy the same number of columns the terminal gives them.
"""

from __future__ import annotations

import re

import grapheme
import wcwidth as _wcwidth


# ---------------------------------------------------------------------------
# Grapheme segmenter
# ---------------------------------------------------------------------------


class _GraphemeSegmenter:
    """Thin wrapper around ``grapheme.graphemes``."""

    @staticmethod
    def segment(text: str) -> list[str]:
        return list(grapheme.graphemes(text))


def get_segmenter() -> _GraphemeSegmenter:
    """Return a grapheme segmenter instance."""
    return _GraphemeSegmenter()


# ---------------------------------------------------------------------------
# ANSI handling
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?]*[A-Za-z]"       # CSI
    r"|\x1b\]8;;[^\x07]*\x07"       # OSC 8
)

_PUNCTUATION_REGEX = re.compile(r"[(){}\[\]<>.,;:'\"!?\+\-=*/\\|&%\^$#@~`]")

DIM = "\x1b[2m"
UNDIM = "\x1b[22m"
REVERSE = "\x1b[7m"
UNREVERSE = "\x1b[27m"


def strip_ansi(text: str) -> str:
    """Remove CSI and OSC 8 escape sequences from *text*."""
    return _STRIP_RE.sub("", text)


def dim(text: str) -> str:
    """Wrap *text* in SGR dim/normal-intensity codes. Empty text stays empty."""
    if not text:
        return ""
    return f"{DIM}{text}{UNDIM}"


# ---------------------------------------------------------------------------
# Width measurement
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    # Multi-codepoint clusters: VS16, ZWJ, skin tones and flags are emoji
    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    if ord(g[0]) >= 0x1F000:
        return 2
    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    ANSI escape sequences are ignored and tabs count as 3 columns.
    """
    if not text:
        return 0

    stripped = strip_ansi(text).replace("\t", "   ")
    if not stripped:
        return 0

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = total
    return total


def truncate_to_width(text: str, max_width: int, ellipsis: str = "...") -> str:
    """Truncate plain *text* to fit within *max_width* columns.

    The ellipsis counts towards the width. ANSI codes are not preserved, so
    callers style the result after truncating.
    """
    if max_width <= 0:
        return ""

    plain = strip_ansi(text)
    if visible_width(plain) <= max_width:
        return plain

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return ellipsis[:max_width]

    result = ""
    used = 0
    for g in grapheme.graphemes(plain):
        w = _grapheme_width(g)
        if used + w > target:
            break
        result += g
        used += w
    return result + ellipsis


# ---------------------------------------------------------------------------
# Character classes
# ---------------------------------------------------------------------------


def is_whitespace_char(char: str) -> bool:
    """Return ``True`` if *char* is a whitespace character."""
    return char in (" ", "\t", "\n", "\r", "\f", "\v")


def is_punctuation_char(char: str) -> bool:
    """Return ``True`` if *char* is a punctuation character."""
    return bool(_PUNCTUATION_REGEX.match(char))
