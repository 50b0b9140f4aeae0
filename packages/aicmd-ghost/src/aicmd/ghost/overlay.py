"""Ghost overlay: what decorative text to show after the buffer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_MARKER = "  → "


class OverlayMode(Enum):
    NONE = "none"
    COMPLETION = "completion"
    DIVERGENCE = "divergence"


@dataclass(frozen=True)
class Suggestion:
    """A backend answer, tagged with the buffer text it was requested for."""

    value: str
    snapshot: str


@dataclass(frozen=True)
class Overlay:
    mode: OverlayMode = OverlayMode.NONE
    text: str = ""
    marker: str = ""

    @property
    def display(self) -> str:
        """Exactly the text to render dim after the buffer."""
        return self.marker + self.text

    def __bool__(self) -> bool:
        return self.mode is not OverlayMode.NONE


EMPTY_OVERLAY = Overlay()


def compute_overlay(buffer: str, suggestion: Suggestion | None, marker: str = DEFAULT_MARKER) -> Overlay:
    """Decide how *suggestion* relates to the live *buffer*.

    A suggestion that extends the buffer shows only the missing suffix;
    one that no longer matches is shown whole after *marker*.
    """
    if suggestion is None or suggestion.value == buffer:
        return EMPTY_OVERLAY
    if suggestion.value.startswith(buffer):
        return Overlay(OverlayMode.COMPLETION, suggestion.value[len(buffer) :])
    return Overlay(OverlayMode.DIVERGENCE, suggestion.value, marker)


def keeps_suggestion(buffer: str, suggestion: Suggestion | None) -> bool:
    """True while typing or deleting leaves the buffer a prefix of the suggestion."""
    return suggestion is not None and suggestion.value.startswith(buffer)
