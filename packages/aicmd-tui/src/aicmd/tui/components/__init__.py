"""Components for the aicmd line editor."""

from aicmd.tui.components.line_editor import (
    DELETE_ACTIONS,
    MOTION_ACTIONS,
    LineEditor,
    RenderedLine,
)
from aicmd.tui.components.spinner import Spinner

__all__ = [
    "DELETE_ACTIONS",
    "MOTION_ACTIONS",
    "LineEditor",
    "RenderedLine",
    "Spinner",
]
