"""aicmd-ghost: AI ghost-text suggestions for a single-line shell editor."""

from aicmd.ghost.completion import CompletionResult, FilenameCompleter
from aicmd.ghost.log import DebugLog, configure_logging
from aicmd.ghost.overlay import Overlay, OverlayMode, Suggestion, compute_overlay
from aicmd.ghost.router import GhostEditor
from aicmd.ghost.session import SessionManager, SessionStatus, SuggestionSession
from aicmd.ghost.settings import SettingsManager

__all__ = [
    "CompletionResult",
    "DebugLog",
    "FilenameCompleter",
    "GhostEditor",
    "Overlay",
    "OverlayMode",
    "SessionManager",
    "SessionStatus",
    "SettingsManager",
    "Suggestion",
    "SuggestionSession",
    "compute_overlay",
    "configure_logging",
]
