"""GhostEditor: routes line-editor input through the suggestion overlay.

Every editing primitive is wrapped: edits keep the suggestion only while
the buffer is still a prefix of it, cursor motion drops it, Tab accepts
it, and the trigger key starts a new request. While a request is pending
only the cancel keys are honored.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from aicmd.ai.types import AuthMissing
from aicmd.tui.components.line_editor import DELETE_ACTIONS, MOTION_ACTIONS, LineEditor
from aicmd.tui.keybindings import EditorAction, EditorKeybindingsManager
from aicmd.tui.keys import is_printable
from aicmd.ghost.completion import Completer, FilenameCompleter
from aicmd.ghost.overlay import DEFAULT_MARKER, Overlay, Suggestion, compute_overlay, keeps_suggestion
from aicmd.ghost.session import SessionManager, SessionStatus, SuggestionSession

logger = logging.getLogger(__name__)


class GhostEditor:
    """Owns the suggestion state of one :class:`LineEditor`."""

    def __init__(
        self,
        editor: LineEditor,
        sessions: SessionManager,
        *,
        authorize: Callable[[], object] | None = None,
        completer: Completer | None = None,
        marker: str = DEFAULT_MARKER,
    ) -> None:
        self.editor = editor
        self.sessions = sessions
        self.completer: Completer = completer or FilenameCompleter()
        self.marker = marker
        self._authorize = authorize

        self.suggestion: Suggestion | None = None
        self.status: str | None = None
        self._follower: asyncio.Task[None] | None = None

        self.on_change: Callable[[], None] | None = None
        self.on_eof: Callable[[], None] | None = None
        self.on_bell: Callable[[], None] | None = None

    @property
    def keybindings(self) -> EditorKeybindingsManager:
        return self.editor.keybindings

    @property
    def overlay(self) -> Overlay:
        return compute_overlay(self.editor.get_value(), self.suggestion, self.marker)

    @property
    def pending(self) -> bool:
        return self.sessions.pending

    # -- input ----------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        kb = self.keybindings

        if self.pending:
            if kb.matches(data, "cancel"):
                self.sessions.request_cancel()
            return

        self.status = None

        pasted = self.editor.extract_paste(data)
        if pasted is not None:
            if pasted:
                self.insert(pasted)
            self._changed()
            return

        if kb.matches(data, "suggest"):
            self.trigger()
        elif kb.matches(data, "accept"):
            self.accept()
        elif kb.matches(data, "eof"):
            if self.editor.get_value():
                self.delete("deleteCharForward")
            else:
                self.clear_suggestion()
                if self.on_eof:
                    self.on_eof()
        elif kb.matches(data, "reset"):
            self.reset()
        else:
            action = self.editor.resolve_action(data)
            if action == "submit":
                self.submit()
            elif action in DELETE_ACTIONS:
                self.delete(action)
            elif action in MOTION_ACTIONS:
                self.move(action)
            elif is_printable(data):
                self.insert(data)

        self._changed()

    # -- wrapped primitives ---------------------------------------------------

    def insert(self, text: str) -> None:
        self.editor.insert_text(text)
        self._reevaluate()

    def delete(self, action: EditorAction) -> None:
        self.editor.perform(action)
        self._reevaluate()

    def move(self, action: EditorAction) -> None:
        self.clear_suggestion()
        self.editor.perform(action)

    def accept(self) -> None:
        """Take the suggestion, or fall back to filename completion."""
        if self.suggestion is not None:
            value = self.suggestion.value
            self.clear_suggestion()
            self.editor.set_value(value)
            return

        result = self.completer.complete(self.editor.get_value(), self.editor.cursor)
        if result is None:
            self._bell()
        else:
            self.editor.set_value(result.value, result.cursor)

    def submit(self) -> None:
        self._discard()
        self.editor.submit()

    def reset(self) -> None:
        self._discard()
        self.editor.set_value("")

    def clear_suggestion(self) -> None:
        self.suggestion = None

    def _reevaluate(self) -> None:
        if not keeps_suggestion(self.editor.get_value(), self.suggestion):
            self.suggestion = None

    def _discard(self) -> None:
        self.clear_suggestion()
        self.sessions.abandon()

    # -- suggestions ----------------------------------------------------------

    def trigger(self) -> SuggestionSession | None:
        """Request a suggestion for the whole buffer.

        Returns the new session, or ``None`` when the buffer is blank or
        no credential is available.
        """
        buffer = self.editor.get_value()
        if not buffer.strip():
            return None

        if self._authorize is not None:
            try:
                self._authorize()
            except AuthMissing as e:
                self.status = e.message
                return None

        self.clear_suggestion()
        session = self.sessions.start(buffer)
        self._follower = asyncio.get_running_loop().create_task(self._follow(session))
        return session

    async def _follow(self, session: SuggestionSession) -> None:
        await self.sessions.wait(session)
        if session is not self.sessions.current:
            logger.debug("ignoring superseded session for %r", session.snapshot)
            return

        if session.status is SessionStatus.COMPLETED:
            self.suggestion = session.suggestion
        elif session.status is SessionStatus.FAILED:
            self.status = session.message
        self.sessions.clear()
        self._changed()

    async def settled(self) -> None:
        """Wait for the session started by the last trigger to be applied."""
        if self._follower is not None:
            await self._follower

    # -- notifications --------------------------------------------------------

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()

    def _bell(self) -> None:
        if self.on_bell:
            self.on_bell()
