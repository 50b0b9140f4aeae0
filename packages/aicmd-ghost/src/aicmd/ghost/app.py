"""Interactive app: a raw-mode terminal, one editable row, ghost suggestions."""

from __future__ import annotations

import asyncio
import logging
import os

from aicmd.ai.types import Backend
from aicmd.tui.components.line_editor import LineEditor, RenderedLine
from aicmd.tui.components.spinner import Spinner
from aicmd.tui.keybindings import EditorKeybindingsManager
from aicmd.tui.terminal import ProcessTerminal, Terminal
from aicmd.tui.utils import dim, truncate_to_width
from aicmd.ghost.completion import Completer
from aicmd.ghost.router import GhostEditor
from aicmd.ghost.session import SessionManager, SuggestionSession
from aicmd.ghost.settings import SettingsManager

logger = logging.getLogger(__name__)


class LineRenderer:
    """Redraws the editor row and the transient status row beneath it.

    Every draw rewrites the whole row and clears to end of line, so no
    stale dim range survives an overlay change.
    """

    def __init__(self, terminal: Terminal, ghost: GhostEditor) -> None:
        self.terminal = terminal
        self.ghost = ghost
        self.spinner = Spinner()
        self._status_shown = False

    def layout(self, spinner_frame: str | None = None) -> RenderedLine:
        postdisplay = f" {spinner_frame}" if spinner_frame else self.ghost.overlay.display
        return self.ghost.editor.render(self.terminal.columns, postdisplay=postdisplay, style=dim)

    def draw(self, spinner_frame: str | None = None) -> None:
        line = self.layout(spinner_frame)
        self.terminal.hide_cursor()
        self.terminal.write("\r" + line.text)
        self.terminal.clear_to_eol()
        self._draw_status(self.ghost.status)
        self.terminal.move_to_column(line.cursor_column)
        self.terminal.show_cursor()

    def tick(self, session: SuggestionSession) -> None:
        """Poll-tick callback: redraw with the next spinner frame."""
        if self.spinner.ticks == 0:
            logger.debug("waiting on %s", session.backend)
        self.draw(self.spinner.advance())

    def idle(self) -> None:
        self.spinner.reset()
        self.draw()

    def finish(self, keep_line: bool = True) -> None:
        """Leave the row in its final state: plain text, or erased."""
        self._draw_status(None)
        if keep_line:
            self.terminal.write("\r" + self.ghost.editor.render(self.terminal.columns).text)
            self.terminal.clear_to_eol()
            self.terminal.write("\r\n")
        else:
            self.terminal.write("\r")
            self.terminal.clear_to_eol()

    def _draw_status(self, status: str | None) -> None:
        if not status and not self._status_shown:
            return
        self.terminal.write("\r\n")
        if status:
            self.terminal.write(truncate_to_width(status, max(1, self.terminal.columns - 1)))
        self.terminal.clear_to_eol()
        self.terminal.move_by(-1)
        self._status_shown = bool(status)


class GhostApp:
    """Reads lines from the terminal with AI ghost suggestions."""

    def __init__(
        self,
        backend: Backend,
        settings: SettingsManager,
        *,
        terminal: Terminal | None = None,
        prompt: str = "> ",
        completer: Completer | None = None,
    ) -> None:
        self.terminal: Terminal = terminal or ProcessTerminal()
        keybindings = EditorKeybindingsManager(settings.get_keybindings())
        self.editor = LineEditor(prompt=prompt, keybindings=keybindings)
        self.sessions = SessionManager(
            backend,
            poll_interval=settings.get_poll_interval(),
            cancel_grace=settings.get_cancel_grace(),
        )
        self.ghost = GhostEditor(
            self.editor,
            self.sessions,
            authorize=getattr(backend, "authorize", None),
            completer=completer,
            marker=settings.get_divergence_marker(),
        )
        self.renderer = LineRenderer(self.terminal, self.ghost)

        self.ghost.on_change = self._on_change
        self.ghost.on_bell = self.terminal.bell
        self.sessions.on_tick = self.renderer.tick

    def _on_change(self) -> None:
        if self.ghost.pending:
            return
        self.renderer.idle()

    async def read_line(self, initial: str = "", keep_line: bool = True, suggest: bool = False) -> str | None:
        """Edit one line; returns the submitted text or ``None`` on EOF.

        With *suggest* a request for *initial* starts as soon as the
        editor is up, as if the trigger key had been pressed.
        """
        loop = asyncio.get_running_loop()
        done: asyncio.Future[str | None] = loop.create_future()

        def _resolve(value: str | None) -> None:
            if not done.done():
                done.set_result(value)

        self.editor.set_value(initial)
        self.editor.on_submit = _resolve
        self.ghost.on_eof = lambda: _resolve(None)

        self.terminal.start(self.ghost.handle_input)
        try:
            self.renderer.idle()
            if suggest:
                self.ghost.trigger()
                self._on_change()
            return await done
        finally:
            self.sessions.abandon()
            self.ghost.clear_suggestion()
            self.ghost.status = None
            self.renderer.finish(keep_line=keep_line)
            self.terminal.stop()

    async def repl(self) -> int:
        """Read and run lines with ``$SHELL -c`` until EOF or ``exit``."""
        shell = os.environ.get("SHELL") or "/bin/sh"
        status = 0
        while True:
            line = await self.read_line()
            if line is None or line.strip() == "exit":
                return status
            if not line.strip():
                continue
            logger.debug("running %r with %s", line, shell)
            process = await asyncio.create_subprocess_exec(shell, "-c", line)
            status = await process.wait()
