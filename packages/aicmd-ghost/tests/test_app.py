"""Tests for the interactive app, driven through a virtual terminal."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
from virtual_terminal import VirtualTerminal

from aicmd.ai.types import PromptContext
from aicmd.ghost.app import GhostApp
from aicmd.ghost.settings import SettingsManager
from aicmd.tui.components.spinner import Spinner
from aicmd.tui.utils import DIM, UNDIM

CTRL_Z = "\x1a"
CTRL_D = "\x04"
TAB = "\t"
ENTER = "\r"


class FakeBackend:
    name = "fake"

    def __init__(self, value: str = "git status", delay: float = 0.0) -> None:
        self.value = value
        self.delay = delay

    async def invoke(self, context: PromptContext, text: str) -> str:
        await asyncio.sleep(self.delay)
        return self.value


class NoCompletion:
    def complete(self, value: str, cursor: int):
        return None


def make_app(backend: FakeBackend, columns: int = 60, **settings) -> tuple[GhostApp, VirtualTerminal]:
    terminal = VirtualTerminal(columns=columns)
    manager = SettingsManager.in_memory({"pollInterval": 0.01, **settings})
    app = GhostApp(backend, manager, terminal=terminal, completer=NoCompletion())
    app.sessions.context_factory = lambda: PromptContext(os_name="Linux", shell="zsh", cwd="/")
    return app, terminal


async def start_reading(app: GhostApp, **kwargs) -> asyncio.Task:
    task = asyncio.create_task(app.read_line(**kwargs))
    await asyncio.sleep(0)
    return task


class TestReadLine:
    @pytest.mark.asyncio
    async def test_suggest_accept_submit(self) -> None:
        app, terminal = make_app(FakeBackend("git status"))
        task = await start_reading(app)
        assert terminal.started

        terminal.feed("git st")
        terminal.feed(CTRL_Z)
        await app.ghost.settled()
        assert f"\r> git st{DIM}atus{UNDIM}\x1b[K" in terminal.get_output()

        terminal.feed(TAB)
        terminal.feed(ENTER)
        assert await task == "git status"
        assert not terminal.started
        assert terminal.get_output().endswith("\r> git status\x1b[K\r\n")

    @pytest.mark.asyncio
    async def test_eof_returns_none(self) -> None:
        app, terminal = make_app(FakeBackend())
        task = await start_reading(app)
        terminal.feed(CTRL_D)
        assert await task is None

    @pytest.mark.asyncio
    async def test_initial_text_with_immediate_suggestion(self) -> None:
        app, terminal = make_app(FakeBackend("command ls -la"))
        task = await start_reading(app, initial="list fi", keep_line=False, suggest=True)
        await app.ghost.settled()
        assert "list fi" in terminal.get_output()
        assert f"{DIM}  → command ls -la{UNDIM}" in terminal.get_output()

        terminal.feed(ENTER)
        assert await task == "list fi"
        # the row is erased instead of kept
        assert terminal.get_output().endswith("\r\x1b[K")

    @pytest.mark.asyncio
    async def test_custom_divergence_marker(self) -> None:
        app, terminal = make_app(FakeBackend("command ls -la"), divergenceMarker=" ~ ")
        task = await start_reading(app, initial="list fi", suggest=True)
        await app.ghost.settled()
        assert f"{DIM} ~ command ls -la{UNDIM}" in terminal.get_output()
        terminal.feed(ENTER)
        await task

    @pytest.mark.asyncio
    async def test_spinner_while_pending(self) -> None:
        app, terminal = make_app(FakeBackend("git status", delay=0.05))
        task = await start_reading(app, initial="git st", suggest=True)
        await app.ghost.settled()
        output = terminal.get_output()
        assert f"{DIM} {Spinner.frames[0]}{UNDIM}" in output
        assert f"{DIM} {Spinner.frames[1]}{UNDIM}" in output
        terminal.feed(ENTER)
        await task

    @pytest.mark.asyncio
    async def test_failure_shows_status_row(self) -> None:
        app, terminal = make_app(FakeBackend(""))
        task = await start_reading(app, initial="list fi", suggest=True)
        await app.ghost.settled()
        assert "\r\naicmd: empty suggestion\x1b[K\x1b[1A" in terminal.get_output()

        # the next key clears the row again
        terminal.clear_output()
        terminal.feed("l")
        assert "\r\n\x1b[K\x1b[1A" in terminal.get_output()
        terminal.feed(ENTER)
        assert await task == "list fil"

    @pytest.mark.asyncio
    async def test_bell_on_failed_tab(self) -> None:
        app, terminal = make_app(FakeBackend())
        task = await start_reading(app)
        terminal.feed("zzz")
        terminal.feed(TAB)
        assert terminal.bells == 1
        terminal.feed(ENTER)
        await task

    @pytest.mark.asyncio
    async def test_pending_request_abandoned_on_exit(self) -> None:
        app, terminal = make_app(FakeBackend(delay=10))
        task = await start_reading(app, initial="git st", suggest=True)
        assert app.sessions.pending
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not app.sessions.pending
        assert not terminal.started


class TestRepl:
    @pytest.mark.asyncio
    async def test_runs_lines_until_exit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELL", "/bin/sh")
        app, _ = make_app(FakeBackend())
        app.read_line = AsyncMock(side_effect=["true", "   ", "false", "exit"])
        assert await app.repl() == 1
        assert app.read_line.await_count == 4

    @pytest.mark.asyncio
    async def test_eof_ends_repl(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELL", "/bin/sh")
        app, _ = make_app(FakeBackend())
        app.read_line = AsyncMock(side_effect=["true", None])
        assert await app.repl() == 0
