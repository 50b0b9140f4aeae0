"""Tests for suggestion sessions: settle, cancel, supersede."""

from __future__ import annotations

import asyncio
import time

import pytest

from aicmd.ai.types import PromptContext, ProviderError, UserCancelled
from aicmd.ghost.overlay import Suggestion
from aicmd.ghost.session import SessionManager, SessionStatus

CONTEXT = PromptContext(os_name="Linux", shell="zsh", cwd="/tmp")
POLL = 0.01


class FakeBackend:
    """Answers after *delay* with *value*, or raises *error*."""

    name = "fake"

    def __init__(self, value: str | None = "git status", delay: float = 0.0, error: BaseException | None = None):
        self.value = value
        self.delay = delay
        self.error = error
        self.calls: list[tuple[PromptContext, str]] = []
        self.cancelled = False

    async def invoke(self, context: PromptContext, text: str) -> str:
        self.calls.append((context, text))
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class StubbornBackend:
    """Keeps running for a while after being cancelled."""

    name = "stubborn"

    async def invoke(self, context: PromptContext, text: str) -> str:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            await asyncio.sleep(0.3)
        return "late answer"


def manager(backend, **kwargs) -> SessionManager:
    kwargs.setdefault("poll_interval", POLL)
    return SessionManager(backend, context_factory=lambda: CONTEXT, **kwargs)


class TestSettle:
    @pytest.mark.asyncio
    async def test_success(self):
        backend = FakeBackend("  git status \n")
        sm = manager(backend)
        session = sm.start("git st")
        assert sm.pending
        assert session.status is SessionStatus.PENDING

        await sm.wait()
        assert session.status is SessionStatus.COMPLETED
        assert session.suggestion == Suggestion(value="git status", snapshot="git st")
        assert backend.calls == [(CONTEXT, "git st")]
        assert not sm.pending

    @pytest.mark.asyncio
    async def test_empty_result_fails(self):
        sm = manager(FakeBackend("   "))
        session = sm.start("list fi")
        await sm.wait()
        assert session.status is SessionStatus.FAILED
        assert session.message == "aicmd: empty suggestion"
        assert session.suggestion is None

    @pytest.mark.asyncio
    async def test_gateway_error(self):
        sm = manager(FakeBackend(error=ProviderError("rate limited")))
        session = sm.start("x")
        await sm.wait()
        assert session.status is SessionStatus.FAILED
        assert session.message == "aicmd: rate limited"
        assert isinstance(session.error, ProviderError)

    @pytest.mark.asyncio
    async def test_unexpected_error(self):
        sm = manager(FakeBackend(error=RuntimeError("boom")))
        session = sm.start("x")
        await sm.wait()
        assert session.status is SessionStatus.FAILED
        assert session.message == "aicmd: unexpected error: boom"

    @pytest.mark.asyncio
    async def test_backend_reported_cancel(self):
        sm = manager(FakeBackend(error=UserCancelled("interrupted")))
        session = sm.start("x")
        await sm.wait()
        assert session.status is SessionStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_on_tick_runs_while_pending(self):
        ticks = []
        sm = manager(FakeBackend(delay=0.05))
        sm.on_tick = ticks.append
        session = sm.start("x")
        await sm.wait()
        assert len(ticks) >= 2
        assert all(t is session for t in ticks)


class TestStart:
    @pytest.mark.asyncio
    async def test_empty_snapshot_rejected(self):
        backend = FakeBackend()
        sm = manager(backend)
        with pytest.raises(ValueError):
            sm.start("")
        assert backend.calls == []
        assert sm.current is None

    @pytest.mark.asyncio
    async def test_wait_without_session(self):
        with pytest.raises(RuntimeError):
            await manager(FakeBackend()).wait()

    @pytest.mark.asyncio
    async def test_new_start_supersedes_pending(self):
        backend = FakeBackend(delay=10)
        sm = manager(backend)
        first = sm.start("git st")
        second = sm.start("git sta")

        assert first.status is SessionStatus.CANCELLED
        assert isinstance(first.error, UserCancelled)
        assert sm.current is second
        assert second.pending

        await asyncio.sleep(0)
        assert first.task is not None and first.task.cancelled()
        sm.abandon()

    @pytest.mark.asyncio
    async def test_superseded_wait_returns_without_result(self):
        sm = manager(FakeBackend(delay=10))
        first = sm.start("a")
        waiter = asyncio.create_task(sm.wait(first))
        await asyncio.sleep(POLL * 3)

        sm.abandon()
        returned = await asyncio.wait_for(waiter, timeout=1)
        assert returned is first
        assert first.status is SessionStatus.CANCELLED
        assert first.suggestion is None
        assert sm.current is None

    @pytest.mark.asyncio
    async def test_clear_keeps_pending_session(self):
        sm = manager(FakeBackend(delay=10))
        session = sm.start("a")
        sm.clear()
        assert sm.current is session
        sm.abandon()
        assert sm.current is None


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_within_one_tick(self):
        backend = FakeBackend(delay=10)
        sm = SessionManager(backend, context_factory=lambda: CONTEXT)
        session = sm.start("find big files")
        requested: list[float] = []

        def cancel() -> None:
            requested.append(time.monotonic())
            sm.request_cancel()

        asyncio.get_running_loop().call_later(0.02, cancel)
        await sm.wait()
        elapsed = time.monotonic() - requested[0]

        assert session.status is SessionStatus.CANCELLED
        assert session.suggestion is None
        assert backend.cancelled
        assert elapsed < sm.poll_interval

    @pytest.mark.asyncio
    async def test_slow_to_stop_backend_does_not_hold_the_editor(self):
        """Control returns in one tick; a request still unwinding is cancelled again after the grace period."""
        sm = SessionManager(StubbornBackend(), context_factory=lambda: CONTEXT)
        session = sm.start("x")
        requested: list[float] = []

        def cancel() -> None:
            requested.append(time.monotonic())
            sm.request_cancel()

        asyncio.get_running_loop().call_later(0.02, cancel)
        await sm.wait()

        assert time.monotonic() - requested[0] < sm.poll_interval
        assert sm.cancel_grace > sm.poll_interval
        assert session.status is SessionStatus.CANCELLED
        assert not session.task.done()

        await asyncio.sleep(sm.cancel_grace + 0.05)
        assert session.task.done()
        assert session.suggestion is None

    @pytest.mark.asyncio
    async def test_unresponsive_backend_is_detached_after_grace(self):
        sm = manager(StubbornBackend(), cancel_grace=0.05)
        session = sm.start("x")
        asyncio.get_running_loop().call_later(0.02, sm.request_cancel)

        start = time.monotonic()
        await sm.wait()
        assert time.monotonic() - start < 0.25
        assert session.status is SessionStatus.CANCELLED

        # the late answer is drained, never applied
        await asyncio.sleep(0.4)
        assert session.task is not None and session.task.done()
        assert session.suggestion is None
        assert session.status is SessionStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_request_cancel_when_idle_is_ignored(self):
        sm = manager(FakeBackend())
        sm.request_cancel()
        session = sm.start("x")
        await sm.wait()
        assert session.status is SessionStatus.COMPLETED
