"""Suggestion sessions: issue, poll, cancel and settle one backend request.

The editor never blocks on a request. Each request runs as its own
asyncio task and is observed once per poll tick, together with a
cancellation event, so a cancel keypress is honored within one tick.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from aicmd.ai.types import Backend, EmptyResult, GatewayError, PromptContext, UserCancelled
from aicmd.ghost.overlay import Suggestion

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.08
DEFAULT_CANCEL_GRACE = 0.2


class SessionStatus(Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(eq=False)
class SuggestionSession:
    """One request: its snapshot, its task, and eventually its outcome."""

    snapshot: str
    backend: str
    status: SessionStatus = SessionStatus.IDLE
    task: asyncio.Task[str] | None = None
    started_at: float = field(default_factory=time.monotonic)
    suggestion: Suggestion | None = None
    error: BaseException | None = None
    message: str | None = None

    @property
    def pending(self) -> bool:
        return self.status is SessionStatus.PENDING

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


def _drain(task: asyncio.Task[str]) -> None:
    # Retrieve the outcome of an abandoned task so asyncio never warns about it.
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("discarding error from superseded request: %r", exc)
    else:
        logger.debug("discarding result from superseded request: %r", task.result())


class SessionManager:
    """Owns at most one pending :class:`SuggestionSession` for one editor."""

    def __init__(
        self,
        backend: Backend,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        cancel_grace: float = DEFAULT_CANCEL_GRACE,
        context_factory: Callable[[], PromptContext] = PromptContext.current,
    ) -> None:
        self.backend = backend
        self.poll_interval = poll_interval
        self.cancel_grace = cancel_grace
        self.context_factory = context_factory
        self.on_tick: Callable[[SuggestionSession], None] | None = None
        self._current: SuggestionSession | None = None
        self._cancel_requested = asyncio.Event()

    @property
    def current(self) -> SuggestionSession | None:
        return self._current

    @property
    def pending(self) -> bool:
        return self._current is not None and self._current.pending

    # -- lifecycle ------------------------------------------------------------

    def start(self, snapshot: str) -> SuggestionSession:
        """Issue a request for *snapshot*, superseding any pending one."""
        if not snapshot:
            raise ValueError("cannot start a session for an empty buffer")
        self.abandon()

        session = SuggestionSession(snapshot=snapshot, backend=self.backend.name)
        context = self.context_factory()
        session.task = asyncio.get_running_loop().create_task(self.backend.invoke(context, snapshot))
        session.status = SessionStatus.PENDING
        self._cancel_requested.clear()
        self._current = session
        logger.debug("session started for %r via %s", snapshot, session.backend)
        return session

    def request_cancel(self) -> None:
        """Ask the poll loop to cancel the pending session at its next tick."""
        if self.pending:
            self._cancel_requested.set()

    def abandon(self) -> None:
        """Drop the current session; a pending task is cancelled and detached."""
        session = self._current
        self._current = None
        self._cancel_requested.clear()
        if session is None or not session.pending:
            return
        assert session.task is not None
        session.task.cancel()
        session.task.add_done_callback(_drain)
        session.status = SessionStatus.CANCELLED
        session.error = UserCancelled("superseded")
        logger.debug("session for %r abandoned", session.snapshot)

    def clear(self) -> None:
        """Forget a settled session."""
        if not self.pending:
            self._current = None

    # -- polling --------------------------------------------------------------

    async def wait(self, session: SuggestionSession | None = None) -> SuggestionSession:
        """Drive the poll loop until *session* is no longer pending.

        ``on_tick`` runs once before every wait so the caller can animate a
        progress indicator.
        """
        session = session or self._current
        if session is None:
            raise RuntimeError("no session to wait for")
        assert session.task is not None

        cancel_waiter = asyncio.ensure_future(self._cancel_requested.wait())
        try:
            while session.pending:
                if self.on_tick is not None:
                    self.on_tick(session)
                await asyncio.wait(
                    {session.task, cancel_waiter},
                    timeout=self.poll_interval,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if session is not self._current:
                    break
                if self._cancel_requested.is_set():
                    await self._cancel(session)
                elif session.task.done():
                    self._settle(session)
        finally:
            cancel_waiter.cancel()
        return session

    async def _cancel(self, session: SuggestionSession) -> None:
        assert session.task is not None
        task = session.task
        self._cancel_requested.clear()
        task.cancel()
        # One loop pass lets a cooperative request unwind; control returns
        # to the editor in this tick and a slower one finishes detached.
        await asyncio.sleep(0)
        if not task.done():
            asyncio.get_running_loop().call_later(self.cancel_grace, self._recancel, session)
        task.add_done_callback(_drain)
        session.status = SessionStatus.CANCELLED
        session.error = UserCancelled("cancelled")

    def _recancel(self, session: SuggestionSession) -> None:
        # A request that swallowed the first cancel gets one more after the grace period.
        if session.task is not None and not session.task.done():
            logger.debug("request for %r still running %.2fs after cancel", session.snapshot, self.cancel_grace)
            session.task.cancel()

    def _settle(self, session: SuggestionSession) -> None:
        assert session.task is not None
        task = session.task

        if task.cancelled():
            session.status = SessionStatus.CANCELLED
            session.error = UserCancelled("cancelled")
            return

        exc = task.exception()
        if isinstance(exc, UserCancelled):
            session.status = SessionStatus.CANCELLED
            session.error = exc
        elif isinstance(exc, GatewayError):
            logger.debug("%s from %s", exc.kind, session.backend)
            self._fail(session, exc, f"aicmd: {exc.message}")
        elif exc is not None:
            logger.error("unexpected error from %s", session.backend, exc_info=exc)
            self._fail(session, exc, f"aicmd: unexpected error: {exc}")
        else:
            value = (task.result() or "").strip()
            if not value:
                self._fail(session, EmptyResult("empty suggestion"), "aicmd: empty suggestion")
            else:
                session.suggestion = Suggestion(value=value, snapshot=session.snapshot)
                session.status = SessionStatus.COMPLETED
                logger.debug("session for %r completed in %.2fs", session.snapshot, session.elapsed)

    @staticmethod
    def _fail(session: SuggestionSession, error: BaseException, message: str) -> None:
        session.status = SessionStatus.FAILED
        session.error = error
        session.message = message
        logger.debug("session for %r failed: %s", session.snapshot, message)
