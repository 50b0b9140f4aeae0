"""Spinner component: a braille indicator advanced once per poll tick."""

from __future__ import annotations


class Spinner:
    """Rotating progress indicator.

    The owner decides the cadence: every :meth:`advance` returns the
    current frame and moves to the next one.

    Example::

        spinner = Spinner()
        while pending:
            draw(spinner.advance())
    """

    frames = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]

    def __init__(self) -> None:
        self._current_frame = 0
        self._ticks = 0

    @property
    def frame(self) -> str:
        return self.frames[self._current_frame]

    @property
    def ticks(self) -> int:
        """Number of times the spinner advanced since the last reset."""
        return self._ticks

    def reset(self) -> None:
        self._current_frame = 0
        self._ticks = 0

    def advance(self) -> str:
        """Return the current frame, then step to the next one."""
        frame = self.frame
        self._current_frame = (self._current_frame + 1) % len(self.frames)
        self._ticks += 1
        return frame
