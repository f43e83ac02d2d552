"""Cooperative cancellation signal for long renders.

The integrator reads a ``should_continue`` callable once before launching each
sample pass. ``ContinueFlag`` is a thread-safe implementation that a signal
handler or UI thread can flip while the render loop polls it; any zero-argument
callable returning a bool works just as well.

Example:
    >>> flag = ContinueFlag()
    >>> flag()
    True
    >>> flag.stop()
    >>> flag()
    False
"""

from __future__ import annotations

import threading
from collections.abc import Callable

# A callable polled by the renderer; True means keep issuing samples
ShouldContinue = Callable[[], bool]


class ContinueFlag:
    """A shared boolean meaning "keep rendering", cleared to stop early."""

    def __init__(self) -> None:
        self._stopped = threading.Event()

    def __call__(self) -> bool:
        return not self._stopped.is_set()

    def stop(self) -> None:
        """Request that no further samples be started."""
        self._stopped.set()

    def reset(self) -> None:
        """Allow rendering to continue again."""
        self._stopped.clear()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def __repr__(self) -> str:
        return f"ContinueFlag(stopped={self.stopped})"
