"""Run-wide abort signal for fatal errors.

Whichever thread hits a fatal error first trips the signal and records the
error; every other stage checks is_set() and unwinds by draining its input
instead of processing it. The pipeline re-raises the recorded error once all
threads have exited, so fatal errors surface in the calling thread rather
than killing the process from inside a worker.
"""

from __future__ import annotations

import threading


class AbortSignal:
    """First-error-wins abort flag shared by all pipeline threads."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._error: BaseException | None = None

    def trip(self, error: BaseException) -> bool:
        """Record a fatal error and set the flag.

        Returns:
            True if this call recorded the error, False if an earlier
            error had already tripped the signal.
        """
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def error(self) -> BaseException | None:
        """The first fatal error, or None if the run was not aborted."""
        with self._lock:
            return self._error
