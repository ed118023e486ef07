"""Clock and cancellation primitives shared by the retry loop and the waiter."""

from __future__ import annotations

import threading
import time

from cluster_registration.errors import OperationCancelledError


class CancelToken:
    """Caller-owned abort signal; safe to trigger from another thread or a signal handler."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, name: str | None = None) -> None:
        if self._event.is_set():
            raise OperationCancelledError("operation cancelled", name=name)

    def wait(self, seconds: float) -> bool:
        """Block up to `seconds`; return True if cancelled meanwhile."""
        return self._event.wait(seconds)


class Clock:
    """Monotonic time source whose sleeps wake early on cancellation."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, cancel: CancelToken | None = None, name: str | None = None) -> None:
        if seconds <= 0:
            if cancel:
                cancel.raise_if_cancelled(name)
            return
        if cancel is None:
            time.sleep(seconds)
            return
        if cancel.wait(seconds):
            raise OperationCancelledError("operation cancelled", name=name)


SYSTEM_CLOCK = Clock()
