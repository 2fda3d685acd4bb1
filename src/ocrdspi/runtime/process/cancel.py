"""Cooperative cancellation.

The engine never interrupts a caller. It asks a predicate at its
checkpoints and on every poll tick; a `CancellationToken` is the standard
predicate, but any zero-argument callable returning a bool works.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

CancelCheck = Callable[[], bool]


class CancellationToken:
    """Thread-safe, one-way cancellation flag.

    Example:
        >>> token = CancellationToken()
        >>> token(), token.cancel(), token()
        (False, None, True)
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_canceled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until canceled or timeout elapses. Returns the flag."""
        return self._event.wait(timeout)

    def __call__(self) -> bool:
        return self._event.is_set()


def any_of(*checks: CancelCheck | None) -> CancelCheck:
    """Predicate true as soon as one of checks is."""
    active = tuple(c for c in checks if c is not None)
    return lambda: any(c() for c in active)
