"""Progress reporting for long-running processor invocations.

`ProgressTracker` holds the fraction of work done for one invocation. It only
moves forward and never passes 1.0, whatever the tool declares as step weights.
Every accepted change is emitted as a `ProcessorProgress` event.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ProgressKind(StrEnum):
    """Types of progress events a processor emits."""
    STATUS = "status"           # Progress set to an absolute value
    STEP = "step"               # A weighted unit of work completed
    COMPLETE = "complete"       # Processor finished successfully


class ProcessorProgress(BaseModel):
    """Progress event emitted during execution.

    Example:
        >>> ProcessorProgress(kind=ProgressKind.STEP, value=0.25, message="Update paths in xml files.").percentage
        25.0
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: ProgressKind
    value: Annotated[float, Field(ge=0.0, le=1.0)]
    message: str = ""

    @computed_field
    @property
    def percentage(self) -> float:
        return round(self.value * 100, 6)

    @computed_field
    @property
    def is_terminal(self) -> bool:
        return self.kind == ProgressKind.COMPLETE


ProgressListener = Callable[[ProcessorProgress], None]


class ProgressTracker:
    """Monotonic, capped progress counter.

    Example:
        >>> seen = []
        >>> tracker = ProgressTracker(seen.append)
        >>> tracker.advance(0.6), tracker.advance(0.6)
        (True, True)
        >>> tracker.value
        1.0
        >>> tracker.update(0.5)  # would decrease
        False
        >>> [e.value for e in seen]
        [0.6, 1.0]
    """

    __slots__ = ("_value", "_listener", "_lock")

    def __init__(self, listener: ProgressListener | None = None) -> None:
        self._value = 0.0
        self._listener = listener
        self._lock = threading.Lock()

    @property
    def value(self) -> float:
        return self._value

    def _set(self, value: float, kind: ProgressKind, message: str) -> bool:
        value = min(max(value, 0.0), 1.0)
        with self._lock:
            if value < self._value or (value == self._value and kind != ProgressKind.COMPLETE):
                return False
            self._value = value
        if self._listener is not None:
            self._listener(ProcessorProgress(kind=kind, value=value, message=message))
        return True

    def update(self, value: float, message: str = "") -> bool:
        """Move to an absolute value. Returns False if that would decrease progress."""
        return self._set(value, ProgressKind.STATUS, message)

    def advance(self, weight: float, message: str = "") -> bool:
        """Add weight (a tool-declared step increment)."""
        if weight <= 0:
            return False
        return self._set(self._value + weight, ProgressKind.STEP, message)

    def complete(self, message: str = "Complete") -> None:
        self._set(1.0, ProgressKind.COMPLETE, message)
