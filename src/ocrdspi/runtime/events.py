"""Job lifecycle events for asynchronously executed processors.

A job registers one handler under its job key while it runs. Whoever
receives notifications for that job (e.g. a microservice callback endpoint)
dispatches them here; handlers are invoked on a worker thread, never on the
dispatching thread.

Example:
    >>> controller = EventController()
    >>> handler_id = controller.register(job.key, job.handle)
    >>> controller.dispatch(job.key, JobEvent(job_key=job.key, progress=0.5))
    1
    >>> controller.unregister(handler_id)
    True
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from ocrdspi.foundation.config import get_settings

logger = logging.getLogger("ocrdspi.events")

# Handler id meaning "not registered"
UNREGISTERED = 0


class JobEvent(BaseModel):
    """Notification about a running job. Unset members carry no news."""

    model_config = ConfigDict(frozen=True)

    job_key: Annotated[str, Field(min_length=1)]
    progress: Annotated[float, Field(ge=0.0, le=1.0)] | None = None
    standard_output: str | None = None
    standard_error: str | None = None


EventHandler = Callable[[object], None]


@dataclass(slots=True, frozen=True)
class EventRegistration:
    job_key: str
    handler_id: int
    handler: EventHandler


class EventController:
    """Thread-safe job key -> handler table with pooled delivery."""

    __slots__ = ("_lock", "_ids", "_registrations", "_workers", "_executor")

    def __init__(self, workers: int | None = None) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._registrations: dict[int, EventRegistration] = {}
        self._workers = workers or get_settings().events.workers
        self._executor: ThreadPoolExecutor | None = None

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="ocrdspi-events-")
        return self._executor

    def register(self, job_key: str, handler: EventHandler) -> int:
        """Register handler for job_key. Returns a strictly positive handler id."""
        with self._lock:
            handler_id = next(self._ids)
            self._registrations[handler_id] = EventRegistration(job_key, handler_id, handler)
        logger.debug("handler registered", extra={"job_key": job_key, "handler_id": handler_id})
        return handler_id

    def unregister(self, handler_id: int) -> bool:
        """Remove a handler. Ids <= 0 are ignored. Returns True if one was removed."""
        if handler_id <= UNREGISTERED:
            return False
        with self._lock:
            removed = self._registrations.pop(handler_id, None)
        if removed is not None:
            logger.debug("handler unregistered", extra={"job_key": removed.job_key, "handler_id": handler_id})
        return removed is not None

    def handlers(self, job_key: str) -> list[EventHandler]:
        with self._lock:
            return [r.handler for r in self._registrations.values() if r.job_key == job_key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._registrations)

    def dispatch(self, job_key: str, event: object) -> int:
        """Schedule event for every handler of job_key. Returns the number scheduled."""
        handlers = self.handlers(job_key)
        with self._lock:
            pool = self._pool()
            for handler in handlers:
                pool.submit(handler, event).add_done_callback(self._report)
        return len(handlers)

    @staticmethod
    def _report(future: Future[None]) -> None:
        if not future.cancelled() and (exc := future.exception()) is not None:
            logger.error("event handler failed", exc_info=exc)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
