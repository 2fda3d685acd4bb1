"""Processor job with asynchronous lifecycle notifications (MSA variant).

When a processor is served by a microservice, progress and output arrive as
events rather than from a local pipe. The job owns one key for its lifetime
and keeps a handler registered under it only while it runs.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from ocrdspi.model.arguments import ModelArgument
from ocrdspi.runtime.binding import ArgumentBinder
from ocrdspi.runtime.events import UNREGISTERED, EventController, JobEvent
from ocrdspi.runtime.workspace import Framework

from .cancel import CancelCheck
from .engine import CommandBuilder, ProcessorCallback, ProcessorJob, ProcessState

logger = logging.getLogger("ocrdspi.msa")


class AsyncProcessorJob(ProcessorJob):
    """ProcessorJob that listens for JobEvents while executing."""

    def __init__(self, processor: str, binder: ArgumentBinder, command: CommandBuilder, *,
                 controller: EventController, **options: Any) -> None:
        super().__init__(processor, binder, command, **options)
        self.key = str(uuid.uuid4())
        self._controller = controller
        self._handler_id = UNREGISTERED

    @property
    def handler_id(self) -> int:
        return self._handler_id

    def execute(
        self,
        callback: ProcessorCallback | None,
        framework: Framework | None,
        model_argument: ModelArgument | None,
        cancel: CancelCheck | None = None,
    ) -> ProcessState:
        self._handler_id = self._controller.register(self.key, self.handle)
        try:
            return super().execute(callback, framework, model_argument, cancel)
        finally:
            self._controller.unregister(self._handler_id)
            self._handler_id = UNREGISTERED

    def handle(self, event: object) -> None:
        """Apply a JobEvent to this job's progress and journals."""
        if not isinstance(event, JobEvent) or event.job_key != self.key:
            logger.debug("event ignored", extra={"job_key": self.key, "event": type(event).__name__})
            return
        if event.progress is not None:
            self.updated_progress(event.progress)
        self.updated_standard_output(event.standard_output)
        self.updated_standard_error(event.standard_error)
