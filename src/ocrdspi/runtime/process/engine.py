"""Processor execution engine.

A `ProcessorJob` runs one invocation of an external OCR-D processor:

    created --initialize--> running --> completed | canceled | interrupted

`execute()` blocks the calling thread. It binds the caller's ModelArgument,
builds the command line, launches the process, polls it until exit or
cancellation and finally runs the workspace finalization stages. Whatever
happens, `complete()` runs exactly once when `execute()` returns.

Binding and domain failures never leave `execute()` as exceptions: they end
the job as `interrupted` with a diagnostic on the standard error journal.

Example:
    >>> job = descriptor.new_job(configuration)
    >>> state = job.execute(callback, framework, ModelArgument.of(dpi=300))
    >>> state
    <ProcessState.COMPLETED: 'completed'>
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from enum import StrEnum
from typing import Protocol

from ocrdspi.foundation.config import ExitPolicy, get_settings
from ocrdspi.foundation.errors import BindingError, ErrorCode, ProcessorError
from ocrdspi.io.progress import ProcessorProgress, ProgressTracker
from ocrdspi.model.arguments import ModelArgument
from ocrdspi.runtime.binding import ArgumentBinder, BoundArguments
from ocrdspi.runtime.command import Command
from ocrdspi.runtime.workspace import FINALIZATION_STAGES, FinalizationStage, Framework

from .cancel import CancelCheck, CancellationToken, any_of
from .system import SystemProcess, run

logger = logging.getLogger("ocrdspi.process")

CommandBuilder = Callable[[Framework, BoundArguments], Command]


class ProcessState(StrEnum):
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELED = "canceled"
    INTERRUPTED = "interrupted"

    @property
    def is_terminal(self) -> bool:
        return self not in (ProcessState.CREATED, ProcessState.RUNNING)


class ProcessorCallback(Protocol):
    """Host side of a running job."""

    def updated_progress(self, progress: float) -> None: ...

    def updated_standard_output(self, message: str) -> None: ...

    def updated_standard_error(self, message: str) -> None: ...


class Journal:
    """Accumulated text of one output stream.

    Each update is trimmed; blank updates are dropped. Accepted updates are
    appended and the whole journal is forwarded to the sink.
    """

    __slots__ = ("_entries", "_sink", "_lock")

    def __init__(self, sink: Callable[[str], None] | None = None) -> None:
        self._entries: list[str] = []
        self._sink = sink
        self._lock = threading.Lock()

    def update(self, text: str | None) -> bool:
        if text is None or not (text := text.strip()):
            return False
        with self._lock:
            self._entries.append(text)
            content = "\n".join(self._entries)
        if self._sink is not None:
            self._sink(content)
        return True

    @property
    def text(self) -> str:
        with self._lock:
            return "\n".join(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class ProcessorJob:
    """One invocation of an external processor.

    Attributes:
        processor: Processor identifier used in diagnostics
        exit_policy: Mapping of a non-zero exit status to a state
        base_progress: Progress reported once arguments are bound
        run_progress: Progress reported once the process ended successfully
        stop_grace: Seconds between the stop request and a forceful kill
    """

    def __init__(
        self,
        processor: str,
        binder: ArgumentBinder,
        command: CommandBuilder,
        *,
        exit_policy: ExitPolicy | None = None,
        stages: Iterable[FinalizationStage] = FINALIZATION_STAGES,
        base_progress: float = 0.01,
        run_progress: float = 0.097,
        json_mode: bool = False,
        stop_grace: float | None = None,
        on_complete: Callable[[ProcessorJob], None] | None = None,
    ) -> None:
        settings = get_settings().process
        self.processor = processor
        self.exit_policy = ExitPolicy(exit_policy or settings.exit_policy)
        self.base_progress = base_progress
        self.run_progress = run_progress
        self._binder = binder
        self._command = command
        self._stages = tuple(stages)
        self._json_mode = json_mode
        self._on_complete = on_complete
        self._poll_interval = settings.poll_interval
        self.stop_grace = settings.stop_grace if stop_grace is None else stop_grace

        self._token = CancellationToken()
        self._canceled: CancelCheck = self._token
        self._lock = threading.Lock()
        self._state = ProcessState.CREATED
        self._completed = False
        self._started: float | None = None
        self._finished: float | None = None
        self._framework: Framework | None = None
        self._callback: ProcessorCallback | None = None
        self._progress = ProgressTracker(self._on_progress)
        self._stdout = Journal(self._forward_stdout)
        self._stderr = Journal(self._forward_stderr)

    # ─────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────

    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def standard_output(self) -> str:
        return self._stdout.text

    @property
    def standard_error(self) -> str:
        return self._stderr.text

    @property
    def progress(self) -> float:
        return self._progress.value

    @property
    def duration(self) -> float | None:
        if self._started is None:
            return None
        return (self._finished or time.monotonic()) - self._started

    @property
    def is_canceled(self) -> bool:
        return self._canceled()

    def cancel(self) -> None:
        """Request cancellation; observed at the next checkpoint or poll tick."""
        self._token.cancel()

    # ─────────────────────────────────────────────────────────────────
    # Callback forwarding
    # ─────────────────────────────────────────────────────────────────

    def _on_progress(self, event: ProcessorProgress) -> None:
        if self._callback is not None:
            self._callback.updated_progress(event.value)

    def _forward_stdout(self, text: str) -> None:
        if self._callback is not None:
            self._callback.updated_standard_output(text)

    def _forward_stderr(self, text: str) -> None:
        if self._callback is not None:
            self._callback.updated_standard_error(text)

    def updated_standard_output(self, message: str | None) -> bool:
        return self._stdout.update(message)

    def updated_standard_error(self, message: str | None) -> bool:
        return self._stderr.update(message)

    def updated_progress(self, value: float) -> bool:
        return self._progress.update(value)

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    def initialize(self, processor: str, callback: ProcessorCallback | None, framework: Framework | None) -> bool:
        """Start bookkeeping. False if the job was canceled before it started."""
        with self._lock:
            self.processor = processor
            self._callback = callback
            self._framework = framework
            self._started = time.monotonic()
            if self._canceled():
                return False
            self._state = ProcessState.RUNNING
        logger.info("processor started", extra={"processor": processor})
        return True

    def complete(self) -> bool:
        """End bookkeeping. Runs once; later calls return False."""
        with self._lock:
            if self._completed:
                return False
            self._completed = True
            self._finished = time.monotonic()
        logger.info("processor finished", extra={
            "processor": self.processor, "state": self._state.value, "duration": round(self.duration or 0.0, 3)})
        if self._on_complete is not None:
            self._on_complete(self)
        return True

    def execute(
        self,
        callback: ProcessorCallback | None,
        framework: Framework | None,
        model_argument: ModelArgument | None,
        cancel: CancelCheck | None = None,
    ) -> ProcessState:
        """Run the processor to a terminal state."""
        state = ProcessState.INTERRUPTED
        self._canceled = any_of(self._token, cancel)
        try:
            if not self.initialize(self.processor, callback, framework):
                state = ProcessState.CANCELED
            else:
                state = self._run(framework, model_argument, self._canceled)
        except Exception as e:
            logger.exception("processor failed", extra={"processor": self.processor})
            self.updated_standard_error(ProcessorError.from_exception(self.processor, e, "Execution failed").render())
            state = ProcessState.INTERRUPTED
        finally:
            self._state = state
            self.complete()
        return state

    # ─────────────────────────────────────────────────────────────────
    # Run
    # ─────────────────────────────────────────────────────────────────

    def _run(self, framework: Framework | None, model_argument: ModelArgument | None,
             canceled: CancelCheck) -> ProcessState:
        self.updated_progress(0.0)
        self.updated_standard_output("Start spi.")
        if framework is None:
            self.updated_standard_error("No framework is defined for the processor.")
            return ProcessState.INTERRUPTED

        try:
            bound = self._binder.bind(model_argument)
        except BindingError as e:
            logger.info("binding failed", extra={"processor": self.processor, "code": e.code.value})
            self.updated_standard_error(e.error.render())
            return ProcessState.INTERRUPTED
        parameters = bound.to_json(exclude_unset=self._json_mode)
        self.updated_standard_output(f"Using processor parameters {parameters}.")
        if bound.passthrough:
            self.updated_standard_output(f"Forwarding pass-through parameters: {sorted(bound.passthrough)}.")

        if canceled():
            return ProcessState.CANCELED
        self.updated_progress(self.base_progress)

        if framework.output_relative is None:
            self.updated_standard_error("Inconsistent processor workspace path.")
            return ProcessState.INTERRUPTED
        if framework.mets is None:
            self.updated_standard_error("Missed required mets file path.")
            return ProcessState.INTERRUPTED

        command = self._command(framework, bound)
        state = self._invoke(command, canceled)
        if state is ProcessState.CANCELED:
            return state
        if state is None:
            self.updated_progress(self.run_progress)

        for stage in self._stages:
            if canceled():
                return ProcessState.CANCELED
            self.updated_standard_output(stage.message)
            try:
                stage.action(framework)
            except OSError as e:
                self.updated_standard_error(f"troubles {stage.failure.format(processor=self.processor)} - {e}.")
                state = state or ProcessState.INTERRUPTED
            if state is None:
                self._progress.advance(stage.weight, stage.message)

        if state is not None:
            return state
        self._progress.complete()
        return ProcessState.COMPLETED

    def _invoke(self, command: Command, canceled: CancelCheck) -> ProcessState | None:
        """Launch and supervise command. None means the run does not decide the state."""
        self.updated_standard_output(f"Execute process '{command.program}' with parameters: {list(command.arguments)}.")
        try:
            process = SystemProcess.start(command.argv, command.cwd)
        except OSError as e:
            error = ProcessorError.from_exception(self.processor, e, f"troubles running {self.processor}")
            self.updated_standard_error(f"{error.render()}.")
            logger.warning("processor launch failed", extra={"processor": self.processor, "code": error.code.value})
            return ProcessState.INTERRUPTED

        while True:
            if canceled():
                self._stop(process, command)
                self._flush(process)
                return ProcessState.CANCELED
            code = process.wait(self._poll_interval)
            self._flush(process)
            if code is not None:
                break
        self._collect(process, canceled)

        if code == 0:
            return None
        error = ProcessorError(processor=self.processor, message=f"Cannot run {self.processor}, exit code {code}.",
                               code=ErrorCode.PROCESS_FAILED)
        self.updated_standard_error(error.render())
        logger.warning("processor exited with error", extra={
            "processor": self.processor, "exit_code": code, "code": error.code.value})
        return ProcessState.INTERRUPTED if self.exit_policy == ExitPolicy.INTERRUPT else None

    def _collect(self, process: SystemProcess, canceled: CancelCheck) -> None:
        """Read output left after exit, for at most the stop grace or until canceled."""
        deadline = time.monotonic() + self.stop_grace
        while not process.join_readers(self._poll_interval):
            self._flush(process)
            if canceled() or time.monotonic() >= deadline:
                logger.info("output still open after exit", extra={"processor": self.processor, "pid": process.pid})
                break
        self._flush(process)

    def _flush(self, process: SystemProcess) -> None:
        self.updated_standard_output(process.drain_stdout())
        self.updated_standard_error(process.drain_stderr())

    def _stop(self, process: SystemProcess, command: Command) -> None:
        """Ask the process to stop, then kill it once the grace period has passed."""
        logger.info("stopping processor", extra={"processor": self.processor, "pid": process.pid})
        if command.stop is not None:
            try:
                run(command.stop)
            except OSError as e:
                logger.warning("stop command failed", extra={"processor": self.processor, "error": str(e)})
                process.terminate()
        else:
            process.terminate()
        if process.wait(self.stop_grace) is None:
            process.kill()
            process.wait()
