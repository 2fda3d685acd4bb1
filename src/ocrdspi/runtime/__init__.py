"""Runtime: argument binding, command lines, process execution and job events.

Submodules:
    binding: ModelArgument -> ProcessorArgument (+ pass-through parameters)
    command: native and container command lines
    workspace: Framework context and post-run finalization
    events: EventController for asynchronous job notifications
    process: ProcessorJob state machine
    observability: log rendering
"""

from .binding import ArgumentBinder, BoundArguments
from .command import Command, container_command, describe_command, native_command, stop_command, stop_grace
from .events import EventController, EventRegistration, JobEvent
from .workspace import FINALIZATION_STAGES, FinalizationStage, Framework, MetsFileGroup
from .process import (
    AsyncProcessorJob,
    CancellationToken,
    ProcessorCallback,
    ProcessorJob,
    ProcessState,
    SystemProcess,
)

__all__ = [
    # Binding
    "ArgumentBinder", "BoundArguments",
    # Commands
    "Command", "native_command", "container_command", "stop_command", "stop_grace", "describe_command",
    # Workspace
    "Framework", "MetsFileGroup", "FinalizationStage", "FINALIZATION_STAGES",
    # Events
    "EventController", "EventRegistration", "JobEvent",
    # Execution
    "ProcessorJob", "AsyncProcessorJob", "ProcessState", "ProcessorCallback", "CancellationToken", "SystemProcess",
]
