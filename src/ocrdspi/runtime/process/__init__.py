"""Processor execution: process handles, cancellation and the job state machine."""

from .cancel import CancelCheck, CancellationToken, any_of
from .engine import CommandBuilder, Journal, ProcessorCallback, ProcessorJob, ProcessState
from .msa import AsyncProcessorJob
from .system import SystemProcess, run

__all__ = [
    # Jobs
    "ProcessorJob", "AsyncProcessorJob", "ProcessState", "ProcessorCallback", "CommandBuilder", "Journal",
    # Cancellation
    "CancellationToken", "CancelCheck", "any_of",
    # Processes
    "SystemProcess", "run",
]
