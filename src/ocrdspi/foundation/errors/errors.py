"""Standardized error handling for processors.

Provides error codes and structured error responses. Binding and domain
failures never cross the `execute()` boundary: the engine catches them and
turns them into an `interrupted` state plus a journal diagnostic.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ErrorCode(StrEnum):
    """Standard error codes for processor failures."""
    INVALID_TYPE = "INVALID_TYPE"
    DOMAIN_VIOLATION = "DOMAIN_VIOLATION"
    PROCESS_FAILED = "PROCESS_FAILED"
    IO_ERROR = "IO_ERROR"
    INVALID_DESCRIPTION = "INVALID_DESCRIPTION"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN = "UNKNOWN"


def _code_of(exc: Exception) -> ErrorCode:
    if isinstance(exc, FileNotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(exc, OSError):
        return ErrorCode.IO_ERROR
    return ErrorCode.UNKNOWN


class ProcessorError(BaseModel):
    """Structured error for processor failures.

    Attributes:
        processor: Identifier of the processor that failed
        message: Human-readable error message
        code: Machine-readable error code
        details: Optional detailed information (e.g., stack trace)
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Processor Error",
            "examples": [{
                "processor": "ocrd-tesserocr-segment-line",
                "message": "The padding value -1 can not be negative.",
                "code": "DOMAIN_VIOLATION",
            }],
        },
    )

    processor: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.UNKNOWN
    details: str | None = Field(default=None, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and extract message."""
        return str(v) if isinstance(v, Exception) else v

    @computed_field
    @property
    def is_validation_error(self) -> bool:
        """Whether the failure came from argument binding."""
        return self.code in (ErrorCode.INVALID_TYPE, ErrorCode.DOMAIN_VIOLATION)

    @classmethod
    def from_exception(cls, processor: str, exc: Exception, context: str = "", *,
                       include_trace: bool = False) -> Self:
        return cls(
            processor=processor,
            message=f"{context} - {exc}" if context else str(exc),
            code=_code_of(exc),
            details=traceback.format_exc() if include_trace else None,
        )

    def render(self) -> str:
        """Format error for the processor journal."""
        return self.message if not self.details else f"{self.message}\n{self.details}"

    __str__ = render


class ProviderException(Exception):
    """Exception wrapping a ProcessorError for raising."""

    __slots__ = ("error",)

    def __init__(self, error: ProcessorError) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @classmethod
    def create(cls, processor: str, message: str, code: ErrorCode = ErrorCode.UNKNOWN) -> Self:
        return cls(ProcessorError(processor=processor, message=message, code=code))


class BindingError(ProviderException):
    """Argument binding failed: wrong static type or domain rule violated."""

    @classmethod
    def wrong_type(cls, processor: str, argument: str, expected: str) -> Self:
        return cls.create(processor, f"The argument '{argument}' is not of {expected} type.", ErrorCode.INVALID_TYPE)

    @classmethod
    def domain(cls, processor: str, message: str) -> Self:
        return cls.create(processor, message, ErrorCode.DOMAIN_VIOLATION)


class DescriptionError(ProviderException):
    """A JSON processor description could not be turned into fields."""

    @classmethod
    def invalid(cls, processor: str, message: str) -> Self:
        return cls.create(processor, message, ErrorCode.INVALID_DESCRIPTION)
