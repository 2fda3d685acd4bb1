"""Error handling for ocrdspi.

- ErrorCode: Standard error codes for processor failures
- ProcessorError: Structured, immutable error record
- ProviderException / BindingError / DescriptionError: raisable wrappers
"""

from .errors import BindingError, DescriptionError, ErrorCode, ProcessorError, ProviderException

__all__ = ["ErrorCode", "ProcessorError", "ProviderException", "BindingError", "DescriptionError"]
