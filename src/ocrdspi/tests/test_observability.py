"""Tests for progress tracking, log rendering and structured errors."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator

import orjson
import pytest
from pydantic import ValidationError

from ocrdspi.foundation.config import clear_settings_cache
from ocrdspi.foundation.errors import BindingError, ErrorCode, ProcessorError
from ocrdspi.io.progress import ProcessorProgress, ProgressKind, ProgressTracker
from ocrdspi.runtime.observability import ROOT_LOGGER, configure_logging


@pytest.fixture
def root_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


# ═════════════════════════════════════════════════════════════════════════════
# Progress
# ═════════════════════════════════════════════════════════════════════════════


def test_progress_is_monotonic_and_capped() -> None:
    seen: list[ProcessorProgress] = []
    tracker = ProgressTracker(seen.append)

    assert tracker.update(0.3) is True
    assert tracker.update(0.3) is False
    assert tracker.update(0.1) is False
    assert tracker.advance(0.9) is True
    assert tracker.advance(0.0) is False

    assert tracker.value == 1.0
    assert [e.value for e in seen] == [0.3, 1.0]
    assert [e.kind for e in seen] == [ProgressKind.STATUS, ProgressKind.STEP]


def test_complete_is_always_reported() -> None:
    seen: list[ProcessorProgress] = []
    tracker = ProgressTracker(seen.append)
    tracker.update(1.0)
    tracker.complete()

    assert seen[-1].is_terminal
    assert seen[-1].percentage == 100.0


def test_progress_event_bounds() -> None:
    with pytest.raises(ValidationError):
        ProcessorProgress(kind=ProgressKind.STATUS, value=1.2)


# ═════════════════════════════════════════════════════════════════════════════
# Logging
# ═════════════════════════════════════════════════════════════════════════════


def test_text_format(root_logger: logging.Logger) -> None:
    out = io.StringIO()
    configure_logging("text", "DEBUG", output=out)

    logging.getLogger("ocrdspi.process").info("processor started", extra={"processor": "ocrd-x", "note": "a b"})

    line = out.getvalue().strip()
    assert "[info] ocrdspi.process processor started" in line
    assert line.endswith("note='a b' processor=ocrd-x")


def test_json_format(root_logger: logging.Logger) -> None:
    out = io.StringIO()
    configure_logging("json", "INFO", output=out)

    logging.getLogger("ocrdspi.events").debug("hidden")
    logging.getLogger("ocrdspi.events").warning("handler failed", extra={"handler_id": 3})

    [entry] = [orjson.loads(line) for line in out.getvalue().splitlines()]
    assert entry["level"] == "warning"
    assert entry["logger"] == "ocrdspi.events"
    assert entry["event"] == "handler failed"
    assert entry["handler_id"] == 3


def test_reconfiguring_replaces_handler(root_logger: logging.Logger) -> None:
    first = configure_logging("text", output=io.StringIO())
    second = configure_logging("json", output=io.StringIO())

    assert first not in root_logger.handlers
    assert second in root_logger.handlers


def test_format_and_level_from_settings(monkeypatch: pytest.MonkeyPatch, root_logger: logging.Logger) -> None:
    monkeypatch.setenv("OCRDSPI_LOG_FORMAT", "json")
    monkeypatch.setenv("OCRDSPI_LOG_LEVEL", "ERROR")
    clear_settings_cache()

    configure_logging(output=io.StringIO())
    assert root_logger.level == logging.ERROR


def test_unknown_format(root_logger: logging.Logger) -> None:
    with pytest.raises(ValueError, match="Unknown format"):
        configure_logging("xml")


# ═════════════════════════════════════════════════════════════════════════════
# Errors
# ═════════════════════════════════════════════════════════════════════════════


def test_binding_errors() -> None:
    error = BindingError.wrong_type("ocrd-x", "dpi", "integer")

    assert error.code == ErrorCode.INVALID_TYPE
    assert error.error.is_validation_error
    assert str(error) == "The argument 'dpi' is not of integer type."


def test_error_from_exception() -> None:
    error = ProcessorError.from_exception("ocrd-x", FileNotFoundError("gone"), "Execution failed")

    assert error.code == ErrorCode.NOT_FOUND
    assert error.render() == "Execution failed - gone"
    assert not error.is_validation_error


@pytest.mark.parametrize("exc, code", [
    (PermissionError("denied"), ErrorCode.IO_ERROR),
    (ValueError("bad"), ErrorCode.UNKNOWN),
])
def test_error_codes_of_exceptions(exc: Exception, code: ErrorCode) -> None:
    assert ProcessorError.from_exception("ocrd-x", exc).code == code


def test_error_with_details() -> None:
    error = ProcessorError(processor="ocrd-x", message=RuntimeError(" boom "), details="trace")
    assert error.render() == "boom\ntrace"
