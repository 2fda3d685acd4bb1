"""Structured logging for processor execution.

Modules log through plain `logging.getLogger("ocrdspi.<area>")` loggers and
pass structured context with `extra=`. This module only decides how records
are rendered: human-readable key=value lines for development, JSON lines
(orjson) for log aggregation.

Quick Start:
    >>> from ocrdspi.runtime.observability import configure_logging
    >>> configure_logging(format="text", level="DEBUG")
    >>> logging.getLogger("ocrdspi.process").info("launched", extra={"pid": 4711})
    # => 10:30:45.123 [info] ocrdspi.process launched pid=4711
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

import orjson

from ocrdspi.foundation.config import get_settings

ROOT_LOGGER = "ocrdspi"

# Attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict[str, object]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED and not k.startswith("_")}


class ConsoleFormatter(logging.Formatter):
    """Format: HH:MM:SS.mmm [level] logger event key=value ..."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=UTC).strftime("%H:%M:%S.%f")[:-3]
        parts = [ts, f"[{record.levelname.lower()}]", record.name, record.getMessage()]
        parts += [f"{k}={v!r}" if isinstance(v, str) and " " in v else f"{k}={v}"
                  for k, v in sorted(_extras(record).items())]
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """JSON Lines output for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(entry, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


def configure_logging(
    format: str | None = None,  # noqa: A002 - shadows builtin but matches stdlib
    level: str | None = None,
    *,
    output: TextIO | None = None,
) -> logging.Handler:
    """Install a single handler on the `ocrdspi` logger. Format: "text" or "json".

    Missing arguments fall back to `OcrdSettings.logging`.
    """
    settings = get_settings()
    format = format or settings.logging.format
    level = level or settings.effective_log_level
    match format:
        case "text" | "console": formatter: logging.Formatter = ConsoleFormatter()
        case "json": formatter = JsonFormatter()
        case _: raise ValueError(f"Unknown format: {format}. Use 'text' or 'json'")

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_ocrdspi", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(output or sys.stderr)
    handler.setFormatter(formatter)
    handler._ocrdspi = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
