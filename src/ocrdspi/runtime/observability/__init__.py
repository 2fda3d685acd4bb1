"""Observability: log rendering for processor execution."""

from .logging import ROOT_LOGGER, ConsoleFormatter, JsonFormatter, configure_logging

__all__ = ["ROOT_LOGGER", "ConsoleFormatter", "JsonFormatter", "configure_logging"]
