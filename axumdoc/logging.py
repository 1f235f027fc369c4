"""Logging setup for axumdoc runs.

Recoverable analysis problems are reported on the ``axumdoc.diagnostics``
logger so they can be routed separately from progress messages.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "axumdoc"
DIAGNOSTICS_LOGGER = f"{_LOGGER_NAME}.diagnostics"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the axumdoc hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the axumdoc logger tree.

    ``quiet`` drops progress output and keeps diagnostics; ``verbose`` enables
    traversal tracing at DEBUG level.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Handlers are reset so repeated CLI invocations in one process do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(_ConsoleFormatter())
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


class _ConsoleFormatter(logging.Formatter):
    """Prefix console lines, labelling diagnostics as warnings with their context."""

    def __init__(self) -> None:
        super().__init__("[axumdoc] %(levelname)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        if record.name == DIAGNOSTICS_LOGGER:
            context = getattr(record, "context", None)
            message = record.getMessage()
            if context:
                return f"[axumdoc] warning: {context}: {message}"
            return f"[axumdoc] warning: {message}"
        return super().format(record)


__all__ = ["DIAGNOSTICS_LOGGER", "configure_logging", "get_logger"]
