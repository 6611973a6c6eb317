"""Logging utilities for primer commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "primer"
_CONSOLE_FORMAT = "[primer] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the primer hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def resolve_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map CLI verbosity flags to a logging level; ``verbose`` wins over ``quiet``."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the primer logger with console output and an optional file sink.

    Compile runs log skipped files and grammar fallbacks at debug level, so
    ``verbose`` is the switch to see why a file is missing from the code map.
    """
    level = resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations in one process do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        # The file sink always records debug detail for post-mortems.
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["configure_logging", "get_logger", "resolve_level"]
