"""Logging helpers shared by the scan, analyze and apply phases."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "reqmd"
_CONSOLE_FORMAT = "[reqmd] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a phase logger such as ``reqmd.scanner`` or the package root logger."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def format_fields(message: str, **fields: object) -> str:
    """Render ``message`` followed by ``key=value`` pairs in insertion order.

    Scanner statistics and per-file decisions are logged this way so that a
    verbose run can be grepped by field name.
    """
    if not fields:
        return message
    pairs = " ".join(f"{key.replace('_', '-')}={value}" for key, value in fields.items())
    return f"{message} ({pairs})"


def byte_count(size: int) -> str:
    """Return ``size`` in SI units, e.g. ``131.1 kB``."""
    unit = 1000
    if size < unit:
        return f"{size} B"
    value = float(size)
    for prefix in "kMGTPE":
        value /= unit
        if value < unit:
            return f"{value:.1f} {prefix}B"
    return f"{value:.1f} EB"


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the ``reqmd`` logger for one CLI invocation.

    Verbose runs log at DEBUG, which includes every skipped file and every
    planned action; otherwise only phase summaries are shown.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    # The file sink records DEBUG even when the console shows INFO only.
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    # Repeated invocations in one process (tests) must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["byte_count", "configure_logging", "format_fields", "get_logger"]
