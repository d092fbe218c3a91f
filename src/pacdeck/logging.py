"""Logging setup for the pacdeck logger tree.

Every module logs through ``py_logging.getLogger(__name__)``; only the
``pacdeck`` logger carries handlers.
"""

from __future__ import annotations

import logging as py_logging
import shlex
import sys
from pathlib import Path
from typing import TextIO

LOGGER_NAME = "pacdeck"
LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
DEFAULT_LOG_PATH = Path("~/.config/pacdeck/logs/pacdeck.log")
DEFAULT_LOG_TRUNCATE_LIMIT = 700
_FALLBACK_LOG_PATH = Path(".pacdeck/logs/pacdeck.log")
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


def _absolute(path: Path, fallback: Path | None = None) -> Path:
    # expanduser raises RuntimeError when HOME cannot be determined.
    try:
        path = path.expanduser()
    except RuntimeError:
        path = fallback if fallback is not None else path
    return path if path.is_absolute() else path.resolve()


def default_log_path() -> Path:
    return _absolute(DEFAULT_LOG_PATH, Path.cwd() / _FALLBACK_LOG_PATH)


def resolve_level(level: str) -> int:
    """Map a config/CLI level name to a logging level, INFO when unknown."""
    return LOG_LEVELS.get(level.strip().upper(), py_logging.INFO)


def truncate_log(value: str, limit: int = DEFAULT_LOG_TRUNCATE_LIMIT) -> str:
    """Strip and bound ``value`` to ``limit`` characters, ending in ``...`` when cut."""
    text = value.strip()
    if len(text) > limit:
        return text[: max(0, limit - 3)] + "..."
    return text


def command_for_log(args: list[str] | tuple[str, ...]) -> str:
    """Shell-quoted argv for log lines; empty argv logs as an empty string."""
    return truncate_log(shlex.join(args)) if args else ""


def _file_handler(log_file: str | Path, formatter: py_logging.Formatter) -> py_logging.Handler | None:
    path = _absolute(Path(log_file))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = py_logging.FileHandler(path, encoding="utf-8")
    except OSError:
        # An unwritable log directory must not stop package operations.
        return None
    handler.setLevel(py_logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    """Reset the ``pacdeck`` logger to a console handler plus an optional DEBUG file."""
    threshold = resolve_level(level)
    formatter = py_logging.Formatter(_FORMAT)

    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(threshold)
    console.setFormatter(formatter)

    logger = py_logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(threshold)
    logger.addHandler(console)
    if log_file:
        file_handler = _file_handler(log_file, formatter)
        if file_handler is not None:
            logger.addHandler(file_handler)
    logger.propagate = False
    return logger
