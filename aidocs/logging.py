"""Logging setup for aidocs: console output plus an optional per-run transcript."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "aidocs"

CONSOLE_FORMAT = "[ai-docs] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(library)s] %(message)s"
NO_LIBRARY = "-"


class LibraryLogger(logging.LoggerAdapter):
    """Tags every record with the library currently being processed."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("library", self.extra["library"])
        kwargs["extra"] = extra
        return msg, kwargs


class _LibraryDefault(logging.Filter):
    """Fills ``library`` for records logged outside a per-library context."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "library"):
            record.library = NO_LIBRARY
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a component logger under the aidocs hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def library_logger(name: str, library: str) -> LibraryLogger:
    return LibraryLogger(get_logger(name), {"library": library})


def configure_logging(*, verbose: bool = False, log_file: Path | str | None = None) -> logging.Logger:
    """Attach the console handler and, when ``log_file`` is given, a transcript file.

    The transcript always records DEBUG output with the library tag of each
    record, whatever the console verbosity.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        transcript = logging.FileHandler(path, encoding="utf-8")
        transcript.setLevel(logging.DEBUG)
        transcript.addFilter(_LibraryDefault())
        transcript.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(transcript)

    return logger


__all__ = ["LibraryLogger", "configure_logging", "get_logger", "library_logger"]
