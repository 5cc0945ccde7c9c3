"""Console and log-file setup for the wikimirror logger tree."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "wikimirror"
FILE_FORMAT = "[%(levelname)s] %(asctime)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Marks handlers we installed so repeated setup calls replace rather than stack them.
_OWNED = "_wikimirror_handler"


def _remove_owned(logger: logging.Logger, *, files_only: bool = False) -> None:
    for handler in list(logger.handlers):
        if not getattr(handler, _OWNED, False):
            continue
        if files_only and not isinstance(handler, logging.FileHandler):
            continue
        logger.removeHandler(handler)
        handler.close()


def setup_logging(level: str = "info", *, verbose: bool = False) -> logging.Logger:
    """Install a rich console handler on the ``wikimirror`` logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else _LEVELS.get(level, logging.INFO))
    _remove_owned(logger)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    setattr(handler, _OWNED, True)
    logger.addHandler(handler)
    return logger


def attach_file_logs(output_root: Path, log_file: str, error_log_file: str) -> list[logging.Handler]:
    """Append timestamped records to the per-pass and error logs in *output_root*.

    Every record goes to *log_file*; ERROR and above also go to *error_log_file*.
    """
    logger = logging.getLogger(LOGGER_NAME)
    _remove_owned(logger, files_only=True)

    formatter = logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = []
    for name, level in ((log_file, logging.DEBUG), (error_log_file, logging.ERROR)):
        handler = logging.FileHandler(Path(output_root) / name, mode="a", encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(formatter)
        setattr(handler, _OWNED, True)
        logger.addHandler(handler)
        handlers.append(handler)
    return handlers


def detach_file_logs() -> None:
    _remove_owned(logging.getLogger(LOGGER_NAME), files_only=True)
