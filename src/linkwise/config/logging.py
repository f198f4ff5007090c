"""Logging setup for the linkwise command line."""

from __future__ import annotations

import logging
import sys
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT: Final[str] = "%H:%M:%S"

# SQL echo is only useful when debugging a lookup.
_SQLALCHEMY_LOGGERS: Final[tuple[str, ...]] = ("sqlalchemy.engine", "sqlalchemy.pool")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Route log records to stderr so stdout carries only command output.

    SQLAlchemy's engine and pool loggers stay at WARNING unless ``level`` is
    DEBUG, in which case emitted SQL is shown. Pass ``force=True`` to replace
    handlers installed earlier.
    """

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
        force=force,
    )
    library_level = logging.INFO if level <= logging.DEBUG else logging.WARNING
    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
