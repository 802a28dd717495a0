# === FILE: backlink_scout/logger.py ===
"""Logging setup for **BacklinkScout**.

All output of the package goes through one named logger::

    from backlink_scout.logger import logger
    logger.info("Verification started for %s", domain)

Records from ``logging.getLogger(__name__)`` in submodules reach the same
handlers because the logger is named after the package. Console output goes
to stderr: stdout belongs to the JSON result printed by the CLI.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Mapping, Optional, Union

# --------------------------------------------------------------------------- #
# Constants                                                                   #
# --------------------------------------------------------------------------- #

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "backlink_scout"

#: Third-party loggers that are chatty at INFO during a crawl.
LIBRARY_LEVELS: Final[Mapping[str, int]] = {
    "aiohttp.access": logging.WARNING,
    "aiohttp.client": logging.WARNING,
    "asyncio": logging.WARNING,
}

_ROTATE_BYTES: Final[int] = 5 * 1024 * 1024
_ROTATE_BACKUPS: Final[int] = 3

LevelT = Union[int, str]


# --------------------------------------------------------------------------- #
# Handlers                                                                    #
# --------------------------------------------------------------------------- #


def _with_format(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _console(fmt: str) -> logging.Handler:
    return _with_format(logging.StreamHandler(sys.stderr), fmt)


def _rotating_file(path: Union[str, Path], fmt: str) -> logging.Handler:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(target),
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_BACKUPS,
        encoding="utf-8",
    )
    return _with_format(handler, fmt)


def _drop_handlers(lg: logging.Logger) -> None:
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def init_logging(
    level: LevelT = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """(Re)build the package logger and return it.

    Parameters
    ----------
    level
        Numeric or textual level (``"DEBUG"``, ``logging.INFO`` ...).
    log_file
        Optional rotating log file, written in addition to stderr.
    log_format
        Format string for :class:`logging.Formatter`.

    Calling it again replaces the previous handlers, so the CLI can apply
    its options on top of the import-time defaults.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)
    _drop_handlers(lg)

    lg.addHandler(_console(log_format))
    if log_file is not None:
        lg.addHandler(_rotating_file(log_file, log_format))
    lg.propagate = False

    for name, lib_level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(lib_level)
    return lg


# --------------------------------------------------------------------------- #
# Import-time instance                                                        #
# --------------------------------------------------------------------------- #

logger: logging.Logger = init_logging()

__all__ = ["logger", "init_logging", "LIBRARY_LEVELS"]
