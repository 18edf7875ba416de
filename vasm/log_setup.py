"""
Logging setup for vasm hosts.

The library itself only creates module loggers under the "vasm" namespace;
handlers are attached here, by the host (see vasmrun.py).

  Console: rich RichHandler, WARNING+ unless the host asks for more.
  File:    optional plain-text log with function/line context.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str = "vasm",
    level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
    log_file: Optional[Union[str, Path]] = None,
    rich_console: bool = True,
    force: bool = False,
) -> logging.Logger:
    """
    Configure and return the logger for `name`.

    Calling it twice for the same name returns the already-configured
    logger unchanged, unless force=True, which closes and replaces the
    existing handlers.
    """
    logger = logging.getLogger(name)
    if force:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
    if logger.handlers:
        return logger
    logger.setLevel(level)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(fh)

    if rich_console:
        ch = RichHandler(
            console=Console(stderr=True),
            level=console_level,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        ch.setLevel(console_level)
        logger.addHandler(ch)

    logger.debug("Logger initialized: %s (console level %s)",
                 name, logging.getLevelName(console_level))
    return logger
