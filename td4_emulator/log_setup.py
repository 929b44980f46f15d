"""
Logging setup shared by the td4emu CLI and any harness driving the emulator.

Console output goes through rich's RichHandler on stderr so it never mixes
with the final register dump on stdout. An optional log file captures
everything at DEBUG with source locations.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


def setup_logging(
    name: Optional[str] = None,
    console_level: int = logging.WARNING,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Configure and return the named logger (the root logger by default).

    Calling this again for a logger that already has a console handler only
    updates its level, so repeated CLI invocations in one process do not
    stack handlers. A log file is attached once per path.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    consoles = [h for h in logger.handlers if isinstance(h, RichHandler)]
    if consoles:
        for handler in consoles:
            handler.setLevel(console_level)
    else:
        ch = RichHandler(
            console=Console(stderr=True),
            level=console_level,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        logger.addHandler(ch)

    if log_file:
        log_path = Path(log_file)
        open_files = {h.baseFilename for h in logger.handlers if isinstance(h, logging.FileHandler)}
        if os.path.abspath(log_path) not in open_files:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(str(log_path), encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            logger.addHandler(fh)

    return logger
