"""
Logging setup for pingtrace.

Live mode redraws stdout in place and the TUI owns the whole screen, so by
default the "pingtrace" logger writes nowhere. Report and JSON runs are
quiet too; their only output is the final table or document on stdout.

    pingtrace example.com                 no log output
    pingtrace -v -r example.com           cycle start/stop, target found  → stderr
    pingtrace --debug -r example.com      plus per-probe and lookup detail → stderr
    pingtrace --tui --log run.log ...     everything → run.log, screen untouched

Debug records cover probes downgraded to timeouts, dropped probe tasks and
reverse lookups that failed.
"""

from __future__ import annotations
from typing import Optional
import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    log_file: Optional[str] = None,
    debug: bool = False,
    verbose: bool = False,
) -> logging.Logger:
    logger = logging.getLogger("pingtrace")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")

    if log_file:
        # a file never collides with the live table, so it gets everything
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if debug or verbose:
        # stderr interleaves with live redraws; opt-in only
        stderr_handler = logging.StreamHandler()
        stderr_handler.setLevel(logging.DEBUG if debug else logging.INFO)
        stderr_handler.setFormatter(formatter)
        logger.addHandler(stderr_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
