"""Logging setup for the command line."""

import logging

from rich.console import Console
from rich.logging import RichHandler

_LEVELS = [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL]
_DEFAULT_INDEX = _LEVELS.index(logging.WARNING)


def verbosity_to_level(verbose: int = 0, quiet: int = 0) -> int:
    """Map counted -v/-q flags to a logging level, starting from WARNING."""
    index = min(max(_DEFAULT_INDEX - verbose + quiet, 0), len(_LEVELS) - 1)
    return _LEVELS[index]


def setup_logging(level: int, console: Console) -> None:
    """Send ``openapi_transformer`` log records to ``console`` at ``level``."""
    handler = RichHandler(console=console, show_path=level <= logging.DEBUG, show_time=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("openapi_transformer")
    for existing in logger.handlers[:]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
