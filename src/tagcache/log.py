"""
tagcache - Logging Setup

The library only creates module loggers; applications call configure_logging()
(or their own logging setup) once at startup.
"""

import logging

from .config import LogLevel

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: LogLevel | str = LogLevel.INFO) -> None:
    """Configure root logging with the standard format at the given level."""
    if isinstance(level, LogLevel):
        level = level.value
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("tagcache").setLevel(level.upper())
