"""
Console logging setup for addonkit entry points.

Library modules only create loggers; handlers are installed here, by the
CLI, so embedding hosts keep control of their own logging.

Format: [time] [LEVEL] [module:line] message
"""

import logging
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """
    Install a console handler on the ``addonkit`` logger.

    Calling it again only updates the level.

    Args:
        level: Level name or number

    Returns:
        The configured ``addonkit`` logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("addonkit")
    logger.setLevel(level)

    if not any(getattr(h, "_addonkit_console", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler._addonkit_console = True
        logger.addHandler(handler)

    return logger
