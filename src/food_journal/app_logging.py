"""Logging configuration for the food journal package."""

import logging

_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send ``food_journal`` records at ``level`` and above to stderr.

    Repeat calls only adjust the level, so one handler is ever attached.
    """
    logger = logging.getLogger("food_journal")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
