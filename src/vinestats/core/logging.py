"""Logging setup for the CLI and server entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers; the
handler is attached once, here, by whichever entry point runs.
"""

from __future__ import annotations

import logging
from typing import Final

_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_HANDLER_NAME: Final[str] = "vinestats"


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the ``vinestats`` logger.

    Calling it again only updates the level; no duplicate handler is added.

    Args:
        level: Logging level (``"DEBUG"``, ``logging.INFO``, ...).

    Returns:
        The package logger.
    """
    logger = logging.getLogger("vinestats")
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)

    return logger
