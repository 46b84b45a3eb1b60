"""Logging setup for applications embedding crystalscene.

Library modules only create module-level loggers; handlers are
installed here, on request, for the ``crystalscene`` namespace.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure the ``crystalscene`` logger.

    Existing handlers on the namespace logger are replaced, so calling
    this twice does not duplicate output.

    Args:
        level: Logging level (e.g. ``logging.DEBUG``).
        log_file: Optional path of a file that receives the same records.

    Returns:
        The configured namespace logger.
    """
    logger = logging.getLogger("crystalscene")
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(_FORMAT, datefmt="%H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialised at level %s", logging.getLevelName(level))
    return logger
