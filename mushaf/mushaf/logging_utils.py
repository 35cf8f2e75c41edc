"""
Logging setup.

Every module logs through ``logging.getLogger(__name__)`` under the ``mushaf``
namespace; applications call ``setup_logging`` once to choose handlers and level.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from mushaf.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"

logger = logging.getLogger("mushaf")


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """
    Configure handlers for the ``mushaf`` logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Minimum level (defaults to settings.log_level)
        log_file: Optional file handler, rotated at 10 MB (defaults to settings.log_file)
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=10, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.propagate = False
    logger.debug("Logging configured at %s%s", level, f", file {log_file}" if log_file else "")
