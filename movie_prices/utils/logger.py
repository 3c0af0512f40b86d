"""Logging setup for the ``movie_prices`` logger tree.

Library modules only call ``logging.getLogger(__name__)``. The CLI and the
API factory call ``setup_logger`` once so every module logger under
``movie_prices`` inherits its handlers.
"""

import logging
import sys
from datetime import date
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def setup_logger(
    name: str,
    level: int | str = logging.INFO,
    log_dir: Path | None = None,
    to_file: bool = False,
) -> logging.Logger:
    """Attach a stdout handler, plus a dated file handler when asked.

    Calling it again for an already configured logger is a no-op, so the
    CLI and the API factory can both call it.

    Args:
        name: Logger name (e.g., 'movie_prices').
        level: Level as int or case-insensitive name.
        log_dir: Directory for the dated log file (default 'logs/').
        to_file: Also write ``<name>_<YYYYMMDD>.log`` under ``log_dir``.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger.setLevel(level)
    logger.propagate = False
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if to_file:
        log_path = (log_dir or Path("logs")) / f"{name.replace('.', '_')}_{date.today():%Y%m%d}.log"
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        except OSError as e:
            logger.warning("Could not open log file %s, logging to stdout only: %s", log_path, e)
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
