from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty third-party loggers; their DEBUG output drowns the sweep progress.
NOISY_LOGGERS = ("selenium", "urllib3", "scrapy", "parsel")


def configure_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Install stdout (and optionally rotating file) handlers on the root logger.

    Safe to call more than once; previously installed handlers are replaced so
    repeated CLI invocations in one process do not duplicate lines.
    """
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = []

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(formatter)
    handlers.append(stdout)

    if logfile:
        file_handler = RotatingFileHandler(
            logfile,
            maxBytes=10 * 1024 * 1024,
            backupCount=2,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
