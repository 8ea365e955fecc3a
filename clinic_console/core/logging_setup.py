# clinic_console/core/logging_setup.py
from __future__ import annotations

import logging
import sys
from typing import Optional

from clinic_console.core.config import settings

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: Optional[str] = None,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Console + optional file logging for the clinic_console package.
    Safe to call more than once; handlers are only attached once.
    """
    logger = logging.getLogger("clinic_console")
    logger.setLevel((level or settings.LOG_LEVEL or "INFO").upper())

    if getattr(logger, "_clinic_configured", False):
        return logger

    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    logger.addHandler(ch)

    path = log_file if log_file is not None else settings.LOG_FILE
    if path:
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        logger.addHandler(fh)

    logger._clinic_configured = True  # type: ignore[attr-defined]
    return logger
