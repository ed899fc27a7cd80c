# snoostream/utils/log.py
# Logging for snoostream. Everything hangs off the "snoostream" package logger;
# the root logger and its level belong to the host application.
#
#   LOG_LEVEL=DEBUG        level for the snoostream logger (unset: inherit)
#   LOG_TO_CONSOLE=true    attach a stderr handler to the snoostream logger
#   LOG_TO_FILE=true       attach a rotating file handler (LOG_DIR, LOG_MAX_BYTES, LOG_BACKUPS)

from __future__ import annotations
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

PACKAGE_LOGGER = "snoostream"

_FMT = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

_INITIALIZED = False


def _init_package() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    pkg = logging.getLogger(PACKAGE_LOGGER)
    pkg.addHandler(logging.NullHandler())

    level = os.getenv("LOG_LEVEL", "").strip().upper()
    if isinstance(getattr(logging, level, None), int):
        pkg.setLevel(getattr(logging, level))

    if os.getenv("LOG_TO_CONSOLE", "false").lower() == "true":
        ch = logging.StreamHandler()
        ch.setFormatter(_FMT)
        pkg.addHandler(ch)

    if os.getenv("LOG_TO_FILE", "false").lower() == "true":
        log_dir = Path(os.getenv("LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            log_dir / "snoostream.log",
            maxBytes=int(os.getenv("LOG_MAX_BYTES", "1048576")),
            backupCount=int(os.getenv("LOG_BACKUPS", "5")),
        )
        fh.setFormatter(_FMT)
        pkg.addHandler(fh)

    _INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a child of the snoostream logger, e.g. get_logger("stream") -> "snoostream.stream"."""
    _init_package()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
