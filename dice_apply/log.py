"""Logging setup: console plus a daily file under logs/."""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = _ROOT / ".env"
LOG_DIR = _ROOT / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
# HTTP client chatter drowns the per-job lines at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")
_ready = False


def get_logger(name: str) -> logging.Logger:
    """Named logger; the root handlers are installed by the first call."""
    global _ready
    if not _ready:
        _setup_root()
        _ready = True
    return logging.getLogger(name)


def _wants_file() -> bool:
    return os.environ.get("LOG_TO_FILE", "true").strip().lower() in ("1", "true", "yes", "on")


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FMT))
    return handler


def _setup_root() -> None:
    # LOG_LEVEL / LOG_TO_FILE may live in .env
    load_dotenv(ENV_FILE)
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").strip().upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # pytest / embedding apps may already own the root handlers
    if root.handlers:
        return

    root.addHandler(_handler(logging.StreamHandler(sys.stdout), level))
    if not _wants_file():
        return
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        path = LOG_DIR / f"apply_{date.today():%Y-%m-%d}.log"
        root.addHandler(_handler(logging.FileHandler(path, encoding="utf-8"), logging.DEBUG))
    except OSError:
        pass
