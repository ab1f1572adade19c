"""Central logging configuration.

Usage:
    from pdbviewer.utils.logging_config import configure_logging
    configure_logging(json_logs=False, level="INFO")

Idempotent: safe to call multiple times. Configures both the loguru logger used
throughout the package and the stdlib root logger (uvicorn, httpx).
"""
from __future__ import annotations
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

import json_log_formatter
from loguru import logger

_CONFIGURED = False

_PLAIN_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
_LOGURU_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {name} | {message}"


def _formatter(json_logs: bool) -> logging.Formatter:
    if json_logs:
        return json_log_formatter.JSONFormatter()
    return logging.Formatter(fmt=_PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def configure_logging(json_logs: bool = False, level: str = "INFO") -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    level = level.upper()

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_formatter(json_logs))
    root.addHandler(console_handler)

    logger.remove()
    logger.add(sys.stdout, level=level, serialize=json_logs, format=_LOGURU_FORMAT)

    # Optional rotating files controlled by env PDBVIEWER_LOG_FILE
    # (stdlib records go to the file itself, loguru records to <file>.app)
    log_file = os.getenv('PDBVIEWER_LOG_FILE')
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=5_000_000, backupCount=3)
        file_handler.setFormatter(_formatter(json_logs))
        root.addHandler(file_handler)
        logger.add(f"{log_file}.app", level=level, serialize=json_logs, rotation="5 MB", retention=3)
    _CONFIGURED = True


def reset_logging() -> None:
    """Allow configure_logging() to run again (used by tests)."""
    global _CONFIGURED
    _CONFIGURED = False
