"""
Error types and error logging utilities for scout.

Logs full stack traces for debugging while showing clean messages to users.
"""

import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class ScoutError(Exception):
    """Base class for scout errors."""


class NotLoadedError(ScoutError):
    """The item collection has not been loaded yet."""


class SyncError(ScoutError):
    """A refresh cycle failed; the previous collection is still in place."""


ERROR_LOG_FILENAME = "scout-errors.log"
MAX_ERROR_LOG_BYTES = 512_000


def _error_log_path() -> Path:
    config_dir = os.environ.get("SCOUT_CONFIG_DIR")
    base = Path(config_dir).expanduser() if config_dir else Path.home() / ".scout"
    return base / ERROR_LOG_FILENAME


def format_error_entry(exc: BaseException, context: str = "") -> str:
    """
    One error log entry: a header naming when, where and what failed,
    then the chained traceback (SyncError entries include their cause).
    """
    timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    where = context or "scout"
    command = " ".join(sys.argv) if sys.argv else "-"
    header = f"[{timestamp}] {where}: {type(exc).__name__}: {exc}"
    body = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return f"{'-' * 72}\n{header}\ncommand: {command}\n{body}"


def log_exception(exc: BaseException, context: str = "") -> Path:
    """
    Append exc to the error log and return the log's path.

    The log is rolled over to ``scout-errors.log.1`` once it grows past
    MAX_ERROR_LOG_BYTES. A failed write is only logged at debug level;
    the caller has already shown the user a message.
    """
    log_path = _error_log_path()
    entry = format_error_entry(exc, context)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if log_path.exists() and log_path.stat().st_size > MAX_ERROR_LOG_BYTES:
            log_path.replace(log_path.with_name(log_path.name + ".1"))
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a", encoding="utf-8") as f:
            f.write(entry)
    except OSError as e:
        logger.debug("Could not write error log %s: %s", log_path, e)
    return log_path
