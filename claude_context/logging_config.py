"""Logging setup for claude-context.

Two outputs, both under ``<data dir>/logs``:

- ``local-YYYY-MM-DD.log``: the ``claude_context`` logger's records;
- ``edit-events-YYYY-MM-DD.log``: one line per write to a transcript, so a
  user can see what was deleted, restored or compacted and when.

Console output goes to stderr and only at DEBUG: stdout carries the MCP
stdio transport.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from claude_context.config import get_settings

LOGGER_NAME = "claude_context"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _log_dir() -> Path:
    log_dir = get_settings()["data_dir"] / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``claude_context`` logger.

    Safe to call repeatedly; handlers are only added once.
    """
    level_name = (level or "INFO").upper()
    if level_name not in _VALID_LEVELS:
        level_name = "INFO"
    numeric_level = getattr(logging, level_name)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(LOG_FORMAT)

    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        log_file = _log_dir() / f"local-{_today()}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if numeric_level == logging.DEBUG and not has_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger


def log_edit_event(event_type: str, details: str, session_id: Optional[str] = None) -> None:
    """Append one line to today's edit-event log."""
    timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    line = f"{timestamp} | {event_type} | session={session_id or 'unknown'} | {details}\n"
    try:
        with open(_log_dir() / f"edit-events-{_today()}.log", "a", encoding="utf-8") as f:
            f.write(line)
    except OSError as e:
        logging.getLogger(__name__).warning(f"Failed to write edit event: {e}")


def log_delete(session_id: Optional[str], requested: int, deleted: int) -> None:
    log_edit_event("delete", f"requested={requested}, deleted={deleted}", session_id)


def log_restore(session_id: Optional[str], requested: int, restored: int) -> None:
    log_edit_event("restore", f"requested={requested}, restored={restored}", session_id)


def log_replace(session_id: Optional[str], index: int, new_chars: int) -> None:
    log_edit_event("replace", f"line={index}, new_chars={new_chars}", session_id)


def log_compact(session_id: Optional[str], record_id: str, position: str, chars: int) -> None:
    log_edit_event(
        "compact", f"id={record_id[:8]}..., position={position}, chars={chars}", session_id
    )


def log_repair(session_id: Optional[str], timestamps: int, parents: int) -> None:
    log_edit_event("repair", f"timestamps={timestamps}, parents={parents}", session_id)
