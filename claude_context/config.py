"""Session configuration and environment settings.

The session to edit is identified by ``<cwd>/.claude/session-config.json``,
written by the ``claude-context hook session-start`` command from the data
Claude Code hands its hooks. The config is loaded into an explicit
:class:`SessionConfig` value that callers pass to the service; reloading it
is the only way to pick up a change.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".claude"
CONFIG_FILE_NAME = "session-config.json"

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


@dataclass(frozen=True)
class SessionConfig:
    """Which session the service operates on."""

    session_id: Optional[str] = None
    transcript_path: Optional[Path] = None

    @property
    def is_empty(self) -> bool:
        return self.session_id is None and self.transcript_path is None


def get_config_path(cwd: str) -> Path:
    return Path(cwd) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _session_id_from_transcript(transcript_path: str) -> Optional[str]:
    stem = Path(transcript_path).stem
    if UUID_PATTERN.match(stem):
        return stem
    return None


def load_session_config(cwd: str) -> SessionConfig:
    """Read the session config for ``cwd``.

    The session id is the explicit ``sessionId`` when present, otherwise the
    transcript file's stem if it looks like a UUID. A missing or unreadable
    file gives an empty config.
    """
    config_path = get_config_path(cwd)
    if not config_path.exists():
        return SessionConfig()

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to read session config {config_path}: {e}")
        return SessionConfig()

    if not isinstance(raw, dict):
        logger.warning(f"Ignoring session config {config_path}: not a JSON object")
        return SessionConfig()

    transcript = raw.get("transcript_path") or None
    session_id = raw.get("sessionId") or None
    if session_id is None and transcript:
        session_id = _session_id_from_transcript(transcript)

    return SessionConfig(
        session_id=session_id,
        transcript_path=Path(transcript).expanduser() if transcript else None,
    )


def save_session_config(
    cwd: str,
    session_id: Optional[str] = None,
    transcript_path: Optional[str] = None,
) -> Path:
    """Write the session config for ``cwd`` and return its path."""
    config_path = get_config_path(cwd)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    payload: Dict[str, Any] = {}
    if session_id:
        payload["sessionId"] = session_id
    if transcript_path:
        payload["transcript_path"] = str(transcript_path)

    config_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.debug(f"Saved session config to {config_path}")
    return config_path


def get_data_dir() -> Path:
    """Directory for claude-context's own logs."""
    env_dir = os.environ.get("CLAUDE_CONTEXT_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".claude-context"


def get_projects_dir() -> Path:
    """Directory Claude Code keeps per-project transcripts in."""
    env_dir = os.environ.get("CLAUDE_CONTEXT_PROJECTS_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".claude" / "projects"


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={value!r}, using {default}")
        return default


def get_settings() -> Dict[str, Any]:
    """Read runtime settings from environment variables."""
    return {
        "data_dir": get_data_dir(),
        "projects_dir": get_projects_dir(),
        "log_level": os.environ.get("CLAUDE_CONTEXT_LOG_LEVEL", "WARNING"),
        "max_field_size": _int_env("CLAUDE_CONTEXT_MAX_FIELD_SIZE", 1000),
        "git_timeout": _int_env("CLAUDE_CONTEXT_GIT_TIMEOUT", 5),
    }
