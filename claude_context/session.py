"""Session file resolution and storage.

Maps a working directory to Claude Code's transcript directory, picks the
current transcript, and owns the whole-file read/write boundary the engine
relies on. Also hosts the cross-session keyword search.
"""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from claude_context.config import SessionConfig, get_settings
from claude_context.errors import InvalidArgumentError
from claude_context.types import has_tool_blocks

logger = logging.getLogger(__name__)

CURRENT_SESSION_FILE = "current-session.jsonl"
SNIPPET_RADIUS = 50
DEFAULT_VERSION = "1.0.0"


@dataclass
class SessionSearchMatch:
    index: int
    snippet: str

    def to_dict(self) -> Dict[str, Any]:
        return {"lineNumber": self.index, "snippet": self.snippet}


@dataclass
class SessionSearchResult:
    session_path: Path
    matches: List[SessionSearchMatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionPath": str(self.session_path),
            "matches": [m.to_dict() for m in self.matches],
        }


def project_dir(cwd: str, config: SessionConfig) -> Path:
    """Transcript directory for a working directory.

    The configured transcript's directory wins; otherwise Claude Code's
    convention of the cwd with every ``/`` replaced by ``-``.
    """
    if config.transcript_path is not None:
        return config.transcript_path.parent
    return get_settings()["projects_dir"] / str(cwd).replace("/", "-")


def _ensure_file(path: Path) -> None:
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")
        logger.info(f"Created empty session file {path}")


def resolve_current_session(cwd: str, config: SessionConfig) -> Optional[Path]:
    """Path of the current session transcript, or ``None`` if there is none.

    Resolution order: the configured transcript path; ``<session_id>.jsonl``
    in the project directory; ``current-session.jsonl``; the
    lexicographically last ``*.jsonl``. The first two are created empty when
    missing.
    """
    if config.transcript_path is not None:
        _ensure_file(config.transcript_path)
        return config.transcript_path

    directory = project_dir(cwd, config)
    if not directory.exists():
        return None

    if config.session_id:
        session_file = directory / f"{config.session_id}.jsonl"
        _ensure_file(session_file)
        return session_file

    current = directory / CURRENT_SESSION_FILE
    if current.exists():
        return current

    files = sorted(directory.glob("*.jsonl"), reverse=True)
    if files:
        return files[0]
    return None


def list_session_files(cwd: str, config: SessionConfig) -> List[Path]:
    """All transcripts of the project, sorted by name."""
    directory = project_dir(cwd, config)
    if not directory.exists():
        return []
    return sorted(directory.glob("*.jsonl"))


def session_file_for(cwd: str, config: SessionConfig, session_id: str) -> Path:
    """Path of another session's transcript in the same project."""
    if not session_id or "/" in session_id or "\\" in session_id or session_id in (".", ".."):
        raise InvalidArgumentError(f"Invalid session id: {session_id!r}")
    name = session_id if session_id.endswith(".jsonl") else f"{session_id}.jsonl"
    return project_dir(cwd, config) / name


def read_session_file(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_session_file(path: Path, text: str) -> None:
    """Replace the whole transcript in one write."""
    Path(path).write_text(text, encoding="utf-8")


# =============================================================================
# CROSS-SESSION SEARCH
# =============================================================================


def _raw_snippet(line: str, keyword: str) -> str:
    pos = line.find(keyword)
    start = max(0, pos - SNIPPET_RADIUS)
    end = min(len(line), pos + len(keyword) + SNIPPET_RADIUS)
    snippet = line[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(line):
        snippet = snippet + "..."
    return snippet


def _match_line(line: str, keyword: str) -> Optional[str]:
    """Snippet for a matching line, or ``None`` when the line should be skipped."""
    try:
        entry = json.loads(line)
    except json.JSONDecodeError:
        return _raw_snippet(line, keyword)

    if not isinstance(entry, dict):
        return _raw_snippet(line, keyword)
    if has_tool_blocks(entry):
        return None
    for value in entry.values():
        if isinstance(value, str) and keyword in value:
            return value
    return _raw_snippet(line, keyword)


def find_sessions_by_keyword(files: Sequence[Path], keyword: str) -> List[SessionSearchResult]:
    """Case-sensitive keyword search over whole transcript files.

    Lines holding tool traffic are skipped. Match addresses are record
    indices, the same addresses the editing operations use.
    """
    results = []
    for path in files:
        try:
            text = read_session_file(path)
        except OSError as e:
            logger.warning(f"Skipping unreadable session {path}: {e}")
            continue

        matches = []
        lines = [line for line in text.split("\n") if line.strip()]
        for index, line in enumerate(lines):
            if keyword not in line:
                continue
            snippet = _match_line(line, keyword)
            if snippet is not None:
                matches.append(SessionSearchMatch(index=index, snippet=snippet))

        if matches:
            results.append(SessionSearchResult(session_path=path, matches=matches))
    return results


# =============================================================================
# METADATA FOR SYNTHETIC RECORDS
# =============================================================================


def current_git_branch(cwd: str, timeout: int = 5) -> str:
    """Current git branch of ``cwd``, or ``""`` outside a repository."""
    try:
        result = subprocess.run(
            ["git", "branch", "--show-current"],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
        logger.debug(f"git branch lookup failed: {e}")
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def project_version(cwd: str) -> str:
    """``version`` from the project's package.json, else ``1.0.0``."""
    package_json = Path(cwd) / "package.json"
    if not package_json.exists():
        return DEFAULT_VERSION
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.debug(f"Could not read {package_json}: {e}")
        return DEFAULT_VERSION
    if isinstance(data, dict) and isinstance(data.get("version"), str) and data["version"]:
        return data["version"]
    return DEFAULT_VERSION
