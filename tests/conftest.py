"""Shared fixtures for claude-context tests."""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest

from claude_context.codec import dumps_record
from claude_context.config import SessionConfig
from claude_context.service import ContextService
from claude_context.types import format_timestamp

SESSION_ID = "11111111-2222-3333-4444-555555555555"
BASE_TIME = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def to_jsonl(entries: List[Dict[str, Any]], trailing_newline: bool = True) -> str:
    """Encode entries the way Claude Code writes a transcript."""
    text = "\n".join(dumps_record(e) for e in entries)
    if trailing_newline and entries:
        text += "\n"
    return text


def parse_jsonl(text: str) -> List[Dict[str, Any]]:
    return [json.loads(line) for line in text.split("\n") if line.strip()]


class ProjectSession:
    """A project directory with one current session transcript."""

    def __init__(self, cwd: Path, path: Path):
        self.cwd = cwd
        self.path = path

    def write(self, entries: List[Dict[str, Any]], trailing_newline: bool = True) -> str:
        text = to_jsonl(entries, trailing_newline)
        self.path.write_text(text, encoding="utf-8")
        return text

    def text(self) -> str:
        return self.path.read_text(encoding="utf-8")

    def entries(self) -> List[Dict[str, Any]]:
        return parse_jsonl(self.text())

    def service(self) -> ContextService:
        return ContextService(str(self.cwd), SessionConfig(session_id=SESSION_ID))


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Point data and projects directories at the test's temp directory."""
    data_dir = tmp_path / "data"
    projects_dir = tmp_path / "projects"
    monkeypatch.setenv("CLAUDE_CONTEXT_DATA_DIR", str(data_dir))
    monkeypatch.setenv("CLAUDE_CONTEXT_PROJECTS_DIR", str(projects_dir))
    for name in (
        "CLAUDE_CONTEXT_LOG_LEVEL",
        "CLAUDE_CONTEXT_MAX_FIELD_SIZE",
        "CLAUDE_CONTEXT_GIT_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    return {"data_dir": data_dir, "projects_dir": projects_dir}


@pytest.fixture(autouse=True)
def clean_claude_context_logger():
    """Remove all handlers from the claude_context logger before/after each test."""
    logger = logging.getLogger("claude_context")

    def _clear():
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)

    _clear()
    yield
    _clear()


@pytest.fixture
def make_entry():
    """Factory for transcript records.

    Each call gets a distinct uuid (``uuid-N``) and a timestamp one second
    after the previous record's unless given explicitly.
    """
    counter = {"n": 0}

    def _make(
        kind: str = "user",
        content: Any = "hello",
        *,
        uuid: str = None,
        parent: str = None,
        timestamp: str = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        n = counter["n"]
        counter["n"] += 1
        entry: Dict[str, Any] = {
            "parentUuid": parent,
            "type": kind,
            "uuid": uuid or f"uuid-{n}",
            "timestamp": timestamp or format_timestamp(BASE_TIME + timedelta(seconds=n)),
        }
        if kind in ("user", "assistant"):
            entry["message"] = {"role": kind, "content": content}
        elif kind == "summary":
            entry["summary"] = content
        entry.update(extra)
        return entry

    return _make


@pytest.fixture
def conversation(make_entry):
    """A short session with one Read tool round trip.

    0 user text, 1 assistant text, 2 assistant tool_use (Read),
    3 user tool_result, 4 assistant text.
    """
    u0 = make_entry("user", "Please check the config file", uuid="u0")
    a1 = make_entry(
        "assistant",
        [{"type": "thinking", "thinking": "Need to read it."}, {"type": "text", "text": "Sure, reading it."}],
        uuid="a1",
        parent="u0",
    )
    a2 = make_entry(
        "assistant",
        [
            {
                "type": "tool_use",
                "id": "toolu_1",
                "name": "Read",
                "input": {"file_path": "/repo/config.yaml"},
            }
        ],
        uuid="a2",
        parent="a1",
    )
    u3 = make_entry(
        "user",
        [{"type": "tool_result", "tool_use_id": "toolu_1", "content": "key: value"}],
        uuid="u3",
        parent="a2",
        toolUseResult={"type": "text", "file": {"filePath": "/repo/config.yaml", "content": "key: value"}},
    )
    a4 = make_entry(
        "assistant",
        [{"type": "text", "text": "The config sets key to value."}],
        uuid="a4",
        parent="u3",
    )
    return [u0, a1, a2, u3, a4]


@pytest.fixture
def session(tmp_path, isolated_dirs):
    """An empty current session transcript for a project directory."""
    cwd = tmp_path / "project"
    cwd.mkdir()
    directory = isolated_dirs["projects_dir"] / str(cwd).replace("/", "-")
    directory.mkdir(parents=True)
    path = directory / f"{SESSION_ID}.jsonl"
    path.write_text("", encoding="utf-8")
    return ProjectSession(cwd, path)
