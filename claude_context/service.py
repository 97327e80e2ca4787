"""Context service: the operations exposed to MCP clients and the CLI.

Each mutating operation reads the whole transcript, decodes it strictly,
computes a sparse update map with the pure engine functions, re-encodes in
memory and writes once. Nothing is written when nothing changed, and any
failure happens before the write.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from claude_context import mutator
from claude_context.codec import apply_updates, decode_strict
from claude_context.config import SessionConfig, get_settings
from claude_context.errors import (
    InvalidArgumentError,
    NoCurrentLogError,
    RecordNotFoundError,
    SessionNotFoundError,
)
from claude_context.insertion import build_summary_record, plan_summary_insertion
from claude_context.logging_config import (
    log_compact,
    log_delete,
    log_repair,
    log_replace,
    log_restore,
)
from claude_context.repair import RepairResult, repair_log
from claude_context.session import (
    SessionSearchResult,
    current_git_branch,
    find_sessions_by_keyword,
    list_session_files,
    project_version,
    read_session_file,
    resolve_current_session,
    session_file_for,
    write_session_file,
)
from claude_context.types import BlockType, Record, RecordKind, content_blocks
from claude_context.window import LogLine, Window, project

logger = logging.getLogger(__name__)

FILE_TOOLS = ("Read", "Edit")
SEARCH_TARGETS = ["content", "type", "all"]


@dataclass(frozen=True)
class FileReadResult:
    """A tool-result record produced by a file-reading/editing tool call."""

    index: int
    file_path: str

    def to_dict(self) -> Dict[str, Any]:
        return {"lineNumber": self.index, "filePath": self.file_path}


def _file_tool_path(entry: Dict[str, Any]) -> Optional[str]:
    """``input.file_path`` of the first Read/Edit invocation in an assistant record."""
    if RecordKind.of(entry) is not RecordKind.ASSISTANT:
        return None
    for block in content_blocks(entry):
        if block.get("type") != BlockType.TOOL_USE.value or block.get("name") not in FILE_TOOLS:
            continue
        tool_input = block.get("input")
        if isinstance(tool_input, dict) and tool_input.get("file_path"):
            return tool_input["file_path"]
    return None


class ContextService:
    """Operations over the current session transcript of one working directory.

    Args:
        cwd: The project's working directory.
        config: Session selection. Pass a fresh value to switch sessions.
    """

    def __init__(self, cwd: str, config: Optional[SessionConfig] = None):
        self.cwd = str(cwd)
        self.config = config or SessionConfig()

    # -------------------------------------------------------------------------
    # File boundary
    # -------------------------------------------------------------------------

    def current_session_path(self) -> Optional[Path]:
        return resolve_current_session(self.cwd, self.config)

    def _require_session(self) -> Path:
        path = self.current_session_path()
        if path is None:
            raise NoCurrentLogError()
        return path

    def _load(self, path: Path) -> Tuple[str, List[Record]]:
        text = read_session_file(path)
        return text, decode_strict(text)

    def _write(self, path: Path, text: str, updates: Dict[int, Dict[str, Any]]) -> None:
        if not updates:
            return
        write_session_file(path, apply_updates(text, updates))
        logger.info(f"Rewrote {len(updates)} record(s) in {path}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_current_session_log(
        self,
        window: Optional[Window] = None,
        include_deleted: bool = False,
        max_field_size: Optional[int] = None,
    ) -> List[LogLine]:
        """Display lines of the current session, excluding tool traffic."""
        path = self.current_session_path()
        if path is None:
            return []
        _, records = self._load(path)
        lines = project(records, include_deleted=include_deleted, max_field_size=max_field_size)
        return (window or Window.all()).apply(lines)

    def search_in_current_session(
        self,
        keyword: str,
        search_in: str = "all",
        include_deleted: bool = False,
        max_field_size: Optional[int] = None,
    ) -> List[LogLine]:
        """Case-insensitive keyword search over the current session.

        ``search_in`` selects what is matched: the display text (``content``),
        the record type (``type``), or either (``all``).
        """
        if search_in not in SEARCH_TARGETS:
            raise InvalidArgumentError(f"searchIn must be one of {SEARCH_TARGETS}")
        path = self.current_session_path()
        if path is None:
            return []
        _, records = self._load(path)

        needle = keyword.lower()
        matched: List[Record] = []
        for record in records:
            if record.is_tool_record:
                continue
            in_content = needle in record.text().lower()
            in_type = needle in str(record.data.get("type", "")).lower()
            if (
                (search_in == "content" and in_content)
                or (search_in == "type" and in_type)
                or (search_in == "all" and (in_content or in_type))
            ):
                matched.append(record)
        return project(matched, include_deleted=include_deleted, max_field_size=max_field_size)

    def count_current_session_lines(self, include_deleted: bool = True) -> int:
        path = self.current_session_path()
        if path is None:
            return 0
        _, records = self._load(path)
        if include_deleted:
            return len(records)
        return sum(1 for r in records if not r.is_deleted)

    def extract_file_read_results(
        self, window: Optional[Window] = None, include_deleted: bool = False
    ) -> List[FileReadResult]:
        """Tool-result records whose invocation was a ``Read`` or ``Edit`` call.

        These are usually the largest records in a transcript, which makes
        them the first candidates for deletion.
        """
        path = self.current_session_path()
        if path is None:
            return []
        _, records = self._load(path)

        by_uuid = {r.uuid: r for r in records if r.uuid and r.kind is RecordKind.ASSISTANT}
        results = []
        for record in records:
            if record.is_deleted and not include_deleted:
                continue
            if record.kind is not RecordKind.USER or not record.tool_use_result:
                continue
            invocation = by_uuid.get(record.parent_uuid)
            if invocation is None:
                continue
            file_path = _file_tool_path(invocation.data)
            if file_path:
                results.append(FileReadResult(index=record.index, file_path=file_path))
        return (window or Window.all()).apply(results)

    def read_other_session(
        self,
        session_id: str,
        window: Window,
        max_field_size: Optional[int] = None,
    ) -> List[LogLine]:
        """Read-only view of another session of the same project."""
        path = session_file_for(self.cwd, self.config, session_id)
        if not path.exists():
            raise SessionNotFoundError(session_id)
        text = read_session_file(path)
        if not text.strip():
            return []
        lines = project(decode_strict(text), include_deleted=True, max_field_size=max_field_size)
        return window.apply(lines)

    def search_across_sessions(self, keyword: str) -> List[SessionSearchResult]:
        return find_sessions_by_keyword(list_session_files(self.cwd, self.config), keyword)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def delete_from_context(
        self,
        lines: Optional[Sequence[int]] = None,
        from_line: Optional[int] = None,
        skip_imported: bool = False,
    ) -> int:
        """Redact records in place; returns how many were actually redacted.

        Already-deleted records, unknown indices and (with ``skip_imported``)
        imported records are left alone and not counted.
        """
        if lines is None and from_line is None:
            raise InvalidArgumentError("Either lines or fromLine must be specified")

        path = self._require_session()
        text, records = self._load(path)

        targets: List[int] = list(lines or [])
        if from_line is not None:
            targets.extend(range(max(from_line, 0), len(records)))

        updates: Dict[int, Dict[str, Any]] = {}
        for index in dict.fromkeys(targets):
            if not 0 <= index < len(records):
                continue
            redacted = mutator.redact(records[index].data, skip_imported=skip_imported)
            if redacted is not None:
                updates[index] = redacted

        self._write(path, text, updates)
        if updates:
            log_delete(self.config.session_id, len(targets), len(updates))
        return len(updates)

    def restore_to_context(self, lines: Sequence[int]) -> int:
        """Undo deletions and replacements; returns how many records were restored."""
        path = self._require_session()
        text, records = self._load(path)

        updates: Dict[int, Dict[str, Any]] = {}
        for index in dict.fromkeys(lines):
            if not 0 <= index < len(records):
                continue
            restored = mutator.restore(records[index].data)
            if restored is not None:
                updates[index] = restored

        self._write(path, text, updates)
        if updates:
            log_restore(self.config.session_id, len(lines), len(updates))
        return len(updates)

    def replace_in_context(self, line: int, new_content: str) -> bool:
        """Replace one record's content. Returns ``False`` when the record refuses it.

        Raises:
            RecordNotFoundError: if ``line`` has no record.
        """
        path = self._require_session()
        text, records = self._load(path)
        if not 0 <= line < len(records):
            raise RecordNotFoundError(line)

        replaced = mutator.replace(records[line].data, new_content)
        if replaced is None:
            logger.info(f"Replace refused for line {line} ({records[line].kind.value})")
            return False

        self._write(path, text, {line: replaced})
        log_replace(self.config.session_id, line, len(new_content))
        return True

    def add_custom_compact_entry(self, content: str) -> str:
        """Insert a compact-summary record; returns its uuid.

        The record goes in front of the last tool invocation when there is
        one, so it never separates a tool_use from its tool_result.
        """
        path = self._require_session()
        text, records = self._load(path)

        settings = get_settings()
        summary = build_summary_record(
            content,
            cwd=self.cwd,
            session_id=self.config.session_id or "",
            version=project_version(self.cwd),
            git_branch=current_git_branch(self.cwd, timeout=settings["git_timeout"]),
        )
        plan = plan_summary_insertion(records, summary)
        end_index = records[-1].index + 1 if records else 0
        write_session_file(path, plan.render(text, end_index))

        position = f"before {plan.before}" if plan.before is not None else "end"
        log_compact(self.config.session_id, plan.record["uuid"], position, len(content))
        logger.info(f"Inserted compact summary {plan.record['uuid']} ({position}) in {path}")
        return plan.record["uuid"]

    def repair_current_session(self) -> RepairResult:
        """Best-effort timestamp and parent-link repair of the current session."""
        path = self._require_session()
        result = repair_log(read_session_file(path))
        if result.changed:
            write_session_file(path, result.text)
            log_repair(self.config.session_id, result.timestamps_fixed, result.parents_fixed)
        return result
