"""
Shared record types for claude-context.

A session transcript is a JSONL file; each line is one record. Records are
kept as their raw JSON objects so fields this package does not know about
survive every rewrite untouched. :class:`Record` is a thin, read-only view
that adds the record's address and typed accessors.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

# Reserved key holding the mutation state (deleted / imported / original backup).
MUTATION_KEY = "claude-context-service-mcp"

# Payload written in place of redacted content.
REDACTED_MARKER = (
    "<system-reminder>This content has been removed for context optimization.</system-reminder>"
)

TRUNCATION_SUFFIX = "...[truncated]"


# === Timestamps ===


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning ``None`` for missing or invalid values.

    Naive timestamps are taken to be UTC so every parsed value is comparable.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way transcript writers do: ``2025-01-01T10:00:00.000Z``."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def utc_now() -> str:
    """Current time as a transcript timestamp."""
    return format_timestamp(datetime.now(timezone.utc))


def midpoint(earlier: datetime, later: datetime) -> datetime:
    """Midpoint of two instants, rounded down to the millisecond."""
    half_ms = int((later - earlier) / timedelta(milliseconds=1)) // 2
    return earlier + timedelta(milliseconds=half_ms)


def ceil_to_millisecond(value: datetime) -> datetime:
    """Round up to the next whole millisecond, the precision timestamps are written at."""
    remainder = value.microsecond % 1000
    if remainder:
        value += timedelta(microseconds=1000 - remainder)
    return value


# === Enums ===


class RecordKind(str, Enum):
    """Closed set of record variants.

    Anything the engine does not recognise (``system``, ``file-history-snapshot``
    and so on) is ``OTHER`` and is handled as a no-op by every mutation.
    """

    USER = "user"
    ASSISTANT = "assistant"
    SUMMARY = "summary"
    OTHER = "other"

    @classmethod
    def of(cls, entry: Dict[str, Any]) -> "RecordKind":
        value = entry.get("type")
        for kind in (cls.USER, cls.ASSISTANT, cls.SUMMARY):
            if value == kind.value:
                return kind
        return cls.OTHER


class BlockType(str, Enum):
    """Content block tags inside ``message.content`` lists."""

    TEXT = "text"
    THINKING = "thinking"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"


TOOL_BLOCK_TYPES = frozenset({BlockType.TOOL_USE.value, BlockType.TOOL_RESULT.value})


# === Helpers over raw entries ===


def message_of(entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    message = entry.get("message")
    return message if isinstance(message, dict) else None


def content_blocks(entry: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Content blocks of a record, or an empty list when content is scalar/absent."""
    message = message_of(entry)
    if message is None:
        return []
    content = message.get("content")
    if not isinstance(content, list):
        return []
    return [block for block in content if isinstance(block, dict)]


def has_block(entry: Dict[str, Any], block_type: BlockType) -> bool:
    return any(block.get("type") == block_type.value for block in content_blocks(entry))


def has_tool_blocks(entry: Dict[str, Any]) -> bool:
    """True if the record carries a tool invocation or a tool result."""
    return any(block.get("type") in TOOL_BLOCK_TYPES for block in content_blocks(entry))


def extract_text(entry: Dict[str, Any]) -> str:
    """Display text of a record.

    Joined ``text`` blocks for block content, the string itself for scalar
    content, otherwise a top-level ``content`` or ``summary`` string.
    """
    message = message_of(entry)
    if message is not None and message.get("content"):
        content = message["content"]
        if isinstance(content, list):
            return "".join(
                str(block.get("text", ""))
                for block in content
                if isinstance(block, dict) and block.get("type") == BlockType.TEXT.value
            )
        if isinstance(content, str):
            return content
        return ""
    if isinstance(entry.get("content"), str) and entry["content"]:
        return entry["content"]
    if isinstance(entry.get("summary"), str) and entry["summary"]:
        return entry["summary"]
    return ""


def truncate_text(text: str, max_field_size: Optional[int]) -> str:
    """Cut ``text`` to ``max_field_size`` characters; zero, negative or None means no limit."""
    if max_field_size is None or max_field_size <= 0:
        return text
    if len(text) > max_field_size:
        return text[:max_field_size] + TRUNCATION_SUFFIX
    return text


# === Record types ===


@dataclass(frozen=True)
class MutationState:
    """Read-only view of the reserved mutation-state namespace."""

    deleted: bool = False
    imported: bool = False
    original: Optional[Dict[str, Any]] = None

    @classmethod
    def of(cls, entry: Dict[str, Any]) -> "MutationState":
        raw = entry.get(MUTATION_KEY)
        if not isinstance(raw, dict):
            return cls()
        original = raw.get("original")
        return cls(
            deleted=bool(raw.get("deleted")),
            imported=bool(raw.get("imported")),
            original=original if isinstance(original, dict) else None,
        )


@dataclass
class Record:
    """One decoded transcript line.

    ``index`` is the record's position among the non-blank lines of the log
    and is the address every operation uses.
    """

    index: int
    data: Dict[str, Any] = field(default_factory=dict)
    line_number: int = 0  # 0-based physical line in the source text

    @property
    def uuid(self) -> Optional[str]:
        return self.data.get("uuid")

    @property
    def parent_uuid(self) -> Optional[str]:
        return self.data.get("parentUuid")

    @property
    def timestamp(self) -> Optional[str]:
        return self.data.get("timestamp")

    @property
    def kind(self) -> RecordKind:
        return RecordKind.of(self.data)

    @property
    def content(self) -> Any:
        message = message_of(self.data)
        return message.get("content") if message is not None else None

    @property
    def blocks(self) -> List[Dict[str, Any]]:
        return content_blocks(self.data)

    @property
    def tool_use_result(self) -> Any:
        return self.data.get("toolUseResult")

    @property
    def mutation_state(self) -> MutationState:
        return MutationState.of(self.data)

    @property
    def is_deleted(self) -> bool:
        return self.mutation_state.deleted

    @property
    def is_imported(self) -> bool:
        return self.mutation_state.imported

    @property
    def has_tool_invocation(self) -> bool:
        return has_block(self.data, BlockType.TOOL_USE)

    @property
    def is_tool_record(self) -> bool:
        return has_tool_blocks(self.data)

    def text(self) -> str:
        return extract_text(self.data)
