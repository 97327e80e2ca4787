"""Tests for claude_context.types."""

from datetime import datetime, timezone

from claude_context.types import (
    MUTATION_KEY,
    MutationState,
    Record,
    RecordKind,
    ceil_to_millisecond,
    extract_text,
    format_timestamp,
    midpoint,
    parse_timestamp,
    truncate_text,
)


class TestTimestamps:
    def test_parse_z_suffix(self):
        assert parse_timestamp("2025-01-01T10:00:00.000Z") == datetime(2025, 1, 1, 10, tzinfo=timezone.utc)

    def test_parse_invalid(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(None) is None
        assert parse_timestamp(12) is None

    def test_naive_is_utc(self):
        assert parse_timestamp("2025-01-01T10:00:00").tzinfo is not None

    def test_format(self):
        value = datetime(2025, 1, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-01-01T10:00:00.123Z"

    def test_midpoint_floors_to_millisecond(self):
        a = parse_timestamp("2025-01-01T10:00:00.000Z")
        b = parse_timestamp("2025-01-01T10:00:00.003Z")
        assert format_timestamp(midpoint(a, b)) == "2025-01-01T10:00:00.001Z"

    def test_ceil_to_millisecond(self):
        value = datetime(2025, 1, 1, 10, 0, 0, 500, tzinfo=timezone.utc)
        assert format_timestamp(ceil_to_millisecond(value)) == "2025-01-01T10:00:00.001Z"
        whole = datetime(2025, 1, 1, 10, 0, 0, 2000, tzinfo=timezone.utc)
        assert ceil_to_millisecond(whole) == whole


class TestRecordKind:
    def test_known_kinds(self):
        assert RecordKind.of({"type": "user"}) is RecordKind.USER
        assert RecordKind.of({"type": "assistant"}) is RecordKind.ASSISTANT
        assert RecordKind.of({"type": "summary"}) is RecordKind.SUMMARY

    def test_everything_else_is_other(self):
        assert RecordKind.of({"type": "system"}) is RecordKind.OTHER
        assert RecordKind.of({"type": "other"}) is RecordKind.OTHER
        assert RecordKind.of({}) is RecordKind.OTHER


class TestExtractText:
    def test_joins_text_blocks(self):
        entry = {
            "message": {
                "content": [
                    {"type": "text", "text": "a"},
                    {"type": "tool_use", "input": {}},
                    {"type": "text", "text": "b"},
                ]
            }
        }
        assert extract_text(entry) == "ab"

    def test_scalar_content(self):
        assert extract_text({"message": {"content": "hi"}}) == "hi"

    def test_top_level_content_and_summary(self):
        assert extract_text({"content": "system note"}) == "system note"
        assert extract_text({"summary": "topic"}) == "topic"

    def test_nothing(self):
        assert extract_text({"type": "file-history-snapshot"}) == ""

    def test_truncate(self):
        assert truncate_text("abcdef", 3) == "abc...[truncated]"
        assert truncate_text("abc", 3) == "abc"
        assert truncate_text("abcdef", None) == "abcdef"


class TestRecord:
    def test_accessors(self):
        record = Record(
            index=2,
            data={
                "uuid": "u",
                "parentUuid": "p",
                "type": "user",
                "message": {"content": [{"type": "tool_result", "content": "x"}]},
                "toolUseResult": {"stdout": "x"},
                MUTATION_KEY: {"deleted": True, "imported": True},
            },
        )
        assert (record.uuid, record.parent_uuid, record.kind) == ("u", "p", RecordKind.USER)
        assert record.is_tool_record
        assert not record.has_tool_invocation
        assert record.is_deleted and record.is_imported
        assert record.tool_use_result == {"stdout": "x"}

    def test_mutation_state_tolerates_garbage(self):
        assert MutationState.of({MUTATION_KEY: "nonsense"}) == MutationState()
