"""
Tests for the claude-context MCP server.

Covers tool definitions, the call_tool dispatcher over a real transcript,
input validation and error handling.
"""

import json
import logging
from unittest.mock import patch

import pytest
from jsonschema import Draft7Validator
from mcp.types import TextContent, Tool

from claude_context.config import save_session_config
from claude_context.mcp.server import (
    TOOLS,
    call_tool,
    get_service,
    handle_tool_error,
    list_tools,
    set_cwd,
    validate_tool_input,
)
from claude_context.types import MUTATION_KEY, REDACTED_MARKER
from conftest import SESSION_ID

EXPECTED_TOOLS = {
    "get-current-session-log",
    "search-in-current-session",
    "delete-from-context",
    "restore-to-context",
    "replace-in-context",
    "search-across-sessions",
    "count-current-session-lines",
    "extract-file-read-results",
    "read-other-session",
    "custom-compact",
    "repair-current-session",
}


@pytest.fixture
def mcp_session(session, conversation):
    """A project whose session config points the MCP server at ``session``."""
    session.write(conversation)
    save_session_config(str(session.cwd), session_id=SESSION_ID)
    set_cwd(str(session.cwd))
    yield session
    set_cwd(None)


async def _call(name, arguments):
    result = await call_tool(name, arguments)
    assert len(result) == 1
    assert isinstance(result[0], TextContent)
    return result[0].text


class TestMCPToolDefinitions:
    """Test MCP tool definitions and list_tools functionality."""

    @pytest.mark.asyncio
    async def test_list_tools_returns_all_tools(self):
        tools = await list_tools()
        assert all(isinstance(tool, Tool) for tool in tools)
        assert {tool.name for tool in tools} == EXPECTED_TOOLS

    def test_tool_definitions_have_required_fields(self):
        for tool in TOOLS:
            assert tool.name
            assert tool.description
            assert tool.inputSchema["type"] == "object"

    def test_schemas_are_valid_json_schema(self):
        for tool in TOOLS:
            Draft7Validator.check_schema(tool.inputSchema)


class TestGetService:
    def test_reloads_config_per_call(self, mcp_session):
        assert get_service().current_session_path() == mcp_session.path

        other = mcp_session.path.parent / "other-session.jsonl"
        save_session_config(str(mcp_session.cwd), session_id="other-session")
        assert get_service().current_session_path() == other

    def test_without_config_uses_newest_transcript(self, session, caplog):
        set_cwd(str(session.cwd))
        try:
            with caplog.at_level(logging.DEBUG, logger="claude_context.mcp.server"):
                service = get_service()
        finally:
            set_cwd(None)
        assert service.config.is_empty
        assert service.current_session_path() == session.path
        assert "No session config" in caplog.text


class TestReadTools:
    @pytest.mark.asyncio
    async def test_get_current_session_log(self, mcp_session):
        text = await _call("get-current-session-log", {"type": "all"})
        assert [line["lineNumber"] for line in json.loads(text)] == [0, 1, 4]

    @pytest.mark.asyncio
    async def test_get_current_session_log_tail(self, mcp_session):
        text = await _call("get-current-session-log", {"type": "tail", "count": 1})
        assert json.loads(text) == [{"lineNumber": 4, "content": "The config sets key to value."}]

    @pytest.mark.asyncio
    async def test_get_current_session_log_slice(self, mcp_session):
        text = await _call("get-current-session-log", {"type": "slice", "start": 1, "end": 4})
        assert [line["lineNumber"] for line in json.loads(text)] == [1, 4]

    @pytest.mark.asyncio
    async def test_max_field_size(self, mcp_session):
        text = await _call("get-current-session-log", {"type": "all", "maxFieldSize": 4})
        assert json.loads(text)[0]["content"] == "Plea...[truncated]"

    @pytest.mark.asyncio
    async def test_negative_max_field_size_means_no_limit(self, mcp_session):
        text = await _call("get-current-session-log", {"type": "all", "maxFieldSize": -1})
        assert json.loads(text)[0]["content"] == "Please check the config file"

    @pytest.mark.asyncio
    async def test_search_in_current_session(self, mcp_session):
        text = await _call("search-in-current-session", {"keyword": "CONFIG"})
        assert [line["lineNumber"] for line in json.loads(text)] == [0, 4]

    @pytest.mark.asyncio
    async def test_search_across_sessions(self, mcp_session):
        text = await _call("search-across-sessions", {"keyword": "config sets"})
        results = json.loads(text)
        assert len(results) == 1
        assert results[0]["sessionPath"] == str(mcp_session.path)
        assert results[0]["matches"][0]["lineNumber"] == 4

    @pytest.mark.asyncio
    async def test_count_defaults_to_including_deleted(self, mcp_session):
        await _call("delete-from-context", {"lines": [0]})
        assert await _call("count-current-session-lines", {}) == "Current session lines: 5"
        text = await _call("count-current-session-lines", {"includeDeleted": False})
        assert text == "Current session lines: 4"

    @pytest.mark.asyncio
    async def test_extract_file_read_results(self, mcp_session):
        text = await _call("extract-file-read-results", {"type": "all"})
        assert json.loads(text) == [{"lineNumber": 3, "filePath": "/repo/config.yaml"}]

    @pytest.mark.asyncio
    async def test_read_other_session(self, mcp_session):
        mcp_session.path.with_name("older.jsonl").write_text(mcp_session.text())
        text = await _call(
            "read-other-session",
            {"sessionId": "older", "type": "around", "targetLine": 1, "radius": 0},
        )
        assert [line["lineNumber"] for line in json.loads(text)] == [1]

    @pytest.mark.asyncio
    async def test_read_other_session_requires_window_parameters(self, mcp_session):
        mcp_session.path.with_name("older.jsonl").write_text(mcp_session.text())
        text = await _call("read-other-session", {"sessionId": "older", "type": "slice", "start": 0})
        assert text == "start and end are required for slice type"

    @pytest.mark.asyncio
    async def test_read_missing_session(self, mcp_session):
        text = await _call("read-other-session", {"sessionId": "nope", "type": "all"})
        assert text == "Session nope not found"


class TestEditingTools:
    @pytest.mark.asyncio
    async def test_delete_and_restore(self, mcp_session):
        original = mcp_session.text()

        text = await _call("delete-from-context", {"lines": [0, 4]})
        assert text == "Deleted 2 entries from context."
        assert mcp_session.entries()[0]["message"]["content"] == REDACTED_MARKER

        text = await _call("restore-to-context", {"lines": [0, 4]})
        assert text == "Restored 2 entries to context."
        assert mcp_session.text() == original

    @pytest.mark.asyncio
    async def test_delete_from_line(self, mcp_session):
        text = await _call("delete-from-context", {"fromLine": 3, "skipImported": True})
        assert text == "Deleted 2 entries from context."

    @pytest.mark.asyncio
    async def test_replace(self, mcp_session):
        text = await _call("replace-in-context", {"line": 0, "newContent": "Short"})
        assert text == "Replaced the content of line 0."
        entry = mcp_session.entries()[0]
        assert entry["message"]["content"] == "Short"
        assert entry[MUTATION_KEY]["original"]["message"]["content"] == "Please check the config file"

    @pytest.mark.asyncio
    async def test_replace_refused(self, mcp_session):
        text = await _call("replace-in-context", {"line": 2, "newContent": "Short"})
        assert text.startswith("Line 2 was not replaced")

    @pytest.mark.asyncio
    async def test_replace_unknown_line(self, mcp_session):
        assert await _call("replace-in-context", {"line": 99, "newContent": "x"}) == "Line 99 not found"

    @pytest.mark.asyncio
    async def test_custom_compact(self, mcp_session):
        with patch("claude_context.service.current_git_branch", return_value="main"):
            text = await _call("custom-compact", {"content": "Summary so far"})
        entries = mcp_session.entries()
        assert entries[2]["isCompactSummary"] is True
        assert entries[2]["uuid"] in text

    @pytest.mark.asyncio
    async def test_repair(self, mcp_session):
        assert await _call("repair-current-session", {}) == "Session is consistent; nothing to repair."


class TestValidation:
    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        assert await _call("nope", {}) == "Invalid input: Unknown tool: nope"

    @pytest.mark.asyncio
    async def test_missing_required_property(self, mcp_session):
        text = await _call("get-current-session-log", {})
        assert text.startswith("Invalid input: Schema validation failed")
        assert "'type' is a required property" in text

    @pytest.mark.asyncio
    async def test_wrong_type(self, mcp_session):
        text = await _call("get-current-session-log", {"type": "tail", "count": "ten"})
        assert text.startswith("Invalid input: Schema validation failed at count")

    @pytest.mark.asyncio
    async def test_invalid_enum(self, mcp_session):
        text = await _call("get-current-session-log", {"type": "around"})
        assert text.startswith("Invalid input:")

    @pytest.mark.asyncio
    async def test_delete_requires_lines_or_from_line(self, mcp_session):
        text = await _call("delete-from-context", {})
        assert text == "Invalid input: Either lines or fromLine must be specified"

    @pytest.mark.asyncio
    async def test_negative_line_rejected(self, mcp_session):
        text = await _call("restore-to-context", {"lines": [-1]})
        assert text.startswith("Invalid input:")

    def test_validate_tool_input_maps_arguments(self):
        sanitized = validate_tool_input(
            "delete-from-context", {"lines": [2, 3], "skipImported": True}
        )
        assert sanitized == {"lines": [2, 3], "from_line": None, "skip_imported": True}

    def test_max_field_size_defaults(self):
        sanitized = validate_tool_input("get-current-session-log", {"type": "all"})
        assert sanitized["max_field_size"] == 1000
        sanitized = validate_tool_input("get-current-session-log", {"type": "all", "maxFieldSize": 0})
        assert sanitized["max_field_size"] is None
        sanitized = validate_tool_input("get-current-session-log", {"type": "all", "maxFieldSize": -5})
        assert sanitized["max_field_size"] is None

    def test_non_dict_arguments(self):
        with pytest.raises(ValueError, match="arguments must be an object"):
            validate_tool_input("count-current-session-lines", ["x"])


class TestErrorHandling:
    @pytest.mark.asyncio
    async def test_internal_error_is_generic(self, mcp_session):
        with patch("claude_context.mcp.server.get_service", side_effect=RuntimeError("boom")):
            text = await _call("count-current-session-lines", {})
        assert text == "Internal server error"

    @pytest.mark.asyncio
    async def test_no_current_session(self, tmp_path):
        set_cwd(str(tmp_path))
        try:
            text = await _call("delete-from-context", {"lines": [0]})
        finally:
            set_cwd(None)
        assert text == "No current session found"

    @pytest.mark.asyncio
    async def test_malformed_transcript(self, mcp_session):
        mcp_session.path.write_text('{"type":"user"}\nnot json\n')
        text = await _call("delete-from-context", {"lines": [0]})
        assert text.startswith("Invalid JSON at line 2")

    def test_permission_error(self):
        result = handle_tool_error(PermissionError("x"), "custom-compact", {})
        assert result[0].text == "Access denied"
