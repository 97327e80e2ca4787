"""MCP tool schema definitions for claude-context.

Each Tool() defines the name, description, and JSON Schema for one MCP tool.
Validators and handlers live in claude_context.mcp.handlers.
"""

from mcp.types import Tool

from claude_context.types import REDACTED_MARKER
from claude_context.window import WINDOW_TYPES

LOG_WINDOW_TYPES = ["all", "tail", "slice"]

_LINE_NUMBER = {"type": "integer", "minimum": 0}

_WINDOW_PROPERTIES = {
    "count": {
        "type": "integer",
        "minimum": 0,
        "description": "Number of entries to return (tail only, default: 10)",
    },
    "start": {
        "type": "integer",
        "minimum": 0,
        "description": "First line number to include (slice only, 0-based)",
    },
    "end": {
        "type": "integer",
        "minimum": 0,
        "description": "Last line number to include (slice only, inclusive)",
    },
}

_INCLUDE_DELETED = {
    "type": "boolean",
    "description": "Include deleted entries (default: false)",
    "default": False,
}

_MAX_FIELD_SIZE = {
    "type": "integer",
    "description": "Maximum characters per entry (default: 1000, 0 or negative for no limit)",
    "default": 1000,
}

TOOLS = [
    Tool(
        name="get-current-session-log",
        description="Get entries of the current session log by range. Tool calls and tool results are omitted; line numbers can be passed to the editing tools.",
        inputSchema={
            "type": "object",
            "properties": {
                "type": {
                    "type": "string",
                    "enum": LOG_WINDOW_TYPES,
                    "description": "all: every entry, tail: latest N entries, slice: line range",
                },
                **_WINDOW_PROPERTIES,
                "includeDeleted": _INCLUDE_DELETED,
                "maxFieldSize": _MAX_FIELD_SIZE,
            },
            "required": ["type"],
        },
    ),
    Tool(
        name="search-in-current-session",
        description="Search the current session for a keyword (case-insensitive).",
        inputSchema={
            "type": "object",
            "properties": {
                "keyword": {"type": "string", "description": "Keyword to search for"},
                "searchIn": {
                    "type": "string",
                    "enum": ["content", "type", "all"],
                    "description": "What to match against (default: all)",
                    "default": "all",
                },
                "includeDeleted": _INCLUDE_DELETED,
                "maxFieldSize": _MAX_FIELD_SIZE,
            },
            "required": ["keyword"],
        },
    ),
    Tool(
        name="delete-from-context",
        description=(
            f"Logically delete entries by replacing their content with {REDACTED_MARKER}. "
            "The lines stay in the log and can be restored. Either lines or fromLine is required."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "lines": {
                    "type": "array",
                    "items": _LINE_NUMBER,
                    "description": "Line numbers to delete",
                },
                "fromLine": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Delete this line and every line after it",
                },
                "skipImported": {
                    "type": "boolean",
                    "description": "Skip entries flagged as imported (default: false)",
                    "default": False,
                },
            },
        },
    ),
    Tool(
        name="restore-to-context",
        description="Restore deleted or replaced entries from their backup.",
        inputSchema={
            "type": "object",
            "properties": {
                "lines": {
                    "type": "array",
                    "items": _LINE_NUMBER,
                    "description": "Line numbers to restore",
                },
            },
            "required": ["lines"],
        },
    ),
    Tool(
        name="replace-in-context",
        description="Replace the content of one line, e.g. with a summary of a long log. The original is kept for restore.",
        inputSchema={
            "type": "object",
            "properties": {
                "line": {**_LINE_NUMBER, "description": "Line number to replace"},
                "newContent": {"type": "string", "description": "New content"},
            },
            "required": ["line", "newContent"],
        },
    ),
    Tool(
        name="search-across-sessions",
        description="Search every session of the current project for a keyword (case-sensitive).",
        inputSchema={
            "type": "object",
            "properties": {
                "keyword": {"type": "string", "description": "Keyword to search for"},
            },
            "required": ["keyword"],
        },
    ),
    Tool(
        name="count-current-session-lines",
        description="Count the entries of the current session.",
        inputSchema={
            "type": "object",
            "properties": {
                "includeDeleted": {
                    "type": "boolean",
                    "description": "Count deleted entries too (default: true)",
                    "default": True,
                },
            },
        },
    ),
    Tool(
        name="extract-file-read-results",
        description="List the line numbers and file paths of Read and Edit tool results, the usual candidates for context compression.",
        inputSchema={
            "type": "object",
            "properties": {
                "type": {
                    "type": "string",
                    "enum": LOG_WINDOW_TYPES,
                    "description": "all: every result, tail: latest N results, slice: line range",
                },
                **_WINDOW_PROPERTIES,
                "includeDeleted": _INCLUDE_DELETED,
            },
            "required": ["type"],
        },
    ),
    Tool(
        name="read-other-session",
        description="Read another session of the current project by range (read-only).",
        inputSchema={
            "type": "object",
            "properties": {
                "sessionId": {"type": "string", "description": "Session ID to read"},
                "type": {
                    "type": "string",
                    "enum": WINDOW_TYPES,
                    "description": "around: entries within radius of targetLine",
                },
                **_WINDOW_PROPERTIES,
                "targetLine": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Center line (around only)",
                },
                "radius": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Lines before and after targetLine (around only, default: 10)",
                    "default": 10,
                },
                "maxFieldSize": _MAX_FIELD_SIZE,
            },
            "required": ["sessionId", "type"],
        },
    ),
    Tool(
        name="custom-compact",
        description="Add a compact-summary entry with the given content to the current session. It is placed before the last tool call so tool call/result pairs stay together.",
        inputSchema={
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "Summary content"},
            },
            "required": ["content"],
        },
    ),
    Tool(
        name="repair-current-session",
        description="Fix out-of-order timestamps and broken parent links in the current session.",
        inputSchema={
            "type": "object",
            "properties": {},
        },
    ),
]

TOOL_SCHEMAS = {tool.name: tool.inputSchema for tool in TOOLS}
