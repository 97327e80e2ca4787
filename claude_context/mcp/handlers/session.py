"""Handlers for read-only tools: session log views, searches and counts."""

import json
from typing import Any, Dict, List, Optional

from claude_context.mcp.sanitize import (
    sanitize_string,
    validate_bool,
    validate_enum,
    validate_optional_int,
)
from claude_context.mcp.tool_definitions import LOG_WINDOW_TYPES
from claude_context.service import SEARCH_TARGETS, ContextService
from claude_context.window import WINDOW_TYPES, Window

DEFAULT_MAX_FIELD_SIZE = 1000


def _to_json(items: List[Any]) -> str:
    return json.dumps([item.to_dict() for item in items], indent=2, ensure_ascii=False)


def _max_field_size(arguments: Dict[str, Any]) -> Optional[int]:
    """``maxFieldSize`` with the tool default; zero or negative disables truncation."""
    value = validate_optional_int(arguments.get("maxFieldSize"), "maxFieldSize", min_val=None)
    if value is None:
        return DEFAULT_MAX_FIELD_SIZE
    return value if value > 0 else None


def _window_args(arguments: Dict[str, Any], types: List[str]) -> Dict[str, Any]:
    return {
        "type": validate_enum(arguments.get("type"), "type", types, required=True),
        "count": validate_optional_int(arguments.get("count"), "count"),
        "start": validate_optional_int(arguments.get("start"), "start"),
        "end": validate_optional_int(arguments.get("end"), "end"),
    }


def _window(args: Dict[str, Any], strict: bool = False) -> Window:
    return Window.from_options(
        args["type"],
        count=args.get("count"),
        start=args.get("start"),
        end=args.get("end"),
        target_line=args.get("target_line"),
        radius=args.get("radius"),
        strict=strict,
    )


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_get_current_session_log(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = _window_args(arguments, LOG_WINDOW_TYPES)
    sanitized["include_deleted"] = validate_bool(arguments.get("includeDeleted"), "includeDeleted")
    sanitized["max_field_size"] = _max_field_size(arguments)
    return sanitized


def validate_search_in_current_session(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["keyword"] = sanitize_string(arguments.get("keyword"), "keyword", 1000)
    sanitized["search_in"] = validate_enum(
        arguments.get("searchIn"), "searchIn", SEARCH_TARGETS, "all"
    )
    sanitized["include_deleted"] = validate_bool(arguments.get("includeDeleted"), "includeDeleted")
    sanitized["max_field_size"] = _max_field_size(arguments)
    return sanitized


def validate_search_across_sessions(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"keyword": sanitize_string(arguments.get("keyword"), "keyword", 1000)}


def validate_count_current_session_lines(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "include_deleted": validate_bool(
            arguments.get("includeDeleted"), "includeDeleted", default=True
        )
    }


def validate_extract_file_read_results(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = _window_args(arguments, LOG_WINDOW_TYPES)
    sanitized["include_deleted"] = validate_bool(arguments.get("includeDeleted"), "includeDeleted")
    return sanitized


def validate_read_other_session(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = _window_args(arguments, WINDOW_TYPES)
    sanitized["session_id"] = sanitize_string(arguments.get("sessionId"), "sessionId", 200)
    sanitized["target_line"] = validate_optional_int(arguments.get("targetLine"), "targetLine")
    sanitized["radius"] = validate_optional_int(arguments.get("radius"), "radius")
    sanitized["max_field_size"] = _max_field_size(arguments)
    return sanitized


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_get_current_session_log(args: Dict[str, Any], service: ContextService) -> str:
    lines = service.get_current_session_log(
        _window(args),
        include_deleted=args.get("include_deleted", False),
        max_field_size=args.get("max_field_size"),
    )
    return _to_json(lines)


def handle_search_in_current_session(args: Dict[str, Any], service: ContextService) -> str:
    lines = service.search_in_current_session(
        args["keyword"],
        search_in=args.get("search_in", "all"),
        include_deleted=args.get("include_deleted", False),
        max_field_size=args.get("max_field_size"),
    )
    return _to_json(lines)


def handle_search_across_sessions(args: Dict[str, Any], service: ContextService) -> str:
    return _to_json(service.search_across_sessions(args["keyword"]))


def handle_count_current_session_lines(args: Dict[str, Any], service: ContextService) -> str:
    count = service.count_current_session_lines(include_deleted=args.get("include_deleted", True))
    return f"Current session lines: {count}"


def handle_extract_file_read_results(args: Dict[str, Any], service: ContextService) -> str:
    results = service.extract_file_read_results(
        _window(args), include_deleted=args.get("include_deleted", False)
    )
    return _to_json(results)


def handle_read_other_session(args: Dict[str, Any], service: ContextService) -> str:
    lines = service.read_other_session(
        args["session_id"],
        _window(args, strict=True),
        max_field_size=args.get("max_field_size"),
    )
    return _to_json(lines)


# ---------------------------------------------------------------------------
# Registry dicts
# ---------------------------------------------------------------------------

VALIDATORS = {
    "get-current-session-log": validate_get_current_session_log,
    "search-in-current-session": validate_search_in_current_session,
    "search-across-sessions": validate_search_across_sessions,
    "count-current-session-lines": validate_count_current_session_lines,
    "extract-file-read-results": validate_extract_file_read_results,
    "read-other-session": validate_read_other_session,
}

HANDLERS = {
    "get-current-session-log": handle_get_current_session_log,
    "search-in-current-session": handle_search_in_current_session,
    "search-across-sessions": handle_search_across_sessions,
    "count-current-session-lines": handle_count_current_session_lines,
    "extract-file-read-results": handle_extract_file_read_results,
    "read-other-session": handle_read_other_session,
}
