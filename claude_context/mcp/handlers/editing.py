"""Handlers for tools that rewrite the current session transcript."""

from typing import Any, Dict

from claude_context.mcp.sanitize import (
    sanitize_int_array,
    sanitize_string,
    validate_bool,
    validate_optional_int,
)
from claude_context.service import ContextService

MAX_CONTENT_LENGTH = 1_000_000

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_delete_from_context(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["lines"] = sanitize_int_array(arguments.get("lines"), "lines")
    sanitized["from_line"] = validate_optional_int(arguments.get("fromLine"), "fromLine")
    if sanitized["lines"] is None and sanitized["from_line"] is None:
        raise ValueError("Either lines or fromLine must be specified")
    sanitized["skip_imported"] = validate_bool(arguments.get("skipImported"), "skipImported")
    return sanitized


def validate_restore_to_context(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"lines": sanitize_int_array(arguments.get("lines"), "lines", required=True)}


def validate_replace_in_context(arguments: Dict[str, Any]) -> Dict[str, Any]:
    line = validate_optional_int(arguments.get("line"), "line")
    if line is None:
        raise ValueError("line is required")
    return {
        "line": line,
        "new_content": sanitize_string(
            arguments.get("newContent"), "newContent", MAX_CONTENT_LENGTH
        ),
    }


def validate_custom_compact(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"content": sanitize_string(arguments.get("content"), "content", MAX_CONTENT_LENGTH)}


def validate_repair_current_session(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_delete_from_context(args: Dict[str, Any], service: ContextService) -> str:
    deleted = service.delete_from_context(
        lines=args.get("lines"),
        from_line=args.get("from_line"),
        skip_imported=args.get("skip_imported", False),
    )
    return f"Deleted {deleted} entries from context."


def handle_restore_to_context(args: Dict[str, Any], service: ContextService) -> str:
    restored = service.restore_to_context(args["lines"])
    return f"Restored {restored} entries to context."


def handle_replace_in_context(args: Dict[str, Any], service: ContextService) -> str:
    line = args["line"]
    if service.replace_in_context(line, args["new_content"]):
        return f"Replaced the content of line {line}."
    return f"Line {line} was not replaced: it holds only a tool call or has no content."


def handle_custom_compact(args: Dict[str, Any], service: ContextService) -> str:
    record_id = service.add_custom_compact_entry(args["content"])
    return f"Compacted the context (summary entry {record_id})."


def handle_repair_current_session(args: Dict[str, Any], service: ContextService) -> str:
    result = service.repair_current_session()
    if not result.changed:
        return "Session is consistent; nothing to repair."
    return (
        f"Repaired session: {result.timestamps_fixed} timestamp(s), "
        f"{result.parents_fixed} parent link(s)."
    )


# ---------------------------------------------------------------------------
# Registry dicts
# ---------------------------------------------------------------------------

HANDLERS = {
    "delete-from-context": handle_delete_from_context,
    "restore-to-context": handle_restore_to_context,
    "replace-in-context": handle_replace_in_context,
    "custom-compact": handle_custom_compact,
    "repair-current-session": handle_repair_current_session,
}

VALIDATORS = {
    "delete-from-context": validate_delete_from_context,
    "restore-to-context": validate_restore_to_context,
    "replace-in-context": validate_replace_in_context,
    "custom-compact": validate_custom_compact,
    "repair-current-session": validate_repair_current_session,
}
