"""
claude-context MCP server - session log editing for Claude Code.

Exposes the current session transcript as MCP tools so the assistant can
inspect its own conversation log and shrink it: logically delete entries,
replace them with summaries, restore them, insert compact summaries and
repair the record chain.

Every call reloads the session config, so a session switch recorded by the
session-start hook takes effect on the next tool call.

Usage:
    claude-context mcp  # Start MCP server (stdio transport)
"""

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from claude_context.config import load_session_config
from claude_context.errors import ContextError
from claude_context.mcp.handlers import HANDLERS, VALIDATORS
from claude_context.mcp.tool_definitions import TOOL_SCHEMAS, TOOLS
from claude_context.service import ContextService

logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = Server("claude-context")

# Working directory for this MCP session; None means the process cwd
_mcp_cwd: Optional[str] = None

_schema_validators: Dict[str, Draft7Validator] = {
    name: Draft7Validator(schema) for name, schema in TOOL_SCHEMAS.items()
}


def set_cwd(cwd: Optional[str]) -> None:
    """Set the project directory this MCP session operates on."""
    global _mcp_cwd
    _mcp_cwd = cwd


def get_service() -> ContextService:
    """Build a service over a freshly loaded session config."""
    cwd = _mcp_cwd or os.getcwd()
    config = load_session_config(cwd)
    if config.is_empty:
        logger.debug(f"No session config under {cwd}, using the newest transcript")
    return ContextService(cwd, config)


# =============================================================================
# INPUT VALIDATION & SANITIZATION
# =============================================================================


def _check_schema(name: str, arguments: Dict[str, Any]) -> None:
    validator = _schema_validators.get(name)
    if validator is None:
        return
    errors = sorted(validator.iter_errors(arguments), key=lambda err: list(err.path))
    if errors:
        first = errors[0]
        path = ".".join(str(part) for part in first.path) or "(root)"
        raise ValueError(f"Schema validation failed at {path}: {first.message}")


def validate_tool_input(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and sanitize MCP tool inputs.

    Arguments are checked against the tool's JSON Schema first, then passed
    through the tool's validator, which returns the handler's keyword set.
    """
    try:
        if not isinstance(name, str):
            raise ValueError(f"tool name must be a string, got {type(name).__name__}")
        if not name:
            raise ValueError("tool name must not be empty")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ValueError(f"arguments must be an object, got {type(arguments).__name__}")

        validator = VALIDATORS.get(name)
        if validator is None:
            raise ValueError(f"Unknown tool: {name}")

        _check_schema(name, arguments)
        return validator(arguments)

    except (ValueError, TypeError) as e:
        logger.warning(f"Input validation failed for tool {name}: {e}")
        raise ValueError(str(e)) from e


def handle_tool_error(e: Exception, tool_name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Turn an exception into a single text message for the client."""
    if isinstance(e, ContextError):
        # Engine errors carry a message meant for the caller
        logger.warning(f"Tool {tool_name} failed: {e}")
        return [TextContent(type="text", text=str(e))]

    elif isinstance(e, ValueError):
        logger.warning(f"Invalid input for tool {tool_name}: {e}")
        return [TextContent(type="text", text=f"Invalid input: {str(e)}")]

    elif isinstance(e, PermissionError):
        logger.warning(f"Permission denied for tool {tool_name}")
        return [TextContent(type="text", text="Access denied")]

    elif isinstance(e, FileNotFoundError):
        logger.warning(f"Resource not found for tool {tool_name}")
        return [TextContent(type="text", text="Resource not found")]

    else:
        # Unknown error - log full details but return generic message
        argument_keys = list(arguments.keys()) if isinstance(arguments, dict) else []
        logger.error(
            f"Internal error in tool {tool_name}",
            extra={
                "tool_name": tool_name,
                "arguments_keys": argument_keys,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
            exc_info=True,
        )
        return [TextContent(type="text", text="Internal server error")]


# =============================================================================
# MCP PROTOCOL HANDLERS
# =============================================================================


@mcp.list_tools()
async def list_tools() -> list[Tool]:
    """List available session tools."""
    return list(TOOLS)


@mcp.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls with validation and error handling."""
    try:
        sanitized_args = validate_tool_input(name, arguments)
        handler = HANDLERS.get(name)
        if handler is None:
            # Should not reach here due to validation, but handle gracefully
            logger.error(f"Unexpected tool name after validation: {name}")
            return [TextContent(type="text", text=f"Tool '{name}' is not available")]

        result = handler(sanitized_args, get_service())
        return [TextContent(type="text", text=result)]

    except Exception as e:
        return handle_tool_error(e, name, arguments)


async def run_server():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await mcp.run(
            read_stream,
            write_stream,
            mcp.create_initialization_options(),
        )


def main(cwd: Optional[str] = None):
    """Entry point for MCP server.

    ``cwd`` selects the project; by default the process working directory,
    which is where Claude Code starts MCP servers.
    """
    set_cwd(cwd)
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
