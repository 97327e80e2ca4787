"""Handler registry for MCP tools.

Merges HANDLERS and VALIDATORS from all sub-modules into unified dicts.
"""

from typing import Callable, Dict

from claude_context.mcp.handlers.editing import HANDLERS as _EDITING_H
from claude_context.mcp.handlers.editing import VALIDATORS as _EDITING_V
from claude_context.mcp.handlers.session import HANDLERS as _SESSION_H
from claude_context.mcp.handlers.session import VALIDATORS as _SESSION_V

HANDLERS: Dict[str, Callable] = {
    **_SESSION_H,
    **_EDITING_H,
}

VALIDATORS: Dict[str, Callable] = {
    **_SESSION_V,
    **_EDITING_V,
}
