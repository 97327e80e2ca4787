"""CLI command modules for claude-context.

Each module holds the handlers for one group of commands.
"""

from claude_context.cli.commands.hook import cmd_hook, cmd_hook_session_start
from claude_context.cli.commands.session import cmd_count, cmd_fix, cmd_log, cmd_mcp

__all__ = [
    "cmd_count",
    "cmd_fix",
    "cmd_hook",
    "cmd_hook_session_start",
    "cmd_log",
    "cmd_mcp",
]
