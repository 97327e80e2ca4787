"""
claude-context CLI - inspect and repair Claude Code session logs.

Usage:
    claude-context mcp
    claude-context fix PATH [--max-passes N]
    claude-context log [--type TYPE] [--count N] [--start S] [--end E] [--json]
    claude-context count [--exclude-deleted]
    claude-context hook session-start
"""

import argparse
import logging
import os
import sys

from claude_context.cli.commands import cmd_count, cmd_fix, cmd_hook, cmd_log, cmd_mcp
from claude_context.config import get_settings, load_session_config
from claude_context.logging_config import setup_logging
from claude_context.service import ContextService
from claude_context.window import WINDOW_TYPES

# Set up logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claude-context",
        description="Inspect, edit and repair Claude Code session logs",
    )
    parser.add_argument("--cwd", help="Project directory (default: current directory)", default=None)

    subparsers = parser.add_subparsers(dest="command", required=True)

    # mcp
    subparsers.add_parser("mcp", help="Start MCP server (stdio transport)")

    # fix
    p_fix = subparsers.add_parser("fix", help="Repair timestamps and parent links of a transcript")
    p_fix.add_argument("path", help="Path to a .jsonl transcript")
    p_fix.add_argument("--max-passes", type=int, default=None, help="Timestamp repair passes (default: 10)")

    # log
    p_log = subparsers.add_parser("log", help="Show the current session log")
    p_log.add_argument("--type", choices=WINDOW_TYPES, default="all")
    p_log.add_argument("--count", "-n", type=int, help="Number of entries (tail)")
    p_log.add_argument("--start", type=int, help="First line (slice)")
    p_log.add_argument("--end", type=int, help="Last line, inclusive (slice)")
    p_log.add_argument("--target", type=int, help="Center line (around)")
    p_log.add_argument("--radius", type=int, help="Lines around the target (around)")
    p_log.add_argument("--include-deleted", action="store_true", help="Show deleted entries")
    p_log.add_argument("--max-field-size", type=int, default=None,
                       help="Truncate entries to N characters (0: no limit)")
    p_log.add_argument("--json", "-j", action="store_true")

    # count
    p_count = subparsers.add_parser("count", help="Count entries of the current session")
    p_count.add_argument("--exclude-deleted", action="store_true", help="Do not count deleted entries")

    # hook
    p_hook = subparsers.add_parser("hook", help="Claude Code hook handlers")
    hook_sub = p_hook.add_subparsers(dest="hook_event", required=True)
    hook_sub.add_parser("session-start", help="Record the session Claude Code just started")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings["log_level"])

    # Hooks handle their own errors and always exit 0
    if args.command == "hook":
        cmd_hook(args)
        return

    cwd = args.cwd or os.getcwd()

    # Dispatch with error handling
    try:
        if args.command == "mcp":
            cmd_mcp(args, cwd)
        elif args.command == "fix":
            cmd_fix(args)
        else:
            service = ContextService(cwd, load_session_config(cwd))
            if args.command == "log":
                if args.max_field_size is None:
                    args.max_field_size = settings["max_field_size"]
                cmd_log(args, service)
            elif args.command == "count":
                cmd_count(args, service)
    except (ValueError, TypeError) as e:
        logger.error(f"Input validation error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
