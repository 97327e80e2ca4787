"""Session commands: mcp, fix, log, count."""

import json
from pathlib import Path

from claude_context.repair import fix_transcript
from claude_context.service import ContextService
from claude_context.window import Window


def cmd_mcp(args, cwd: str) -> None:
    """Start the MCP server over stdio."""
    from claude_context.mcp.server import main as mcp_main

    mcp_main(cwd=cwd)


def cmd_fix(args) -> None:
    """Repair timestamps and parent links of a transcript file."""
    path = Path(args.path)
    if not path.is_file():
        raise ValueError(f"No such transcript: {path}")

    result = fix_transcript(path, max_passes=args.max_passes)
    if not result.changed:
        print(f"✓ {path.name}: nothing to repair")
        return
    print(f"✓ Repaired {path.name}")
    print(f"  Timestamps fixed: {result.timestamps_fixed}")
    print(f"  Parent links fixed: {result.parents_fixed}")


def cmd_log(args, service: ContextService) -> None:
    """Print a window of the current session log."""
    window = Window.from_options(
        args.type,
        count=args.count,
        start=args.start,
        end=args.end,
        target_line=args.target,
        radius=args.radius,
    )
    max_field_size = args.max_field_size or None
    lines = service.get_current_session_log(
        window, include_deleted=args.include_deleted, max_field_size=max_field_size
    )

    if args.json:
        print(json.dumps([line.to_dict() for line in lines], indent=2, ensure_ascii=False))
        return

    if not lines:
        print("No log entries.")
        return
    width = len(str(lines[-1].index))
    for line in lines:
        first, *rest = line.content.split("\n")
        print(f"{line.index:>{width}}  {first}")
        for extra in rest:
            print(f"{'':>{width}}  {extra}")


def cmd_count(args, service: ContextService) -> None:
    """Print the number of records in the current session."""
    count = service.count_current_session_lines(include_deleted=not args.exclude_deleted)
    print(count)
