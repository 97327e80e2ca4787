"""Hook commands for Claude Code integration.

Claude Code runs these from its hooks configuration and passes the hook
payload as JSON on stdin.

CRITICAL: All hook commands MUST exit 0 regardless of errors. A non-zero exit
from a hook breaks the Claude Code session.

- **SessionStart: FAIL-OPEN** -- Skip recording the session on error. The
  MCP tools keep working on the previously recorded session (or fall back to
  the newest transcript of the project).
"""

import json
import logging
import sys

from claude_context.config import save_session_config

logger = logging.getLogger(__name__)

_REQUIRED_KEYS = {
    "SessionStart": ("session_id",),
}


def _validate_hook_input(data: dict, hook_name: str) -> dict:
    """Validate that *data* contains the required keys for *hook_name*.

    Raises ``ValueError`` with a descriptive message when the payload is not
    an object or a required key is missing.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Hook '{hook_name}' payload must be a JSON object")

    for key in _REQUIRED_KEYS.get(hook_name, ()):
        if not data.get(key):
            raise ValueError(f"Hook '{hook_name}' requires key '{key}' in payload")

    return data


def cmd_hook_session_start(args) -> None:
    """SessionStart hook: record which transcript the MCP tools should edit.

    Writes ``<cwd>/.claude/session-config.json`` from the payload's
    ``session_id`` and ``transcript_path``. The project directory is
    ``--cwd`` when given, else the payload's ``cwd``.

    Failure mode: FAIL-OPEN -- log and exit 0 on any error.
    """
    try:
        hook_input = json.loads(sys.stdin.read())
        _validate_hook_input(hook_input, "SessionStart")
        cwd = getattr(args, "cwd", None) or hook_input.get("cwd")
        if not cwd:
            raise ValueError("Hook 'SessionStart' payload has no cwd")

        path = save_session_config(
            cwd,
            session_id=hook_input["session_id"],
            transcript_path=hook_input.get("transcript_path"),
        )
        logger.info(f"Recorded session {hook_input['session_id']} in {path}")
    except Exception as exc:
        # FAIL-OPEN: never block session start
        logger.warning("Skipped SessionStart hook (%s): %s", type(exc).__name__, exc)

    sys.exit(0)


def cmd_hook(args) -> None:
    """Dispatch ``claude-context hook <event>``."""
    if args.hook_event == "session-start":
        cmd_hook_session_start(args)
