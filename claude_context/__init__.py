"""
claude-context - edit the context of a running Claude Code session.

Reads and rewrites Claude Code session transcripts (JSONL): logical deletion
and restoration of records, content replacement, compact-summary insertion
and repair of the timestamp and parent-link chains.
"""

from .service import ContextService
from .window import Window

try:
    from importlib.metadata import version

    __version__ = version("claude-context")
except Exception:
    __version__ = "0.0.0"

__all__ = ["ContextService", "Window"]
