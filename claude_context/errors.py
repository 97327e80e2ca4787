"""Error taxonomy for claude-context.

Every failure the engine reports derives from :class:`ContextError`. The MCP
layer turns these into a single human-readable message; the CLI logs them
and exits non-zero.
"""

from typing import Optional


class ContextError(Exception):
    """Base for all claude-context errors."""

    pass


class NoCurrentLogError(ContextError):
    """Raised when no session log could be resolved for the working directory."""

    def __init__(self, message: str = "No current session found"):
        super().__init__(message)


class SessionNotFoundError(ContextError):
    """Raised when a named session has no transcript file."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class RecordNotFoundError(ContextError):
    """Raised when a requested index has no corresponding record."""

    def __init__(self, index: int):
        super().__init__(f"Line {index} not found")
        self.index = index


class MalformedRecordError(ContextError, ValueError):
    """A line failed to parse as a JSON object.

    Only the strict decoder raises this; the best-effort decoder skips the
    line instead.
    """

    def __init__(self, index: int, line_number: int, line: str, cause: Optional[Exception] = None):
        preview = line if len(line) <= 200 else line[:200] + "..."
        super().__init__(f"Invalid JSON at line {line_number}: {preview}")
        self.index = index
        self.line_number = line_number
        self.line = line
        self.cause = cause


class InvalidArgumentError(ContextError, ValueError):
    """Raised when a required parameter combination is missing or inconsistent."""

    pass
