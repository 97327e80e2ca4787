"""Command-line interface for claude-context."""
