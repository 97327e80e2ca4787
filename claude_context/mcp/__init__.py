"""MCP server exposing the session log tools."""
