"""Tool implementations for MoonGate MCP server."""


class ToolError(Exception):
    """Raised when tool arguments cannot be turned into an upstream request."""
