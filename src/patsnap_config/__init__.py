"""Environment-driven configuration for the PatSnap MCP server."""
