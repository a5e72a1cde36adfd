"""Errors, telemetry and tool instrumentation shared by the PatSnap MCP packages."""
