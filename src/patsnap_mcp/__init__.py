"""MCP server exposing PatSnap patent analytics endpoints as tools."""

__version__ = "0.2.0"
