"""
Smoke script for the PatSnap MCP server over stdio.

It performs:
 1) spawns `patsnap_mcp.server` and lists its tools
 2) optionally calls one tool (PATSNAP_SMOKE_TOOL, default get_patent_trends)
    with ipc=PATSNAP_SMOKE_IPC, which needs real PATSNAP_CLIENT_ID/SECRET
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import Any

_REPO_ROOT = Path(__file__).resolve().parents[1]


def _unwrap_tool_result(res: Any) -> str:
    parts = []
    for c in getattr(res, "content", None) or []:
        text = c.get("text") if isinstance(c, dict) else getattr(c, "text", None)
        if isinstance(text, str):
            parts.append(text)
    return "\n".join(parts)


async def main() -> int:
    from mcp import ClientSession
    from mcp.client.stdio import StdioServerParameters, stdio_client
    from mcp.shared.exceptions import McpError

    python_cmd = os.getenv("MCP_PYTHON") or sys.executable
    tool = os.getenv("PATSNAP_SMOKE_TOOL", "get_patent_trends")
    ipc = os.getenv("PATSNAP_SMOKE_IPC")

    env = dict(os.environ, MCP_TRANSPORT="stdio")
    src = str(_REPO_ROOT / "src")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src, env.get("PYTHONPATH")) if p)

    print(f"[smoke] Repo root: {_REPO_ROOT}")
    print(f"[smoke] Python: {python_cmd}")

    server = StdioServerParameters(command=python_cmd, args=["-m", "patsnap_mcp.server"], env=env)

    async with stdio_client(server) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            print("\n[smoke] TOOLS:")
            for t in tools.tools:
                print(f" - {t.name}: {t.description}")

            if not ipc:
                print("\n[smoke] PATSNAP_SMOKE_IPC not set; skipping tool call")
                return 0

            try:
                res = await session.call_tool(tool, {"ipc": ipc})
            except McpError as e:
                print(f"\n[smoke] CALL {tool}(ipc={ipc}) failed: code={e.error.code} {e.error.message}")
                return 1
            print(f"\n[smoke] CALL {tool}(ipc={ipc}):")
            print(_unwrap_tool_result(res))
            return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
