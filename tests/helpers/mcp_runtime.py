"""Shared runtime helpers for MCP integration tests.

Integration tests spawn the server as a subprocess (stdio transport) and
connect via an MCP ClientSession. Importing this module must not require MCP
to be installed, so unit tests keep running without it.
"""

from __future__ import annotations

import asyncio
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Iterable, Mapping

import pytest

_MCP_IMPORT_ERROR: Exception | None = None
try:
    from mcp import ClientSession  # type: ignore
    from mcp.client.stdio import StdioServerParameters, stdio_client  # type: ignore
except ImportError as e:  # pragma: no cover
    _MCP_IMPORT_ERROR = e
    ClientSession = Any  # type: ignore[misc,assignment]
    StdioServerParameters = Any  # type: ignore[misc,assignment]
    stdio_client = None  # type: ignore[assignment]


def _require_mcp() -> None:
    if _MCP_IMPORT_ERROR is not None:
        pytest.skip(
            f"MCP is not available in this environment ({_MCP_IMPORT_ERROR!r}). "
            "Install test dependencies (pip install -e '.[dev]')."
        )


def build_test_env(tmp_path: Path, *, transport: str = "stdio", extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Current env, stdio transport, telemetry redirected to tmp_path, and no .env pickup."""
    env = dict(os.environ)
    env["MCP_TRANSPORT"] = transport
    env["PATSNAP_TELEMETRY_DIR"] = str(Path(tmp_path) / "telemetry")
    env["PATSNAP_ENV_FILE"] = str(Path(tmp_path) / "missing.env")

    src = str(Path(__file__).resolve().parents[2] / "src")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src, env.get("PYTHONPATH")) if p)

    if extra:
        for k, v in extra.items():
            env[str(k)] = str(v)
    return env


@asynccontextmanager
async def mcp_stdio_session(
    module: str,
    *,
    env: Mapping[str, str] | None = None,
    python_executable: str = sys.executable,
) -> AsyncIterator[ClientSession]:
    """Start an MCP server (`python -m <module>`) over stdio and yield an initialized ClientSession."""
    _require_mcp()
    assert stdio_client is not None

    server = StdioServerParameters(
        command=python_executable,
        args=["-m", module],
        env=dict(env) if env is not None else dict(os.environ),
    )

    async with stdio_client(server) as (read, write):
        async with ClientSession(read, write) as session:
            await asyncio.wait_for(session.initialize(), timeout=30)
            yield session


async def list_tool_names(session: ClientSession) -> list[str]:
    tools = await session.list_tools()
    return [t.name for t in tools.tools]


async def assert_tools_present(session: ClientSession, expected: Iterable[str]) -> None:
    names = await list_tool_names(session)
    missing = [t for t in expected if t not in names]
    assert not missing, f"Missing tools: {missing}. Present tools: {sorted(names)}"
