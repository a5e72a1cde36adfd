from __future__ import annotations

import json

import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from patsnap_config.settings import PatsnapSettings
from patsnap_mcp.registry import TOOL_SPECS
from patsnap_mcp.server import build_dispatcher, build_server
from tests.helpers.fakes import FakeResponse


async def _list_tools(server) -> list[types.Tool]:
    res = await server.request_handlers[types.ListToolsRequest](types.ListToolsRequest(method="tools/list"))
    return res.root.tools


async def _call_tool(server, name: str, arguments: dict | None = None) -> types.CallToolResult:
    req = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )
    res = await server.request_handlers[types.CallToolRequest](req)
    return res.root


@pytest.mark.asyncio
async def test_server_lists_dispatcher_tools_with_exact_schemas(dispatcher):
    tools = await _list_tools(build_server(dispatcher))

    assert [t.name for t in tools] == [s.name for s in TOOL_SPECS]
    for tool, spec in zip(tools, TOOL_SPECS):
        assert tool.description == spec.description
        assert tool.inputSchema == spec.input_schema()


@pytest.mark.asyncio
async def test_server_call_returns_pretty_json_text(dispatcher, session):
    body = {"status": True, "data": {"2021": 7}}
    session.add("insights/patent-trends", FakeResponse(200, body))

    res = await _call_tool(build_server(dispatcher), "get_patent_trends", {"ipc": "H04M"})

    assert not res.isError
    assert res.content[0].text == json.dumps(body, indent=2, ensure_ascii=False)
    assert session.calls_to("insights/patent-trends")[0].params == [("ipc", "H04M"), ("apikey", "cid")]


@pytest.mark.asyncio
async def test_unknown_tool_is_protocol_error_404(dispatcher, session):
    with pytest.raises(McpError) as ei:
        await _call_tool(build_server(dispatcher), "get_nonexistent", {})

    assert ei.value.error.code == 404
    assert "get_nonexistent" in ei.value.error.message
    assert session.calls == []


@pytest.mark.asyncio
async def test_missing_required_argument_is_protocol_error_400(dispatcher):
    with pytest.raises(McpError) as ei:
        await _call_tool(build_server(dispatcher), "search_patent_fields", {"query": "TTL:phone"})

    assert ei.value.error.code == 400


@pytest.mark.asyncio
async def test_upstream_auth_failure_carries_http_status(dispatcher, session):
    session.add("insights/word-cloud", FakeResponse(401, text="invalid token"))

    with pytest.raises(McpError) as ei:
        await _call_tool(build_server(dispatcher), "get_word_cloud", {"keywords": "phone"})

    assert ei.value.error.code == 401
    assert "invalid token" in ei.value.error.message
    assert dispatcher.gateway.tokens.cached_token is None


@pytest.mark.asyncio
async def test_missing_credentials_is_protocol_error_500():
    server = build_server(build_dispatcher(PatsnapSettings(client_id=None, client_secret=None)))

    with pytest.raises(McpError) as ei:
        await _call_tool(server, "get_patent_trends", {"ipc": "H04M"})

    assert ei.value.error.code == 500
    assert "PATSNAP_CLIENT_ID" in ei.value.error.message


@pytest.mark.asyncio
async def test_server_call_is_recorded_in_telemetry(dispatcher, session, _isolated_telemetry):
    session.add("insights/most-asserted", FakeResponse(200, {"status": True}))

    await _call_tool(build_server(dispatcher), "get_most_litigated_patents", {"keywords": "battery", "limit": 5})

    lines = (_isolated_telemetry / "mcp-telemetry.jsonl").read_text(encoding="utf-8").splitlines()
    rec = json.loads(lines[-1])
    assert rec["name"] == "get_most_litigated_patents"
    assert rec["ok"] is True
    assert rec["args"]["args"]["envelope"]["params"]["arguments"] == {"keywords": "battery", "limit": 5}


@pytest.mark.asyncio
async def test_failed_call_is_recorded_with_error_code(dispatcher, _isolated_telemetry):
    with pytest.raises(McpError):
        await _call_tool(build_server(dispatcher), "get_nonexistent", {})

    lines = (_isolated_telemetry / "mcp-telemetry.jsonl").read_text(encoding="utf-8").splitlines()
    rec = json.loads(lines[-1])
    assert rec["ok"] is False
    assert rec["args"]["error"]["details"]["status"] == 404
