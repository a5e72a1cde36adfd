from __future__ import annotations

import asyncio
import logging
import os

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from patsnap_common.errors import PatsnapError
from patsnap_common.tooling import InstrumentConfig, instrument_sync_tool
from patsnap_config.settings import PatsnapSettings, init_runtime
from patsnap_mcp import __version__
from patsnap_mcp.auth import TokenManager
from patsnap_mcp.dispatcher import Dispatcher
from patsnap_mcp.gateway import PatsnapGateway
from patsnap_mcp.http_client import HttpClient


logger = logging.getLogger(__name__)

SERVER_NAME = "patsnap-mcp"
SERVER_CLIENT_ID = "patsnap_mcp"


def _cfg(name: str) -> InstrumentConfig:
    return InstrumentConfig(kind="tool", name=name, client_id=SERVER_CLIENT_ID)


def build_dispatcher(settings: PatsnapSettings | None = None, http: HttpClient | None = None) -> Dispatcher:
    settings = settings or PatsnapSettings.from_env()
    tokens = TokenManager(settings, http)
    return Dispatcher(PatsnapGateway(tokens), api_key=settings.client_id)


def build_server(dispatcher: Dispatcher | None = None) -> Server:
    """MCP server whose tools/list and tools/call are answered by the Dispatcher.

    The handlers are installed as raw request handlers, so a PatsnapError
    reaches the client as a JSON-RPC error whose ``code`` is its status.
    """
    dispatcher = dispatcher or build_dispatcher()
    server = Server(SERVER_NAME, version=__version__)

    async def list_tools(req: types.ListToolsRequest) -> types.ServerResult:
        tools = [types.Tool.model_validate(t) for t in dispatcher.handle_list_tools()]
        return types.ServerResult(types.ListToolsResult(tools=tools))

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        envelope = req.model_dump(by_alias=True, exclude_none=True)
        name = req.params.name
        traced = instrument_sync_tool(_cfg(name))(dispatcher.handle_request)
        try:
            result = traced(envelope)
        except PatsnapError as e:
            raise McpError(e.to_error_data()) from e
        return types.ServerResult(types.CallToolResult.model_validate(result))

    server.request_handlers[types.ListToolsRequest] = list_tools
    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def serve_stdio(server: Server) -> None:
    async with stdio_server() as (read, write):
        await server.run(read, write, server.create_initialization_options())


def main() -> None:
    # Entry points (console_scripts) call main() directly, so we must perform
    # runtime initialization here (dotenv + logging).
    init_runtime()
    transport = os.environ.get("MCP_TRANSPORT", "stdio")
    if transport != "stdio":
        raise SystemExit(f"Unsupported MCP_TRANSPORT={transport!r}; only 'stdio' is available")

    settings = PatsnapSettings.from_env()
    if not settings.has_credentials:
        logger.warning("PATSNAP_CLIENT_ID/PATSNAP_CLIENT_SECRET not set; tool calls will fail until configured")

    server = build_server(build_dispatcher(settings))
    logger.info("Starting %s (transport=%s, base_url=%s)", SERVER_NAME, transport, settings.base_url)
    asyncio.run(serve_stdio(server))


if __name__ == "__main__":
    main()
