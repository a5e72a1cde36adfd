from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from patsnap_common.errors import BadRequestError, InternalError, NotFoundError, PatsnapError
from patsnap_common.tooling import sanitize_args_for_log
from patsnap_mcp.gateway import PatsnapGateway
from patsnap_mcp.query import build_query
from patsnap_mcp.registry import TOOL_SPECS, ToolSpec, index_tools


logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes MCP "list tools" / "call tool" requests through the tool table."""

    def __init__(
        self,
        gateway: PatsnapGateway,
        specs: Iterable[ToolSpec] = TOOL_SPECS,
        *,
        api_key: str | None = None,
    ) -> None:
        self.gateway = gateway
        self.specs: tuple[ToolSpec, ...] = tuple(specs)
        self._by_name = index_tools(self.specs)
        self.api_key = api_key

    def handle_list_tools(self) -> list[dict]:
        return [
            {"name": s.name, "description": s.description, "inputSchema": s.input_schema()}
            for s in self.specs
        ]

    def handle_request(self, envelope: Any) -> dict:
        """Entry point for a raw JSON-RPC style "call tool" envelope."""
        params = envelope.get("params") if isinstance(envelope, Mapping) else None
        if not isinstance(params, Mapping):
            raise BadRequestError("Malformed call: missing params object")
        return self.handle_call_tool(params.get("name"), params.get("arguments"))

    def handle_call_tool(self, name: Any, args: Any = None) -> dict:
        if not isinstance(name, str) or not name:
            raise BadRequestError("Malformed call: tool name must be a non-empty string")

        spec = self._by_name.get(name)
        if spec is None:
            raise NotFoundError(f"Unknown tool: {name}")

        if not isinstance(args, Mapping):
            args = {}

        logger.info("Calling tool %s args=%s", name, sanitize_args_for_log(dict(args)))
        try:
            return self._invoke(spec, args)
        except PatsnapError as e:
            logger.error("Tool %s failed (status=%s): %s", name, e.status, e.message)
            raise
        except Exception as e:
            logger.exception("Tool %s failed with an unexpected error", name)
            raise InternalError(f"Internal error while running {name}: {e}") from e

    def _invoke(self, spec: ToolSpec, args: Mapping[str, Any]) -> dict:
        missing = [k for k in spec.required_keys if args.get(k) is None]
        if missing:
            raise BadRequestError(f"Missing required argument(s) for {spec.name}: {', '.join(missing)}")

        # Only declared arguments go upstream, in declaration order.
        declared = {k: args[k] for k in spec.argument_keys if k in args}

        if spec.method == "POST":
            payload = {k: v for k, v in declared.items() if v is not None}
            for k, v in spec.defaults.items():
                payload.setdefault(k, v)
            return self.gateway.post(spec.endpoint_path, payload)

        query = build_query(declared, spec.defaults, self.api_key)
        return self.gateway.call(spec.endpoint_path, query)
