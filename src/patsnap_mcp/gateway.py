"""
HTTP -> MCP translation for PatSnap data endpoints.

Every call follows the same path: bearer token from the TokenManager,
one HTTP request, status and body checks, and the upstream JSON handed back
verbatim (pretty-printed) as MCP text content.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from requests import Response

from patsnap_common.errors import ApiError, ParseError, UpstreamError
from patsnap_mcp.auth import TokenManager
from patsnap_mcp.http_client import HttpClient
from patsnap_mcp.query import Query


logger = logging.getLogger(__name__)

INSIGHTS_PREFIX = "insights"


def text_result(body: Any) -> dict:
    return {
        "content": [
            {
                "type": "text",
                "text": json.dumps(body, indent=2, ensure_ascii=False),
            }
        ]
    }


def check_domain_error(body: Any, operation: str) -> None:
    """Raise UpstreamError when a 2xx body carries ``status: false`` with a nonzero error code."""
    if not isinstance(body, dict) or body.get("status") is not False:
        return
    code = body.get("error_code")
    if code in (None, 0, "0"):
        return
    msg = body.get("error_msg") or body.get("message") or ""
    raise UpstreamError(
        f"PatSnap reported an error for {operation} (error_code={code}): {msg}",
        upstream_code=code,
        upstream_msg=msg or None,
        body=json.dumps(body, ensure_ascii=False),
    )


class PatsnapGateway:
    def __init__(self, tokens: TokenManager, http: HttpClient | None = None) -> None:
        self.tokens = tokens
        self.http = http or tokens.http

    @property
    def base_url(self) -> str:
        return self.tokens.settings.base_url

    def call(self, endpoint_path: str, query: Query) -> dict:
        """GET /insights/{endpoint_path} and return the body as MCP text content."""
        path = f"{INSIGHTS_PREFIX}/{endpoint_path.strip('/')}"
        token = self.tokens.get_token()
        resp = self.http.get(
            f"{self.base_url}/{path}",
            headers={"Authorization": f"Bearer {token}"},
            params=query,
        )
        return self._normalize(resp, path)

    def post(self, path: str, payload: dict) -> dict:
        """POST a JSON body to {base_url}/{path}; same normalization as call()."""
        path = path.strip("/")
        token = self.tokens.get_token()
        resp = self.http.post(
            f"{self.base_url}/{path}",
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
            json=payload,
        )
        return self._normalize(resp, path)

    def _normalize(self, resp: Response, operation: str) -> dict:
        status = resp.status_code
        if not 200 <= status < 300:
            err = ApiError(
                f"Failed to call PatSnap {operation} (HTTP {status}): {resp.text}",
                status=status,
                body=resp.text,
            )
            if err.is_auth_failure:
                # The current call still fails; the next one re-authenticates.
                self.tokens.invalidate()
            raise err

        try:
            body = resp.json()
        except ValueError as e:
            raise ParseError(f"Failed to parse PatSnap {operation} response: {e}", body=resp.text) from e

        check_domain_error(body, operation)
        return text_result(body)
