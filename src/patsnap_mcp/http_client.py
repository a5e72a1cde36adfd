"""
Shared HTTP client for PatSnap calls.

Unlike a raise-for-status client, non-2xx responses are returned to the
caller: the token manager and the gateway both need the upstream status and
body to build their own errors. Only transport failures are raised, as
``NetworkError``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Sequence

import requests
from requests import Response

from patsnap_common.errors import NetworkError
from patsnap_config.settings import PatsnapSettings


logger = logging.getLogger(__name__)


class HttpClient:
    """A small wrapper around `requests.Session` with explicit timeouts."""

    def __init__(
        self,
        *,
        timeout: tuple[float, float] | float = (3.05, 30.0),
        user_agent: str = "patsnap-mcp/0.2",
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        # Always set a UA; allow callers to override per-request.
        self.session.headers.setdefault("User-Agent", user_agent)

    @classmethod
    def from_settings(cls, settings: PatsnapSettings, *, session: requests.Session | None = None) -> "HttpClient":
        return cls(timeout=settings.timeout, user_agent=settings.user_agent, session=session)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Sequence[tuple[str, str]] | Mapping[str, Any] | None = None,
        json: Any | None = None,
        data: Any | None = None,
        auth: tuple[str, str] | None = None,
        timeout: tuple[float, float] | float | None = None,
    ) -> Response:
        """Perform an HTTP request; raise NetworkError only when the transport fails."""
        t0 = time.perf_counter()
        try:
            resp = self.session.request(
                method=method,
                url=url,
                headers=dict(headers) if headers else None,
                params=params or None,
                json=json,
                data=data,
                auth=auth,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            ms = int((time.perf_counter() - t0) * 1000)
            logger.warning("HTTP %s %s failed (ms=%s): %s", method.upper(), url, ms, e)
            raise NetworkError(f"Failed to reach PatSnap at {url}: {e}") from e

        ms = int((time.perf_counter() - t0) * 1000)
        logger.debug("HTTP %s %s -> %s (ms=%s)", method.upper(), url, resp.status_code, ms)
        return resp

    def get(self, url: str, **kwargs: Any) -> Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Response:
        return self.request("POST", url, **kwargs)
