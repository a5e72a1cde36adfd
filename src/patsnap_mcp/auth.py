"""OAuth2 client-credentials token cache for the PatSnap API."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from patsnap_common.errors import AuthError, ConfigError, ParseError
from patsnap_common.telemetry import record_token_response
from patsnap_config.settings import PatsnapSettings
from patsnap_mcp.http_client import HttpClient


logger = logging.getLogger(__name__)

TOKEN_PATH = "oauth/token"

# A cached token is only handed out while now < expires_at - EXPIRY_BUFFER_S.
EXPIRY_BUFFER_S = 60.0


@dataclass(frozen=True)
class CachedToken:
    value: str
    expires_at: float

    def is_fresh(self, now: float, buffer_s: float = EXPIRY_BUFFER_S) -> bool:
        return now < self.expires_at - buffer_s


def _nested_data(body: Mapping[str, Any]) -> Mapping[str, Any]:
    data = body.get("data")
    return data if isinstance(data, Mapping) else {}


# PatSnap has returned the token under different keys over time; keep every
# known shape and try them in order.
TOKEN_EXTRACTORS: tuple[Callable[[Mapping[str, Any]], Any], ...] = (
    lambda body: body.get("access_token"),
    lambda body: body.get("token"),
    lambda body: _nested_data(body).get("token"),
)

EXPIRY_KEYS = ("expires_in", "expiresIn")


def extract_token(body: Any) -> str | None:
    if not isinstance(body, Mapping):
        return None
    for extractor in TOKEN_EXTRACTORS:
        value = extractor(body)
        if isinstance(value, str) and value:
            return value
    return None


def extract_expires_in(body: Any) -> float | None:
    """Positive expiry in seconds, or None when the response declares none."""
    if not isinstance(body, Mapping):
        return None
    for scope in (body, _nested_data(body)):
        for key in EXPIRY_KEYS:
            value = scope.get(key)
            if isinstance(value, bool):
                continue
            if isinstance(value, str):
                try:
                    value = float(value)
                except ValueError:
                    continue
            if isinstance(value, (int, float)) and math.isfinite(value) and value > 0:
                return float(value)
    return None


class TokenManager:
    """Fetches and caches one bearer token for one client id/secret pair."""

    def __init__(
        self,
        settings: PatsnapSettings,
        http: HttpClient | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.http = http or HttpClient.from_settings(settings)
        self._clock = clock
        self._cached: CachedToken | None = None
        self._lock = threading.Lock()

    @property
    def token_url(self) -> str:
        return f"{self.settings.base_url}/{TOKEN_PATH}"

    @property
    def cached_token(self) -> CachedToken | None:
        return self._cached

    def invalidate(self) -> None:
        if self._cached is not None:
            logger.info("Invalidating cached PatSnap token")
        self._cached = None

    def get_token(self) -> str:
        if not self.settings.has_credentials:
            raise ConfigError("Missing PATSNAP_CLIENT_ID or PATSNAP_CLIENT_SECRET")

        with self._lock:
            cached = self._cached
            if cached is not None and cached.is_fresh(self._clock()):
                return cached.value
            return self._fetch()

    def _fetch(self) -> str:
        resp = self.http.post(
            self.token_url,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data={"grant_type": "client_credentials"},
            auth=(self.settings.client_id, self.settings.client_secret),
        )
        # Expiry is measured from when the response arrived.
        now = self._clock()

        if not 200 <= resp.status_code < 300:
            self._cached = None
            self._log_response(resp.status_code, resp.text)
            raise AuthError(
                f"Failed to get token (HTTP {resp.status_code}): {resp.text}",
                status=resp.status_code,
                body=resp.text,
            )

        try:
            body = resp.json()
        except ValueError as e:
            self._log_response(resp.status_code, resp.text)
            raise ParseError(f"Failed to parse token response: {e}", body=resp.text) from e

        self._log_response(resp.status_code, body)

        token = extract_token(body)
        if token is None:
            raise ParseError("Token response contains no access_token/token field", body=resp.text)

        expires_in = extract_expires_in(body)
        if expires_in is None:
            logger.warning("Token response declares no expiry; token will not be cached")
            self._cached = None
        else:
            self._cached = CachedToken(value=token, expires_at=now + expires_in)
            logger.info("Obtained PatSnap token (expires_in=%ss)", int(expires_in))
        return token

    @staticmethod
    def _log_response(status: int, body: Any) -> None:
        try:
            record_token_response(status, body)
        except Exception as e:
            logger.warning("Could not write token response log: %s", e)
