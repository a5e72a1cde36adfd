from __future__ import annotations

from typing import Any

from mcp.types import ErrorData

REDACT_TOKEN = "***redacted***"


def typed_error(code: str, message: str, *, details: dict | None = None, **extra: Any) -> dict:
    """
    Standard error envelope:
      {"error": {"code": code, "message": message, "details": {...}}, ...extra}
    """
    err: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        err["error"]["details"] = details
    if extra:
        err.update(extra)
    return err


class PatsnapError(Exception):
    """Base class for every failure surfaced to the MCP caller.

    ``status`` is the numeric code reported on the protocol error
    (upstream HTTP status where there is one).
    """

    code = "internal"
    default_status = 500

    def __init__(self, message: str, *, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = int(status if status is not None else self.default_status)
        self.body = body

    def details(self) -> dict:
        d: dict[str, Any] = {"status": self.status}
        if self.body:
            d["body"] = self.body
        return d

    def to_dict(self) -> dict:
        return typed_error(self.code, self.message, details=self.details())

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.status, message=self.message, data=self.details())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, message={self.message!r})"


class ConfigError(PatsnapError):
    code = "config_error"


class NetworkError(PatsnapError):
    code = "network_error"
    default_status = 503


class ApiError(PatsnapError):
    """Non-2xx HTTP response from a PatSnap data endpoint."""

    code = "api_error"
    default_status = 502

    @property
    def is_auth_failure(self) -> bool:
        return self.status in (401, 403)


class AuthError(ApiError):
    """Non-2xx HTTP response from the token endpoint."""

    code = "auth_error"


class ParseError(PatsnapError):
    code = "parse_error"
    default_status = 502


class UpstreamError(PatsnapError):
    """2xx response whose body reports a failure (``status: false``)."""

    code = "upstream_error"
    default_status = 502

    def __init__(self, message: str, *, upstream_code: Any = None, upstream_msg: str | None = None, **kw: Any) -> None:
        super().__init__(message, **kw)
        self.upstream_code = upstream_code
        self.upstream_msg = upstream_msg

    def details(self) -> dict:
        d = super().details()
        d["error_code"] = self.upstream_code
        if self.upstream_msg:
            d["error_msg"] = self.upstream_msg
        return d


class NotFoundError(PatsnapError):
    code = "not_found"
    default_status = 404


class BadRequestError(PatsnapError):
    code = "bad_request"
    default_status = 400


class InternalError(PatsnapError):
    code = "internal"
