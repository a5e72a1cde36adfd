from __future__ import annotations

import functools
import inspect
import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Callable

from patsnap_common.errors import REDACT_TOKEN, PatsnapError
from patsnap_common.telemetry import TOOL_TELEMETRY_FILE, log_event


logger = logging.getLogger(__name__)

_corr_id_ctx: ContextVar[str | None] = ContextVar("corr_id", default=None)

_REDACTION_KEYS = {"authorization", "token", "access_token", "api_key", "apikey", "client_secret"}


def new_corr_id() -> str:
    return uuid.uuid4().hex


def get_corr_id() -> str | None:
    return _corr_id_ctx.get()


def set_corr_id(corr_id: str | None) -> None:
    if corr_id:
        _corr_id_ctx.set(corr_id)


def sanitize_args_for_log(args: dict | None) -> dict:
    """Remove obvious secrets from args (telemetry layer also redacts)."""
    out: dict[str, Any] = {}
    for k, v in (args or {}).items():
        out[str(k)] = REDACT_TOKEN if str(k).lower() in _REDACTION_KEYS else v
    return out


def _bound_args(sig: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
    """Bind positional/keyword args to parameter names for logging."""
    try:
        return dict(sig.bind_partial(*args, **kwargs).arguments)
    except TypeError:
        d: dict[str, Any] = dict(kwargs)
        if args:
            d["_args"] = list(args)
        return d


def safe_log_event(*args: Any, **kwargs: Any) -> None:
    """log_event that never fails the caller."""
    try:
        log_event(*args, **kwargs)
    except Exception as e:
        logger.warning("Telemetry write failed: %s", e)


@dataclass(frozen=True)
class InstrumentConfig:
    kind: str
    name: str
    client_id: str
    telemetry_file: str = TOOL_TELEMETRY_FILE

    # correlation id behavior
    new_corr_id_per_call: bool = True


def instrument_sync_tool(cfg: InstrumentConfig):
    """Decorator for sync MCP tools: correlation id + one telemetry line per call.

    Errors are recorded and re-raised so the server can report them as
    protocol errors.
    """

    def decorator(fn: Callable[..., Any]):
        fn_sig = inspect.signature(fn)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any):
            corr_id = get_corr_id()
            if cfg.new_corr_id_per_call or not corr_id:
                corr_id = new_corr_id()
                set_corr_id(corr_id)

            t0 = time.perf_counter()
            args_for_log: dict[str, Any] = {"args": sanitize_args_for_log(_bound_args(fn_sig, args, kwargs))}

            ok = True
            try:
                return fn(*args, **kwargs)
            except PatsnapError as e:
                ok = False
                args_for_log["error"] = e.to_dict()["error"]
                raise
            except Exception as e:
                ok = False
                args_for_log["error"] = {"code": "internal", "message": str(e)}
                raise
            finally:
                ms = int((time.perf_counter() - t0) * 1000)
                safe_log_event(
                    cfg.kind,
                    cfg.name,
                    args_for_log,
                    ok=ok,
                    ms=ms,
                    client_id=cfg.client_id,
                    corr_id=corr_id,
                    telemetry_file=cfg.telemetry_file,
                )

        # Preserve signature for schema generation
        wrapper.__signature__ = fn_sig  # type: ignore[attr-defined]
        return wrapper

    return decorator
