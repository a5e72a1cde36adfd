from __future__ import annotations

import datetime as _dt
import json
from pathlib import Path
from typing import Any, Mapping

from patsnap_config.settings import telemetry_dir, telemetry_disabled
from patsnap_common.errors import REDACT_TOKEN

TOOL_TELEMETRY_FILE = "mcp-telemetry.jsonl"
TOKEN_LOG_FILE = "token-responses.jsonl"

_SECRET_KEYS = {
    "authorization",
    "access_token",
    "refresh_token",
    "token",
    "api_key",
    "apikey",
    "client_secret",
}


def utc_now_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")


def redact_secrets(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.strip().lower() in _SECRET_KEYS:
                if isinstance(v, str) and v.strip().lower().startswith("bearer "):
                    out[k] = "Bearer " + REDACT_TOKEN
                else:
                    out[k] = REDACT_TOKEN
            else:
                out[k] = redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [redact_secrets(x) for x in obj]
    return obj


def append_jsonl(filename: str, record: Mapping[str, Any]) -> Path | None:
    """Append one redacted JSON line under the telemetry dir.

    Returns the file written, or None when telemetry is disabled.
    I/O errors propagate; callers decide whether they are fatal.
    """
    if telemetry_disabled():
        return None

    d = telemetry_dir()
    d.mkdir(parents=True, exist_ok=True)
    p = d / filename
    with p.open("a", encoding="utf-8") as f:
        f.write(json.dumps(redact_secrets(record), ensure_ascii=False, default=str) + "\n")
    return p


def log_event(
    kind: str,
    name: str,
    args: dict | None = None,
    ok: bool = True,
    ms: int = 0,
    *,
    client_id: str | None = None,
    corr_id: str | None = None,
    telemetry_file: str = TOOL_TELEMETRY_FILE,
) -> None:
    """
    Append JSONL telemetry for tool calls.
    """
    rec = {
        "ts": utc_now_iso(),
        "kind": kind,
        "name": name,
        "client_id": client_id,
        "corr_id": corr_id,
        "args": {} if args is None else dict(args),
        "ok": bool(ok),
        "ms": int(ms),
    }
    append_jsonl(telemetry_file, rec)


def record_token_response(status: int, body: Any) -> None:
    """Diagnostic trail of raw token-endpoint responses (token values redacted)."""
    append_jsonl(TOKEN_LOG_FILE, {"ts": utc_now_iso(), "status": int(status), "response": body})

