from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_BASE_URL = "https://connect.patsnap.com"


def _find_repo_root(start: Path) -> Optional[Path]:
    """Walk upward until we find pyproject.toml or .git."""
    start = start.resolve()
    for p in (start, *start.parents):
        if (p / "pyproject.toml").exists() or (p / ".git").exists():
            return p
    return None


@lru_cache(maxsize=1)
def repo_root() -> Path:
    """Best-effort repository root discovery.

    Order of precedence:
      1) PATSNAP_REPO_ROOT (explicit override)
      2) walk upward from current working directory
      3) walk upward from this module file's directory
    """
    explicit = os.getenv("PATSNAP_REPO_ROOT")
    if explicit:
        p = Path(explicit).expanduser().resolve()
        if not p.is_dir():
            raise RuntimeError(f"PATSNAP_REPO_ROOT does not exist or is not a directory: {p}")
        return p

    root = _find_repo_root(Path.cwd())
    if root:
        return root

    here_dir = Path(__file__).resolve().parent
    root = _find_repo_root(here_dir)
    if root:
        return root

    # repo/src/patsnap_config/settings.py
    if len(here_dir.parents) >= 2:
        return here_dir.parents[1]
    return Path.cwd().resolve()


@lru_cache(maxsize=1)
def load_env_once() -> Optional[Path]:
    """
    Load dotenv exactly once. Precedence:
      1) PATSNAP_ENV_FILE (explicit path)
      2) repo-root/.env
    """
    explicit = os.getenv("PATSNAP_ENV_FILE")
    candidates = []

    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(repo_root() / ".env")

    for p in candidates:
        p = p.resolve()
        if p.is_file():
            # Do NOT override already-set environment variables
            load_dotenv(dotenv_path=str(p), override=False)
            return p

    return None


def telemetry_dir() -> Path:
    """
    Default telemetry dir. Override with PATSNAP_TELEMETRY_DIR.
    """
    p = os.getenv("PATSNAP_TELEMETRY_DIR")
    if p:
        return Path(p).expanduser().resolve()
    return (repo_root() / "artifacts" / "telemetry").resolve()


def telemetry_disabled() -> bool:
    return os.getenv("PATSNAP_DISABLE_TELEMETRY", "0").strip().lower() in {"1", "true", "yes"}


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_str(name: str) -> str | None:
    v = os.getenv(name)
    if v is None:
        return None
    v = v.strip()
    return v or None


@dataclass(frozen=True)
class PatsnapSettings:
    """Process-wide PatSnap configuration, read once at startup.

    Missing credentials are tolerated here; the token manager reports them
    on the first token request.
    """

    client_id: str | None = None
    client_secret: str | None = None
    base_url: str = DEFAULT_BASE_URL
    connect_timeout: float = 3.05
    read_timeout: float = 30.0
    user_agent: str = "patsnap-mcp/0.2"

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls) -> "PatsnapSettings":
        return cls(
            client_id=_env_str("PATSNAP_CLIENT_ID"),
            client_secret=_env_str("PATSNAP_CLIENT_SECRET"),
            base_url=(_env_str("PATSNAP_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            connect_timeout=_env_float("PATSNAP_HTTP_CONNECT_TIMEOUT", 3.05),
            read_timeout=_env_float("PATSNAP_HTTP_READ_TIMEOUT", 30.0),
            user_agent=_env_str("PATSNAP_HTTP_USER_AGENT") or "patsnap-mcp/0.2",
        )


def configure_logging() -> None:
    """
    Configure logging explicitly. No import-time side effects.
    Idempotent: if logging is already configured, do nothing.

    stdout carries the MCP stdio protocol, so records go to stderr
    (the logging.basicConfig default).
    """
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = os.getenv("PATSNAP_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = os.getenv(
        "PATSNAP_LOG_FORMAT",
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logging.basicConfig(level=level, format=fmt)


def init_runtime(*, configure_logs: bool = True, load_env: bool = True) -> None:
    """
    Call this from entrypoints only (servers, scripts).
    """
    if load_env:
        load_env_once()
    if configure_logs:
        configure_logging()
