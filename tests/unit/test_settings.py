from __future__ import annotations

import logging

import patsnap_config.settings as settings_mod
from patsnap_config.settings import DEFAULT_BASE_URL, PatsnapSettings, telemetry_dir


def test_from_env_reads_credentials_and_overrides(monkeypatch):
    monkeypatch.setenv("PATSNAP_CLIENT_ID", " cid ")
    monkeypatch.setenv("PATSNAP_CLIENT_SECRET", "secret")
    monkeypatch.setenv("PATSNAP_BASE_URL", "https://example.test/")
    monkeypatch.setenv("PATSNAP_HTTP_READ_TIMEOUT", "12.5")
    monkeypatch.setenv("PATSNAP_HTTP_CONNECT_TIMEOUT", "not-a-number")

    s = PatsnapSettings.from_env()

    assert s.client_id == "cid"
    assert s.has_credentials
    assert s.base_url == "https://example.test"
    assert s.timeout == (3.05, 12.5)


def test_from_env_defaults_without_credentials(monkeypatch):
    for name in ("PATSNAP_CLIENT_ID", "PATSNAP_CLIENT_SECRET", "PATSNAP_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PATSNAP_CLIENT_SECRET", "   ")

    s = PatsnapSettings.from_env()

    assert s.client_id is None and s.client_secret is None
    assert not s.has_credentials
    assert s.base_url == DEFAULT_BASE_URL


def test_telemetry_dir_override(tmp_path, monkeypatch):
    monkeypatch.setenv("PATSNAP_TELEMETRY_DIR", str(tmp_path / "t"))
    assert telemetry_dir() == (tmp_path / "t").resolve()


def test_configure_logging_is_idempotent(monkeypatch):
    calls = []
    monkeypatch.setattr(settings_mod.logging, "basicConfig", lambda **kw: calls.append(kw))

    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setenv("PATSNAP_LOG_LEVEL", "debug")
    settings_mod.configure_logging()
    assert calls and calls[0]["level"] == logging.DEBUG

    monkeypatch.setattr(root, "handlers", [logging.NullHandler()])
    settings_mod.configure_logging()
    assert len(calls) == 1
