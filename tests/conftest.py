from __future__ import annotations

import pytest

from patsnap_config.settings import PatsnapSettings
from patsnap_mcp.auth import TokenManager
from patsnap_mcp.dispatcher import Dispatcher
from patsnap_mcp.gateway import PatsnapGateway
from patsnap_mcp.http_client import HttpClient
from tests.helpers.fakes import FakeClock, FakeResponse, FakeSession

BASE_URL = "https://patsnap.test"


@pytest.fixture(autouse=True)
def _isolated_telemetry(tmp_path, monkeypatch):
    """Keep telemetry/token logs out of the repo."""
    monkeypatch.setenv("PATSNAP_TELEMETRY_DIR", str(tmp_path / "telemetry"))
    monkeypatch.delenv("PATSNAP_DISABLE_TELEMETRY", raising=False)
    return tmp_path / "telemetry"


@pytest.fixture
def settings() -> PatsnapSettings:
    return PatsnapSettings(client_id="cid", client_secret="secret", base_url=BASE_URL)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession({"oauth/token": [FakeResponse(200, {"access_token": "tok-1", "expires_in": 3600})]})


@pytest.fixture
def tokens(settings, session, clock) -> TokenManager:
    return TokenManager(settings, HttpClient(session=session), clock=clock)


@pytest.fixture
def gateway(tokens) -> PatsnapGateway:
    return PatsnapGateway(tokens)


@pytest.fixture
def dispatcher(gateway, settings) -> Dispatcher:
    return Dispatcher(gateway, api_key=settings.client_id)
