from __future__ import annotations

from typing import Dict

import httpx
import pytest

from microsoft_oauth import AuthConfig, TokenExchangeChain

from .fakes import REDIRECT_URI, FakeIdentityServices, Route


@pytest.fixture
def web_config() -> AuthConfig:
    return AuthConfig(app_id="C", app_secret="S", redirect_uri=REDIRECT_URI)


@pytest.fixture
def spa_config() -> AuthConfig:
    return AuthConfig(app_id="C", redirect_uri=REDIRECT_URI)


@pytest.fixture
def make_chain():
    """Build a chain whose HTTP traffic goes to a FakeIdentityServices"""

    def _make(config: AuthConfig, routes: Dict[str, Route]):
        services = FakeIdentityServices(routes)
        client = httpx.AsyncClient(transport=httpx.MockTransport(services))
        return TokenExchangeChain(config, http_client=client, timeout=5.0), services

    return _make
