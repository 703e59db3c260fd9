from __future__ import annotations

import httpx
import pytest

from microsoft_oauth import OwnershipError, TokenExpiredError, fetch_profile
from microsoft_oauth.constants import MC_PROFILE_URL

from .fakes import PROFILE_ID, FakeIdentityServices


def _client(response: httpx.Response):
    services = FakeIdentityServices({MC_PROFILE_URL: response})
    return httpx.AsyncClient(transport=httpx.MockTransport(services)), services


@pytest.mark.asyncio
async def test_profile_is_parsed() -> None:
    client, services = _client(
        httpx.Response(200, json={"id": PROFILE_ID, "name": "Steve", "skins": [{"id": "s1"}], "capes": []})
    )

    profile = await fetch_profile("MC_TOKEN", http_client=client)

    assert profile.id == PROFILE_ID
    assert profile.name == "Steve"
    assert profile.skins == [{"id": "s1"}]
    assert services.requests[0].headers["authorization"] == "Bearer MC_TOKEN"


@pytest.mark.asyncio
async def test_not_found_means_no_ownership() -> None:
    client, _ = _client(httpx.Response(404, json={"error": "NOT_FOUND"}))

    with pytest.raises(OwnershipError) as excinfo:
        await fetch_profile("MC_TOKEN", http_client=client)

    assert excinfo.value.code == "MC-NOT-PREMIUM"


@pytest.mark.asyncio
async def test_unauthorized_means_expired_token() -> None:
    client, _ = _client(httpx.Response(401, text=""))

    with pytest.raises(TokenExpiredError):
        await fetch_profile("MC_TOKEN", http_client=client)


@pytest.mark.asyncio
async def test_other_statuses_propagate() -> None:
    client, _ = _client(httpx.Response(503, text="unavailable"))

    with pytest.raises(httpx.HTTPStatusError):
        await fetch_profile("MC_TOKEN", http_client=client)
