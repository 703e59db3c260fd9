from __future__ import annotations

import uuid

import pytest

from accounts import (
    Account,
    AccountKind,
    CrackedAccount,
    MicrosoftAccount,
    account_from_dict,
    offline_uuid,
)
from microsoft_oauth import AuthenticationError, GameProfile

from .fakes import PROFILE_ID, happy_routes


def test_offline_uuid_is_version_3_name_based() -> None:
    value = offline_uuid("Notch")
    parsed = uuid.UUID(value)
    assert parsed.version == 3
    assert value == offline_uuid("Notch")
    assert value != offline_uuid("notch")


def test_cracked_account_derives_uuid_from_name() -> None:
    account = CrackedAccount(username="Alex")
    assert account.type is AccountKind.CRACKED
    assert account.uuid == offline_uuid("Alex")
    assert not account.ownership

    account.set_username("Steve")
    assert account.uuid == offline_uuid("Steve")


def test_microsoft_account_dict_uses_stored_field_names() -> None:
    account = MicrosoftAccount(access_token="MC", uuid=PROFILE_ID, username="Steve", refresh_token="R1")
    data = account.to_dict()

    assert data["type"] == "microsoft"
    assert data["accessToken"] == "MC"
    assert data["refreshToken"] == "R1"
    assert data["alternativeValidation"] is True
    assert account_from_dict("microsoft", data) == account


def test_kind_dispatch() -> None:
    cracked = CrackedAccount(username="Alex")
    assert isinstance(account_from_dict("cracked", cracked.to_dict()), CrackedAccount)

    token = Account(access_token="T", uuid="u1", username="Tok")
    restored = account_from_dict("token", token.to_dict())
    assert type(restored) is Account
    assert restored.type is AccountKind.TOKEN


def test_unknown_kind_falls_back_to_plain_account() -> None:
    data = {"uuid": "u1", "username": "Someone", "type": "legacy", "accessToken": "T"}
    restored = account_from_dict("legacy", data)
    assert type(restored) is Account
    assert restored.uuid == "u1"
    assert restored.access_token == "T"


def test_apply_profile() -> None:
    account = MicrosoftAccount()
    account.apply_profile(GameProfile(id=PROFILE_ID, name="Steve", raw={"id": PROFILE_ID, "name": "Steve"}))
    assert account.uuid == PROFILE_ID
    assert account.username == "Steve"
    assert account.ownership


@pytest.mark.asyncio
async def test_auth_flow_and_refresh(web_config, make_chain) -> None:
    chain, services = make_chain(web_config, happy_routes(refresh_token="R1", game_token="MC1"))
    account = MicrosoftAccount()

    assert await account.auth_flow("abc123", chain) == "MC1"
    assert account.auth_code == "abc123"
    assert account.refresh_token == "R1"

    services.routes.update(happy_routes(refresh_token="R2", game_token="MC2"))
    assert await account.refresh(chain) == "MC2"
    assert account.refresh_token == "R2"


@pytest.mark.asyncio
async def test_refresh_without_refresh_token(web_config, make_chain) -> None:
    chain, services = make_chain(web_config, happy_routes())

    with pytest.raises(AuthenticationError):
        await MicrosoftAccount().refresh(chain)

    assert services.requests == []
