from __future__ import annotations

import json
import os
import platform
from pathlib import Path

import httpx
import pytest

from accounts import (
    AccountNotFoundError,
    AccountStore,
    CrackedAccount,
    InvalidAccountError,
    MicrosoftAccount,
)
from accounts import store as store_module
from microsoft_oauth import ConfigurationError
from microsoft_oauth.constants import LIVE_TOKEN_URL, MC_PROFILE_URL
from utils.encryption import DecryptionError
from utils.storage import KeyValueFile

from .fakes import ENCRYPTION_TOKEN, PROFILE_ID, happy_routes


class Clock:
    def __init__(self, now: int = 1_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> Clock:
    fake = Clock()
    monkeypatch.setattr(store_module, "_now_ms", fake)
    return fake


@pytest.fixture
def accounts_file(tmp_path: Path) -> Path:
    return tmp_path / "vault" / "minecraft-profiles.json"


@pytest.fixture
def store(accounts_file: Path) -> AccountStore:
    return AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(accounts_file)))


def _microsoft(uuid: str = PROFILE_ID, username: str = "Steve", access_token: str = "MC1") -> MicrosoftAccount:
    return MicrosoftAccount(access_token=access_token, uuid=uuid, username=username, refresh_token="R1", ownership=True)


def test_upsert_and_get(store: AccountStore) -> None:
    account = _microsoft()
    store.upsert(account)

    assert store.count() == 1
    assert store.get_by_identifier(PROFILE_ID) == account


def test_secrets_are_not_stored_in_plaintext(store: AccountStore, accounts_file: Path) -> None:
    store.upsert(_microsoft(access_token="MC-SECRET-TOKEN"))

    text = accounts_file.read_text()
    assert "MC-SECRET-TOKEN" not in text

    record = json.loads(text)["accounts"][0]
    assert set(record) == {"uuid", "username", "type", "encryptedData", "lastUsed", "addedAt"}
    assert record["type"] == "microsoft"


def test_upsert_twice_keeps_added_at(store: AccountStore, clock: Clock) -> None:
    store.upsert(_microsoft(access_token="MC1"))
    clock.now = 5_000
    store.upsert(_microsoft(access_token="MC2"))

    (metadata,) = store.list_metadata()
    assert metadata.added_at == 1_000
    assert metadata.last_used == 5_000
    assert store.count() == 1
    assert store.get_by_identifier(PROFILE_ID).access_token == "MC2"


def test_upsert_requires_uuid(store: AccountStore) -> None:
    with pytest.raises(InvalidAccountError):
        store.upsert(MicrosoftAccount(access_token="MC"))
    assert store.count() == 0


def test_missing_identifier(store: AccountStore) -> None:
    store.upsert(_microsoft())
    with pytest.raises(AccountNotFoundError):
        store.get_by_identifier("nope")
    with pytest.raises(AccountNotFoundError):
        store.get_by_display_name("nobody")


def test_lookup_touches_last_used(store: AccountStore, clock: Clock) -> None:
    store.upsert(_microsoft())
    clock.now = 9_000

    store.get_by_display_name("sTeVe")

    (metadata,) = store.list_metadata()
    assert metadata.last_used == 9_000
    assert metadata.added_at == 1_000


def test_list_all_dispatches_by_kind(store: AccountStore) -> None:
    store.upsert(_microsoft())
    store.upsert(CrackedAccount(username="Alex"))

    kinds = {type(account) for account in store.list_all()}
    assert kinds == {MicrosoftAccount, CrackedAccount}
    assert [m.type for m in store.list_metadata()] == ["microsoft", "cracked"]


def test_list_metadata_does_not_decrypt(accounts_file: Path) -> None:
    writer = AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(accounts_file)))
    writer.upsert(_microsoft())

    reader = AccountStore("a-completely-different-token-value", KeyValueFile(str(accounts_file)))
    assert [m.username for m in reader.list_metadata()] == ["Steve"]
    with pytest.raises(DecryptionError):
        reader.list_all()


def test_remove_and_clear(store: AccountStore) -> None:
    store.upsert(_microsoft())
    store.upsert(CrackedAccount(username="Alex"))

    store.remove(PROFILE_ID)
    assert [m.username for m in store.list_metadata()] == ["Alex"]

    store.remove("not-there")
    assert store.count() == 1

    store.clear()
    assert store.count() == 0
    assert store.list_all() == []


def test_store_file_permissions(store: AccountStore, accounts_file: Path) -> None:
    if platform.system() == "Windows":
        pytest.skip("POSIX permissions only")

    store.upsert(_microsoft())

    assert accounts_file.stat().st_mode & 0o777 == 0o600
    assert os.stat(accounts_file.parent).st_mode & 0o777 == 0o700


def test_empty_token_is_a_configuration_error(accounts_file: Path) -> None:
    with pytest.raises(ConfigurationError):
        AccountStore("", KeyValueFile(str(accounts_file)))


def test_short_token_warns(accounts_file: Path, caplog: pytest.LogCaptureFixture) -> None:
    AccountStore("short", KeyValueFile(str(accounts_file)))
    assert "shorter than 32" in caplog.text


@pytest.mark.asyncio
async def test_refresh_microsoft_account(accounts_file, web_config, make_chain, clock) -> None:
    chain, services = make_chain(web_config, happy_routes(refresh_token="R2", game_token="MC2"))
    store = AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(accounts_file)), exchange=chain)
    store.upsert(_microsoft(access_token="MC1"))
    clock.now = 2_000

    refreshed = await store.refresh(PROFILE_ID)

    assert refreshed.access_token == "MC2"
    assert refreshed.refresh_token == "R2"
    stored = store.get_by_identifier(PROFILE_ID)
    assert stored.access_token == "MC2"
    assert stored.refresh_token == "R2"
    assert "refresh_token=R1" in services.requests_to(LIVE_TOKEN_URL)[0].content.decode()
    (metadata,) = store.list_metadata()
    assert metadata.added_at == 1_000


@pytest.mark.asyncio
async def test_refresh_missing_account(store: AccountStore) -> None:
    with pytest.raises(AccountNotFoundError):
        await store.refresh("nope")


@pytest.mark.asyncio
async def test_refresh_cracked_account_restores_unchanged(store: AccountStore) -> None:
    account = CrackedAccount(username="Alex")
    store.upsert(account)

    assert await store.refresh(account.uuid) == account


@pytest.mark.asyncio
async def test_refresh_microsoft_without_chain(store: AccountStore) -> None:
    store.upsert(_microsoft())
    with pytest.raises(ConfigurationError):
        await store.refresh(PROFILE_ID)


@pytest.mark.asyncio
async def test_ensure_fresh_keeps_valid_token(accounts_file, web_config, make_chain) -> None:
    chain, services = make_chain(web_config, happy_routes(game_token="MC2"))
    store = AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(accounts_file)), exchange=chain)
    store.upsert(_microsoft(access_token="MC1"))

    account = await store.ensure_fresh(PROFILE_ID)

    assert account.access_token == "MC1"
    assert services.requests_to(LIVE_TOKEN_URL) == []


@pytest.mark.asyncio
async def test_ensure_fresh_refreshes_rejected_token(accounts_file, web_config, make_chain) -> None:
    routes = happy_routes(game_token="MC2")
    routes[MC_PROFILE_URL] = httpx.Response(401, text="")
    chain, _ = make_chain(web_config, routes)
    store = AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(accounts_file)), exchange=chain)
    store.upsert(_microsoft(access_token="MC1"))

    account = await store.ensure_fresh(PROFILE_ID)

    assert account.access_token == "MC2"
    assert store.get_by_identifier(PROFILE_ID).access_token == "MC2"


@pytest.mark.asyncio
async def test_ensure_fresh_refreshes_missing_token(accounts_file, web_config, make_chain) -> None:
    chain, services = make_chain(web_config, happy_routes(game_token="MC2"))
    store = AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(accounts_file)), exchange=chain)
    store.upsert(_microsoft(access_token=None))

    account = await store.ensure_fresh(PROFILE_ID)

    assert account.access_token == "MC2"
    assert services.requests_to(MC_PROFILE_URL) == []


@pytest.mark.asyncio
async def test_ensure_fresh_propagates_other_errors(accounts_file, web_config, make_chain) -> None:
    routes = happy_routes()
    routes[MC_PROFILE_URL] = httpx.Response(503, text="unavailable")
    chain, services = make_chain(web_config, routes)
    store = AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(accounts_file)), exchange=chain)
    store.upsert(_microsoft(access_token="MC1"))

    with pytest.raises(httpx.HTTPStatusError):
        await store.ensure_fresh(PROFILE_ID)

    assert services.requests_to(LIVE_TOKEN_URL) == []


def test_failed_decryption_leaves_last_used(accounts_file: Path, clock: Clock) -> None:
    writer = AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(accounts_file)))
    writer.upsert(_microsoft())
    clock.now = 7_000

    reader = AccountStore("a-completely-different-token-value", KeyValueFile(str(accounts_file)))
    with pytest.raises(DecryptionError):
        reader.get_by_identifier(PROFILE_ID)

    (metadata,) = writer.list_metadata()
    assert metadata.last_used == 1_000
