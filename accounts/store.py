"""
Encrypted account store

Each account is serialized to JSON, sealed with the envelope codec and kept
in a single ``accounts`` list next to a few plaintext fields used for lookup
and listing.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from microsoft_oauth.errors import ConfigurationError, TokenExpiredError
from microsoft_oauth.profile import fetch_profile
from microsoft_oauth.token_exchange import TokenExchangeChain
from utils.encryption import open_sealed, seal
from utils.storage import KeyValueFile

from .errors import AccountNotFoundError, InvalidAccountError
from .models import Account, MicrosoftAccount, account_from_dict

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = "accounts"
MIN_TOKEN_LENGTH = 32


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class StoredAccount:
    """One persisted record; only ``encrypted_data`` holds secrets"""
    uuid: str
    username: str
    type: str
    encrypted_data: str
    last_used: int
    added_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uuid": self.uuid,
            "username": self.username,
            "type": self.type,
            "encryptedData": self.encrypted_data,
            "lastUsed": self.last_used,
            "addedAt": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredAccount":
        return cls(
            uuid=data["uuid"],
            username=data.get("username") or "",
            type=data.get("type") or "",
            encrypted_data=data["encryptedData"],
            last_used=int(data.get("lastUsed", 0)),
            added_at=int(data.get("addedAt", 0)),
        )


@dataclass(frozen=True)
class AccountMetadata:
    uuid: str
    username: str
    type: str
    last_used: int
    added_at: int


class AccountStore:
    """Add, look up and refresh accounts whose secrets are sealed at rest"""

    def __init__(
        self,
        encryption_token: str,
        storage: KeyValueFile,
        exchange: Optional[TokenExchangeChain] = None,
    ):
        """
        Args:
            encryption_token: Secret every record is sealed under
            storage: Key-value file holding the ``accounts`` list
            exchange: Token chain used to refresh Microsoft accounts

        Raises:
            ConfigurationError: The encryption token is empty
        """
        if not encryption_token:
            raise ConfigurationError("ENCRYPTION_TOKEN is required", code="CONFIG-ENCRYPTION-TOKEN")
        if len(encryption_token) < MIN_TOKEN_LENGTH:
            logger.warning(
                f"Encryption token is shorter than {MIN_TOKEN_LENGTH} characters; use a longer random value"
            )

        self._token = encryption_token
        self.storage = storage
        self.exchange = exchange

    @classmethod
    def from_settings(
        cls,
        exchange: Optional[TokenExchangeChain] = None,
        storage: Optional[KeyValueFile] = None,
    ) -> "AccountStore":
        """Build a store from ``ENCRYPTION_TOKEN`` and ``ACCOUNTS_FILE``"""
        import settings

        if storage is None:
            storage = KeyValueFile(settings.ACCOUNTS_FILE, defaults={ACCOUNTS_KEY: []})
        return cls(settings.ENCRYPTION_TOKEN or "", storage, exchange)

    # Record I/O

    def _load_records(self) -> List[StoredAccount]:
        return [StoredAccount.from_dict(item) for item in self.storage.get(ACCOUNTS_KEY, [])]

    def _save_records(self, records: List[StoredAccount]) -> None:
        self.storage.set(ACCOUNTS_KEY, [record.to_dict() for record in records])

    def _seal_account(self, account: Account) -> str:
        return seal(json.dumps(account.to_dict()), self._token)

    def _open_record(self, record: StoredAccount) -> Account:
        data = json.loads(open_sealed(record.encrypted_data, self._token))
        return account_from_dict(record.type, data)

    def _touch(self, match: Callable[[StoredAccount], bool], identifier: str) -> Account:
        records = self._load_records()
        for record in records:
            if match(record):
                account = self._open_record(record)
                record.last_used = _now_ms()
                self._save_records(records)
                return account
        raise AccountNotFoundError(identifier)

    # Operations

    def upsert(self, account: Account) -> None:
        """Add an account or replace the record with the same uuid

        Raises:
            InvalidAccountError: The account has no uuid
        """
        if not account.uuid:
            raise InvalidAccountError("Account must have a UUID before being stored")

        records = self._load_records()
        now = _now_ms()
        existing = next((i for i, r in enumerate(records) if r.uuid == account.uuid), None)

        record = StoredAccount(
            uuid=account.uuid,
            username=account.username or "",
            type=account.type.value,
            encrypted_data=self._seal_account(account),
            last_used=now,
            added_at=records[existing].added_at if existing is not None else now,
        )

        if existing is not None:
            records[existing] = record
            logger.info(f"Updated stored account {account.uuid}")
        else:
            records.append(record)
            logger.info(f"Added account {account.uuid} ({record.type})")

        self._save_records(records)

    def remove(self, identifier: str) -> None:
        records = self._load_records()
        remaining = [r for r in records if r.uuid != identifier]
        if len(remaining) != len(records):
            logger.info(f"Removed account {identifier}")
        self._save_records(remaining)

    def get_by_identifier(self, identifier: str) -> Account:
        """Decrypt the account with this uuid and mark it used

        Raises:
            AccountNotFoundError: No such account
            DecryptionError: The record cannot be opened with this store's token
        """
        return self._touch(lambda r: r.uuid == identifier, identifier)

    def get_by_display_name(self, name: str) -> Account:
        """Like :meth:`get_by_identifier`, matching the username case-insensitively"""
        wanted = name.lower()
        return self._touch(lambda r: r.username.lower() == wanted, name)

    def list_all(self) -> List[Account]:
        return [self._open_record(record) for record in self._load_records()]

    def list_metadata(self) -> List[AccountMetadata]:
        """Plaintext fields of every record; nothing is decrypted"""
        return [
            AccountMetadata(
                uuid=r.uuid,
                username=r.username,
                type=r.type,
                last_used=r.last_used,
                added_at=r.added_at,
            )
            for r in self._load_records()
        ]

    def clear(self) -> None:
        self._save_records([])
        logger.info("Cleared all stored accounts")

    def count(self) -> int:
        return len(self._load_records())

    async def refresh(self, identifier: str) -> Account:
        """
        Refresh an account's tokens and store the result.

        Microsoft accounts re-run the token chain from their refresh token;
        other kinds are stored again unchanged.

        Raises:
            AccountNotFoundError: No such account
            ConfigurationError: A Microsoft account needs refreshing but no chain was given
        """
        account = self.get_by_identifier(identifier)

        if isinstance(account, MicrosoftAccount):
            if self.exchange is None:
                raise ConfigurationError(
                    "A token exchange chain is required to refresh Microsoft accounts",
                    code="CONFIG-EXCHANGE",
                )
            await account.refresh(self.exchange)

        self.upsert(account)
        return account

    async def ensure_fresh(self, identifier: str) -> Account:
        """
        Return the account with a usable game token, refreshing only when needed.

        The stored token is checked against the profile endpoint. Only a
        rejected token (HTTP 401) or a missing one leads to a refresh; any
        other failure propagates.
        """
        account = self.get_by_identifier(identifier)
        if not isinstance(account, MicrosoftAccount):
            return account

        if account.access_token:
            http_client = self.exchange.http_client if self.exchange else None
            timeout = self.exchange.timeout if self.exchange else 30.0
            try:
                await fetch_profile(account.access_token, http_client=http_client, timeout=timeout)
                return account
            except TokenExpiredError:
                logger.info(f"Stored token for {identifier} was rejected; refreshing")
        else:
            logger.info(f"No stored token for {identifier}; refreshing")

        return await self.refresh(identifier)
