"""Account value objects and their stored (camelCase) dict form"""

import enum
import hashlib
import logging
import uuid as uuid_lib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from microsoft_oauth.errors import AuthenticationError
from microsoft_oauth.models import GameProfile
from microsoft_oauth.pkce import PKCEPair

if TYPE_CHECKING:
    from microsoft_oauth.token_exchange import TokenExchangeChain

logger = logging.getLogger(__name__)


class AccountKind(str, enum.Enum):
    MOJANG = "mojang"
    CRACKED = "cracked"
    MICROSOFT = "microsoft"
    TOKEN = "token"


def offline_uuid(username: str) -> str:
    """Offline-mode player UUID: version 3 UUID of ``OfflinePlayer:<name>``"""
    digest = hashlib.md5(f"OfflinePlayer:{username}".encode("utf-8")).digest()
    return str(uuid_lib.UUID(bytes=digest, version=3))


@dataclass
class Account:
    """A game account as handed to and returned from the store

    Attributes:
        access_token: Game services access token, if any
        ownership: Whether the account is known to own the game
        uuid: Account identifier; required before storing
        username: Display name
        type: Account kind, used to pick the class on decryption
        profile: Raw profile payload last fetched for the account
        properties: Free-form extra properties
        alternative_validation: Account is validated by token refresh instead of a session check
    """
    access_token: Optional[str] = None
    ownership: bool = False
    uuid: Optional[str] = None
    username: Optional[str] = None
    type: AccountKind = AccountKind.TOKEN
    profile: Optional[Dict[str, Any]] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    alternative_validation: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "ownership": self.ownership,
            "uuid": self.uuid,
            "username": self.username,
            "type": self.type.value,
            "profile": self.profile,
            "properties": self.properties,
            "alternativeValidation": self.alternative_validation,
        }

    @classmethod
    def _common_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "access_token": data.get("accessToken"),
            "ownership": bool(data.get("ownership", False)),
            "uuid": data.get("uuid"),
            "username": data.get("username"),
            "profile": data.get("profile"),
            "properties": data.get("properties") or {},
            "alternative_validation": bool(data.get("alternativeValidation", False)),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        fields = cls._common_fields(data)
        try:
            fields["type"] = AccountKind(data.get("type"))
        except ValueError:
            fields["type"] = AccountKind.TOKEN
        return cls(**fields)

    def apply_profile(self, profile: GameProfile) -> None:
        """Take identifier and display name from a fetched game profile"""
        self.uuid = profile.id
        self.username = profile.name
        self.profile = profile.raw
        self.ownership = True


@dataclass
class MicrosoftAccount(Account):
    """Account signed in through the Microsoft / Xbox Live chain"""
    type: AccountKind = AccountKind.MICROSOFT
    alternative_validation: bool = True
    refresh_token: Optional[str] = None
    auth_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["refreshToken"] = self.refresh_token
        data["authCode"] = self.auth_code
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MicrosoftAccount":
        fields = cls._common_fields(data)
        fields["alternative_validation"] = bool(data.get("alternativeValidation", True))
        return cls(
            refresh_token=data.get("refreshToken"),
            auth_code=data.get("authCode"),
            **fields,
        )

    async def auth_flow(
        self,
        auth_code: str,
        chain: "TokenExchangeChain",
        pkce_pair: Optional[PKCEPair] = None,
    ) -> str:
        """Run the full chain from an authorization code

        Returns:
            The new game access token
        """
        self.auth_code = auth_code
        credential = await chain.run_full_exchange(auth_code, pkce_pair)
        self.access_token = credential.access_token
        self.refresh_token = credential.refresh_token
        return self.access_token

    async def refresh(self, chain: "TokenExchangeChain") -> str:
        """Re-run the chain from the stored refresh token

        Raises:
            AuthenticationError: The account has no refresh token
        """
        if not self.refresh_token:
            raise AuthenticationError(
                "Refresh token not provided",
                "Refresh token not provided for refreshing",
                code="NO-REFRESH-TOKEN",
            )

        credential = await chain.run_refresh_exchange(self.refresh_token)
        self.access_token = credential.access_token
        self.refresh_token = credential.refresh_token
        logger.info(f"Refreshed tokens for account {self.uuid}")
        return self.access_token


@dataclass
class CrackedAccount(Account):
    """Offline account; the identifier is derived from the name"""
    type: AccountKind = AccountKind.CRACKED

    def __post_init__(self):
        if self.username and not self.uuid:
            self.uuid = offline_uuid(self.username)

    def set_username(self, username: str) -> None:
        if not username:
            return
        self.username = username
        self.uuid = offline_uuid(username)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrackedAccount":
        return cls(**cls._common_fields(data))


ACCOUNT_CLASSES: Dict[AccountKind, Type[Account]] = {
    AccountKind.MICROSOFT: MicrosoftAccount,
    AccountKind.CRACKED: CrackedAccount,
}


def account_from_dict(kind: str, data: Dict[str, Any]) -> Account:
    """Rebuild an account, picking the class from the stored kind

    Unknown kinds come back as a plain :class:`Account`.
    """
    try:
        account_cls = ACCOUNT_CLASSES.get(AccountKind(kind), Account)
    except ValueError:
        logger.warning(f"Unknown account kind {kind!r}; loading as a plain account")
        account_cls = Account
    return account_cls.from_dict(data)
