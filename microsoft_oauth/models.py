"""Data models for the Microsoft / Xbox Live login chain"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class ProviderToken:
    """OAuth token response from the Microsoft token endpoint

    Attributes:
        access_token: Microsoft access token, used as the Xbox Live RPS ticket
        refresh_token: Long-lived token for the refresh grant
        expires_in: Access token lifetime in seconds
        token_type: Usually "bearer"
        scope: Scopes granted by the provider
    """
    access_token: str
    refresh_token: str
    expires_in: int = 3600
    token_type: str = "bearer"
    scope: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "ProviderToken":
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            expires_in=int(data.get("expires_in", 3600)),
            token_type=data.get("token_type", "bearer"),
            scope=data.get("scope"),
        )


@dataclass
class XboxLiveToken:
    """Xbox Live user token and the user hash (``uhs``) claim"""
    token: str
    user_hash: str


@dataclass
class ExchangeCredential:
    """Result of a complete login chain

    Attributes:
        access_token: Minecraft services access token
        refresh_token: Microsoft refresh token to re-run the chain later
    """
    access_token: str
    refresh_token: str


@dataclass
class GameProfile:
    """Minecraft: Java Edition profile"""
    id: str
    name: str
    skins: List[Dict[str, Any]] = field(default_factory=list)
    capes: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "GameProfile":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            skins=data.get("skins") or [],
            capes=data.get("capes") or [],
            raw=data,
        )


# Callback listener outcomes. Exactly one is produced per listener lifecycle.

@dataclass(frozen=True)
class CodeReceived:
    code: str


@dataclass(frozen=True)
class ProviderErrorReceived:
    error: str
    description: str = ""


@dataclass(frozen=True)
class TimedOut:
    pass


@dataclass(frozen=True)
class Aborted:
    pass


@dataclass(frozen=True)
class ClosedByClient:
    pass


CallbackOutcome = Union[CodeReceived, ProviderErrorReceived, TimedOut, Aborted, ClosedByClient]
