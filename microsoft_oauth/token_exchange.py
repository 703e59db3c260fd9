"""
Token exchange chain: Microsoft OAuth -> Xbox Live -> XSTS -> Minecraft services
"""
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional
from urllib.parse import urlencode

import httpx

from .app_config import AuthConfig
from .authorization import AuthorizationURLBuilder
from .constants import (
    LIVE_TOKEN_URL,
    MC_LOGIN_WITH_XBOX_URL,
    TOKEN_URL,
    XBL_RELYING_PARTY,
    XBL_SITE_NAME,
    XBL_USER_AUTH_URL,
    XSTS_AUTHORIZE_URL,
    XSTS_RELYING_PARTY,
    XSTS_SANDBOX,
)
from .errors import (
    AuthenticationError,
    ConfigurationError,
    GameTokenError,
    ProviderAuthError,
    XboxLiveError,
    XSTSError,
)
from .models import ExchangeCredential, ProviderToken, XboxLiveToken
from .pkce import PKCEPair

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def _read_json(response: httpx.Response, on_error: Callable[[str, str], Exception]) -> Dict[str, Any]:
    """Decode a JSON object body or raise ``on_error(error, message)``"""
    try:
        payload = response.json()
    except (json.JSONDecodeError, ValueError):
        raise on_error(
            f"http_{response.status_code}",
            f"Expected a JSON response, got: {response.text[:200]!r}",
        )
    if not isinstance(payload, dict):
        raise on_error("malformed_response", f"Expected a JSON object, got {type(payload).__name__}")
    return payload


class TokenExchangeChain:
    """Runs the Microsoft -> Xbox Live -> XSTS -> Minecraft token chain

    The chain keeps no state between calls; everything it needs besides the
    application configuration is passed in and returned explicitly. Each hop
    is awaited in order and any failure propagates unchanged.
    """

    def __init__(
        self,
        config: AuthConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            config: Application configuration
            http_client: Shared client; when None every request opens its own
            timeout: Per-request timeout in seconds
        """
        self.config = config
        self.http_client = http_client
        self.timeout = timeout
        self.auth_builder = AuthorizationURLBuilder(config)

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.http_client is not None:
            yield self.http_client
        else:
            async with httpx.AsyncClient() as client:
                yield client

    def build_authorization_url(self, pkce_pair: Optional[PKCEPair] = None) -> str:
        return self.auth_builder.get_authorize_url(pkce_pair)

    # Microsoft OAuth

    async def _redeem_grant(self, grant: Dict[str, str], pkce_pair: Optional[PKCEPair] = None) -> ProviderToken:
        data = {"client_id": self.config.app_id}
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        if self.config.is_confidential:
            url = LIVE_TOKEN_URL
            data["client_secret"] = self.config.app_secret
        else:
            url = TOKEN_URL
            # Public clients redeem cross-origin
            headers["Origin"] = self.config.redirect_uri

        data.update(grant)
        data["redirect_uri"] = self.config.redirect_uri

        if pkce_pair:
            data["code_verifier"] = pkce_pair.verifier
            data["code_challenge_method"] = "S256"

        logger.debug(f"Requesting {grant['grant_type']} grant from {url} ({self.config.mode} mode)")

        async with self._client() as client:
            response = await client.post(url, content=urlencode(data), headers=headers, timeout=self.timeout)

        logger.debug(f"Token endpoint responded with status {response.status_code}")

        payload = _read_json(response, lambda error, message: ProviderAuthError("invalid_response", message))
        if payload.get("error"):
            raise ProviderAuthError(
                payload["error"],
                payload.get("error_description", ""),
                payload.get("correlation_id"),
            )
        if not payload.get("access_token"):
            raise ProviderAuthError(
                "invalid_response",
                f"Token endpoint returned HTTP {response.status_code} without an access_token",
            )

        return ProviderToken.from_response(payload)

    async def exchange_authorization_code(self, code: str, pkce_pair: Optional[PKCEPair] = None) -> ProviderToken:
        """
        Exchange an authorization code for Microsoft tokens.

        Args:
            code: Authorization code captured from the redirect
            pkce_pair: PKCE pair used to build the authorization URL

        Returns:
            ProviderToken with access and refresh tokens

        Raises:
            ConfigurationError: Public (spa) application without a PKCE pair
            ProviderAuthError: The token endpoint reported an error
        """
        if not self.config.is_confidential and pkce_pair is None:
            raise ConfigurationError(
                "A PKCE pair is required to redeem codes for a public (spa) application",
                code="CONFIG-PKCE",
            )

        token = await self._redeem_grant(
            {"code": code, "grant_type": "authorization_code"},
            pkce_pair,
        )
        logger.info("Exchanged authorization code for Microsoft tokens")
        return token

    async def exchange_refresh_token(self, refresh_token: str) -> ProviderToken:
        """
        Redeem a refresh token for new Microsoft tokens.

        The provider may omit a new refresh token; the old one is kept then.
        """
        token = await self._redeem_grant({"refresh_token": refresh_token, "grant_type": "refresh_token"})
        if not token.refresh_token:
            token.refresh_token = refresh_token
        logger.info("Refreshed Microsoft tokens")
        return token

    # Xbox Live

    async def authenticate_xbox_live(self, provider_access_token: str) -> XboxLiveToken:
        """Authenticate against Xbox Live with the Microsoft access token as RPS ticket"""
        payload = {
            "Properties": {
                "AuthMethod": "RPS",
                "SiteName": XBL_SITE_NAME,
                "RpsTicket": f"d={provider_access_token}",
            },
            "RelyingParty": XBL_RELYING_PARTY,
            "TokenType": "JWT",
        }

        async with self._client() as client:
            response = await client.post(XBL_USER_AUTH_URL, json=payload, headers=JSON_HEADERS, timeout=self.timeout)

        logger.debug(f"Xbox Live responded with status {response.status_code}")

        if not response.is_success:
            detail = response.text
            xerr = None
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                xerr = body.get("XErr")
            if xerr:
                raise XboxLiveError(str(xerr), "Xbox Live authentication failed", detail)
            raise XboxLiveError(
                f"http_{response.status_code}",
                f"Xbox Live authentication failed (HTTP {response.status_code})",
                detail,
            )

        data = _read_json(response, XboxLiveError)
        token = data.get("Token")
        try:
            user_hash = data["DisplayClaims"]["xui"][0]["uhs"]
        except (KeyError, IndexError, TypeError) as e:
            raise XboxLiveError("malformed_response", f"Xbox Live response missing user hash: {e!r}")
        if not token or not user_hash:
            raise XboxLiveError("malformed_response", "Xbox Live response missing token/uhs")

        logger.info("Authenticated with Xbox Live")
        return XboxLiveToken(token=token, user_hash=user_hash)

    async def authenticate_xsts(self, xbl_token: str) -> str:
        """Authorize the Xbox Live token for the Minecraft services relying party

        Raises:
            XSTSError: The service refused the account; ``xerr`` carries its code
        """
        payload = {
            "Properties": {
                "SandboxId": XSTS_SANDBOX,
                "UserTokens": [xbl_token],
            },
            "RelyingParty": XSTS_RELYING_PARTY,
            "TokenType": "JWT",
        }

        async with self._client() as client:
            response = await client.post(XSTS_AUTHORIZE_URL, json=payload, headers=JSON_HEADERS, timeout=self.timeout)

        logger.debug(f"XSTS responded with status {response.status_code}")

        data = _read_json(response, lambda error, message: AuthenticationError(error, message, code="XSTS-FAILED"))
        if data.get("XErr"):
            try:
                xerr = int(data["XErr"])
            except (TypeError, ValueError):
                raise AuthenticationError(
                    "xsts_failed",
                    f"XSTS returned an unrecognised XErr {data['XErr']!r}",
                    code="XSTS-FAILED",
                )
            raise XSTSError(xerr, data.get("Message", ""), data.get("Redirect"))

        token = data.get("Token")
        if not response.is_success or not token:
            raise AuthenticationError(
                "xsts_failed",
                f"XSTS authorization returned HTTP {response.status_code} without a token",
                code="XSTS-FAILED",
            )

        logger.info("Authorized with XSTS")
        return token

    # Minecraft services

    async def redeem_game_token(self, xsts_token: str, user_hash: str) -> str:
        """Log in to Minecraft services with the XSTS token and user hash"""
        payload = {"identityToken": f"XBL3.0 x={user_hash};{xsts_token}"}

        async with self._client() as client:
            response = await client.post(MC_LOGIN_WITH_XBOX_URL, json=payload, headers=JSON_HEADERS, timeout=self.timeout)

        logger.debug(f"Minecraft login_with_xbox responded with status {response.status_code}")

        data = _read_json(response, GameTokenError)
        if data.get("errorMessage"):
            raise GameTokenError(
                data.get("error") or "Error when getting minecraft token",
                data["errorMessage"],
                data.get("path"),
            )

        access_token = data.get("access_token")
        if not access_token:
            raise GameTokenError(
                "malformed_response",
                f"Minecraft login returned HTTP {response.status_code} without access_token",
            )

        logger.info("Obtained Minecraft access token")
        return access_token

    # Composition

    async def _run_xbox_chain(self, provider_token: ProviderToken) -> ExchangeCredential:
        xbl = await self.authenticate_xbox_live(provider_token.access_token)
        xsts_token = await self.authenticate_xsts(xbl.token)
        game_token = await self.redeem_game_token(xsts_token, xbl.user_hash)
        return ExchangeCredential(access_token=game_token, refresh_token=provider_token.refresh_token)

    async def run_full_exchange(self, code: str, pkce_pair: Optional[PKCEPair] = None) -> ExchangeCredential:
        """
        Run the whole chain starting from an authorization code.

        Returns:
            ExchangeCredential with the Minecraft access token and the Microsoft refresh token
        """
        provider_token = await self.exchange_authorization_code(code, pkce_pair)
        return await self._run_xbox_chain(provider_token)

    async def run_refresh_exchange(self, refresh_token: str) -> ExchangeCredential:
        """Run the whole chain starting from a Microsoft refresh token"""
        provider_token = await self.exchange_refresh_token(refresh_token)
        return await self._run_xbox_chain(provider_token)
