"""Minecraft profile lookup"""

import logging
from typing import Optional

import httpx

from .constants import MC_PROFILE_URL
from .errors import OwnershipError, TokenExpiredError
from .models import GameProfile

logger = logging.getLogger(__name__)


async def fetch_profile(
    access_token: str,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0,
) -> GameProfile:
    """
    Fetch the Minecraft: Java Edition profile for a game access token.

    Args:
        access_token: Minecraft services access token
        http_client: Optional shared client
        timeout: Request timeout in seconds

    Returns:
        GameProfile

    Raises:
        OwnershipError: The account has no Java Edition profile (HTTP 404)
        TokenExpiredError: The access token was rejected (HTTP 401)
        httpx.HTTPStatusError: Any other unsuccessful status
    """
    headers = {"Authorization": f"Bearer {access_token}"}

    if http_client is not None:
        response = await http_client.get(MC_PROFILE_URL, headers=headers, timeout=timeout)
    else:
        async with httpx.AsyncClient() as client:
            response = await client.get(MC_PROFILE_URL, headers=headers, timeout=timeout)

    logger.debug(f"Profile endpoint responded with status {response.status_code}")

    if response.status_code == 404:
        raise OwnershipError("Account does not own Minecraft", code="MC-NOT-PREMIUM")
    if response.status_code == 401:
        raise TokenExpiredError("unauthorized", "Minecraft access token was rejected", code="MC-TOKEN-EXPIRED")
    response.raise_for_status()

    profile = GameProfile.from_response(response.json())
    if not profile.id or not profile.name:
        raise OwnershipError("Minecraft profile incomplete (missing name/id)", code="MC-PROFILE-INCOMPLETE")
    return profile
