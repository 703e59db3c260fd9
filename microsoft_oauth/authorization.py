"""OAuth authorization URL construction"""

from typing import Optional
from urllib.parse import quote, urlencode

from .app_config import AuthConfig
from .constants import AUTHORIZE_URL
from .pkce import PKCEPair


class AuthorizationURLBuilder:
    """Builds Microsoft authorization URLs, optionally bound to a PKCE challenge"""

    def __init__(self, config: AuthConfig):
        self.config = config

    def get_authorize_url(self, pkce_pair: Optional[PKCEPair] = None) -> str:
        """Construct the authorize URL

        Args:
            pkce_pair: PKCE pair of the current login attempt, if any

        Returns:
            Full authorization URL
        """
        params = {
            "client_id": self.config.app_id,
            "response_type": "code",
            "redirect_uri": self.config.redirect_uri,
            "scope": self.config.scope,
        }

        if pkce_pair:
            params["code_challenge"] = pkce_pair.challenge
            params["code_challenge_method"] = "S256"

        if self.config.select_account:
            params["prompt"] = "select_account"

        return f"{AUTHORIZE_URL}?{urlencode(params, quote_via=quote)}"
