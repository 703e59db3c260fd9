"""Microsoft application configuration threaded through the login chain"""

import logging
from dataclasses import dataclass
from typing import Optional

from .constants import DEFAULT_REDIRECT_URI, DEFAULT_SCOPE, MODE_SPA, MODE_WEB
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthConfig:
    """Azure application registration used for the authorization-code flow

    Attributes:
        app_id: Application (client) id
        app_secret: Client secret; its presence selects the confidential flow
        redirect_uri: Redirect URI registered for the application
        scope: Space separated scopes to request
        select_account: Append ``prompt=select_account`` to the authorize URL
        mode: ``"web"`` (confidential) or ``"spa"`` (public, PKCE)
    """
    app_id: str
    app_secret: Optional[str] = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scope: str = DEFAULT_SCOPE
    select_account: bool = True
    mode: Optional[str] = None

    def __post_init__(self):
        if not self.app_id:
            raise ConfigurationError("MS_APP_ID is required", code="CONFIG-APP-ID")

        mode = (self.mode or (MODE_WEB if self.app_secret else MODE_SPA)).lower()
        if mode not in (MODE_WEB, MODE_SPA):
            raise ConfigurationError(f"Unknown application mode {self.mode!r}", code="CONFIG-MODE")
        if mode == MODE_WEB and not self.app_secret:
            raise ConfigurationError(
                "App secret was not provided for a confidential (web) application",
                code="CONFIG-APP-SECRET",
            )
        if mode == MODE_SPA and self.app_secret:
            logger.warning("MS_APP_SECRET is set but the application is configured as spa; the secret will not be sent")
        object.__setattr__(self, "mode", mode)

    @property
    def is_confidential(self) -> bool:
        return self.mode == MODE_WEB

    @classmethod
    def from_settings(cls) -> "AuthConfig":
        """Build the configuration from ``settings`` (environment / .env)"""
        import settings

        return cls(
            app_id=settings.MS_APP_ID or "",
            app_secret=settings.MS_APP_SECRET,
            redirect_uri=settings.MS_REDIRECT_URI,
            scope=settings.MS_SCOPE,
            select_account=settings.MS_SELECT_ACCOUNT,
            mode=settings.MS_APP_MODE,
        )
