"""
Microsoft account login for Minecraft: PKCE, redirect capture and the
Microsoft -> Xbox Live -> XSTS -> Minecraft services token chain
"""
from .constants import (
    AUTHORIZE_URL,
    TOKEN_URL,
    LIVE_TOKEN_URL,
    OAUTH_CALLBACK_PORT,
    OAUTH_CALLBACK_PATH,
)
from .errors import (
    AuthError,
    ConfigurationError,
    ListenerStartupError,
    AuthenticationError,
    ProviderAuthError,
    XboxLiveError,
    XSTSError,
    GameTokenError,
    TokenExpiredError,
    OwnershipError,
    LoginAborted,
)
from .app_config import AuthConfig
from .pkce import PKCEPair, generate_pkce
from .models import (
    ProviderToken,
    XboxLiveToken,
    ExchangeCredential,
    GameProfile,
    CallbackOutcome,
    CodeReceived,
    ProviderErrorReceived,
    TimedOut,
    Aborted,
    ClosedByClient,
)
from .authorization import AuthorizationURLBuilder
from .token_exchange import TokenExchangeChain
from .callback_server import (
    CallbackListener,
    ListenerConfig,
    ListenerState,
    listen_for_code,
)
from .profile import fetch_profile

__all__ = [
    # Constants
    "AUTHORIZE_URL",
    "TOKEN_URL",
    "LIVE_TOKEN_URL",
    "OAUTH_CALLBACK_PORT",
    "OAUTH_CALLBACK_PATH",
    # Errors
    "AuthError",
    "ConfigurationError",
    "ListenerStartupError",
    "AuthenticationError",
    "ProviderAuthError",
    "XboxLiveError",
    "XSTSError",
    "GameTokenError",
    "TokenExpiredError",
    "OwnershipError",
    "LoginAborted",
    # Configuration
    "AuthConfig",
    # PKCE
    "PKCEPair",
    "generate_pkce",
    # Models
    "ProviderToken",
    "XboxLiveToken",
    "ExchangeCredential",
    "GameProfile",
    "CallbackOutcome",
    "CodeReceived",
    "ProviderErrorReceived",
    "TimedOut",
    "Aborted",
    "ClosedByClient",
    # Authorization / exchange
    "AuthorizationURLBuilder",
    "TokenExchangeChain",
    # Callback listener
    "CallbackListener",
    "ListenerConfig",
    "ListenerState",
    "listen_for_code",
    # Profile
    "fetch_profile",
]
