"""
Microsoft / Xbox Live / Minecraft services endpoints
"""

# Microsoft identity platform
AUTHORIZE_URL = "https://login.microsoftonline.com/consumers/oauth2/v2.0/authorize"
# Public clients ("spa") redeem codes here, cross-origin
TOKEN_URL = "https://login.microsoftonline.com/consumers/oauth2/v2.0/token"
# Confidential clients ("web") redeem codes here with their secret
LIVE_TOKEN_URL = "https://login.live.com/oauth20_token.srf"

DEFAULT_SCOPE = "XboxLive.signin offline_access"
DEFAULT_REDIRECT_URI = "http://localhost:2626/token"

# Xbox Live
XBL_USER_AUTH_URL = "https://user.auth.xboxlive.com/user/authenticate"
XBL_RELYING_PARTY = "http://auth.xboxlive.com"
XBL_SITE_NAME = "user.auth.xboxlive.com"
XSTS_AUTHORIZE_URL = "https://xsts.auth.xboxlive.com/xsts/authorize"
XSTS_RELYING_PARTY = "rp://api.minecraftservices.com/"
XSTS_SANDBOX = "RETAIL"

# Minecraft services
MC_LOGIN_WITH_XBOX_URL = "https://api.minecraftservices.com/authentication/login_with_xbox"
MC_PROFILE_URL = "https://api.minecraftservices.com/minecraft/profile"

# Local callback listener
OAUTH_CALLBACK_HOST = "localhost"
OAUTH_CALLBACK_PORT = 2626
OAUTH_CALLBACK_PATH = "/token"
OAUTH_CALLBACK_TIMEOUT = 200.0
REDIRECT_AFTER_AUTH = "https://onelauncher.zmito.eu/launcher/afterauth"

# Exchange modes
MODE_WEB = "web"
MODE_SPA = "spa"
