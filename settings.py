from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Microsoft application registration
# MS_APP_SECRET present -> confidential ("web") exchange, absent -> public ("spa") exchange with PKCE
MS_APP_ID = config.get_optional("MS_APP_ID")
MS_APP_SECRET = config.get_optional("MS_APP_SECRET")
MS_APP_MODE = config.get_optional("MS_APP_MODE")
MS_REDIRECT_URI = config.get("MS_REDIRECT_URI", "http://localhost:2626/token")
MS_SCOPE = config.get("MS_SCOPE", "XboxLive.signin offline_access")
MS_SELECT_ACCOUNT = config.get("MS_SELECT_ACCOUNT", True)

# At-rest encryption secret for stored accounts (32+ characters recommended)
ENCRYPTION_TOKEN = config.get_optional("ENCRYPTION_TOKEN")

# Local callback listener
CALLBACK_HOST = config.get("CALLBACK_HOST", "localhost")
CALLBACK_PORT = config.get("CALLBACK_PORT", 2626)
CALLBACK_TIMEOUT = config.get("CALLBACK_TIMEOUT", 200.0)
REDIRECT_AFTER_AUTH = config.get("REDIRECT_AFTER_AUTH", "https://onelauncher.zmito.eu/launcher/afterauth")

# Timeout for each identity provider request, in seconds
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 30.0)

# Account storage
ACCOUNTS_FILE = config.get("ACCOUNTS_FILE", "~/.mc-account-vault/minecraft-profiles.json")

# Logging
LOG_LEVEL = config.get("LOG_LEVEL", "info")
DEBUG_LOG_FILE = config.get("DEBUG_LOG_FILE", "account_vault_debug.log")
