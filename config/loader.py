"""Settings lookup for the Minecraft account vault

A value comes from the process environment when set there, otherwise from
the project's ``.env`` file, otherwise from the default written in
``settings.py``. The ``.env`` file never overrides a variable that is
already exported.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

TRUTHY = ("true", "1", "yes")


class ConfigLoader:
    """Reads typed settings (app registration, callback listener, vault file)"""

    def __init__(self, env_path: Optional[str] = None):
        """
        Args:
            env_path: Dotenv file holding MS_APP_ID, ENCRYPTION_TOKEN and friends.
                     Defaults to ``.env`` in the working directory.
        """
        self.env_path = Path(env_path) if env_path else Path(".env")
        self._load_env_file()

    def _load_env_file(self):
        if not self.env_path.exists():
            logger.debug(f"No dotenv file at {self.env_path}; reading the process environment only")
            return
        load_dotenv(dotenv_path=self.env_path)
        logger.debug(f"Read settings from {self.env_path}")

    @staticmethod
    def _coerce(env_var: str, raw: str, default: Any) -> Any:
        # bool first: it is a subclass of int
        if isinstance(default, bool):
            return raw.lower() in TRUTHY
        for kind in (int, float):
            if isinstance(default, kind):
                try:
                    return kind(raw)
                except ValueError:
                    logger.warning(
                        f"{env_var}={raw!r} is not a valid {kind.__name__}; keeping {default!r}"
                    )
                    return default
        return raw

    def get(self, env_var: str, default: Any) -> Any:
        """Look up ``env_var``, converted to the type of ``default``

        A default starting with ``~/`` is expanded to the user's home, so
        vault file locations can be written portably in ``settings.py``.
        """
        raw = os.getenv(env_var)
        if raw is not None:
            return self._coerce(env_var, raw, default)

        if isinstance(default, str) and default.startswith("~/"):
            return str(Path(default).expanduser())
        return default

    def get_optional(self, env_var: str) -> Optional[str]:
        """String setting with no default; blank counts as unset"""
        value = os.getenv(env_var)
        if value is None or not value.strip():
            return None
        return value


_config_loader = None

def get_config_loader() -> ConfigLoader:
    """Process-wide loader, created on first use"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader
