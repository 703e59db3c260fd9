import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueFile:
    """Small JSON document store with owner-only file permissions

    The whole document is read on every ``get`` and rewritten on every
    ``set``; there is a single writer and no cross-process locking.
    """

    def __init__(self, path: Optional[str] = None, defaults: Optional[Dict[str, Any]] = None):
        if path is None:
            import settings
            path = settings.ACCOUNTS_FILE
        self.path = Path(path).expanduser()
        self.defaults = defaults or {}
        self._ensure_secure_directory()

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def load(self) -> Dict[str, Any]:
        """Read the whole document; a missing file yields the defaults"""
        if not self.path.exists():
            return json.loads(json.dumps(self.defaults))

        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        for key, value in self.defaults.items():
            data.setdefault(key, json.loads(json.dumps(value)))
        return data

    def save(self, data: Dict[str, Any]) -> None:
        """Atomically replace the document on disk"""
        self._ensure_secure_directory()
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")

        # Set file permissions to 600 on Unix-like systems
        if platform.system() != "Windows":
            os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self.path)
        logger.debug(f"Wrote {self.path}")

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self.load()
        data[key] = value
        self.save(data)
