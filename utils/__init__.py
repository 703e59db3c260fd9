"""Shared utilities package for the Minecraft account vault"""

from .storage import KeyValueFile
from .encryption import DecryptionError, SealedBlob, seal, open_sealed
from .debug_console import (
    DebugCapturingConsole,
    create_debug_console,
    setup_debug_logger,
)

__all__ = [
    "KeyValueFile",
    "DecryptionError",
    "SealedBlob",
    "seal",
    "open_sealed",
    "DebugCapturingConsole",
    "create_debug_console",
    "setup_debug_logger",
]
