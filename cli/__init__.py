"""CLI package for the Minecraft account vault

Subcommands to sign in with a Microsoft account and to list, refresh
and remove the accounts kept in the encrypted store.
"""

from cli.main import main

__all__ = [
    "main",
]
