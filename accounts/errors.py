"""Errors raised by the encrypted account store"""


class AccountStoreError(Exception):
    """Base class for account store failures"""


class AccountNotFoundError(AccountStoreError, KeyError):
    """No stored account matches the identifier or name"""

    def __init__(self, identifier: str):
        super().__init__(f"Account {identifier!r} not found")
        self.identifier = identifier

    def __str__(self) -> str:
        return self.args[0]


class InvalidAccountError(AccountStoreError, ValueError):
    """The account cannot be stored (e.g. it has no identifier yet)"""
