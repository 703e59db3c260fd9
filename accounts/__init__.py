"""
Game accounts and the encrypted store that keeps them
"""
from .errors import AccountStoreError, AccountNotFoundError, InvalidAccountError
from .models import (
    AccountKind,
    Account,
    MicrosoftAccount,
    CrackedAccount,
    account_from_dict,
    offline_uuid,
)
from .store import AccountStore, AccountMetadata, StoredAccount

__all__ = [
    # Errors
    "AccountStoreError",
    "AccountNotFoundError",
    "InvalidAccountError",
    # Models
    "AccountKind",
    "Account",
    "MicrosoftAccount",
    "CrackedAccount",
    "account_from_dict",
    "offline_uuid",
    # Store
    "AccountStore",
    "AccountMetadata",
    "StoredAccount",
]
