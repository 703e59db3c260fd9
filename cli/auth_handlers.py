"""Account command handlers for CLI"""

import logging
from typing import Optional

import httpx
from rich.prompt import Confirm

from accounts import AccountNotFoundError, AccountStore, AccountStoreError
from auth_cli import CLIAuthFlow
from microsoft_oauth import AuthError, ListenerConfig, TokenExchangeChain, XSTSError
from utils.encryption import DecryptionError

logger = logging.getLogger(__name__)

# Failures a command reports to the user instead of crashing
COMMAND_ERRORS = (AuthError, AccountStoreError, DecryptionError, httpx.HTTPError)


def report_error(e: Exception, console) -> None:
    """Print a command failure, with the XSTS hint when there is one"""
    console.print(f"[red][ERROR][/red] {e}")
    if isinstance(e, XSTSError) and e.hint:
        console.print(f"[yellow]{e.hint}[/yellow]")
    if isinstance(e, DecryptionError):
        console.print("[dim]Check that ENCRYPTION_TOKEN matches the one the accounts were stored with[/dim]")
    logger.debug(f"Command failed: {e!r}")


def login(
    auth_flow: CLIAuthFlow,
    loop,
    console,
    listener_config: Optional[ListenerConfig] = None,
    open_browser: bool = True,
) -> int:
    """
    Handle the login flow

    Args:
        auth_flow: CLIAuthFlow instance
        loop: Event loop for async operations
        console: Rich console for output
        listener_config: Listener overrides (port, timeout)
        open_browser: Whether to open the browser automatically

    Returns:
        Process exit code
    """
    console.print("Starting Microsoft login flow...")

    try:
        account = loop.run_until_complete(
            auth_flow.authenticate(listener_config=listener_config, open_browser=open_browser)
        )
    except COMMAND_ERRORS as e:
        report_error(e, console)
        return 1

    if account is None:
        console.print("[red]Authentication failed[/red]")
        return 1

    console.print("[green]Authentication successful![/green]")
    return 0


def refresh_account(store: AccountStore, identifier: str, loop, console) -> int:
    """
    Refresh a stored account by uuid or username

    Args:
        store: AccountStore with an exchange chain
        identifier: Account uuid or username
        loop: Event loop for async operations
        console: Rich console for output
    """
    console.print(f"Refreshing account {identifier}...")

    try:
        try:
            uuid = store.get_by_identifier(identifier).uuid
        except AccountNotFoundError:
            uuid = store.get_by_display_name(identifier).uuid

        account = loop.run_until_complete(store.refresh(uuid))
    except COMMAND_ERRORS as e:
        report_error(e, console)
        return 1

    console.print(f"[green][OK][/green] Refreshed {account.username or account.uuid}")
    return 0


def remove_account(store: AccountStore, identifier: str, console) -> int:
    """Remove a stored account by uuid"""
    before = store.count()
    store.remove(identifier)

    if store.count() == before:
        console.print(f"[yellow]No stored account with UUID {identifier}[/yellow]")
        return 1

    console.print(f"[green][OK][/green] Removed account {identifier}")
    return 0


def clear_accounts(store: AccountStore, console, assume_yes: bool = False) -> int:
    """Remove every stored account after confirmation"""
    count = store.count()
    if count == 0:
        console.print("[yellow]No stored accounts[/yellow]")
        return 0

    if not assume_yes and not Confirm.ask(f"Remove all {count} stored accounts?", default=False):
        console.print("[yellow]Cancelled[/yellow]")
        return 1

    store.clear()
    console.print(f"[green][OK][/green] Removed {count} accounts")
    return 0


def show_authorize_url(chain: TokenExchangeChain, console) -> int:
    """Print the authorization URL (without a PKCE challenge)"""
    console.print(chain.build_authorization_url(), soft_wrap=True)
    return 0
