import dataclasses
import logging
import webbrowser
from typing import Callable, Optional

from rich.console import Console

from accounts import AccountStore, MicrosoftAccount
from microsoft_oauth import (
    AuthConfig,
    AuthorizationURLBuilder,
    CallbackListener,
    CodeReceived,
    ListenerConfig,
    LoginAborted,
    ProviderErrorReceived,
    TimedOut,
    TokenExchangeChain,
    fetch_profile,
    generate_pkce,
)

logger = logging.getLogger(__name__)


async def run_login_flow(
    auth_config: AuthConfig,
    store: AccountStore,
    chain: TokenExchangeChain,
    listener_config: Optional[ListenerConfig] = None,
    open_browser: bool = True,
    on_listening: Optional[Callable[[str], None]] = None,
) -> MicrosoftAccount:
    """
    Run one interactive Microsoft login and store the resulting account.

    A fresh PKCE pair is generated, the callback listener is started and the
    browser is pointed at its ``/auth`` route. Nothing is stored unless the
    whole chain and the profile lookup succeed.

    Args:
        auth_config: Application configuration
        store: Store receiving the new account
        chain: Token exchange chain
        listener_config: Listener settings; defaults come from settings
        open_browser: Open the default browser on the local ``/auth`` route
        on_listening: Called with the local ``/auth`` URL once the listener is bound

    Returns:
        The stored MicrosoftAccount

    Raises:
        LoginAborted: The listener ended without an authorization code
        ListenerStartupError: The callback port could not be bound
    """
    pkce_pair = generate_pkce()
    listener_config = dataclasses.replace(
        listener_config or ListenerConfig.from_settings(),
        pkce_pair=pkce_pair,
    )
    listener = CallbackListener(listener_config, AuthorizationURLBuilder(auth_config))

    await listener.start()
    try:
        local_url = f"http://{listener_config.host}:{listener.port}/auth"
        if on_listening:
            on_listening(local_url)
        if open_browser and not webbrowser.open(local_url):
            logger.warning("Could not open a browser for the login page")

        outcome = await listener.wait()
    finally:
        await listener.close()

    if not isinstance(outcome, CodeReceived):
        raise LoginAborted(outcome)

    account = MicrosoftAccount()
    await account.auth_flow(outcome.code, chain, pkce_pair)

    profile = await fetch_profile(account.access_token, http_client=chain.http_client, timeout=chain.timeout)
    account.apply_profile(profile)

    store.upsert(account)
    logger.info(f"Logged in as {account.username} ({account.uuid})")
    return account


class CLIAuthFlow:
    """Handle the Microsoft login flow in the CLI"""

    def __init__(
        self,
        auth_config: AuthConfig,
        store: AccountStore,
        chain: TokenExchangeChain,
        console: Optional[Console] = None,
    ):
        self.auth_config = auth_config
        self.store = store
        self.chain = chain
        self.console = console or Console()

    def _show_login_url(self, local_url: str) -> None:
        self.console.print(f"[green][OK][/green] Waiting for the sign-in redirect on {local_url}")
        self.console.print(f"[dim]If no browser opens, visit {local_url} manually[/dim]")

    async def authenticate(
        self,
        listener_config: Optional[ListenerConfig] = None,
        open_browser: bool = True,
    ) -> Optional[MicrosoftAccount]:
        """
        Run the login flow with console output
        Returns the stored account, or None when the login did not complete
        """
        self.console.print("\n[bold]Step 1:[/bold] Starting local callback listener...")
        self.console.print("\n[bold]Step 2:[/bold] Sign in with your Microsoft account in the browser")

        try:
            account = await run_login_flow(
                self.auth_config,
                self.store,
                self.chain,
                listener_config=listener_config,
                open_browser=open_browser,
                on_listening=self._show_login_url,
            )
        except LoginAborted as e:
            outcome = e.outcome
            if isinstance(outcome, ProviderErrorReceived):
                self.console.print(f"[red][ERROR][/red] Microsoft returned an error: {outcome.error}")
                if outcome.description:
                    self.console.print(f"[dim]{outcome.description}[/dim]")
            elif isinstance(outcome, TimedOut):
                self.console.print("[yellow]Timed out waiting for the sign-in redirect[/yellow]")
            else:
                self.console.print("[yellow]Login cancelled[/yellow]")
            return None

        self.console.print("\n[bold]Step 3:[/bold] Exchanged tokens with Xbox Live and Minecraft services")
        self.console.print(f"[green][OK][/green] Logged in as [bold]{account.username}[/bold] ({account.uuid})")
        return account
