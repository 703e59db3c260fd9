"""CLI entry point and argument parsing"""

import argparse
import asyncio
import sys

from rich.console import Console

import settings
from accounts import AccountStore
from auth_cli import CLIAuthFlow
from cli.auth_handlers import (
    clear_accounts,
    login,
    refresh_account,
    remove_account,
    report_error,
    show_authorize_url,
)
from cli.debug_setup import setup_logging
from cli.status_display import show_accounts
from microsoft_oauth import AuthConfig, ConfigurationError, ListenerConfig, TokenExchangeChain


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Minecraft account vault: Microsoft login and encrypted account storage")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login", help="Sign in with a Microsoft account and store it")
    login_parser.add_argument("--port", type=int, default=None, help="Callback listener port (default: from config)")
    login_parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait for the sign-in redirect")
    login_parser.add_argument("--no-browser", action="store_true", help="Don't open the browser automatically")

    subparsers.add_parser("list", help="List stored accounts (nothing is decrypted)")

    refresh_parser = subparsers.add_parser("refresh", help="Refresh a stored account's tokens")
    refresh_parser.add_argument("account", help="Account UUID or username")

    remove_parser = subparsers.add_parser("remove", help="Remove a stored account")
    remove_parser.add_argument("uuid", help="Account UUID")

    clear_parser = subparsers.add_parser("clear", help="Remove all stored accounts")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    subparsers.add_parser("url", help="Print the Microsoft authorization URL")

    return parser


def run_command(args, console) -> int:
    """Dispatch a parsed command; configuration errors propagate"""
    if args.command in ("list", "remove", "clear"):
        store = AccountStore.from_settings()
        if args.command == "list":
            show_accounts(store, console)
            return 0
        if args.command == "remove":
            return remove_account(store, args.uuid, console)
        return clear_accounts(store, console, assume_yes=args.yes)

    auth_config = AuthConfig.from_settings()
    chain = TokenExchangeChain(auth_config, timeout=settings.REQUEST_TIMEOUT)

    if args.command == "url":
        return show_authorize_url(chain, console)

    store = AccountStore.from_settings(exchange=chain)
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        if args.command == "login":
            overrides = {}
            if args.port is not None:
                overrides["port"] = args.port
            if args.timeout is not None:
                overrides["timeout"] = args.timeout
            auth_flow = CLIAuthFlow(auth_config, store, chain, console=console)
            return login(
                auth_flow,
                loop,
                console,
                listener_config=ListenerConfig.from_settings(**overrides),
                open_browser=not args.no_browser,
            )
        return refresh_account(store, args.account, loop, console)
    finally:
        loop.close()


def main(argv=None):
    """Entry point for the CLI"""
    global console

    args = build_parser().parse_args(argv)
    console = setup_logging(args.debug, settings.DEBUG_LOG_FILE, settings.LOG_LEVEL)

    if args.debug:
        console.print(f"[yellow]Debug mode enabled - verbose logging will be written to {settings.DEBUG_LOG_FILE}[/yellow]")

    try:
        exit_code = run_command(args, console)
    except ConfigurationError as e:
        report_error(e, console)
        exit_code = 2
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        exit_code = 130

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
