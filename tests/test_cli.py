from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console

from accounts import AccountStore, CrackedAccount
from cli.auth_handlers import clear_accounts, remove_account, report_error
from cli.main import build_parser
from cli.status_display import format_timestamp, show_accounts
from microsoft_oauth import XSTSError
from utils.storage import KeyValueFile

from .fakes import ENCRYPTION_TOKEN


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=200)


@pytest.fixture
def store(tmp_path: Path) -> AccountStore:
    return AccountStore(ENCRYPTION_TOKEN, KeyValueFile(str(tmp_path / "accounts.json")))


def test_parser_subcommands() -> None:
    args = build_parser().parse_args(["--debug", "login", "--port", "0", "--no-browser"])
    assert args.debug
    assert args.command == "login"
    assert args.port == 0
    assert args.no_browser

    args = build_parser().parse_args(["refresh", "Steve"])
    assert args.account == "Steve"


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_show_accounts(store: AccountStore, console: Console) -> None:
    store.upsert(CrackedAccount(username="Alex"))

    show_accounts(store, console)

    output = console.export_text()
    assert "Alex" in output
    assert "cracked" in output


def test_show_accounts_empty(store: AccountStore, console: Console) -> None:
    show_accounts(store, console)
    assert "No stored accounts" in console.export_text()


def test_remove_and_clear_exit_codes(store: AccountStore, console: Console) -> None:
    account = CrackedAccount(username="Alex")
    store.upsert(account)
    store.upsert(CrackedAccount(username="Steve"))

    assert remove_account(store, "missing", console) == 1
    assert remove_account(store, account.uuid, console) == 0
    assert clear_accounts(store, console, assume_yes=True) == 0
    assert store.count() == 0


def test_report_error_shows_xsts_hint(console: Console) -> None:
    report_error(XSTSError(2148916238), console)

    output = console.export_text()
    assert "XSTS-2148916238" in output
    assert "child account" in output


def test_format_timestamp() -> None:
    assert format_timestamp(0) == "-"
    assert format_timestamp(1_700_000_000_000).startswith("20")
