"""Status display functionality for CLI"""

from datetime import datetime
from typing import Optional

from rich.table import Table

from accounts import AccountStore


def format_timestamp(epoch_ms: Optional[int]) -> str:
    """Render an epoch-milliseconds timestamp in local time"""
    if not epoch_ms:
        return "-"
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def show_accounts(store: AccountStore, console):
    """
    Display stored accounts without decrypting them

    Args:
        store: AccountStore instance
        console: Rich console for output
    """
    metadata = store.list_metadata()

    if not metadata:
        console.print("[yellow]No stored accounts[/yellow]")
        console.print(f"[dim]Accounts file: {store.storage.path}[/dim]")
        return

    table = Table(title=f"Stored Accounts ({len(metadata)})")
    table.add_column("Username", style="cyan")
    table.add_column("UUID")
    table.add_column("Type")
    table.add_column("Last Used")
    table.add_column("Added")

    for entry in sorted(metadata, key=lambda m: m.last_used, reverse=True):
        table.add_row(
            entry.username or "-",
            entry.uuid,
            entry.type,
            format_timestamp(entry.last_used),
            format_timestamp(entry.added_at),
        )

    console.print(table)
    console.print(f"[dim]Accounts file: {store.storage.path}[/dim]")
