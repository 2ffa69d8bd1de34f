"""Status display functionality for CLI"""

import time
from datetime import datetime
from typing import Optional

from rich.table import Table

from codex_oauth import CredentialStore, PersistedCredential


def describe_expiry(credential: PersistedCredential, now_ms: Optional[int] = None) -> tuple[str, str]:
    """
    Get credential status and expiry info

    Args:
        credential: Stored credential
        now_ms: Current time in epoch milliseconds (default: now)

    Returns:
        Tuple of (status, detail_message)
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    if credential.is_expired(now_ms):
        return "EXPIRED", "Access token expired (refreshed on next use)"

    remaining = (credential.expires_at_ms - now_ms) // 1000
    hours = int(remaining // 3600)
    minutes = int((remaining % 3600) // 60)

    if hours > 0:
        time_str = f"{hours}h {minutes}m"
    else:
        time_str = f"{minutes}m"

    return "VALID", f"Expires in {time_str}"


def show_credential_status(store: CredentialStore, console) -> bool:
    """
    Display credential status

    Args:
        store: CredentialStore instance
        console: Rich console for output

    Returns:
        True if a credential is stored
    """
    credential = store.load()

    table = Table(title="Codex Credential")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Connected", "[green]Yes[/green]" if credential else "[red]No[/red]")

    if credential:
        status, detail = describe_expiry(credential)
        table.add_row("Status", status)
        table.add_row("Detail", detail)
        expires_at = datetime.fromtimestamp(credential.expires_at_ms / 1000)
        table.add_row("Expires At", expires_at.isoformat(timespec="seconds"))
        table.add_row("Account ID", credential.account_id or "[dim]unknown[/dim]")

    table.add_row("Credential File", str(store.credential_file))

    console.print(table)
    return credential is not None
