"""Authentication and gateway handlers for CLI"""

import asyncio
import json
import sys
import webbrowser
from typing import Optional

from codex_gateway import CodexGateway, GatewayError
from codex_oauth import (
    AuthorizationSessionManager,
    AuthState,
    CredentialAccessor,
    CredentialStore,
    OAuthError,
)
from cli.status_display import show_credential_status

POLL_INTERVAL = 0.5


async def login(console, store: Optional[CredentialStore] = None, open_browser: bool = True) -> bool:
    """
    Run the browser authorization flow and wait for it to finish

    Args:
        console: Rich console for output
        store: Credential store to write on success
        open_browser: Try to open the URL in the default browser

    Returns:
        True on success
    """
    manager = AuthorizationSessionManager(store=store or CredentialStore())

    try:
        console.print("\n[bold cyan]Codex (ChatGPT) Authorization[/bold cyan]\n")
        try:
            authorization = await manager.start()
        except OSError as e:
            console.print(f"[red]✗ Could not start the callback listener: {e}[/red]")
            return False

        console.print("[bold]Authorization URL:[/bold]")
        console.print(f"[dim]{authorization.url}[/dim]\n")

        if open_browser and webbrowser.open(authorization.url):
            console.print("[green]✓ Browser opened[/green]")
        else:
            console.print("[yellow]Open the URL above in your browser to continue[/yellow]")

        console.print(f"[dim]{authorization.instructions}[/dim]")

        try:
            with console.status("Waiting for authorization..."):
                while manager.auth_status.status == AuthState.PENDING:
                    await asyncio.sleep(POLL_INTERVAL)
        except (KeyboardInterrupt, asyncio.CancelledError):
            await manager.cancel()
            console.print("\n[yellow]Authorization cancelled[/yellow]")
            return False

        final = manager.auth_status
        if final.status == AuthState.SUCCESS:
            status = manager.status()
            console.print("\n[bold green]✓ Authorization successful![/bold green]")
            if status.get("accountId"):
                console.print(f"[dim]Account ID: {status['accountId']}[/dim]")
            return True

        console.print(f"[red]✗ Authorization failed: {final.error}[/red]")
        return False

    finally:
        await manager.shutdown()


def logout(console, store: Optional[CredentialStore] = None) -> bool:
    """Delete the stored credential"""
    store = store or CredentialStore()
    if store.clear():
        console.print("[green]✓ Logged out[/green]")
        return True
    console.print("[red]✗ Failed to remove credential file[/red]")
    return False


def status(console, store: Optional[CredentialStore] = None) -> bool:
    """Show the stored credential"""
    return show_credential_status(store or CredentialStore(), console)


async def ask(
    console,
    prompt: str,
    model: str,
    is_json: bool = False,
    system: Optional[str] = None,
    store: Optional[CredentialStore] = None,
) -> bool:
    """
    Send one prompt through the gateway and print the answer

    Args:
        console: Rich console for errors
        prompt: User prompt
        model: Requested model (tried first)
        is_json: Ask for JSON-only output
        system: Optional system instruction
        store: Credential store to read from

    Returns:
        True on success
    """
    gateway = CodexGateway(accessor=CredentialAccessor(store=store or CredentialStore()))

    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    try:
        with console.status(f"Asking {model}..."):
            output = await gateway.complete(messages, model, is_json=is_json)
    except OAuthError as e:
        console.print(f"[red]✗ {e}[/red]")
        return False
    except GatewayError as e:
        console.print(f"[red]✗ Codex request failed (status={e.status}): {e}[/red]")
        return False

    if is_json:
        try:
            console.print_json(output)
            return True
        except json.JSONDecodeError:
            pass
    # Plain stdout so the answer can be piped
    sys.stdout.write(output + ("\n" if not output.endswith("\n") else ""))
    return True
