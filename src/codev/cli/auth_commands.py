"""login / logout / whoami commands.

Created: 2026-09-19

Each command returns a process exit code. Auth and configuration errors
propagate to the entry point, which prints them and exits 1.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

import httpx
from rich.text import Text

from codev.auth.client import AuthClient
from codev.auth.device_flow import DeviceAuthorization, DeviceAuthorizationPoller
from codev.auth.token_store import StoredCredential, TokenStore
from codev.cli.ui import ask_confirm, console, panel
from codev.config import Settings, get_settings
from codev.errors import AuthServerError, ConfigurationError

logger = logging.getLogger(__name__)


def show_device_code(authorization: DeviceAuthorization) -> None:
    body = Text.assemble(
        "Visit: ",
        (authorization.browser_url, "underline cyan"),
        "\nEnter code: ",
        (authorization.user_code, "bold green"),
    )
    console.print(panel(body, title="Device Authorization", style="cyan"))


async def login(
    server_url: str | None = None,
    client_id: str | None = None,
    *,
    settings: Settings | None = None,
    token_store: TokenStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    open_browser: Callable[[str], bool] = webbrowser.open,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> int:
    """Run the device authorization flow and store the resulting credential."""
    settings = settings or get_settings()
    token_store = token_store or TokenStore()
    server_url = server_url or settings.server_url
    client_id = client_id or settings.client_id
    if not client_id:
        raise ConfigurationError(
            "No OAuth client id configured. Set CODEV_CLIENT_ID or pass --client-id."
        )

    buffer = timedelta(seconds=settings.expiry_buffer_seconds)
    if token_store.load() is not None and not token_store.is_expired(buffer):
        if not ask_confirm("You're already logged in. Do you want to log in again?"):
            console.print("[yellow]Login cancelled.[/yellow]")
            return 0

    async with AuthClient(server_url, timeout=settings.http_timeout, transport=transport) as auth:
        poller = DeviceAuthorizationPoller(auth, client_id, settings.scope, sleep=sleep)
        with console.status("[cyan]Requesting device authorization...[/cyan]"):
            authorization = await poller.request()

        show_device_code(authorization)
        if ask_confirm("Open the browser automatically?", default=True):
            try:
                open_browser(authorization.browser_url)
            except webbrowser.Error as e:
                logger.warning("Could not open browser: %s", e)
                console.print(f"[yellow]Could not open the browser. Visit {authorization.browser_url}[/yellow]")

        minutes = max(authorization.expires_in // 60, 1) if authorization.expires_in else None
        wait_note = f" (expires in {minutes} minutes)" if minutes else ""
        with console.status(f"[cyan]Waiting for authorization{wait_note}...[/cyan]"):
            payload = await poller.poll(authorization)

        credential = StoredCredential.from_token_response(payload)
        token_store.save(credential)

        try:
            user = await auth.get_session(credential.access_token)
        except httpx.HTTPError as e:
            logger.warning("Could not fetch session after login: %s", e)
            user = None

    console.print("[green]Login successful![/green]")
    if user is not None:
        console.print(f"Logged in as [bold]{user.display_name}[/bold]")
    logger.debug("Credential stored at %s", token_store.path)
    return 0


def logout(*, token_store: TokenStore | None = None) -> int:
    """Remove the stored credential after confirmation."""
    token_store = token_store or TokenStore()
    if token_store.load() is None:
        console.print("[yellow]You're not logged in.[/yellow]")
        return 0

    if not ask_confirm("Are you sure you want to log out?"):
        console.print("[yellow]Logout cancelled.[/yellow]")
        return 0

    token_store.clear()
    console.print("[green]Successfully logged out![/green]")
    return 0


async def whoami(
    server_url: str | None = None,
    *,
    settings: Settings | None = None,
    token_store: TokenStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Print the signed-in user. Exit code 1 when not logged in."""
    settings = settings or get_settings()
    token_store = token_store or TokenStore()

    credential = token_store.load()
    if credential is None:
        console.print("[red]Not logged in. Please run: codev login[/red]")
        return 1

    server_url = server_url or settings.server_url
    try:
        async with AuthClient(
            server_url, timeout=settings.http_timeout, transport=transport
        ) as auth:
            user = await auth.get_session(credential.access_token)
    except httpx.HTTPError as e:
        raise AuthServerError(f"Could not reach the auth server: {e}") from e

    if user is None:
        console.print("[red]Session is no longer valid. Please run: codev login[/red]")
        return 1

    body = Text.assemble(
        ("Name: ", "bold"), user.name or "-", "\n",
        ("Email: ", "bold"), user.email or "-", "\n",
        ("ID: ", "bold"), user.id,
    )
    console.print(panel(body, title="Current User", style="cyan"))
    return 0
