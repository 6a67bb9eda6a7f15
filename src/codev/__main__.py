"""codev entry point.

Usage:
    codev login [--server-url URL] [--client-id ID]
    codev logout
    codev whoami [--server-url URL]
    codev wakeup
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.panel import Panel
from rich.text import Text

from codev import __version__
from codev.cli.ui import PromptCancelled, console, print_error
from codev.config import get_settings
from codev.errors import AuthServerError, CodevError
from codev.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def print_banner() -> None:
    title = Text("codev", style="bold cyan")
    title.append(f"  v{__version__}", style="dim")
    console.print(Panel(title, subtitle="AI chat in your terminal", border_style="cyan", expand=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codev",
        description="codev - AI chat, tool calling and app generation from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  codev login                        Sign in with the device code flow
  codev whoami                       Show the signed-in user
  codev wakeup                       Pick chat, tools or agent mode
  codev logout                       Remove the stored credential
""",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...). Defaults to CODEV_LOG_LEVEL.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    login_parser = subparsers.add_parser("login", help="Login using the device flow")
    login_parser.add_argument("--server-url", default=None, help="Auth server URL")
    login_parser.add_argument("--client-id", default=None, help="OAuth client id")

    subparsers.add_parser("logout", help="Logout and clear the stored credential")

    whoami_parser = subparsers.add_parser("whoami", help="Show the current user")
    whoami_parser.add_argument("--server-url", default=None, help="Auth server URL")

    subparsers.add_parser("wakeup", help="Wake up the AI")
    return parser


def run(argv: list[str] | None = None) -> int:
    """Parse ``argv``, run the command and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(level=args.log_level or settings.log_level)

    if args.command is None:
        parser.print_help()
        return 0

    print_banner()

    # Deferred so `--help` does not pull in the model SDK
    from codev.cli.auth_commands import login, logout, whoami
    from codev.cli.wakeup import wakeup

    try:
        if args.command == "login":
            return asyncio.run(login(args.server_url, args.client_id))
        if args.command == "logout":
            return logout()
        if args.command == "whoami":
            return asyncio.run(whoami(args.server_url))
        if args.command == "wakeup":
            return asyncio.run(wakeup())
    except (PromptCancelled, KeyboardInterrupt):
        console.print("\n[yellow]Cancelled.[/yellow]")
        return 0
    except CodevError as e:
        print_error(str(e))
        if isinstance(e, AuthServerError) and e.hint:
            console.print(f"[dim]{e.hint}[/dim]")
        return 1
    except Exception as e:
        logger.exception("Unexpected error")
        print_error(str(e) or e.__class__.__name__)
        return 1

    parser.error(f"unknown command: {args.command}")
    return 2


def main() -> None:
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
