# wakeup: greet the signed-in user and pick a chat mode.
# Created: 2026-09-19

from __future__ import annotations

import logging

from codev.cli.agent_chat import start_agent_chat
from codev.cli.chat import start_chat
from codev.cli.session import get_user_from_token
from codev.cli.tool_chat import start_tool_chat
from codev.cli.ui import ask_choice, console

logger = logging.getLogger(__name__)

MENU = (
    ("chat", "Chat", "Simple chat with the AI"),
    ("tools", "Tool Calling", "Chat with tools (search, code execution, URL context)"),
    ("agent", "Agentic Mode", "Generate a complete application"),
    ("exit", "Exit", ""),
)


async def wakeup() -> int:
    """Show the mode menu and run the chosen loop."""
    user = await get_user_from_token()
    console.print(f"\n[green]Welcome back, {user.display_name}![/green]\n")

    choice = ask_choice("Select an option", MENU, default="chat")
    logger.debug("Menu choice: %s", choice)
    if choice == "chat":
        await start_chat()
    elif choice == "tools":
        await start_tool_chat()
    elif choice == "agent":
        await start_agent_chat()
    else:
        console.print("[yellow]Goodbye![/yellow]")
    return 0
