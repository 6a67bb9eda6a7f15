# Chat loop with hosted tools (web search, code execution, URL context).
# Created: 2026-09-17

from __future__ import annotations

import logging

from codev.chat.models import ConversationMode
from codev.chat.service import ChatService
from codev.cli.chat import run_chat_loop, show_conversation_header
from codev.cli.session import get_user_from_token
from codev.cli.ui import ask_multi_choice, console, display_messages
from codev.llm.client import InferenceClient
from codev.llm.tools import AVAILABLE_TOOLS, EnabledTools

logger = logging.getLogger(__name__)


def select_tools(enabled: EnabledTools) -> EnabledTools:
    """Ask which tools to turn on. Returns the new enabled set."""
    console.print("\n[cyan]Available tools:[/cyan]")
    options = [
        (tool.id, f"{tool.name}{' (on)' if enabled.is_enabled(tool.id) else ''}", tool.description)
        for tool in AVAILABLE_TOOLS
    ]
    picked = ask_multi_choice("Select tools (e.g. 1,3; Enter for none)", options)
    enabled = enabled.enable(picked)

    if enabled.ids:
        console.print(f"[green]Enabled tools: {', '.join(enabled.names())}[/green]")
    else:
        console.print("[yellow]No tools selected. Continuing with plain chat.[/yellow]")
    return enabled


async def start_tool_chat(
    conversation_id: str | None = None,
    enabled: EnabledTools = EnabledTools(),
    *,
    service: ChatService | None = None,
    client: InferenceClient | None = None,
) -> EnabledTools:
    """Chat with the selected tools available to the model.

    Returns the enabled set after the session, which is always reset.
    """
    user = await get_user_from_token()
    service = service or ChatService()
    client = client or InferenceClient()

    console.print(f"\n[green]Welcome back, {user.display_name}![/green]\n")
    enabled = select_tools(enabled)

    conversation = await service.get_or_create_conversation(
        user.id, conversation_id, ConversationMode.TOOL
    )
    names = ", ".join(enabled.names()) or "none"
    show_conversation_header(conversation, extra=f"Active tools: {names}")
    if conversation.messages:
        display_messages(conversation.messages)

    await run_chat_loop(
        service, client, conversation, tools=enabled, title="Assistant (with tools)"
    )
    return enabled.reset()
