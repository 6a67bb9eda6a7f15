# Plain chat loop.
# Created: 2026-09-16

from __future__ import annotations

import logging

from rich.text import Text

from codev.chat.models import Conversation, ConversationMode
from codev.chat.service import ChatService
from codev.cli.session import get_user_from_token, stream_ai_response
from codev.cli.ui import PromptCancelled, ask_text, console, display_messages, panel
from codev.llm.client import InferenceClient
from codev.llm.tools import EnabledTools

logger = logging.getLogger(__name__)

EXIT_WORD = "exit"


def show_conversation_header(conversation: Conversation, extra: str = "") -> None:
    lines = [
        f"Conversation: {conversation.title}",
        f"ID: {conversation.id}",
        f"Mode: {conversation.mode.value}",
    ]
    if extra:
        lines.append(extra)
    console.print(panel(Text("\n".join(lines)), title="Chat Session", style="cyan"))


async def run_chat_loop(
    service: ChatService,
    client: InferenceClient,
    conversation: Conversation,
    *,
    tools: EnabledTools | None = None,
    title: str = "Assistant",
) -> None:
    """Prompt, save, reply, repeat until ``exit`` or Ctrl+C."""
    console.print(
        panel(
            Text(f"Type your message and press Enter.\nType '{EXIT_WORD}' to end the conversation."),
            style="dim",
        )
    )
    while True:
        try:
            text = ask_text("[blue]Your message[/blue]")
            if text.lower() == EXIT_WORD:
                break
            await service.record_user_message(conversation, text)
            await stream_ai_response(service, client, conversation.id, tools=tools, title=title)
        except PromptCancelled:
            break
    console.print("\n[yellow]Chat session ended. Goodbye![/yellow]")


async def start_chat(
    conversation_id: str | None = None,
    mode: ConversationMode | str = ConversationMode.CHAT,
    *,
    service: ChatService | None = None,
    client: InferenceClient | None = None,
) -> None:
    """Resume or start a conversation and chat with the model."""
    user = await get_user_from_token()
    service = service or ChatService()
    client = client or InferenceClient()

    console.print(f"\n[green]Welcome back, {user.display_name}![/green]\n")
    conversation = await service.get_or_create_conversation(user.id, conversation_id, mode)
    show_conversation_header(conversation)
    if conversation.messages:
        display_messages(conversation.messages)

    await run_chat_loop(service, client, conversation)
