# Agent mode loop: describe an application, get it written to disk.
# Created: 2026-09-18

from __future__ import annotations

import logging
from pathlib import Path

from rich.text import Text

from codev.chat.models import ConversationMode, MessageRole
from codev.chat.service import ChatService
from codev.cli.chat import show_conversation_header
from codev.cli.session import get_user_from_token
from codev.cli.ui import PromptCancelled, ask_confirm, ask_text, console, panel, print_error
from codev.errors import InferenceError
from codev.llm.agent import GenerationResult, generate_application
from codev.llm.client import InferenceClient

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 10


def show_generation_result(result: GenerationResult) -> None:
    lines = [f"Application: {result.folder_name}", f"Location: {result.app_dir}", "", "Files:"]
    lines += [f"  {name}" for name in result.files]
    if result.commands:
        lines += ["", "Next steps:"]
        lines += [f"  {command}" for command in result.commands]
    console.print(panel(Text("\n".join(lines)), title="Application Generated", style="green"))


async def start_agent_chat(
    conversation_id: str | None = None,
    *,
    service: ChatService | None = None,
    client: InferenceClient | None = None,
    base_dir: Path | None = None,
) -> None:
    """Generate applications from descriptions until the user stops."""
    user = await get_user_from_token()
    service = service or ChatService()
    client = client or InferenceClient()
    base_dir = base_dir or Path.cwd()

    console.print(
        panel(
            Text(
                "Agent mode generates complete applications from a description.\n"
                f"Files will be written under: {base_dir}"
            ),
            title="Agent Mode",
            style="magenta",
        )
    )
    try:
        if not ask_confirm("Continue?", default=True):
            console.print("[yellow]Agent mode cancelled.[/yellow]")
            return
    except PromptCancelled:
        return

    conversation = await service.get_or_create_conversation(
        user.id, conversation_id, ConversationMode.AGENT
    )
    show_conversation_header(conversation)

    try:
        while True:
            description = ask_text(
                "[magenta]Describe the application to build[/magenta]",
                min_length=MIN_DESCRIPTION_LENGTH,
                too_short="Please provide a more detailed description (at least 10 characters)",
            )
            await service.record_user_message(conversation, description)

            try:
                with console.status("[magenta]Generating application...[/magenta]"):
                    result = await generate_application(description, client, base_dir)
            except (InferenceError, ValueError, OSError) as e:
                logger.warning("Application generation failed: %s", e)
                await service.add_message(conversation.id, MessageRole.ASSISTANT, f"Error: {e}")
                print_error(str(e))
                if ask_confirm("Try again?", default=True):
                    continue
                break

            await service.add_message(conversation.id, MessageRole.ASSISTANT, result.summary())
            show_generation_result(result)
            if not ask_confirm("Generate another application?", default=False):
                break
    except PromptCancelled:
        pass

    console.print("\n[yellow]Agent session ended. Goodbye![/yellow]")
