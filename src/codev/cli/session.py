# Session helpers shared by the chat loops.
# Created: 2026-09-16
#
# Resolving the signed-in user and running one assistant turn (stream,
# render, persist). Each loop calls these instead of talking to the auth
# server or the model directly.

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any

import httpx
from rich.text import Text

from codev.auth.client import AuthClient, SessionUser
from codev.auth.token_store import TokenStore
from codev.chat.models import MessageRole
from codev.chat.service import ChatService
from codev.cli.ui import ansi_panel, ask_confirm, console, panel, print_error
from codev.config import Settings, get_settings
from codev.errors import AuthenticationError, AuthServerError, InferenceError
from codev.llm.client import InferenceClient, InferenceResult
from codev.llm.tools import EnabledTools
from codev.render.markdown import render_markdown

logger = logging.getLogger(__name__)

TOOL_RESULT_PREVIEW = 500


async def get_user_from_token(
    settings: Settings | None = None,
    token_store: TokenStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SessionUser:
    """Resolve the stored credential to the signed-in user.

    Raises:
        AuthenticationError: no credential, an expired one, or the server
            no longer recognises it.
        AuthServerError: the auth server could not be reached.
    """
    settings = settings or get_settings()
    token_store = token_store or TokenStore()

    credential = token_store.load()
    if credential is None:
        raise AuthenticationError("Not logged in. Please run: codev login")
    if token_store.is_expired(timedelta(seconds=settings.expiry_buffer_seconds)):
        raise AuthenticationError("Your session has expired. Please login again: codev login")

    try:
        async with AuthClient(
            settings.server_url, timeout=settings.http_timeout, transport=transport
        ) as auth:
            user = await auth.get_session(credential.access_token)
    except httpx.HTTPError as e:
        raise AuthServerError(f"Could not reach the auth server: {e}") from e

    if user is None:
        raise AuthenticationError("User not found. Please login again: codev login")
    return user


def _preview(value: Any) -> str:
    text = value if isinstance(value, str) else json.dumps(value, indent=2, default=str)
    if len(text) > TOOL_RESULT_PREVIEW:
        text = text[:TOOL_RESULT_PREVIEW] + "..."
    return text


def show_tool_activity(result: InferenceResult) -> None:
    for call in result.tool_calls:
        body = Text(f"Tool: {call.name}\nArgs: {json.dumps(call.args, default=str)}")
        console.print(panel(body, title="Tool Call", style="cyan", title_align="left"))
    for tool_result in result.tool_results:
        body = Text(f"Tool: {tool_result.name}\n{_preview(tool_result.result)}")
        console.print(panel(body, title="Tool Result", style="green", title_align="left"))


async def stream_ai_response(
    service: ChatService,
    client: InferenceClient,
    conversation_id: str,
    *,
    tools: EnabledTools | None = None,
    title: str = "Assistant",
) -> InferenceResult | None:
    """Run one assistant turn over the stored history.

    A spinner shows until the first chunk arrives; the reply is rendered
    once the stream completes and saved as the assistant message. An empty
    reply is shown but not saved. On a provider failure the user may retry
    with the same history. Returns None if they decline.
    """
    messages = await service.get_messages(conversation_id)
    history = ChatService.format_messages_for_ai(messages)

    while True:
        status = console.status("[cyan]AI is thinking...[/cyan]", spinner="dots")
        status.start()

        def on_chunk(_chunk: str) -> None:
            status.stop()

        try:
            result = await client.send_message(history, on_chunk=on_chunk, tools=tools)
        except InferenceError as e:
            status.stop()
            print_error(str(e))
            if ask_confirm("Try again?", default=True):
                continue
            return None
        status.stop()
        break

    show_tool_activity(result)
    if result.content:
        console.print(ansi_panel(render_markdown(result.content), title=title, style="green"))
        await service.add_message(conversation_id, MessageRole.ASSISTANT, result.content)
    else:
        # Nothing is saved: an empty assistant turn would break every later request
        console.print("[dim](no text in response)[/dim]")
    logger.debug("Turn used %d tokens", result.usage.total_tokens)
    return result
