"""Inference client for the hosted model.

Sends the accumulated conversation to the Anthropic Messages API, streams
text chunks back to a caller-supplied callback, and collects tool calls,
tool results and usage once the stream finishes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import anthropic
from pydantic import BaseModel, ValidationError

from codev.config import Settings, get_settings
from codev.errors import ConfigurationError, InferenceError
from codev.llm.tools import EnabledTools

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

STRUCTURED_TOOL_NAME = "emit_result"


@dataclass
class ToolCall:
    """A tool invocation the model made during the response."""

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Output of a hosted tool, as returned inside the response."""

    tool_use_id: str
    name: str
    result: Any = None


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class InferenceResult:
    """Full response: text plus tool activity and token usage."""

    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    stop_reason: str | None = None


def create_anthropic_client(settings: Settings) -> anthropic.AsyncAnthropic:
    """Create an ``AsyncAnthropic`` client from settings.

    Raises ``ConfigurationError`` if no API key is configured.
    """
    if not settings.anthropic_api_key:
        raise ConfigurationError(
            "ANTHROPIC_API_KEY is not set. Add it to your environment or .env file."
        )
    # No request timeout: a hung call blocks the chat loop until the user interrupts.
    return anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key, timeout=None)


def split_system_messages(
    messages: list[dict[str, str]],
) -> tuple[str | None, list[dict[str, str]]]:
    """Move ``system`` turns into the separate system prompt.

    ``tool`` turns are replayed as user turns; the Messages API only accepts
    user and assistant roles in the list.
    """
    system_parts: list[str] = []
    turns: list[dict[str, str]] = []
    for message in messages:
        role = message["role"]
        if role == "system":
            system_parts.append(message["content"])
        elif role == "tool":
            turns.append({"role": "user", "content": f"Tool result:\n{message['content']}"})
        else:
            turns.append({"role": role, "content": message["content"]})
    system = "\n\n".join(system_parts) if system_parts else None
    return system, turns


def format_api_error(error: Exception) -> str:
    """Return a user-friendly message for a provider failure."""
    error_str = str(error)
    if isinstance(error, anthropic.AuthenticationError) or "api key" in error_str.lower():
        return "Anthropic API key was rejected. Check ANTHROPIC_API_KEY."
    if isinstance(error, anthropic.APIConnectionError):
        return f"Cannot reach the model provider: {error_str}"
    if isinstance(error, anthropic.RateLimitError):
        return "Rate limited by the model provider. Wait a moment and try again."
    return f"API Error: {error_str}"


def _to_plain(value: Any) -> Any:
    """Best-effort conversion of SDK objects to JSON-friendly data."""
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, list):
        return [_to_plain(v) for v in value]
    return value


class InferenceClient:
    """Streams chat completions from the configured model.

    Args:
        settings: Application settings (model, max tokens, API key).
        client: Pre-built ``AsyncAnthropic`` (or compatible) client. Created
            from ``settings`` when omitted.
    """

    def __init__(self, settings: Settings | None = None, client: Any = None):
        settings = settings or get_settings()
        self.model = settings.anthropic_model
        self.max_tokens = settings.max_tokens
        self._client = client if client is not None else create_anthropic_client(settings)

    async def send_message(
        self,
        messages: list[dict[str, str]],
        on_chunk: Callable[[str], None] | None = None,
        tools: EnabledTools | None = None,
        on_tool_call: Callable[[ToolCall], None] | None = None,
    ) -> InferenceResult:
        """Send a conversation and stream the reply.

        Args:
            messages: Ordered ``{role, content}`` dicts (replay order).
            on_chunk: Called with each text chunk in arrival order.
            tools: Enabled hosted tools, if any.
            on_tool_call: Called once per tool call after the stream ends.

        Raises:
            InferenceError: the provider call failed (already logged).
        """
        system, turns = split_system_messages(messages)
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": turns,
        }
        if system:
            params["system"] = system

        tool_defs = tools.definitions() if tools is not None else None
        betas = tools.betas() if tools is not None else []
        if tool_defs:
            params["tools"] = tool_defs

        if betas:
            stream_factory = self._client.beta.messages.stream
            params["betas"] = betas
        else:
            stream_factory = self._client.messages.stream

        chunks: list[str] = []
        try:
            async with stream_factory(**params) as stream:
                async for text in stream.text_stream:
                    chunks.append(text)
                    if on_chunk:
                        on_chunk(text)
                final = await stream.get_final_message()
        except anthropic.AnthropicError as e:
            logger.exception("Model request failed (model=%s)", self.model)
            raise InferenceError(format_api_error(e)) from e

        result = self._collect(final, "".join(chunks))
        if on_tool_call:
            for call in result.tool_calls:
                on_tool_call(call)

        logger.debug(
            "Response complete: %d chars, %d tool calls, %d tokens",
            len(result.content),
            len(result.tool_calls),
            result.usage.total_tokens,
        )
        return result

    async def get_message(
        self, messages: list[dict[str, str]], tools: EnabledTools | None = None
    ) -> str:
        """Non-streaming convenience: the reply text only."""
        result = await self.send_message(messages, tools=tools)
        return result.content

    async def generate_structured(
        self, schema: type[ModelT], prompt: str, *, system: str | None = None
    ) -> ModelT:
        """Generate an object matching ``schema`` by forcing a single tool call."""
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "tools": [
                {
                    "name": STRUCTURED_TOOL_NAME,
                    "description": f"Return the {schema.__name__} for the request.",
                    "input_schema": schema.model_json_schema(),
                }
            ],
            "tool_choice": {"type": "tool", "name": STRUCTURED_TOOL_NAME},
        }
        if system:
            params["system"] = system

        try:
            response = await self._client.messages.create(**params)
        except anthropic.AnthropicError as e:
            logger.exception("Structured generation failed (model=%s)", self.model)
            raise InferenceError(format_api_error(e)) from e

        for block in response.content:
            if getattr(block, "type", None) == "tool_use" and block.name == STRUCTURED_TOOL_NAME:
                try:
                    return schema.model_validate(block.input)
                except ValidationError as e:
                    logger.error("Model output did not match %s: %s", schema.__name__, e)
                    raise InferenceError(
                        f"Model output did not match the {schema.__name__} schema"
                    ) from e

        raise InferenceError("Model did not return structured output")

    @staticmethod
    def _collect(final: Any, streamed_text: str) -> InferenceResult:
        tool_calls: list[ToolCall] = []
        tool_results: list[ToolResult] = []
        names_by_id: dict[str, str] = {}

        for block in getattr(final, "content", None) or []:
            block_type = getattr(block, "type", "")
            if block_type in ("tool_use", "server_tool_use"):
                call = ToolCall(id=block.id, name=block.name, args=dict(block.input or {}))
                names_by_id[call.id] = call.name
                tool_calls.append(call)
            elif block_type.endswith("_tool_result"):
                tool_use_id = getattr(block, "tool_use_id", "")
                tool_results.append(
                    ToolResult(
                        tool_use_id=tool_use_id,
                        name=names_by_id.get(tool_use_id, block_type.removesuffix("_tool_result")),
                        result=_to_plain(getattr(block, "content", None)),
                    )
                )

        usage = getattr(final, "usage", None)
        return InferenceResult(
            content=streamed_text,
            tool_calls=tool_calls,
            tool_results=tool_results,
            usage=Usage(
                input_tokens=getattr(usage, "input_tokens", 0) or 0,
                output_tokens=getattr(usage, "output_tokens", 0) or 0,
            ),
            stop_reason=getattr(final, "stop_reason", None),
        )
