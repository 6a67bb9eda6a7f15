# Hosted tool catalog and the per-session enabled-tool set.
# Created: 2026-09-08
#
# The tools run on the provider's side (search, sandboxed code, URL fetch);
# we only advertise them. Which ones are on is an immutable EnabledTools
# value handed to each chat loop.

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    """A hosted tool the model may call."""

    id: str
    name: str
    description: str
    schema: dict[str, Any]
    beta: str | None = None  # anthropic-beta flag the tool needs, if any

    def to_anthropic_schema(self) -> dict[str, Any]:
        """Tool entry for the Messages API ``tools`` list."""
        return dict(self.schema)


AVAILABLE_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        id="web_search",
        name="Web Search",
        description=(
            "Access the latest information using web search. Useful for current events, "
            "news, and real-time information."
        ),
        schema={"type": "web_search_20250305", "name": "web_search", "max_uses": 5},
    ),
    ToolDefinition(
        id="code_execution",
        name="Code Execution",
        description=(
            "Execute code in a sandboxed environment. Useful for testing and debugging code."
        ),
        schema={"type": "code_execution_20250522", "name": "code_execution"},
        beta="code-execution-2025-05-22",
    ),
    ToolDefinition(
        id="url_context",
        name="URL Context",
        description=(
            "Provide specific URLs that you want the model to analyze directly from the prompt."
        ),
        schema={"type": "web_fetch_20250910", "name": "web_fetch", "max_uses": 20},
        beta="web-fetch-2025-09-10",
    ),
)

_TOOLS_BY_ID: dict[str, ToolDefinition] = {t.id: t for t in AVAILABLE_TOOLS}


def get_tool(tool_id: str) -> ToolDefinition | None:
    return _TOOLS_BY_ID.get(tool_id)


@dataclass(frozen=True)
class EnabledTools:
    """Immutable set of enabled tool ids.

    Every change returns a new value:

        tools = EnabledTools().enable(["web_search"])
        tools = tools.toggle("code_execution")
        tools.names()  # ["Web Search", "Code Execution"]
    """

    ids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        unknown = set(self.ids) - set(_TOOLS_BY_ID)
        if unknown:
            raise ValueError(f"Unknown tool ids: {sorted(unknown)}")

    def enable(self, tool_ids: Iterable[str]) -> EnabledTools:
        """Exactly ``tool_ids`` enabled, everything else off."""
        updated = EnabledTools(frozenset(tool_ids))
        logger.debug("Enabled tools: %d/%d", len(updated.ids), len(AVAILABLE_TOOLS))
        return updated

    def toggle(self, tool_id: str) -> EnabledTools:
        if tool_id not in _TOOLS_BY_ID:
            logger.debug("Tool %s not found", tool_id)
            return self
        return EnabledTools(self.ids ^ {tool_id})

    def reset(self) -> EnabledTools:
        return EnabledTools()

    def is_enabled(self, tool_id: str) -> bool:
        return tool_id in self.ids

    def tools(self) -> list[ToolDefinition]:
        # Catalog order, not set order
        return [t for t in AVAILABLE_TOOLS if t.id in self.ids]

    def names(self) -> list[str]:
        return [t.name for t in self.tools()]

    def definitions(self) -> list[dict[str, Any]] | None:
        """Provider tool schemas, or None when nothing is enabled."""
        defs = [t.to_anthropic_schema() for t in self.tools()]
        return defs or None

    def betas(self) -> list[str]:
        return [t.beta for t in self.tools() if t.beta]
