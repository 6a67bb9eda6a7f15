"""LLM package for codev."""

from codev.llm.client import InferenceClient, InferenceResult, ToolCall, ToolResult, Usage
from codev.llm.tools import AVAILABLE_TOOLS, EnabledTools, ToolDefinition

__all__ = [
    "AVAILABLE_TOOLS",
    "EnabledTools",
    "InferenceClient",
    "InferenceResult",
    "ToolCall",
    "ToolDefinition",
    "ToolResult",
    "Usage",
]
