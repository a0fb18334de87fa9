"""Agent package exposing the public interface for the sales assistant."""

from __future__ import annotations

from .dependencies import AgentDependencies
from .factory import get_agent
from .schemas import AgentReply, ProductCard, ProductSearchResult, strip_emojis
from .tools import ALL_TOOLS, TOOL_REGISTRY

__all__ = [
    "ALL_TOOLS",
    "AgentDependencies",
    "AgentReply",
    "ProductCard",
    "ProductSearchResult",
    "TOOL_REGISTRY",
    "get_agent",
    "strip_emojis",
]
