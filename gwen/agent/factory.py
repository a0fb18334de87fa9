"""Factory for constructing the sales assistant agent."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic_ai import Agent, InstrumentationSettings
from pydantic_ai.models.openai import OpenAIChatModel, OpenAIChatModelSettings
from pydantic_ai.providers.openai import OpenAIProvider

from .dependencies import AgentDependencies
from .logging import _ensure_logfire
from .prompts import SYSTEM_PROMPT, build_session_instructions
from .schemas import AgentReply
from .tools import ALL_TOOLS


@lru_cache(maxsize=1)
def get_agent() -> Agent[AgentDependencies, AgentReply]:
    """Return a configured agent instance with tool and logging support."""

    _ensure_logfire()

    model_name = os.getenv("OPENAI_MODEL", "gpt-4o")
    model = OpenAIChatModel(
        model_name,
        provider=OpenAIProvider(
            base_url=os.getenv("OPENAI_BASE_URL"), api_key=os.getenv("OPENAI_API_KEY")
        ),
        settings=OpenAIChatModelSettings(
            temperature=0.7, max_tokens=1000, parallel_tool_calls=False
        ),
    )

    agent = Agent(
        model=model,
        output_type=AgentReply,
        instructions=SYSTEM_PROMPT,
        deps_type=AgentDependencies,
        tools=ALL_TOOLS,
        instrument=InstrumentationSettings(),
        name="gwen-sales-assistant",
    )
    agent.instructions(build_session_instructions)
    return agent


__all__ = ["get_agent"]
