"""Manager binding for the hierarchical process.

A manager is resolved once, at crew construction, into exactly one of:

- AgentManager: an Agent whose own chat model makes the decisions.
- LLMManager: a bare chat client, either supplied ready-made or built
  from a provider configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from langchain_core.messages import HumanMessage, SystemMessage

from crewflow.crew.agent import Agent
from crewflow.errors import CrewConfigurationError
from crewflow.llm.provider import resolve_llm, response_text

logger = logging.getLogger(__name__)

MANAGER_SYSTEM_PROMPT = """You are the manager of a crew of AI agents.
You decide which task to work on next and which agent should do it, and you
judge when the overall work is complete. Follow the response format you are
given exactly."""


@dataclass(frozen=True)
class AgentManager:
    agent: Agent

    @property
    def name(self) -> str:
        return f"agent '{self.agent.role}'"

    def ask(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        # The agent brings its own persona; system_prompt only applies to bare clients
        return self.agent.perform(prompt)


@dataclass(frozen=True)
class LLMManager:
    llm: Any

    @property
    def name(self) -> str:
        return type(self.llm).__name__

    def ask(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        messages = [
            SystemMessage(content=system_prompt or MANAGER_SYSTEM_PROMPT),
            HumanMessage(content=prompt),
        ]
        return response_text(self.llm.invoke(messages))


Manager = Union[AgentManager, LLMManager]


def resolve_manager(value: Any) -> Manager:
    """Resolve an Agent, chat client or provider configuration into a Manager."""
    if isinstance(value, (AgentManager, LLMManager)):
        return value
    if value is None:
        raise CrewConfigurationError("A manager is required for the hierarchical process")
    if isinstance(value, Agent):
        if value.llm is None:
            raise CrewConfigurationError(
                f"Manager agent '{value.role}' has no language model to make decisions with"
            )
        logger.info(f"Manager resolved to agent '{value.role}'")
        return AgentManager(value)

    llm = resolve_llm(value)
    logger.info(f"Manager resolved to chat client {type(llm).__name__}")
    return LLMManager(llm)
