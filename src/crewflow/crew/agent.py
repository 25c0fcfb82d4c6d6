"""Agent - a role-bound worker that turns a task description into text."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from crewflow.errors import AgentError
from crewflow.llm.provider import resolve_llm, response_text
from crewflow.tools.base import FunctionTool, Tool
from crewflow.tools.registry import ToolRegistry

AGENT_SYSTEM_PROMPT = """You are {role}.
Your goal: {goal}
{backstory}
Answer the task you are given directly and completely. Use your tools when
they help; when you are done, reply with the final answer only."""


class Agent:
    """A named persona with a goal, an optional chat model, tools and memory."""

    def __init__(
        self,
        role: str,
        goal: str,
        backstory: str = "",
        llm: Any = None,
        tools: Iterable[Any] = (),
        memory: bool = False,
        verbose: bool = False,
        max_iter: int = 25,
        agent_id: Optional[str] = None,
    ) -> None:
        self.id = agent_id or uuid.uuid4().hex[:8]
        self.role = role
        self.goal = goal
        self.backstory = backstory
        self.llm = resolve_llm(llm)
        self.tools = ToolRegistry(
            t if isinstance(t, Tool) else FunctionTool(t) for t in tools
        )
        self.memory = memory
        self.verbose = verbose
        self.max_iter = max_iter
        self._history: list[BaseMessage] = []
        self._log = logging.getLogger(f"crewflow.agent.{role.lower().replace(' ', '_')}")

    def __repr__(self) -> str:
        return f"Agent(id={self.id!r}, role={self.role!r})"

    @property
    def tool_names(self) -> list[str]:
        return self.tools.names()

    def system_prompt(self) -> str:
        return AGENT_SYSTEM_PROMPT.format(
            role=self.role,
            goal=self.goal,
            backstory=f"Background: {self.backstory}" if self.backstory else "",
        )

    def perform(self, task_description: str, context: Optional[str] = None) -> str:
        """Work on a task and return the answer text.

        Raises AgentError when the model or the tool loop fails.
        """
        if self.verbose:
            self._log.info(f"Starting task: {task_description[:120]}")

        if self.llm is None:
            self._log.info("No language model bound, returning placeholder answer")
            return f"Task '{task_description}' processed by agent {self.role}."

        prompt = task_description
        if context:
            prompt += f"\n\n## Context\n{context}"

        messages: list[BaseMessage] = [SystemMessage(content=self.system_prompt())]
        messages.extend(self._history)
        messages.append(HumanMessage(content=prompt))

        try:
            answer = self._run_model(messages)
        except AgentError:
            raise
        except Exception as e:
            self._log.error(f"Model call failed: {e}")
            raise AgentError(self.role, str(e)) from e

        if self.memory:
            self._history.append(HumanMessage(content=prompt))
            self._history.append(AIMessage(content=answer))

        if self.verbose:
            self._log.info(f"Finished task, {len(answer)} chars")
        return answer

    def reset_memory(self) -> None:
        self._history.clear()

    def _run_model(self, messages: list[BaseMessage]) -> str:
        if not len(self.tools):
            return response_text(self.llm.invoke(messages))

        bound = self.llm.bind_tools(self.tools.schemas())
        for _ in range(self.max_iter):
            response = bound.invoke(messages)
            calls = getattr(response, "tool_calls", None) or []
            if not calls:
                return response_text(response)

            messages.append(response)
            for call in calls:
                result = self.tools.run_call(call)
                if not result.success:
                    self._log.warning(f"Tool {call.get('name')} failed: {result.error}")
                messages.append(result.to_message(call.get("id") or call.get("name", "")))

        raise AgentError(self.role, f"no final answer after {self.max_iter} tool rounds")
