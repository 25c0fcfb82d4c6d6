"""Shared fixtures for crewflow tests."""

from typing import Callable, Optional

import pytest
from langchain_core.messages import AIMessage

from crewflow.crew.agent import Agent
from crewflow.crew.task import Task, TaskStatus, utcnow


class StubExecutor:
    """TaskExecutor stand-in: ``output = "done:" + description``.

    ``failures`` maps a task id to how many attempts should fail before
    the task succeeds.
    """

    def __init__(self, failures: Optional[dict] = None, raise_on: Optional[str] = None):
        self.calls: list[tuple[str, str]] = []
        self.failures = dict(failures or {})
        self.raise_on = raise_on

    def execute(self, task: Task, agent: Agent) -> None:
        self.calls.append((task.id, agent.id))
        if task.id == self.raise_on:
            raise RuntimeError(f"executor crashed on {task.id}")

        task.status = TaskStatus.IN_PROGRESS
        task.started_at = utcnow()
        task.error = None
        task.output = None
        if self.failures.get(task.id, 0) > 0:
            self.failures[task.id] -= 1
            task.status = TaskStatus.FAILED
            task.error = f"boom in {task.description}"
            task.add_log("failed")
            return

        task.output = "done:" + task.description
        task.status = TaskStatus.COMPLETED
        task.completed_at = utcnow()
        task.add_log("completed")


class ScriptedLLM:
    """Chat client whose reply is computed from the last prompt it receives."""

    def __init__(self, reply: Callable[[str], str]):
        self._reply = reply
        self.prompts: list[str] = []

    def invoke(self, messages):
        prompt = messages[-1].content
        self.prompts.append(prompt)
        return AIMessage(content=self._reply(prompt))


@pytest.fixture
def agent_a():
    return Agent(role="Researcher", goal="Find facts", agent_id="agent-a")


@pytest.fixture
def agent_b():
    return Agent(role="Writer", goal="Write prose", agent_id="agent-b")


@pytest.fixture
def stub_executor():
    return StubExecutor()
