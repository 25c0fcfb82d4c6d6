"""TaskExecutor - runs one task with one agent and records the result on the task."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from crewflow.crew.agent import Agent
from crewflow.crew.contract import format_violations
from crewflow.crew.task import Task, TaskStatus, output_as_text, utcnow
from crewflow.errors import AgentError

logger = logging.getLogger(__name__)


class TaskExecutor:
    """Drive an agent through a task.

    On normal return the task is COMPLETED or FAILED. Agent failures are
    recorded on the task; anything else propagates to the caller.
    """

    def execute(self, task: Task, agent: Agent) -> None:
        self._begin(task, agent)

        prompt = self._build_prompt(task)
        try:
            raw = agent.perform(prompt, task.resolve_context())
        except AgentError as e:
            self._fail(task, str(e))
            return

        task.output = raw
        self._apply_contract(task)
        self._persist(task)

        task.status = TaskStatus.COMPLETED
        task.completed_at = utcnow()
        task.add_log(f"Completed by agent '{agent.role}'")
        logger.info(f"Task {task.id} completed by {agent.role}")

    def _begin(self, task: Task, agent: Agent) -> None:
        task.status = TaskStatus.IN_PROGRESS
        task.started_at = utcnow()
        task.completed_at = None
        task.output = None
        task.parsed_output = None
        task.validation_error = None
        task.error = None
        task.add_log(f"Started by agent '{agent.role}' ({agent.id})")
        logger.info(f"Task {task.id} started: {task.description[:80]}")

    def _fail(self, task: Task, message: str) -> None:
        task.status = TaskStatus.FAILED
        task.error = message
        task.completed_at = utcnow()
        task.add_log(f"Failed: {message}")
        logger.warning(f"Task {task.id} failed: {message}")

    @staticmethod
    def _build_prompt(task: Task) -> str:
        prompt = task.description
        if task.expected_output:
            prompt += f"\n\nExpected output: {task.expected_output}"
        return prompt

    @staticmethod
    def _apply_contract(task: Task) -> None:
        if task.contract is None:
            return
        result = task.contract.safe_parse(task.output)
        if result.success:
            task.parsed_output = result.data
            task.add_log("Output satisfied its contract")
        else:
            task.validation_error = result.violations
            task.add_log(f"Output failed its contract: {format_violations(result.violations)}")
            logger.warning(f"Task {task.id} output failed validation")

    @staticmethod
    def _persist(task: Task) -> None:
        if not task.output_file:
            return
        path = Path(task.output_file)
        value: Any = task.parsed_output if task.parsed_output is not None else task.output
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(output_as_text(value), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write output of task {task.id} to {path}: {e}")
            task.add_log(f"Output persistence failed: {e}")
            return
        task.add_log(f"Output written to {path}")
