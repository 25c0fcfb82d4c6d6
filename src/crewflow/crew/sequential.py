"""Sequential process - run every task once, in list order."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from crewflow.errors import CrewExecutionError

if TYPE_CHECKING:
    from crewflow.crew.crew import Crew

logger = logging.getLogger(__name__)


class SequentialProcess:
    def __init__(self, crew: Crew) -> None:
        self._crew = crew

    def run(self) -> None:
        """Execute tasks in order. The first failed task aborts the run."""
        crew = self._crew
        for index, task in enumerate(crew.tasks, start=1):
            agent = task.agent
            if agent is None:
                if not crew.agents:
                    raise CrewExecutionError(
                        f"Task {task.id} has no agent assigned and the crew has no agents",
                        task_id=task.id,
                    )
                agent = crew.agents[0]
                logger.info(f"Task {task.id} has no agent, assigning first crew agent '{agent.role}'")

            logger.info(f"[{index}/{len(crew.tasks)}] {task.description[:80]} -> {agent.role}")
            crew.emit("task_started", task_id=task.id, agent_id=agent.id)
            crew.executor.execute(task, agent)

            if not task.is_completed:
                crew.emit("task_failed", task_id=task.id, agent_id=agent.id, error=task.error)
                raise CrewExecutionError(
                    f"Task {task.id} (\"{task.description}\") failed: {task.error}",
                    task_id=task.id,
                )

            crew.record_task_output(task)
            crew.emit("task_completed", task_id=task.id, agent_id=agent.id)
