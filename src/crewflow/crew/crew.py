"""Crew - agents, tasks and the process that runs them."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union

from crewflow.config import CrewSettings
from crewflow.console import CrewReporter
from crewflow.crew.agent import Agent
from crewflow.crew.executor import TaskExecutor
from crewflow.crew.hierarchical import HierarchicalProcess, unfinished_report
from crewflow.crew.manager import Manager, resolve_manager
from crewflow.crew.sequential import SequentialProcess
from crewflow.crew.summary import degraded_output, synthesize_summary
from crewflow.crew.task import Task, TaskOutputDetail, utcnow
from crewflow.errors import CrewConfigurationError

logger = logging.getLogger(__name__)


class CrewProcess(str, Enum):
    SEQUENTIAL = "sequential"
    HIERARCHICAL = "hierarchical"


class CrewStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


_TERMINAL = frozenset({CrewStatus.COMPLETED, CrewStatus.FAILED})


class Crew:
    """A single-use orchestration unit.

    Construction validates the roster and resolves the manager; ``run()``
    executes the chosen process once. Afterwards ``status`` and ``output``
    describe the result: FAILED means the run was aborted, COMPLETED with a
    dict carrying ``error`` or ``warning`` means it finished degraded.
    """

    def __init__(
        self,
        agents: Iterable[Agent],
        tasks: Iterable[Task],
        process: Union[CrewProcess, str] = CrewProcess.SEQUENTIAL,
        manager: Any = None,
        objective: Optional[str] = None,
        verbose: bool = False,
        executor: Optional[TaskExecutor] = None,
        settings: Optional[CrewSettings] = None,
        on_event: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.agents: list[Agent] = list(agents or [])
        self.tasks: list[Task] = list(tasks or [])
        self._validate_roster()

        try:
            self.process = CrewProcess(process)
        except ValueError as e:
            raise CrewConfigurationError(f"Unknown crew process: {process!r}") from e

        self.manager: Optional[Manager] = None
        if self.process == CrewProcess.HIERARCHICAL:
            if manager is None:
                raise CrewConfigurationError(
                    "Crew creation failed: the hierarchical process requires a manager."
                )
            self.manager = resolve_manager(manager)
        elif manager is not None:
            self.manager = resolve_manager(manager)

        self.id = uuid.uuid4().hex
        self.objective = objective
        self.verbose = verbose
        self.executor = executor or TaskExecutor()
        self.settings = settings or CrewSettings()
        self._emit = on_event or (lambda *a, **kw: None)
        self._reporter = CrewReporter() if verbose else None

        self.status = CrewStatus.PENDING
        self.output: Any = None
        self.tasks_output: dict[str, TaskOutputDetail] = {}
        self.created_at: datetime = utcnow()
        self.updated_at: datetime = self.created_at
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None

        logger.info(
            f"Crew {self.id} created: {len(self.agents)} agent(s), "
            f"{len(self.tasks)} task(s), process={self.process.value}"
        )

    def _validate_roster(self) -> None:
        if not self.agents:
            raise CrewConfigurationError("Crew creation failed: no agents provided.")
        if not self.tasks:
            raise CrewConfigurationError("Crew creation failed: no tasks provided.")

        agent_ids = [a.id for a in self.agents]
        if len(set(agent_ids)) != len(agent_ids):
            raise CrewConfigurationError("Crew creation failed: duplicate agent ids.")
        task_ids = [t.id for t in self.tasks]
        if len(set(task_ids)) != len(task_ids):
            raise CrewConfigurationError("Crew creation failed: duplicate task ids.")

        members = set(agent_ids)
        for task in self.tasks:
            if task.agent is not None and task.agent.id not in members:
                raise CrewConfigurationError(
                    f"Task \"{task.description}\" is configured with an agent "
                    f"(ID: {task.agent.id}, Role: {task.agent.role}) that is not "
                    "part of the provided crew agents list."
                )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return next((a for a in self.agents if a.id == agent_id), None)

    def get_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def emit(self, event_type: str, **kwargs: Any) -> None:
        self._emit(event_type, crew_id=self.id, **kwargs)

    def record_task_output(self, task: Task) -> None:
        """Store a completed task's detail and make its output the provisional crew output."""
        self.tasks_output[task.id] = TaskOutputDetail.from_task(task)
        self.output = task.output
        self.updated_at = utcnow()
        if self._reporter:
            self._reporter.task_finished(task)

    def run(self) -> Any:
        """Run the crew once and return its output.

        A crew that is running or finished ignores further run requests.
        """
        if self.status == CrewStatus.RUNNING:
            logger.warning(f"Crew {self.id} is already running.")
            return self.output
        if self.status in _TERMINAL:
            logger.warning(
                f"Crew {self.id} has already finished. Create a new crew to run again."
            )
            return self.output

        self.status = CrewStatus.RUNNING
        self.started_at = utcnow()
        self.updated_at = self.started_at
        self.output = None
        self.tasks_output = {}
        self.emit("crew_started", process=self.process.value)
        if self._reporter:
            self._reporter.crew_started(self)

        try:
            if self.process == CrewProcess.SEQUENTIAL:
                SequentialProcess(self).run()
            else:
                self._run_hierarchical()
        except Exception as e:
            self.status = CrewStatus.FAILED
            self.output = {"error": str(e)}
            logger.error(f"Crew {self.id} failed: {e}")
            self.emit("crew_failed", error=str(e))
        else:
            self.status = CrewStatus.COMPLETED
            self.emit("crew_completed")
        finally:
            self.completed_at = utcnow()
            self.updated_at = self.completed_at
            if self._reporter:
                self._reporter.crew_finished(self)

        return self.output

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_hierarchical(self) -> None:
        outcome = HierarchicalProcess(self).run()

        if outcome.all_completed:
            if self.settings.synthesize_summary:
                self.output = synthesize_summary(self)
            return

        if outcome.ceiling_reached:
            self.output = degraded_output(
                self.output,
                warning=(
                    f"Iteration limit of {outcome.max_iterations} reached before all "
                    "tasks were completed"
                ),
                unfinished_tasks=unfinished_report(outcome),
            )
            return

        logger.warning(
            f"Manager ended the run with {len(outcome.unfinished)} task(s) not completed"
        )


def create_crew(
    agents: Iterable[Agent],
    tasks: Iterable[Task],
    process: Union[CrewProcess, str] = CrewProcess.SEQUENTIAL,
    **kwargs: Any,
) -> Crew:
    return Crew(agents, tasks, process=process, **kwargs)
