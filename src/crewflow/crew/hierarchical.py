"""Hierarchical process - a manager delegates tasks to agents one decision at a time.

Each iteration asks the manager for a decision, validates it against the
crew, runs the chosen task with the chosen agent and folds the result
back into the next request. The loop ends when the manager sends the
completion sentinel, when every task is COMPLETED, or when the iteration
ceiling (task count + ``extra_iterations``) is reached.

Attempt bookkeeping lives in this module's local state for the duration
of one run and is never written onto the task records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from crewflow.crew.decision import (
    Delegation,
    ParseFailure,
    Sentinel,
    build_decision_prompt,
    parse_manager_response,
)
from crewflow.crew.task import Task, TaskStatus
from crewflow.errors import CrewConfigurationError, ManagerDecisionError

if TYPE_CHECKING:
    from crewflow.crew.crew import Crew

logger = logging.getLogger(__name__)


@dataclass
class TaskAttemptInfo:
    task_id: str
    status: TaskStatus = TaskStatus.PENDING
    last_error: Optional[str] = None
    last_agent_id: Optional[str] = None
    last_iteration: Optional[int] = None
    attempts: int = 0


@dataclass
class DelegationOutcome:
    attempts: dict[str, TaskAttemptInfo]
    iterations: int
    max_iterations: int
    sentinel_received: bool = False
    rejected: list[str] = field(default_factory=list)
    unfinished: list[Task] = field(default_factory=list)

    @property
    def all_completed(self) -> bool:
        return not self.unfinished

    @property
    def ceiling_reached(self) -> bool:
        return bool(self.unfinished) and not self.sentinel_received


class HierarchicalProcess:
    def __init__(self, crew: Crew) -> None:
        if crew.manager is None:
            raise CrewConfigurationError("Hierarchical process requires a manager")
        self._crew = crew
        self._manager = crew.manager

    def run(self) -> DelegationOutcome:
        crew = self._crew
        tasks = crew.tasks
        attempts = {t.id: TaskAttemptInfo(task_id=t.id, status=t.status) for t in tasks}
        max_iterations = len(tasks) + crew.settings.extra_iterations
        outcome = DelegationOutcome(
            attempts=attempts, iterations=0, max_iterations=max_iterations,
        )

        logger.info(
            f"Hierarchical run: {len(tasks)} task(s), {len(crew.agents)} agent(s), "
            f"manager={self._manager.name}, ceiling={max_iterations}"
        )

        while outcome.iterations < max_iterations:
            pending = [t for t in tasks if not t.is_completed]
            if not pending:
                logger.info("All tasks completed")
                break

            outcome.iterations += 1
            iteration = outcome.iterations
            completed = [t for t in tasks if t.is_completed]

            prompt = build_decision_prompt(
                crew.agents, pending, completed, attempts,
                rejected=outcome.rejected,
                preview_chars=crew.settings.completed_summary_chars,
            )
            raw = self._manager.ask(prompt)
            decision = parse_manager_response(raw)

            if isinstance(decision, Sentinel):
                logger.info(f"Iteration {iteration}: manager signalled completion")
                outcome.sentinel_received = True
                break

            if isinstance(decision, ParseFailure):
                logger.error(f"Iteration {iteration}: unparseable manager response: {decision.reason}")
                raise ManagerDecisionError(
                    f"Manager response could not be parsed as a decision: {decision.reason}",
                    raw_response=decision.raw,
                )

            self._delegate(decision, pending, iteration, outcome)

        outcome.unfinished = [t for t in tasks if not t.is_completed]
        if outcome.ceiling_reached:
            logger.warning(
                f"Iteration ceiling ({max_iterations}) reached with "
                f"{len(outcome.unfinished)} task(s) unfinished"
            )
        return outcome

    def _delegate(
        self,
        decision: Delegation,
        pending: list[Task],
        iteration: int,
        outcome: DelegationOutcome,
    ) -> None:
        crew = self._crew
        task = next((t for t in pending if t.id == decision.task_id), None)
        agent = crew.get_agent(decision.agent_id)

        if task is None or agent is None:
            problems = []
            if task is None:
                problems.append(f"task '{decision.task_id}' is not an open task")
            if agent is None:
                problems.append(f"agent '{decision.agent_id}' is not in the crew")
            reason = f"Iteration {iteration}: delegation rejected, " + " and ".join(problems)
            logger.warning(reason)
            outcome.rejected.append(reason)
            crew.emit(
                "delegation_rejected", iteration=iteration,
                task_id=decision.task_id, agent_id=decision.agent_id, reason=reason,
            )
            return

        logger.info(f"Iteration {iteration}: delegating task {task.id} to {agent.role}")
        crew.emit("manager_decision", iteration=iteration, task_id=task.id, agent_id=agent.id)
        if decision.additional_context:
            task.add_context(decision.additional_context)

        crew.emit("task_started", task_id=task.id, agent_id=agent.id)
        crew.executor.execute(task, agent)

        info = outcome.attempts[task.id]
        info.status = task.status
        info.last_agent_id = agent.id
        info.last_iteration = iteration
        info.attempts += 1

        if task.is_completed:
            info.last_error = None
            crew.record_task_output(task)
            crew.emit("task_completed", task_id=task.id, agent_id=agent.id)
        else:
            info.last_error = task.error or f"task ended with status {task.status.value}"
            logger.warning(f"Task {task.id} failed on attempt {info.attempts}: {info.last_error}")
            crew.emit("task_failed", task_id=task.id, agent_id=agent.id, error=info.last_error)


def unfinished_report(outcome: DelegationOutcome) -> list[dict[str, Any]]:
    report = []
    for task in outcome.unfinished:
        info = outcome.attempts.get(task.id)
        report.append({
            "task_id": task.id,
            "description": task.description,
            "status": (info.status if info else task.status).value,
            "last_error": info.last_error if info else task.error,
        })
    return report
