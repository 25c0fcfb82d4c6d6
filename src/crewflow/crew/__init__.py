"""Crew orchestration: agents, tasks, and the sequential and hierarchical processes."""

from crewflow.crew.agent import Agent
from crewflow.crew.contract import ContractResult, ContractViolation, OutputContract, PydanticContract
from crewflow.crew.crew import Crew, CrewProcess, CrewStatus, create_crew
from crewflow.crew.decision import (
    COMPLETION_SENTINEL,
    Delegation,
    ManagerDecision,
    ParseFailure,
    Sentinel,
    parse_manager_response,
)
from crewflow.crew.executor import TaskExecutor
from crewflow.crew.hierarchical import DelegationOutcome, HierarchicalProcess, TaskAttemptInfo
from crewflow.crew.manager import AgentManager, LLMManager, Manager, resolve_manager
from crewflow.crew.sequential import SequentialProcess
from crewflow.crew.task import Task, TaskOutputDetail, TaskStatus

__all__ = [
    "COMPLETION_SENTINEL",
    "Agent",
    "AgentManager",
    "ContractResult",
    "ContractViolation",
    "Crew",
    "CrewProcess",
    "CrewStatus",
    "Delegation",
    "DelegationOutcome",
    "HierarchicalProcess",
    "LLMManager",
    "Manager",
    "ManagerDecision",
    "OutputContract",
    "ParseFailure",
    "PydanticContract",
    "SequentialProcess",
    "Sentinel",
    "Task",
    "TaskAttemptInfo",
    "TaskExecutor",
    "TaskOutputDetail",
    "TaskStatus",
    "create_crew",
    "parse_manager_response",
    "resolve_manager",
]
