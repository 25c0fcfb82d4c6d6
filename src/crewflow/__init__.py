"""Crewflow - orchestrate LLM-backed agents through sequential or manager-led crews."""

from crewflow.config import CrewflowConfig, CrewSettings, LLMConfig
from crewflow.crew import (
    Agent,
    Crew,
    CrewProcess,
    CrewStatus,
    Task,
    TaskExecutor,
    TaskStatus,
    create_crew,
)
from crewflow.errors import (
    AgentError,
    CrewConfigurationError,
    CrewExecutionError,
    CrewflowError,
    ManagerDecisionError,
)

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "AgentError",
    "Crew",
    "CrewConfigurationError",
    "CrewExecutionError",
    "CrewProcess",
    "CrewSettings",
    "CrewStatus",
    "CrewflowConfig",
    "CrewflowError",
    "LLMConfig",
    "ManagerDecisionError",
    "Task",
    "TaskExecutor",
    "TaskStatus",
    "create_crew",
]
