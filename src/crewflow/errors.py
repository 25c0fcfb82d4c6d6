"""Exception hierarchy for crew construction and execution."""

from __future__ import annotations

from typing import Optional


class CrewflowError(Exception):
    """Base error for all crewflow operations."""


class CrewConfigurationError(CrewflowError, ValueError):
    """Invalid crew, agent, task or manager configuration. Raised at build time."""


class CrewExecutionError(CrewflowError):
    """Run-fatal error. Aborts the crew run and marks it FAILED."""

    def __init__(self, message: str, task_id: Optional[str] = None) -> None:
        self.task_id = task_id
        super().__init__(message)


class ManagerDecisionError(CrewExecutionError):
    """The manager's response could not be turned into a delegation decision."""

    def __init__(self, message: str, raw_response: str) -> None:
        self.raw_response = raw_response
        super().__init__(message)


class AgentError(CrewflowError):
    """Raised by an agent when its model or one of its tools fails."""

    def __init__(self, role: str, message: str) -> None:
        self.role = role
        super().__init__(f"Agent '{role}' failed: {message}")


class JSONExtractionError(CrewflowError, ValueError):
    """No well-formed JSON object could be found in model output."""
