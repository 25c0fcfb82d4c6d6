"""Task records and per-task output details."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from pydantic import BaseModel, Field
from pydantic_core import to_jsonable_python

from crewflow.crew.contract import ContractViolation, OutputContract, as_contract

if TYPE_CHECKING:
    from crewflow.crew.agent import Agent


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def output_as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=2)
    return json.dumps(to_jsonable_python(value, fallback=str), indent=2)


@dataclass(eq=False)
class Task:
    """One unit of declared work.

    ``context`` is either free text or a list of earlier tasks whose outputs
    are handed to the agent. Execution state is mutated in place by the
    TaskExecutor; a retried task re-enters IN_PROGRESS on the same record.
    """

    description: str
    expected_output: str = ""
    agent: Optional[Agent] = None
    context: Union[str, list[Task], None] = None
    output_schema: Any = None
    output_file: Optional[Union[str, Path]] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    status: TaskStatus = TaskStatus.PENDING
    output: Any = None
    parsed_output: Any = None
    validation_error: Optional[list[ContractViolation]] = None
    error: Optional[str] = None
    logs: list[str] = field(default_factory=list)
    additional_context: list[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.contract: Optional[OutputContract] = as_contract(self.output_schema)

    def add_log(self, message: str) -> None:
        self.logs.append(f"[{utcnow().isoformat()}] {message}")

    def add_context(self, text: str) -> None:
        """Attach extra instructions for the next execution attempt."""
        if text and text.strip():
            self.additional_context.append(text.strip())

    def resolve_context(self) -> Optional[str]:
        parts: list[str] = []
        if isinstance(self.context, str):
            if self.context.strip():
                parts.append(self.context.strip())
        elif self.context:
            for prior in self.context:
                if prior.output is None:
                    continue
                parts.append(
                    f"--- Output of task '{prior.description}' ---\n"
                    f"{output_as_text(prior.output)}"
                )
        if self.additional_context:
            notes = "\n".join(f"- {n}" for n in self.additional_context)
            parts.append(f"Additional instructions:\n{notes}")
        return "\n\n".join(parts) if parts else None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED


class TaskOutputDetail(BaseModel):
    """Snapshot of a finished task, as aggregated on the crew."""

    task_id: str
    description: str
    output: Any = None
    parsed_output: Any = None
    validation_error: Optional[list[ContractViolation]] = None
    error: Optional[str] = None
    logs: list[str] = Field(default_factory=list)
    has_contract: bool = False

    @classmethod
    def from_task(cls, task: Task) -> TaskOutputDetail:
        return cls(
            task_id=task.id,
            description=task.description,
            output=task.output,
            parsed_output=task.parsed_output,
            validation_error=list(task.validation_error) if task.validation_error else None,
            error=task.error,
            logs=list(task.logs),
            has_contract=task.contract is not None,
        )
