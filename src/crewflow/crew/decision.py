"""Manager decision protocol - the request sent to the manager and the parse of its reply.

The parser only classifies a response; deciding what a failed parse means
for the run is left to the caller.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from crewflow.crew.task import Task, output_as_text
from crewflow.errors import JSONExtractionError
from crewflow.llm_json import extract_json

if TYPE_CHECKING:
    from crewflow.crew.agent import Agent
    from crewflow.crew.hierarchical import TaskAttemptInfo

COMPLETION_SENTINEL = "ALL_TASKS_COMPLETED"

DECISION_INSTRUCTIONS = """## Your decision
If every task has been completed satisfactorily, respond with exactly:
{sentinel}

Otherwise choose ONE task from "Tasks to complete" and ONE agent from
"Available agents", and respond with a single JSON object:
```json
{{
  "taskIdToDelegate": "<task id>",
  "agentIdToAssign": "<agent id>",
  "additionalContextForAgent": "<optional extra instructions for the agent>"
}}
```
Use the exact ids listed above. If a task failed before, consider giving it
to a different agent or adding instructions that address the error."""


class DelegationPayload(BaseModel):
    """Wire shape of a delegation decision."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    task_id: str = Field(alias="taskIdToDelegate", min_length=1)
    agent_id: str = Field(alias="agentIdToAssign", min_length=1)
    additional_context: Optional[str] = Field(default=None, alias="additionalContextForAgent")

    @field_validator("additional_context", mode="before")
    @classmethod
    def _context_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, default=str)


@dataclass(frozen=True)
class Sentinel:
    raw: str


@dataclass(frozen=True)
class Delegation:
    task_id: str
    agent_id: str
    additional_context: Optional[str] = None


@dataclass(frozen=True)
class ParseFailure:
    raw: str
    reason: str


ManagerDecision = Union[Sentinel, Delegation, ParseFailure]


def parse_manager_response(text: Optional[str]) -> ManagerDecision:
    if not text or not text.strip():
        return ParseFailure(raw=text or "", reason="empty response")

    if COMPLETION_SENTINEL in text:
        return Sentinel(raw=text)

    try:
        data = extract_json(text)
    except JSONExtractionError as e:
        return ParseFailure(raw=text, reason=str(e))

    try:
        payload = DelegationPayload.model_validate(data)
    except ValidationError as e:
        missing = ", ".join(
            ".".join(str(p) for p in err["loc"]) for err in e.errors()
        )
        return ParseFailure(raw=text, reason=f"invalid delegation fields: {missing}")

    return Delegation(
        task_id=payload.task_id,
        agent_id=payload.agent_id,
        additional_context=payload.additional_context or None,
    )


def _preview(value: object, limit: int) -> str:
    text = output_as_text(value).strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def build_decision_prompt(
    agents: Iterable[Agent],
    pending: Iterable[Task],
    completed: Iterable[Task],
    attempts: Mapping[str, TaskAttemptInfo],
    rejected: Iterable[str] = (),
    preview_chars: int = 500,
) -> str:
    agent_list = list(agents)
    roles = {a.id: a.role for a in agent_list}

    lines = ["## Available agents"]
    for agent in agent_list:
        tools = ", ".join(agent.tool_names) or "none"
        lines.append(
            f"- id: {agent.id} | role: {agent.role} | goal: {agent.goal} | tools: {tools}"
        )

    lines.append("")
    lines.append("## Tasks to complete")
    for task in pending:
        lines.append(f"- id: {task.id}")
        lines.append(f"  description: {task.description}")
        if task.expected_output:
            lines.append(f"  expected output: {task.expected_output}")
        info = attempts.get(task.id)
        if info is not None and info.last_error:
            agent_desc = info.last_agent_id or "unknown"
            if info.last_agent_id in roles:
                agent_desc += f" ({roles[info.last_agent_id]})"
            lines.append(
                f"  last attempt FAILED (attempt {info.attempts}, agent {agent_desc}): "
                f"{info.last_error}"
            )

    done = list(completed)
    if done:
        lines.append("")
        lines.append("## Completed tasks")
        for task in done:
            lines.append(f"- id: {task.id} | {task.description}")
            lines.append(f"  output: {_preview(task.output, preview_chars)}")

    rejected = list(rejected)
    if rejected:
        lines.append("")
        lines.append("## Rejected delegations")
        lines.extend(f"- {r}" for r in rejected[-5:])

    lines.append("")
    lines.append(DECISION_INSTRUCTIONS.format(sentinel=COMPLETION_SENTINEL))
    return "\n".join(lines)
