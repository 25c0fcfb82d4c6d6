"""Final summary synthesis for the hierarchical process."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional

from crewflow.crew.contract import format_violations
from crewflow.crew.task import TaskOutputDetail, output_as_text

if TYPE_CHECKING:
    from crewflow.crew.crew import Crew

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = """You are the manager of a crew of AI agents and the
work is finished. Combine the agents' results into one coherent final answer
that fulfils the crew's objective. Respond with the final answer only."""

SUMMARY_PROMPT = """## Objective
{objective}

## Results from the crew
{results}

Write the final answer for the objective above, based on these results."""


def degraded_output(
    output: Any,
    error: Optional[str] = None,
    warning: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    """Shape shared by every degraded-but-completed crew result."""
    payload: dict[str, Any] = {"output": output}
    if error is not None:
        payload["error"] = error
    if warning is not None:
        payload["warning"] = warning
    payload.update(extra)
    return payload


def looks_like_error(value: Any) -> bool:
    if isinstance(value, dict):
        return bool(value.get("error"))
    if isinstance(value, str):
        return value.lstrip().lower().startswith("error:")
    return False


def successful_outputs(details: Iterable[TaskOutputDetail]) -> list[TaskOutputDetail]:
    return [d for d in details if d.error is None and not looks_like_error(d.output)]


def format_results(details: Iterable[TaskOutputDetail]) -> str:
    blocks = []
    for detail in details:
        header = f"### Task {detail.task_id}: {detail.description}"
        if detail.has_contract and detail.validation_error:
            body = (
                f"(validation failed, raw value shown: "
                f"{format_violations(detail.validation_error)})\n"
                f"{output_as_text(detail.output)}"
            )
        elif detail.has_contract and detail.parsed_output is not None:
            body = output_as_text(detail.parsed_output)
        else:
            body = output_as_text(detail.output)
        blocks.append(f"{header}\n{body}")
    return "\n\n".join(blocks)


def synthesize_summary(crew: Crew) -> Any:
    """Ask the manager for one final answer built from the successful task outputs.

    Returns the new crew output. Failures degrade the output instead of
    raising.
    """
    details = list(crew.tasks_output.values())
    if not details:
        return crew.output

    usable = successful_outputs(details)
    if not usable:
        logger.warning("No successful task outputs to summarize")
        return degraded_output(crew.output, error="No successful task outputs to summarize")

    objective = crew.objective or crew.settings.default_objective
    prompt = SUMMARY_PROMPT.format(objective=objective, results=format_results(usable))

    logger.info(f"Requesting final summary over {len(usable)} task output(s)")
    try:
        return crew.manager.ask(prompt, system_prompt=SUMMARY_SYSTEM_PROMPT)
    except Exception as e:
        logger.error(f"Final summary synthesis failed: {e}")
        return degraded_output(crew.output, error=f"Final summary synthesis failed: {e}")
