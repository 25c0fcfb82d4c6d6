"""Console output - rich logging setup and verbose crew reports."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from crewflow.crew.crew import Crew
    from crewflow.crew.task import Task


console = Console()


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, default=str)


class CrewReporter:
    """Pretty-prints a crew's progress when it runs with ``verbose=True``."""

    def __init__(self, out: Optional[Console] = None) -> None:
        self._console = out or console

    def crew_started(self, crew: Crew) -> None:
        table = Table(title=f"Crew {crew.id} ({crew.process.value})")
        table.add_column("Agent", style="cyan")
        table.add_column("Goal")
        for agent in crew.agents:
            table.add_row(agent.role, agent.goal)
        self._console.print(table)

        tasks = Table(title="Tasks")
        tasks.add_column("ID", style="cyan")
        tasks.add_column("Description")
        tasks.add_column("Agent")
        for task in crew.tasks:
            tasks.add_row(task.id, task.description, task.agent.role if task.agent else "-")
        self._console.print(tasks)

    def task_finished(self, task: Task) -> None:
        self._console.print(Panel(
            Text(_render(task.output)),
            title=f"Task {task.id} output",
            border_style="green",
            expand=False,
        ))

    def crew_finished(self, crew: Crew) -> None:
        color = "green" if crew.status.value == "COMPLETED" else "red"
        self._console.print(Panel(
            Text.assemble((crew.status.value, f"bold {color}"), "\n\n", _render(crew.output)),
            title="Crew execution complete",
            border_style=color,
        ))
