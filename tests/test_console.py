"""Tests for logging setup and the verbose crew reporter."""

import logging
from unittest.mock import MagicMock

from rich.console import Console
from rich.logging import RichHandler

from crewflow.console import CrewReporter, setup_logging
from crewflow.crew.crew import Crew
from crewflow.crew.task import Task


def test_setup_logging_installs_rich_handler(monkeypatch):
    basic_config = MagicMock()
    monkeypatch.setattr(logging, "basicConfig", basic_config)
    setup_logging("DEBUG")

    kwargs = basic_config.call_args.kwargs
    assert kwargs["level"] == "DEBUG"
    assert isinstance(kwargs["handlers"][0], RichHandler)


def test_reporter_renders_run(agent_a, stub_executor):
    out = Console(record=True, width=120)
    task = Task(description="collect [bold]facts[/bold]", id="t1")
    crew = Crew(agents=[agent_a], tasks=[task], executor=stub_executor)
    crew.run()

    reporter = CrewReporter(out)
    reporter.crew_started(crew)
    reporter.task_finished(task)
    reporter.crew_finished(crew)

    text = out.export_text()
    assert "Researcher" in text
    assert "Crew execution complete" in text
    assert "COMPLETED" in text
    assert "done:collect [bold]facts[/bold]" in text
