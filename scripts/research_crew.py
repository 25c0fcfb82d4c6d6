"""Research-and-write crew run by a manager model.

Run with: python scripts/research_crew.py "quantum error correction"

Reads LLM_PROVIDER / LLM_MODEL / the provider API key from the environment
(or a .env file).
"""

from __future__ import annotations

import sys

from rich.panel import Panel

from crewflow import Agent, CrewflowConfig, CrewProcess, Task, create_crew
from crewflow.console import console, setup_logging
from crewflow.llm import create_llm


def main(topic: str) -> int:
    config = CrewflowConfig.from_env()
    setup_logging(config.log_level)

    console.print(Panel(
        f"[bold blue]crewflow[/bold blue]\nTopic: {topic}\n"
        f"Provider: {config.llm.provider} / {config.llm.model}",
        expand=False,
    ))

    llm = create_llm(config.llm)
    researcher = Agent(
        role="Researcher",
        goal="Collect accurate, well-sourced facts",
        backstory="A meticulous analyst who double-checks every claim.",
        llm=llm,
    )
    writer = Agent(
        role="Writer",
        goal="Turn research notes into clear prose for engineers",
        llm=llm,
    )

    research = Task(
        description=f"List the five most important facts about {topic}.",
        expected_output="A bullet list of five facts",
    )
    article = Task(
        description=f"Write a three-paragraph introduction to {topic}.",
        expected_output="Three paragraphs of plain text",
        context=[research],
    )

    crew = create_crew(
        [researcher, writer],
        [research, article],
        process=CrewProcess.HIERARCHICAL,
        manager=config.llm,
        objective=f"Explain {topic} to a software engineer",
        settings=config.crew,
        verbose=True,
    )
    crew.run()
    return 0 if crew.status.value == "COMPLETED" else 1


if __name__ == "__main__":
    sys.exit(main(" ".join(sys.argv[1:]) or "vector databases"))
