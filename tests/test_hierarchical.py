"""Tests for the hierarchical delegation loop."""

import json

from conftest import ScriptedLLM, StubExecutor
from crewflow.config import CrewSettings
from crewflow.crew.agent import Agent
from crewflow.crew.crew import Crew, CrewProcess, CrewStatus
from crewflow.crew.decision import COMPLETION_SENTINEL
from crewflow.crew.hierarchical import HierarchicalProcess
from crewflow.crew.task import Task, TaskStatus


def _delegate(task_id, agent_id, extra=None):
    payload = {"taskIdToDelegate": task_id, "agentIdToAssign": agent_id}
    if extra:
        payload["additionalContextForAgent"] = extra
    return f"Here is my decision:\n```json\n{json.dumps(payload)}\n```"


def _is_summary_request(prompt):
    return prompt.startswith("## Objective")


def delegating_manager(tasks, agent_id="agent-a", summary="final answer"):
    """Delegate the first open task to ``agent_id`` until none remain."""

    def reply(prompt):
        if _is_summary_request(prompt):
            return summary
        pending = [t for t in tasks if t.status != TaskStatus.COMPLETED]
        if not pending:
            return COMPLETION_SENTINEL
        return _delegate(pending[0].id, agent_id)

    return ScriptedLLM(reply)


def _crew(agents, tasks, manager, executor, **kwargs):
    return Crew(
        agents=agents,
        tasks=tasks,
        process=CrewProcess.HIERARCHICAL,
        manager=manager,
        executor=executor,
        **kwargs,
    )


class TestHierarchicalSuccess:
    def test_runs_all_tasks_then_synthesizes(self, agent_a, agent_b, stub_executor):
        tasks = [Task(description="research", id="t1"), Task(description="write", id="t2")]
        manager = delegating_manager(tasks)
        crew = _crew([agent_a, agent_b], tasks, manager, stub_executor, objective="Publish a post")

        crew.run()

        assert crew.status == CrewStatus.COMPLETED
        assert crew.output == "final answer"
        assert set(crew.tasks_output) == {"t1", "t2"}
        assert stub_executor.calls == [("t1", "agent-a"), ("t2", "agent-a")]
        summary_prompt = manager.prompts[-1]
        assert "Publish a post" in summary_prompt
        assert "done:research" in summary_prompt and "done:write" in summary_prompt

    def test_default_objective(self, agent_a, stub_executor):
        tasks = [Task(description="research", id="t1")]
        manager = delegating_manager(tasks)
        crew = _crew([agent_a], tasks, manager, stub_executor)
        crew.run()
        assert CrewSettings().default_objective in manager.prompts[-1]

    def test_without_synthesis_uses_last_task_output(self, agent_a, stub_executor):
        tasks = [Task(description="research", id="t1"), Task(description="write", id="t2")]
        crew = _crew(
            [agent_a], tasks, delegating_manager(tasks), stub_executor,
            settings=CrewSettings(synthesize_summary=False),
        )
        crew.run()
        assert crew.status == CrewStatus.COMPLETED
        assert crew.output == "done:write"

    def test_agent_form_manager(self, agent_a, stub_executor):
        tasks = [Task(description="research", id="t1")]
        boss = Agent(role="Boss", goal="coordinate", llm=delegating_manager(tasks, summary="wrapped up"))
        crew = _crew([agent_a], tasks, boss, stub_executor)
        crew.run()
        assert crew.status == CrewStatus.COMPLETED
        assert crew.output == "wrapped up"

    def test_manager_instructions_reach_the_task(self, agent_a, stub_executor):
        task = Task(description="research", id="t1")

        def reply(prompt):
            if _is_summary_request(prompt):
                return "summary"
            return _delegate("t1", "agent-a", extra="Cite sources")

        _crew([agent_a], [task], ScriptedLLM(reply), stub_executor).run()
        assert task.additional_context == ["Cite sources"]

    def test_early_sentinel_ends_run(self, agent_a, stub_executor):
        crew = _crew(
            [agent_a], [Task(description="x")], ScriptedLLM(lambda p: COMPLETION_SENTINEL), stub_executor,
        )
        crew.run()
        assert crew.status == CrewStatus.COMPLETED
        assert stub_executor.calls == []
        assert crew.output is None


class TestHierarchicalFailures:
    def test_unparseable_response_fails_run(self, agent_a, stub_executor):
        crew = _crew(
            [agent_a], [Task(description="x")], ScriptedLLM(lambda p: "Hmm, let me think."), stub_executor,
        )
        crew.run()
        assert crew.status == CrewStatus.FAILED
        assert stub_executor.calls == []
        assert "could not be parsed" in crew.output["error"]

    def test_manager_transport_error_fails_run(self, agent_a, stub_executor):
        def reply(prompt):
            raise ConnectionError("gateway down")

        crew = _crew([agent_a], [Task(description="x")], ScriptedLLM(reply), stub_executor)
        crew.run()
        assert crew.status == CrewStatus.FAILED
        assert crew.output == {"error": "gateway down"}

    def test_unknown_agent_is_skipped_and_loop_continues(self, agent_a, stub_executor):
        task = Task(description="research", id="t1")
        replies = iter([_delegate("t1", "ghost"), _delegate("t1", "agent-a")])

        def reply(prompt):
            if _is_summary_request(prompt):
                return "summary"
            return next(replies)

        manager = ScriptedLLM(reply)
        crew = _crew([agent_a], [task], manager, stub_executor)
        outcome = HierarchicalProcess(crew).run()

        assert outcome.iterations == 2
        assert stub_executor.calls == [("t1", "agent-a")]
        assert outcome.rejected and "ghost" in outcome.rejected[0]
        assert "## Rejected delegations" in manager.prompts[1]
        assert outcome.attempts["t1"].attempts == 1

    def test_unknown_task_does_not_execute(self, agent_a, stub_executor):
        task = Task(description="research", id="t1")
        replies = iter([_delegate("nope", "agent-a"), COMPLETION_SENTINEL])
        crew = _crew([agent_a], [task], ScriptedLLM(lambda p: next(replies)), stub_executor)
        outcome = HierarchicalProcess(crew).run()

        assert stub_executor.calls == []
        assert outcome.sentinel_received
        assert task.status == TaskStatus.PENDING

    def test_failed_task_is_redelegated(self, agent_a, agent_b):
        task = Task(description="research", id="t1")
        executor = StubExecutor(failures={"t1": 1})

        def reply(prompt):
            if "last attempt FAILED" in prompt:
                return _delegate("t1", "agent-b")
            return _delegate("t1", "agent-a")

        crew = _crew([agent_a, agent_b], [task], ScriptedLLM(reply), executor)
        outcome = HierarchicalProcess(crew).run()

        info = outcome.attempts["t1"]
        assert outcome.all_completed
        assert info.status == TaskStatus.COMPLETED
        assert info.attempts == 2
        assert info.last_agent_id == "agent-b"
        assert info.last_iteration == 2
        assert info.last_error is None
        assert executor.calls == [("t1", "agent-a"), ("t1", "agent-b")]

    def test_failed_then_redelegated_crew_completes(self, agent_a, agent_b):
        tasks = [Task(description="research", id="t1")]
        crew = _crew(
            [agent_a, agent_b], tasks, delegating_manager(tasks, agent_id="agent-b"),
            StubExecutor(failures={"t1": 1}),
        )
        crew.run()
        assert crew.status == CrewStatus.COMPLETED
        assert crew.output == "final answer"

    def test_iteration_ceiling_gives_warning_payload(self, agent_a):
        tasks = [Task(description="impossible", id="t1")]
        executor = StubExecutor(failures={"t1": 100})
        crew = _crew(
            [agent_a], tasks, delegating_manager(tasks), executor,
            settings=CrewSettings(extra_iterations=2),
        )
        crew.run()

        assert crew.status == CrewStatus.COMPLETED
        assert len(executor.calls) == 3
        assert "warning" in crew.output
        assert crew.output["output"] is None
        unfinished = crew.output["unfinished_tasks"]
        assert unfinished == [{
            "task_id": "t1",
            "description": "impossible",
            "status": "FAILED",
            "last_error": "boom in impossible",
        }]

    def test_default_ceiling_is_task_count_plus_ten(self, agent_a):
        tasks = [Task(description="a", id="t1"), Task(description="b", id="t2")]
        executor = StubExecutor(failures={"t1": 100})
        crew = _crew([agent_a], tasks, delegating_manager(tasks), executor)
        outcome = HierarchicalProcess(crew).run()
        assert outcome.max_iterations == 12
        assert outcome.iterations == 12
        assert outcome.ceiling_reached

    def test_synthesis_failure_degrades_output(self, agent_a, stub_executor):
        tasks = [Task(description="research", id="t1")]

        def reply(prompt):
            if _is_summary_request(prompt):
                raise TimeoutError("summary timed out")
            return _delegate("t1", "agent-a")

        crew = _crew([agent_a], tasks, ScriptedLLM(reply), stub_executor)
        crew.run()

        assert crew.status == CrewStatus.COMPLETED
        assert crew.output == {
            "output": "done:research",
            "error": "Final summary synthesis failed: summary timed out",
        }

    def test_attempts_are_not_stored_on_tasks(self, agent_a, stub_executor):
        tasks = [Task(description="research", id="t1")]
        crew = _crew([agent_a], tasks, delegating_manager(tasks), stub_executor)
        crew.run()
        assert not hasattr(tasks[0], "attempts")
        assert not hasattr(crew, "attempts")


def test_hierarchical_events(agent_a, stub_executor):
    task = Task(description="research", id="t1")
    replies = iter([_delegate("t1", "ghost"), _delegate("t1", "agent-a")])

    def reply(prompt):
        if _is_summary_request(prompt):
            return "summary"
        return next(replies)

    events = []
    crew = _crew(
        [agent_a], [task], ScriptedLLM(reply), stub_executor,
        on_event=lambda kind, **data: events.append(kind),
    )
    crew.run()
    assert events == [
        "crew_started",
        "delegation_rejected",
        "manager_decision",
        "task_started",
        "task_completed",
        "crew_completed",
    ]
