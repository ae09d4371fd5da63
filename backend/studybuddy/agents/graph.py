"""
Workflow Graphs — LangGraph Orchestration

  study plan : START → research → compiler → scheduler → END
  chat       : START → tutor → END
  quiz       : START → quiz → END

All edges are unconditional. Stages never raise (see agents.nodes.stage), so
every run reaches END and the terminal state's `errors` list is the success
signal: workflow_succeeded(state) ⇔ no errors.

Usage::

    deps   = WorkflowDependencies.from_settings(collaborators=Collaborators(...))
    seed   = WorkflowSeed(user_id=..., study_plan_id=..., topic="Graph Theory",
                          difficulty="beginner", duration_days="2 weeks",
                          materials=[MaterialFile(...)])
    result = await execute_study_plan_workflow(seed, deps)
    if not workflow_succeeded(result):
        ...
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from langgraph.graph import END, START, StateGraph

from studybuddy.agents.collaborators import Collaborators
from studybuddy.agents.nodes import (
    Clock,
    make_compiler_node,
    make_quiz_node,
    make_research_node,
    make_scheduler_node,
    make_tutor_node,
    utcnow,
)
from studybuddy.agents.state import (
    STAGE_OUTPUTS,
    WorkflowSeed,
    WorkflowState,
    initial_state,
    workflow_succeeded,
)
from studybuddy.core.config import Settings, get_settings
from studybuddy.llm.assistant import StudyAssistant
from studybuddy.llm.driver import ModelDriver
from studybuddy.llm.providers import build_generator
from studybuddy.processing.extractor import TextExtractor

logger = logging.getLogger(__name__)


@dataclass
class WorkflowDependencies:
    """Everything the graph builders bind into their nodes."""
    assistant:      StudyAssistant
    collaborators:  Collaborators = field(default_factory=Collaborators)
    extractor:      TextExtractor = field(default_factory=TextExtractor)
    clock:          Clock         = utcnow
    history_limit:  int           = 10
    question_count: int           = 5

    @classmethod
    def from_settings(
        cls,
        collaborators: Collaborators | None = None,
        settings:      Settings | None      = None,
    ) -> "WorkflowDependencies":
        """Wire the configured provider, driver and assistant from settings."""
        settings = settings or get_settings()
        driver   = ModelDriver.from_settings(build_generator(settings), settings)
        return cls(
            assistant=StudyAssistant(driver, settings=settings),
            collaborators=collaborators or Collaborators(),
            history_limit=settings.tutor_history_limit,
            question_count=settings.quiz_question_count,
        )


# ---------------------------------------------------------------------------
# Graph builders
# ---------------------------------------------------------------------------

def build_study_plan_graph(deps: WorkflowDependencies):
    workflow = StateGraph(WorkflowState)

    workflow.add_node("research", make_research_node(deps.extractor, deps.assistant))
    workflow.add_node("compiler", make_compiler_node(deps.collaborators, deps.clock))
    workflow.add_node("scheduler", make_scheduler_node(deps.assistant, deps.collaborators, deps.clock))

    workflow.add_edge(START, "research")
    workflow.add_edge("research", "compiler")
    workflow.add_edge("compiler", "scheduler")
    workflow.add_edge("scheduler", END)

    return workflow.compile()


def build_chat_graph(deps: WorkflowDependencies):
    workflow = StateGraph(WorkflowState)
    workflow.add_node("tutor", make_tutor_node(deps.assistant, deps.collaborators, deps.history_limit))
    workflow.add_edge(START, "tutor")
    workflow.add_edge("tutor", END)
    return workflow.compile()


def build_quiz_graph(deps: WorkflowDependencies):
    workflow = StateGraph(WorkflowState)
    workflow.add_node("quiz", make_quiz_node(deps.assistant, deps.question_count))
    workflow.add_edge(START, "quiz")
    workflow.add_edge("quiz", END)
    return workflow.compile()


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

# A study-plan run recomputes every stage output; caller-supplied values for
# them are dropped so a failed stage cannot leave stale output behind.
_STUDY_PLAN_RESET = frozenset().union(*STAGE_OUTPUTS.values())


async def _run(
    name:  str,
    graph,
    seed:  WorkflowSeed | WorkflowState,
    reset: frozenset[str] = frozenset(),
) -> WorkflowState:
    state = initial_state(seed) if isinstance(seed, WorkflowSeed) else WorkflowState(**seed)
    state.setdefault("errors", [])
    for key in reset:
        state.pop(key, None)

    logger.info("Workflow | starting workflow=%s study_plan_id=%s", name, state.get("study_plan_id"))
    t0 = time.perf_counter()
    result: WorkflowState = await graph.ainvoke(state)

    logger.info(
        "Workflow | finished workflow=%s study_plan_id=%s step=%s succeeded=%s errors=%d elapsed_ms=%.0f",
        name, result.get("study_plan_id"), result.get("current_step"),
        workflow_succeeded(result), len(result.get("errors") or []),
        (time.perf_counter() - t0) * 1000,
    )
    return result


async def execute_study_plan_workflow(
    seed: WorkflowSeed | WorkflowState,
    deps: WorkflowDependencies,
) -> WorkflowState:
    return await _run("study_plan", build_study_plan_graph(deps), seed, reset=_STUDY_PLAN_RESET)


async def execute_chat_workflow(
    seed: WorkflowSeed | WorkflowState,
    deps: WorkflowDependencies,
) -> WorkflowState:
    return await _run("chat", build_chat_graph(deps), seed)


async def execute_quiz_workflow(
    seed: WorkflowSeed | WorkflowState,
    deps: WorkflowDependencies,
) -> WorkflowState:
    return await _run("quiz", build_quiz_graph(deps), seed)
