"""
Agent Workflows

LangGraph state machines over a shared WorkflowState:

  study plan : research → compiler → scheduler
  chat       : tutor
  quiz       : quiz

Public API::

    from studybuddy.agents import WorkflowDependencies, WorkflowSeed, execute_study_plan_workflow
"""

from studybuddy.agents.collaborators import (
    CalendarClient,
    ChatHistoryStore,
    Collaborators,
    DriveFile,
    DriveFolder,
    StudyGuideStore,
)
from studybuddy.agents.graph import (
    WorkflowDependencies,
    build_chat_graph,
    build_quiz_graph,
    build_study_plan_graph,
    execute_chat_workflow,
    execute_quiz_workflow,
    execute_study_plan_workflow,
)
from studybuddy.agents.state import WorkflowSeed, WorkflowState, initial_state, workflow_succeeded

__all__ = [
    "CalendarClient",
    "ChatHistoryStore",
    "Collaborators",
    "DriveFile",
    "DriveFolder",
    "StudyGuideStore",
    "WorkflowDependencies",
    "WorkflowSeed",
    "WorkflowState",
    "build_chat_graph",
    "build_quiz_graph",
    "build_study_plan_graph",
    "execute_chat_workflow",
    "execute_quiz_workflow",
    "execute_study_plan_workflow",
    "initial_state",
    "workflow_succeeded",
]
