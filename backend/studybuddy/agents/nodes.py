"""
Workflow Nodes  —  research · compiler · scheduler · tutor · quiz
════════════════════════════════════════════════════════════════

Node contract
─────────────
  input   the current WorkflowState (read-only)
  output  a patch: the stage's own output fields plus current_step / errors

  Every node body is wrapped by @stage, which
    - sets current_step to "<stage>_complete" or "<stage>_failed"
    - on any exception appends exactly one "<Agent> failed: <reason>" entry
      to errors and drops the body's outputs
    - rejects a body that returns a field the stage does not own

  Nodes therefore never raise: a failing stage hands the state on, and the
  next stage fails fast on its own missing input. Every reachable failure is
  recorded instead of the first one masking the rest.

Dependencies (extractor, assistant, collaborators, clock) are bound by the
make_*_node factories; LangGraph only ever sees `async def node(state)`.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from studybuddy.agents.collaborators import PDF_MIME_TYPE, Collaborators
from studybuddy.agents.scheduling import build_calendar_events
from studybuddy.agents.state import STAGE_OUTPUTS, WorkflowState
from studybuddy.core.errors import (
    CollaboratorNotConfiguredError,
    MissingStageInputError,
    NoExtractableContentError,
    StageContractError,
)
from studybuddy.llm.assistant import StudyAssistant
from studybuddy.processing.extractor import TextExtractor
from studybuddy.schemas.study import CalendarEvent, ChatMessage

logger = logging.getLogger(__name__)

Patch = dict[str, Any]
Node  = Callable[[WorkflowState], Awaitable[Patch]]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Stage wrapper
# ---------------------------------------------------------------------------

def stage(name: str, agent: str) -> Callable[[Node], Node]:
    """
    Wrap a node body with status tagging, failure capture and field ownership.

    name  : stage key in STAGE_OUTPUTS; also the current_step prefix
    agent : human-readable label used in error entries ("Research Agent")
    """
    owned = STAGE_OUTPUTS[name]

    def decorator(body: Node) -> Node:
        @functools.wraps(body)
        async def node(state: WorkflowState) -> Patch:
            logger.info("%s | starting study_plan_id=%s", agent, state.get("study_plan_id"))
            try:
                outputs = await body(state)
                foreign = set(outputs) - owned
                if foreign:
                    raise StageContractError(name, foreign)
            except Exception as exc:
                logger.exception("%s | failed study_plan_id=%s", agent, state.get("study_plan_id"))
                return {"current_step": f"{name}_failed", "errors": [f"{agent} failed: {exc}"]}

            logger.info("%s | complete fields=%s", agent, ",".join(sorted(outputs)))
            return {**outputs, "current_step": f"{name}_complete"}

        return node

    return decorator


def _study_context(state: WorkflowState) -> str:
    return state.get("simplified_content") or state.get("extracted_text") or ""


# ---------------------------------------------------------------------------
# research: extract → (chunk) → simplify
# ---------------------------------------------------------------------------

def make_research_node(extractor: TextExtractor, assistant: StudyAssistant) -> Node:
    @stage("research", "Research Agent")
    async def research(state: WorkflowState) -> Patch:
        materials = state.get("materials") or []
        extracted = await extractor.extract_batch(materials)
        if not extracted.strip():
            raise NoExtractableContentError("No text could be extracted from uploaded materials")
        logger.info("Research Agent | extracted chars=%d", len(extracted))

        simplified = await assistant.simplify_document(extracted, state["topic"], state["difficulty"])
        logger.info("Research Agent | simplified chars=%d", len(simplified))

        return {
            "extracted_text":     extracted,
            "simplified_content": simplified,
            "research_summary":   (
                f"Successfully processed {len(materials)} file(s) and generated study guide"
            ),
        }

    return research


# ---------------------------------------------------------------------------
# compiler: render PDF → create folder → upload
# ---------------------------------------------------------------------------

def study_folder_name(topic: str, day: datetime) -> str:
    return f"StudyBuddy - {topic} - {day.strftime('%Y-%m-%d')}"


def study_guide_file_name(topic: str) -> str:
    return f"{topic} - Study Guide.pdf"


def make_compiler_node(collaborators: Collaborators, clock: Clock = utcnow) -> Node:
    @stage("compiler", "Compiler Agent")
    async def compiler(state: WorkflowState) -> Patch:
        simplified = state.get("simplified_content")
        if not simplified:
            raise MissingStageInputError("No simplified content available to compile")
        store = collaborators.guide_store
        if store is None:
            raise CollaboratorNotConfiguredError("study guide store")

        topic = state["topic"]
        pdf   = await collaborators.pdf_renderer.render(simplified, topic)
        logger.info("Compiler Agent | generated PDF bytes=%d", len(pdf))

        folder = await store.create_folder(study_folder_name(topic, clock()))
        upload = await store.upload(pdf, study_guide_file_name(topic), PDF_MIME_TYPE, folder.folder_id)
        logger.info("Compiler Agent | uploaded file_id=%s folder_id=%s", upload.file_id, folder.folder_id)

        return {
            "pdf_bytes":        pdf,
            "drive_file_id":    upload.file_id,
            "drive_file_url":   upload.file_url,
            "drive_folder_id":  folder.folder_id,
            "drive_folder_url": folder.folder_url,
        }

    return compiler


# ---------------------------------------------------------------------------
# scheduler: model schedule → calendar events
# ---------------------------------------------------------------------------

def make_scheduler_node(
    assistant:     StudyAssistant,
    collaborators: Collaborators,
    clock:         Clock = utcnow,
) -> Node:
    @stage("scheduler", "Scheduler Agent")
    async def scheduler(state: WorkflowState) -> Patch:
        simplified = state.get("simplified_content")
        if not simplified:
            raise MissingStageInputError("No simplified content available to schedule")
        calendar = collaborators.calendar
        if calendar is None:
            raise CollaboratorNotConfiguredError("calendar client")

        now      = clock()
        sessions = await assistant.generate_study_schedule(
            state["topic"],
            state["duration_days"],
            state["difficulty"],
            study_guide=simplified,
            today=now.date(),
        )
        events = build_calendar_events(sessions, state.get("drive_folder_url"), now)

        created: list[CalendarEvent] = []
        for event in events:
            try:
                event_id = await calendar.create_event(event)
            except Exception as exc:
                logger.error("Scheduler Agent | skipping session title=%r error=%s", event.title, exc)
                continue
            created.append(replace(event, event_id=event_id))

        logger.info("Scheduler Agent | created %d/%d calendar events", len(created), len(events))
        return {"calendar_events": created}

    return scheduler


# ---------------------------------------------------------------------------
# tutor: one chat turn
# ---------------------------------------------------------------------------

def make_tutor_node(
    assistant:     StudyAssistant,
    collaborators: Collaborators,
    history_limit: int = 10,
) -> Node:
    @stage("tutor", "Tutor Agent")
    async def tutor(state: WorkflowState) -> Patch:
        user_message = state.get("user_message")
        if not user_message:
            raise MissingStageInputError("No user message provided")
        store = collaborators.chat_history
        if store is None:
            raise CollaboratorNotConfiguredError("chat history store")

        study_plan_id = state["study_plan_id"]
        history = await store.recent(study_plan_id, history_limit)

        context = _study_context(state)
        if not context:
            logger.warning("Tutor Agent | no study material context study_plan_id=%s", study_plan_id)

        reply = await assistant.tutor_chat(user_message, context, history)
        logger.info("Tutor Agent | generated response chars=%d", len(reply))

        question = ChatMessage(role="user", content=user_message)
        answer   = ChatMessage(role="assistant", content=reply)
        await store.append(study_plan_id, question)
        await store.append(study_plan_id, answer)

        return {
            "assistant_response": reply,
            "chat_history":       [*history, question, answer],
        }

    return tutor


# ---------------------------------------------------------------------------
# quiz
# ---------------------------------------------------------------------------

def make_quiz_node(assistant: StudyAssistant, question_count: int = 5) -> Node:
    @stage("quiz", "Quiz Generator")
    async def quiz(state: WorkflowState) -> Patch:
        context = _study_context(state)
        if not context:
            raise MissingStageInputError("No study material available to generate quiz")

        questions = await assistant.generate_quiz(context, question_count)
        return {"quiz_questions": questions}

    return quiz
