"""
Integration Tests — LangGraph Workflows End to End
═══════════════════════════════════════════════════
These tests run the compiled LangGraph graphs with:
  - Real TextExtractor over TXT / DOCX / PDF files written to tmp_path
  - Real chunking, prompt construction, JSON parsing and schema validation
  - Real ModelDriver retry loop (zero backoff)

What is mocked vs real
──────────────────────
  ✅ Real: graph wiring, state merging (errors reducer), node contracts,
           extraction, scheduling arithmetic
  🔲 Mock: the model            (FakeGenerator scripted by prompt family)
  🔲 Mock: Google Drive         (InMemoryGuideStore)
  🔲 Mock: Google Calendar      (RecordingCalendar)
  🔲 Mock: chat history store   (InMemoryChatHistory)
  🔲 Mock: PDF renderer         (StubPdfRenderer) except where noted

How to run
──────────
  pytest -m integration backend/tests/integration/test_study_plan_workflow.py -v
"""

from __future__ import annotations

import pytest

from studybuddy.agents import (
    Collaborators,
    WorkflowSeed,
    execute_chat_workflow,
    execute_quiz_workflow,
    execute_study_plan_workflow,
    initial_state,
    workflow_succeeded,
)
from studybuddy.core.errors import ModelProviderError
from studybuddy.processing.pdf import MarkdownPdfRenderer


def _seed(**overrides) -> WorkflowSeed:
    fields = {
        "user_id":       "user-1",
        "study_plan_id": "plan-1",
        "topic":         "Graph Theory",
        "difficulty":    "Beginner",
        "duration_days": "1 week",
    }
    fields.update(overrides)
    return WorkflowSeed(**fields)


# ─────────────────────────────────────────────────────────────────────────────
# Study plan: research → compiler → scheduler
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.integration
class TestStudyPlanWorkflow:

    async def test_happy_path(
        self, study_generator, make_deps, guide_store, calendar,
        sample_txt_file, sample_docx_file, sample_pdf_file,
    ):
        deps   = make_deps(study_generator)
        result = await execute_study_plan_workflow(
            _seed(materials=[sample_pdf_file, sample_docx_file, sample_txt_file]), deps,
        )

        assert workflow_succeeded(result)
        assert result.get("errors") == []
        assert result.get("current_step") == "scheduler_complete"

        extracted = result.get("extracted_text") or ""
        assert extracted.index("slides.pdf") < extracted.index("lecture.docx") < extracted.index("notes.txt")
        assert result.get("simplified_content", "").startswith("# Graph Theory - Study Guide")
        assert result.get("research_summary") == "Successfully processed 3 file(s) and generated study guide"

        assert result.get("drive_file_url") == "https://drive.example.com/files/file-1"
        assert result.get("drive_folder_url") == "https://drive.example.com/folders/folder-1"
        assert guide_store.folders == ["StudyBuddy - Graph Theory - 2025-03-10"]

        events = result.get("calendar_events") or []
        assert len(events) == 3
        assert len(calendar.events) == 3
        assert all(
            e.description.endswith("Study Materials: https://drive.example.com/folders/folder-1")
            for e in events
        )

        # prompt order: one simplification, then one schedule
        assert len(study_generator.prompts) == 2
        assert "expert educational content simplifier" in study_generator.prompts[0]
        assert "expert study planner" in study_generator.prompts[1]
        assert "Duration: 7 days" in study_generator.prompts[1]

    async def test_errors_accumulate_across_stages(self, study_generator, make_deps, missing_file):
        result = await execute_study_plan_workflow(_seed(materials=[missing_file]), make_deps(study_generator))

        assert not workflow_succeeded(result)
        assert result.get("current_step") == "scheduler_failed"
        errors = result.get("errors") or []
        assert len(errors) == 3
        assert errors[0].startswith("Research Agent failed:")
        assert errors[1] == "Compiler Agent failed: No simplified content available to compile"
        assert errors[2] == "Scheduler Agent failed: No simplified content available to schedule"
        assert study_generator.prompts == []

    @pytest.mark.parametrize("as_dict", [False, True])
    async def test_stale_guide_from_caller_is_not_reused(
        self, study_generator, make_deps, guide_store, calendar, pdf_renderer, missing_file, as_dict,
    ):
        seed = _seed(
            materials=[missing_file],
            extracted_text="Old notes.",
            simplified_content="# Old guide",
        )
        if as_dict:
            seed = {**initial_state(seed), "research_summary": "old", "calendar_events": []}

        result = await execute_study_plan_workflow(seed, make_deps(study_generator))

        errors = result.get("errors") or []
        assert len(errors) == 3
        assert errors[0].startswith("Research Agent failed:")
        assert result.get("simplified_content") is None
        assert result.get("research_summary") is None
        assert guide_store.uploads == []
        assert pdf_renderer.calls == []
        assert calendar.events == []

    async def test_compiler_failure_does_not_block_scheduler(
        self, study_generator, make_deps, calendar, pdf_renderer, sample_txt_file,
    ):
        deps   = make_deps(study_generator, collaborators=Collaborators(calendar=calendar, pdf_renderer=pdf_renderer))
        result = await execute_study_plan_workflow(_seed(materials=[sample_txt_file]), deps)

        assert result.get("errors") == [
            "Compiler Agent failed: No study guide store configured for this workflow",
        ]
        assert result.get("current_step") == "scheduler_complete"
        events = result.get("calendar_events") or []
        assert len(events) == 3
        assert events[0].description.endswith("Study Materials: Processing...")

    async def test_transient_model_errors_are_retried(self, make_generator, make_deps, responder, sample_txt_file):
        failures = [ModelProviderError("503 overloaded", retryable=True, status=503)]

        def flaky(prompt: str):
            if failures:
                return failures.pop()
            return responder(prompt)

        generator = make_generator(respond=flaky)
        result    = await execute_study_plan_workflow(_seed(materials=[sample_txt_file]), make_deps(generator))

        assert workflow_succeeded(result)
        assert len(generator.prompts) == 3

    async def test_real_pdf_renderer(
        self, study_generator, make_deps, guide_store, calendar, chat_history, sample_txt_file,
    ):
        collaborators = Collaborators(
            guide_store=guide_store,
            calendar=calendar,
            chat_history=chat_history,
            pdf_renderer=MarkdownPdfRenderer(),
        )
        result = await execute_study_plan_workflow(
            _seed(materials=[sample_txt_file]), make_deps(study_generator, collaborators=collaborators),
        )

        assert workflow_succeeded(result)
        assert (result.get("pdf_bytes") or b"").startswith(b"%PDF")
        assert guide_store.uploads[0]["data"] == result.get("pdf_bytes")


# ─────────────────────────────────────────────────────────────────────────────
# Chat and quiz
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.integration
class TestChatAndQuizWorkflows:

    async def test_chat_turns_accumulate(self, study_generator, make_deps, chat_history):
        deps = make_deps(study_generator)
        seed = _seed(simplified_content="# Graph Theory - Study Guide\nTrees are acyclic.")

        first  = await execute_chat_workflow(seed.model_copy(update={"user_message": "What is a tree?"}), deps)
        second = await execute_chat_workflow(seed.model_copy(update={"user_message": "And a forest?"}), deps)

        assert workflow_succeeded(first) and workflow_succeeded(second)
        assert second.get("current_step") == "tutor_complete"
        assert second.get("assistant_response") == first.get("assistant_response")
        assert [m.content for m in second.get("chat_history") or []][::2] == ["What is a tree?", "And a forest?"]
        assert len(chat_history.messages["plan-1"]) == 4
        assert "Student: What is a tree?" in study_generator.prompts[1]

    async def test_chat_without_message_fails(self, study_generator, make_deps):
        result = await execute_chat_workflow(_seed(), make_deps(study_generator))
        assert result.get("errors") == ["Tutor Agent failed: No user message provided"]
        assert result.get("current_step") == "tutor_failed"

    async def test_quiz(self, study_generator, make_deps):
        result = await execute_quiz_workflow(
            _seed(simplified_content="# Graph Theory - Study Guide\nEdges join vertices."),
            make_deps(study_generator, question_count=2),
        )

        assert workflow_succeeded(result)
        questions = result.get("quiz_questions") or []
        assert [q.correct_answer for q in questions] == [0, 1]
        assert "Edges join vertices." in study_generator.prompts[0]

    async def test_quiz_accepts_plain_state_dict(self, study_generator, make_deps):
        result = await execute_quiz_workflow(
            {"study_plan_id": "plan-9", "extracted_text": "Raw notes on graphs."},
            make_deps(study_generator),
        )

        assert result.get("current_step") == "quiz_complete"
        assert result.get("errors") == []
