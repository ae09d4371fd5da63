"""
Root conftest.py — Shared fixtures for ALL tests (unit + integration)

Fixture hierarchy:
  session-scoped  : test_settings
  function-scoped : sample material files (tmp_path), fake generator,
                    in-memory collaborators, assistant / dependency factories

Environment strategy:
  - No test talks to a real model: FakeGenerator scripts every completion.
  - Drive, calendar and chat history are in-memory fakes implementing the
    collaborator ABCs.
  - Sample PDF / DOCX files are generated on the fly with PyMuPDF and
    python-docx, so extraction runs against real file formats.

How to run:
  pytest                          # all tests
  pytest -m unit                  # unit tests only (fast, no I/O)
  pytest -m integration           # full workflow runs
  pytest backend/tests/unit/test_chunking.py
"""

from __future__ import annotations

import json
import os
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable

import pytest

# ─────────────────────────────────────────────────────────────────────────────
# Environment BEFORE any studybuddy imports so cached settings read test config
# ─────────────────────────────────────────────────────────────────────────────

os.environ.setdefault("LLM_PROVIDER",   "gemini")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")
os.environ.setdefault("APP_ENV",        "development")

from studybuddy.agents.collaborators import (  # noqa: E402
    CalendarClient,
    ChatHistoryStore,
    Collaborators,
    DriveFile,
    DriveFolder,
    StudyGuideStore,
)
from studybuddy.agents.graph import WorkflowDependencies  # noqa: E402
from studybuddy.core.config import Settings  # noqa: E402
from studybuddy.llm.assistant import StudyAssistant  # noqa: E402
from studybuddy.llm.base import TextGenerator  # noqa: E402
from studybuddy.llm.driver import ModelDriver  # noqa: E402
from studybuddy.processing.chunking import ChunkConfig  # noqa: E402
from studybuddy.processing.extractor import (  # noqa: E402
    MIME_DOCX,
    MIME_PDF,
    MIME_TXT,
    MaterialFile,
)
from studybuddy.processing.pdf import PdfRenderer  # noqa: E402
from studybuddy.schemas.study import CalendarEvent, ChatMessage  # noqa: E402


FIXED_NOW = datetime(2025, 3, 10, 8, 30, tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        llm_provider="gemini",
        gemini_api_key="test-gemini-key",
        openai_api_key="sk-test-key",
        model_max_retries=3,
        model_retry_base_delay=1.0,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


# ─────────────────────────────────────────────────────────────────────────────
# Scripted model
# ─────────────────────────────────────────────────────────────────────────────

class FakeGenerator(TextGenerator):
    """
    TextGenerator double.

    responses : consumed in order; an exception instance is raised instead of returned
    respond   : callable(prompt) -> str | Exception, used when given
    """

    def __init__(
        self,
        responses: list | None = None,
        respond:   Callable[[str], object] | None = None,
    ) -> None:
        self._responses = list(responses or [])
        self._respond   = respond
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self._respond is not None:
            result = self._respond(prompt)
        elif self._responses:
            result = self._responses.pop(0)
        else:
            result = "generated text"
        if isinstance(result, BaseException):
            raise result
        return result  # type: ignore[return-value]


GUIDE_MARKDOWN = """\
# Graph Theory - Study Guide

## Overview
Graphs model pairwise relations between objects.

## Key Concepts
- **Vertices** and *edges*
- Paths, cycles and `trees`

## Summary
Graphs are everywhere.
"""

SCHEDULE_JSON = json.dumps([
    {
        "title": "Study Session: Graph Theory - Foundations",
        "description": "Focus areas: vertices, edges",
        "durationMinutes": 60,
        "dayOffset": 0,
        "timeOfDay": "morning",
    },
    {
        "title": "Study Session: Graph Theory - Paths",
        "description": "Focus areas: paths and cycles",
        "durationMinutes": 45,
        "dayOffset": 2,
        "timeOfDay": "evening",
    },
    {
        "title": "Study Session: Graph Theory - Review",
        "description": "Focus areas: spaced review",
        "durationMinutes": 90,
        "dayOffset": 5,
        "timeOfDay": "afternoon",
    },
], indent=2)

QUIZ_JSON = json.dumps([
    {
        "question": "What does an edge connect?",
        "options": ["Two vertices", "Two graphs", "A path", "Nothing"],
        "correctAnswer": 0,
        "explanation": "An edge joins a pair of vertices.",
    },
    {
        "question": "A connected acyclic graph is a…",
        "options": ["Cycle", "Tree", "Clique", "Multigraph"],
        "correctAnswer": 1,
        "explanation": "Trees are exactly the connected acyclic graphs.",
    },
])

TUTOR_REPLY = "Great question! A tree is a connected graph without cycles."


def study_responder(prompt: str) -> str:
    """Answer each prompt family the way a well-behaved model would."""
    if "expert study planner" in prompt:
        return "Sure! Here is the schedule:\n" + SCHEDULE_JSON + "\nGood luck!"
    if "expert quiz creator" in prompt:
        return QUIZ_JSON
    if "You are StudyBuddy" in prompt:
        return TUTOR_REPLY
    return GUIDE_MARKDOWN


@pytest.fixture
def make_generator():
    """Factory: FakeGenerator(responses=[...]) or FakeGenerator(respond=fn)."""
    return FakeGenerator


@pytest.fixture
def responder() -> Callable[[str], str]:
    """The prompt-family dispatcher behind study_generator, for wrapping in custom fakes."""
    return study_responder


@pytest.fixture
def study_generator() -> FakeGenerator:
    return FakeGenerator(respond=study_responder)


@pytest.fixture
def make_assistant(test_settings):
    """Factory: StudyAssistant over a generator with zero backoff."""
    def _build(generator: TextGenerator, chunk_config: ChunkConfig | None = None) -> StudyAssistant:
        driver = ModelDriver(generator, max_retries=3, base_delay=0.0)
        return StudyAssistant(driver, chunk_config=chunk_config, settings=test_settings)
    return _build


# ─────────────────────────────────────────────────────────────────────────────
# Collaborators
# ─────────────────────────────────────────────────────────────────────────────

class InMemoryGuideStore(StudyGuideStore):
    def __init__(self) -> None:
        self.folders: list[str] = []
        self.uploads: list[dict] = []

    async def create_folder(self, name: str) -> DriveFolder:
        self.folders.append(name)
        folder_id = f"folder-{len(self.folders)}"
        return DriveFolder(folder_id=folder_id, folder_url=f"https://drive.example.com/folders/{folder_id}")

    async def upload(self, data, file_name, mime_type, folder_id=None) -> DriveFile:
        self.uploads.append({
            "data": data, "file_name": file_name, "mime_type": mime_type, "folder_id": folder_id,
        })
        file_id = f"file-{len(self.uploads)}"
        return DriveFile(
            file_id=file_id,
            file_url=f"https://drive.example.com/files/{file_id}",
            file_name=file_name,
        )


class RecordingCalendar(CalendarClient):
    def __init__(self, fail_titles: tuple[str, ...] = ()) -> None:
        self.events: list[CalendarEvent] = []
        self._fail_titles = set(fail_titles)

    async def create_event(self, event: CalendarEvent) -> str:
        if event.title in self._fail_titles:
            raise RuntimeError("calendar quota exceeded")
        self.events.append(event)
        return f"event-{len(self.events)}"


class InMemoryChatHistory(ChatHistoryStore):
    def __init__(self) -> None:
        self.messages: dict[str, list[ChatMessage]] = defaultdict(list)

    async def recent(self, study_plan_id: str, limit: int) -> list[ChatMessage]:
        return list(self.messages[study_plan_id][-limit:])

    async def append(self, study_plan_id: str, message: ChatMessage) -> None:
        self.messages[study_plan_id].append(message)


class StubPdfRenderer(PdfRenderer):
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    async def render(self, guide: str, title: str) -> bytes:
        self.calls.append((guide, title))
        return b"%PDF-1.7 stub"


@pytest.fixture
def guide_store() -> InMemoryGuideStore:
    return InMemoryGuideStore()


@pytest.fixture
def make_calendar():
    """Factory: RecordingCalendar(fail_titles=(...))."""
    return RecordingCalendar


@pytest.fixture
def calendar() -> RecordingCalendar:
    return RecordingCalendar()


@pytest.fixture
def chat_history() -> InMemoryChatHistory:
    return InMemoryChatHistory()


@pytest.fixture
def pdf_renderer() -> StubPdfRenderer:
    return StubPdfRenderer()


@pytest.fixture
def collaborators(guide_store, calendar, chat_history, pdf_renderer) -> Collaborators:
    return Collaborators(
        guide_store=guide_store,
        calendar=calendar,
        chat_history=chat_history,
        pdf_renderer=pdf_renderer,
    )


@pytest.fixture
def make_deps(make_assistant, collaborators, fixed_now):
    """Factory: WorkflowDependencies around a generator and the shared fakes."""
    def _build(generator: TextGenerator, **overrides) -> WorkflowDependencies:
        return WorkflowDependencies(
            assistant=overrides.pop("assistant", None) or make_assistant(generator),
            collaborators=overrides.pop("collaborators", collaborators),
            clock=lambda: fixed_now,
            **overrides,
        )
    return _build


# ─────────────────────────────────────────────────────────────────────────────
# Sample material files
# ─────────────────────────────────────────────────────────────────────────────

SAMPLE_TXT = "Graphs consist of vertices and edges. A tree is a connected acyclic graph."
SAMPLE_DOCX_PARAGRAPHS = ["Breadth-first search explores level by level.", "Depth-first search backtracks."]
SAMPLE_PDF_TEXT = "Dijkstra computes shortest paths."


@pytest.fixture
def sample_txt_file(tmp_path) -> MaterialFile:
    path = tmp_path / "notes.txt"
    path.write_text(SAMPLE_TXT, encoding="utf-8")
    return MaterialFile(str(path), "notes.txt", MIME_TXT, path.stat().st_size)


@pytest.fixture
def sample_docx_file(tmp_path) -> MaterialFile:
    import docx

    path = tmp_path / "lecture.docx"
    document = docx.Document()
    for paragraph in SAMPLE_DOCX_PARAGRAPHS:
        document.add_paragraph(paragraph)
    document.save(str(path))
    return MaterialFile(str(path), "lecture.docx", MIME_DOCX, path.stat().st_size)


@pytest.fixture
def sample_pdf_file(tmp_path) -> MaterialFile:
    import fitz

    path = tmp_path / "slides.pdf"
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), SAMPLE_PDF_TEXT)
    doc.save(str(path))
    doc.close()
    return MaterialFile(str(path), "slides.pdf", MIME_PDF, path.stat().st_size)


@pytest.fixture
def blank_pdf_file(tmp_path) -> MaterialFile:
    import fitz

    path = tmp_path / "scanned.pdf"
    doc = fitz.open()
    doc.new_page()
    doc.save(str(path))
    doc.close()
    return MaterialFile(str(path), "scanned.pdf", MIME_PDF, path.stat().st_size)


@pytest.fixture
def missing_file(tmp_path) -> MaterialFile:
    return MaterialFile(str(tmp_path / "gone.txt"), "gone.txt", MIME_TXT, 0)
