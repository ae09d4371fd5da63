"""
Collaborator Interfaces — Services the Workflow Calls Out To

The pipeline core owns no cloud clients. Drive storage, calendar access and
chat-history persistence are injected as implementations of these ABCs
(the API layer builds them with the user's OAuth credentials).

  StudyGuideStore   folder creation + file upload (Google Drive)
  CalendarClient    one event per call (Google Calendar)
  ChatHistoryStore  tutor conversation persistence
  PdfRenderer       markdown study guide → PDF bytes (see processing.pdf)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from studybuddy.processing.pdf import MarkdownPdfRenderer, PdfRenderer
from studybuddy.schemas.study import CalendarEvent, ChatMessage

PDF_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class DriveFolder:
    folder_id:  str
    folder_url: str


@dataclass(frozen=True)
class DriveFile:
    file_id:   str
    file_url:  str
    file_name: str


class StudyGuideStore(ABC):
    @abstractmethod
    async def create_folder(self, name: str) -> DriveFolder:
        ...

    @abstractmethod
    async def upload(
        self,
        data:      bytes,
        file_name: str,
        mime_type: str,
        folder_id: str | None = None,
    ) -> DriveFile:
        ...


class CalendarClient(ABC):
    @abstractmethod
    async def create_event(self, event: CalendarEvent) -> str:
        """Create the event and return its provider id."""


class ChatHistoryStore(ABC):
    @abstractmethod
    async def recent(self, study_plan_id: str, limit: int) -> list[ChatMessage]:
        """Up to `limit` most recent messages, oldest first."""

    @abstractmethod
    async def append(self, study_plan_id: str, message: ChatMessage) -> None:
        ...


@dataclass
class Collaborators:
    """
    Everything a workflow run needs besides the model.

    Stores default to None so a tutor-only deployment need not provide drive
    or calendar access; a stage that needs a missing collaborator fails with
    a recorded error.
    """
    guide_store:  StudyGuideStore | None  = None
    calendar:     CalendarClient | None   = None
    chat_history: ChatHistoryStore | None = None
    pdf_renderer: PdfRenderer             = field(default_factory=MarkdownPdfRenderer)


__all__ = [
    "CalendarClient",
    "ChatHistoryStore",
    "Collaborators",
    "DriveFile",
    "DriveFolder",
    "PDF_MIME_TYPE",
    "PdfRenderer",
    "StudyGuideStore",
]
