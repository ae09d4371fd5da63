"""
Study Artefacts — Model Output Schemas and Workflow Records

Model-generated payloads (schedule sessions, quiz questions) arrive as JSON
using camelCase keys. They are validated with Pydantic so a malformed item
fails loudly instead of flowing into the calendar or the quiz UI.

Records produced by the workflow itself (calendar events, chat turns) are
plain dataclasses.

Design decisions:
  - camelCase aliases match the JSON shape requested in the prompts; models
    also accept snake_case field names.
  - time_of_day is kept as free text: unknown values schedule at the default
    hour rather than rejecting the whole session.
  - All timestamps are timezone-aware UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ChatRole = Literal["user", "assistant"]


# ---------------------------------------------------------------------------
# Model output: schedule
# ---------------------------------------------------------------------------

class StudySession(BaseModel):
    """One session proposed by the scheduling prompt."""
    model_config = ConfigDict(populate_by_name=True)

    title:            str
    description:      str = ""
    duration_minutes: int = Field(60, alias="durationMinutes", ge=1, le=24 * 60)
    day_offset:       int = Field(0, alias="dayOffset", ge=0)
    time_of_day:      str = Field("morning", alias="timeOfDay")

    @field_validator("time_of_day")
    @classmethod
    def _normalise_time_of_day(cls, v: str) -> str:
        return v.strip().lower()


# ---------------------------------------------------------------------------
# Model output: quiz
# ---------------------------------------------------------------------------

class QuizQuestion(BaseModel):
    """Multiple-choice question; correct_answer indexes into options."""
    model_config = ConfigDict(populate_by_name=True)

    question:       str
    options:        list[str] = Field(..., min_length=2)
    correct_answer: int       = Field(..., alias="correctAnswer", ge=0)
    explanation:    str       = ""

    @model_validator(mode="after")
    def _answer_in_range(self) -> "QuizQuestion":
        if self.correct_answer >= len(self.options):
            raise ValueError(
                f"correctAnswer {self.correct_answer} is out of range for "
                f"{len(self.options)} options"
            )
        return self


# ---------------------------------------------------------------------------
# Workflow records
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CalendarEvent:
    title:       str
    description: str
    start_time:  datetime
    end_time:    datetime
    event_id:    str | None = None


@dataclass
class ChatMessage:
    role:      ChatRole
    content:   str
    timestamp: datetime = field(default_factory=_utcnow)
