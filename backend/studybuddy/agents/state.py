"""
Workflow State Definition

WorkflowState is the single record threaded through every LangGraph workflow
(study plan, tutor chat, quiz). Nodes never mutate it: each returns a patch
that the graph merges into the next state value.

Field ownership:
  - Inputs are set once by initial_state() and never written by a node
  - Each output field belongs to exactly one stage (STAGE_OUTPUTS)
  - current_step / errors are control fields any stage may write;
    errors is append-only (operator.add reducer)
"""

import operator
import re
from typing import Annotated, Any, Literal, TypedDict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from studybuddy.processing.extractor import MaterialFile
from studybuddy.schemas.study import CalendarEvent, ChatMessage, QuizQuestion

Difficulty = Literal["beginner", "intermediate", "advanced"]

DEFAULT_DURATION_DAYS = 7
MAX_DURATION_DAYS     = 365


class WorkflowState(TypedDict, total=False):
    # === Inputs (set once) ===
    user_id:       str
    study_plan_id: str
    materials:     list[MaterialFile]
    topic:         str
    difficulty:    Difficulty
    duration_days: int
    user_message:  str | None

    # === research ===
    extracted_text:     str | None
    simplified_content: str | None
    research_summary:   str | None

    # === compiler ===
    pdf_bytes:        bytes | None
    drive_file_id:    str | None
    drive_file_url:   str | None
    drive_folder_id:  str | None
    drive_folder_url: str | None

    # === scheduler ===
    calendar_events: list[CalendarEvent]

    # === tutor / quiz ===
    assistant_response: str | None
    chat_history:       list[ChatMessage]
    quiz_questions:     list[QuizQuestion]

    # === Control ===
    current_step: str | None
    errors:       Annotated[list[str], operator.add]   # append-only


CONTROL_FIELDS: frozenset[str] = frozenset({"current_step", "errors"})

STAGE_OUTPUTS: dict[str, frozenset[str]] = {
    "research":  frozenset({"extracted_text", "simplified_content", "research_summary"}),
    "compiler":  frozenset({
        "pdf_bytes", "drive_file_id", "drive_file_url", "drive_folder_id", "drive_folder_url",
    }),
    "scheduler": frozenset({"calendar_events"}),
    "tutor":     frozenset({"assistant_response", "chat_history"}),
    "quiz":      frozenset({"quiz_questions"}),
}


# ---------------------------------------------------------------------------
# Caller input
# ---------------------------------------------------------------------------

_DURATION_RE = re.compile(r"(?<![\d.\-])(\d+)\s*(day|days|week|weeks|month|months)\b", re.IGNORECASE)
_UNIT_DAYS   = {"day": 1, "week": 7, "month": 30}


def parse_duration(value: Any) -> int:
    """
    Normalise a study duration to days.

    14 → 14, "14" → 14, "2 weeks" → 14, "1 month" → 30.
    Negative numbers, fractions and text without a whole count of
    days, weeks or months raise ValueError.
    """
    if isinstance(value, bool):
        raise ValueError("duration must be a number of days or a duration string")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"duration must be a whole number of days, got {value}")
        value = int(value)
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"duration must not be negative, got {value}")
        return value

    text = str(value).strip()
    if re.fullmatch(r"\d+", text):
        return int(text)

    match = _DURATION_RE.search(text)
    if match is None:
        raise ValueError(f"unrecognised duration: {text!r}")
    unit = match.group(2).lower().rstrip("s")
    return int(match.group(1)) * _UNIT_DAYS[unit]


class WorkflowSeed(BaseModel):
    """Validated input for one workflow run."""
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id:       str
    study_plan_id: str
    topic:         str              = Field(..., min_length=3, max_length=255)
    difficulty:    Difficulty       = "beginner"
    duration_days: int              = Field(DEFAULT_DURATION_DAYS, ge=1, le=MAX_DURATION_DAYS)
    materials:     list[MaterialFile] = Field(default_factory=list)
    user_message:  str | None       = None

    # Study context carried over from an earlier study-plan run (tutor / quiz)
    extracted_text:     str | None = None
    simplified_content: str | None = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lower_difficulty(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("duration_days", mode="before")
    @classmethod
    def _parse_duration(cls, v: Any) -> int:
        return parse_duration(v)


def initial_state(seed: WorkflowSeed) -> WorkflowState:
    """Fresh state for a run: inputs from the seed, no outputs, empty error list."""
    return WorkflowState(
        user_id=seed.user_id,
        study_plan_id=seed.study_plan_id,
        materials=list(seed.materials),
        topic=seed.topic,
        difficulty=seed.difficulty,
        duration_days=seed.duration_days,
        user_message=seed.user_message,
        extracted_text=seed.extracted_text,
        simplified_content=seed.simplified_content,
        current_step=None,
        errors=[],
    )


def workflow_succeeded(state: WorkflowState) -> bool:
    return not state.get("errors")
