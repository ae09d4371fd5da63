"""Convert model-proposed study sessions into concrete calendar events."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Sequence

from studybuddy.schemas.study import CalendarEvent, StudySession

# Session start hour per time-of-day slot (UTC)
SESSION_START_HOURS: dict[str, int] = {
    "morning":   9,
    "afternoon": 14,
    "evening":   19,
}
DEFAULT_START_HOUR = 10

MATERIALS_PENDING = "Processing..."


def session_start(day_offset: int, time_of_day: str, now: datetime) -> datetime:
    """Start of a session `day_offset` days after `now`, at the slot's hour (UTC)."""
    day  = (now.astimezone(timezone.utc) + timedelta(days=day_offset)).date()
    hour = SESSION_START_HOURS.get(time_of_day.lower(), DEFAULT_START_HOUR)
    return datetime.combine(day, time(hour=hour), tzinfo=timezone.utc)


def with_materials_link(description: str, folder_url: str | None) -> str:
    return f"{description}\n\nStudy Materials: {folder_url or MATERIALS_PENDING}"


def build_calendar_events(
    sessions:   Sequence[StudySession],
    folder_url: str | None,
    now:        datetime | None = None,
) -> list[CalendarEvent]:
    """One CalendarEvent per session, descriptions linked to the study materials."""
    now = now or datetime.now(timezone.utc)
    events: list[CalendarEvent] = []
    for session in sessions:
        start = session_start(session.day_offset, session.time_of_day, now)
        events.append(CalendarEvent(
            title=session.title,
            description=with_materials_link(session.description, folder_url),
            start_time=start,
            end_time=start + timedelta(minutes=session.duration_minutes),
        ))
    return events
