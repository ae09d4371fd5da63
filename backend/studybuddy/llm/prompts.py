"""
Prompt templates for the study assistant.

  simplify   course material → markdown study guide (optionally one chunk of many)
  schedule   topic + duration → JSON array of study sessions
  tutor      question + study context + recent turns → tutor reply
  quiz       study context → JSON array of multiple-choice questions

Templates are plain str.format strings; literal JSON braces are doubled.
"""

from __future__ import annotations

from datetime import date
from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

TUTOR_CONTEXT_CHARS: Final[int] = 3_000
QUIZ_CONTEXT_CHARS:  Final[int] = 4_000
TUTOR_HISTORY_TURNS: Final[int] = 10
MAX_OUTLINE_HEADINGS: Final[int] = 30

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_SIMPLIFY_TEMPLATE: Final[str] = """\
You are an expert educational content simplifier and study guide creator.

Task: Analyze the following course material and create a comprehensive, easy-to-understand study guide.

Topic: {topic}
Difficulty Level: {difficulty}
{chunk_context}
Original Content:
{content}

Instructions:
1. Summarize key concepts in clear, simple language appropriate for {difficulty} level students
2. Break down complex topics into digestible sections with clear explanations
3. Add practical examples and analogies to illustrate difficult concepts
4. Highlight important terms and definitions
5. Include any formulas, code snippets, or technical details (preserve formatting)
6. Format output in clean markdown with proper headers, bullet points, and emphasis

Output Format:
# {topic} - Study Guide

## Overview
[Brief introduction to the topic]

## Key Concepts
[Main ideas broken down into subsections]

## Important Terms
[Definitions of crucial terminology]

## Examples and Applications
[Practical examples to reinforce understanding]

## Summary
[Quick recap of main points]

Generate the study guide now:"""

_SCHEDULE_TEMPLATE: Final[str] = """\
You are an expert study planner and educational consultant.

Task: Create an optimal study schedule for the following:

Topic: {topic}
Duration: {duration_days} days
Difficulty Level: {difficulty}
Current Date: {today}
{outline}
Instructions:
1. Suggest an appropriate number of study sessions (typically 3-5 per week)
2. Each session should be 45-90 minutes (adjust based on difficulty)
3. Include breaks and review sessions
4. Space sessions optimally using spaced repetition principles
5. Consider best times of day for learning (suggest morning or evening)

Return ONLY a valid JSON array of session objects with this exact structure:
[
  {{
    "title": "Study Session: [Topic] - [Session Name]",
    "description": "Focus areas: [what to cover]",
    "durationMinutes": 60,
    "dayOffset": 0,
    "timeOfDay": "morning"
  }}
]

Important:
- dayOffset is days from today (0 = today, 1 = tomorrow, etc.)
- timeOfDay must be "morning", "afternoon", or "evening"
- Include 3-5 sessions spread across the {duration_days} days
- Return ONLY the JSON array, no additional text

Generate the schedule now:"""

_TUTOR_TEMPLATE: Final[str] = """\
You are StudyBuddy, a friendly, knowledgeable, and encouraging AI tutor.

Study Material Context:
{context}

Previous Conversation:
{history}

Student Question: {user_message}

Instructions:
- Answer clearly and concisely using the study material context when relevant
- Use examples and analogies to explain complex concepts
- Encourage critical thinking by asking follow-up questions when appropriate
- Be supportive and motivating
- If you don't know something, admit it honestly
- Keep responses focused and not too long (2-3 paragraphs max unless more detail is needed)

Respond naturally as a helpful tutor:"""

_QUIZ_TEMPLATE: Final[str] = """\
You are an expert quiz creator for educational content.

Study Material:
{context}

Task: Create {question_count} multiple-choice questions to test understanding of this material.

Requirements:
- Questions should test comprehension, not just memorization
- Include a mix of difficulty levels
- Each question should have 4 options
- Provide clear explanations for correct answers

Return ONLY a valid JSON array with this exact structure:
[
  {{
    "question": "Question text here?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": 0,
    "explanation": "Why this answer is correct"
  }}
]

Important:
- correctAnswer is the index (0-3) of the correct option
- Return ONLY the JSON array, no additional text

Generate the quiz now:"""


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def chunk_position_note(chunk_index: int, total_chunks: int) -> str:
    """Positional hint telling the model which part of a split document it sees."""
    sentences = [f"Note: This is part {chunk_index + 1} of {total_chunks} of the content."]
    if chunk_index > 0:
        sentences.append("Previous parts have been processed. Maintain consistency.")
    if chunk_index < total_chunks - 1:
        sentences.append("More content follows in subsequent parts.")
    else:
        sentences.append("This is the final part.")
    return " ".join(sentences)


def build_simplify_prompt(
    content:      str,
    topic:        str,
    difficulty:   str,
    chunk_index:  int | None = None,
    total_chunks: int | None = None,
) -> str:
    chunk_context = ""
    if chunk_index is not None and total_chunks is not None:
        chunk_context = "\n" + chunk_position_note(chunk_index, total_chunks) + "\n"
    return _SIMPLIFY_TEMPLATE.format(
        topic=topic,
        difficulty=difficulty,
        chunk_context=chunk_context,
        content=content,
    )


def guide_outline(markdown: str, limit: int = MAX_OUTLINE_HEADINGS) -> list[str]:
    """Markdown headings of a study guide, in document order, without the leading #'s."""
    headings: list[str] = []
    for line in markdown.splitlines():
        stripped = line.strip()
        if stripped.startswith("#"):
            title = stripped.lstrip("#").strip()
            if title:
                headings.append(title)
                if len(headings) >= limit:
                    break
    return headings


def build_schedule_prompt(
    topic:         str,
    duration_days: int,
    difficulty:    str,
    today:         date,
    outline:       Sequence[str] = (),
) -> str:
    outline_block = ""
    if outline:
        outline_block = (
            "\nStudy Guide Outline (cover these sections across the sessions):\n"
            + "\n".join(f"- {heading}" for heading in outline)
            + "\n"
        )
    return _SCHEDULE_TEMPLATE.format(
        topic=topic,
        duration_days=duration_days,
        difficulty=difficulty,
        today=today.isoformat(),
        outline=outline_block,
    )


def truncate_context(context: str, limit: int) -> str:
    """`context` cut to `limit` characters, marked with " ..." when cut."""
    if len(context) <= limit:
        return context
    return context[:limit] + " ..."


def format_history(history: Sequence[tuple[str, str]], limit: int = TUTOR_HISTORY_TURNS) -> str:
    """Render (role, content) pairs as a Student/Tutor transcript of the last `limit` turns."""
    recent = list(history)[-limit:] if limit > 0 else []
    lines = [
        f"{'Student' if role == 'user' else 'Tutor'}: {content}"
        for role, content in recent
    ]
    return "\n".join(lines)


def build_tutor_prompt(
    user_message:  str,
    context:       str,
    history:       Sequence[tuple[str, str]] = (),
    history_limit: int = TUTOR_HISTORY_TURNS,
) -> str:
    return _TUTOR_TEMPLATE.format(
        context=truncate_context(context, TUTOR_CONTEXT_CHARS),
        history=format_history(history, history_limit) or "No previous conversation",
        user_message=user_message,
    )


def build_quiz_prompt(context: str, question_count: int = 5) -> str:
    # Quiz context is cut without an ellipsis marker
    return _QUIZ_TEMPLATE.format(
        context=context[:QUIZ_CONTEXT_CHARS],
        question_count=question_count,
    )
