"""
Study Assistant — Use-Case Layer over the Model Driver

    simplify_content         one simplification call (optionally one chunk of many)
    simplify_document        chunking decision → sequential per-chunk calls → merge
    generate_study_schedule  JSON sessions → validated StudySession list
    tutor_chat               tutor reply for one student question
    generate_quiz            JSON questions → validated QuizQuestion list

The assistant never talks to a provider SDK directly; everything goes through
ModelDriver.call_model and therefore through the retry policy.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Sequence

from pydantic import ValidationError

from studybuddy.core.config import Settings, get_settings
from studybuddy.core.errors import InvalidModelOutputError
from studybuddy.llm import prompts
from studybuddy.llm.driver import ModelDriver, process_sequential
from studybuddy.llm.parsing import extract_json_array
from studybuddy.processing.chunking import ChunkConfig, chunk_text, needs_chunking
from studybuddy.schemas.study import ChatMessage, QuizQuestion, StudySession

logger = logging.getLogger(__name__)


class StudyAssistant:
    """
    Prompt construction plus response validation for every model use case.

    Usage::

        assistant = StudyAssistant(ModelDriver(generator))
        guide     = await assistant.simplify_document(text, "Linear Algebra", "beginner")
    """

    def __init__(
        self,
        driver:       ModelDriver,
        chunk_config: ChunkConfig | None = None,
        settings:     Settings | None    = None,
    ) -> None:
        settings = settings or get_settings()
        self._driver         = driver
        self._chunk_config   = chunk_config or ChunkConfig.from_settings(settings)
        self._history_limit  = settings.tutor_history_limit
        self._question_count = settings.quiz_question_count

    # -----------------------------------------------------------------------
    # Simplification
    # -----------------------------------------------------------------------

    async def simplify_content(
        self,
        content:      str,
        topic:        str,
        difficulty:   str,
        chunk_index:  int | None = None,
        total_chunks: int | None = None,
    ) -> str:
        prompt = prompts.build_simplify_prompt(content, topic, difficulty, chunk_index, total_chunks)
        return await self._driver.call_model(prompt)

    async def simplify_document(self, text: str, topic: str, difficulty: str) -> str:
        """
        Simplify a whole document, splitting it first when it exceeds the token budget.

        Raises:
            ChunkProcessingError: a chunk failed; no partial guide is returned.
            ModelCallFailedError: the single-shot call failed.
        """
        config = self._chunk_config
        if not needs_chunking(text, config.max_tokens, config.estimated_chars_per_token):
            logger.info("StudyAssistant | simplifying without chunking chars=%d", len(text))
            return await self.simplify_content(text, topic, difficulty)

        chunks = chunk_text(text, config)
        logger.info("StudyAssistant | simplifying in %d chunks chars=%d", len(chunks), len(text))

        async def _simplify_chunk(content: str, index: int, total: int) -> str:
            return await self.simplify_content(content, topic, difficulty, index, total)

        return await process_sequential(chunks, _simplify_chunk)

    # -----------------------------------------------------------------------
    # Scheduling
    # -----------------------------------------------------------------------

    async def generate_study_schedule(
        self,
        topic:         str,
        duration_days: int,
        difficulty:    str,
        study_guide:   str | None = None,
        today:         date | None = None,
    ) -> list[StudySession]:
        """
        Raises:
            InvalidModelOutputError: the response held no valid session array.
        """
        today   = today or datetime.now(timezone.utc).date()
        outline = prompts.guide_outline(study_guide) if study_guide else []
        prompt  = prompts.build_schedule_prompt(topic, duration_days, difficulty, today, outline)

        response = await self._driver.call_model(prompt)
        items    = extract_json_array(response)
        try:
            sessions = [StudySession.model_validate(item) for item in items]
        except ValidationError as exc:
            raise InvalidModelOutputError(f"Invalid study session in schedule: {exc}") from exc

        logger.info("StudyAssistant | generated %d study session(s)", len(sessions))
        return sessions

    # -----------------------------------------------------------------------
    # Tutor
    # -----------------------------------------------------------------------

    async def tutor_chat(
        self,
        user_message: str,
        context:      str,
        history:      Sequence[ChatMessage] = (),
    ) -> str:
        turns  = [(msg.role, msg.content) for msg in history]
        prompt = prompts.build_tutor_prompt(user_message, context, turns, self._history_limit)
        return await self._driver.call_model(prompt)

    async def generate_quiz(self, context: str, question_count: int | None = None) -> list[QuizQuestion]:
        """
        Raises:
            InvalidModelOutputError: the response held no valid question array.
        """
        count    = question_count or self._question_count
        response = await self._driver.call_model(prompts.build_quiz_prompt(context, count))
        items    = extract_json_array(response)
        try:
            questions = [QuizQuestion.model_validate(item) for item in items]
        except ValidationError as exc:
            raise InvalidModelOutputError(f"Invalid quiz question: {exc}") from exc

        logger.info("StudyAssistant | generated %d quiz question(s)", len(questions))
        return questions
