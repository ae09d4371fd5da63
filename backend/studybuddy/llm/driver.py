"""
Model Driver  —  Retry/Backoff, Sequential Chunk Processing, Merge
══════════════════════════════════════════════════════════════════

  call_model(prompt)                 one logical call, up to `max_retries` attempts
  process_sequential(chunks, fn)     fn over every chunk, one at a time, in order
  merge_results(results)             "\\n\\n---\\n\\n"-joined outputs

Backoff schedule
────────────────
  After failed attempt k (1-based) with attempts left, sleep

      base_delay × 2^k        → 2 s, 4 s, 8 s … with the default 1 s base

  Only ModelProviderError(retryable=True) is retried. Non-retryable errors,
  other exception types, and the final attempt raise ModelCallFailedError
  immediately. The driver issues at most one in-flight call per request.

Chunk processing
────────────────
  Chunks are awaited strictly in chunk_index order, never in parallel: the
  chunk-position hints in the prompts assume the earlier parts were handled
  first. The first failing chunk aborts the run with ChunkProcessingError;
  partial results are discarded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Sequence

from studybuddy.core.config import Settings, get_settings
from studybuddy.core.errors import ChunkProcessingError, ModelCallFailedError, ModelProviderError
from studybuddy.llm.base import TextGenerator
from studybuddy.processing.chunking import TextChunk

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY  = 1.0   # seconds

MERGE_SEPARATOR = "\n\n---\n\n"

# (content, chunk_index, total_chunks) -> processed text
ChunkProcessor = Callable[[str, int, int], Awaitable[str]]


class ModelDriver:
    """
    Retrying front end to a TextGenerator.

    Usage::

        driver = ModelDriver(ChatModelGenerator(chat_model))
        text   = await driver.call_model(prompt)
    """

    def __init__(
        self,
        generator:   TextGenerator,
        max_retries: int   = DEFAULT_MAX_RETRIES,
        base_delay:  float = DEFAULT_BASE_DELAY,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._generator   = generator
        self._max_retries = max_retries
        self._base_delay  = base_delay

    @classmethod
    def from_settings(
        cls,
        generator: TextGenerator,
        settings:  Settings | None = None,
    ) -> "ModelDriver":
        settings = settings or get_settings()
        return cls(
            generator,
            max_retries=settings.model_max_retries,
            base_delay=settings.model_retry_base_delay,
        )

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt `attempt` (1-based)."""
        return self._base_delay * (2 ** attempt)

    async def call_model(self, prompt: str, max_retries: int | None = None) -> str:
        """
        Generate a completion, retrying transient failures with exponential backoff.

        Raises:
            ModelCallFailedError: retries exhausted, or a non-retryable failure.
        """
        retries = max_retries if max_retries is not None else self._max_retries
        if retries < 1:
            raise ValueError("max_retries must be >= 1")

        for attempt in range(1, retries + 1):
            try:
                logger.debug("ModelDriver | attempt=%d/%d prompt_chars=%d", attempt, retries, len(prompt))
                t0   = time.perf_counter()
                text = await self._generator.generate(prompt)
                logger.debug(
                    "ModelDriver | generated chars=%d latency_ms=%.0f",
                    len(text), (time.perf_counter() - t0) * 1000,
                )
                return text

            except ModelProviderError as exc:
                if not exc.retryable or attempt == retries:
                    logger.error(
                        "ModelDriver | giving up attempt=%d/%d retryable=%s error=%s",
                        attempt, retries, exc.retryable, exc,
                    )
                    raise ModelCallFailedError(attempt, exc) from exc

                delay = self.backoff_delay(attempt)
                logger.warning(
                    "ModelDriver | transient error, retrying in %.1fs attempt=%d/%d error=%s",
                    delay, attempt, retries, exc,
                )
                await asyncio.sleep(delay)

            except Exception as exc:
                logger.error("ModelDriver | unexpected generator error attempt=%d error=%s", attempt, exc)
                raise ModelCallFailedError(attempt, exc) from exc

        raise AssertionError("unreachable: retry loop always returns or raises")  # pragma: no cover


# ---------------------------------------------------------------------------
# Chunked processing
# ---------------------------------------------------------------------------

async def process_sequential(chunks: Sequence[TextChunk], per_chunk_fn: ChunkProcessor) -> str:
    """
    Run `per_chunk_fn` over every chunk in chunk_index order and merge the outputs.

    Raises:
        ChunkProcessingError: the first chunk whose processing raised.
    """
    ordered = sorted(chunks, key=lambda c: c.chunk_index)
    results: list[str] = []

    for chunk in ordered:
        logger.info("ModelDriver | processing chunk %d/%d", chunk.chunk_index + 1, chunk.total_chunks)
        try:
            results.append(await per_chunk_fn(chunk.content, chunk.chunk_index, chunk.total_chunks))
        except Exception as exc:
            logger.error(
                "ModelDriver | chunk %d/%d failed: %s",
                chunk.chunk_index + 1, chunk.total_chunks, exc,
            )
            raise ChunkProcessingError(chunk.chunk_index, chunk.total_chunks, exc) from exc

    return merge_results(results)


def merge_results(results: Sequence[str]) -> str:
    """A single result is returned unchanged; several are separated by a horizontal rule."""
    if len(results) == 1:
        return results[0]
    return MERGE_SEPARATOR.join(results)
