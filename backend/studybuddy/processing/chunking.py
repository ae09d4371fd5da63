"""
Overlapping Chunker  —  Token-Budgeted Text Segmentation
═════════════════════════════════════════════════════════

Course material is simplified by a generative model whose context window is
finite. Combined uploads that exceed the budget are split into overlapping
segments, each small enough for one model call, and processed in order.

Sizing
──────
  No tokenizer is used. Token budgets are converted to characters with a
  fixed ratio (default 4 chars ≈ 1 token, the usual English heuristic):

    max_chars     = max_tokens     × estimated_chars_per_token
    overlap_chars = overlap_tokens × estimated_chars_per_token

  Callers must tolerate over/under-estimation.

Boundary selection
──────────────────
  1. Candidate end = min(start + max_chars, len(text))
  2. If the candidate end is inside the text, look backward in the window for
     the last sentence terminator (". ", ".\\n", "! ", "!\\n", "? ", "?\\n")
  3. Snap to just after it only if that keeps more than 80% of the window;
     otherwise cut at the raw candidate end
  4. Next window starts overlap_chars before the cut. If that would not move
     past the current chunk's start, the overlap is dropped and the next
     window starts exactly at the cut
  5. Stop once a chunk reaches the end of the text

Every chunk is a plain slice: content == text[start_position:end_position].
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace

from studybuddy.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration constants
# ---------------------------------------------------------------------------

DEFAULT_MAX_TOKENS      = 25_000
DEFAULT_OVERLAP_TOKENS  = 500
DEFAULT_CHARS_PER_TOKEN = 4

# Fraction of the window a sentence snap must preserve
MIN_SNAP_RATIO = 0.8

SENTENCE_ENDINGS: tuple[str, ...] = (". ", ".\n", "! ", "!\n", "? ", "?\n")


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChunkConfig:
    """Chunk size budget, expressed in estimated tokens."""
    max_tokens:                int = DEFAULT_MAX_TOKENS
    overlap_tokens:            int = DEFAULT_OVERLAP_TOKENS
    estimated_chars_per_token: int = DEFAULT_CHARS_PER_TOKEN

    def __post_init__(self) -> None:
        if self.max_tokens < 1:
            raise ValueError("max_tokens must be >= 1")
        if self.overlap_tokens < 0:
            raise ValueError("overlap_tokens must be >= 0")
        if self.estimated_chars_per_token < 1:
            raise ValueError("estimated_chars_per_token must be >= 1")

    @property
    def max_chars(self) -> int:
        return self.max_tokens * self.estimated_chars_per_token

    @property
    def overlap_chars(self) -> int:
        return self.overlap_tokens * self.estimated_chars_per_token

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ChunkConfig":
        settings = settings or get_settings()
        return cls(
            max_tokens=settings.max_tokens_per_chunk,
            overlap_tokens=settings.overlap_tokens,
            estimated_chars_per_token=settings.estimated_chars_per_token,
        )


@dataclass(frozen=True)
class TextChunk:
    """
    A contiguous slice of the source text.

    chunk_index    : 0-based position among the chunks of one run
    total_chunks   : number of chunks produced by that run (same on every chunk)
    start_position : offset of the first character in the source text
    end_position   : offset one past the last character
    """
    content:        str
    chunk_index:    int
    total_chunks:   int
    start_position: int
    end_position:   int

    @property
    def is_first(self) -> bool:
        return self.chunk_index == 0

    @property
    def is_last(self) -> bool:
        return self.chunk_index == self.total_chunks - 1


# ---------------------------------------------------------------------------
# Token estimation
# ---------------------------------------------------------------------------

def estimate_token_count(text: str, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> int:
    """Approximate token count: ceil(len / chars_per_token)."""
    return math.ceil(len(text) / chars_per_token)


def needs_chunking(
    text:            str,
    max_tokens:      int = DEFAULT_MAX_TOKENS,
    chars_per_token: int = DEFAULT_CHARS_PER_TOKEN,
) -> bool:
    """True iff the estimated token count exceeds max_tokens."""
    return estimate_token_count(text, chars_per_token) > max_tokens


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------

def find_sentence_boundary(text: str, start: int, target: int) -> int:
    """
    Offset just after the last sentence terminator inside text[start:target].

    Returns `target` when the window contains no terminator.
    """
    window = text[start:target]
    best = -1
    for ending in SENTENCE_ENDINGS:
        pos = window.rfind(ending)
        if pos != -1:
            best = max(best, pos + len(ending))
    return start + best if best != -1 else target


def chunk_text(text: str, config: ChunkConfig | None = None) -> list[TextChunk]:
    """
    Split `text` into overlapping, sentence-aligned chunks.

    Returns an ordered list (chunk_index 0, 1, 2, …). Text that fits in one
    window yields a single chunk covering all of it; empty text yields [].
    """
    config = config or ChunkConfig()
    max_chars     = config.max_chars
    overlap_chars = config.overlap_chars
    text_length   = len(text)

    logger.debug(
        "Chunker | length=%d max_chars=%d overlap_chars=%d",
        text_length, max_chars, overlap_chars,
    )

    chunks: list[TextChunk] = []
    start = 0

    while start < text_length:
        chunk_end = min(start + max_chars, text_length)

        if chunk_end < text_length:
            boundary = find_sentence_boundary(text, start, chunk_end)
            if boundary > start + max_chars * MIN_SNAP_RATIO:
                chunk_end = boundary

        chunks.append(TextChunk(
            content=text[start:chunk_end],
            chunk_index=len(chunks),
            total_chunks=0,   # backfilled below
            start_position=start,
            end_position=chunk_end,
        ))

        if chunk_end >= text_length:
            break

        next_start = chunk_end - overlap_chars
        if next_start <= start:
            # Overlap would stall or rewind: resume at the cut without overlap
            next_start = chunk_end
        start = next_start

    total = len(chunks)
    chunks = [replace(chunk, total_chunks=total) for chunk in chunks]

    logger.info("Chunker | text chunked into %d segment(s)", total)
    return chunks
