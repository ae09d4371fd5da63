"""
Text Extraction  —  Uploaded Materials → One Combined Text
══════════════════════════════════════════════════════════

Readers by MIME type:
  application/pdf                                                  → PyMuPDF text layer
  application/vnd.openxmlformats-officedocument.wordprocessingml.document → python-docx
  text/plain, text/markdown                                        → UTF-8 file read

Images inside documents are ignored; scanned PDFs without a text layer come
back empty and are reported as EmptyContentError.

Batch semantics:
  - every file is read concurrently (asyncio.gather, blocking readers run in
    the default thread executor)
  - a failing file is logged and left out; the batch only fails when no file
    produced text
  - sections are assembled in the order the files were supplied, not the
    order reads completed:

        === DOCUMENT: notes.pdf ===

        <text>

        === END OF DOCUMENT: notes.pdf ===
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from studybuddy.core.errors import (
    EmptyContentError,
    ExtractionError,
    ExtractionFailedError,
    NoExtractableContentError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# MIME types
# ---------------------------------------------------------------------------

MIME_PDF  = "application/pdf"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MIME_TXT  = "text/plain"
MIME_MD   = "text/markdown"

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset({MIME_PDF, MIME_DOCX, MIME_TXT, MIME_MD})

DOCUMENT_HEADER = "=== DOCUMENT: {name} ==="
DOCUMENT_FOOTER = "=== END OF DOCUMENT: {name} ==="
SECTION_SEPARATOR = "\n\n"


# ---------------------------------------------------------------------------
# Upload descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MaterialFile:
    """
    One uploaded file as handed over by the upload layer.

    path               : where the upload layer stored the file on disk
    original_file_name : the name the user uploaded (used in section headers)
    mime_type          : declared content type
    size_bytes         : stored size
    """
    path:               str
    original_file_name: str
    mime_type:          str
    size_bytes:         int = 0


@dataclass
class _FileOutcome:
    file:  MaterialFile
    text:  str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Format readers (blocking, run in the thread executor)
# ---------------------------------------------------------------------------

def _read_pdf(path: str) -> str:
    import fitz  # PyMuPDF; imported here to avoid module-level import cost

    with fitz.open(path) as doc:
        pages = [page.get_text("text") or "" for page in doc]
    return "\n".join(pages)


def _read_docx(path: str) -> str:
    import docx

    document = docx.Document(path)
    return "\n\n".join(para.text for para in document.paragraphs if para.text.strip())


def _read_txt(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


_READERS: dict[str, tuple[str, Callable[[str], str]]] = {
    MIME_PDF:  ("PDF", _read_pdf),
    MIME_DOCX: ("DOCX file", _read_docx),
    MIME_TXT:  ("Text file", _read_txt),
    MIME_MD:   ("Text file", _read_txt),
}


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class TextExtractor:
    """
    Stateless extractor — safe to share across workflow runs.

    Usage:
        extractor = TextExtractor()
        text = await extractor.extract_one("/uploads/a.pdf", "application/pdf")
        combined = await extractor.extract_batch(material_files)
    """

    async def extract_one(self, path: str, mime_type: str) -> str:
        """
        Extract plain text from a single file.

        Raises:
            UnsupportedFormatError: mime_type has no reader.
            EmptyContentError:      the reader produced only whitespace.
            ExtractionFailedError:  the reader itself raised.
        """
        entry = _READERS.get(mime_type)
        if entry is None:
            raise UnsupportedFormatError(mime_type)
        kind, reader = entry

        logger.debug("Extractor | reading path=%s mime=%s", path, mime_type)
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, reader, path)
        except Exception as exc:
            raise ExtractionFailedError(path, str(exc)) from exc

        if not text or not text.strip():
            raise EmptyContentError(path, kind)

        logger.debug("Extractor | path=%s chars=%d", path, len(text))
        return text

    async def extract_batch(self, files: Sequence[MaterialFile]) -> str:
        """
        Extract every file concurrently and combine the survivors.

        Raises:
            NoExtractableContentError: no files were given, or all of them failed.
        """
        if not files:
            raise NoExtractableContentError("No files provided for text extraction")

        t0 = time.monotonic()
        logger.info("Extractor | extracting text from %d file(s)", len(files))

        outcomes = await asyncio.gather(*(self._extract_outcome(f) for f in files))

        succeeded = [o for o in outcomes if o.ok]
        failed    = [o for o in outcomes if not o.ok]

        for outcome in failed:
            logger.warning(
                "Extractor | skipping file=%s error=%s",
                outcome.file.original_file_name, outcome.error,
            )

        if not succeeded:
            raise NoExtractableContentError(
                "Failed to extract text from any of the uploaded files: "
                + "; ".join(f"{o.file.original_file_name}: {o.error}" for o in failed)
            )

        combined = SECTION_SEPARATOR.join(
            _format_section(o.file.original_file_name, o.text or "") for o in succeeded
        )

        logger.info(
            "Extractor | files=%d ok=%d failed=%d chars=%d elapsed_ms=%.0f",
            len(files), len(succeeded), len(failed), len(combined),
            (time.monotonic() - t0) * 1000,
        )
        return combined

    async def validate_file(self, path: str, mime_type: str) -> bool:
        """True if the file yields non-blank text."""
        try:
            await self.extract_one(path, mime_type)
        except ExtractionError as exc:
            logger.debug("Extractor | validation failed path=%s error=%s", path, exc)
            return False
        return True

    async def _extract_outcome(self, file: MaterialFile) -> _FileOutcome:
        try:
            text = await self.extract_one(file.path, file.mime_type)
        except ExtractionError as exc:
            return _FileOutcome(file=file, error=exc)
        return _FileOutcome(file=file, text=text)


def _format_section(name: str, text: str) -> str:
    return (
        DOCUMENT_HEADER.format(name=name)
        + SECTION_SEPARATOR
        + text
        + SECTION_SEPARATOR
        + DOCUMENT_FOOTER.format(name=name)
    )
