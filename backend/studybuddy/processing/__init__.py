"""
Document Processing Package
════════════════════════════

Turns uploaded course material into model-sized text and back into a PDF:

  Text Extraction → Token-Budgeted Chunking → (model) → PDF Rendering

Modules
───────
  extractor.py  MIME-dispatched text extraction (PyMuPDF, python-docx, plain text)
  chunking.py   Sentence-aligned overlapping chunker with a chars-per-token estimate
  pdf.py        Markdown study guide → PDF via PyMuPDF Story

Design principles
─────────────────
  • Every component is stateless and dependency-injected.
  • Blocking file and PDF work runs in the default thread executor.
  • Every step emits key=value log lines.
"""

from studybuddy.processing.chunking import ChunkConfig, TextChunk, chunk_text, needs_chunking
from studybuddy.processing.extractor import SUPPORTED_MIME_TYPES, MaterialFile, TextExtractor
from studybuddy.processing.pdf import MarkdownPdfRenderer, PdfRenderer

__all__ = [
    "ChunkConfig",
    "TextChunk",
    "chunk_text",
    "needs_chunking",
    "SUPPORTED_MIME_TYPES",
    "MaterialFile",
    "TextExtractor",
    "MarkdownPdfRenderer",
    "PdfRenderer",
]
