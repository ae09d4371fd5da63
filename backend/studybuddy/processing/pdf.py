"""
Study Guide PDF Rendering  —  Markdown → HTML → PyMuPDF Story
═════════════════════════════════════════════════════════════

The simplified study guide is markdown. It is converted to HTML with
Python-Markdown (tables and fenced code enabled) and laid out with
fitz.Story, which flows content across as many A4 pages as needed.
"""

from __future__ import annotations

import asyncio
import html
import io
import logging
from abc import ABC, abstractmethod

import markdown

logger = logging.getLogger(__name__)

PAGE_FORMAT = "a4"
PAGE_MARGIN = 54   # points (0.75 in)

MARKDOWN_EXTENSIONS = ["tables", "fenced_code"]

_CSS = """
body { font-family: sans-serif; font-size: 11pt; line-height: 1.4; }
h1 { font-size: 20pt; color: #1f3a5f; }
h2 { font-size: 15pt; color: #1f3a5f; margin-top: 12pt; }
h3 { font-size: 12pt; }
pre { font-family: monospace; font-size: 9pt; background-color: #f4f4f4; }
code { font-family: monospace; }
table { border-collapse: collapse; }
th, td { border: 1px solid #999999; padding: 3pt; }
a { color: #1f5faa; }
.title { font-size: 24pt; text-align: center; }
"""


class PdfRenderer(ABC):
    """Turns a markdown study guide into PDF bytes."""

    @abstractmethod
    async def render(self, guide: str, title: str) -> bytes:
        ...


def markdown_to_html(text: str) -> str:
    """Convert a markdown study guide to an HTML fragment."""
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class MarkdownPdfRenderer(PdfRenderer):
    """PyMuPDF Story renderer. Layout runs in the default thread executor."""

    def __init__(self, page_format: str = PAGE_FORMAT, margin: float = PAGE_MARGIN) -> None:
        self._page_format = page_format
        self._margin      = margin

    async def render(self, guide: str, title: str) -> bytes:
        loop = asyncio.get_running_loop()
        pdf  = await loop.run_in_executor(None, self._render_sync, guide, title)
        logger.info("PdfRenderer | title=%s bytes=%d", title, len(pdf))
        return pdf

    def _render_sync(self, guide: str, title: str) -> bytes:
        import fitz  # PyMuPDF

        body = (
            f'<p class="title"><b>{html.escape(title, quote=False)}</b></p>\n'
            + markdown_to_html(guide)
        )
        story    = fitz.Story(html=body, user_css=_CSS)
        buffer   = io.BytesIO()
        writer   = fitz.DocumentWriter(buffer)
        mediabox = fitz.paper_rect(self._page_format)
        where    = mediabox + (self._margin, self._margin, -self._margin, -self._margin)

        more = True
        while more:
            device = writer.begin_page(mediabox)
            more, _ = story.place(where)
            story.draw(device)
            writer.end_page()
        writer.close()
        return buffer.getvalue()
