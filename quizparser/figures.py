"""
Figure Extraction
=================
Best-effort figures for questions, rendered as PNG page snapshots.

The only strategy in use is OnePagePerQuestionFigures: the i-th accepted
question gets a snapshot of page i. That is knowingly wrong when a page
holds several questions, none, or a question spans pages; the preview UI
lets a reviewer drop a wrong figure. It is kept behind FigureStrategy so a
smarter association can replace it without touching the engine.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import fitz  # PyMuPDF

from .document import PdfDocument

logger = logging.getLogger(__name__)

DEFAULT_FIGURE_SCALE = 1.5


def render_page_png(page: fitz.Page, scale: float = DEFAULT_FIGURE_SCALE) -> bytes:
    """Render a page at ``scale`` times its viewport size and encode to PNG."""
    matrix = fitz.Matrix(scale, scale)
    pix = page.get_pixmap(matrix=matrix, alpha=False)
    return pix.tobytes("png")


class FigureStrategy(Protocol):
    """Picks a figure (PNG bytes) for the question at a given ordinal."""

    def figure_for(self, ordinal: int) -> Optional[bytes]:
        ...


class NoFigures:
    """Strategy used when figures are disabled or not applicable."""

    def figure_for(self, ordinal: int) -> Optional[bytes]:
        return None


class OnePagePerQuestionFigures:
    """
    Question ``ordinal`` (0-based) gets a snapshot of page ``ordinal + 1``.

    Questions beyond the page count get nothing. A page that fails to
    render is logged and yields None; the run carries on.
    """

    def __init__(self, document: PdfDocument, scale: float = DEFAULT_FIGURE_SCALE):
        self.document = document
        self.scale = scale
        self.failures = 0

    def figure_for(self, ordinal: int) -> Optional[bytes]:
        page_number = ordinal + 1
        if page_number > self.document.page_count:
            return None

        try:
            page = self.document.page(page_number)
            return render_page_png(page, self.scale)
        except Exception as e:
            self.failures += 1
            logger.warning(f"Could not extract image from page {page_number}: {e}")
            return None
