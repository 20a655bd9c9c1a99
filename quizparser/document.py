"""
Document Loader
===============
Thin PyMuPDF (fitz) wrapper: opens a PDF from bytes or a path and hands
out pages and positioned text tokens one page at a time.

Each PdfDocument owns its own fitz.Document handle. Nothing is cached at
module level, so concurrent or repeated extractions never share state.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

import fitz  # PyMuPDF

from .errors import EmptyDocumentError
from .models import TextToken

logger = logging.getLogger(__name__)

PdfSource = Union[bytes, bytearray, str, os.PathLike]

# Keep ligatures and whitespace exactly as stored in the PDF
TEXT_FLAGS = fitz.TEXT_PRESERVE_WHITESPACE | fitz.TEXT_PRESERVE_LIGATURES


class PdfDocument:
    """
    An open PDF.

    Use as a context manager so the handle is released on every path:

        with PdfDocument.open(data) as document:
            tokens = document.page_tokens(1)
    """

    def __init__(self, doc: fitz.Document, name: str = ""):
        self._doc = doc
        self.name = name

    @classmethod
    def open(cls, source: PdfSource) -> "PdfDocument":
        """
        Open a PDF from raw bytes or a filesystem path.

        Raises:
            FileNotFoundError: If a path is given and does not exist.
            EmptyDocumentError: If the data cannot be opened as a PDF.
        """
        try:
            if isinstance(source, (bytes, bytearray)):
                doc = fitz.open(stream=bytes(source), filetype="pdf")
                name = "<bytes>"
            else:
                path = Path(source)
                if not path.exists():
                    raise FileNotFoundError(f"PDF not found: {path}")
                doc = fitz.open(str(path))
                name = path.name
        except FileNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to open PDF: {e}")
            raise EmptyDocumentError() from e

        logger.debug(f"Opened {name} ({doc.page_count} pages)")
        return cls(doc, name)

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    @property
    def metadata(self) -> dict:
        return self._doc.metadata or {}

    def page(self, page_number: int) -> fitz.Page:
        """Return a page by 1-based number."""
        if not 1 <= page_number <= self.page_count:
            raise IndexError(
                f"Page {page_number} out of range (1-{self.page_count})"
            )
        return self._doc[page_number - 1]

    def page_tokens(self, page_number: int) -> list[TextToken]:
        """
        Positioned text spans of one page.

        PyMuPDF measures y downwards from the top edge; tokens are flipped
        to PDF-style coordinates (y upwards) using each span's baseline.
        """
        page = self.page(page_number)
        page_height = page.rect.height
        page_dict = page.get_text("dict", flags=TEXT_FLAGS)

        tokens: list[TextToken] = []
        for block in page_dict.get("blocks", []):
            if block.get("type") != 0:  # Text only
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    text = span.get("text", "")
                    if not text:
                        continue
                    x0, y0, x1, y1 = span["bbox"]
                    origin_x, origin_y = span.get("origin", (x0, y1))
                    tokens.append(TextToken(
                        text=text,
                        x=origin_x,
                        y=page_height - origin_y,
                        width=x1 - x0,
                        height=y1 - y0,
                    ))
        return tokens

    def close(self):
        if not self._doc.is_closed:
            self._doc.close()

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
