"""
Extraction Errors
=================
Fatal failures of an extraction run. Each aborts the whole run with no
partial output; the message is meant to be shown to the uploader as is.

Per-question problems (unparsed options, missing answer, figure render
failures) are never raised. They are flagged on the question instead.
"""

from __future__ import annotations


class ExtractionError(RuntimeError):
    """Base class for fatal extraction failures."""

    default_message = "PDF extraction failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class EmptyDocumentError(ExtractionError):
    """The document has no pages or could not be opened at all."""

    default_message = "The PDF file appears to be empty or corrupted."


class NoSelectableTextError(ExtractionError):
    """Pages exist but none of them carries extractable text."""

    default_message = (
        "This PDF contains no selectable text. It appears to be a scanned "
        "or image-only PDF. Text-based PDFs are required for import."
    )


class NoQuestionsFoundError(ExtractionError):
    """Text was extracted but no question block survived splitting."""

    default_message = (
        "No questions could be extracted from the PDF. "
        "Please check the PDF format."
    )
