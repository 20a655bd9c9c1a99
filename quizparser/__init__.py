"""
Quiz PDF Parser
===============
Extracts multiple-choice quiz questions from text-based PDFs.

Architecture:
    - Document Loader: Opens the PDF and yields positioned text tokens per page
    - Text Reconstruction: Rebuilds lines and word spacing from token positions
    - Section Detection: Finds "SECTION X" and solutions / answer-key headers
    - Question Splitter: Numbered-marker split with paragraph fallback
    - Block Parser: Question text, options A-D, correct letter, explanation
    - Solution Mapping: Attaches answer-key entries to questions
    - Figures: Best-effort page snapshot per question

Version: 1.0.0
"""

__version__ = "1.0.0"

from .engine import ExtractionEngine, ParserConfig
from .errors import (
    EmptyDocumentError,
    ExtractionError,
    NoQuestionsFoundError,
    NoSelectableTextError,
)
from .models import ExtractedQuestion

__all__ = [
    "EmptyDocumentError",
    "ExtractedQuestion",
    "ExtractionEngine",
    "ExtractionError",
    "NoQuestionsFoundError",
    "NoSelectableTextError",
    "ParserConfig",
]
