"""
Data Models
===========
Pydantic models for the question extraction pipeline.
ExtractedQuestion is the only type handed back to callers; everything
else is intermediate state owned by a single extraction run.
"""

from __future__ import annotations

import base64
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer


# ─── Placeholders ─────────────────────────────────────────────────────────────

NO_EXPLANATION = "No explanation provided."
REVIEW_PLACEHOLDER = "Please review and complete the options and explanation."
MISSING_QUESTION_TEXT = "Question text not found"

OPTION_LETTERS = ("A", "B", "C", "D")


# ─── Enums ────────────────────────────────────────────────────────────────────


class Confidence(str, Enum):
    """How reliably a solution entry was matched to a question."""
    HIGH = "high"
    MEDIUM = "medium"
    # Reserved: nothing currently produces it.
    LOW = "low"


class SplitStrategy(str, Enum):
    """Strategy used to cut the questions region into blocks."""
    NUMBERED = "numbered"
    PARAGRAPH = "paragraph"


# ─── Layout Models ────────────────────────────────────────────────────────────


class TextToken(BaseModel):
    """
    A positioned text fragment from one page.
    Coordinates are PDF-style: y grows upwards.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0


class Section(BaseModel):
    """A "SECTION X" header and the offset right after its line."""
    model_config = ConfigDict(frozen=True)

    label: str
    start_offset: int = Field(ge=0)


class SolutionsHeader(BaseModel):
    """Result of looking for an answer-key / solutions header."""
    model_config = ConfigDict(frozen=True)

    found: bool = False
    header_offset: int = -1
    start_offset: int = -1
    pattern: Optional[str] = None


# ─── Splitting / Parsing Models ──────────────────────────────────────────────


class QuestionBlock(BaseModel):
    """One question's raw text as cut out by the splitter."""
    model_config = ConfigDict(frozen=True)

    text: str
    ordinal: int = Field(ge=0)
    split_boundary: str
    section_label: Optional[str] = None
    question_number: Optional[str] = None


class SplitResult(BaseModel):
    """Blocks produced by the active splitting strategy, in reading order."""
    strategy: SplitStrategy
    blocks: list[QuestionBlock] = Field(default_factory=list)


class ParsedBlock(BaseModel):
    """Question fields recovered from a single block."""
    model_config = ConfigDict(frozen=True)

    question_text: str
    options: dict[str, str]
    correct_option: str = "A"
    explanation: str = NO_EXPLANATION
    option_strategy: Optional[str] = None
    answer_strategy: Optional[str] = None
    parsed: bool = True


class SolutionEntry(BaseModel):
    """A numbered entry from the solutions / answer-key region."""
    model_config = ConfigDict(frozen=True)

    question_number: str
    solution_text: str
    confidence: Confidence = Confidence.HIGH


# ─── Output Model ─────────────────────────────────────────────────────────────


class ExtractedQuestion(BaseModel):
    """
    A multiple-choice question recovered from the PDF.

    Immutable once built; the review UI may drop or reorder entries
    but never edits these fields in place.
    """
    model_config = ConfigDict(frozen=True)

    question_text: str = Field(min_length=1)
    option_a: str = ""
    option_b: str = ""
    option_c: str = ""
    option_d: str = ""
    correct_option: str = Field(default="A", pattern=r"^[A-D]$")
    explanation: str = Field(default=NO_EXPLANATION, min_length=1)
    category: str
    year: Optional[int] = None
    split_boundary: str = ""
    section_label: Optional[str] = None
    question_number: Optional[str] = None
    question_image: Optional[bytes] = Field(
        default=None,
        description="PNG bytes of the page figure, if one was attached",
    )

    @field_serializer("question_image", when_used="json")
    def _image_as_base64(self, value: Optional[bytes]) -> Optional[str]:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")

    @computed_field
    @property
    def needs_review(self) -> bool:
        """True when the block could not be split into four options."""
        return REVIEW_PLACEHOLDER in self.explanation or not any(
            (self.option_a, self.option_b, self.option_c, self.option_d)
        )

    @computed_field
    @property
    def has_figure(self) -> bool:
        return self.question_image is not None

    def options(self) -> dict[str, str]:
        return {
            "A": self.option_a,
            "B": self.option_b,
            "C": self.option_c,
            "D": self.option_d,
        }


# ─── Review Model ─────────────────────────────────────────────────────────────


class ReviewReport(BaseModel):
    """Post-extraction summary of what needs a human look."""
    total_questions: int = 0
    fully_parsed: int = 0
    needs_review: list[str] = Field(default_factory=list)
    missing_explanation: list[str] = Field(default_factory=list)
    sequentially_mapped: list[str] = Field(default_factory=list)
    figures_attached: int = 0
    missing_question_numbers: list[int] = Field(default_factory=list)
    duplicate_question_numbers: list[int] = Field(default_factory=list)

    @computed_field
    @property
    def parse_rate(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return round(self.fully_parsed / self.total_questions * 100, 2)
