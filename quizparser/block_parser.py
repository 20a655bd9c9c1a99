"""
Question Block Parser
=====================
Recovers question text, four options, the correct letter and an
explanation from one question block.

A block whose options cannot be found is still returned (never dropped):
the whole block becomes the question text and the explanation carries a
review placeholder so the preview UI flags it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .models import (
    MISSING_QUESTION_TEXT,
    NO_EXPLANATION,
    OPTION_LETTERS,
    REVIEW_PLACEHOLDER,
    ParsedBlock,
)
from .patterns import (
    ANSWER_PATTERNS,
    EXPLANATION_LABEL,
    MIN_OPTION_MATCHES,
    OPTION_PATTERNS,
    Detection,
    first_detection,
)

logger = logging.getLogger(__name__)

DEFAULT_CORRECT_OPTION = "A"

# Explanations shorter than this are treated as absent
MIN_EXPLANATION_LENGTH = 5


@dataclass(frozen=True)
class OptionDetection:
    """Option markers found by one option strategy."""
    strategy: Optional[str]
    matches: list[re.Match]

    @property
    def matched(self) -> bool:
        return len(self.matches) >= MIN_OPTION_MATCHES


def detect_options(block: str) -> OptionDetection:
    """
    Run the option strategies in priority order.

    The first strategy with at least four matches wins; otherwise the
    result is unmatched.
    """
    for entry in OPTION_PATTERNS:
        matches = list(entry.regex.finditer(block))
        if len(matches) >= MIN_OPTION_MATCHES:
            return OptionDetection(entry.name, matches)
    return OptionDetection(None, [])


def detect_answer(text: str) -> Detection:
    """Find the correct-answer indicator in the text after the options."""
    return first_detection(ANSWER_PATTERNS, text)


def _explanation_from(remaining: str, answer: Detection) -> str:
    explanation = remaining
    if answer.matched:
        start, end = answer.match.span()
        explanation = remaining[:start] + remaining[end:]
    explanation = EXPLANATION_LABEL.sub("", explanation.strip(), count=1).strip()

    if len(explanation) < MIN_EXPLANATION_LENGTH:
        return NO_EXPLANATION
    return explanation


def unparsed_block(block: str) -> ParsedBlock:
    """Fallback for blocks without four recognisable options."""
    return ParsedBlock(
        question_text=block,
        options={letter: "" for letter in OPTION_LETTERS},
        correct_option=DEFAULT_CORRECT_OPTION,
        explanation=REVIEW_PLACEHOLDER,
        parsed=False,
    )


def parse_question_block(block: str) -> ParsedBlock:
    """Parse one question block into its fields."""
    detection = detect_options(block)
    if not detection.matched:
        logger.warning(
            f"Could not find four options in block starting "
            f"{block[:40]!r}; flagged for review"
        )
        return unparsed_block(block)

    chosen = detection.matches[:MIN_OPTION_MATCHES]
    options = {letter: "" for letter in OPTION_LETTERS}
    for match in chosen:
        options[match.group("letter").upper()] = match.group("text").strip()

    question_text = block[:chosen[0].start()].strip() or MISSING_QUESTION_TEXT
    remaining = block[chosen[-1].end():].strip()

    answer = detect_answer(remaining)
    if answer.matched:
        correct = answer.match.group("letter").upper()
    else:
        correct = DEFAULT_CORRECT_OPTION
        logger.debug("No answer indicator found; defaulting to A")

    return ParsedBlock(
        question_text=question_text,
        options=options,
        correct_option=correct,
        explanation=_explanation_from(remaining, answer),
        option_strategy=detection.strategy,
        answer_strategy=answer.pattern,
    )
