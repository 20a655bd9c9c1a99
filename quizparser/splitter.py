"""
Question Splitter
=================
Cuts the questions region into one text block per question.

Two strategies, tried in order:
    - numbered:  "1." / "Q2)" / "Question 3:" markers at line starts
                 (needs at least two markers)
    - paragraph: blank-line separated paragraphs
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from .models import QuestionBlock, Section, SplitResult, SplitStrategy
from .patterns import PARAGRAPH_BREAK, QUESTION_MARKER_PATTERN, SECTION_PATTERN
from .sections import section_for_offset
from .text_reconstruction import strip_page_markers

logger = logging.getLogger(__name__)

# Blocks shorter than this (after trimming) are noise, not questions
MIN_BLOCK_LENGTH = 10

# Numbered splitting needs at least this many markers to be trusted
MIN_NUMBERED_MARKERS = 2


def find_question_markers(text: str) -> list[re.Match]:
    """All numbered-question markers in the text, in order."""
    return list(QUESTION_MARKER_PATTERN.finditer(text))


def _clean_block(raw: str) -> str:
    # Page markers and section headers are layout, not question content
    return SECTION_PATTERN.sub("", strip_page_markers(raw)).strip()


def split_numbered(
    text: str,
    sections: Sequence[Section] = (),
    markers: Optional[list[re.Match]] = None,
    min_block_length: int = MIN_BLOCK_LENGTH,
) -> list[QuestionBlock]:
    """
    Split on numbered markers.

    Each block runs from the end of its marker to the start of the next
    one (or the end of the text). The block is tagged with the section
    whose header precedes the marker.
    """
    if markers is None:
        markers = find_question_markers(text)

    blocks: list[QuestionBlock] = []
    for i, marker in enumerate(markers):
        end = markers[i + 1].start() if i + 1 < len(markers) else len(text)
        block_text = _clean_block(text[marker.end():end])
        number = marker.group("number")

        if len(block_text) < min_block_length:
            logger.debug(f"Skipping short block after marker Q{number}")
            continue

        section = section_for_offset(list(sections), marker.start("marker"))
        boundary = f"{section} • Q{number}" if section else f"Q{number}"

        blocks.append(QuestionBlock(
            text=block_text,
            ordinal=len(blocks),
            split_boundary=boundary,
            section_label=section or None,
            question_number=number,
        ))

    return blocks


def split_paragraphs(
    text: str,
    min_block_length: int = MIN_BLOCK_LENGTH,
) -> list[QuestionBlock]:
    """Split on blank lines; every surviving paragraph is one question."""
    blocks: list[QuestionBlock] = []
    for fragment in PARAGRAPH_BREAK.split(text):
        block_text = _clean_block(fragment)
        if len(block_text) < min_block_length:
            continue
        blocks.append(QuestionBlock(
            text=block_text,
            ordinal=len(blocks),
            split_boundary=f"Block {len(blocks) + 1}",
        ))
    return blocks


def split_questions(
    text: str,
    sections: Sequence[Section] = (),
    min_block_length: int = MIN_BLOCK_LENGTH,
) -> SplitResult:
    """Split with numbered markers, falling back to paragraphs."""
    markers = find_question_markers(text)

    if len(markers) >= MIN_NUMBERED_MARKERS:
        blocks = split_numbered(text, sections, markers, min_block_length)
        logger.info(
            f"Numbered split: {len(markers)} markers, {len(blocks)} blocks kept"
        )
        return SplitResult(strategy=SplitStrategy.NUMBERED, blocks=blocks)

    blocks = split_paragraphs(text, min_block_length)
    logger.info(
        f"Only {len(markers)} numbered marker(s); "
        f"paragraph split produced {len(blocks)} blocks"
    )
    return SplitResult(strategy=SplitStrategy.PARAGRAPH, blocks=blocks)
