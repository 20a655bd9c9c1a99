"""
Section Detection
=================
Finds "SECTION X" headers and the answer-key / solutions header in the
aggregated document text.
"""

from __future__ import annotations

import logging

from .models import Section, SolutionsHeader
from .patterns import SECTION_PATTERN, SOLUTION_HEADER_PATTERNS, earliest_detection

logger = logging.getLogger(__name__)


def detect_sections(text: str) -> list[Section]:
    """
    Return every section header in document order.

    ``start_offset`` points just past the header line. No headers is a
    normal result (empty list).
    """
    sections = [
        Section(label=match.group("label").strip(), start_offset=match.end())
        for match in SECTION_PATTERN.finditer(text)
    ]
    if sections:
        logger.debug(
            f"Detected {len(sections)} sections: "
            f"{', '.join(s.label for s in sections)}"
        )
    return sections


def section_for_offset(sections: list[Section], offset: int) -> str:
    """Label of the last section starting at or before ``offset`` ("" if none)."""
    for section in reversed(sections):
        if offset >= section.start_offset:
            return section.label
    return ""


def detect_solutions_section(text: str) -> SolutionsHeader:
    """Locate the first solutions / answer-key header in document order."""
    detection = earliest_detection(SOLUTION_HEADER_PATTERNS, text)
    if not detection.matched:
        return SolutionsHeader()

    logger.info(
        f"Solutions header '{detection.match.group(0).strip()}' found "
        f"at offset {detection.match.start()}"
    )
    return SolutionsHeader(
        found=True,
        header_offset=detection.match.start(),
        start_offset=detection.match.end(),
        pattern=detection.pattern,
    )


def split_regions(text: str, header: SolutionsHeader) -> tuple[str, str]:
    """
    Split the document into (questions region, solutions region).

    The header line itself belongs to neither region, so it cannot leak
    into the last question's options.
    """
    if not header.found:
        return text, ""
    return text[:header.header_offset], text[header.start_offset:]
