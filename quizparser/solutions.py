"""
Solution Mapping
================
Parses the solutions / answer-key region into numbered entries and maps
them onto extracted questions.

Mapping is by question number first (confidence ``high``). Entries left
over are handed out in order to the questions that got nothing, with
confidence ``medium`` and a "please verify" prefix.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from .models import (
    NO_EXPLANATION,
    Confidence,
    ExtractedQuestion,
    SolutionEntry,
)
from .patterns import SOLUTION_ENTRY_PATTERN
from .text_reconstruction import strip_page_markers

logger = logging.getLogger(__name__)

CONFIDENCE_PREFIXES = {
    Confidence.HIGH: "",
    Confidence.MEDIUM: "[ℹ️ Please Verify - Sequential Mapping]\n\n",
    Confidence.LOW: "[⚠️ Review Required - Low Confidence Mapping]\n\n",
}

# Explanations that a mapped solution may replace
_REPLACEABLE_MARKER = "Please review and complete"

_DIGITS = re.compile(r"\d+")


def parse_solutions(solutions_text: str) -> list[SolutionEntry]:
    """Extract numbered solution entries from the solutions region."""
    text = strip_page_markers(solutions_text)
    entries = []
    for match in SOLUTION_ENTRY_PATTERN.finditer(text):
        solution_text = match.group("text").strip()
        if solution_text:
            entries.append(SolutionEntry(
                question_number=match.group("number"),
                solution_text=solution_text,
            ))
    logger.info(f"Parsed {len(entries)} solution entries")
    return entries


def map_solutions(
    question_numbers: Sequence[Optional[str]],
    entries: Sequence[SolutionEntry],
) -> dict[int, SolutionEntry]:
    """
    Map solution entries to question indices.

    Returns ``{question index: entry}``. Direct number matches keep their
    confidence; leftovers are assigned in solution order to the lowest
    unmapped indices and downgraded to ``medium``.
    """
    index_by_number: dict[str, int] = {}
    for index, identifier in enumerate(question_numbers):
        found = _DIGITS.search(identifier or "")
        if found:
            index_by_number[found.group(0)] = index

    mapping: dict[int, SolutionEntry] = {}
    leftovers: list[SolutionEntry] = []
    for entry in entries:
        index = index_by_number.get(entry.question_number)
        if index is None:
            leftovers.append(entry)
        else:
            mapping[index] = entry

    if leftovers:
        free = [i for i in range(len(question_numbers)) if i not in mapping]
        for index, entry in zip(free, leftovers):
            mapping[index] = entry.model_copy(
                update={"confidence": Confidence.MEDIUM}
            )
        logger.warning(
            f"{min(len(free), len(leftovers))} solution(s) mapped "
            f"sequentially; {max(0, len(leftovers) - len(free))} left unused"
        )

    return mapping


def format_solution_for_explanation(
    solution_text: str,
    confidence: Confidence,
) -> str:
    """Prefix the solution text according to mapping confidence."""
    return CONFIDENCE_PREFIXES[Confidence(confidence)] + solution_text


def is_replaceable_explanation(explanation: str) -> bool:
    return (
        not explanation
        or explanation == NO_EXPLANATION
        or _REPLACEABLE_MARKER in explanation
    )


def apply_solution_mapping(
    questions: Sequence[ExtractedQuestion],
    mapping: dict[int, SolutionEntry],
) -> list[ExtractedQuestion]:
    """
    Return the questions with mapped solutions filled in.

    Only placeholder explanations are replaced; an explanation parsed
    from the question block itself always wins.
    """
    result = list(questions)
    for index, entry in sorted(mapping.items()):
        if index >= len(result):
            continue
        question = result[index]
        if not is_replaceable_explanation(question.explanation):
            continue
        result[index] = question.model_copy(update={
            "explanation": format_solution_for_explanation(
                entry.solution_text, entry.confidence
            ),
        })
    return result
