"""
Detection Patterns
==================
Every regex cascade used by the pipeline, kept in one place as named,
ordered tables. Call sites only ever walk a table through
``first_detection`` / ``earliest_detection`` and get a tagged Detection
back, so variants can be added or reordered here without touching them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .models import Confidence


@dataclass(frozen=True)
class DetectionPattern:
    """A named regex in an ordered detection table."""
    name: str
    regex: re.Pattern
    confidence: Confidence = Confidence.HIGH


@dataclass(frozen=True)
class Detection:
    """Tagged outcome of running a detection table over some text."""
    matched: bool
    pattern: Optional[str] = None
    match: Optional[re.Match] = None
    confidence: Optional[Confidence] = None

    @classmethod
    def none(cls) -> "Detection":
        return cls(matched=False)


def first_detection(table: Iterable[DetectionPattern], text: str) -> Detection:
    """Return the hit of the first pattern (in table order) that matches."""
    for entry in table:
        match = entry.regex.search(text)
        if match:
            return Detection(True, entry.name, match, entry.confidence)
    return Detection.none()


def earliest_detection(table: Iterable[DetectionPattern], text: str) -> Detection:
    """Return the match that starts first in the text; ties go to table order."""
    best: Optional[Detection] = None
    for entry in table:
        match = entry.regex.search(text)
        if match and (best is None or match.start() < best.match.start()):
            best = Detection(True, entry.name, match, entry.confidence)
    return best or Detection.none()


# ─── Page Markers ─────────────────────────────────────────────────────────────

PAGE_MARKER = "--- PAGE {number} ---"

# Whole marker line, including the newline in front of it
PAGE_MARKER_LINE = re.compile(
    r"\n?^[ \t]*--- PAGE \d+ ---[ \t]*$", re.MULTILINE
)


# ─── Section Headers ──────────────────────────────────────────────────────────

# "SECTION A", "Section b" alone on a line; consumes the line break
SECTION_PATTERN = re.compile(
    r"^[ \t]*(?P<label>SECTION[ \t]+[A-Z])[ \t]*$\n?",
    re.MULTILINE | re.IGNORECASE,
)


# ─── Solutions Headers ────────────────────────────────────────────────────────


def _header(body: str) -> re.Pattern:
    return re.compile(
        rf"^[ \t]*{body}[ \t]*$", re.MULTILINE | re.IGNORECASE
    )


SOLUTION_HEADER_PATTERNS: tuple[DetectionPattern, ...] = (
    DetectionPattern("solutions", _header(r"solutions?")),
    DetectionPattern("answer_key", _header(r"answer[ \t]+key")),
    DetectionPattern("answers", _header(r"answers?")),
    DetectionPattern("sol", _header(r"sol\.?")),
    DetectionPattern("detailed_solutions", _header(r"detailed[ \t]+solutions?")),
)


# ─── Question Markers ─────────────────────────────────────────────────────────

# "1.", "12)", "Q3:", "Question 4." at line start ("3.5" is not a marker)
QUESTION_MARKER_PATTERN = re.compile(
    r"^[ \t]*(?P<marker>(?:Q(?:uestion)?[ \t]*)?(?P<number>\d+)(?:[:)]|\.(?!\d)))[ \t]*",
    re.MULTILINE | re.IGNORECASE,
)

# Blank-line paragraph boundary for the fallback splitter
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


# ─── Options ──────────────────────────────────────────────────────────────────

# Lines that end an option's text: answer / explanation labels
_INDICATOR_LINE = (
    r"(?i:(?:correct[ \t]+)?(?:answer|ans|correct|explanation|rationale"
    r"|reference|solution|sol)\b)"
)

_DELIMITED_MARKER = r"\(?[A-D](?:\)|[.:])"
_BARE_MARKER = r"[A-D][.:]?[ \t]"

OPTION_PATTERNS: tuple[DetectionPattern, ...] = (
    # (A) text / A) text / A. text / A: text
    DetectionPattern(
        "delimited",
        re.compile(
            r"(?:^|\n)[ \t]*\(?(?P<letter>[A-D])(?:\)|[.:])[ \t]*"
            r"(?P<text>[^\n]+(?:\n(?![ \t]*(?:" + _DELIMITED_MARKER + "|"
            + _INDICATOR_LINE + r")).*)*)",
            re.IGNORECASE,
        ),
    ),
    # A text
    # Known limit: a stem line starting "A word" is read as option A
    DetectionPattern(
        "bare",
        re.compile(
            r"(?:^|\n)[ \t]*(?P<letter>[A-D])[.:]?[ \t]+"
            r"(?P<text>[^\n]+(?:\n(?![ \t]*(?:" + _BARE_MARKER + "|"
            + _INDICATOR_LINE + r")).*)*)"
        ),
        Confidence.MEDIUM,
    ),
)

MIN_OPTION_MATCHES = 4


# ─── Correct Answer ───────────────────────────────────────────────────────────

ANSWER_PATTERNS: tuple[DetectionPattern, ...] = (
    # "Answer: B", "Ans. (C)", "Correct answer is D", "correct option - A"
    # A dot is only allowed right after "ans"; "is correct. A cell" is prose
    DetectionPattern(
        "labelled",
        re.compile(
            r"\b(?:correct\s+)?(?:answer|ans\.?|correct)"
            r"(?:\s+(?:option|choice))?(?:\s+is)?[\s:\-]*"
            r"\(?(?P<letter>[A-D])(?![A-Za-z0-9])\)?",
            re.IGNORECASE,
        ),
    ),
    # "(B) is correct", "C is the right one"
    DetectionPattern(
        "trailing",
        re.compile(
            r"\(?\b(?P<letter>[A-D])(?![A-Za-z0-9])\)?\s*(?:is|are)?\s*"
            r"(?:the)?\s*(?:correct|right)\b",
            re.IGNORECASE,
        ),
        Confidence.MEDIUM,
    ),
)

# Leading "Explanation:" style label in the text left after the options
EXPLANATION_LABEL = re.compile(
    r"^\s*(?:explanation|rationale|reference)\s*[:.\-]?\s*", re.IGNORECASE
)


# ─── Solution Entries ─────────────────────────────────────────────────────────

_SOLUTION_MARKER = (
    r"(?:Q(?:uestion)?\.?[ \t]*|Sol(?:ution)?\.?[ \t]*)?\d+(?:[:)]|\.(?!\d))"
)

# "1. text", "Q2) text", "Sol 3: text"; text runs until the next entry
SOLUTION_ENTRY_PATTERN = re.compile(
    r"(?:^|\n)[ \t]*(?:Q(?:uestion)?\.?[ \t]*|Sol(?:ution)?\.?[ \t]*)?"
    r"(?P<number>\d+)(?:[:)]|\.(?!\d))[ \t]*"
    r"(?:\n(?![ \t]*" + _SOLUTION_MARKER + r")[ \t]*)?"
    r"(?P<text>[^\n]+(?:\n(?![ \t]*" + _SOLUTION_MARKER + r").*)*)",
    re.IGNORECASE,
)
