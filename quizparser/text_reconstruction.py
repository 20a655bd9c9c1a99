"""
Text Reconstruction
===================
Turns a page's positioned text tokens back into plain text with line
breaks and inter-word spaces, and glues pages together with page markers.

The line/space heuristic is a layout approximation. It reads single-column
pages well; multi-column pages come out interleaved line by line.
"""

from __future__ import annotations

from typing import Iterable

from .models import TextToken
from .patterns import PAGE_MARKER, PAGE_MARKER_LINE

# Max vertical drift (PDF units) between tokens on the same line
LINE_TOLERANCE = 5.0

# Min horizontal gap (PDF units) that counts as a word break
SPACE_GAP = 2.0


def group_lines(
    tokens: Iterable[TextToken],
    line_tolerance: float = LINE_TOLERANCE,
) -> list[list[TextToken]]:
    """
    Group tokens into visual lines, top line first.

    Tokens are walked by descending y; a drop of more than
    ``line_tolerance`` from the previous token starts a new line.
    Each line is ordered left to right.
    """
    ordered = sorted(
        (t for t in tokens if len(t.text) > 0),
        key=lambda t: (-t.y, t.x),
    )

    lines: list[list[TextToken]] = []
    previous_y = None
    for token in ordered:
        if previous_y is None or abs(previous_y - token.y) > line_tolerance:
            lines.append([])
        lines[-1].append(token)
        previous_y = token.y

    for line in lines:
        line.sort(key=lambda t: t.x)
    return lines


def reconstruct_page_text(
    tokens: Iterable[TextToken],
    line_tolerance: float = LINE_TOLERANCE,
    space_gap: float = SPACE_GAP,
) -> str:
    """
    Rebuild one page's text from its tokens.

    Token text is copied verbatim; the only characters ever added are a
    single newline between lines and a single space for a horizontal gap
    wider than ``space_gap``.
    """
    parts: list[str] = []

    for line_index, line in enumerate(group_lines(tokens, line_tolerance)):
        if line_index > 0:
            parts.append("\n")

        previous = None
        for token in line:
            if previous is not None:
                gap = token.x - (previous.x + previous.width)
                if gap > space_gap:
                    parts.append(" ")
            parts.append(token.text)
            previous = token

    return "".join(parts)


def aggregate_pages(page_texts: Iterable[str]) -> str:
    """
    Join per-page texts into one document string.

    Each non-empty page is prefixed with a "--- PAGE n ---" marker line
    (n is the physical page number); empty pages are left out entirely.
    """
    chunks = []
    for index, text in enumerate(page_texts):
        if len(text) == 0:
            continue
        marker = PAGE_MARKER.format(number=index + 1)
        chunks.append(f"\n{marker}\n{text}")
    return "\n\n".join(chunks)


def strip_page_markers(text: str) -> str:
    """Remove page marker lines from a fragment of the aggregated text."""
    return PAGE_MARKER_LINE.sub("", text)
