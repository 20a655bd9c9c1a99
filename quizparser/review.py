"""
Review Report
=============
Post-extraction summary of everything a human should look at before the
questions are saved:
    - Questions whose options could not be parsed
    - Questions left with the "No explanation provided." fallback
    - Solutions that were mapped sequentially instead of by number
    - Gaps and duplicates in the question numbering
    - Figures attached

Never drops or edits a question; it only reports.
"""

from __future__ import annotations

import logging
from collections import Counter

from .models import NO_EXPLANATION, Confidence, ExtractedQuestion, ReviewReport
from .solutions import CONFIDENCE_PREFIXES

logger = logging.getLogger(__name__)


class ReviewEngine:
    """
    Builds a ReviewReport for a list of extracted questions.
    """

    def review(self, questions: list[ExtractedQuestion]) -> ReviewReport:
        """
        Summarise the extracted questions.

        Args:
            questions: Extracted questions in document order.

        Returns:
            ReviewReport listing questions that need attention.
        """
        report = ReviewReport()

        if not questions:
            logger.warning("No questions to review")
            return report

        report.total_questions = len(questions)

        numbers = [
            int(q.question_number)
            for q in questions
            if q.question_number and q.question_number.isdigit()
        ]
        if numbers:
            counts = Counter(numbers)
            report.duplicate_question_numbers = sorted(
                num for num, count in counts.items() if count > 1
            )
            expected = set(range(min(numbers), max(numbers) + 1))
            report.missing_question_numbers = sorted(expected - set(numbers))

        sequential_prefix = CONFIDENCE_PREFIXES[Confidence.MEDIUM]
        for q in questions:
            label = q.split_boundary or q.question_number or "?"

            if q.needs_review:
                report.needs_review.append(label)
            else:
                report.fully_parsed += 1

            if q.explanation == NO_EXPLANATION:
                report.missing_explanation.append(label)

            if q.explanation.startswith(sequential_prefix):
                report.sequentially_mapped.append(label)

            if q.has_figure:
                report.figures_attached += 1

        self._log_summary(report)
        return report

    def _log_summary(self, report: ReviewReport):
        logger.info("=" * 60)
        logger.info("REVIEW REPORT")
        logger.info("=" * 60)
        logger.info(f"Total Questions: {report.total_questions}")
        logger.info(
            f"Fully Parsed: {report.fully_parsed} ({report.parse_rate}%)"
        )
        logger.info(f"Needs Review: {len(report.needs_review)}")
        logger.info(
            f"Missing Explanation: {len(report.missing_explanation)}"
        )
        logger.info(
            f"Sequentially Mapped Solutions: {len(report.sequentially_mapped)}"
        )
        logger.info(
            f"Missing Question Numbers: {len(report.missing_question_numbers)}"
        )
        logger.info(
            f"Duplicate Question Numbers: "
            f"{len(report.duplicate_question_numbers)}"
        )
        logger.info(f"Figures Attached: {report.figures_attached}")
        logger.info("=" * 60)
