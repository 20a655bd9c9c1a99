"""
Extraction Engine
=================
Main orchestrator that turns a PDF into an ordered list of multiple-choice
questions.

Usage:
    engine = ExtractionEngine(config)
    questions = engine.extract(pdf_bytes, category="physics", year=2023)

Architecture:
    PDF → PdfDocument → TextTokens → page text → full text →
    sections / solutions header → QuestionBlocks → ParsedBlocks →
    solution mapping → ExtractedQuestions

The run is sequential and runs to completion: there is no cancellation
hook. An exception raised from ``progress_callback`` aborts the run and
still closes the document.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .block_parser import parse_question_block
from .document import PdfDocument, PdfSource
from .errors import EmptyDocumentError, NoQuestionsFoundError, NoSelectableTextError
from .figures import (
    DEFAULT_FIGURE_SCALE,
    FigureStrategy,
    NoFigures,
    OnePagePerQuestionFigures,
)
from .models import ExtractedQuestion, QuestionBlock, SplitStrategy
from .review import ReviewEngine
from .sections import detect_sections, detect_solutions_section, split_regions
from .solutions import apply_solution_mapping, map_solutions, parse_solutions
from .splitter import MIN_BLOCK_LENGTH, split_questions
from .text_reconstruction import LINE_TOLERANCE, SPACE_GAP, aggregate_pages, reconstruct_page_text

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ProgressCallback = Callable[[int, int], None]


@dataclass
class ParserConfig:
    """Configuration for the extraction engine."""

    # Figures
    extract_figures: bool = True
    figure_scale: float = DEFAULT_FIGURE_SCALE

    # Text reconstruction
    line_tolerance: float = LINE_TOLERANCE
    space_gap: float = SPACE_GAP

    # Splitting
    min_block_length: int = MIN_BLOCK_LENGTH

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Log a ReviewReport summary after each run
    review_summary: bool = True


class ExtractionEngine:
    """
    PDF → questions pipeline.

    Holds configuration only; every ``extract`` call opens and owns its own
    document handle, so one engine can serve parallel requests.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("quizparser")
        package_logger.setLevel(log_level)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(formatter)
            package_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file)
            already_attached = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path.absolute()
                for h in package_logger.handlers
            )
            if not already_attached:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(formatter)
                package_logger.addHandler(file_handler)

    def extract(
        self,
        source: PdfSource,
        category: str,
        year: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> list[ExtractedQuestion]:
        """
        Extract multiple-choice questions from a PDF.

        Args:
            source: PDF bytes or a path to a PDF file.
            category: Category tag stamped on every question.
            year: Optional year stamped on every question.
            progress_callback: Callback(page_num, total_pages) per page read.

        Returns:
            Questions in document reading order.

        Raises:
            FileNotFoundError: If a path is given and does not exist.
            EmptyDocumentError: If the PDF has no pages or cannot be opened.
            NoSelectableTextError: If no page carries extractable text.
            NoQuestionsFoundError: If no question block could be recovered.
        """
        start_time = time.time()

        with PdfDocument.open(source) as document:
            logger.info(f"Starting extraction of: {document.name}")

            if document.page_count == 0:
                raise EmptyDocumentError()

            # ── Phase 1: Text ─────────────────────────────────────────
            logger.info("Phase 1: Text reconstruction")
            full_text = self._read_text(document, progress_callback)
            if not full_text.strip():
                raise NoSelectableTextError()

            # ── Phase 2: Structure ────────────────────────────────────
            logger.info("Phase 2: Section and solutions detection")
            sections = detect_sections(full_text)
            header = detect_solutions_section(full_text)
            questions_text, solutions_text = split_regions(full_text, header)

            # ── Phase 3: Questions ────────────────────────────────────
            logger.info("Phase 3: Question splitting and parsing")
            split = split_questions(
                questions_text, sections, self.config.min_block_length
            )
            figures = self._figure_strategy(document, split.strategy)
            questions = [
                self._build_question(block, category, year, figures)
                for block in split.blocks
            ]

            # ── Phase 4: Solutions ────────────────────────────────────
            if (
                split.strategy == SplitStrategy.NUMBERED
                and solutions_text.strip()
                and questions
            ):
                logger.info("Phase 4: Solution mapping")
                entries = parse_solutions(solutions_text)
                mapping = map_solutions(
                    [q.question_number for q in questions], entries
                )
                questions = apply_solution_mapping(questions, mapping)

        if not questions:
            raise NoQuestionsFoundError()

        elapsed = time.time() - start_time
        logger.info(
            f"Extraction complete in {elapsed:.2f}s: "
            f"{len(questions)} questions extracted ({split.strategy.value} split)"
        )

        if self.config.review_summary:
            ReviewEngine().review(questions)

        return questions

    def _read_text(
        self,
        document: PdfDocument,
        progress_callback: Optional[ProgressCallback],
    ) -> str:
        """Reconstruct every page in order and join them with page markers."""
        total = document.page_count
        page_texts = []
        for page_number in range(1, total + 1):
            tokens = document.page_tokens(page_number)
            page_texts.append(reconstruct_page_text(
                tokens,
                line_tolerance=self.config.line_tolerance,
                space_gap=self.config.space_gap,
            ))
            if progress_callback:
                progress_callback(page_number, total)

        empty_pages = sum(1 for text in page_texts if not text)
        if empty_pages:
            logger.info(f"{empty_pages} of {total} pages have no text")
        return aggregate_pages(page_texts)

    def _figure_strategy(
        self,
        document: PdfDocument,
        strategy: SplitStrategy,
    ) -> FigureStrategy:
        if self.config.extract_figures and strategy == SplitStrategy.NUMBERED:
            return OnePagePerQuestionFigures(document, self.config.figure_scale)
        return NoFigures()

    def _build_question(
        self,
        block: QuestionBlock,
        category: str,
        year: Optional[int],
        figures: FigureStrategy,
    ) -> ExtractedQuestion:
        parsed = parse_question_block(block.text)
        logger.debug(
            f"{block.split_boundary}: options={parsed.option_strategy}, "
            f"answer={parsed.correct_option} ({parsed.answer_strategy})"
        )
        return ExtractedQuestion(
            question_text=parsed.question_text,
            option_a=parsed.options["A"],
            option_b=parsed.options["B"],
            option_c=parsed.options["C"],
            option_d=parsed.options["D"],
            correct_option=parsed.correct_option,
            explanation=parsed.explanation,
            category=category,
            year=year,
            split_boundary=block.split_boundary,
            section_label=block.section_label,
            question_number=block.question_number,
            question_image=figures.figure_for(block.ordinal),
        )
