"""
Test Suite for Quiz PDF Parser
==============================
Unit tests for the text, splitting, parsing and mapping components.
"""

from __future__ import annotations

import base64
import json

import pytest
from pydantic import ValidationError

from quizparser.block_parser import detect_answer, detect_options, parse_question_block
from quizparser.models import (
    MISSING_QUESTION_TEXT,
    NO_EXPLANATION,
    REVIEW_PLACEHOLDER,
    Confidence,
    ExtractedQuestion,
    SolutionEntry,
    SplitStrategy,
    TextToken,
)
from quizparser.patterns import QUESTION_MARKER_PATTERN, SOLUTION_HEADER_PATTERNS
from quizparser.review import ReviewEngine
from quizparser.sections import (
    detect_sections,
    detect_solutions_section,
    section_for_offset,
    split_regions,
)
from quizparser.solutions import (
    apply_solution_mapping,
    format_solution_for_explanation,
    map_solutions,
    parse_solutions,
)
from quizparser.splitter import split_numbered, split_paragraphs, split_questions
from quizparser.text_reconstruction import (
    aggregate_pages,
    group_lines,
    reconstruct_page_text,
    strip_page_markers,
)


def _question(**overrides) -> ExtractedQuestion:
    fields = dict(
        question_text="What is 2+2?",
        option_a="3",
        option_b="4",
        option_c="5",
        option_d="6",
        correct_option="B",
        explanation=NO_EXPLANATION,
        category="math",
    )
    fields.update(overrides)
    return ExtractedQuestion(**fields)


# ═══════════════════════════════════════════════════════════════════════════════
# MODEL TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestExtractedQuestion:
    """Test ExtractedQuestion model."""

    def test_defaults(self):
        q = ExtractedQuestion(question_text="Why?", category="physics")
        assert q.correct_option == "A"
        assert q.explanation == NO_EXPLANATION
        assert q.year is None
        assert q.question_image is None
        assert q.has_figure is False

    def test_correct_option_must_be_a_letter(self):
        with pytest.raises(ValidationError):
            _question(correct_option="E")

    def test_question_text_cannot_be_empty(self):
        with pytest.raises(ValidationError):
            _question(question_text="")

    def test_is_immutable(self):
        q = _question()
        with pytest.raises(ValidationError):
            q.explanation = "changed"

    def test_image_serialized_as_base64(self):
        png = b"\x89PNG\r\n\x1a\nfake"
        q = _question(question_image=png)
        data = q.model_dump(mode="json")
        assert data["question_image"] == base64.b64encode(png).decode("ascii")
        assert data["has_figure"] is True
        # Whole record must be JSON-serializable for the review UI
        json.dumps(data)

    def test_needs_review_for_unparsed(self):
        q = _question(
            option_a="", option_b="", option_c="", option_d="",
            explanation=REVIEW_PLACEHOLDER,
        )
        assert q.needs_review is True
        assert _question().needs_review is False


# ═══════════════════════════════════════════════════════════════════════════════
# TEXT RECONSTRUCTION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestTextReconstruction:
    """Test token → text reconstruction."""

    def test_empty_input(self):
        assert reconstruct_page_text([]) == ""

    def test_same_line_gaps_insert_single_spaces(self):
        tokens = [
            TextToken(text="What", x=10, y=700, width=20),
            TextToken(text="is", x=35, y=700, width=8),
            TextToken(text="this?", x=50, y=700, width=20),
        ]
        text = reconstruct_page_text(tokens)
        assert text == "What is this?"
        assert "\n" not in text

    def test_small_gap_inserts_no_space(self):
        tokens = [
            TextToken(text="ab", x=10, y=700, width=10),
            TextToken(text="cd", x=21, y=700, width=10),
        ]
        assert reconstruct_page_text(tokens) == "abcd"

    def test_x_order_within_line_ignores_input_order(self):
        tokens = [
            TextToken(text="world", x=50, y=700, width=25),
            TextToken(text="Hello", x=10, y=701, width=30),
        ]
        assert reconstruct_page_text(tokens) == "Hello world"

    def test_line_break_on_y_delta(self):
        tokens = [
            TextToken(text="Second", x=10, y=600, width=30),
            TextToken(text="First", x=10, y=700, width=30),
        ]
        assert reconstruct_page_text(tokens) == "First\nSecond"

    def test_large_y_gap_gives_exactly_one_newline(self):
        tokens = [
            TextToken(text="Top", x=10, y=800, width=30),
            TextToken(text="Bottom", x=10, y=100, width=30),
        ]
        assert reconstruct_page_text(tokens).count("\n") == 1

    def test_within_tolerance_is_same_line(self):
        tokens = [
            TextToken(text="(A)", x=10, y=700, width=12),
            TextToken(text="Mars", x=30, y=696, width=20),
        ]
        assert reconstruct_page_text(tokens) == "(A) Mars"

    def test_unicode_is_preserved(self):
        tokens = [
            TextToken(text="λ = 2π·r", x=10, y=700, width=40),
            TextToken(text="∑ café ≥ 5", x=60, y=700, width=40),
            TextToken(text="日本語", x=10, y=680, width=30),
        ]
        assert reconstruct_page_text(tokens) == "λ = 2π·r ∑ café ≥ 5\n日本語"

    def test_zero_length_tokens_are_discarded(self):
        tokens = [
            TextToken(text="", x=0, y=100, width=0),
            TextToken(text="Only", x=10, y=700, width=20),
        ]
        assert reconstruct_page_text(tokens) == "Only"

    def test_group_lines_top_first(self):
        tokens = [
            TextToken(text="b", x=10, y=500),
            TextToken(text="a", x=10, y=700),
        ]
        lines = group_lines(tokens)
        assert [[t.text for t in line] for line in lines] == [["a"], ["b"]]


class TestPageAggregation:
    """Test page marker aggregation."""

    def test_markers_and_separators(self):
        text = aggregate_pages(["first page", "second page"])
        assert text == (
            "\n--- PAGE 1 ---\nfirst page\n\n\n--- PAGE 2 ---\nsecond page"
        )

    def test_empty_pages_are_skipped(self):
        text = aggregate_pages(["", "page two", ""])
        assert "PAGE 1" not in text
        assert "PAGE 3" not in text
        assert "--- PAGE 2 ---\npage two" in text

    def test_all_empty(self):
        assert aggregate_pages(["", ""]) == ""

    def test_strip_page_markers(self):
        text = aggregate_pages(["alpha", "beta"])
        assert strip_page_markers(text).split() == ["alpha", "beta"]


# ═══════════════════════════════════════════════════════════════════════════════
# SECTION DETECTION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestSectionDetection:
    """Test section and solutions header detection."""

    def test_sections_with_offsets(self):
        text = "Intro\nSECTION A\nq1\nSection b\nq2"
        sections = detect_sections(text)
        assert [s.label for s in sections] == ["SECTION A", "Section b"]
        assert text[sections[0].start_offset:].startswith("q1")
        assert text[sections[1].start_offset:].startswith("q2")

    def test_section_must_be_own_line(self):
        assert detect_sections("See SECTION A for details") == []

    def test_no_sections(self):
        assert detect_sections("1. Question\n2. Question") == []

    def test_section_for_offset(self):
        sections = detect_sections("SECTION A\nxx\nSECTION B\nyy")
        assert section_for_offset(sections, 0) == ""
        assert section_for_offset(sections, sections[0].start_offset) == "SECTION A"
        assert section_for_offset(sections, sections[1].start_offset + 1) == "SECTION B"

    @pytest.mark.parametrize("header, name", [
        ("Solutions", "solutions"),
        ("SOLUTION", "solutions"),
        ("Answer Key", "answer_key"),
        ("answers", "answers"),
        ("Sol.", "sol"),
        ("Detailed Solutions", "detailed_solutions"),
    ])
    def test_solution_header_variants(self, header, name):
        result = detect_solutions_section(f"1. Question\n{header}\n1. Because")
        assert result.found
        assert result.pattern == name

    def test_inline_mention_is_not_a_header(self):
        result = detect_solutions_section("The solutions are at the end.\nAnswer: B")
        assert not result.found
        assert result.start_offset == -1

    def test_first_header_in_document_order_wins(self):
        # "solutions" comes first in the table but later in the text
        text = "Intro\nAnswers\nstuff\nSolutions\nmore"
        result = detect_solutions_section(text)
        assert result.pattern == "answers"
        assert text[result.start_offset:].startswith("\nstuff")

    def test_split_regions(self):
        text = "1. Question one?\nSolutions\n1. Because."
        header = detect_solutions_section(text)
        questions, solutions = split_regions(text, header)
        assert questions == "1. Question one?\n"
        assert solutions == "\n1. Because."

    def test_split_regions_without_header(self):
        text = "just questions"
        questions, solutions = split_regions(text, detect_solutions_section(text))
        assert questions == text
        assert solutions == ""

    def test_header_table_order(self):
        assert [p.name for p in SOLUTION_HEADER_PATTERNS] == [
            "solutions", "answer_key", "answers", "sol", "detailed_solutions",
        ]


# ═══════════════════════════════════════════════════════════════════════════════
# QUESTION SPLITTER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestQuestionMarkers:
    """Test the numbered question marker pattern."""

    @pytest.mark.parametrize("line", [
        "1. What", "12) What", "Q3: What", "q4. What",
        "Question 5: What", "  7. Indented",
    ])
    def test_markers(self, line):
        assert QUESTION_MARKER_PATTERN.search(line)

    @pytest.mark.parametrize("line", [
        "3.5 metres per second",
        "The answer is 4.",
        "A) 3",
    ])
    def test_non_markers(self, line):
        assert not QUESTION_MARKER_PATTERN.search(line)


class TestQuestionSplitter:
    """Test numbered and paragraph splitting."""

    def test_numbered_split(self):
        text = "1. First question text\n2. Second question text"
        result = split_questions(text)
        assert result.strategy == SplitStrategy.NUMBERED
        assert [b.text for b in result.blocks] == [
            "First question text", "Second question text",
        ]
        assert [b.split_boundary for b in result.blocks] == ["Q1", "Q2"]
        assert [b.question_number for b in result.blocks] == ["1", "2"]
        assert all(b.section_label is None for b in result.blocks)

    def test_section_tagging(self):
        text = (
            "SECTION A\n"
            "1. First question text here\n"
            "2. Second question text here\n"
            "Section B\n"
            "3. Third question text here"
        )
        blocks = split_questions(text, detect_sections(text)).blocks
        assert [b.split_boundary for b in blocks] == [
            "SECTION A • Q1", "SECTION A • Q2", "Section B • Q3",
        ]
        # The next section's header never ends up inside a question
        assert blocks[1].text == "Second question text here"

    def test_short_blocks_dropped_and_ordinals_compact(self):
        text = "1. Valid question text\n2. short\n3. Another valid question"
        blocks = split_numbered(text)
        assert [b.question_number for b in blocks] == ["1", "3"]
        assert [b.ordinal for b in blocks] == [0, 1]

    def test_page_markers_removed_from_blocks(self):
        text = aggregate_pages([
            "1. First question on page one",
            "2. Second question on page two",
        ])
        blocks = split_questions(text).blocks
        assert [b.text for b in blocks] == [
            "First question on page one", "Second question on page two",
        ]

    def test_single_marker_falls_back_to_paragraphs(self):
        text = "1. Only one numbered question here\n\nAnother paragraph question"
        result = split_questions(text)
        assert result.strategy == SplitStrategy.PARAGRAPH
        assert [b.split_boundary for b in result.blocks] == ["Block 1", "Block 2"]
        assert all(b.question_number is None for b in result.blocks)

    def test_paragraph_split_drops_fragments(self):
        text = "First paragraph question?\n\ntiny\n\n  \n\nSecond paragraph question?"
        blocks = split_paragraphs(text)
        assert [b.text for b in blocks] == [
            "First paragraph question?", "Second paragraph question?",
        ]
        assert [b.split_boundary for b in blocks] == ["Block 1", "Block 2"]

    def test_nothing_usable(self):
        result = split_questions("Hello")
        assert result.strategy == SplitStrategy.PARAGRAPH
        assert result.blocks == []


# ═══════════════════════════════════════════════════════════════════════════════
# BLOCK PARSER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestBlockParser:
    """Test question block parsing."""

    def test_reference_question(self):
        text = "1. What is 2+2?\nA) 3\nB) 4\nC) 5\nD) 6\nAnswer: B"
        blocks = split_numbered(text)
        assert len(blocks) == 1

        parsed = parse_question_block(blocks[0].text)
        assert parsed.parsed is True
        assert parsed.question_text == "What is 2+2?"
        assert parsed.options == {"A": "3", "B": "4", "C": "5", "D": "6"}
        assert parsed.correct_option == "B"
        assert parsed.explanation == NO_EXPLANATION
        assert parsed.option_strategy == "delimited"
        assert parsed.answer_strategy == "labelled"

    def test_parenthesized_options(self):
        block = "Which planet is largest?\n(A) Mars\n(B) Venus\n(C) Jupiter\n(D) Earth"
        parsed = parse_question_block(block)
        assert parsed.options["C"] == "Jupiter"
        assert parsed.correct_option == "A"

    def test_dot_and_colon_options(self):
        block = "Pick one\nA. alpha\nB: beta\nc. gamma\nd: delta"
        parsed = parse_question_block(block)
        assert parsed.options == {
            "A": "alpha", "B": "beta", "C": "gamma", "D": "delta",
        }

    def test_bare_letter_fallback(self):
        block = "Pick one\nA one\nB two\nC three\nD four"
        parsed = parse_question_block(block)
        assert parsed.option_strategy == "bare"
        assert parsed.options["D"] == "four"

    def test_bare_letter_stem_is_read_as_option(self):
        # Known limit of the bare strategy: "A ball ..." looks like option A
        block = "A ball is dropped from rest.\nA 1 m\nB 2 m\nC 3 m\nD 4 m"
        parsed = parse_question_block(block)
        assert parsed.option_strategy == "bare"
        assert parsed.question_text == MISSING_QUESTION_TEXT
        assert parsed.options["D"] == ""

    def test_multiline_option_text(self):
        block = "Question?\nA) first line\ncontinued\nB) b\nC) c\nD) d"
        parsed = parse_question_block(block)
        assert parsed.options["A"] == "first line\ncontinued"

    def test_explanation_after_answer(self):
        block = (
            "Which is prime?\nA) 4\nB) 6\nC) 7\nD) 9\n"
            "Answer: C\nExplanation: Seven has no divisors."
        )
        parsed = parse_question_block(block)
        assert parsed.correct_option == "C"
        assert parsed.explanation == "Seven has no divisors."

    def test_correct_answer_is_phrase(self):
        block = "Q?\nA) w\nB) x\nC) y\nD) z\nCorrect answer is D because z."
        parsed = parse_question_block(block)
        assert parsed.correct_option == "D"

    def test_correct_in_explanation_prose_is_not_an_answer(self):
        block = (
            "Which organelle makes ATP?\n"
            "A) Nucleus\nB) Ribosome\nC) Mitochondria\nD) Golgi\n"
            "Explanation: Statement is correct. A cell uses it for energy.\n"
            "Answer: C"
        )
        parsed = parse_question_block(block)
        assert parsed.correct_option == "C"
        assert parsed.answer_strategy == "labelled"
        assert parsed.explanation == (
            "Statement is correct. A cell uses it for energy."
        )

    def test_abbreviated_answer_label(self):
        block = "Q?\nA) w\nB) x\nC) y\nD) z\nAns. C"
        parsed = parse_question_block(block)
        assert parsed.correct_option == "C"

    def test_trailing_correct_indicator(self):
        block = (
            "Which is prime?\nA. 4\nB. 6\nC. 7\nD. 9\n"
            "(C) is correct because seven has no divisors"
        )
        parsed = parse_question_block(block)
        assert parsed.correct_option == "C"
        assert parsed.answer_strategy == "trailing"
        assert parsed.explanation == "because seven has no divisors"

    def test_extra_matches_after_fourth_option(self):
        block = "Pick one\nA) x1\nB) x2\nC) x3\nD) x4\nAnswer: C\nA: is too small"
        parsed = parse_question_block(block)
        assert parsed.options["D"] == "x4"
        assert parsed.correct_option == "C"
        assert parsed.explanation == "A: is too small"

    def test_missing_answer_defaults_to_a(self):
        block = "Q?\nA) w\nB) x\nC) y\nD) z\nExplanation: Some detailed reasoning here."
        parsed = parse_question_block(block)
        assert parsed.correct_option == "A"
        assert parsed.answer_strategy is None
        assert parsed.explanation == "Some detailed reasoning here."

    def test_short_explanation_replaced(self):
        block = "Q?\nA) w\nB) x\nC) y\nD) z\nAnswer: B ok"
        parsed = parse_question_block(block)
        assert parsed.explanation == NO_EXPLANATION

    def test_options_without_stem(self):
        parsed = parse_question_block("A) 1\nB) 2\nC) 3\nD) 4")
        assert parsed.question_text == MISSING_QUESTION_TEXT

    def test_unparsed_block(self):
        block = "Describe the water cycle in detail.\nA) evaporation"
        parsed = parse_question_block(block)
        assert parsed.parsed is False
        assert parsed.question_text == block
        assert parsed.options == {"A": "", "B": "", "C": "", "D": ""}
        assert parsed.correct_option == "A"
        assert parsed.explanation == (
            "Please review and complete the options and explanation."
        )

    def test_detect_options_unmatched(self):
        detection = detect_options("no options at all")
        assert not detection.matched
        assert detection.strategy is None

    def test_detect_answer_unmatched(self):
        assert not detect_answer("nothing to see").matched


# ═══════════════════════════════════════════════════════════════════════════════
# SOLUTION PARSER / MAPPER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestSolutionParser:
    """Test solution entry parsing."""

    def test_entries_with_prefixes(self):
        text = (
            "\n1. Because four.\nIt is even.\n"
            "Q2) Paris is the capital.\n"
            "Sol 3: Nitrogen.\n"
            "4.\n"
        )
        entries = parse_solutions(text)
        assert [e.question_number for e in entries] == ["1", "2", "3"]
        assert entries[0].solution_text == "Because four.\nIt is even."
        assert entries[1].solution_text == "Paris is the capital."
        assert entries[2].solution_text == "Nitrogen."
        assert all(e.confidence == Confidence.HIGH for e in entries)

    def test_text_on_next_line(self):
        entries = parse_solutions("1.\nExplained below the number.")
        assert len(entries) == 1
        assert entries[0].solution_text == "Explained below the number."

    def test_page_markers_ignored(self):
        text = "\n1. First solution\n\n\n--- PAGE 3 ---\n2. Second solution"
        entries = parse_solutions(text)
        assert [e.solution_text for e in entries] == [
            "First solution", "Second solution",
        ]

    def test_empty_region(self):
        assert parse_solutions("") == []


class TestSolutionMapper:
    """Test solution → question mapping."""

    def test_direct_mapping_only(self):
        mapping = map_solutions(
            ["1", "2", "3"],
            [SolutionEntry(question_number="2", solution_text="two")],
        )
        assert list(mapping) == [1]
        assert mapping[1].confidence == Confidence.HIGH

    def test_sequential_fallback_for_leftovers(self):
        entries = [
            SolutionEntry(question_number="2", solution_text="two"),
            SolutionEntry(question_number="9", solution_text="nine"),
            SolutionEntry(question_number="8", solution_text="eight"),
        ]
        mapping = map_solutions(["1", "2", "3"], entries)
        assert mapping[1].solution_text == "two"
        assert mapping[1].confidence == Confidence.HIGH
        assert mapping[0].solution_text == "nine"
        assert mapping[0].confidence == Confidence.MEDIUM
        assert mapping[2].solution_text == "eight"
        assert mapping[2].confidence == Confidence.MEDIUM

    def test_more_leftovers_than_questions(self):
        entries = [
            SolutionEntry(question_number="5", solution_text="a"),
            SolutionEntry(question_number="6", solution_text="b"),
        ]
        mapping = map_solutions(["1"], entries)
        assert list(mapping) == [0]
        assert mapping[0].solution_text == "a"

    def test_questions_without_numbers(self):
        mapping = map_solutions(
            [None, "2"],
            [SolutionEntry(question_number="2", solution_text="two")],
        )
        assert list(mapping) == [1]

    def test_format_prefixes(self):
        assert format_solution_for_explanation("x", Confidence.HIGH) == "x"
        assert format_solution_for_explanation("x", Confidence.MEDIUM) == (
            "[ℹ️ Please Verify - Sequential Mapping]\n\nx"
        )
        assert format_solution_for_explanation("x", Confidence.LOW).startswith(
            "[⚠️ Review Required"
        )

    def test_apply_only_replaces_placeholders(self):
        questions = [
            _question(explanation=NO_EXPLANATION),
            _question(explanation=REVIEW_PLACEHOLDER),
            _question(explanation="Parsed from the block itself."),
        ]
        mapping = {
            0: SolutionEntry(question_number="1", solution_text="sol one"),
            1: SolutionEntry(
                question_number="7",
                solution_text="sol two",
                confidence=Confidence.MEDIUM,
            ),
            2: SolutionEntry(question_number="3", solution_text="sol three"),
        }
        result = apply_solution_mapping(questions, mapping)
        assert result[0].explanation == "sol one"
        assert result[1].explanation == (
            "[ℹ️ Please Verify - Sequential Mapping]\n\nsol two"
        )
        assert result[2].explanation == "Parsed from the block itself."
        # Originals are untouched
        assert questions[0].explanation == NO_EXPLANATION


# ═══════════════════════════════════════════════════════════════════════════════
# REVIEW ENGINE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestReviewEngine:
    """Test the review report."""

    def test_empty_questions(self):
        report = ReviewEngine().review([])
        assert report.total_questions == 0
        assert report.parse_rate == 0.0

    def test_report(self):
        questions = [
            _question(question_number="1", split_boundary="Q1",
                      explanation="Because."),
            _question(question_number="2", split_boundary="Q2",
                      option_a="", option_b="", option_c="", option_d="",
                      explanation=REVIEW_PLACEHOLDER),
            _question(question_number="4", split_boundary="Q4",
                      question_image=b"png"),
            _question(question_number="4", split_boundary="Q4",
                      explanation="[ℹ️ Please Verify - Sequential Mapping]\n\nx"),
        ]
        report = ReviewEngine().review(questions)

        assert report.total_questions == 4
        assert report.fully_parsed == 3
        assert report.parse_rate == 75.0
        assert report.needs_review == ["Q2"]
        assert report.missing_explanation == ["Q4"]
        assert report.sequentially_mapped == ["Q4"]
        assert report.figures_attached == 1
        assert report.missing_question_numbers == [3]
        assert report.duplicate_question_numbers == [4]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
