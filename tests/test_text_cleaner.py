"""Tests for whitespace normalization."""

import pytest

from ilcs.normalization.text_cleaner import (
    clean_section_number,
    normalize_newlines,
    normalize_nbsp,
    normalize_whitespace,
)


class TestNormalizeWhitespace:
    """Tests for normalize_whitespace."""

    def test_nbsp_runs_become_one_space(self) -> None:
        assert normalize_whitespace("CHAPTER\u00a0\u00a0\u00a05") == "CHAPTER 5"

    def test_newline_runs_become_one_newline(self) -> None:
        assert normalize_whitespace("a\n\n\nb\nc") == "a\nb\nc"

    def test_other_whitespace_untouched(self) -> None:
        """Ordinary spaces and tabs are not collapsed."""
        assert normalize_whitespace("a  b\tc") == "a  b\tc"

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "plain",
            "\u00a0\n\n\u00a0\u00a0x\n",
            "title: CHAPTER\u00a05 Foo\n\n\ntopic: GOVERNMENT",
            "\n\n\n",
        ],
    )
    def test_idempotent(self, text: str) -> None:
        once = normalize_whitespace(text)
        assert normalize_whitespace(once) == once

    def test_non_whitespace_preserved(self) -> None:
        text = "x\u00a0\u00a0y\n\n\nz§"
        stripped = lambda s: "".join(ch for ch in s if not ch.isspace())
        assert stripped(normalize_whitespace(text)) == stripped(text)

    def test_halves(self) -> None:
        assert normalize_nbsp("a\u00a0\u00a0b\n\nc") == "a b\n\nc"
        assert normalize_newlines("a\u00a0b\n\n\nc") == "a\u00a0b\nc"


class TestCleaning:
    """Tests for section-number cleanup."""

    def test_clean_section_number(self) -> None:
        assert clean_section_number("§  1-5") == "1-5"
