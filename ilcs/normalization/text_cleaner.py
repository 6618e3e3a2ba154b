"""Text cleaning utilities for scraped statute text."""

import re

NBSP_RE = re.compile("\u00a0+")
NEWLINES_RE = re.compile(r"\n+")


def normalize_nbsp(text: str) -> str:
    """Replace each run of non-breaking spaces with a single space."""
    return NBSP_RE.sub(" ", text)


def normalize_newlines(text: str) -> str:
    """Collapse each run of newlines into one."""
    return NEWLINES_RE.sub("\n", text)


def normalize_whitespace(text: str) -> str:
    """Canonicalize non-breaking spaces and repeated newlines.

    Only those two whitespace forms are touched, so the function is
    idempotent and leaves every other character where it was.
    """
    return normalize_newlines(normalize_nbsp(text))


def clean_section_number(number: str) -> str:
    """Normalize a section number (strip '§' prefix, extra whitespace)."""
    number = number.replace("§", "")
    number = re.sub(r"\s+", " ", number).strip()
    return number
