"""Canonical data structures for the Illinois Compiled Statutes hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Topic:
    """A major topic (100 series) of the ILCS chapter index."""

    series: str
    name: str


@dataclass(frozen=True)
class Subtopic:
    """Subtopic reference attached to an act, by name only."""

    name: str


@dataclass
class SectionHeader:
    """Parsed heading of a section.

    ``former_citation`` is the pre-1993 chapter and paragraph reference that
    ILGA prints after the citation, e.g. ``Ch. 1, par. 1001``.
    """

    number: str
    caption: Optional[str] = None
    citation: Optional[str] = None
    former_citation: Optional[str] = None


@dataclass
class SectionSource:
    """Parsed ``(Source: ...)`` line closing a section."""

    text: str
    public_acts: list[str] = field(default_factory=list)


@dataclass
class Section:
    """A single statute section (the atomic unit of law)."""

    header: SectionHeader
    text: str
    source: SectionSource


@dataclass
class Act:
    """An act listed under a chapter."""

    title: str
    prefix: Optional[str] = None
    url: Optional[str] = None
    subtopic: Optional[Subtopic] = None
    sections: list[Section] = field(default_factory=list)


@dataclass
class Chapter:
    """A chapter of the ILCS containing acts."""

    number: str
    title: str
    topic: Optional[Topic] = None
    url: Optional[str] = None
    acts: list[Act] = field(default_factory=list)
