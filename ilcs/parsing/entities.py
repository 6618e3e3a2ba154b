"""Parse single raw index/section records into ILCS entities.

Raw records follow the extraction contract: one field per line, introduced by a
marker token::

    title: CHAPTER 5 GENERAL PROVISIONS
    topic: GOVERNMENT
    url: https://www.ilga.gov/legislation/ilcs/ilcs2.asp?ChapterID=2

All marker handling lives here; everything downstream sees typed records.
"""

from __future__ import annotations

import re
from typing import Optional

from ..ingestion.base import Act, Chapter, Section, SectionHeader, SectionSource, Subtopic
from ..ingestion.errors import MalformedRecordError
from ..normalization.text_cleaner import clean_section_number, normalize_nbsp, normalize_whitespace
from .topics import classify_topic

TITLE = "title"
TOPIC = "topic"
HREF = "url"

ACT_SEPARATOR = "/"

CHAPTER_NUMBER_RE = re.compile(r"(?<!\d)(\d{1,3})(?!\d)")
MARKER_RE = re.compile(r"^\s*(title|topic|url)\s*:(.*)$", re.IGNORECASE)

# (5 ILCS 70/1.01) (from Ch. 1, par. 1001)
CITATION_HEADER_RE = re.compile(
    r"^\((?P<citation>\d+\s+ILCS\s+[\w.\-]+/(?P<number>[\w.\-]+))\)\s*(?P<rest>.*)$",
    re.IGNORECASE,
)
# Sec. 1-5. Definitions.
SEC_HEADER_RE = re.compile(
    r"^(?:§+|Sec(?:tion)?\.?)\s*(?P<number>[\w\-]+(?:\.[\w\-]+)*)\.?\s*(?P<rest>.*)$",
    re.IGNORECASE,
)
FORMER_CITATION_RE = re.compile(r"^\(\s*from\s+(?P<former>[^)]*?)\s*\)", re.IGNORECASE)
CAPTION_RE = re.compile(r"^(?P<caption>.+?\.)(?:\s|$)")
SOURCE_RE =re.compile(r"^\(?\s*Source:\s*(?P<text>.*?)\s*\)?$", re.IGNORECASE)
PUBLIC_ACT_RE = re.compile(r"(?<![\d-])(\d{2,3}-\d{1,4})(?![\d-])")


def iter_marked_lines(record: str):
    """Yield ``(marker, payload)`` for each marker-prefixed line of a record."""
    for line in record.split("\n"):
        match = MARKER_RE.match(line)
        if match:
            yield match.group(1).lower(), match.group(2).strip()


def parse_chapter_number(payload: str) -> Optional[str]:
    """First standalone 1-3 digit numeral of a chapter title line."""
    match = CHAPTER_NUMBER_RE.search(payload)
    return match.group(1) if match else None


def parse_chapter_title(payload: str, number: str) -> str:
    """Text following the chapter numeral, e.g. ``CHAPTER 5 Foo`` -> ``Foo``."""
    match = re.search(rf"(?<!\d){re.escape(number)}(?!\d)", payload)
    if match is None:
        return payload.strip()
    return payload[match.end():].strip()


def parse_chapter(record: str) -> Chapter:
    """Build a Chapter from one raw chapter-index record.

    Raises:
        MalformedRecordError: if the record has no title marker, or its title
            line carries no chapter number or no title text.
    """
    record = normalize_whitespace(record)
    number = title = url = None
    topic = None
    seen_title = False

    for marker, payload in iter_marked_lines(record):
        if marker == TITLE:
            seen_title = True
            number = parse_chapter_number(payload)
            if number is not None:
                title = parse_chapter_title(payload, number)
        elif marker == TOPIC:
            topic = classify_topic(payload)
        elif marker == HREF:
            url = payload or None

    if not seen_title:
        raise MalformedRecordError("chapter record has no title line")
    if number is None:
        raise MalformedRecordError("chapter title line has no chapter number")
    if not title:
        raise MalformedRecordError(f"chapter {number} has an empty title")

    return Chapter(number=number, title=title, topic=topic, url=url)


def parse_act_prefix(payload: str) -> Optional[str]:
    """Citation prefix up to and including the first separator (``5 ILCS 70/``)."""
    head, sep, _ = payload.partition(ACT_SEPARATOR)
    if not sep:
        return None
    return f"{head.strip()}{sep}"


def parse_act_title(payload: str) -> str:
    _, sep, tail = payload.partition(ACT_SEPARATOR)
    return tail.strip() if sep else payload.strip()


def parse_act_subtopic(payload: str) -> Optional[Subtopic]:
    name = payload.strip()
    return Subtopic(name=name) if name else None


def parse_act(record: str) -> Act:
    """Build an Act from one raw act-index record.

    Raises:
        MalformedRecordError: if the record has no title marker or an empty title.
    """
    record = normalize_whitespace(record)
    prefix = title = url = None
    subtopic = None
    seen_title = False

    for marker, payload in iter_marked_lines(record):
        if marker == TITLE:
            seen_title = True
            prefix = parse_act_prefix(payload)
            title = parse_act_title(payload)
        elif marker == HREF:
            url = payload or None
        elif marker == TOPIC:
            subtopic = parse_act_subtopic(payload)

    if not seen_title:
        raise MalformedRecordError("act record has no title line")
    if not title:
        raise MalformedRecordError(f"act record {prefix!r} has an empty title")

    return Act(title=title, prefix=prefix, url=url, subtopic=subtopic)


def parse_section_caption(rest: str) -> Optional[str]:
    """First sentence after a ``Sec. N.`` label: ``Short title. This Act...`` -> ``Short title.``"""
    rest = rest.strip()
    if not rest:
        return None
    match = CAPTION_RE.match(rest)
    return match.group("caption") if match else rest


def _match_sec_line(line: str):
    match = SEC_HEADER_RE.match(line)
    if match and any(ch.isdigit() for ch in match.group("number")):
        return match
    return None


def parse_section_header(line: str) -> SectionHeader:
    """Parse a citation header ``(5 ILCS 70/1)`` or a ``Sec. 1.`` header line.

    A citation header carries no caption itself; its trailing
    ``(from Ch. 1, par. 1001)`` goes to ``former_citation``.
    """
    match = CITATION_HEADER_RE.match(line)
    if match:
        former = FORMER_CITATION_RE.match(match.group("rest").strip())
        return SectionHeader(
            number=match.group("number"),
            citation=re.sub(r"\s+", " ", match.group("citation")),
            former_citation=former.group("former") if former else None,
        )

    match = _match_sec_line(line)
    if match:
        return SectionHeader(
            number=clean_section_number(match.group("number")),
            caption=parse_section_caption(match.group("rest")),
        )

    raise MalformedRecordError(f"no section number in header {line[:60]!r}")


def parse_section_source(line: str) -> SectionSource:
    """Parse the closing ``(Source: P.A. ...)`` line of a section."""
    match = SOURCE_RE.match(line)
    text = match.group("text") if match else line
    return SectionSource(text=text, public_acts=PUBLIC_ACT_RE.findall(text))


def parse_section_text(lines: list[str]) -> str:
    return "\n".join(lines[1:-1])


def parse_section(record: str) -> Section:
    """Build a Section: header line, body lines, source line.

    Under a citation header the caption is read from the ``Sec. N. Caption.``
    line opening the body. That line stays in the body text as printed.

    Raises:
        MalformedRecordError: if fewer than two non-empty lines remain or the
            header has no section number.
    """
    lines = [normalize_nbsp(line).strip() for line in record.split("\n")]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        raise MalformedRecordError("section record needs a header and a source line")

    header = parse_section_header(lines[0])
    if header.caption is None and len(lines) > 2:
        match = _match_sec_line(lines[1])
        if match:
            header.caption = parse_section_caption(match.group("rest"))

    return Section(
        header=header,
        text=parse_section_text(lines),
        source=parse_section_source(lines[-1]),
    )
