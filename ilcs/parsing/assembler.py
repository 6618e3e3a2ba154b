"""Split raw multi-record text blobs into typed records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterator, TypeVar

from ..ingestion.base import Act, Chapter, Section
from ..ingestion.errors import MalformedRecordError
from .entities import parse_act, parse_chapter, parse_section

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECORD_DELIMITER = "\n\n"
SECTION_TOKEN = "\n<<<SECTION>>>\n"


@dataclass
class AssemblyResult(Generic[T]):
    """Parsed records in source order plus the number of discarded candidates."""

    records: list[T] = field(default_factory=list)
    discarded: int = 0
    candidates: int = 0

    def __iter__(self) -> Iterator[T]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> T:
        return self.records[index]


def split_candidates(blob: str, delimiter: str = RECORD_DELIMITER) -> list[str]:
    """Split a blob on ``delimiter``, dropping empty and whitespace-only pieces."""
    return [piece for piece in blob.split(delimiter) if piece.strip()]


def assemble_records(
    blob: str,
    parse_one: Callable[[str], T],
    delimiter: str = RECORD_DELIMITER,
) -> AssemblyResult[T]:
    """Apply ``parse_one`` to every record candidate of ``blob``.

    Candidates rejected with MalformedRecordError are skipped and counted;
    any other exception propagates.
    """
    candidates = split_candidates(blob, delimiter)
    result: AssemblyResult[T] = AssemblyResult(candidates=len(candidates))

    for candidate in candidates:
        try:
            result.records.append(parse_one(candidate))
        except MalformedRecordError as e:
            result.discarded += 1
            logger.debug("Discarded record %r: %s", candidate.strip()[:80], e)

    if result.discarded:
        logger.info(
            "Assembled %d of %d records (%d discarded)",
            len(result.records),
            result.candidates,
            result.discarded,
        )
    return result


def assemble_chapters(blob: str) -> AssemblyResult[Chapter]:
    return assemble_records(blob, parse_chapter)


def assemble_acts(blob: str) -> AssemblyResult[Act]:
    return assemble_records(blob, parse_act)


def assemble_sections(blob: str) -> AssemblyResult[Section]:
    """Sections split on SECTION_TOKEN since their bodies may hold blank lines."""
    return assemble_records(blob, parse_section, delimiter=SECTION_TOKEN)
