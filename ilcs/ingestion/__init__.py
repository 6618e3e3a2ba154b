from .base import Act, Chapter, Section, SectionHeader, SectionSource, Subtopic, Topic
from .errors import (
    CrawlError,
    EmptyIndexError,
    IndexLoadError,
    MalformedRecordError,
    NavigationError,
    UnresolvedReference,
)

__all__ = [
    "Act",
    "Chapter",
    "Section",
    "SectionHeader",
    "SectionSource",
    "Subtopic",
    "Topic",
    "CrawlError",
    "EmptyIndexError",
    "IndexLoadError",
    "MalformedRecordError",
    "NavigationError",
    "UnresolvedReference",
]
