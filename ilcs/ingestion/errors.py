"""Error taxonomy for parsing and crawling."""

from __future__ import annotations

from dataclasses import dataclass


class MalformedRecordError(ValueError):
    """A record candidate lacks a required marker or field."""


class CrawlError(Exception):
    """Base class for crawl failures."""


class NavigationError(CrawlError):
    """A page could not be opened or read."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class EmptyIndexError(NavigationError):
    """A page was fetched but none of its records parsed."""


class IndexLoadError(CrawlError):
    """The base chapter index could not be loaded. Fatal to the crawl."""


@dataclass
class UnresolvedReference:
    """An act names a subtopic missing from the known subtopic table."""

    act_title: str
    subtopic_name: str

    def __str__(self) -> str:
        return f"Subtopic {self.subtopic_name!r} not found (act {self.act_title!r})"
