"""Page-automation collaborator: open pages and extract marker-formatted text.

The crawler depends only on the ``PageDriver`` protocol. Its textual contract:

* ``fetch_list_text`` returns one record per listed entity, records separated
  by a blank line, each record made of ``title:``, ``topic:`` and ``url:``
  lines;
* ``fetch_section_text`` returns section records joined by SECTION_TOKEN.

``HttpPageDriver`` satisfies it for the ILGA website with httpx and
BeautifulSoup.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag

from ..normalization.text_cleaner import normalize_nbsp
from ..parsing.assembler import RECORD_DELIMITER, SECTION_TOKEN
from ..utils.cache import DEFAULT_TTL, DEFAULT_USER_AGENT, HttpCache
from .errors import NavigationError

logger = logging.getLogger(__name__)

SECTION_START_RE = re.compile(r"^\(\d+\s+ILCS\s+[\w.\-]+/[\w.\-]+\)", re.IGNORECASE)
SECTION_SOURCE_RE = re.compile(r"^\(Source:", re.IGNORECASE)


class PageDriver(Protocol):
    """What the crawler needs from a page-automation backend."""

    async def open_page(self, url: str) -> Any: ...

    async def fetch_list_text(self, page: Any, selector: str) -> str: ...

    async def fetch_section_text(self, page: Any, selector: str) -> str: ...

    async def close_page(self, page: Any) -> None: ...

    async def close(self) -> None: ...


@dataclass
class FetchedPage:
    """An opened page: its URL and parsed document."""

    url: str
    soup: BeautifulSoup


def format_record(title: str, url: str | None = None, topic: str | None = None) -> str:
    """Render one entity in the marker-line format."""
    lines = [f"title: {title}"]
    if topic:
        lines.append(f"topic: {topic}")
    if url:
        lines.append(f"url: {url}")
    return "\n".join(lines)


def index_text_from_soup(soup: BeautifulSoup, selector: str, base_url: str) -> str:
    """Turn the list elements matched by ``selector`` into index records.

    Elements carrying a link become records. Elements without one are
    headings (major topic on the chapter index, subtopic on an act index)
    and are attached to the records that follow them.
    """
    records = []
    heading = None
    for elem in soup.select(selector):
        text = normalize_nbsp(elem.get_text(" ", strip=True))
        text = re.sub(r"\s+", " ", text).strip()
        if not text:
            continue
        link = elem.find("a", href=True) if isinstance(elem, Tag) else None
        if link is None:
            heading = text
            continue
        records.append(format_record(text, urljoin(base_url, link["href"]), heading))
    return RECORD_DELIMITER.join(records)


def section_text_from_soup(soup: BeautifulSoup, selector: str) -> str:
    """Cut the full text of an act into section records.

    A record starts at each ``(N ILCS x/y)`` citation line and ends at its
    ``(Source: ...)`` line; anything after that line is page chrome.
    """
    lines = []
    for elem in soup.select(selector):
        lines.extend(elem.get_text("\n").split("\n"))

    sections: list[list[str]] = []
    current: list[str] | None = None
    for raw in lines:
        line = normalize_nbsp(raw).strip()
        if SECTION_START_RE.match(line):
            current = [line]
            sections.append(current)
        elif current is not None:
            current.append(line)
            if SECTION_SOURCE_RE.match(line):
                current = None
    return SECTION_TOKEN.join("\n".join(section) for section in sections)


class HttpPageDriver:
    """Page driver over a single ``httpx.AsyncClient`` session.

    Args:
        config: Crawler configuration (timeout, retries, cache, user agent).
        cache_dir: Directory for the HTTP cache; None disables caching.
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        config: dict | None = None,
        cache_dir: Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        config = config or {}
        self.client = httpx.AsyncClient(
            timeout=config.get("timeout", 60),
            follow_redirects=True,
            verify=config.get("verify_ssl", True),
            headers={"User-Agent": config.get("user_agent", DEFAULT_USER_AGENT)},
            transport=transport,
        )
        self.http_cache = HttpCache(
            self.client,
            cache_dir=cache_dir,
            ttl=config.get("cache_ttl", DEFAULT_TTL),
        )
        self.max_retries = config.get("max_retries", 3)
        self.retry_delay = config.get("retry_delay", 3)
        self._closed = False

    async def _fetch_with_retry(self, url: str) -> str:
        """Fetch URL with exponential backoff retry."""
        for attempt in range(self.max_retries):
            try:
                return await self.http_cache.fetch(url)
            except httpx.HTTPError as e:
                if attempt < self.max_retries - 1:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.info("Retry %d for %s in %ss: %s", attempt + 1, url, delay, e)
                    await asyncio.sleep(delay)
                else:
                    raise NavigationError(f"Failed to open {url}: {e}", url=url) from e
        raise NavigationError(f"Failed to open {url}: no attempts made", url=url)

    async def open_page(self, url: str) -> FetchedPage:
        html = await self._fetch_with_retry(url)
        return FetchedPage(url=url, soup=BeautifulSoup(html, "html.parser"))

    async def fetch_list_text(self, page: FetchedPage, selector: str) -> str:
        return index_text_from_soup(page.soup, selector, page.url)

    async def fetch_section_text(self, page: FetchedPage, selector: str) -> str:
        return section_text_from_soup(page.soup, selector)

    async def close_page(self, page: FetchedPage) -> None:
        page.soup.decompose()

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self.client.aclose()
