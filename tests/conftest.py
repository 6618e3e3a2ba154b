"""Shared fixtures: an in-memory page driver and sample index text."""

from __future__ import annotations

import pytest

from ilcs.ingestion.crawler import BASE_URL
from ilcs.ingestion.errors import NavigationError
from ilcs.parsing.assembler import SECTION_TOKEN

CHAPTER_INDEX = "\n\n".join([
    "title: CHAPTER 5 GENERAL PROVISIONS\ntopic: GOVERNMENT\nurl: http://x/ch5",
    "title: CHAPTER 10 ELECTIONS\ntopic: GOVERNMENT\nurl: http://x/ch10",
    "title: CHAPTER 105 SCHOOLS\ntopic: EDUCATION\nurl: http://x/ch105",
])

ACTS_CH5 = "\n\n".join([
    "title: 5 ILCS 70/ Statute on Statutes.\ntopic: GENERAL PROVISIONS\nurl: http://x/ilcs3.asp?ActID=1",
    "title: 5 ILCS 100/ Illinois Administrative Procedure Act.\nurl: http://x/ilcs3.asp?ActID=2",
])
ACTS_CH105 = "title: 105 ILCS 5/ School Code.\ntopic: SCHOOLS\nurl: http://x/ilcs3.asp?ActID=3"

SECTIONS_ACT1 = SECTION_TOKEN.join([
    "(5 ILCS 70/1.01) (from Ch. 1, par. 1001)\nSec. 1.01. Short title.\n(Source: P.A. 87-823.)",
    "(5 ILCS 70/1.02)\nSec. 1.02. Meaning.\n\nWords have their usual meaning.\n(Source: P.A. 96-1000, eff. 7-1-10.)",
])


class FakeDriver:
    """PageDriver serving canned text per URL.

    A missing URL raises NavigationError; an Exception value is raised as is.
    """

    def __init__(self, pages: dict, on_open=None):
        self.pages = pages
        self.on_open = on_open
        self.opened: list[str] = []
        self.closed_pages: list[str] = []
        self.close_calls = 0

    async def open_page(self, url: str) -> str:
        self.opened.append(url)
        if self.on_open is not None:
            self.on_open(url)
        value = self.pages.get(url)
        if value is None:
            raise NavigationError(f"404 for {url}", url=url)
        if isinstance(value, Exception):
            raise value
        return url

    async def fetch_list_text(self, page: str, selector: str) -> str:
        return self.pages[page]

    async def fetch_section_text(self, page: str, selector: str) -> str:
        return self.pages[page]

    async def close_page(self, page: str) -> None:
        self.closed_pages.append(page)

    async def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def site_pages() -> dict:
    return {
        BASE_URL: CHAPTER_INDEX,
        "http://x/ch5": ACTS_CH5,
        "http://x/ch10": "title: 10 ILCS 5/ Election Code.\nurl: http://x/ilcs3.asp?ActID=9",
        "http://x/ch105": ACTS_CH105,
        "http://x/ilcs5.asp?ActID=1": SECTIONS_ACT1,
    }


@pytest.fixture
def fast_config() -> dict:
    return {"delay_ms": 0}
