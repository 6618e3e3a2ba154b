"""Crawl the ILCS page tree: chapter index -> act index -> act full text."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Iterable, Optional

from ..parsing.assembler import assemble_acts, assemble_chapters, assemble_sections
from ..parsing.topics import has_all_major_topics
from ..utils.rate_limiter import RateLimiter
from .base import Act, Chapter, Section
from .errors import EmptyIndexError, IndexLoadError, NavigationError
from .pages import HttpPageDriver, PageDriver

logger = logging.getLogger(__name__)

BASE_URL = "https://www.ilga.gov/legislation/ilcs/ilcs.asp"
DEFAULT_INDEX_SELECTOR = "td ul > li"
DEFAULT_SECTION_SELECTOR = "body"


def full_text_url(act_url: str) -> str:
    """Map an ILGA act index link (ilcs3.asp) to its full-text page (ilcs5.asp)."""
    return act_url.replace("ilcs3.asp", "ilcs5.asp")


@dataclass
class ChapterFailure:
    """A chapter whose acts could not be loaded."""

    chapter_number: str
    url: Optional[str]
    error: str


@dataclass
class ActFailure:
    """An act whose sections could not be loaded."""

    chapter_number: str
    act_title: str
    url: Optional[str]
    error: str


@dataclass
class CrawlResult:
    """Outcome of a crawl pass. Chapters keep index order."""

    chapters: list[Chapter]
    failures: list[ChapterFailure] = field(default_factory=list)
    act_failures: list[ActFailure] = field(default_factory=list)
    discarded: int = 0
    cancelled: bool = False

    @property
    def populated(self) -> list[Chapter]:
        failed = {f.chapter_number for f in self.failures}
        return [c for c in self.chapters if c.acts and c.number not in failed]

    @property
    def ok(self) -> bool:
        return not self.failures and not self.act_failures and not self.cancelled


class ILCSCrawler:
    """Holds the page session and the chapter index of one crawl pass.

    Only the crawler opens and closes pages against the driver. Every page is
    closed whether or not its extraction succeeded.
    """

    def __init__(self, driver: PageDriver, chapters: list[Chapter], config: dict | None = None):
        self.config = config or {}
        self._driver = driver
        self._chapters = chapters
        self._throttle = RateLimiter.from_config(self.config)
        self.discarded = 0
        self._closed = False

    @property
    def chapters(self) -> list[Chapter]:
        return list(self._chapters)

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "ILCSCrawler":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @asynccontextmanager
    async def _page(self, url: str) -> AsyncIterator[Any]:
        """Open ``url`` after the throttle delay; always close it afterwards."""
        await self._throttle.async_wait()
        try:
            page = await self._driver.open_page(url)
        except NavigationError:
            raise
        except Exception as e:
            raise NavigationError(f"Failed to open {url}: {e}", url=url) from e
        try:
            yield page
        finally:
            await self._driver.close_page(page)

    async def load_acts_for_chapter(self, chapter: Chapter) -> list[Act]:
        """Fetch, parse and attach the acts of one chapter.

        A repeated call re-fetches and overwrites ``chapter.acts``.

        Raises:
            NavigationError: the chapter page could not be opened.
            EmptyIndexError: the page listed no parseable acts.
        """
        if not chapter.url:
            raise NavigationError(f"Chapter {chapter.number} has no url")

        selector = self.config.get("act_selector", DEFAULT_INDEX_SELECTOR)
        async with self._page(chapter.url) as page:
            text = await self._driver.fetch_list_text(page, selector)

        acts = assemble_acts(text)
        self.discarded += acts.discarded
        if not acts.records:
            raise EmptyIndexError(
                f"No acts found for chapter {chapter.number}", url=chapter.url
            )

        chapter.acts = acts.records
        logger.info("Chapter %s: %d acts", chapter.number, len(chapter.acts))
        return chapter.acts

    async def load_sections_for_act(self, act: Act) -> list[Section]:
        """Fetch, parse and attach the sections of one act.

        Raises:
            NavigationError: the act has no url or its page could not be opened.
            EmptyIndexError: the page held no parseable sections.
        """
        if not act.url:
            raise NavigationError(f"Act {act.title!r} has no url")

        url = full_text_url(act.url)
        selector = self.config.get("section_selector", DEFAULT_SECTION_SELECTOR)
        async with self._page(url) as page:
            text = await self._driver.fetch_section_text(page, selector)

        sections = assemble_sections(text)
        self.discarded += sections.discarded
        if not sections.records:
            raise EmptyIndexError(f"No sections found for act {act.title!r}", url=url)

        act.sections = sections.records
        logger.debug("Act %s: %d sections", act.prefix or act.title, len(act.sections))
        return act.sections

    async def _populate_chapter(
        self,
        chapter: Chapter,
        result: CrawlResult,
        with_sections: bool,
        cancel: asyncio.Event | None = None,
    ) -> None:
        try:
            await self.load_acts_for_chapter(chapter)
        except NavigationError as e:
            logger.warning("Skipping chapter %s: %s", chapter.number, e)
            result.failures.append(ChapterFailure(chapter.number, chapter.url, str(e)))
            return
        except Exception as e:
            logger.exception("Failed to extract acts for chapter %s", chapter.number)
            result.failures.append(ChapterFailure(chapter.number, chapter.url, repr(e)))
            return

        if not with_sections:
            return
        for act in chapter.acts:
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                return
            try:
                await self.load_sections_for_act(act)
            except NavigationError as e:
                logger.warning("Skipping act %s: %s", act.prefix or act.title, e)
                result.act_failures.append(
                    ActFailure(chapter.number, act.title, act.url, str(e))
                )
            except Exception as e:
                logger.exception("Failed to extract sections for act %s", act.title)
                result.act_failures.append(
                    ActFailure(chapter.number, act.title, act.url, repr(e))
                )

    async def crawl(
        self,
        chapters: Iterable[Chapter] | None = None,
        cancel: asyncio.Event | None = None,
        with_sections: bool = False,
    ) -> CrawlResult:
        """Populate acts (and optionally sections) for each chapter.

        Failures are isolated per chapter. ``cancel`` is checked before each
        chapter and, with sections, before each act; once set, no further pages
        are loaded. The session is released before returning.
        """
        targets = list(self._chapters if chapters is None else chapters)
        result = CrawlResult(chapters=targets)
        concurrency = max(1, int(self.config.get("concurrency", 1)))
        logger.info("Crawling %d chapters (concurrency %d)", len(targets), concurrency)

        try:
            if concurrency == 1:
                for chapter in targets:
                    if cancel is not None and cancel.is_set():
                        result.cancelled = True
                        break
                    await self._populate_chapter(chapter, result, with_sections, cancel)
            else:
                semaphore = asyncio.Semaphore(concurrency)

                async def worker(chapter: Chapter, sink: CrawlResult) -> None:
                    async with semaphore:
                        if cancel is not None and cancel.is_set():
                            sink.cancelled = True
                            return
                        await self._populate_chapter(chapter, sink, with_sections, cancel)

                # One sink per chapter keeps failures in chapter order.
                sinks = [CrawlResult(chapters=[c]) for c in targets]
                await asyncio.gather(*(worker(c, s) for c, s in zip(targets, sinks)))
                for sink in sinks:
                    result.failures.extend(sink.failures)
                    result.act_failures.extend(sink.act_failures)
                    result.cancelled = result.cancelled or sink.cancelled
        finally:
            await self.close()

        result.discarded = self.discarded
        logger.info(
            "Crawl %s: %d chapters populated, %d failed, %d records discarded",
            "cancelled" if result.cancelled else "done",
            len(result.populated),
            len(result.failures),
            result.discarded,
        )
        return result

    async def close(self) -> None:
        """Release the page session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._driver.close()


async def init_crawl(
    driver: PageDriver | None = None, config: dict | None = None
) -> ILCSCrawler:
    """Load the chapter index and return a crawler ready to populate it.

    Raises:
        IndexLoadError: the base page could not be loaded or listed no chapters.
            The driver is closed before the error propagates.
    """
    config = config or {}
    driver = driver or HttpPageDriver(config)
    base_url = config.get("base_url", BASE_URL)
    selector = config.get("index_selector", DEFAULT_INDEX_SELECTOR)

    try:
        page = await driver.open_page(base_url)
        try:
            text = await driver.fetch_list_text(page, selector)
        finally:
            await driver.close_page(page)

        if not has_all_major_topics(text):
            logger.warning("Index page %s does not list every major topic", base_url)

        chapters = assemble_chapters(text)
        if not chapters.records:
            raise IndexLoadError(f"No chapters found at {base_url}")
    except Exception as e:
        try:
            await driver.close()
        except Exception:
            logger.exception("Failed to close page session after index load error")
        if isinstance(e, IndexLoadError):
            raise
        raise IndexLoadError(f"Failed to load chapter index {base_url}: {e}") from e

    logger.info(
        "Loaded %d chapters from %s (%d records discarded)",
        len(chapters.records),
        base_url,
        chapters.discarded,
    )
    crawler = ILCSCrawler(driver, chapters.records, config)
    crawler.discarded = chapters.discarded
    return crawler
