"""CLI entry point for the ILCS crawl pipeline."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path

import click
import yaml

from ilcs.ingestion.crawler import BASE_URL, CrawlResult, init_crawl
from ilcs.ingestion.errors import IndexLoadError
from ilcs.normalization.normalizer import group_by_topic, resolve_subtopics, write_code

ROOT_DIR = Path(__file__).resolve().parent
CONFIG_DIR = ROOT_DIR / "config"
DATA_DIR = Path("data") / "ilcs"
CACHE_DIR = Path("cache") / "http"

logger = logging.getLogger(__name__)


def load_config(path: Path | None = None, overrides: dict | None = None) -> dict:
    """Packaged defaults, then the user's YAML file, then CLI overrides."""
    with open(CONFIG_DIR / "crawler.yaml", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    if path is not None:
        with open(path, encoding="utf-8") as f:
            config.update(yaml.safe_load(f) or {})
    if overrides:
        config.update({k: v for k, v in overrides.items() if v is not None})
    return config


def _load_subtopics(path: Path) -> list[str]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("subtopics", [])
    return [str(name) for name in data]


def _make_driver(config: dict, cache: bool):
    from ilcs.ingestion.pages import HttpPageDriver

    return HttpPageDriver(config, cache_dir=CACHE_DIR if cache else None)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None,
              help="YAML file overriding the default crawler settings")
@click.option("--no-cache", is_flag=True, help="Do not read or write the HTTP cache")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None, no_cache: bool):
    """Illinois Compiled Statutes crawl pipeline."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["cache"] = not no_cache


@cli.command()
@click.pass_context
def chapters(ctx: click.Context):
    """List the chapter index grouped by major topic."""
    config = load_config(ctx.obj["config_path"])

    async def _run():
        crawler = await init_crawl(_make_driver(config, ctx.obj["cache"]), config)
        await crawler.close()
        return crawler.chapters

    try:
        index = asyncio.run(_run())
    except IndexLoadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for topic, run in group_by_topic(index):
        if topic is None:
            click.echo("\n\n(no topic)")
        else:
            click.echo(f"\n\n{topic.series}: {topic.name}")
        for chapter in run:
            click.echo(f"|\n--- CHAPTER {chapter.number} {chapter.title}")


@cli.command()
@click.option("--chapter", "-c", "chapter_numbers", multiple=True, help="Only crawl these chapter numbers")
@click.option("--sections", is_flag=True, help="Also fetch the full text of every act")
@click.option("--delay-ms", type=int, default=None, help="Delay between page requests")
@click.option("--concurrency", type=int, default=None, help="Chapters in flight at once")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None, help="Output data directory")
@click.option("--subtopics", type=click.Path(exists=True, path_type=Path), default=None,
              help="YAML list of known subtopic names to check acts against")
@click.pass_context
def crawl(
    ctx: click.Context,
    chapter_numbers: tuple[str, ...],
    sections: bool,
    delay_ms: int | None,
    concurrency: int | None,
    output: Path | None,
    subtopics: Path | None,
):
    """Crawl chapters and their acts, then write JSON output."""
    config = load_config(
        ctx.obj["config_path"],
        {"delay_ms": delay_ms, "concurrency": concurrency},
    )
    out_dir = output or DATA_DIR

    async def _run() -> CrawlResult:
        cancel = asyncio.Event()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, cancel.set)
        except (NotImplementedError, RuntimeError):
            pass

        crawler = await init_crawl(_make_driver(config, ctx.obj["cache"]), config)
        targets = crawler.chapters
        if chapter_numbers:
            wanted = set(chapter_numbers)
            targets = [c for c in targets if c.number in wanted]
        click.echo(f"Crawling {len(targets)} chapter(s)...")
        return await crawler.crawl(targets, cancel=cancel, with_sections=sections)

    try:
        result = asyncio.run(_run())
    except IndexLoadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if subtopics is not None:
        for ref in resolve_subtopics(result.chapters, _load_subtopics(subtopics)):
            click.echo(f"  WARN: {ref}", err=True)

    write_code(result, out_dir, config.get("base_url", BASE_URL))

    click.echo(f"\n{'='*60}")
    status = "Cancelled" if result.cancelled else "Done"
    click.echo(
        f"{status}: {len(result.populated)} chapters populated, "
        f"{len(result.failures)} failed, {result.discarded} records discarded"
    )
    for failure in result.failures:
        click.echo(f"  FAIL: chapter {failure.chapter_number}: {failure.error}", err=True)
    for failure in result.act_failures:
        click.echo(f"  FAIL: chapter {failure.chapter_number} / {failure.act_title}: {failure.error}", err=True)


if __name__ == "__main__":
    cli()
