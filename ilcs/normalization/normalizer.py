"""Normalize a crawl result into manifest.json, toc.json, and per-act content files."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from itertools import groupby
from pathlib import Path
from typing import Iterable, Optional

from ..ingestion.base import Act, Chapter, Section, Topic
from ..ingestion.crawler import CrawlResult
from ..ingestion.errors import UnresolvedReference

logger = logging.getLogger(__name__)


def _slugify(text: str) -> str:
    """Create a URL-safe slug from text."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-") or "unknown"


def act_id(act: Act) -> str:
    """Stable file id for an act, from its citation prefix when it has one."""
    return _slugify(act.prefix or act.title)[:80]


def group_by_topic(chapters: Iterable[Chapter]) -> list[tuple[Optional[Topic], list[Chapter]]]:
    """Group chapters into contiguous runs sharing the same topic.

    Runs follow index order; a topic that reappears later starts a new run.
    """
    return [(topic, list(run)) for topic, run in groupby(chapters, key=lambda c: c.topic)]


def resolve_subtopics(
    chapters: Iterable[Chapter], known_subtopics: Iterable[str]
) -> list[UnresolvedReference]:
    """Check every act's subtopic against the known subtopic names.

    Acts are left untouched; each unknown name is reported and logged.
    """
    known = set(known_subtopics)
    unresolved = []
    for chapter in chapters:
        for act in chapter.acts:
            if act.subtopic is not None and act.subtopic.name not in known:
                ref = UnresolvedReference(act_title=act.title, subtopic_name=act.subtopic.name)
                logger.warning("%s", ref)
                unresolved.append(ref)
    return unresolved


def _topic_dict(topic: Optional[Topic]) -> Optional[dict]:
    if topic is None:
        return None
    return {"series": topic.series, "name": topic.name}


def _section_dict(section: Section) -> dict:
    return {
        "number": section.header.number,
        "caption": section.header.caption,
        "citation": section.header.citation,
        "former_citation": section.header.former_citation,
        "text": section.text,
        "source": section.source.text,
        "public_acts": section.source.public_acts,
    }


def build_manifest(result: CrawlResult, source_url: str = "") -> dict:
    """Build manifest.json content from a CrawlResult."""
    return {
        "code_name": "Illinois Compiled Statutes",
        "source_url": source_url,
        "last_updated": datetime.now(timezone.utc).isoformat(),
        "cancelled": result.cancelled,
        "stats": {
            "chapters": len(result.chapters),
            "acts": sum(len(c.acts) for c in result.chapters),
            "sections": sum(len(a.sections) for c in result.chapters for a in c.acts),
            "discarded": result.discarded,
        },
        "failures": [
            {"chapter": f.chapter_number, "url": f.url, "error": f.error}
            for f in result.failures
        ],
        "act_failures": [
            {"chapter": f.chapter_number, "act": f.act_title, "url": f.url, "error": f.error}
            for f in result.act_failures
        ],
    }


def build_toc(chapters: Iterable[Chapter]) -> dict:
    """Build toc.json content (no section text)."""
    children = []
    for chapter in chapters:
        children.append({
            "id": f"chapter-{chapter.number}",
            "number": chapter.number,
            "title": chapter.title,
            "topic": _topic_dict(chapter.topic),
            "url": chapter.url,
            "children": [
                {
                    "id": act_id(act),
                    "prefix": act.prefix,
                    "title": act.title,
                    "url": act.url,
                    "subtopic": act.subtopic.name if act.subtopic else None,
                    "section_count": len(act.sections),
                }
                for act in chapter.acts
            ],
        })
    return {"children": children}


def build_content_acts(chapters: Iterable[Chapter]) -> list[tuple[str, dict]]:
    """Build content files for acts that have sections.

    Returns:
        List of (relative_path, content_dict) tuples,
        e.g. ("chapter-5/5-ilcs-70.json", {...}).
    """
    files = []
    for chapter in chapters:
        for act in chapter.acts:
            if not act.sections:
                continue
            path = f"chapter-{chapter.number}/{act_id(act)}.json"
            files.append((path, {
                "chapter": chapter.number,
                "prefix": act.prefix,
                "title": act.title,
                "sections": [_section_dict(s) for s in act.sections],
            }))
    return files


def write_code(result: CrawlResult, data_dir: Path, source_url: str = "") -> None:
    """Write all normalized output files for a crawl.

    Args:
        result: Crawl result to serialize.
        data_dir: Output directory; manifest.json and toc.json are written
                  here, act content files under data_dir / "content".
        source_url: Base index URL recorded in the manifest.
    """
    data_dir.mkdir(parents=True, exist_ok=True)
    content_dir = data_dir / "content"

    manifest_path = data_dir / "manifest.json"
    manifest = build_manifest(result, source_url)
    manifest_path.write_text(json.dumps(manifest, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Wrote %s", manifest_path)

    toc_path = data_dir / "toc.json"
    toc_path.write_text(
        json.dumps(build_toc(result.chapters), indent=2, ensure_ascii=False), encoding="utf-8"
    )
    logger.info("Wrote %s", toc_path)

    files = build_content_acts(result.chapters)
    for rel_path, content in files:
        act_path = content_dir / rel_path
        act_path.parent.mkdir(parents=True, exist_ok=True)
        act_path.write_text(json.dumps(content, indent=2, ensure_ascii=False), encoding="utf-8")

    logger.info("Wrote %d act content files to %s", len(files), content_dir)
