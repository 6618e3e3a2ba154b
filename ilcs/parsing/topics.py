"""ILCS major topic classification."""

from __future__ import annotations

from typing import Optional

from ..ingestion.base import Topic

# Order defines tie-break priority: the first name found in a text wins.
MAJOR_TOPICS: tuple[Topic, ...] = (
    Topic("00", "GOVERNMENT"),
    Topic("100", "EDUCATION"),
    Topic("200", "REGULATION"),
    Topic("300", "HUMAN NEEDS"),
    Topic("400", "HEALTH AND SAFETY"),
    Topic("500", "AGRICULTURE AND CONSERVATION"),
    Topic("600", "TRANSPORTATION"),
    Topic("700", "RIGHTS AND REMEDIES"),
    Topic("800", "BUSINESS AND EMPLOYMENT"),
)


def classify_topic(text: str) -> Optional[Topic]:
    """Return the first major topic whose name appears in ``text``."""
    for topic in MAJOR_TOPICS:
        if topic.name in text:
            return topic
    return None


def has_all_major_topics(text: str) -> bool:
    """True if every major topic name appears in ``text``."""
    return all(topic.name in text for topic in MAJOR_TOPICS)
