from .assembler import (
    SECTION_TOKEN,
    AssemblyResult,
    assemble_acts,
    assemble_chapters,
    assemble_records,
    assemble_sections,
)
from .entities import parse_act, parse_chapter, parse_section
from .topics import MAJOR_TOPICS, classify_topic

__all__ = [
    "SECTION_TOKEN",
    "AssemblyResult",
    "assemble_acts",
    "assemble_chapters",
    "assemble_records",
    "assemble_sections",
    "parse_act",
    "parse_chapter",
    "parse_section",
    "MAJOR_TOPICS",
    "classify_topic",
]
