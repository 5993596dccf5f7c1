"""Cross-reference extraction from SKILL.md content.

Four independent heuristics scan the text line by line. Their results are
concatenated in a fixed order (they are not de-duplicated against each
other) and references from a skill to itself are dropped:

1. xml_tag           <see ref="skill-name">
2. backtick_context  `skill-name` on the same line as skill/invoke/load/use
3. related_table     `skill-name` in a table row under a "Related skills"
                     or "Integration" heading
4. natural_language  "invoke the X skill", "load X first", "use X skill",
                     "invoke X on"

The xml_tag and related_table heuristics only accept lowercase names. The
backtick_context and natural_language heuristics are case-insensitive as a
whole, so "Load Voice first" yields a reference to "Voice".

The extractor never consults the set of known skills. Callers that want to
drop dangling targets apply ``filter_known`` to the result.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Iterable
from dataclasses import dataclass
from enum import StrEnum

from loadout.skills import Skill, read_body

SLUG = r"[a-z0-9]+(?:-[a-z0-9]+)*"
CONTEXT_WORDS = r"(?:skill|invoke|load|use)"

RELATED_SECTION_MARKERS = ("related skill", "integration")


class DetectionMethod(StrEnum):
    XML_TAG = "xml_tag"
    BACKTICK_CONTEXT = "backtick_context"
    RELATED_TABLE = "related_table"
    NATURAL_LANGUAGE = "natural_language"


@dataclass(frozen=True)
class CrossRef:
    """A reference to another skill found in SKILL.md content."""

    target: str
    line: int  # 1-based
    method: DetectionMethod


XML_TAG_PATTERN = re.compile(rf'<see\s+ref="({SLUG})">')

BACKTICK_CONTEXT_PATTERN = re.compile(
    rf"\b{CONTEXT_WORDS}\b[^\n`]*`({SLUG})`"
    rf"|`({SLUG})`[^\n`]*\b{CONTEXT_WORDS}\b",
    re.IGNORECASE,
)

BACKTICK_SLUG_PATTERN = re.compile(rf"`({SLUG})`")

NATURAL_LANGUAGE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        rf"invoke\s+(?:the\s+)?({SLUG})\s+skill",
        rf"load\s+({SLUG})\s+(?:first|skill)",
        rf"use\s+(?:the\s+)?({SLUG})\s+skill",
        rf"invoke\s+({SLUG})\s+on",
    )
)


def _lines(content: str) -> list[str]:
    return [line.rstrip("\r") for line in content.split("\n")]


def extract_xml_tags(content: str) -> list[CrossRef]:
    refs: list[CrossRef] = []
    for line_num, line in enumerate(_lines(content), start=1):
        for match in XML_TAG_PATTERN.finditer(line):
            refs.append(CrossRef(match.group(1), line_num, DetectionMethod.XML_TAG))
    return refs


def extract_backtick_context(content: str) -> list[CrossRef]:
    refs: list[CrossRef] = []
    for line_num, line in enumerate(_lines(content), start=1):
        for match in BACKTICK_CONTEXT_PATTERN.finditer(line):
            # Group 1 when the keyword comes first, group 2 when it follows
            target = match.group(1) or match.group(2)
            refs.append(CrossRef(target, line_num, DetectionMethod.BACKTICK_CONTEXT))
    return refs


def extract_related_tables(content: str) -> list[CrossRef]:
    """Backtick-quoted names in table rows under a related-skills heading.

    The section opens at a heading mentioning "related skill" or
    "integration" and closes at the next heading.
    """
    refs: list[CrossRef] = []
    in_related_section = False

    for line_num, line in enumerate(_lines(content), start=1):
        if line.startswith("#"):
            heading = line.lower()
            in_related_section = any(marker in heading for marker in RELATED_SECTION_MARKERS)
            continue

        if in_related_section and "|" in line:
            for match in BACKTICK_SLUG_PATTERN.finditer(line):
                refs.append(CrossRef(match.group(1), line_num, DetectionMethod.RELATED_TABLE))

    return refs


def extract_natural_language(content: str) -> list[CrossRef]:
    refs: list[CrossRef] = []
    lines = _lines(content)
    for pattern in NATURAL_LANGUAGE_PATTERNS:
        for line_num, line in enumerate(lines, start=1):
            for match in pattern.finditer(line):
                refs.append(CrossRef(match.group(1), line_num, DetectionMethod.NATURAL_LANGUAGE))
    return refs


# Run order is part of the output contract
MATCHERS: tuple[Callable[[str], list[CrossRef]], ...] = (
    extract_xml_tags,
    extract_backtick_context,
    extract_related_tables,
    extract_natural_language,
)


def extract_references(content: str, owner: str) -> list[CrossRef]:
    """Extract every reference to another skill from SKILL.md content.

    Args:
        content: SKILL.md text.
        owner: Name of the skill the content belongs to.

    Returns:
        References in matcher order, self-references removed.
    """
    refs: list[CrossRef] = []
    for matcher in MATCHERS:
        refs.extend(matcher(content))
    return [ref for ref in refs if ref.target != owner]


def filter_known(refs: Iterable[CrossRef], known: Collection[str]) -> list[CrossRef]:
    """Keep only references whose target is a known skill name."""
    return [ref for ref in refs if ref.target in known]


def build_reference_map(pairs: Iterable[tuple[str, list[CrossRef]]]) -> dict[str, set[str]]:
    """Collapse (skill, refs) pairs to skill name -> set of referenced names."""
    return {name: {ref.target for ref in refs} for name, refs in pairs}


def collect_crossrefs(
    skills: Iterable[Skill],
    reader: Callable[[Skill], str] | None = None,
    known: Collection[str] | None = None,
) -> dict[str, list[CrossRef]]:
    """Extract references for every skill.

    Every skill gets an entry, empty when it references nothing.

    Args:
        skills: Skills to scan, in the order entries should appear.
        reader: Returns a skill's SKILL.md text. Defaults to ``read_body``.
        known: Optional allow-list; when given, dangling targets are dropped.

    Raises:
        SkillBodyError: If a SKILL.md cannot be read.
    """
    if reader is None:
        reader = read_body

    crossrefs: dict[str, list[CrossRef]] = {}
    for skill in skills:
        refs = extract_references(reader(skill), skill.name)
        if known is not None:
            refs = filter_known(refs, known)
        crossrefs.setdefault(skill.name, []).extend(refs)
    return crossrefs
