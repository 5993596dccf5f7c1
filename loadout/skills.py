"""Skill discovery, resolution and body access.

A skill is any directory holding a SKILL.md file. Source directories are
walked recursively (hidden directories pruned, symlinks followed) and each
SKILL.md found is parsed for its frontmatter. A skill whose frontmatter
fails structural validation is logged and skipped; it never aborts the
walk.

Usage:
    from loadout.skills import discover_all, read_body

    skills = discover_all([Path("~/.config/loadout/skills").expanduser()])
    for skill in skills:
        text = read_body(skill)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from loadout.errors import (
    ConfigError,
    FrontmatterError,
    SkillBodyError,
    SkillExistsError,
    SkillNotFoundError,
)
from loadout.frontmatter import Frontmatter, PipelineStage, validate_skill_name

logger = logging.getLogger(__name__)

SKILL_FILE_NAME = "SKILL.md"

SKILL_TEMPLATE = """---
name: {name}
description: >-
  {description}
# tags: []
---

# {name}

TODO: Add your skill content here.

## Instructions

Write the instructions the agent should follow when this skill is loaded.

## Related skills

| Skill | Purpose |
|-------|---------|
"""


@dataclass(frozen=True)
class Skill:
    """A discovered skill.

    Attributes:
        name: Skill name as declared in frontmatter.
        path: Directory containing SKILL.md.
        frontmatter: Parsed frontmatter.
    """

    name: str
    path: Path
    frontmatter: Frontmatter

    @property
    def skill_file(self) -> Path:
        return self.path / SKILL_FILE_NAME

    @property
    def description(self) -> str:
        return self.frontmatter.description

    @property
    def tags(self) -> list[str] | None:
        return self.frontmatter.tags

    @property
    def pipeline(self) -> dict[str, PipelineStage] | None:
        return self.frontmatter.pipeline

    @classmethod
    def from_directory(cls, path: Path) -> Skill:
        """Load a skill from a directory containing SKILL.md.

        Raises:
            FrontmatterError: If SKILL.md is missing or its frontmatter is invalid.
        """
        skill_file = path / SKILL_FILE_NAME
        if not skill_file.is_file():
            raise FrontmatterError(f"No SKILL.md found in skill directory: {path}")

        frontmatter = Frontmatter.from_file(skill_file)
        return cls(name=frontmatter.name, path=path, frontmatter=frontmatter)


def iter_skill_dirs(source: Path) -> Iterator[Path]:
    """Yield directories under source that contain SKILL.md, in sorted walk order."""
    for dirpath, dirnames, filenames in os.walk(source, followlinks=True):
        # Prune hidden directories in place so os.walk never descends into them
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        if SKILL_FILE_NAME in filenames:
            yield Path(dirpath)


def discover_in_directory(source: Path) -> list[Skill]:
    """Discover skills within a single source directory.

    Non-existent sources yield no skills.
    """
    if not source.exists():
        logger.debug("Skipping missing source directory %s", source)
        return []

    skills: list[Skill] = []
    for skill_dir in iter_skill_dirs(source):
        try:
            skills.append(Skill.from_directory(skill_dir))
        except FrontmatterError as e:
            logger.warning("Failed to load skill from %s: %s", skill_dir, e)

    return skills


def discover_all(sources: Iterable[Path]) -> list[Skill]:
    """Discover skills across source directories, in source priority order."""
    skills: list[Skill] = []
    for source in sources:
        skills.extend(discover_in_directory(source))
    return skills


def resolve(sources: Iterable[Path], name: str) -> Skill:
    """Resolve a skill by directory name, searching sources in order.

    Raises:
        SkillNotFoundError: If no source holds a matching directory.
        FrontmatterError: If the matching skill's frontmatter is invalid.
    """
    for source in sources:
        if not source.exists():
            continue
        for skill_dir in iter_skill_dirs(source):
            if skill_dir.name == name:
                return Skill.from_directory(skill_dir)

    raise SkillNotFoundError(name)


def build_skill_map(skills: Iterable[Skill]) -> dict[str, Skill]:
    """Map skill names to skills. The first skill discovered for a name wins."""
    skill_map: dict[str, Skill] = {}
    for skill in skills:
        if skill.name in skill_map:
            logger.warning(
                "Duplicate skill name '%s': keeping %s, ignoring %s",
                skill.name,
                skill_map[skill.name].path,
                skill.path,
            )
            continue
        skill_map[skill.name] = skill
    return skill_map


def read_body(skill: Skill) -> str:
    """Read the full SKILL.md text for reference extraction.

    The whole file is returned (frontmatter included) so that line numbers
    reported by the extractor are line numbers in SKILL.md.

    Raises:
        SkillBodyError: If the file cannot be read.
    """
    try:
        return skill.skill_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SkillBodyError(skill.skill_file, str(e)) from e


def create_skill(sources: Sequence[Path], name: str, description: str | None = None) -> Skill:
    """Scaffold a new skill from the template in the first source directory.

    Raises:
        FrontmatterError: If ``name`` is not a valid skill name.
        ConfigError: If no source directory is configured.
        SkillExistsError: If the skill directory already exists.
    """
    validate_skill_name(name)
    if not sources:
        raise ConfigError("No source directories configured")

    skill_dir = sources[0] / name
    if skill_dir.exists():
        raise SkillExistsError(skill_dir)

    content = SKILL_TEMPLATE.format(
        name=name, description=description or f"Description for {name}"
    )
    skill_dir.mkdir(parents=True)
    (skill_dir / SKILL_FILE_NAME).write_text(content, encoding="utf-8")

    logger.info("Created skill %s at %s", name, skill_dir)
    return Skill.from_directory(skill_dir)
