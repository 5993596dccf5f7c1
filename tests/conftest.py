"""Shared builders for loadout tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from loadout.config import CheckSettings, Config, GlobalScope, Project, Sources
from loadout.frontmatter import Frontmatter, PipelineStage
from loadout.skills import Skill
from loadout.targets import TargetEntry


class FakeLister:
    """In-memory TargetLister keyed by target path."""

    def __init__(self, entries: dict[Path, list[TargetEntry]] | None = None):
        self.entries = entries or {}
        self.calls: list[Path] = []

    def list_entries(self, target: Path) -> list[TargetEntry]:
        self.calls.append(target)
        return list(self.entries.get(target, []))


@pytest.fixture
def make_skill():
    def _make(
        name: str,
        description: str = "A perfectly reasonable description",
        *,
        dir_name: str | None = None,
        tags: list[str] | None = None,
        pipeline: dict[str, dict[str, Any]] | None = None,
    ) -> Skill:
        frontmatter = Frontmatter(
            name=name,
            description=description,
            tags=tags,
            pipeline=(
                {key: PipelineStage(**stage) for key, stage in pipeline.items()}
                if pipeline is not None
                else None
            ),
        )
        return Skill(
            name=name,
            path=Path("/test/skills") / (dir_name or name),
            frontmatter=frontmatter,
        )

    return _make


@pytest.fixture
def make_config():
    def _make(
        *,
        skills: list[str] | None = None,
        targets: list[Path] | None = None,
        projects: dict[Path, Project] | None = None,
        ignore: list[str] | None = None,
        sources: list[Path] | None = None,
    ) -> Config:
        return Config(
            sources=Sources(skills=sources or []),
            global_=GlobalScope(targets=targets or [], skills=skills or []),
            projects=projects or {},
            check=CheckSettings(ignore=ignore or []),
        )

    return _make


@pytest.fixture
def write_skill(tmp_path: Path):
    """Write a SKILL.md under tmp_path/skills/<dir_name> and return its directory."""

    def _write(
        name: str,
        description: str = "A perfectly reasonable description",
        body: str = "",
        *,
        dir_name: str | None = None,
        extra: str = "",
        root: Path | None = None,
    ) -> Path:
        skill_dir = (root or tmp_path / "skills") / (dir_name or name)
        skill_dir.mkdir(parents=True, exist_ok=True)
        (skill_dir / "SKILL.md").write_text(
            f"---\nname: {name}\ndescription: {description}\n{extra}---\n\n{body}",
            encoding="utf-8",
        )
        return skill_dir

    return _write
