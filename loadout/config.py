"""Configuration model and loading for loadout.toml.

Example:

    [sources]
    skills = ["~/.config/loadout/skills"]

    [global]
    targets = ["~/.claude/skills"]
    skills = ["my-skill"]

    [projects."~/code/app"]
    skills = ["project-skill"]
    inherit = false

    [check]
    ignore = ["orphaned:draft-skill"]
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from loadout.errors import ConfigError
from loadout.findings import parse_suppress_key
from loadout.paths import expand_tilde, resolve_config_path

logger = logging.getLogger(__name__)


class Sources(BaseModel):
    """Directories searched for skills, in priority order."""

    model_config = ConfigDict(frozen=True)

    skills: list[Path]


class GlobalScope(BaseModel):
    """Skills enabled everywhere and the directories they are linked into."""

    model_config = ConfigDict(frozen=True)

    targets: list[Path]
    skills: list[str]


class Project(BaseModel):
    model_config = ConfigDict(frozen=True)

    skills: list[str]
    inherit: bool = True  # include global skills


class CheckSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    ignore: list[str] = Field(default_factory=list)  # suppress keys


class Config(BaseModel):
    """Complete loadout.toml configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sources: Sources
    global_: GlobalScope = Field(alias="global")
    projects: dict[Path, Project] = Field(default_factory=dict)
    check: CheckSettings = Field(default_factory=CheckSettings)

    def mentioned_skills(self) -> set[str]:
        """Every skill name listed globally or by any project."""
        names = set(self.global_.skills)
        for project in self.projects.values():
            names.update(project.skills)
        return names

    def project_skills(self, project_path: Path) -> list[str]:
        """Effective, sorted skill set for a project (globals included when inherited)."""
        project = self.projects[project_path]
        names = set(project.skills)
        if project.inherit:
            names.update(self.global_.skills)
        return sorted(names)


def expand_paths(config: Config, env: Mapping[str, str] | None = None) -> Config:
    """Return a copy of config with ~ expanded in sources, targets and project keys."""
    sources = config.sources.model_copy(
        update={"skills": [expand_tilde(p, env) for p in config.sources.skills]}
    )
    global_scope = config.global_.model_copy(
        update={"targets": [expand_tilde(p, env) for p in config.global_.targets]}
    )
    projects = {expand_tilde(path, env): project for path, project in config.projects.items()}
    return config.model_copy(
        update={"sources": sources, "global_": global_scope, "projects": projects}
    )


def parse_config(text: str, origin: Path | str = "<string>") -> Config:
    """Parse TOML text into a Config (no path expansion).

    Raises:
        ConfigError: On TOML syntax or schema errors.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config file: {origin}: {e}") from e

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Failed to parse config file: {origin}: {e}") from e


def load_from(path: Path, env: Mapping[str, str] | None = None) -> Config:
    """Load configuration from a specific file.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {path}: {e}") from e

    config = expand_paths(parse_config(text, path), env)

    for entry in config.check.ignore:
        try:
            parse_suppress_key(entry)
        except ValueError as e:
            logger.warning("Ignore entry '%s' in %s will never match: %s", entry, path, e)

    logger.debug("Loaded config from %s", path)
    return config


def load(path: Path | None = None, env: Mapping[str, str] | None = None) -> Config:
    """Load configuration from ``path`` or the standard location."""
    return load_from(path or resolve_config_path(env), env)
