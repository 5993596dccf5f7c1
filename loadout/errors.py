"""Exception types for structural failures.

Content problems (dangling references, naming mismatches, weak
descriptions) are never raised; they are reported as findings by
``loadout.checks``. Everything here aborts the running command.
"""

from __future__ import annotations

from pathlib import Path


class LoadoutError(Exception):
    """Base class for errors that terminate a loadout command."""


class ConfigError(LoadoutError):
    """Config file could not be read, parsed or validated."""


class FrontmatterError(LoadoutError):
    """SKILL.md frontmatter is missing, malformed or invalid."""


class SkillNotFoundError(LoadoutError):
    def __init__(self, name: str):
        super().__init__(f"Skill '{name}' not found in any source directory")
        self.name = name


class SkillBodyError(LoadoutError):
    """SKILL.md body could not be read for reference extraction."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to read SKILL.md: {path} ({reason})")
        self.path = path


class TargetDirectoryError(LoadoutError):
    """Listing a managed target directory failed."""

    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Failed to read target directory {path}: {cause}")
        self.path = path
        self.cause = cause


class SkillExistsError(LoadoutError):
    def __init__(self, path: Path):
        super().__init__(f"Skill directory already exists: {path}")
        self.path = path
