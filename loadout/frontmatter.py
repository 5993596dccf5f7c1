"""YAML frontmatter extraction and validation for SKILL.md files.

Two levels of validation:
1. Structural (discovery time): delimiters, valid YAML mapping, required
   fields present, well-formed skill name. Failures raise FrontmatterError
   and the skill is skipped.
2. Strict (``loadout validate``): structural rules plus description length
   limits and the name/directory match.

Content-quality problems such as an empty description or a name that
differs from its directory are deliberately NOT structural failures; the
diagnostic checks report them as findings instead.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from loadout.errors import FrontmatterError

NAME_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 64
MIN_DESCRIPTION_LENGTH = 1
MAX_DESCRIPTION_LENGTH = 1024

DELIMITER = "---"
REQUIRED_FIELDS = ("name", "description")


class PipelineStage(BaseModel):
    """Membership of one skill in one named pipeline."""

    model_config = ConfigDict(frozen=True)

    stage: str
    order: int = Field(..., ge=0)
    after: list[str] | None = None  # prerequisites
    before: list[str] | None = None  # dependents


class Frontmatter(BaseModel):
    """SKILL.md frontmatter.

    Union of the fields understood by the supported agent tools. Only
    ``name`` and ``description`` are required.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    description: str

    # Claude Code fields
    disable_model_invocation: bool | None = Field(None, alias="disable-model-invocation")
    user_invocable: bool | None = Field(None, alias="user-invocable")
    allowed_tools: str | None = Field(None, alias="allowed-tools")
    context: str | None = None
    agent: str | None = None
    model: str | None = None
    argument_hint: str | None = Field(None, alias="argument-hint")

    # OpenCode fields
    license: str | None = None
    compatibility: str | None = None
    metadata: dict[str, str] | None = None

    # Loadout organisation
    tags: list[str] | None = None
    pipeline: dict[str, PipelineStage] | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, value: Any) -> Any:
        # `description:` with no value parses as None
        return "" if value is None else value

    @classmethod
    def parse(cls, content: str) -> Frontmatter:
        """Parse and structurally validate frontmatter from SKILL.md content."""
        yaml_text = extract_yaml(content)

        try:
            data = yaml.safe_load(yaml_text)
        except yaml.YAMLError as e:
            raise FrontmatterError(f"Invalid YAML frontmatter: {e}") from e

        if not isinstance(data, dict):
            raise FrontmatterError("Invalid YAML frontmatter: expected a mapping of fields")

        for field in REQUIRED_FIELDS:
            if field not in data:
                raise FrontmatterError(f"Missing required field: {field}")

        try:
            frontmatter = cls.model_validate(data)
        except ValidationError as e:
            raise FrontmatterError(f"Invalid YAML frontmatter: {e}") from e

        frontmatter.validate_name()
        return frontmatter

    @classmethod
    def from_file(cls, path: Path) -> Frontmatter:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FrontmatterError(f"Failed to read SKILL.md: {path}: {e}") from e
        return cls.parse(content)

    def validate_name(self) -> None:
        validate_skill_name(self.name)

    def validate_description(self) -> None:
        desc_len = len(self.description.strip())
        if not MIN_DESCRIPTION_LENGTH <= desc_len <= MAX_DESCRIPTION_LENGTH:
            raise FrontmatterError(
                f"Invalid description length: {desc_len} "
                f"(must be {MIN_DESCRIPTION_LENGTH}-{MAX_DESCRIPTION_LENGTH} chars)"
            )

    def validate_directory_name(self, dir_name: str) -> None:
        if self.name != dir_name:
            raise FrontmatterError(
                f"Skill name '{self.name}' does not match directory name '{dir_name}'"
            )

    def validate_strict(self, dir_name: str | None = None) -> None:
        """Full validation used by ``loadout validate``.

        Raises:
            FrontmatterError: On the first rule that fails.
        """
        self.validate_name()
        self.validate_description()
        if dir_name is not None:
            self.validate_directory_name(dir_name)

    @property
    def has_tags(self) -> bool:
        return bool(self.tags)

    @property
    def has_pipeline(self) -> bool:
        return self.pipeline is not None


def validate_skill_name(name: str) -> None:
    """Check a skill name's length and slug pattern.

    Raises:
        FrontmatterError: If the name is too long, empty or not a lowercase slug.
    """
    name_len = len(name)
    if not MIN_NAME_LENGTH <= name_len <= MAX_NAME_LENGTH:
        raise FrontmatterError(
            f"Invalid skill name length: {name_len} "
            f"(must be {MIN_NAME_LENGTH}-{MAX_NAME_LENGTH} chars)"
        )
    if not NAME_PATTERN.match(name):
        raise FrontmatterError(
            f"Invalid skill name '{name}': must match pattern {NAME_PATTERN.pattern}"
        )


def extract_yaml(content: str) -> str:
    """Return the YAML text between the first two ``---`` lines.

    Raises:
        FrontmatterError: If either delimiter is missing.
    """
    lines = content.splitlines()

    start = next((i for i, line in enumerate(lines) if line.strip() == DELIMITER), None)
    if start is None:
        raise FrontmatterError("SKILL.md does not contain YAML frontmatter delimiters (---)")

    end = next(
        (i for i in range(start + 1, len(lines)) if lines[i].strip() == DELIMITER),
        None,
    )
    if end is None:
        raise FrontmatterError("SKILL.md does not contain YAML frontmatter delimiters (---)")

    return "\n".join(lines[start + 1 : end])
