"""Diagnostic findings produced by ``loadout check``.

A finding carries a severity, a message, a fix suggestion and a suppress
key. Suppress keys are the contract between the check that emits a
finding and the ``[check].ignore`` list that silences it, so they are
built as typed values and rendered in exactly one place
(``format_suppress_key``):

    <kind>:<source>[:<detail>...]

e.g. ``dangling:skill-a:skill-b`` or ``pipeline-gap:release:build:test``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum, StrEnum
from pathlib import Path
from typing import Any

SUPPRESSED_SUFFIX = " (suppressed)"


class Severity(IntEnum):
    """Finding severity. Higher value ranks first in reports."""

    INFO = 0
    WARNING = 1
    ERROR = 2

    @property
    def label(self) -> str:
        return {Severity.ERROR: "ERROR", Severity.WARNING: "WARN", Severity.INFO: "INFO"}[self]

    @property
    def color(self) -> str:
        return {Severity.ERROR: "red", Severity.WARNING: "yellow", Severity.INFO: "blue"}[self]

    @classmethod
    def parse(cls, value: str) -> Severity:
        """Parse 'error', 'warning'/'warn' or 'info', case-insensitively."""
        normalized = value.strip().lower()
        aliases = {"error": cls.ERROR, "warning": cls.WARNING, "warn": cls.WARNING, "info": cls.INFO}
        if normalized not in aliases:
            raise ValueError(f"Unknown severity '{value}' (expected error, warning or info)")
        return aliases[normalized]


class SuppressKind(StrEnum):
    DANGLING = "dangling"
    ORPHANED = "orphaned"
    NAME_MISMATCH = "name-mismatch"
    EMPTY_DESCRIPTION = "empty-description"
    BROKEN_SYMLINK = "broken-symlink"
    UNMANAGED = "unmanaged"
    PLACEHOLDER = "placeholder"
    SHORT_DESCRIPTION = "short-description"
    PIPELINE_MISSING = "pipeline-missing"
    PIPELINE_GAP = "pipeline-gap"
    NO_METADATA = "no-metadata"


# Number of detail segments each kind carries after its source
_DETAIL_ARITY: dict[SuppressKind, int] = {
    SuppressKind.DANGLING: 1,  # target
    SuppressKind.PIPELINE_MISSING: 2,  # skill, missing dependency
    SuppressKind.PIPELINE_GAP: 2,  # skill, prerequisite
}


@dataclass(frozen=True)
class SuppressKey:
    """Identity of a finding for suppression matching.

    Attributes:
        kind: Which check produced the finding.
        source: Skill, pipeline or directory entry the finding is about.
        detail: Further segments (dangling target, pipeline skill/dependency).
    """

    kind: SuppressKind
    source: str
    detail: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        expected = _DETAIL_ARITY.get(self.kind, 0)
        if len(self.detail) != expected:
            raise ValueError(
                f"Suppress key '{self.kind}' takes {expected} detail segment(s), "
                f"got {len(self.detail)}"
            )

    def __str__(self) -> str:
        return format_suppress_key(self)

    @classmethod
    def dangling(cls, source: str, target: str) -> SuppressKey:
        return cls(SuppressKind.DANGLING, source, (target,))

    @classmethod
    def pipeline_missing(cls, pipeline: str, skill: str, dependency: str) -> SuppressKey:
        return cls(SuppressKind.PIPELINE_MISSING, pipeline, (skill, dependency))

    @classmethod
    def pipeline_gap(cls, pipeline: str, skill: str, prerequisite: str) -> SuppressKey:
        return cls(SuppressKind.PIPELINE_GAP, pipeline, (skill, prerequisite))


def format_suppress_key(key: SuppressKey) -> str:
    """Canonical string form of a suppress key, as written in ``[check].ignore``."""
    return ":".join((key.kind.value, key.source, *key.detail))


def parse_suppress_key(text: str) -> SuppressKey:
    """Parse an ignore-list entry back into a SuppressKey.

    Raises:
        ValueError: If the kind is unknown or the segment count is wrong.
    """
    kind_text, _, rest = text.partition(":")
    kind = SuppressKind(kind_text)
    if not rest:
        raise ValueError(f"Suppress key '{text}' has no source")
    # Detail segments are split off the right so a source may itself contain ':'
    arity = _DETAIL_ARITY.get(kind, 0)
    parts = rest.rsplit(":", arity) if arity else [rest]
    if len(parts) != arity + 1:
        raise ValueError(f"Suppress key '{text}' should have {arity + 1} segment(s) after the kind")
    return SuppressKey(kind, parts[0], tuple(parts[1:]))


@dataclass(frozen=True)
class Finding:
    """One diagnostic result."""

    severity: Severity
    message: str
    fix: str
    suppress_key: SuppressKey
    path: Path | None = None

    def __post_init__(self) -> None:
        if not self.fix:
            raise ValueError(f"Finding '{self.message}' has no fix suggestion")

    @classmethod
    def error(cls, message: str, fix: str, key: SuppressKey, path: Path | None = None) -> Finding:
        return cls(Severity.ERROR, message, fix, key, path)

    @classmethod
    def warning(cls, message: str, fix: str, key: SuppressKey, path: Path | None = None) -> Finding:
        return cls(Severity.WARNING, message, fix, key, path)

    @classmethod
    def info(cls, message: str, fix: str, key: SuppressKey, path: Path | None = None) -> Finding:
        return cls(Severity.INFO, message, fix, key, path)

    @property
    def key(self) -> str:
        return format_suppress_key(self.suppress_key)

    def mark_suppressed(self) -> Finding:
        return replace(self, message=self.message + SUPPRESSED_SUFFIX)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.name.lower(),
            "message": self.message,
            "fix": self.fix,
            "path": str(self.path) if self.path is not None else None,
            "suppress_key": self.key,
        }
