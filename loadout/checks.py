"""Consistency checks over skills, references and configuration.

Checks (each independent, each returning its own findings):
1. Dangling references       ERROR    dangling:<skill>:<target>
2. Orphaned skills           WARNING  orphaned:<skill>
3. Name/directory mismatch   ERROR    name-mismatch:<skill>
4. Empty description         ERROR    empty-description:<skill>
5. Broken symlinks           ERROR    broken-symlink:<entry>
6. Unmanaged conflicts       WARNING  unmanaged:<entry>
7. Placeholder/short desc    WARNING  placeholder:<skill> | short-description:<skill>
8. Pipeline integrity        ERROR    pipeline-missing:<pipeline>:<skill>:<dep>
                             WARNING  pipeline-gap:<pipeline>:<skill>:<prerequisite>
9. Missing metadata          INFO     no-metadata:<skill>

Findings are ranked errors first (stable within a severity), optionally
cut at a minimum severity, then suppressed via ``[check].ignore``. The
exit status is 1 when any error survives.

Usage:
    from loadout.checks import exit_code, run_checks

    findings = run_checks(skills, crossrefs, config, verbose=False)
    sys.exit(exit_code(findings))
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from loadout.config import Config
from loadout.crossref import CrossRef
from loadout.findings import Finding, Severity, SuppressKey, SuppressKind
from loadout.frontmatter import PipelineStage
from loadout.skills import Skill
from loadout.targets import MARKER_FILE, FilesystemTargetLister, TargetLister

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckConstants:
    """Fixed literals the checks compare against."""

    placeholder_descriptions: tuple[str, ...] = ("Description here", "TODO", "TBD", "FIXME")
    marker_file: str = MARKER_FILE
    project_target_subdirs: tuple[str, ...] = (".claude/skills", ".opencode/skills", ".agents/skills")
    min_description_length: int = 10


DEFAULT_CHECK_CONSTANTS = CheckConstants()


def target_directories(
    config: Config, constants: CheckConstants = DEFAULT_CHECK_CONSTANTS
) -> list[Path]:
    """Global targets followed by each project's tool skill directories, de-duplicated."""
    targets = list(config.global_.targets)
    for project_path in config.projects:
        targets.extend(project_path / subdir for subdir in constants.project_target_subdirs)
    return list(dict.fromkeys(targets))


# ── Checks ───────────────────────────────────────────────────────────


def check_dangling_references(
    crossrefs: Mapping[str, Sequence[CrossRef]], known: Collection[str]
) -> list[Finding]:
    """References whose target is not a discovered skill."""
    findings = []

    for source in sorted(crossrefs):
        for ref in crossrefs[source]:
            if ref.target in known:
                continue
            findings.append(
                Finding.error(
                    f"Skill '{source}' references non-existent skill '{ref.target}' (line {ref.line})",
                    f"Create the skill with `loadout new {ref.target}`, "
                    f"or remove the reference at line {ref.line}",
                    SuppressKey.dangling(source, ref.target),
                )
            )

    return findings


def check_orphaned_skills(config: Config, skills: Iterable[Skill]) -> list[Finding]:
    """Skills present in sources but enabled nowhere in the config."""
    findings = []
    mentioned = config.mentioned_skills()

    for skill in skills:
        if skill.name in mentioned:
            continue
        findings.append(
            Finding.warning(
                f"Skill '{skill.name}' exists in sources but not in any config section",
                f"Add '{skill.name}' to [global].skills in loadout.toml",
                SuppressKey(SuppressKind.ORPHANED, skill.name),
                skill.path,
            )
        )

    return findings


def check_name_directory_mismatch(skills: Iterable[Skill]) -> list[Finding]:
    findings = []

    for skill in skills:
        dir_name = skill.path.name
        if not dir_name or dir_name == skill.name:
            continue
        findings.append(
            Finding.error(
                f"Skill name '{skill.name}' does not match directory name '{dir_name}'",
                f"Rename directory to '{skill.name}' or update frontmatter name field",
                SuppressKey(SuppressKind.NAME_MISMATCH, skill.name),
                skill.path,
            )
        )

    return findings


def check_empty_description(skills: Iterable[Skill]) -> list[Finding]:
    findings = []

    for skill in skills:
        if skill.description:
            continue
        findings.append(
            Finding.error(
                f"Skill '{skill.name}' has empty description",
                "Add a description to the SKILL.md frontmatter",
                SuppressKey(SuppressKind.EMPTY_DESCRIPTION, skill.name),
                skill.path,
            )
        )

    return findings


def check_broken_symlinks(
    targets: Iterable[Path], lister: TargetLister
) -> list[Finding]:
    """Symlinks in target directories whose referent no longer exists.

    Raises:
        TargetDirectoryError: If a target directory cannot be read.
    """
    findings = []

    for target in targets:
        for entry in lister.list_entries(target):
            if not entry.is_symlink or entry.link_reachable:
                continue
            findings.append(
                Finding.error(
                    "Broken symlink: target does not exist",
                    "Remove the dangling symlink and link the skill again",
                    SuppressKey(SuppressKind.BROKEN_SYMLINK, entry.name),
                    entry.path,
                )
            )

    return findings


def check_unmanaged_conflicts(
    targets: Iterable[Path], lister: TargetLister
) -> list[Finding]:
    """Real directories in target directories that loadout did not create.

    Raises:
        TargetDirectoryError: If a target directory cannot be read.
    """
    findings = []

    for target in targets:
        for entry in lister.list_entries(target):
            if entry.is_symlink or not entry.is_dir or entry.has_marker:
                continue
            findings.append(
                Finding.warning(
                    "Unmanaged directory conflicts with skill slot",
                    "Move or remove the directory so loadout can link the skill in its place",
                    SuppressKey(SuppressKind.UNMANAGED, entry.name),
                    entry.path,
                )
            )

    return findings


def check_placeholder_descriptions(
    skills: Iterable[Skill], constants: CheckConstants = DEFAULT_CHECK_CONSTANTS
) -> list[Finding]:
    """Placeholder text wins over the short-description warning; never both."""
    findings = []

    for skill in skills:
        desc = skill.description

        if any(placeholder in desc for placeholder in constants.placeholder_descriptions):
            findings.append(
                Finding.warning(
                    f"Skill '{skill.name}' has placeholder description: '{desc[:50]}'",
                    f"Edit {skill.path}/SKILL.md and write a real description",
                    SuppressKey(SuppressKind.PLACEHOLDER, skill.name),
                    skill.path,
                )
            )
        elif len(desc) < constants.min_description_length:
            findings.append(
                Finding.warning(
                    f"Skill '{skill.name}' has very short description ({len(desc)} chars): '{desc}'",
                    f"Edit {skill.path}/SKILL.md and expand the description",
                    SuppressKey(SuppressKind.SHORT_DESCRIPTION, skill.name),
                    skill.path,
                )
            )

    return findings


def _pipeline_map(skills: Iterable[Skill]) -> dict[str, dict[str, PipelineStage]]:
    """pipeline name -> skill name -> stage, pipelines sorted, skills in discovery order."""
    pipelines: dict[str, dict[str, PipelineStage]] = {}
    for skill in skills:
        for pipeline_name, stage in (skill.pipeline or {}).items():
            pipelines.setdefault(pipeline_name, {}).setdefault(skill.name, stage)
    return {name: pipelines[name] for name in sorted(pipelines)}


def check_pipeline_integrity(skills: Iterable[Skill], known: Collection[str]) -> list[Finding]:
    """Missing after/before dependencies and one-sided after declarations."""
    findings = []

    for pipeline_name, stages in _pipeline_map(skills).items():
        for skill_name, stage in stages.items():
            for relation, deps in (("after", stage.after), ("before", stage.before)):
                for dep in deps or []:
                    if dep in known:
                        continue
                    findings.append(
                        Finding.error(
                            f"Pipeline '{pipeline_name}': skill '{skill_name}' declares "
                            f"{relation}: ['{dep}'] but skill doesn't exist",
                            f"Create the skill with `loadout new {dep}`, "
                            f"or remove it from the {relation} list",
                            SuppressKey.pipeline_missing(pipeline_name, skill_name, dep),
                        )
                    )

            # Reciprocity is only checked from the after side
            for dep in stage.after or []:
                if dep not in known:
                    continue
                # A known prerequisite outside this pipeline also counts as a gap
                dep_stage = stages.get(dep)
                if dep_stage is not None and skill_name in (dep_stage.before or []):
                    continue
                findings.append(
                    Finding.warning(
                        f"Pipeline '{pipeline_name}': '{skill_name}' declares after: ['{dep}'] "
                        f"but '{dep}' doesn't declare before: ['{skill_name}']",
                        f"Add before: ['{skill_name}'] to skill '{dep}' in pipeline '{pipeline_name}'",
                        SuppressKey.pipeline_gap(pipeline_name, skill_name, dep),
                    )
                )

    return findings


def check_missing_metadata(skills: Sequence[Skill]) -> list[Finding]:
    """Skills with neither tags nor pipeline membership.

    Only runs once the library has started using metadata: if no skill at
    all has tags or a pipeline, nothing is reported.
    """
    if not any(s.frontmatter.has_tags or s.frontmatter.has_pipeline for s in skills):
        return []

    findings = []
    for skill in skills:
        if skill.frontmatter.has_tags or skill.frontmatter.has_pipeline:
            continue
        findings.append(
            Finding.info(
                f"Skill '{skill.name}' has no tags and isn't in any pipeline",
                f"Add tags: [<tag>] or pipeline metadata to {skill.path}/SKILL.md",
                SuppressKey(SuppressKind.NO_METADATA, skill.name),
            )
        )

    return findings


# ── Aggregation ──────────────────────────────────────────────────────


def collect_findings(
    skills: Sequence[Skill],
    crossrefs: Mapping[str, Sequence[CrossRef]],
    config: Config,
    lister: TargetLister,
    constants: CheckConstants = DEFAULT_CHECK_CONSTANTS,
) -> list[Finding]:
    """Run every check in order and concatenate the results, unranked."""
    known = {skill.name for skill in skills}
    targets = target_directories(config, constants)

    findings: list[Finding] = []
    findings.extend(check_dangling_references(crossrefs, known))
    findings.extend(check_orphaned_skills(config, skills))
    findings.extend(check_name_directory_mismatch(skills))
    findings.extend(check_empty_description(skills))
    findings.extend(check_broken_symlinks(targets, lister))
    findings.extend(check_unmanaged_conflicts(targets, lister))
    findings.extend(check_placeholder_descriptions(skills, constants))
    findings.extend(check_pipeline_integrity(skills, known))
    findings.extend(check_missing_metadata(skills))
    return findings


def rank(findings: Iterable[Finding]) -> list[Finding]:
    """Errors first, then warnings, then info; discovery order within a severity."""
    return sorted(findings, key=lambda f: f.severity, reverse=True)


def filter_severity(findings: Iterable[Finding], min_severity: Severity | None) -> list[Finding]:
    if min_severity is None:
        return list(findings)
    return [f for f in findings if f.severity >= min_severity]


def apply_suppression(
    findings: Iterable[Finding], ignore: Collection[str], verbose: bool = False
) -> list[Finding]:
    """Drop ignored findings, or in verbose mode keep them marked '(suppressed)'."""
    ignored = set(ignore)
    if not verbose:
        return [f for f in findings if f.key not in ignored]
    return [f.mark_suppressed() if f.key in ignored else f for f in findings]


def run_checks(
    skills: Sequence[Skill],
    crossrefs: Mapping[str, Sequence[CrossRef]],
    config: Config,
    lister: TargetLister | None = None,
    *,
    min_severity: Severity | None = None,
    verbose: bool = False,
    constants: CheckConstants = DEFAULT_CHECK_CONSTANTS,
) -> list[Finding]:
    """Run all checks and return the ranked, filtered, suppressed findings.

    Args:
        skills: Discovered skills.
        crossrefs: Skill name -> extracted references (unfiltered).
        config: Loaded configuration (ignore list, targets, projects).
        lister: Target directory lister. Defaults to the real filesystem.
        min_severity: Drop findings below this severity.
        verbose: Keep suppressed findings, marked '(suppressed)'.
        constants: Literal values the checks compare against.

    Raises:
        TargetDirectoryError: If a target directory cannot be listed.
    """
    if lister is None:
        lister = FilesystemTargetLister(constants.marker_file)

    findings = collect_findings(skills, crossrefs, config, lister, constants)
    findings = filter_severity(rank(findings), min_severity)
    findings = apply_suppression(findings, config.check.ignore, verbose)

    counts = Counter(f.severity.label for f in findings)
    logger.info(
        "Check complete: %d errors, %d warnings, %d info",
        counts.get("ERROR", 0),
        counts.get("WARN", 0),
        counts.get("INFO", 0),
    )
    return findings


def exit_code(findings: Iterable[Finding]) -> int:
    """1 if any error-severity finding is present, else 0."""
    return 1 if any(f.severity == Severity.ERROR for f in findings) else 0
