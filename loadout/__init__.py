"""Loadout: skill lifecycle tooling for AI agents.

Discovers SKILL.md directories across source trees, extracts the
cross-references between skills, builds a dependency graph over them and
runs consistency checks whose findings form a single ranked report.

Usage:
    from loadout.config import load
    from loadout.skills import discover_all
    from loadout.crossref import collect_crossrefs
    from loadout.skill_graph import SkillGraph
    from loadout.checks import run_checks

    config = load()
    skills = discover_all(config.sources.skills)
    crossrefs = collect_crossrefs(skills)
    graph = SkillGraph.from_crossrefs(crossrefs)
    findings = run_checks(skills, crossrefs, config)
"""

__version__ = "0.3.0"
