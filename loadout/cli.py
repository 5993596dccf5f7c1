#!/usr/bin/env python3
"""
loadout command line.

Commands:
    check     Run consistency checks and print a severity-grouped report
    graph     Print the skill reference graph (text, dot, json, mermaid)
    validate  Strictly validate SKILL.md frontmatter
    list      Show enabled skills per scope
    new       Scaffold a new skill in the first source directory

Usage:
    loadout check --severity warning
    loadout check --verbose          # show suppressed findings
    loadout graph --format mermaid --known-only
    loadout validate my-skill
    loadout new my-skill --description "What the skill does"
    loadout --config ./loadout.toml list

Exit codes:
    0  success / no surviving errors
    1  at least one error finding, validation failure, or fatal error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from loadout import __version__
from loadout.checks import exit_code, run_checks
from loadout.config import Config, load
from loadout.crossref import collect_crossrefs
from loadout.errors import FrontmatterError, LoadoutError
from loadout.findings import Severity
from loadout.report import findings_to_json, print_findings
from loadout.skill_graph import OutputFormat, SkillGraph
from loadout.skills import (
    Skill,
    build_skill_map,
    create_skill,
    discover_all,
    iter_skill_dirs,
    resolve,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _discover(config: Config) -> list[Skill]:
    """Discover skills from configured sources, one per name."""
    return list(build_skill_map(discover_all(config.sources.skills)).values())


def cmd_check(args: argparse.Namespace, config: Config) -> int:
    skills = _discover(config)
    crossrefs = collect_crossrefs(skills)
    min_severity = Severity.parse(args.severity) if args.severity else None

    findings = run_checks(
        skills,
        crossrefs,
        config,
        min_severity=min_severity,
        verbose=args.verbose,
    )

    if args.json:
        print(findings_to_json(findings))
    else:
        print_findings(findings)

    return exit_code(findings)


def cmd_graph(args: argparse.Namespace, config: Config) -> int:
    skills = _discover(config)
    known = {skill.name for skill in skills} if args.known_only else None
    crossrefs = collect_crossrefs(skills, known=known)

    graph = SkillGraph.from_crossrefs(crossrefs)
    output = graph.export(OutputFormat.parse(args.format))
    sys.stdout.write(output if output.endswith("\n") else output + "\n")
    return 0


def _validate_dir(skill_dir: Path, console: Console) -> bool:
    try:
        skill = Skill.from_directory(skill_dir)
        skill.frontmatter.validate_strict(skill_dir.name)
    except FrontmatterError as e:
        console.print(f"  [red]✗[/] {escape(skill_dir.name)} - {escape(str(e))}", highlight=False)
        return False

    console.print(f"  [green]✓[/] {escape(skill.name)}", highlight=False)
    return True


def cmd_validate(args: argparse.Namespace, config: Config) -> int:
    console = Console()
    results: list[bool] = []

    if args.target is None:
        console.print("[bold cyan]Validating all skills from configured sources...[/]")
        console.print()
        for source in config.sources.skills:
            console.print(f"Source: {escape(str(source))}", highlight=False)
            if source.exists():
                results.extend(_validate_dir(d, console) for d in iter_skill_dirs(source))
    elif Path(args.target).is_dir():
        target = Path(args.target)
        console.print(f"[bold cyan]Validating skills in:[/] {escape(str(target))}", highlight=False)
        console.print()
        results.extend(_validate_dir(d, console) for d in iter_skill_dirs(target))
    else:
        console.print(f"[bold cyan]Validating skill:[/] {escape(args.target)}", highlight=False)
        console.print()
        skill = resolve(config.sources.skills, args.target)
        ok = _validate_dir(skill.path, console)
        results.append(ok)
        if ok:
            console.print(f"  Path: [dim]{escape(str(skill.path))}[/]", highlight=False)

    failed = results.count(False)
    console.print()
    if failed:
        console.print(f"[bold red]✗[/] {failed} errors in {len(results)} skills", highlight=False)
        return 1

    console.print(f"[bold green]✓[/] {len(results)} skills validated", highlight=False)
    return 0


def cmd_list(args: argparse.Namespace, config: Config) -> int:
    console = Console()
    skill_map = build_skill_map(discover_all(config.sources.skills))

    def show(name: str, scope: str | None = None) -> None:
        skill = skill_map.get(name)
        if skill is None:
            console.print(f"  [red]✗[/] {escape(name)} [red](not found)[/]", highlight=False)
            return
        where = f"{scope}, {skill.path}" if scope else str(skill.path)
        console.print(f"  [green]✓[/] {escape(name)} [dim]({escape(where)})[/]", highlight=False)

    console.print("[bold cyan]--- Global scope ---[/]")
    console.print(f"Skills: {len(config.global_.skills)}", highlight=False)
    for name in config.global_.skills:
        show(name)

    for project_path, project in config.projects.items():
        names = config.project_skills(project_path)
        console.print()
        console.print(f"[bold cyan]--- Project:[/] {escape(str(project_path))}", highlight=False)
        console.print(
            f"Skills: {len(names)} (inherit: {str(project.inherit).lower()})", highlight=False
        )
        for name in names:
            show(name, "global" if name in config.global_.skills else "project")

    return 0


def cmd_new(args: argparse.Namespace, config: Config) -> int:
    console = Console()
    skill = create_skill(config.sources.skills, args.name, args.description)

    console.print(f"[bold green]Created skill:[/] {escape(skill.name)}", highlight=False)
    console.print(f"  Path: {escape(str(skill.path))}", highlight=False)
    console.print(f"  File: {escape(str(skill.skill_file))}", highlight=False)
    console.print()
    console.print("Next steps:")
    console.print(f"  1. Edit [cyan]{escape(str(skill.skill_file))}[/]", highlight=False)
    console.print(
        f"  2. Add '[cyan]{escape(skill.name)}[/]' to loadout.toml \\[global] skills",
        highlight=False,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loadout", description="Skill lifecycle tooling: cross-references, graph and checks"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to loadout.toml (default: $LOADOUT_CONFIG, XDG or ~/.config/loadout)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on stderr")

    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Run consistency checks over skills and config")
    check.add_argument(
        "--severity",
        type=str.lower,
        choices=["error", "warning", "info"],
        default=None,
        help="Only show findings at or above this severity",
    )
    check.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Include suppressed findings, marked '(suppressed)'",
    )
    check.add_argument("--json", action="store_true", help="Output findings as JSON")
    check.set_defaults(handler=cmd_check)

    graph = subparsers.add_parser("graph", help="Print the skill reference graph")
    graph.add_argument(
        "--format",
        "-f",
        type=str.lower,
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="Output format (default: text)",
    )
    graph.add_argument(
        "--known-only",
        action="store_true",
        help="Drop references to skills that do not exist",
    )
    graph.set_defaults(handler=cmd_graph)

    validate = subparsers.add_parser("validate", help="Strictly validate SKILL.md frontmatter")
    validate.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Skill name or directory (default: all configured sources)",
    )
    validate.set_defaults(handler=cmd_validate)

    list_cmd = subparsers.add_parser("list", help="Show enabled skills per scope")
    list_cmd.set_defaults(handler=cmd_list)

    new = subparsers.add_parser("new", help="Scaffold a new skill from the template")
    new.add_argument("name", help="Skill name (lowercase, hyphen-separated)")
    new.add_argument("--description", "-d", default=None, help="Frontmatter description")
    new.set_defaults(handler=cmd_new)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    logger.debug("Running command %s", args.command)
    try:
        config = load(args.config)
        return args.handler(args, config)
    except LoadoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
