"""Severity-grouped rendering of check findings.

Layout:

    ERROR (2 found)
      • Skill 'a' references non-existent skill 'b' (line 4)
        ↳ Create the skill with `loadout new b`, or remove the reference at line 4

Each group shows its count. A finding's path, when present, follows the
message in parentheses. The fix line is dimmed.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape

from loadout.findings import Finding, Severity

NO_ISSUES = "No issues found."


def group_by_severity(findings: Sequence[Finding]) -> list[tuple[Severity, list[Finding]]]:
    """Non-empty groups in report order: errors, warnings, info."""
    groups = []
    for severity in sorted(Severity, reverse=True):
        members = [f for f in findings if f.severity == severity]
        if members:
            groups.append((severity, members))
    return groups


def print_findings(findings: Sequence[Finding], console: Console | None = None) -> None:
    console = console or Console()

    if not findings:
        console.print(NO_ISSUES, style="green")
        return

    for severity, members in group_by_severity(findings):
        console.print()
        console.print(
            f"[bold {severity.color}]{severity.label}[/] ({len(members)} found)",
            highlight=False,
            emoji=False,
        )
        for finding in members:
            text = finding.message
            if finding.path is not None:
                text = f"{text} ({finding.path})"
            console.print(
                f"  [{severity.color}]•[/] [dim]{escape(text)}[/]", highlight=False, emoji=False
            )
            console.print(
                f"    [{severity.color}]↳[/] [dim]{escape(finding.fix)}[/]",
                highlight=False,
                emoji=False,
            )

    console.print()


def findings_to_json(findings: Sequence[Finding]) -> str:
    return json.dumps([f.to_dict() for f in findings], indent=2)
