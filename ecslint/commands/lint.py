"""Lint command implementation."""

import json
from collections import defaultdict
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..analyzer import ProgramReport, analyze_program
from ..catalog import RULE_EXPLANATIONS, RULES, get_rule, get_rule_ids
from ..config import LintConfig
from ..models import Finding
from ..registry import AnalysisSession
from . import load_project

LEVEL_STYLES = {
    "error": ("ERROR", "bold red"),
    "warning": ("WARN", "yellow"),
    "info": ("INFO", "dim"),
}


def run_lint(
    root: Path,
    config: LintConfig,
    fail_on: str = "error",
    output_json: bool = False,
    flat: bool = False,
    session: AnalysisSession | None = None,
) -> int:
    """Run lint checks on a project.

    Args:
        root: Project root directory
        config: Loaded configuration
        fail_on: Exit with error if this level or higher found ("error" or "warning")
        output_json: Output results as JSON instead of human-readable
        flat: One line per finding instead of rule-grouped output
        session: Analysis session to reuse (watch mode keeps one alive)

    Returns:
        Exit code (0 = success, 1 = failures found)
    """
    console = Console(stderr=True)

    if not output_json:
        console.print(f"Loading sources from {root}...", style="dim")
    program = load_project(root, config)
    report = analyze_program(program, session=session, config=config)

    counts = {level: report.count(level) for level in ("error", "warning", "info")}

    if output_json:
        _output_json(report, counts)
    else:
        print_report(console, report, flat=flat)

    if fail_on == "warning":
        if counts["error"] > 0 or counts["warning"] > 0:
            return 1
    else:  # fail_on == "error"
        if counts["error"] > 0:
            return 1

    return 0


def print_report(console: Console, report: ProgramReport, flat: bool = False) -> None:
    """Human-readable findings followed by the summary table."""
    counts = {level: report.count(level) for level in ("error", "warning", "info")}
    if flat:
        _print_flat_output(console, report.findings)
    else:
        _print_rule_grouped_output(console, report.findings)
    _print_summary(console, report, counts)


def finding_to_dict(finding: Finding) -> dict:
    """Convert a Finding to a JSON-serializable dict."""
    return {
        "level": finding.level,
        "rule": finding.rule,
        "kind": finding.kind.value,
        "file": str(finding.location.path),
        "line": finding.location.line,
        "column": finding.location.column + 1 if finding.location.column is not None else None,
        "message": finding.message,
        "data": finding.data,
    }


def _output_json(report: ProgramReport, counts: dict[str, int]) -> None:
    by_rule = defaultdict(list)
    for finding in report.findings:
        by_rule[finding.rule].append(finding_to_dict(finding))

    output = {
        "errors": [finding_to_dict(f) for f in report.findings if f.level == "error"],
        "warnings": [finding_to_dict(f) for f in report.findings if f.level == "warning"],
        "info": [finding_to_dict(f) for f in report.findings if f.level == "info"],
        "by_rule": dict(by_rule),
        "summary": {
            "snapshot": report.snapshot_id,
            "files": report.units_analyzed,
            "components": len(report.registry.components),
            "known_components": len(report.registry.known_components),
            "errors": counts["error"],
            "warnings": counts["warning"],
            "info": counts["info"],
        },
    }

    print(json.dumps(output, indent=2, default=str))


def _print_finding(console: Console, finding: Finding, indent: str = "    ", with_rule: bool = False) -> None:
    prefix, style = LEVEL_STYLES.get(finding.level, ("INFO", "dim"))
    rule = f"[{finding.rule}] " if with_rule else ""
    console.print(
        f"{indent}{prefix}: {rule}{finding.location} - {finding.message}",
        style=style,
        markup=False,
    )


def _print_flat_output(console: Console, findings: list[Finding]) -> None:
    console.print()
    for finding in findings:
        _print_finding(console, finding, indent="", with_rule=True)


def _print_rule_grouped_output(console: Console, findings: list[Finding]) -> None:
    by_rule = defaultdict(list)
    for finding in findings:
        by_rule[finding.rule].append(finding)

    for rule_id in get_rule_ids():
        rule_findings = by_rule.get(rule_id, [])
        errors = sum(1 for f in rule_findings if f.level == "error")
        warnings = sum(1 for f in rule_findings if f.level == "warning")
        infos = sum(1 for f in rule_findings if f.level == "info")

        if errors > 0:
            status, status_style = "✗", "bold red"
        elif warnings > 0:
            status, status_style = "⚠", "yellow"
        else:
            status, status_style = "✓", "bold green"

        console.print()
        console.print(f"{status} {rule_id}: {RULES[rule_id].summary}", style=status_style)

        if not rule_findings:
            console.print("  ✓ No problems", style="dim green")
            continue

        console.print(f"  {errors} error(s), {warnings} warning(s), {infos} info(s)", style="dim")
        for finding in rule_findings:
            _print_finding(console, finding)


def _print_summary(console: Console, report: ProgramReport, counts: dict[str, int]) -> None:
    console.print()

    table = Table(title="Lint Summary", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Files", str(report.units_analyzed))
    table.add_row("Constrained components", str(len(report.registry.components)))
    table.add_row("Known components", str(len(report.registry.known_components)))
    table.add_row("Errors", str(counts["error"]), style="red" if counts["error"] else None)
    table.add_row("Warnings", str(counts["warning"]), style="yellow" if counts["warning"] else None)
    table.add_row("Info", str(counts["info"]))

    console.print(table)

    if counts["error"] == 0 and counts["warning"] == 0:
        console.print("\n✓ No problems found", style="bold green")


def run_explain(rule_id: str) -> int:
    """Explain a specific lint rule.

    Args:
        rule_id: Rule ID to explain

    Returns:
        Exit code (0 = success, 1 = rule not found)
    """
    console = Console()

    rule_id = rule_id.lower().strip()
    rule = get_rule(rule_id)

    if rule is None:
        console.print(f"Unknown rule: {rule_id}", style="bold red")
        console.print()
        console.print("Known rules:", style="bold")
        for rid in get_rule_ids():
            console.print(f"  - {rid}: {get_rule(rid).summary}")
        return 1

    from rich.markdown import Markdown

    console.print(Markdown(RULE_EXPLANATIONS[rule_id]))
    console.print()
    console.print("Finding kinds:", style="bold")
    for kind in rule.kinds:
        console.print(f"  - {kind.value}")
    return 0
