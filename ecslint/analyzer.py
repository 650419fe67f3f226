"""Run every check family over a program."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .checks import (
    UnitContext,
    check_declarations,
    check_queries,
    check_sequential_builders,
    check_templates,
)
from .config import LintConfig
from .graph import ConstraintGraph
from .models import Finding, Registry
from .registry import AnalysisSession
from .scan.metadata import extract_declarations
from .source.loader import CompilationUnit, Program
from .source.resolver import IdentifierResolver
from .source.symbols import SymbolIndex

logger = logging.getLogger(__name__)

CHECKS = (check_declarations, check_sequential_builders, check_templates, check_queries)


@dataclass
class ProgramReport:
    """Findings for one program snapshot."""

    snapshot_id: int
    registry: Registry
    findings: list[Finding] = field(default_factory=list)
    units_analyzed: int = 0

    def count(self, level: str) -> int:
        return sum(1 for f in self.findings if f.level == level)

    def by_rule(self) -> dict[str, list[Finding]]:
        grouped: dict[str, list[Finding]] = {}
        for finding in self.findings:
            grouped.setdefault(finding.rule, []).append(finding)
        return grouped


def _sort_key(finding: Finding):
    loc = finding.location
    return (str(loc.path), loc.line or 0, loc.column or 0, finding.rule)


def analyze_unit(
    unit: CompilationUnit,
    *,
    registry: Registry,
    index: SymbolIndex | None = None,
    config: LintConfig | None = None,
) -> list[Finding]:
    """Analyze one unit against the cross-unit registry."""
    config = config or LintConfig()
    resolver = IdentifierResolver(unit, index)
    decls = extract_declarations(unit, resolver)
    graph = ConstraintGraph.build(
        registry,
        decls,
        seed=config.seed(),
        symmetric_conflicts=config.symmetric_conflicts,
    )

    ctx = UnitContext(unit=unit, resolver=resolver, decls=decls, graph=graph, config=config)
    for check in CHECKS:
        check(ctx)

    logger.debug(f"{unit.path}: {len(ctx.findings)} finding(s)")
    return ctx.findings


def analyze_program(
    program: Program,
    *,
    session: AnalysisSession | None = None,
    config: LintConfig | None = None,
) -> ProgramReport:
    """Analyze every non-external unit; findings are sorted by location."""
    session = session or AnalysisSession()
    config = config or LintConfig()

    registry = session.build_or_get_registry(program)
    index = session.symbol_index(program)

    report = ProgramReport(snapshot_id=session.snapshot_id(program), registry=registry)
    for unit in program.analyzable_units:
        report.findings.extend(
            analyze_unit(unit, registry=registry, index=index, config=config)
        )
        report.units_analyzed += 1

    report.findings.sort(key=_sort_key)
    return report
