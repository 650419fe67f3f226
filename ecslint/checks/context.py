"""Per-unit state shared by every check."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field

from ..config import LintConfig
from ..graph import ConstraintGraph
from ..models import Finding, FindingKind, Location
from ..scan.metadata import LocalDeclarations
from ..source.loader import CompilationUnit
from ..source.resolver import IdentifierResolver


@dataclass
class UnitContext:
    """Everything a check needs to analyze one unit, plus the findings it collects."""

    unit: CompilationUnit
    resolver: IdentifierResolver
    decls: LocalDeclarations
    graph: ConstraintGraph
    config: LintConfig = field(default_factory=LintConfig)
    findings: list[Finding] = field(default_factory=list)

    def report(
        self,
        kind: FindingKind,
        rule: str,
        node: ast.AST | None,
        variant: str = "",
        **data: str,
    ) -> None:
        """Record a finding at ``node``; rules configured ``off`` are dropped here."""
        level = self.config.severity_for(rule)
        if level == "off":
            return
        self.findings.append(
            Finding(
                kind=kind,
                rule=rule,
                location=Location.of(self.unit.path, node),
                variant=variant,
                data=data,
                level=level,
            )
        )
