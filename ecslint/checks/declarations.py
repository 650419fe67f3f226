"""component-validator: consistency of register_validator declarations."""

from __future__ import annotations

from ..models import FindingKind
from ..scan.metadata import DeclaredValidator, NameRef
from .context import UnitContext

RULE = "component-validator"


def _first_repeat(refs: list[NameRef], name: str) -> NameRef:
    seen = False
    for ref in refs:
        if ref.name == name:
            if seen:
                return ref
            seen = True
    return refs[0]


def _contradiction_node(validator: DeclaredValidator, target: str):
    """Most specific node for a contradiction: the local conflict entry if there is one."""
    for refs in (validator.conflicts, validator.dependencies):
        for ref in refs:
            if ref.name == target:
                return ref.node
    return validator.call


def _check_self_reference(ctx: UnitContext, validator: DeclaredValidator) -> None:
    subject = validator.subject.name
    arrays = (
        ("dependency", "dependencies", validator.dependencies, validator.dependencies_node),
        ("conflict", "conflicts", validator.conflicts, validator.conflicts_node),
    )
    for variant, kind, refs, node in arrays:
        if ctx.graph.detect_self_reference(subject, (ref.name for ref in refs), kind):
            ctx.report(FindingKind.SELF_REFERENCE, RULE, node, variant, component=subject)


def _check_duplicates(ctx: UnitContext, validator: DeclaredValidator) -> None:
    for variant, refs in (("dependency", validator.dependencies), ("conflict", validator.conflicts)):
        duplicates = ctx.graph.detect_duplicates(ref.name for ref in refs)
        for name in sorted(duplicates):
            ref = _first_repeat(refs, name)
            ctx.report(FindingKind.DUPLICATE_ENTRY, RULE, ref.node, variant, target=name)


def _check_cycles(ctx: UnitContext) -> None:
    first_registration: dict[str, DeclaredValidator] = {}
    for validator in ctx.decls.validators:
        first_registration.setdefault(validator.subject.name, validator)

    for cycle in ctx.graph.detect_cycles():
        # Reported once, by the first member this unit declares.
        owner = next((first_registration[n] for n in cycle[:-1] if n in first_registration), None)
        if owner is None:
            continue
        ctx.report(FindingKind.CYCLE, RULE, owner.call, cycle=" -> ".join(cycle))


def check_declarations(ctx: UnitContext) -> None:
    """Self-reference, contradiction, duplicate and cycle checks for local validators."""
    reported_contradictions: set[tuple[str, str]] = set()

    for validator in ctx.decls.validators:
        subject = validator.subject.name
        _check_self_reference(ctx, validator)

        for target in sorted(ctx.graph.detect_contradiction(subject)):
            if (subject, target) in reported_contradictions:
                continue
            reported_contradictions.add((subject, target))
            ctx.report(
                FindingKind.CONTRADICTION,
                RULE,
                _contradiction_node(validator, target),
                component=subject,
                target=target,
            )

        _check_duplicates(ctx, validator)

    if ctx.config.check_cycles:
        _check_cycles(ctx)
