"""query-validator: queries that can never match, and redundant query entries."""

from __future__ import annotations

from ..models import FindingKind
from ..scan.metadata import DeclaredQuery, NameRef, StringRef
from .context import UnitContext

RULE = "query-validator"


def _overlap(ctx: UnitContext, included: set[str], excluded: list, variant: str, key: str) -> None:
    reported = set()
    for ref in excluded:
        value = ref.name if isinstance(ref, NameRef) else ref.value
        if value in included and value not in reported:
            reported.add(value)
            ctx.report(FindingKind.UNSATISFIABLE_QUERY, RULE, ref.node, variant, **{key: value})


def _duplicates(ctx: UnitContext, refs: list[NameRef] | list[StringRef], variant: str, key: str) -> None:
    seen = set()
    reported = set()
    for ref in refs:
        value = ref.name if isinstance(ref, NameRef) else ref.value
        if value in seen and value not in reported:
            reported.add(value)
            ctx.report(FindingKind.DUPLICATE_ENTRY, RULE, ref.node, variant, **{key: value})
        seen.add(value)


def _conflicting_pairs(ctx: UnitContext, query: DeclaredQuery) -> None:
    # One entry per distinct name; a conflict declared from either side counts once.
    unique: dict[str, NameRef] = {}
    for ref in query.all:
        unique.setdefault(ref.name, ref)
    refs = list(unique.values())

    for i, first in enumerate(refs):
        for second in refs[i + 1:]:
            if ctx.graph.in_conflict(first.name, second.name):
                ctx.report(
                    FindingKind.UNSATISFIABLE_QUERY,
                    RULE,
                    second.node,
                    "conflicting-pair",
                    first=first.name,
                    second=second.name,
                )


def check_query(ctx: UnitContext, query: DeclaredQuery) -> None:
    _overlap(ctx, {ref.name for ref in query.all}, query.none, "all-none", "component")
    _overlap(ctx, {ref.value for ref in query.tags}, query.without_tags, "tags", "tag")

    _duplicates(ctx, query.all, "all", "component")
    _duplicates(ctx, query.none, "none", "component")
    _duplicates(ctx, query.tags, "tags", "tag")
    _duplicates(ctx, query.without_tags, "without_tags", "tag")

    _conflicting_pairs(ctx, query)


def check_queries(ctx: UnitContext) -> None:
    for query in ctx.decls.queries:
        check_query(ctx, query)
