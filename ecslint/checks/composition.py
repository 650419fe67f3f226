"""
component-order: entity builders and templates.

Both replay a composition one component at a time: each attach must come
after the component's dependencies and must not join a conflicting
component. Entity tracking is flow-insensitive and local to the enclosing
function; components attached from helper functions are not seen.
"""

from __future__ import annotations

import ast
import logging

from ..models import FindingKind
from ..scan.shapes import EntityCreation, SequentialAttach, classify_call
from .context import UnitContext

logger = logging.getLogger(__name__)

RULE = "component-order"


class CompositionState:
    """Components attached to one entity so far, in attach order."""

    def __init__(self):
        self.components: list[str] = []

    def __contains__(self, name: str) -> bool:
        return name in self.components

    def add(self, name: str) -> None:
        if name not in self.components:
            self.components.append(name)


def check_attach(
    ctx: UnitContext,
    state: CompositionState,
    component: str,
    node: ast.AST,
    variant: str,
    **context: str,
) -> None:
    """Check one attach against the state, then record it regardless of the outcome."""
    for dep in sorted(ctx.graph.dependencies_of(component)):
        if dep not in state:
            ctx.report(
                FindingKind.MISSING_DEPENDENCY,
                RULE,
                node,
                variant,
                component=component,
                dependency=dep,
                **context,
            )

    for conflict in sorted(ctx.graph.conflicts_of(component)):
        if conflict in state:
            ctx.report(
                FindingKind.CONFLICTING_COMPONENT,
                RULE,
                node,
                variant,
                component=component,
                conflict=conflict,
                **context,
            )

    state.add(component)


def _bound_names(target: ast.AST | None):
    """Plain names bound by an assignment, loop or ``with`` target."""
    if isinstance(target, ast.Name):
        yield target.id
    elif isinstance(target, (ast.Tuple, ast.List)):
        for element in target.elts:
            yield from _bound_names(element)
    elif isinstance(target, ast.Starred):
        yield from _bound_names(target.value)


class SequentialBuilderVisitor(ast.NodeVisitor):
    """Follows ``create_entity()`` bindings and the attaches made through them.

    Calls are handled after their children so the innermost call of a chain
    such as ``world.create_entity().attach(A).attach(B)`` is seen first.
    A tracked name rebound by anything other than an entity (loop and
    ``with`` targets, unpacking, imports, ``except ... as``, ``del``) is
    no longer tracked.
    """

    def __init__(self, ctx: UnitContext):
        self.ctx = ctx
        self.scopes: list[dict[str, CompositionState]] = [{}]
        self.chains: dict[ast.Call, CompositionState] = {}

    @property
    def scope(self) -> dict[str, CompositionState]:
        return self.scopes[-1]

    def _visit_scoped(self, node: ast.AST) -> None:
        self.scopes.append({})
        try:
            self.generic_visit(node)
        finally:
            self.scopes.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        self._drop(node.name)
        self._visit_scoped(node)

    visit_AsyncFunctionDef = visit_FunctionDef
    visit_Lambda = _visit_scoped
    visit_ListComp = _visit_scoped
    visit_SetComp = _visit_scoped
    visit_DictComp = _visit_scoped
    visit_GeneratorExp = _visit_scoped

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._drop(node.name)
        self.generic_visit(node)

    def state_of(self, expr: ast.AST | None) -> CompositionState | None:
        if isinstance(expr, ast.Call):
            return self.chains.get(expr)
        if isinstance(expr, ast.Name):
            return self.scope.get(expr.id)
        return None

    def _drop(self, name: str | None) -> None:
        if name:
            self.scope.pop(name, None)

    def _forget(self, target: ast.AST | None) -> None:
        """Stop tracking every name bound by ``target``."""
        for name in _bound_names(target):
            self._drop(name)

    def _bind(self, target: ast.AST, value: ast.AST | None) -> None:
        if not isinstance(target, ast.Name):
            # Unpacking never yields a tracked entity.
            self._forget(target)
            return
        state = self.state_of(value)
        if state is None:
            # Rebound to something untracked.
            self._drop(target.id)
        else:
            self.scope[target.id] = state

    def visit_Assign(self, node: ast.Assign) -> None:
        self.generic_visit(node)
        for target in node.targets:
            self._bind(target, node.value)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        self.generic_visit(node)
        if node.value is not None:
            self._bind(node.target, node.value)

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self.generic_visit(node)
        self._bind(node.target, node.value)

    def visit_AugAssign(self, node: ast.AugAssign) -> None:
        self.generic_visit(node)
        self._forget(node.target)

    def visit_Delete(self, node: ast.Delete) -> None:
        self.generic_visit(node)
        for target in node.targets:
            self._forget(target)

    def visit_For(self, node: ast.For | ast.AsyncFor) -> None:
        # The target is rebound before the body runs.
        self.visit(node.iter)
        self._forget(node.target)
        for stmt in node.body + node.orelse:
            self.visit(stmt)

    visit_AsyncFor = visit_For

    def visit_With(self, node: ast.With | ast.AsyncWith) -> None:
        for item in node.items:
            self.visit(item.context_expr)
            self._forget(item.optional_vars)
        for stmt in node.body:
            self.visit(stmt)

    visit_AsyncWith = visit_With

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        # Bound on entry to the handler, deleted on exit.
        self._drop(node.name)
        self.generic_visit(node)
        self._drop(node.name)

    def visit_Import(self, node: ast.Import | ast.ImportFrom) -> None:
        for alias in node.names:
            self._drop(alias.asname or alias.name.split(".")[0])

    visit_ImportFrom = visit_Import

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        self.generic_visit(node)
        self._drop(node.name)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        self._drop(node.name)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        self.generic_visit(node)
        self._drop(node.rest)

    def visit_Call(self, node: ast.Call) -> None:
        self.generic_visit(node)

        shape = classify_call(node)
        if isinstance(shape, EntityCreation):
            self.chains[node] = CompositionState()
        elif isinstance(shape, SequentialAttach):
            self._attach(shape)

    def _attach(self, shape: SequentialAttach) -> None:
        state = self.state_of(shape.receiver)
        if state is None:
            return

        # The chain continues even when the component cannot be resolved.
        self.chains[shape.call] = state
        component = self.ctx.resolver.resolve(shape.component)
        if component is None:
            logger.debug(f"{self.ctx.unit.path}:{shape.call.lineno}: unresolved attach argument")
            return
        check_attach(self.ctx, state, component, shape.call, "entity")


def check_sequential_builders(ctx: UnitContext) -> None:
    SequentialBuilderVisitor(ctx).visit(ctx.unit.tree)


def check_templates(ctx: UnitContext) -> None:
    """Replay each template's component list in declaration order."""
    for template in ctx.decls.templates:
        state = CompositionState()
        name = template.name or "<unnamed>"
        for ref in template.components:
            check_attach(ctx, state, ref.name, ref.node, "template", template=name)
