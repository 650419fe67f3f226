"""
Project-wide symbol index used for semantic name resolution.

Maps module-level names to the declarations they refer to, following:
- ``import pkg.mod`` / ``import pkg.mod as m`` (module references)
- ``from pkg.mod import Name as Alias`` including relative imports
- package ``__init__`` re-exports and ``from x import *``
- module-level aliases such as ``Alias = Position`` or ``P = mod.Position``

Only module-level bindings are indexed. Names bound inside functions or
classes are not visible to the index and callers fall back to lexical
extraction for them.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .loader import CompilationUnit, Program

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when a name cannot be resolved consistently (e.g. an alias cycle)."""


@dataclass(frozen=True)
class DeclarationSymbol:
    """The declaration a reference resolves to."""

    name: str
    module: str
    path: Path
    is_class: bool
    is_external: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.module}:{self.name}"


@dataclass(frozen=True)
class ModuleRef:
    """A reference to a module rather than a declaration inside it."""

    module: str


Resolved = Union[DeclarationSymbol, ModuleRef]


@dataclass(frozen=True)
class _ClassBinding:
    node: ast.ClassDef


@dataclass(frozen=True)
class _ModuleBinding:
    module: str


@dataclass(frozen=True)
class _ImportBinding:
    module: str
    name: str


@dataclass(frozen=True)
class _AliasBinding:
    value: ast.expr


@dataclass(frozen=True)
class _OtherBinding:
    node: ast.AST


Binding = Union[_ClassBinding, _ModuleBinding, _ImportBinding, _AliasBinding, _OtherBinding]


@dataclass
class ModuleScope:
    """Module-level bindings of one compilation unit."""

    unit: CompilationUnit
    bindings: dict[str, Binding] = field(default_factory=dict)
    star_imports: list[str] = field(default_factory=list)


def _package_of(unit: CompilationUnit) -> str:
    if unit.is_package:
        return unit.module
    return unit.module.rpartition(".")[0]


def resolve_relative(unit: CompilationUnit, level: int, module: str | None) -> str | None:
    """Absolute module name for a ``from`` import with the given level."""
    if level == 0:
        return module
    base = _package_of(unit).split(".") if _package_of(unit) else []
    steps_up = level - 1
    if steps_up > len(base):
        return None
    base = base[: len(base) - steps_up]
    if module:
        base.extend(module.split("."))
    return ".".join(base)


def _top_level_statements(body: list[ast.stmt]):
    """Module statements, descending into if/try blocks but not defs."""
    for stmt in body:
        yield stmt
        if isinstance(stmt, ast.If):
            yield from _top_level_statements(stmt.body)
            yield from _top_level_statements(stmt.orelse)
        elif isinstance(stmt, ast.Try):
            yield from _top_level_statements(stmt.body)
            for handler in stmt.handlers:
                yield from _top_level_statements(handler.body)
            yield from _top_level_statements(stmt.orelse)
            yield from _top_level_statements(stmt.finalbody)


def build_scope(unit: CompilationUnit) -> ModuleScope:
    """Collect the module-level bindings of a unit."""
    scope = ModuleScope(unit=unit)

    for stmt in _top_level_statements(unit.tree.body):
        if isinstance(stmt, ast.ClassDef):
            scope.bindings[stmt.name] = _ClassBinding(stmt)

        elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            scope.bindings[stmt.name] = _OtherBinding(stmt)

        elif isinstance(stmt, ast.Import):
            for alias in stmt.names:
                if alias.asname:
                    scope.bindings[alias.asname] = _ModuleBinding(alias.name)
                else:
                    # `import a.b` binds `a`
                    head = alias.name.split(".")[0]
                    scope.bindings[head] = _ModuleBinding(head)

        elif isinstance(stmt, ast.ImportFrom):
            target = resolve_relative(unit, stmt.level, stmt.module)
            if target is None:
                continue
            for alias in stmt.names:
                if alias.name == "*":
                    scope.star_imports.append(target)
                    continue
                scope.bindings[alias.asname or alias.name] = _ImportBinding(target, alias.name)

        elif isinstance(stmt, (ast.Assign, ast.AnnAssign)):
            targets = stmt.targets if isinstance(stmt, ast.Assign) else [stmt.target]
            value = stmt.value
            for target in targets:
                if not isinstance(target, ast.Name):
                    continue
                if isinstance(value, (ast.Name, ast.Attribute)):
                    scope.bindings[target.id] = _AliasBinding(value)
                else:
                    scope.bindings[target.id] = _OtherBinding(stmt)

    return scope


class SymbolIndex:
    """Resolves references to module-level declarations across a Program."""

    MAX_DEPTH = 64

    def __init__(self, program: Program):
        self.program = program
        self.scopes: dict[str, ModuleScope] = {}
        for module in program.modules:
            unit = program.get(module)
            if unit is not None:
                self.scopes[module] = build_scope(unit)

    def _is_module(self, name: str) -> bool:
        if name in self.scopes:
            return True
        prefix = name + "."
        return any(m.startswith(prefix) for m in self.scopes)

    def resolve(self, unit: CompilationUnit, node: ast.AST) -> DeclarationSymbol | None:
        """Resolve an expression in ``unit`` to the declaration it names.

        Returns None when the expression does not name a declaration known
        to the project. Raises ResolutionError on inconsistent bindings.
        """
        result = self._resolve_expr(unit.module, node, set())
        if isinstance(result, DeclarationSymbol):
            return result
        return None

    def _resolve_expr(self, module: str, node: ast.AST, seen: set) -> Resolved | None:
        if isinstance(node, ast.Name):
            return self._resolve_name(module, node.id, seen)

        if isinstance(node, ast.Attribute):
            base = self._resolve_expr(module, node.value, seen)
            if isinstance(base, ModuleRef):
                return self._resolve_name(base.module, node.attr, seen)
            return None

        return None

    def _resolve_name(self, module: str, name: str, seen: set) -> Resolved | None:
        key = (module, name)
        if key in seen:
            raise ResolutionError(f"Alias cycle while resolving '{name}' in '{module}'")
        if len(seen) >= self.MAX_DEPTH:
            raise ResolutionError(f"Resolution of '{name}' in '{module}' is too deep")
        seen = seen | {key}

        scope = self.scopes.get(module)
        if scope is None:
            # Package directory without __init__, or a module outside the project
            submodule = f"{module}.{name}"
            return ModuleRef(submodule) if self._is_module(submodule) else None

        binding = scope.bindings.get(name)
        if binding is None:
            for star_module in scope.star_imports:
                result = self._resolve_name(star_module, name, seen)
                if result is not None:
                    return result
            submodule = f"{module}.{name}"
            return ModuleRef(submodule) if self._is_module(submodule) else None

        unit = scope.unit

        if isinstance(binding, _ClassBinding):
            return DeclarationSymbol(
                name=binding.node.name,
                module=module,
                path=unit.path,
                is_class=True,
                is_external=unit.is_external,
            )

        if isinstance(binding, _ModuleBinding):
            return ModuleRef(binding.module) if self._is_module(binding.module) else None

        if isinstance(binding, _ImportBinding):
            if not self._is_module(binding.module):
                return None
            return self._resolve_name(binding.module, binding.name, seen)

        if isinstance(binding, _AliasBinding):
            return self._resolve_expr(module, binding.value, seen)

        return DeclarationSymbol(
            name=name,
            module=module,
            path=unit.path,
            is_class=False,
            is_external=unit.is_external,
        )
