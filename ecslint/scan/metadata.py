"""Metadata extraction shared by the registry builder and local declaration checks."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field

from ..source.loader import CompilationUnit
from ..source.resolver import IdentifierResolver
from .shapes import (
    QueryDeclaration,
    TemplateRegistration,
    ValidatorRegistration,
    array_elements,
    dict_value,
    iter_shapes,
    string_value,
)


@dataclass(frozen=True)
class NameRef:
    """A resolved component name together with the node it was read from."""

    name: str
    node: ast.AST


@dataclass
class DeclaredValidator:
    subject: NameRef
    call: ast.Call
    dependencies: list[NameRef] = field(default_factory=list)
    conflicts: list[NameRef] = field(default_factory=list)
    dependencies_node: ast.expr | None = None
    conflicts_node: ast.expr | None = None


@dataclass
class DeclaredTemplate:
    name: str | None
    call: ast.Call
    components: list[NameRef] = field(default_factory=list)


@dataclass
class StringRef:
    value: str
    node: ast.AST


@dataclass
class DeclaredQuery:
    name: str | None
    call: ast.Call
    all: list[NameRef] = field(default_factory=list)
    any: list[NameRef] = field(default_factory=list)
    none: list[NameRef] = field(default_factory=list)
    tags: list[StringRef] = field(default_factory=list)
    without_tags: list[StringRef] = field(default_factory=list)


@dataclass
class LocalDeclarations:
    """Every declaration found in one compilation unit, in source order."""

    validators: list[DeclaredValidator] = field(default_factory=list)
    templates: list[DeclaredTemplate] = field(default_factory=list)
    queries: list[DeclaredQuery] = field(default_factory=list)


def resolve_names(node: ast.AST | None, resolver: IdentifierResolver) -> list[NameRef]:
    """Resolve each element of an array literal; unresolvable entries are dropped."""
    elements = array_elements(node)
    if elements is None:
        return []

    refs = []
    for element in elements:
        name = resolver.resolve(element)
        if name:
            refs.append(NameRef(name, element))
    return refs


def string_refs(node: ast.AST | None) -> list[StringRef]:
    elements = array_elements(node)
    if elements is None:
        return []

    refs = []
    for element in elements:
        value = string_value(element)
        if value is not None:
            refs.append(StringRef(value, element))
    return refs


def template_entry(entry: ast.AST, resolver: IdentifierResolver) -> NameRef | None:
    """Component of a template entry: ``Comp`` or ``{"type": Comp, "args": [...]}``."""
    if isinstance(entry, ast.Dict):
        type_node = dict_value(entry, "type")
        if type_node is None:
            return None
        name = resolver.resolve(type_node)
        return NameRef(name, entry) if name else None

    name = resolver.resolve(entry)
    return NameRef(name, entry) if name else None


def _validator(shape: ValidatorRegistration, resolver: IdentifierResolver) -> DeclaredValidator | None:
    subject_name = resolver.resolve(shape.subject)
    if not subject_name:
        return None

    return DeclaredValidator(
        subject=NameRef(subject_name, shape.subject),
        call=shape.call,
        dependencies=resolve_names(shape.dependencies, resolver),
        conflicts=resolve_names(shape.conflicts, resolver),
        dependencies_node=shape.dependencies,
        conflicts_node=shape.conflicts,
    )


def _template(shape: TemplateRegistration, resolver: IdentifierResolver) -> DeclaredTemplate | None:
    elements = array_elements(shape.components)
    if elements is None:
        return None

    components = []
    for entry in elements:
        ref = template_entry(entry, resolver)
        if ref is not None:
            components.append(ref)
    return DeclaredTemplate(name=shape.name, call=shape.call, components=components)


def _query(shape: QueryDeclaration, resolver: IdentifierResolver) -> DeclaredQuery:
    return DeclaredQuery(
        name=shape.name,
        call=shape.call,
        all=resolve_names(shape.all, resolver),
        any=resolve_names(shape.any, resolver),
        none=resolve_names(shape.none, resolver),
        tags=string_refs(shape.tags),
        without_tags=string_refs(shape.without_tags),
    )


def _source_order(node: ast.AST) -> tuple[int, int]:
    return (getattr(node, "lineno", 0), getattr(node, "col_offset", 0))


def extract_declarations(unit: CompilationUnit, resolver: IdentifierResolver) -> LocalDeclarations:
    """Extract validator, template and query declarations from a unit."""
    decls = LocalDeclarations()

    shapes = sorted(iter_shapes(unit.tree), key=lambda s: _source_order(s.call))
    for shape in shapes:
        if isinstance(shape, ValidatorRegistration):
            validator = _validator(shape, resolver)
            if validator is not None:
                decls.validators.append(validator)
        elif isinstance(shape, TemplateRegistration):
            template = _template(shape, resolver)
            if template is not None:
                decls.templates.append(template)
        elif isinstance(shape, QueryDeclaration):
            decls.queries.append(_query(shape, resolver))

    return decls
