"""
Call-shape classification.

Every call site the checker cares about is classified once into a closed set
of variants; consumers dispatch on the variant type instead of comparing
method names themselves.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Union

VALIDATOR_METHODS = frozenset(
    {
        "register_validator",
        "register_component_validator",
        "registerValidator",
        "registerComponentValidator",
    }
)
TEMPLATE_METHODS = frozenset(
    {"register_template", "register_prefab", "registerTemplate", "registerPrefab"}
)
QUERY_METHODS = frozenset({"create_query", "create_system", "createQuery", "createSystem"})
CREATE_METHODS = frozenset({"create_entity", "createEntity"})
ATTACH_METHODS = frozenset({"attach", "add_component", "addComponent"})

WITHOUT_TAGS_KEYS = ("without_tags", "withoutTags")


@dataclass(frozen=True)
class ValidatorRegistration:
    """``register_validator(Component, {"dependencies": [...], "conflicts": [...]})``"""

    call: ast.Call
    subject: ast.expr | None
    dependencies: ast.expr | None
    conflicts: ast.expr | None


@dataclass(frozen=True)
class TemplateRegistration:
    """``register_template("name", {"components": [...]})``"""

    call: ast.Call
    name: str | None
    components: ast.expr | None


@dataclass(frozen=True)
class QueryDeclaration:
    """``create_query("name", {"all": [...], "none": [...], "tags": [...]})``"""

    call: ast.Call
    name: str | None
    all: ast.expr | None
    any: ast.expr | None
    none: ast.expr | None
    tags: ast.expr | None
    without_tags: ast.expr | None


@dataclass(frozen=True)
class EntityCreation:
    """``world.create_entity()``"""

    call: ast.Call


@dataclass(frozen=True)
class SequentialAttach:
    """``entity.attach(Component, *args)``"""

    call: ast.Call
    receiver: ast.expr
    component: ast.expr | None


CallShape = Union[
    ValidatorRegistration,
    TemplateRegistration,
    QueryDeclaration,
    EntityCreation,
    SequentialAttach,
]


def call_name(call: ast.Call) -> str | None:
    """Invoked method or function name, regardless of receiver."""
    func = call.func
    if isinstance(func, ast.Attribute):
        return func.attr
    if isinstance(func, ast.Name):
        return func.id
    return None


def string_value(node: ast.AST | None) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


def array_elements(node: ast.AST | None) -> list[ast.expr] | None:
    """Elements of a list/tuple/set literal; None for anything non-literal."""
    if not isinstance(node, (ast.List, ast.Tuple, ast.Set)):
        return None
    return [e for e in node.elts if not isinstance(e, ast.Starred)]


def dict_value(node: ast.AST | None, *keys: str) -> ast.expr | None:
    """Value of the first matching string key in a dict literal."""
    if not isinstance(node, ast.Dict):
        return None
    for key, value in zip(node.keys, node.values):
        if string_value(key) in keys:
            return value
    return None


def _positional(call: ast.Call, index: int) -> ast.expr | None:
    if index < len(call.args) and not isinstance(call.args[index], ast.Starred):
        return call.args[index]
    return None


def _option(call: ast.Call, options: ast.expr | None, *keys: str) -> ast.expr | None:
    """An option given either in an options dict or as a keyword argument."""
    value = dict_value(options, *keys)
    if value is not None:
        return value
    for keyword in call.keywords:
        if keyword.arg in keys:
            return keyword.value
    return None


def _classify_query(call: ast.Call) -> QueryDeclaration:
    first = _positional(call, 0)
    if isinstance(first, ast.Dict):
        name, options = None, first
    else:
        name, options = string_value(first), _positional(call, 1)

    return QueryDeclaration(
        call=call,
        name=name,
        all=_option(call, options, "all"),
        any=_option(call, options, "any"),
        none=_option(call, options, "none"),
        tags=_option(call, options, "tags"),
        without_tags=_option(call, options, *WITHOUT_TAGS_KEYS),
    )


def classify_call(call: ast.Call) -> CallShape | None:
    """Classify a call site, or return None when it is not a recognized shape."""
    name = call_name(call)
    if name is None:
        return None

    if name in VALIDATOR_METHODS:
        options = _positional(call, 1)
        return ValidatorRegistration(
            call=call,
            subject=_positional(call, 0),
            dependencies=_option(call, options, "dependencies"),
            conflicts=_option(call, options, "conflicts"),
        )

    if name in TEMPLATE_METHODS:
        options = _positional(call, 1)
        return TemplateRegistration(
            call=call,
            name=string_value(_positional(call, 0)),
            components=_option(call, options, "components"),
        )

    if name in QUERY_METHODS:
        return _classify_query(call)

    if name in CREATE_METHODS:
        return EntityCreation(call=call)

    if name in ATTACH_METHODS and isinstance(call.func, ast.Attribute):
        return SequentialAttach(
            call=call,
            receiver=call.func.value,
            component=_positional(call, 0),
        )

    return None


def iter_shapes(tree: ast.AST):
    """Yield every classified call shape in ``tree`` (walk order)."""
    for node in ast.walk(tree):
        if isinstance(node, ast.Call):
            shape = classify_call(node)
            if shape is not None:
                yield shape
