"""Tests for identifier resolution across modules."""

import ast

import pytest

from ecslint.source.loader import program_from_sources
from ecslint.source.resolver import IdentifierResolver, lexical_name
from ecslint.source.symbols import ResolutionError, SymbolIndex


def _use_arg(program, module: str):
    """The unit and first argument of the first ``use(...)`` call in a module."""
    unit = program.get(module)
    call = next(
        node
        for node in ast.walk(unit.tree)
        if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id == "use"
    )
    return unit, call.args[0]


def _resolver(sources: dict[str, str], module: str = "main"):
    program = program_from_sources(sources)
    unit, node = _use_arg(program, module)
    return IdentifierResolver(unit, SymbolIndex(program)), node


GAME = {
    "game/__init__.py": "",
    "game/components.py": "class Position:\n    pass\n\nclass Velocity:\n    pass\n",
}


def test_lexical_name_shapes():
    assert lexical_name(ast.parse("Position", mode="eval").body) == "Position"
    assert lexical_name(ast.parse("ns.components.Position", mode="eval").body) == "Position"
    assert lexical_name(ast.parse("'Position'", mode="eval").body) is None
    assert lexical_name(ast.parse("make()", mode="eval").body) is None
    assert lexical_name(None) is None


def test_lexical_fallback_without_index():
    program = program_from_sources({"main.py": "use(ns.Position)\n"})
    unit, node = _use_arg(program, "main")

    resolver = IdentifierResolver(unit)
    assert resolver.resolve(node) == "Position"
    assert resolver.resolve_symbol(node) is None


def test_import_alias_resolves_to_declared_name():
    resolver, node = _resolver(
        {**GAME, "main.py": "from game.components import Position as P\nuse(P)\n"}
    )

    assert resolver.resolve(node) == "Position"
    symbol = resolver.resolve_symbol(node)
    assert symbol.qualified_name == "game.components:Position"
    assert symbol.is_class


def test_relative_import_alias():
    resolver, node = _resolver(
        {**GAME, "game/spawn.py": "from .components import Velocity as V\nuse(V)\n"},
        module="game.spawn",
    )

    assert resolver.resolve(node) == "Velocity"


@pytest.mark.parametrize(
    "source",
    [
        "import game.components as gc\nuse(gc.Position)\n",
        "import game.components\nuse(game.components.Position)\n",
        "from game import components\nuse(components.Position)\n",
    ],
)
def test_module_attribute_access(source):
    resolver, node = _resolver({**GAME, "main.py": source})

    symbol = resolver.resolve_symbol(node)
    assert symbol is not None
    assert symbol.qualified_name == "game.components:Position"


def test_package_reexport():
    sources = {
        **GAME,
        "game/__init__.py": "from .components import Position\n",
        "main.py": "from game import Position as Pos\nuse(Pos)\n",
    }
    resolver, node = _resolver(sources)

    assert resolver.resolve_symbol(node).module == "game.components"


def test_star_reexport():
    sources = {
        **GAME,
        "game/__init__.py": "from .components import *\n",
        "main.py": "from game import Velocity\nuse(Velocity)\n",
    }
    resolver, node = _resolver(sources)

    assert resolver.resolve_symbol(node).qualified_name == "game.components:Velocity"


def test_module_level_alias_assignment():
    sources = {
        **GAME,
        "main.py": "from game.components import Position\nPlace = Position\nuse(Place)\n",
    }
    resolver, node = _resolver(sources)

    assert resolver.resolve(node) == "Position"


def test_alias_cycle_falls_back_to_lexical():
    program = program_from_sources({"main.py": "A = B\nB = A\nuse(A)\n"})
    unit, node = _use_arg(program, "main")
    index = SymbolIndex(program)

    with pytest.raises(ResolutionError):
        index.resolve(unit, node)

    resolver = IdentifierResolver(unit, index)
    assert resolver.resolve_symbol(node) is None
    assert resolver.resolve(node) == "A"


def test_unknown_name_falls_back_to_lexical():
    resolver, node = _resolver({**GAME, "main.py": "use(Missing)\n"})

    assert resolver.resolve_symbol(node) is None
    assert resolver.resolve(node) == "Missing"


def test_stub_declarations_are_external():
    sources = {
        "shield/__init__.pyi": "class Shield: ...\n",
        "main.py": "from shield import Shield as S\nuse(S)\n",
    }
    resolver, node = _resolver(sources)

    symbol = resolver.resolve_symbol(node)
    assert symbol.name == "Shield"
    assert symbol.is_external


def test_non_reference_nodes_are_skipped():
    resolver, node = _resolver({**GAME, "main.py": "use('Position')\n"})

    assert resolver.resolve(node) is None
