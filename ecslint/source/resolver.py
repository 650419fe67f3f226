"""Identifier resolution: syntax node -> canonical component name."""

from __future__ import annotations

import ast
import logging

from .loader import CompilationUnit
from .symbols import DeclarationSymbol, ResolutionError, SymbolIndex

logger = logging.getLogger(__name__)


def lexical_name(node: ast.AST | None) -> str | None:
    """Name of a bare identifier, or the final attribute of ``ns.Component``."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


class IdentifierResolver:
    """Resolves component references within one compilation unit.

    Semantic resolution through the symbol index is tried first so that
    aliases and re-exports collapse onto the declared class name; lexical
    extraction is the fallback when no index is configured or it cannot
    answer.
    """

    def __init__(self, unit: CompilationUnit, index: SymbolIndex | None = None):
        self.unit = unit
        self.index = index

    def resolve_symbol(self, node: ast.AST | None) -> DeclarationSymbol | None:
        """The declaration behind ``node``, or None without semantic information."""
        if node is None or self.index is None:
            return None
        try:
            return self.index.resolve(self.unit, node)
        except ResolutionError as e:
            logger.debug(f"{self.unit.path}:{getattr(node, 'lineno', '?')}: {e}")
            return None

    def resolve(self, node: ast.AST | None) -> str | None:
        """Canonical component name for ``node``; None means "cannot reason about this"."""
        symbol = self.resolve_symbol(node)
        if symbol is not None:
            return symbol.name
        return lexical_name(node)
