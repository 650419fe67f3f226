"""Source loading and name resolution utilities."""

from .loader import CompilationUnit, Program, load_program, program_from_sources
from .resolver import IdentifierResolver, lexical_name
from .symbols import DeclarationSymbol, ResolutionError, SymbolIndex

__all__ = [
    "CompilationUnit",
    "Program",
    "load_program",
    "program_from_sources",
    "IdentifierResolver",
    "lexical_name",
    "DeclarationSymbol",
    "ResolutionError",
    "SymbolIndex",
]
