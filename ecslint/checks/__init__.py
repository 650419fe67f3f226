"""Checks run against one compilation unit."""

from .composition import check_sequential_builders, check_templates
from .context import UnitContext
from .declarations import check_declarations
from .queries import check_queries

__all__ = [
    "UnitContext",
    "check_declarations",
    "check_queries",
    "check_sequential_builders",
    "check_templates",
]
