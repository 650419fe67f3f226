"""Command implementations behind the ecslint CLI."""

from __future__ import annotations

from pathlib import Path

from ..config import LintConfig
from ..source.loader import Program, load_program


def load_project(root: Path, config: LintConfig) -> Program:
    """Load the program under ``root`` honoring the configured excludes."""
    return load_program(root, exclude=config.exclude, semantic=config.semantic)
