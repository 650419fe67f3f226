"""Pytest configuration and fixtures."""

from pathlib import Path
from textwrap import dedent
from typing import Callable

import pytest

from ecslint.analyzer import analyze_program
from ecslint.config import LintConfig
from ecslint.models import Finding
from ecslint.registry import AnalysisSession
from ecslint.source.loader import Program, load_program, program_from_sources


@pytest.fixture
def sample_game_path() -> Path:
    """Path to the fixture game project."""
    return Path(__file__).parent / "fixtures" / "sample_game"


@pytest.fixture
def sample_program(sample_game_path: Path) -> Program:
    """Load the fixture game project."""
    return load_program(sample_game_path)


@pytest.fixture
def session() -> AnalysisSession:
    return AnalysisSession()


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write a throwaway project under tmp_path and return its root."""

    def _write(files: dict[str, str]) -> Path:
        root = tmp_path / "project"
        for rel_path, text in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dedent(text), encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _write


@pytest.fixture
def analyze() -> Callable[..., list[Finding]]:
    """Analyze in-memory sources; a bare string is treated as ``main.py``."""

    def _analyze(sources, config: LintConfig | None = None) -> list[Finding]:
        if isinstance(sources, str):
            sources = {"main.py": sources}
        program = program_from_sources({k: dedent(v) for k, v in sources.items()})
        return analyze_program(program, config=config).findings

    return _analyze
