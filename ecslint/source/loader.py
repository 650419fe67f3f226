"""Project loading: Python files parsed into compilation units."""

from __future__ import annotations

import ast
import fnmatch
import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

SKIPPED_DIRS = {"__pycache__", "site-packages", "node_modules", "venv", ".venv"}
SOURCE_SUFFIXES = {".py", ".pyi"}


@dataclass
class CompilationUnit:
    """One parsed source file."""

    path: Path
    module: str  # dotted module name relative to the project root
    source: str
    tree: ast.Module
    is_external: bool = False  # declaration-only stub, never scanned for calls

    @property
    def is_package(self) -> bool:
        return self.path.stem == "__init__"


@dataclass
class Program:
    """A snapshot of every compilation unit under a project root."""

    root: Path
    units: list[CompilationUnit] = field(default_factory=list)
    semantic: bool = True  # whether a symbol index may be built for resolution

    _by_module: dict[str, CompilationUnit] = field(default_factory=dict, repr=False)
    _fingerprint: str | None = field(default=None, repr=False)

    def __post_init__(self):
        self._build_lookups()

    def _build_lookups(self):
        for unit in self.units:
            # Real sources shadow stubs of the same module.
            existing = self._by_module.get(unit.module)
            if existing is None or existing.is_external:
                self._by_module[unit.module] = unit

    def get(self, module: str) -> CompilationUnit | None:
        return self._by_module.get(module)

    @property
    def modules(self) -> set[str]:
        return set(self._by_module)

    @property
    def analyzable_units(self) -> list[CompilationUnit]:
        """Units that are scanned for calls (stubs excluded)."""
        return [u for u in self.units if not u.is_external]

    @property
    def fingerprint(self) -> str:
        """Content identity of this snapshot."""
        if self._fingerprint is None:
            digest = hashlib.sha256()
            for unit in sorted(self.units, key=lambda u: str(u.path)):
                rel = _relative(unit.path, self.root)
                digest.update(rel.encode("utf-8"))
                digest.update(b"\0")
                digest.update(unit.source.encode("utf-8"))
                digest.update(b"\0")
            self._fingerprint = digest.hexdigest()
        return self._fingerprint


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def module_name_for(path: Path, root: Path) -> str:
    """Dotted module name of ``path`` relative to ``root``.

    ``pkg/__init__.py`` maps to ``pkg``; ``pkg/mod.pyi`` maps to ``pkg.mod``.
    """
    rel = Path(_relative(path, root))
    parts = list(rel.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def parse_unit(path: Path, source: str, root: Path) -> CompilationUnit | None:
    """Parse a single source text; returns None if it is not valid Python."""
    try:
        tree = ast.parse(source, filename=str(path))
    except SyntaxError as e:
        logger.warning(f"Skipping {path}: {e.msg} (line {e.lineno})")
        return None

    return CompilationUnit(
        path=path,
        module=module_name_for(path, root),
        source=source,
        tree=tree,
        is_external=path.suffix == ".pyi",
    )


def _is_excluded(path: Path, root: Path, exclude: tuple[str, ...]) -> bool:
    rel = Path(_relative(path, root))
    if any(part.startswith(".") or part in SKIPPED_DIRS for part in rel.parts[:-1]):
        return True
    rel_str = rel.as_posix()
    return any(fnmatch.fnmatch(rel_str, pattern) for pattern in exclude)


def iter_source_files(root: Path, exclude: tuple[str, ...] = ()) -> list[Path]:
    """All analyzable source files under root, in a stable order."""
    files = []
    for path in sorted(root.rglob("*")):
        if path.suffix not in SOURCE_SUFFIXES or not path.is_file():
            continue
        if _is_excluded(path, root, exclude):
            continue
        files.append(path)
    return files


def load_program(
    root: Path,
    *,
    exclude: tuple[str, ...] = (),
    semantic: bool = True,
) -> Program:
    """Load every Python source under ``root`` into a Program snapshot.

    Unreadable or unparsable files are skipped with a warning.
    """
    root = root.resolve()
    units: list[CompilationUnit] = []

    for path in iter_source_files(root, exclude):
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping {path}: {e}")
            continue

        unit = parse_unit(path, source, root)
        if unit is not None:
            units.append(unit)

    logger.debug(f"Loaded {len(units)} compilation unit(s) from {root}")
    return Program(root=root, units=units, semantic=semantic)


def program_from_sources(
    sources: dict[str, str],
    *,
    root: Path | None = None,
    semantic: bool = True,
) -> Program:
    """Build a Program from in-memory sources keyed by relative path."""
    root = root or Path("/virtual")
    units = []
    for rel_path, source in sorted(sources.items()):
        unit = parse_unit(root / rel_path, source, root)
        if unit is not None:
            units.append(unit)
    return Program(root=root, units=units, semantic=semantic)
