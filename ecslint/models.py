"""Data models for component metadata, the cross-unit registry and findings."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal

Level = Literal["error", "warning", "info"]


@dataclass
class ComponentMetadata:
    """Declared constraints of one component, unioned across every declaration site."""

    dependencies: set[str] = field(default_factory=set)
    conflicts: set[str] = field(default_factory=set)
    qualified_name: str | None = None  # module:Name when semantically resolved
    source_file: Path | None = None  # file declaring the component class


@dataclass
class Registry:
    """Cross-unit store of every discovered component constraint.

    ``known_components`` is a superset of ``components`` keys: it also holds
    names that only appear in templates or queries.
    """

    components: dict[str, ComponentMetadata] = field(default_factory=dict)
    known_components: set[str] = field(default_factory=set)

    def ensure(self, name: str) -> ComponentMetadata:
        """Get the metadata for ``name``, creating an empty entry if absent."""
        metadata = self.components.get(name)
        if metadata is None:
            metadata = ComponentMetadata()
            self.components[name] = metadata
        return metadata

    def metadata(self, name: str) -> ComponentMetadata | None:
        return self.components.get(name)

    def is_known(self, name: str) -> bool:
        return name in self.known_components


class FindingKind(str, Enum):
    """Diagnostic taxonomy. Every kind is a finding, never an exception."""

    SELF_REFERENCE = "self-reference"
    CONTRADICTION = "contradiction"
    DUPLICATE_ENTRY = "duplicate-entry"
    CYCLE = "cycle"
    MISSING_DEPENDENCY = "missing-dependency"
    CONFLICTING_COMPONENT = "conflicting-component"
    UNSATISFIABLE_QUERY = "unsatisfiable-query"


@dataclass(frozen=True)
class Location:
    """Source location of the most specific offending syntax node."""

    path: Path
    line: int | None = None
    column: int | None = None

    @classmethod
    def of(cls, path: Path, node: ast.AST | None) -> "Location":
        if node is None:
            return cls(path=path)
        return cls(
            path=path,
            line=getattr(node, "lineno", None),
            column=getattr(node, "col_offset", None),
        )

    def __str__(self) -> str:
        ref = self.path.name
        if self.line:
            ref += f":{self.line}"
            if self.column is not None:
                ref += f":{self.column + 1}"
        return ref


@dataclass
class Finding:
    """A single diagnostic produced by a check."""

    kind: FindingKind
    rule: str
    location: Location
    variant: str = ""  # selects the message template within a kind
    data: dict[str, str] = field(default_factory=dict)
    level: Level = "error"

    @property
    def message(self) -> str:
        from .catalog import render_message

        return render_message(self.kind, self.variant, self.data)

    def __str__(self) -> str:
        return f"{self.level.upper()}: [{self.rule}] {self.location} - {self.message}"
