"""Constraint graph construction and analysis."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .models import ComponentMetadata, Registry
from .scan.metadata import LocalDeclarations


@dataclass
class ConstraintGraph:
    """Directed dependency graph plus conflict graph for one analyzed unit.

    Built by merging the cross-unit registry, an optional seed map and the
    unit's own declarations. Edges only ever accumulate; nothing is
    overwritten. Self-edges are never inserted.
    """

    symmetric_conflicts: bool = True
    depends_on: dict[str, set[str]] = field(
        default_factory=lambda: defaultdict(set)
    )  # component -> dependencies
    dependents: dict[str, set[str]] = field(
        default_factory=lambda: defaultdict(set)
    )  # component -> components depending on it
    conflicts_with: dict[str, set[str]] = field(
        default_factory=lambda: defaultdict(set)
    )

    @classmethod
    def build(
        cls,
        registry: Registry,
        local: LocalDeclarations | None = None,
        *,
        seed: Mapping[str, ComponentMetadata] | None = None,
        symmetric_conflicts: bool = True,
    ) -> "ConstraintGraph":
        """Merge registry, seed and local declarations into one graph."""
        graph = cls(symmetric_conflicts=symmetric_conflicts)

        for source in (registry.components, seed or {}):
            for name, metadata in source.items():
                graph.add_constraints(name, metadata.dependencies, metadata.conflicts)

        if local is not None:
            for validator in local.validators:
                graph.add_constraints(
                    validator.subject.name,
                    (ref.name for ref in validator.dependencies),
                    (ref.name for ref in validator.conflicts),
                )

        return graph

    def add_constraints(
        self, name: str, dependencies: Iterable[str], conflicts: Iterable[str]
    ) -> None:
        for dep in dependencies:
            self.add_dependency(name, dep)
        for other in conflicts:
            self.add_conflict(name, other)

    def add_dependency(self, name: str, dep: str) -> None:
        if name == dep:
            return
        self.depends_on[name].add(dep)
        self.dependents[dep].add(name)

    def add_conflict(self, name: str, other: str) -> None:
        if name == other:
            return
        self.conflicts_with[name].add(other)
        if self.symmetric_conflicts:
            self.conflicts_with[other].add(name)

    # Queries

    @property
    def nodes(self) -> list[str]:
        """Every component that appears on either side of any edge."""
        names = set()
        for edges in (self.depends_on, self.conflicts_with):
            for name, targets in edges.items():
                names.add(name)
                names.update(targets)
        return sorted(names)

    def dependencies_of(self, name: str) -> set[str]:
        return set(self.depends_on.get(name, ()))

    def conflicts_of(self, name: str) -> set[str]:
        return set(self.conflicts_with.get(name, ()))

    def dependents_of(self, name: str) -> set[str]:
        return set(self.dependents.get(name, ()))

    def in_conflict(self, a: str, b: str) -> bool:
        """True if a conflict between ``a`` and ``b`` was declared from either side."""
        return b in self.conflicts_of(a) or a in self.conflicts_of(b)

    def dependency_edges(self) -> list[tuple[str, str]]:
        return sorted((src, dst) for src, deps in self.depends_on.items() for dst in deps)

    def conflict_pairs(self) -> list[tuple[str, str]]:
        """Conflicts as unordered pairs, each listed once."""
        pairs = {
            tuple(sorted((name, other)))
            for name, others in self.conflicts_with.items()
            for other in others
        }
        return sorted(pairs)

    # Checks

    @staticmethod
    def detect_self_reference(name: str, names: Iterable[str], kind: str = "dependencies") -> bool:
        """True if ``name`` lists itself in its own ``kind`` array."""
        return name in set(names)

    def detect_contradiction(self, name: str) -> set[str]:
        """Targets that ``name`` both depends on and conflicts with."""
        return self.dependencies_of(name) & self.conflicts_of(name)

    @staticmethod
    def detect_duplicates(names: Iterable[str]) -> set[str]:
        """Names repeated within a single declared array."""
        seen = set()
        duplicates = set()
        for name in names:
            if name in seen:
                duplicates.add(name)
            seen.add(name)
        return duplicates

    def detect_cycles(self) -> list[list[str]]:
        """Find dependency cycles with a depth-first sweep over every node.

        Each cycle is returned as a closed path, e.g. ``[A, B, C, A]``.
        Nodes fully explored by an earlier descent are not revisited.
        """
        visited = set()
        cycles = []
        seen_keys = set()

        for start in sorted(self.depends_on):
            if start in visited:
                continue

            visited.add(start)
            path = [start]
            on_path = {start}
            pending = [iter(sorted(self.depends_on.get(start, ())))]

            while pending:
                dep = next(pending[-1], None)
                if dep is None:
                    pending.pop()
                    on_path.discard(path.pop())
                    continue

                if dep in on_path:
                    cycle = path[path.index(dep):] + [dep]
                    key = _cycle_key(cycle)
                    if key not in seen_keys:
                        seen_keys.add(key)
                        cycles.append(cycle)
                    continue

                if dep in visited:
                    continue

                visited.add(dep)
                path.append(dep)
                on_path.add(dep)
                pending.append(iter(sorted(self.depends_on.get(dep, ()))))

        return cycles

    # Traversal

    def transitive_dependencies(self, name: str) -> set[str]:
        """Every dependency reachable from ``name``, excluding ``name`` itself."""
        visited = set()
        stack = list(self.depends_on.get(name, ()))

        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)

            for dep in self.depends_on.get(current, ()):
                if dep not in visited:
                    stack.append(dep)

        visited.discard(name)
        return visited

    def attach_order(self, name: str) -> list[str]:
        """Dependency-first order in which ``name`` and its dependencies can be attached.

        Uses Kahn's algorithm over the transitive closure. Components caught in
        a cycle cannot be ordered and are left out.
        """
        members = self.transitive_dependencies(name) | {name}
        remaining = {
            node: len(self.depends_on.get(node, set()) & members) for node in members
        }

        queue = sorted(node for node, count in remaining.items() if count == 0)
        order = []
        while queue:
            node = queue.pop(0)
            order.append(node)
            for dependent in sorted(self.dependents.get(node, ())):
                if dependent in remaining:
                    remaining[dependent] -= 1
                    if remaining[dependent] == 0:
                        queue.append(dependent)

        return order


def _cycle_key(cycle: list[str]) -> tuple[str, ...]:
    """Rotation-independent identity of a closed cycle path."""
    ring = cycle[:-1]
    pivot = ring.index(min(ring))
    return tuple(ring[pivot:] + ring[:pivot])
