"""
Cross-unit component registry.

The registry is built by scanning every analyzable compilation unit once and
is memoized per program snapshot inside an AnalysisSession. A snapshot is
identified by an opaque id assigned the first time a distinct program
fingerprint is observed; an unchanged snapshot always returns the same
Registry instance.
"""

from __future__ import annotations

import itertools
import logging
import threading

from .models import Registry
from .scan.metadata import LocalDeclarations, extract_declarations
from .source.loader import Program
from .source.resolver import IdentifierResolver
from .source.symbols import SymbolIndex

logger = logging.getLogger(__name__)


def record_declarations(
    registry: Registry,
    decls: LocalDeclarations,
    resolver: IdentifierResolver,
) -> None:
    """Union one unit's declarations into the registry."""
    for validator in decls.validators:
        subject = validator.subject.name
        metadata = registry.ensure(subject)
        registry.known_components.add(subject)

        symbol = resolver.resolve_symbol(validator.subject.node)
        if symbol is not None:
            metadata.qualified_name = symbol.qualified_name
            metadata.source_file = symbol.path

        for ref in validator.dependencies:
            metadata.dependencies.add(ref.name)
            registry.known_components.add(ref.name)
        for ref in validator.conflicts:
            metadata.conflicts.add(ref.name)
            registry.known_components.add(ref.name)

    # Templates and queries only use constraints; they never declare them.
    for template in decls.templates:
        registry.known_components.update(ref.name for ref in template.components)

    for query in decls.queries:
        for refs in (query.all, query.any, query.none):
            registry.known_components.update(ref.name for ref in refs)


def build_registry(program: Program, index: SymbolIndex | None = None) -> Registry:
    """Scan every non-external unit of ``program`` and build a fresh Registry."""
    registry = Registry()
    for unit in program.analyzable_units:
        resolver = IdentifierResolver(unit, index)
        record_declarations(registry, extract_declarations(unit, resolver), resolver)

    logger.debug(
        f"Built registry: {len(registry.components)} constrained component(s), "
        f"{len(registry.known_components)} known"
    )
    return registry


class AnalysisSession:
    """Owns the memoized registries (and symbol indexes) of observed snapshots.

    Build-or-fetch is serialized by a lock so that concurrent callers under
    the same snapshot never build twice; the returned Registry is treated as
    read-only afterwards.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._next_id = itertools.count(1)
        self._snapshot_ids: dict[str, int] = {}  # fingerprint -> snapshot id
        self._registries: dict[int, Registry] = {}
        self._indexes: dict[int, SymbolIndex] = {}

    def snapshot_id(self, program: Program) -> int:
        """Opaque, monotonically assigned id of the program's snapshot."""
        with self._lock:
            fingerprint = program.fingerprint
            snapshot = self._snapshot_ids.get(fingerprint)
            if snapshot is None:
                snapshot = next(self._next_id)
                self._snapshot_ids[fingerprint] = snapshot
            return snapshot

    def symbol_index(self, program: Program) -> SymbolIndex | None:
        """Symbol index for the snapshot; None when semantic resolution is disabled."""
        if not program.semantic:
            return None
        with self._lock:
            snapshot = self.snapshot_id(program)
            index = self._indexes.get(snapshot)
            if index is None:
                index = SymbolIndex(program)
                self._indexes[snapshot] = index
            return index

    def build_or_get_registry(self, program: Program) -> Registry:
        """Registry for the program's snapshot, built on first request."""
        with self._lock:
            snapshot = self.snapshot_id(program)
            registry = self._registries.get(snapshot)
            if registry is not None:
                logger.debug(f"Registry cache hit for snapshot {snapshot}")
                return registry

            logger.debug(f"Building registry for snapshot {snapshot}")
            registry = build_registry(program, self.symbol_index(program))
            self._registries[snapshot] = registry
            return registry

    def invalidate(self, snapshot_id: int) -> None:
        """Drop everything cached for a snapshot."""
        with self._lock:
            self._registries.pop(snapshot_id, None)
            self._indexes.pop(snapshot_id, None)
            for fingerprint, snapshot in list(self._snapshot_ids.items()):
                if snapshot == snapshot_id:
                    del self._snapshot_ids[fingerprint]

    @property
    def cached_snapshots(self) -> list[int]:
        with self._lock:
            return sorted(self._registries)
