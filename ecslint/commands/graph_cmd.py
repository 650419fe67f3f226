"""Graph command - export the project-wide constraint graph, and trace one component."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console

from ..config import LintConfig
from ..graph import ConstraintGraph
from ..models import Registry
from ..registry import AnalysisSession
from . import load_project


def project_graph(root: Path, config: LintConfig) -> tuple[Registry, ConstraintGraph]:
    """Registry and merged constraint graph for the whole project."""
    program = load_project(root, config)
    registry = AnalysisSession().build_or_get_registry(program)
    graph = ConstraintGraph.build(
        registry,
        seed=config.seed(),
        symmetric_conflicts=config.symmetric_conflicts,
    )
    return registry, graph


def _to_json(graph: ConstraintGraph) -> str:
    payload = {
        "nodes": graph.nodes,
        "dependencies": [{"from": src, "to": dst} for src, dst in graph.dependency_edges()],
        "conflicts": [list(pair) for pair in graph.conflict_pairs()],
        "cycles": graph.detect_cycles(),
    }
    return json.dumps(payload, indent=2)


def _to_dot(graph: ConstraintGraph, *, title: str) -> str:
    def esc(s: str) -> str:
        return s.replace("\\", "\\\\").replace('"', '\\"')

    lines = [
        "digraph components {",
        f'  label="{esc(title)}";',
        "  labelloc=t;",
        "  rankdir=LR;",
        '  graph [fontname="Helvetica"];',
        '  node [fontname="Helvetica", fontsize=10, shape=box, style=rounded];',
    ]

    for name in graph.nodes:
        lines.append(f'  "{esc(name)}";')

    for src, dst in graph.dependency_edges():
        lines.append(f'  "{esc(src)}" -> "{esc(dst)}";')

    for a, b in graph.conflict_pairs():
        lines.append(f'  "{esc(a)}" -> "{esc(b)}" [style=dashed, color="red", dir=none];')

    lines.append("}")
    return "\n".join(lines) + "\n"


def run_graph(root: Path, config: LintConfig, *, fmt: str = "dot", out: Path | None = None) -> int:
    """Export the constraint graph as DOT or JSON."""
    console = Console(stderr=True)

    _, graph = project_graph(root, config)

    if fmt == "json":
        text = _to_json(graph) + "\n"
    else:
        text = _to_dot(graph, title=f"Component constraints: {root.name}")

    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote graph output to {out}", style="green")
    else:
        print(text, end="")
    return 0


def run_trace(root: Path, config: LintConfig, component: str) -> int:
    """Show what a component depends on, conflicts with and is needed by.

    Returns:
        Exit code (0 = success, 1 = component not found)
    """
    console = Console()

    registry, graph = project_graph(root, config)

    if not registry.is_known(component) and component not in graph.nodes:
        console.print(f"Component not found: {component}", style="bold red")
        return 1

    console.print()
    console.print(f"Constraint trace for: {component}", style="bold cyan")
    metadata = registry.metadata(component)
    if metadata is not None and metadata.qualified_name:
        console.print(f"  Declared as {metadata.qualified_name}", style="dim")
    console.print()

    direct = sorted(graph.dependencies_of(component))
    if not direct:
        console.print("  No dependencies", style="dim")
    else:
        console.print(f"  Direct dependencies ({len(direct)}):", style="bold")
        for dep in direct:
            console.print(f"    - {dep}")

        indirect = sorted(graph.transitive_dependencies(component) - set(direct))
        if indirect:
            console.print(f"  Transitive dependencies ({len(indirect)}):", style="bold")
            for dep in indirect:
                console.print(f"    - {dep}")

    conflicts = sorted(graph.conflicts_of(component))
    if conflicts:
        console.print(f"  Conflicts with ({len(conflicts)}):", style="bold")
        for other in conflicts:
            console.print(f"    - {other}", style="red")

    dependents = sorted(graph.dependents_of(component))
    if dependents:
        console.print(f"  Required by ({len(dependents)}):", style="bold")
        for name in dependents:
            console.print(f"    - {name}")

    order = graph.attach_order(component)
    console.print()
    if component in order:
        console.print(f"  Suggested attach order: {' -> '.join(order)}", style="green")
    else:
        console.print("  No valid attach order: a dependency cycle is involved", style="bold red")

    return 0
