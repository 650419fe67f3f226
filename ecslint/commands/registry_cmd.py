"""Registry command - list every component constraint discovered in the project."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import LintConfig
from ..models import Registry
from ..registry import AnalysisSession
from . import load_project


def registry_to_dict(registry: Registry, root: Path | None = None) -> dict:
    components = {}
    for name in sorted(registry.components):
        metadata = registry.components[name]
        source = metadata.source_file
        if source is not None and root is not None:
            try:
                source = source.relative_to(root)
            except ValueError:
                pass
        components[name] = {
            "dependencies": sorted(metadata.dependencies),
            "conflicts": sorted(metadata.conflicts),
            "qualified_name": metadata.qualified_name,
            "source": source.as_posix() if source is not None else None,
        }

    return {
        "components": components,
        "known_components": sorted(registry.known_components),
    }


def run_registry(root: Path, config: LintConfig, output_json: bool = False) -> int:
    """Print the cross-unit registry for the project."""
    console = Console()

    program = load_project(root, config)
    registry = AnalysisSession().build_or_get_registry(program)
    data = registry_to_dict(registry, program.root)

    if output_json:
        print(json.dumps(data, indent=2))
        return 0

    if not data["components"]:
        console.print("No register_validator declarations found.", style="yellow")
    else:
        table = Table(title="Component Registry")
        table.add_column("Component", style="cyan")
        table.add_column("Depends on")
        table.add_column("Conflicts with")
        table.add_column("Declared in", style="dim")

        for name, entry in data["components"].items():
            table.add_row(
                name,
                ", ".join(entry["dependencies"]) or "-",
                ", ".join(entry["conflicts"]) or "-",
                entry["qualified_name"] or "(unresolved)",
            )
        console.print(table)

    unconstrained = [n for n in data["known_components"] if n not in data["components"]]
    if unconstrained:
        console.print()
        console.print(f"Known without constraints ({len(unconstrained)}):", style="bold")
        console.print("  " + ", ".join(unconstrained), markup=False)

    return 0
