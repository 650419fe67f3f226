"""Watch command - re-run lint whenever sources change."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..analyzer import ProgramReport, analyze_program
from ..config import ConfigError, LintConfig, find_config, load_config
from ..registry import AnalysisSession
from ..watcher import run_watch_loop
from . import load_project
from .lint import print_report


class LintWatcher:
    """Re-analyzes the project on change, reusing one session across runs.

    Each run observes a new snapshot; the registry cached for the previous
    snapshot is invalidated once it is superseded.
    """

    def __init__(self, root: Path, config: LintConfig, config_path: Path | None = None):
        self.root = root
        self.config = config
        self.config_path = config_path
        self.session = AnalysisSession()
        self.last_snapshot: int | None = None

    def reload_config(self, console: Console) -> None:
        path = self.config_path or find_config(self.root)
        try:
            self.config = load_config(path)
        except ConfigError as e:
            console.print(f"Keeping previous configuration: {e}", style="yellow", markup=False)

    def run_once(self) -> ProgramReport:
        program = load_project(self.root, self.config)
        report = analyze_program(program, session=self.session, config=self.config)

        if self.last_snapshot is not None and self.last_snapshot != report.snapshot_id:
            self.session.invalidate(self.last_snapshot)
        self.last_snapshot = report.snapshot_id
        return report


def run_watch(
    root: Path,
    config: LintConfig,
    *,
    config_path: Path | None = None,
    flat: bool = False,
) -> None:
    """
    Watch the project and lint it after every settled change.

    This is a blocking command that runs until interrupted (Ctrl+C).
    """
    console = Console(stderr=True)
    watcher = LintWatcher(root, config, config_path)

    console.print(f"[bold]Watching[/bold] {root}")
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")

    print_report(console, watcher.run_once(), flat=flat)
    runs = 1

    def on_change(paths: list[Path]) -> None:
        nonlocal runs
        if any(p.suffix == ".toml" for p in paths):
            watcher.reload_config(console)

        timestamp = datetime.now().strftime("%H:%M:%S")
        console.print()
        console.print(f"[dim]{timestamp}[/dim] {len(paths)} file(s) changed, re-linting")
        print_report(console, watcher.run_once(), flat=flat)
        runs += 1

    try:
        run_watch_loop(root, on_change)
    except KeyboardInterrupt:
        pass

    console.print()
    console.print(f"[bold]Stopped.[/bold] Ran lint {runs} time(s).")
