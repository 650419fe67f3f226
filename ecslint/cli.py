"""CLI entrypoint for ecslint."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import ConfigError, find_config, find_project_root, load_config


@click.group()
@click.version_option(__version__, prog_name="ecslint")
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Project root (defaults to the nearest directory with pyproject.toml or ecslint.toml)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (defaults to ecslint.toml or [tool.ecslint] in pyproject.toml)",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, root: Path | None, config_path: Path | None, verbose: bool) -> None:
    """ecslint - Static checks for ECS component constraints.

    Validates dependency and conflict declarations across the whole project,
    and checks entity builders, templates and queries against them.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    if root is None:
        root = find_project_root(Path.cwd())

    if not root.exists() or not root.is_dir():
        raise click.BadParameter(f"Directory '{root}' does not exist.", param_hint="--root / -r")
    root = root.resolve()

    try:
        config = load_config(config_path or find_config(root))
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    ctx.obj["root"] = root
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option(
    "--fail-on",
    type=click.Choice(["error", "warning"]),
    default="error",
    help="Exit with error if this level or higher found",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON",
)
@click.option(
    "--flat",
    is_flag=True,
    help="One line per finding instead of rule-grouped output",
)
@click.option(
    "--explain",
    "explain_rule",
    type=str,
    default=None,
    metavar="RULE_ID",
    help="Explain a specific rule and exit (e.g., --explain component-order)",
)
@click.pass_context
def lint(
    ctx: click.Context,
    fail_on: str,
    output_json: bool,
    flat: bool,
    explain_rule: str | None,
) -> None:
    """Check component declarations, builders, templates and queries.

    Results are grouped by rule:
    - component-validator: self-references, contradictions, duplicates, cycles
    - component-order: attaches out of dependency order or beside a conflict
    - query-validator: queries that can never match

    Use --explain RULE_ID to see detailed documentation for a rule.
    """
    from .commands.lint import run_explain, run_lint

    if explain_rule:
        exit_code = run_explain(explain_rule)
        sys.exit(exit_code)

    exit_code = run_lint(
        ctx.obj["root"],
        ctx.obj["config"],
        fail_on=fail_on,
        output_json=output_json,
        flat=flat,
    )
    sys.exit(exit_code)


@cli.command("registry")
@click.option("--json", "output_json", is_flag=True, help="Output the registry as JSON")
@click.pass_context
def registry(ctx: click.Context, output_json: bool) -> None:
    """List every constrained component and every known component."""
    from .commands.registry_cmd import run_registry

    exit_code = run_registry(ctx.obj["root"], ctx.obj["config"], output_json=output_json)
    sys.exit(exit_code)


@cli.command("graph")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["dot", "json"]),
    default="dot",
    show_default=True,
    help="Output format",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@click.pass_context
def graph(ctx: click.Context, fmt: str, out: Path | None) -> None:
    """Export the dependency/conflict graph."""
    from .commands.graph_cmd import run_graph

    exit_code = run_graph(ctx.obj["root"], ctx.obj["config"], fmt=fmt, out=out)
    sys.exit(exit_code)


@cli.command("trace")
@click.argument("component")
@click.pass_context
def trace(ctx: click.Context, component: str) -> None:
    """Show dependencies, conflicts and a valid attach order for COMPONENT."""
    from .commands.graph_cmd import run_trace

    exit_code = run_trace(ctx.obj["root"], ctx.obj["config"], component)
    sys.exit(exit_code)


@cli.command("watch")
@click.option("--flat", is_flag=True, help="One line per finding instead of rule-grouped output")
@click.pass_context
def watch(ctx: click.Context, flat: bool) -> None:
    """Re-run lint whenever a .py or .toml file changes.

    Runs until interrupted (Ctrl+C).
    """
    from .commands.watch_cmd import run_watch

    run_watch(
        ctx.obj["root"],
        ctx.obj["config"],
        config_path=ctx.obj["config_path"],
        flat=flat,
    )


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
