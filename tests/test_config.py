"""Tests for configuration loading and severity presets."""

from pathlib import Path

import pytest

from ecslint.catalog import PRESETS, get_rule, get_rule_ids, render_message, severity_for
from ecslint.config import ConfigError, LintConfig, find_config, find_project_root, load_config
from ecslint.models import FindingKind
from ecslint.source.loader import load_program

QUERY_AND_ORDER = """
world.register_validator(Velocity, {"dependencies": [Position]})
world.create_query("q", {"all": [A], "none": [A]})

def spawn(world):
    e = world.create_entity()
    e.attach(Velocity)
"""


def test_defaults():
    config = load_config(None)

    assert config == LintConfig()
    assert config.preset == "recommended"
    assert config.symmetric_conflicts is True
    assert config.check_cycles is True


def test_recommended_and_strict_presets():
    assert severity_for("component-validator") == "error"
    assert severity_for("component-order") == "warning"
    assert severity_for("query-validator") == "error"
    assert set(PRESETS["strict"].values()) == {"error"}
    assert set(PRESETS["strict"]) == set(get_rule_ids())


def test_override_wins_over_preset():
    assert severity_for("component-order", "strict", {"component-order": "info"}) == "info"


def test_load_ecslint_toml(write_project):
    root = write_project(
        {
            "ecslint.toml": """
                preset = "strict"
                symmetric_conflicts = false
                exclude = ["build/*"]

                [severity]
                query-validator = "warning"

                [dependencies]
                Velocity = ["Position"]

                [conflicts]
                Ghost = ["Health"]
            """,
        }
    )

    path = find_config(root)
    assert path == root / "ecslint.toml"

    config = load_config(path)
    assert config.preset == "strict"
    assert config.symmetric_conflicts is False
    assert config.exclude == ("build/*",)
    assert config.severity_for("query-validator") == "warning"
    assert config.severity_for("component-order") == "error"
    assert config.dependencies == {"Velocity": ("Position",)}

    seed = config.seed()
    assert seed["Velocity"].dependencies == {"Position"}
    assert seed["Ghost"].conflicts == {"Health"}


def test_load_pyproject_tool_table(write_project):
    root = write_project(
        {
            "pyproject.toml": """
                [project]
                name = "game"

                [tool.ecslint]
                check_cycles = false
            """,
        }
    )

    path = find_config(root)
    assert path == root / "pyproject.toml"
    assert load_config(path).check_cycles is False


def test_pyproject_without_table_is_ignored(write_project):
    root = write_project({"pyproject.toml": "[project]\nname = 'game'\n"})

    assert find_config(root) is None


@pytest.mark.parametrize(
    "text",
    [
        'preset = "lenient"\n',
        '[severity]\ncomponent-order = "fatal"\n',
        '[severity]\nno-such-rule = "error"\n',
        "check_cycles = 1\n",
        "[dependencies]\nVelocity = \"Position\"\n",
        "dependencies = [1, 2]\n",
        "this is not toml\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, text: str):
    path = tmp_path / "ecslint.toml"
    path.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_config_error_is_value_error():
    assert issubclass(ConfigError, ValueError)


def test_find_project_root(write_project):
    root = write_project({"pyproject.toml": "", "src/game/world.py": ""})

    assert find_project_root(root / "src" / "game") == root.resolve()


def test_strict_preset_promotes_order_findings(analyze):
    recommended = analyze(QUERY_AND_ORDER)
    strict = analyze(QUERY_AND_ORDER, config=LintConfig(preset="strict"))

    by_rule = {f.rule: f.level for f in recommended}
    assert by_rule == {"component-order": "warning", "query-validator": "error"}
    assert {f.level for f in strict} == {"error"}


def test_off_rules_are_dropped(analyze):
    findings = analyze(QUERY_AND_ORDER, config=LintConfig(severity={"query-validator": "off"}))

    assert [f.rule for f in findings] == ["component-order"]


def test_exclude_globs_skip_files(write_project):
    root = write_project({"game/a.py": "x = 1\n", "build/gen.py": "y = 2\n", ".venv/lib.py": ""})

    program = load_program(root, exclude=("build/*",))

    assert [u.module for u in program.units] == ["game.a"]


def test_render_message_fills_template():
    message = render_message(FindingKind.CYCLE, "", {"cycle": "A -> B -> A"})

    assert message == "Circular dependency detected: A -> B -> A. This will cause validation to fail."


def test_every_finding_kind_belongs_to_a_rule():
    covered = {kind for rule_id in get_rule_ids() for kind in get_rule(rule_id).kinds}

    assert covered == set(FindingKind)
    assert get_rule("no-such-rule") is None
