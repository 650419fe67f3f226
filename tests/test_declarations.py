"""Tests for the component-validator rule."""

import pytest

from ecslint.config import LintConfig
from ecslint.models import FindingKind


def _of(findings, kind: FindingKind):
    return [f for f in findings if f.kind == kind]


@pytest.mark.parametrize(
    ("options", "variant"),
    [
        ("{'dependencies': [Health]}", "dependency"),
        ("{'conflicts': [Health]}", "conflict"),
        ("dependencies=[Position, Health]", "dependency"),
    ],
)
def test_self_reference_yields_exactly_one_finding(analyze, options, variant):
    findings = analyze(f"world.register_validator(Health, {options})\n")

    assert len(findings) == 1
    finding = findings[0]
    assert finding.kind == FindingKind.SELF_REFERENCE
    assert finding.variant == variant
    assert finding.rule == "component-validator"
    assert finding.level == "error"
    assert "Health" in finding.message


def test_self_reference_in_both_arrays_reports_each_kind_once(analyze):
    findings = analyze("world.register_validator(A, {'dependencies': [A], 'conflicts': [A]})\n")

    assert sorted(f.variant for f in _of(findings, FindingKind.SELF_REFERENCE)) == ["conflict", "dependency"]
    assert _of(findings, FindingKind.CONTRADICTION) == []


@pytest.mark.parametrize(
    "source",
    [
        "world.register_validator(C, {'dependencies': [D], 'conflicts': [D]})\n",
        "world.register_validator(C, {'conflicts': [D], 'dependencies': [D]})\n",
    ],
)
def test_contradiction_reported_once_in_either_order(analyze, source):
    findings = analyze(source)

    contradictions = _of(findings, FindingKind.CONTRADICTION)
    assert len(contradictions) == 1
    assert contradictions[0].data == {"component": "C", "target": "D"}
    assert _of(findings, FindingKind.DUPLICATE_ENTRY) == []


def test_contradiction_across_declarations_reported_once(analyze):
    findings = analyze(
        """
        world.register_validator(C, {'dependencies': [D]})
        world.register_validator(C, {'conflicts': [D]})
        """
    )

    assert len(_of(findings, FindingKind.CONTRADICTION)) == 1


def test_contradiction_from_another_unit(analyze):
    findings = analyze(
        {
            "a.py": "world.register_validator(C, {'dependencies': [D]})\n",
            "b.py": "world.register_validator(C, {'conflicts': [D]})\n",
        }
    )

    contradictions = _of(findings, FindingKind.CONTRADICTION)
    # Each unit declaring C sees the merged constraints.
    assert {f.location.path.name for f in contradictions} == {"a.py", "b.py"}


def test_duplicate_detection_is_array_local(analyze):
    findings = analyze("world.register_validator(C, {'dependencies': [D, D]})\n")

    assert len(findings) == 1
    assert findings[0].kind == FindingKind.DUPLICATE_ENTRY
    assert findings[0].variant == "dependency"
    assert findings[0].data == {"target": "D"}


def test_duplicate_reported_once_per_name(analyze):
    findings = analyze("world.register_validator(C, {'conflicts': [D, E, D, D, E]})\n")

    duplicates = _of(findings, FindingKind.DUPLICATE_ENTRY)
    assert sorted(f.data["target"] for f in duplicates) == ["D", "E"]
    assert all(f.variant == "conflict" for f in duplicates)


def test_duplicate_located_at_repeated_entry(analyze):
    findings = analyze("world.register_validator(C, {'dependencies': [D, E, D]})\n")

    duplicate = _of(findings, FindingKind.DUPLICATE_ENTRY)[0]
    assert duplicate.location.line == 1
    # Column of the second `D`.
    assert duplicate.location.column == len("world.register_validator(C, {'dependencies': [D, E, ")


def test_two_node_cycle(analyze):
    findings = analyze(
        """
        world.register_validator(A, {'dependencies': [B]})
        world.register_validator(B, {'dependencies': [A]})
        """
    )

    cycles = _of(findings, FindingKind.CYCLE)
    assert len(cycles) == 1
    path = cycles[0].data["cycle"].split(" -> ")
    assert len(path) == 3
    assert path[0] == path[-1]
    assert cycles[0].location.line == 2


def test_three_node_cycle(analyze):
    findings = analyze(
        """
        world.register_validator(A, {'dependencies': [B]})
        world.register_validator(B, {'dependencies': [C]})
        world.register_validator(C, {'dependencies': [A]})
        """
    )

    cycles = _of(findings, FindingKind.CYCLE)
    assert len(cycles) == 1
    path = cycles[0].data["cycle"].split(" -> ")
    assert len(path) == 4
    assert sorted(path[:-1]) == ["A", "B", "C"]
    assert "Circular dependency detected" in cycles[0].message


def test_no_false_cycle(analyze):
    findings = analyze(
        """
        world.register_validator(A, {'dependencies': [B]})
        world.register_validator(B, {'dependencies': [C]})
        """
    )

    assert _of(findings, FindingKind.CYCLE) == []


def test_cycle_check_can_be_disabled(analyze):
    findings = analyze(
        """
        world.register_validator(A, {'dependencies': [B]})
        world.register_validator(B, {'dependencies': [A]})
        """,
        config=LintConfig(check_cycles=False),
    )

    assert findings == []


def test_cycle_reported_where_a_member_is_declared(analyze):
    findings = analyze(
        {
            "a.py": "world.register_validator(A, {'dependencies': [B]})\n",
            "b.py": "world.register_validator(B, {'dependencies': [A]})\n",
            "c.py": "world.register_validator(Other, {'dependencies': [A]})\n",
        }
    )

    cycles = _of(findings, FindingKind.CYCLE)
    assert {f.location.path.name for f in cycles} == {"a.py", "b.py"}


def test_config_only_cycle_is_not_reported(analyze):
    config = LintConfig(dependencies={"A": ("B",), "B": ("A",)})

    findings = analyze("world.register_validator(Other, {'dependencies': [A]})\n", config=config)

    assert _of(findings, FindingKind.CYCLE) == []


def test_rule_can_be_turned_off(analyze):
    findings = analyze(
        "world.register_validator(C, {'dependencies': [C, D, D]})\n",
        config=LintConfig(severity={"component-validator": "off"}),
    )

    assert findings == []
