"""
Rule catalog for ecslint.

Three rules group the finding kinds:
- component-validator: problems inside register_validator declarations
- component-order: entity builders and templates that violate constraints
- query-validator: queries that can never match any entity

Severity presets mirror the ESLint plugin configs the rules come from.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .models import FindingKind

Severity = str  # "error" | "warning" | "info" | "off"
SEVERITIES = ("error", "warning", "info", "off")


@dataclass
class Rule:
    """A named group of checks sharing one severity."""
    id: str
    summary: str
    kinds: List[FindingKind]


RULE_ORDER = ["component-validator", "component-order", "query-validator"]

RULES = {
    "component-validator": Rule(
        id="component-validator",
        summary="Validator declarations must be self-consistent and acyclic",
        kinds=[
            FindingKind.SELF_REFERENCE,
            FindingKind.CONTRADICTION,
            FindingKind.DUPLICATE_ENTRY,
            FindingKind.CYCLE,
        ],
    ),
    "component-order": Rule(
        id="component-order",
        summary="Components must be attached after their dependencies and never beside a conflict",
        kinds=[FindingKind.MISSING_DEPENDENCY, FindingKind.CONFLICTING_COMPONENT],
    ),
    "query-validator": Rule(
        id="query-validator",
        summary="Queries must be satisfiable",
        kinds=[FindingKind.UNSATISFIABLE_QUERY, FindingKind.DUPLICATE_ENTRY],
    ),
}

PRESETS: Dict[str, Dict[str, Severity]] = {
    "recommended": {
        "component-validator": "error",
        "component-order": "warning",
        "query-validator": "error",
    },
    "strict": {
        "component-validator": "error",
        "component-order": "error",
        "query-validator": "error",
    },
}

MESSAGES: Dict[Tuple[FindingKind, str], str] = {
    (FindingKind.SELF_REFERENCE, "dependency"):
        'Component "{component}" cannot depend on itself. Remove it from dependencies.',
    (FindingKind.SELF_REFERENCE, "conflict"):
        'Component "{component}" cannot conflict with itself. Remove it from conflicts.',
    (FindingKind.CONTRADICTION, ""):
        'Component "{component}" both depends on and conflicts with "{target}". '
        "A component cannot require and forbid the same component.",
    (FindingKind.DUPLICATE_ENTRY, "dependency"):
        '"{target}" appears multiple times in dependencies array. Remove the duplicate.',
    (FindingKind.DUPLICATE_ENTRY, "conflict"):
        '"{target}" appears multiple times in conflicts array. Remove the duplicate.',
    (FindingKind.DUPLICATE_ENTRY, "all"):
        'Component "{component}" appears multiple times in "all" array. Remove the duplicate.',
    (FindingKind.DUPLICATE_ENTRY, "none"):
        'Component "{component}" appears multiple times in "none" array. Remove the duplicate.',
    (FindingKind.DUPLICATE_ENTRY, "tags"):
        'Tag "{tag}" appears multiple times in "tags" array. Remove the duplicate.',
    (FindingKind.DUPLICATE_ENTRY, "without_tags"):
        'Tag "{tag}" appears multiple times in "without_tags" array. Remove the duplicate.',
    (FindingKind.CYCLE, ""):
        "Circular dependency detected: {cycle}. This will cause validation to fail.",
    (FindingKind.MISSING_DEPENDENCY, "entity"):
        'Component "{component}" requires "{dependency}" to be added first. '
        "Add {dependency} before {component}.",
    (FindingKind.MISSING_DEPENDENCY, "template"):
        'Template "{template}": Component "{component}" requires "{dependency}" '
        "to appear earlier in the components array.",
    (FindingKind.CONFLICTING_COMPONENT, "entity"):
        'Component "{component}" conflicts with "{conflict}" which was already added to this entity.',
    (FindingKind.CONFLICTING_COMPONENT, "template"):
        'Template "{template}": Component "{component}" conflicts with "{conflict}". '
        "These components cannot be in the same template.",
    (FindingKind.UNSATISFIABLE_QUERY, "all-none"):
        'Component "{component}" is in both "all" and "none". This query will never match any entities.',
    (FindingKind.UNSATISFIABLE_QUERY, "tags"):
        'Tag "{tag}" is in both "tags" and "without_tags". This query will never match any entities.',
    (FindingKind.UNSATISFIABLE_QUERY, "conflicting-pair"):
        'Components "{first}" and "{second}" conflict with each other. '
        'Having both in "all" means no entities can match this query.',
}

RULE_EXPLANATIONS = {
    "component-validator": """
## component-validator

Checks every `register_validator(Component, {...})` call.

**Reports:**
- a component listed in its own `dependencies` or `conflicts`
- a component that both depends on and conflicts with the same target
- a name repeated within one `dependencies` or `conflicts` array
- dependency cycles across every validator in the project (`check_cycles`)

Constraints are merged from every file, so a contradiction or cycle may be
reported in a file that only declares part of it.

**Fix:** remove the offending entry, or break the cycle by dropping one
dependency.
""",
    "component-order": """
## component-order

Replays how components are attached and checks each step against the
declared constraints.

**Entity builders:** `entity = world.create_entity()` followed by
`entity.attach(Component)`; chained `.attach(...)` calls are followed too.
Tracking is local to the enclosing function.

**Templates:** `register_template("name", {"components": [...]})` is checked
in list order.

**Reports:**
- a component attached before one of its dependencies
- a component attached while a conflicting component is already present

**Fix:** reorder the attaches (see `ecslint trace COMPONENT` for a valid
order) or remove one side of the conflict.
""",
    "query-validator": """
## query-validator

Checks `create_query(...)` / `create_system(...)` declarations.

**Reports:**
- a component in both `all` and `none`
- a tag in both `tags` and `without_tags`
- two components in `all` that conflict with each other (once per pair)
- a name repeated within `all`, `none`, `tags` or `without_tags`

Any of the first three means the query can never match an entity.
""",
}


def render_message(kind: FindingKind, variant: str, data: Dict[str, str]) -> str:
    """Render the message template for a finding."""
    template = MESSAGES.get((kind, variant)) or MESSAGES.get((kind, ""))
    if template is None:
        return kind.value
    return template.format(**data)


def get_rule_ids() -> List[str]:
    """Rule IDs in canonical order."""
    return list(RULE_ORDER)


def get_rule(rule_id: str) -> Optional[Rule]:
    return RULES.get(rule_id)


def severity_for(
    rule_id: str, preset: str = "recommended", overrides: Optional[Dict[str, Severity]] = None
) -> Severity:
    """
    Effective severity of a rule.

    Args:
        rule_id: The rule identifier (e.g., 'component-order')
        preset: Name of a preset in PRESETS
        overrides: Per-rule severities that win over the preset

    Returns:
        One of 'error', 'warning', 'info' or 'off'
    """
    if overrides and rule_id in overrides:
        return overrides[rule_id]
    return PRESETS.get(preset, PRESETS["recommended"]).get(rule_id, "error")
