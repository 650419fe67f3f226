"""Project configuration loaded from ``ecslint.toml`` or ``[tool.ecslint]``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .catalog import PRESETS, RULES, SEVERITIES, severity_for
from .models import ComponentMetadata

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "ecslint.toml"
PYPROJECT_FILENAME = "pyproject.toml"


class ConfigError(ValueError):
    """Raised for a configuration file that cannot be used."""


@dataclass(frozen=True)
class LintConfig:
    preset: str = "recommended"
    symmetric_conflicts: bool = True
    check_cycles: bool = True
    semantic: bool = True
    exclude: tuple[str, ...] = ()
    severity: dict[str, str] = field(default_factory=dict)  # rule id -> severity override
    dependencies: dict[str, tuple[str, ...]] = field(default_factory=dict)
    conflicts: dict[str, tuple[str, ...]] = field(default_factory=dict)
    source: Path | None = None

    def severity_for(self, rule_id: str) -> str:
        return severity_for(rule_id, self.preset, self.severity)

    def seed(self) -> dict[str, ComponentMetadata]:
        """Constraints declared in configuration rather than in code."""
        components: dict[str, ComponentMetadata] = {}
        for table, attr in ((self.dependencies, "dependencies"), (self.conflicts, "conflicts")):
            for name, targets in table.items():
                metadata = components.setdefault(name, ComponentMetadata())
                getattr(metadata, attr).update(targets)
        return components


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false")
    return value


def _string_list(value: Any, what: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{what} must be a list of strings")
    return tuple(v.strip() for v in value if v.strip())


def _constraint_table(data: dict[str, Any], key: str) -> dict[str, tuple[str, ...]]:
    raw = data.get(key, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{key}] must be a table of component = [names]")
    return {str(name): _string_list(targets, f"{key}.{name}") for name, targets in raw.items()}


def parse_config(data: dict[str, Any], source: Path | None = None) -> LintConfig:
    """Validate raw TOML data into a LintConfig."""
    preset = str(data.get("preset", "recommended")).strip() or "recommended"
    if preset not in PRESETS:
        raise ConfigError(f"unknown preset '{preset}' (expected one of: {', '.join(PRESETS)})")

    severity = {}
    for rule_id, level in _coerce_dict(data.get("severity")).items():
        if rule_id not in RULES:
            raise ConfigError(f"unknown rule '{rule_id}' in [severity]")
        level = str(level).strip().lower()
        if level not in SEVERITIES:
            raise ConfigError(
                f"severity for '{rule_id}' must be one of: {', '.join(SEVERITIES)}"
            )
        severity[rule_id] = level

    exclude = data.get("exclude", [])
    return LintConfig(
        preset=preset,
        symmetric_conflicts=_bool(data, "symmetric_conflicts", True),
        check_cycles=_bool(data, "check_cycles", True),
        semantic=_bool(data, "semantic", True),
        exclude=_string_list(exclude, "exclude"),
        severity=severity,
        dependencies=_constraint_table(data, "dependencies"),
        conflicts=_constraint_table(data, "conflicts"),
        source=source,
    )


def load_config(path: Path | None) -> LintConfig:
    """
    Load configuration from TOML.

    ``pyproject.toml`` files are read from their ``[tool.ecslint]`` table;
    any other file is read whole. ``None`` yields the defaults.
    """
    import tomllib

    if path is None:
        return LintConfig()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML in {path}: {e}") from e

    if path.name == PYPROJECT_FILENAME:
        data = _coerce_dict(_coerce_dict(data.get("tool")).get("ecslint"))

    logger.debug(f"Loaded configuration from {path}")
    return parse_config(data, source=path)


def find_config(root: Path) -> Path | None:
    """Locate the configuration file for a project root, if any."""
    import tomllib

    candidate = root / CONFIG_FILENAME
    if candidate.is_file():
        return candidate

    pyproject = root / PYPROJECT_FILENAME
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            logger.warning(f"Ignoring unreadable {pyproject}")
            return None
        if "ecslint" in _coerce_dict(data.get("tool")):
            return pyproject

    return None


def find_project_root(start: Path) -> Path:
    """Nearest ancestor of ``start`` holding pyproject.toml or ecslint.toml."""
    start = start.resolve()
    for candidate in [start, *start.parents]:
        if (candidate / PYPROJECT_FILENAME).exists() or (candidate / CONFIG_FILENAME).exists():
            return candidate
    return start
