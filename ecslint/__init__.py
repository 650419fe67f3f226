"""ecslint - static dependency/conflict checker for ECS component compositions."""

__version__ = "0.1.0"
