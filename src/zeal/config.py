"""
Interpreter configuration.

Settings come from three places, later ones winning:

1. The defaults below
2. The ``[interpreter]`` table of a ``zeal.toml`` file
3. Command-line flags

Example ``zeal.toml``::

    [interpreter]
    rebind_on_assign = true
    max_steps = 100000
    max_call_depth = 200
"""

import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

CONFIG_FILENAME = "zeal.toml"


class ConfigError(ValueError):
    """Raised when a configuration file holds an unknown key or a bad value."""

    pass


@dataclass(frozen=True)
class InterpreterConfig:
    """
    Knobs for the evaluator.

    Attributes:
        rebind_on_assign: Make ``=`` update the nearest existing binding
            instead of creating a fresh one in the current scope
        max_steps: Upper bound on executed statements; None for no bound
        max_call_depth: Upper bound on nested closure calls
    """

    rebind_on_assign: bool = False
    max_steps: Optional[int] = None
    max_call_depth: int = 500

    def merged(self, **overrides: Any) -> "InterpreterConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _validate(table: dict[str, Any], path: Path) -> dict[str, Any]:
    known = {f.name: f for f in fields(InterpreterConfig)}
    values: dict[str, Any] = {}
    for key, value in table.items():
        if key not in known:
            raise ConfigError(f"{path}: unknown interpreter setting '{key}'")
        if key == "rebind_on_assign" and not isinstance(value, bool):
            raise ConfigError(f"{path}: '{key}' must be true or false")
        if key in ("max_steps", "max_call_depth") and (
            isinstance(value, bool) or not isinstance(value, int) or value <= 0
        ):
            raise ConfigError(f"{path}: '{key}' must be a positive integer")
        values[key] = value
    return values


def load_config(path: Optional[Path] = None) -> InterpreterConfig:
    """
    Load configuration from ``path``, or from ``zeal.toml`` in the current
    directory when it exists. A missing file yields the defaults.
    """
    if path is None:
        path = Path.cwd() / CONFIG_FILENAME
        if not path.is_file():
            return InterpreterConfig()

    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    table = document.get("interpreter", {})
    if not isinstance(table, dict):
        raise ConfigError(f"{path}: [interpreter] must be a table")
    return InterpreterConfig(**_validate(table, path))
