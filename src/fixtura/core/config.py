"""
Configuration for fixtura.

Settings come from, in increasing priority:

    defaults on FixturaConfig
    fixtura.toml (top-level keys) or [tool.fixtura] in pyproject.toml
    FIXTURA_LOG_LEVEL environment variable

Example pyproject.toml:

    [tool.fixtura]
    stub_id_start = 5000
    use_parent_strategy = false
    log_level = "DEBUG"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .errors import ConfigError

CONFIG_FILE = "fixtura.toml"
PYPROJECT_FILE = "pyproject.toml"
LOG_LEVEL_ENV_VAR = "FIXTURA_LOG_LEVEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class FixturaConfig:
    """Runtime settings."""

    stub_id_start: int = 1000  # first synthetic id handed out by build_stubbed
    use_parent_strategy: bool = True  # associations follow the parent's strategy
    cache_plans: bool = True
    log_level: str = "WARNING"


def find_config_file(directory: Path) -> Path | None:
    """Locate fixtura.toml, or a pyproject.toml with a [tool.fixtura] table."""
    candidate = directory / CONFIG_FILE
    if candidate.is_file():
        return candidate

    pyproject = directory / PYPROJECT_FILE
    if pyproject.is_file():
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        if "fixtura" in data.get("tool", {}):
            return pyproject
    return None


def load_config(path: Path | None = None) -> FixturaConfig:
    """
    Load configuration.

    Args:
        path: Explicit config file; defaults to searching the working directory

    Returns:
        FixturaConfig with file and environment settings applied

    Raises:
        ConfigError: If the file is unreadable, or a key is unknown or mistyped
    """
    if path is None:
        path = find_config_file(Path.cwd())

    data: dict[str, Any] = {}
    if path is not None:
        try:
            document = tomllib.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e

        if Path(path).name == PYPROJECT_FILE:
            data = dict(document.get("tool", {}).get("fixtura", {}))
        else:
            data = dict(document)

    env_level = os.environ.get(LOG_LEVEL_ENV_VAR, "").strip()
    if env_level:
        data["log_level"] = env_level

    return _build_config(data)


def _build_config(data: dict[str, Any]) -> FixturaConfig:
    defaults = FixturaConfig()
    known = {f.name for f in fields(FixturaConfig)}

    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown fixtura config keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for name, value in data.items():
        expected = type(getattr(defaults, name))
        # bool is a subclass of int; do not accept it where an int is expected
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(
                f"Config key '{name}' must be {expected.__name__}, got {type(value).__name__}"
            )
        values[name] = value

    if "log_level" in values:
        level = values["log_level"].upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f"Invalid log_level '{values['log_level']}'")
        values["log_level"] = level

    return FixturaConfig(**values)
