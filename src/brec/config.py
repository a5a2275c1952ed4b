"""
Layered configuration for brec.

Settings are read from, lowest precedence first: the machine config, the
user config and the project's .brec-config.yml. Command-line flags override
all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import platformdirs
import yaml

from brec.logging import LogLevel
from brec.shell import TaskOutputTypes

__all__ = [
    "PROJECT_CONFIG_FILE",
    "ConfigError",
    "Settings",
    "find_project_config",
    "get_machine_config_path",
    "get_user_config_path",
    "load_settings",
    "parse_config_file",
]

PROJECT_CONFIG_FILE = ".brec-config.yml"

_KNOWN_KEYS = ("log_level", "task_output")


class ConfigError(Exception):
    """Raised when a configuration file is invalid."""

    pass


@dataclass(frozen=True)
class Settings:
    """Effective settings after all config layers are applied."""

    log_level: LogLevel = LogLevel.INFO
    task_output: TaskOutputTypes = TaskOutputTypes.ALL


def get_machine_config_path() -> Path:
    """
    Get the path to the machine-level (system-wide) configuration file.

    Uses platformdirs to determine the appropriate site config directory
    for the current platform, then appends 'brec/config.yml'.
    """
    return Path(platformdirs.site_config_dir("brec")) / "config.yml"


def get_user_config_path() -> Path:
    """
    Get the path to the user-level configuration file.

    Uses platformdirs to determine the appropriate user config directory
    for the current platform, then appends 'brec/config.yml'.
    """
    return Path(platformdirs.user_config_dir("brec")) / "config.yml"


def find_project_config(start_dir: Path) -> Optional[Path]:
    """
    Walk up the directory tree from start_dir to find .brec-config.yml.

    Returns:
        Path to the project config if found, None otherwise
    """
    try:
        current = start_dir.resolve()
    except (OSError, RuntimeError):
        return None

    while True:
        config_path = current / PROJECT_CONFIG_FILE
        try:
            if config_path.is_file():
                return config_path
        except OSError:
            pass

        parent = current.parent
        if parent == current:
            return None
        current = parent


def parse_config_file(path: Path) -> dict[str, Any]:
    """
    Parse a brec configuration file.

    Missing and empty files are valid and yield no settings.

    Returns:
        Mapping of setting name to parsed value, for the keys the file sets

    Raises:
        ConfigError: If the file cannot be read, is malformed YAML, has
            unknown keys or holds invalid values
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text()
    except OSError as e:
        raise ConfigError(f"Error reading config file '{path}': {e}") from e

    if not content.strip():
        return {}

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML in config file '{path}': {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Error in config file '{path}': top level must be a dictionary")

    unknown = [key for key in data if key not in _KNOWN_KEYS]
    if unknown:
        raise ConfigError(
            f"Error in config file '{path}': unknown setting(s): {', '.join(map(str, unknown))}"
        )

    parsed: dict[str, Any] = {}

    if "log_level" in data:
        value = data["log_level"]
        if not isinstance(value, str):
            raise ConfigError(f"Error in config file '{path}': Field 'log_level' must be a string")
        try:
            parsed["log_level"] = LogLevel.from_name(value)
        except ValueError as e:
            raise ConfigError(f"Error in config file '{path}': {e}") from e

    if "task_output" in data:
        value = data["task_output"]
        if not isinstance(value, str):
            raise ConfigError(
                f"Error in config file '{path}': Field 'task_output' must be a string"
            )
        try:
            parsed["task_output"] = TaskOutputTypes(value.lower())
        except ValueError as e:
            valid = ", ".join(t.value for t in TaskOutputTypes)
            raise ConfigError(
                f"Error in config file '{path}': Invalid task_output '{value}' "
                f"(expected one of: {valid})"
            ) from e

    return parsed


def load_settings(start_dir: Path | None = None) -> Settings:
    """
    Merge machine, user and project config into effective settings.

    Args:
        start_dir: Directory the project config search starts from (defaults to cwd)

    Raises:
        ConfigError: If any config file is invalid
    """
    if start_dir is None:
        start_dir = Path.cwd()

    settings = Settings()
    paths = [get_machine_config_path(), get_user_config_path()]
    project_config = find_project_config(start_dir)
    if project_config is not None:
        paths.append(project_config)

    for path in paths:
        settings = replace(settings, **parse_config_file(path))

    return settings
