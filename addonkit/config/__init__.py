"""
addonkit Configuration - TOML-based settings.

This module provides:
- The ``[addons]`` settings schema
- Loading with validation and defaults
- Generation of a commented default settings file

Example usage:
    from addonkit.config import load_settings

    settings = load_settings(Path("config/addonkit.toml"))
    print(settings.registry_root)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from addonkit.config.schema import ConfigField, ValidationError, resolve_config
from addonkit.config.toml_handler import (
    TOMLError,
    generate_toml_from_schema,
    read_toml,
    write_toml,
)

SECTION = "addons"

# Default config file path
DEFAULT_CONFIG_FILE = Path("config/addonkit.toml")

SCHEMA: dict[str, ConfigField] = {
    "path": ConfigField(str, "addons", "Registry root: directory holding installed addons"),
    "defaults_path": ConfigField(
        str, "defaults", "Template root: default addons copied in at startup"
    ),
    "temp_path": ConfigField(
        str, "", "Parent of staging directories (empty: system temp directory)"
    ),
    "static_prefix": ConfigField(
        str, "/static/addons", "Public path prefix the registry root is served under"
    ),
    "git_command": ConfigField(str, "git", "git executable used to fetch addons"),
    "npm_command": ConfigField(
        list, ["npm", "install", "."], "Dependency install command, run in the addon directory",
        item_type=str,
    ),
    "bundler_command": ConfigField(str, "r.js", "RequireJS optimizer executable"),
    "require_tools_path": ConfigField(
        str, "", "Directory aliased as 'require-tools' in client builds (empty: no alias)"
    ),
    "tool_timeout": ConfigField(
        float, 0.0, "Seconds before an external tool is killed (0: wait forever)", min=0
    ),
    "log_level": ConfigField(
        str, "INFO", "Console log level", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    ),
}


class ConfigError(Exception):
    """Base exception for config API errors."""

    pass


def _optional_path(value: str) -> Path | None:
    return Path(value).resolve() if value else None


@dataclass
class AddonSettings:
    """
    Resolved addon settings.

    Attributes:
        values: Validated ``[addons]`` table with defaults filled in
    """

    values: dict[str, Any]

    @property
    def registry_root(self) -> Path:
        return Path(self.values["path"]).resolve()

    @property
    def template_root(self) -> Path:
        return Path(self.values["defaults_path"]).resolve()

    @property
    def temp_root(self) -> Path | None:
        return _optional_path(self.values["temp_path"])

    @property
    def require_tools_path(self) -> Path | None:
        return _optional_path(self.values["require_tools_path"])

    @property
    def tool_timeout(self) -> float | None:
        return self.values["tool_timeout"] or None

    def __getattr__(self, name: str) -> Any:
        values = self.__dict__.get("values", {})
        if name in values:
            return values[name]
        raise AttributeError(f"Configuration field '{name}' not found")


def settings_from_dict(table: dict[str, Any]) -> AddonSettings:
    """
    Build settings from an ``[addons]`` table.

    Raises:
        ConfigError: If the table is invalid
    """
    try:
        return AddonSettings(resolve_config(dict(table), SCHEMA))
    except ValidationError as e:
        raise ConfigError(f"Invalid [{SECTION}] settings: {e}") from e


def load_settings(config_file: Path | None = None) -> AddonSettings:
    """
    Load settings from a TOML file.

    A missing file yields the defaults.

    Args:
        config_file: Settings file (DEFAULT_CONFIG_FILE if None)

    Returns:
        AddonSettings

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values
    """
    config_file = config_file or DEFAULT_CONFIG_FILE

    if not config_file.exists():
        return settings_from_dict({})

    try:
        data = read_toml(config_file)
    except TOMLError as e:
        raise ConfigError(str(e)) from e

    table = data.get(SECTION, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{SECTION}] in {config_file} must be a table")
    return settings_from_dict(table)


def write_default_config(config_file: Path | None = None) -> Path:
    """
    Write a commented settings file holding the defaults.

    Returns:
        Path of the written file

    Raises:
        ConfigError: If the file cannot be written
    """
    config_file = config_file or DEFAULT_CONFIG_FILE
    try:
        write_toml(config_file, generate_toml_from_schema(SECTION, SCHEMA))
    except TOMLError as e:
        raise ConfigError(str(e)) from e
    return config_file


__all__ = [
    "SCHEMA",
    "AddonSettings",
    "ConfigError",
    "load_settings",
    "settings_from_dict",
    "write_default_config",
]
