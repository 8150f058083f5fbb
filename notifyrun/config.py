"""
Configuration loading for notifyrun.

Settings come from an optional TOML (or YAML) file and are overridden by
command-line options.
"""

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import toml
import yaml

from notifyrun.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "./notifyrun.toml"
CONFIG_FILENAME = "notifyrun.toml"
ENV_CONFIG_DIR_VAR = "NOTIFYRUN_CONFIG_DIR"


@dataclass
class Settings:
    """Resolved options for one watch session."""

    paths: List[str] = field(default_factory=list)
    command: Optional[str] = None
    ignore: List[str] = field(default_factory=list)
    ignore_events: List[str] = field(default_factory=list)
    recursive: bool = False
    polling: bool = False
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def find_config_path(cli_config_path=None):
    """
    Pick the configuration file to load.

    Precedence:
      1. cli_config_path if provided.
      2. Environment variable NOTIFYRUN_CONFIG_DIR (looking for notifyrun.toml).
      3. ./notifyrun.toml if it exists.

    Returns:
        str or None: Path to load, or None when no configuration file applies.
    """
    if cli_config_path:
        return cli_config_path
    if os.environ.get(ENV_CONFIG_DIR_VAR):
        return os.path.join(os.environ[ENV_CONFIG_DIR_VAR], CONFIG_FILENAME)
    if os.path.exists(DEFAULT_CONFIG_PATH):
        return DEFAULT_CONFIG_PATH
    return None


def load_config(cli_config_path=None):
    """
    Load configuration from a TOML or YAML file.

    Returns:
        dict: The configuration settings, empty when no file applies.

    Raises:
        FileNotFoundError: If an explicitly selected file does not exist.
        ConfigurationError: If the file cannot be parsed.
    """
    config_path = find_config_path(cli_config_path)
    if config_path is None:
        return {}
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            if config_path.endswith((".yaml", ".yml")):
                config_data = yaml.safe_load(f)
            else:
                config_data = toml.load(f)
    except (toml.TomlDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to parse configuration {config_path}: {e}") from e

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")
    return config_data


def resolve_settings(cfg, **overrides):
    """
    Merge command-line overrides over the loaded configuration.

    Overrides that are None or empty sequences leave the file value in place.

    Args:
        cfg (dict): Loaded configuration (see load_config).
        **overrides: Settings field names mapped to command-line values.

    Returns:
        Settings: The resolved settings.
    """
    watch_cfg = _section(cfg, "watch")
    logging_cfg = _section(cfg, "logging")

    values = {
        "paths": _str_list(watch_cfg.get("paths"), "watch.paths"),
        "command": _optional_str(watch_cfg.get("exec"), "watch.exec"),
        "ignore": _str_list(watch_cfg.get("ignore"), "watch.ignore"),
        "ignore_events": _str_list(watch_cfg.get("ignore_events"), "watch.ignore_events"),
        "recursive": _bool(watch_cfg.get("recursive", False), "watch.recursive"),
        "polling": _bool(watch_cfg.get("polling", False), "watch.polling"),
        "log_level": _optional_str(logging_cfg.get("level"), "logging.level") or "INFO",
        "log_dir": _optional_str(logging_cfg.get("log_dir"), "logging.log_dir"),
    }
    for key, value in overrides.items():
        if key not in values:
            raise TypeError(f"Unknown setting: {key}")
        if value is None or (isinstance(value, (list, tuple)) and not value):
            continue
        values[key] = list(value) if isinstance(value, tuple) else value
    return Settings(**values)


def _section(cfg, name):
    section = (cfg or {}).get(name, {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{name}' section must be a mapping")
    return section


def _str_list(value, field_name):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"{field_name} must be a list of strings")
    return list(value)


def _optional_str(value, field_name):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string")
    return value


def _bool(value, field_name):
    if not isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be a boolean")
    return value
