"""Config loading and validation for bubbles.

Loads bubbles.config.json, validates required fields, and expands ~ in paths.
"""

import json
import shlex
from pathlib import Path
from typing import Any


class ConfigError(Exception):
    """Raised when configuration is invalid or missing required fields."""


CONFIG_FILENAME = "bubbles.config.json"

REQUIRED_FIELDS = ["db_path"]

PATH_FIELDS = ["db_path"]

DEFAULTS: dict[str, Any] = {
    "host": "0.0.0.0",
    "port": 5466,
    "renderer_command": ["dot"],
    "render_timeout": 30,
    "log_level": "info",
}


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load and validate bubbles.config.json.

    Args:
        config_path: Path to config file. Defaults to ./bubbles.config.json.

    Returns:
        Validated config dict with paths expanded and defaults applied.

    Raises:
        ConfigError: If file is missing, unreadable, or has invalid content.
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        raw = config_path.read_text()
        config = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Config in {config_path} must be a JSON object")

    _validate(config)
    return finalize_config(config)


def default_config(db_path: str | Path) -> dict[str, Any]:
    """Build a config from defaults alone, for running without a config file."""
    return finalize_config({"db_path": str(db_path)})


def finalize_config(config: dict[str, Any]) -> dict[str, Any]:
    """Apply defaults, normalize the renderer command, and expand paths."""
    _apply_defaults(config)
    _normalize_renderer(config)
    _expand_paths(config)
    return config


def _validate(config: dict[str, Any]) -> None:
    """Validate required fields are present."""
    for field in REQUIRED_FIELDS:
        if field not in config:
            raise ConfigError(
                f"Missing required config field: '{field}'. "
                f"Run 'bubbles init' to create a starter {CONFIG_FILENAME}."
            )


def _apply_defaults(config: dict[str, Any]) -> None:
    """Apply default values for optional fields."""
    for key, default in DEFAULTS.items():
        if key not in config:
            config[key] = list(default) if isinstance(default, list) else default


def _normalize_renderer(config: dict[str, Any]) -> None:
    """Accept the renderer command as a shell-style string or an argv list."""
    command = config["renderer_command"]
    if isinstance(command, str):
        command = shlex.split(command)
    if not command or not all(isinstance(part, str) for part in command):
        raise ConfigError("'renderer_command' must be a non-empty command")
    config["renderer_command"] = list(command)


def _expand_paths(config: dict[str, Any]) -> None:
    """Expand ~ in path fields to the user's home directory."""
    for field in PATH_FIELDS:
        if field in config and isinstance(config[field], str):
            config[field] = str(Path(config[field]).expanduser())
