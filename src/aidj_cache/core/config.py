"""Configuration loading for the cache engine.

Reads a YAML file, expands ``${VAR}`` references from the environment (and
``.env`` via python-dotenv) and validates the result with pydantic.
"""

from __future__ import annotations

import logging
import os
import pathlib
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from aidj_cache.core.exceptions import ConfigurationError
from aidj_cache.core.models.settings import AppSettings

# Type definitions for configuration
ConfigValue = dict[str, Any] | list[Any] | str | int | float | bool | None

DEFAULT_CONFIG_PATH = "config.yaml"
MAX_CONFIG_SIZE = 1024 * 1024  # 1MB

logger = logging.getLogger("config")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


def resolve_env_vars(config: ConfigValue) -> ConfigValue:
    """Recursively resolve environment variables in config values.

    Args:
        config: Configuration value (dict, list, or primitive).

    Returns:
        ConfigValue: Config with environment variables resolved.

    """
    if isinstance(config, dict):
        return {str(k): resolve_env_vars(v) for k, v in config.items()}
    if isinstance(config, list):
        return [resolve_env_vars(item) for item in config]
    if isinstance(config, str) and config.startswith("${") and config.endswith("}"):
        var_name = config[2:-1]
        return os.getenv(var_name, "")
    if isinstance(config, str) and "$" in config:
        return os.path.expandvars(config)
    return config


def _validate_config_path(path: str) -> pathlib.Path:
    """Resolve and validate the configuration file path.

    Raises:
        ConfigurationError: If the path is missing, not a file, or not YAML.

    """
    try:
        resolved_path = pathlib.Path(path).expanduser().resolve(strict=True)
    except FileNotFoundError as e:
        msg = f"Config file not found at the specified path: {path}"
        raise ConfigurationError(msg, config_path=path) from e

    if not resolved_path.is_file():
        msg = f"Config path does not point to a file: {resolved_path}"
        raise ConfigurationError(msg, config_path=path)

    if resolved_path.suffix.lower() not in (".yaml", ".yml"):
        msg = "Configuration file must have a .yaml or .yml extension"
        raise ConfigurationError(msg, config_path=path)

    return resolved_path


def _read_and_parse_config(path: pathlib.Path) -> ConfigValue:
    """Read and parse the YAML config file with size validation."""
    if path.stat().st_size > MAX_CONFIG_SIZE:
        msg = f"Config file {path} is too large (max {MAX_CONFIG_SIZE} bytes)"
        raise ConfigurationError(msg, config_path=str(path))

    logger.info("Loading config from: %s", path)
    content = path.read_text(encoding="utf-8")
    parsed_yaml: ConfigValue = yaml.safe_load(content)
    return parsed_yaml


def _validate_config_data_type(config_data: ConfigValue) -> dict[str, Any]:
    """Return config data as a dict; an empty file counts as an empty config.

    Raises:
        TypeError: If configuration data is not a dictionary

    """
    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        msg = "Configuration data is not a dictionary after parsing."
        raise TypeError(msg)
    return config_data


def format_pydantic_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors into a readable string.

    Args:
        error: Pydantic ValidationError instance.

    Returns:
        str: Formatted error message string.

    """
    error_messages: list[str] = []

    for err in error.errors():
        loc_path = ".".join(str(loc) for loc in err["loc"])
        msg = err["msg"]
        error_type = err["type"]

        if error_type == "missing":
            error_messages.append(f"{loc_path}: Missing required field")
        elif error_type in ("type_error", "value_error", "assertion_error"):
            error_messages.append(f"{loc_path}: {msg}")
        else:
            error_messages.append(f"{loc_path}: {msg} (type: {error_type})")

    return "\n".join(error_messages)


def load_config(config_path: str | None = None) -> AppSettings:
    """Load and validate the configuration file.

    Args:
        config_path: Path to the YAML file. Falls back to ``CONFIG_PATH``
            from the environment, then ``config.yaml``.

    Returns:
        Validated application settings.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid.

    """
    env_loaded = load_dotenv()
    logger.debug(".env file %s", "found and loaded" if env_loaded else "not found, using system environment variables")

    path = config_path or os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)
    validated_path = _validate_config_path(path)

    try:
        config_data = _read_and_parse_config(validated_path)
        config_data = _validate_config_data_type(resolve_env_vars(config_data))
    except (OSError, TypeError, yaml.YAMLError) as e:
        msg = f"Failed to read configuration: {e}"
        raise ConfigurationError(msg, config_path=str(validated_path)) from e

    try:
        settings = AppSettings.model_validate(config_data)
    except ValidationError as e:
        msg = f"Configuration validation failed:\n{format_pydantic_errors(e)}"
        raise ConfigurationError(msg, config_path=str(validated_path)) from e

    logger.info("Configuration successfully loaded and validated.")
    return settings
