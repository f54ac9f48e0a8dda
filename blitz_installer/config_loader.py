# blitz_installer/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the installer.

Handles loading settings from Pydantic model defaults, environment
variables, a YAML file and command-line arguments, in this order of
precedence (later wins):
1. Pydantic Model Defaults
2. Environment Variables (BLITZ_*, loaded by BaseSettings)
3. YAML Configuration File
4. Command-Line Arguments
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from blitz_installer import config as static_config
from blitz_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

# CLI option name -> AppSettings field
_CLI_FIELD_MAP: Dict[str, str] = {
    "install_root": "install_root",
    "log_file": "log_file",
    "lock_file": "lock_file",
    "launch_delay": "launch_delay_seconds",
}


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates `source` with values from `overrides`. Nested
    dictionaries are merged key by key; None values in `overrides` never
    replace an existing value.

    Returns:
        The updated `source` dictionary.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def load_yaml_config(
    config_file_path: Union[str, Path],
    current_logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    Read a YAML mapping from a file.

    Returns:
        The mapping, or an empty dict when the file is empty.

    Raises:
        SystemExit: The file cannot be read, is not valid YAML or does not
            hold a mapping.
    """
    logger_to_use = current_logger if current_logger else module_logger
    path = Path(config_file_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SystemExit(f"Could not parse YAML config file '{path}': {e}") from e
    except OSError as e:
        raise SystemExit(f"Could not read config file '{path}': {e}") from e

    if yaml_data is None:
        logger_to_use.warning(f"Config file '{path}' is empty. Ignoring.")
        return {}
    if not isinstance(yaml_data, dict):
        raise SystemExit(
            f"Config file '{path}' does not contain a YAML mapping."
        )
    logger_to_use.debug(f"Loaded configuration from {path}")
    return yaml_data


def _cli_overrides(cli_args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    cli_arg_dict = vars(cli_args)
    for cli_key, field_name in _CLI_FIELD_MAP.items():
        value = cli_arg_dict.get(cli_key)
        if value is not None:
            overrides[field_name] = value
    if cli_arg_dict.get("no_launch"):
        overrides["launch"] = False
    return overrides


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: Optional[Union[str, Path]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Loads installer settings.

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        config_file_path: YAML configuration file. When None, the CLI
            '--config' value is used, then the default file if it exists.
            An explicitly requested file must exist.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        SystemExit: The configuration file or the merged values are invalid.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        current_values_dict = AppSettings().model_dump()
    except ValidationError as e:
        raise SystemExit(f"Configuration error in environment: {e}") from e

    if config_file_path is None and cli_args is not None:
        config_file_path = getattr(cli_args, "config", None)

    if config_file_path is not None:
        if not Path(config_file_path).is_file():
            raise SystemExit(f"Configuration file '{config_file_path}' not found.")
        yaml_path: Optional[Path] = Path(config_file_path)
    elif static_config.DEFAULT_CONFIG_FILE.is_file():
        yaml_path = static_config.DEFAULT_CONFIG_FILE
    else:
        yaml_path = None
        logger_to_use.debug(
            "No configuration file found. Using defaults, environment variables, and CLI args."
        )

    if yaml_path is not None:
        current_values_dict = _deep_update(
            current_values_dict, load_yaml_config(yaml_path, logger_to_use)
        )

    if cli_args is not None:
        current_values_dict = _deep_update(current_values_dict, _cli_overrides(cli_args))

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e

    return final_settings
