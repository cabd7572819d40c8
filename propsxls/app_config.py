"""Application configuration for the properties/workbook converter."""
import codecs
import os
import sys
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from propsxls.errors import ConfigurationError

DEFAULT_CONFIG_FILE_NAME = 'propsxls.yaml'
CONFIG_FILE_ENV_VAR = 'PROPSXLS_CONFIG_FILE'


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    # Logging
    log_level: str = 'INFO'
    log_file_path: str = ''
    log_to_console: bool = True

    # Properties files
    file_encoding: str = 'utf-8'
    escape_unicode: bool = True

    # Workbook layout
    sheet_name: str = 'translations'
    base_name_header: str = 'baseName'
    key_header: str = 'key'

    show_progress: bool = True


def _load_dotenv_file() -> None:
    """Load a .env file from the current working directory, if any."""
    dotenv_path = os.path.join(os.getcwd(), '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path)


def _resolve_config_file(config_file: Optional[str]) -> tuple:
    """
    Decide which YAML file to read.

    Returns:
        A (path, explicit) tuple; explicit is False when falling back to the
        default file name in the current directory.
    """
    if config_file:
        return os.path.abspath(config_file), True
    from_env = os.environ.get(CONFIG_FILE_ENV_VAR)
    if from_env:
        return os.path.abspath(from_env), True
    return os.path.abspath(DEFAULT_CONFIG_FILE_NAME), False


def _load_yaml_config(config_file: str, explicit: bool) -> Dict[str, Any]:
    """Load the YAML configuration file, falling back to defaults on any problem."""
    config: Dict[str, Any] = {}
    try:
        if not os.path.exists(config_file):
            if explicit:
                print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                      file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _flatten_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Map the sectioned YAML layout onto AppConfig field names."""
    log_config = config.get('logging') or {}
    properties_config = config.get('properties') or {}
    workbook_config = config.get('workbook') or {}

    values: Dict[str, Any] = {}
    for source, mapping in (
            (log_config, {'log_level': 'log_level',
                          'log_file_path': 'log_file_path',
                          'log_to_console': 'log_to_console'}),
            (properties_config, {'encoding': 'file_encoding',
                                 'escape_unicode': 'escape_unicode'}),
            (workbook_config, {'sheet_name': 'sheet_name',
                               'base_name_header': 'base_name_header',
                               'key_header': 'key_header'}),
            (config, {'show_progress': 'show_progress'})):
        for yaml_key, field_name in mapping.items():
            if source.get(yaml_key) is not None:
                values[field_name] = source[yaml_key]
    return values


def _apply_env_overrides(values: Dict[str, Any]) -> None:
    log_level = os.environ.get('PROPSXLS_LOG_LEVEL')
    if log_level:
        values['log_level'] = log_level
    file_encoding = os.environ.get('PROPSXLS_FILE_ENCODING')
    if file_encoding:
        values['file_encoding'] = file_encoding


def _validate(values: Dict[str, Any]) -> None:
    """Check option types so mistakes surface before any file is touched."""
    defaults = AppConfig()
    for config_field in fields(AppConfig):
        if config_field.name not in values:
            continue
        value = values[config_field.name]
        expected_type = type(getattr(defaults, config_field.name))
        if not isinstance(value, expected_type):
            raise ConfigurationError(
                f"Configuration option '{config_field.name}' must be of type {expected_type.__name__}, "
                f"got {value!r}"
            )
    try:
        codecs.lookup(values.get('file_encoding', defaults.file_encoding))
    except LookupError as lookup_exc:
        raise ConfigurationError(f"Unknown file encoding: {lookup_exc}") from lookup_exc
    if not values.get('sheet_name', defaults.sheet_name).strip():
        raise ConfigurationError("Configuration option 'sheet_name' must not be empty")


def load_app_config(config_file: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from a YAML file and environment variables.

    The file is, in order of preference, ``config_file``, the path in
    PROPSXLS_CONFIG_FILE, or ``propsxls.yaml`` in the current directory.
    PROPSXLS_LOG_LEVEL and PROPSXLS_FILE_ENCODING override the file.

    Args:
        config_file: Optional explicit path to the YAML file.

    Returns:
        AppConfig: The loaded application configuration.

    Raises:
        ConfigurationError: If an option has the wrong type or value.
    """
    _load_dotenv_file()

    resolved_file, explicit = _resolve_config_file(config_file)
    config = _load_yaml_config(resolved_file, explicit)

    values = _flatten_config(config)
    _apply_env_overrides(values)
    _validate(values)

    return AppConfig(**values)
