"""
Configuration for the form builder.

Settings live in config.yaml next to streamlit_app.py. Whatever the file
provides is merged over DEFAULT_CONFIG; a missing, empty or broken file
leaves the builder running on the defaults alone.
"""

import logging
from copy import deepcopy
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")

LOGGING_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    'app': {
        'name': 'Form Builder',
        'version': '1.0.0',
        'debug': False
    },
    'logging': {
        'level': 'INFO'
    },
    'ui': {
        'page_title': 'Form Builder',
        'subtitle': 'Build forms field by field and preview them live',
        'show_schema_panel': False
    },
    'builder': {
        'label_prefix': 'Field',
        'notify_on_change': True
    },
    'form_defaults': {
        'title': 'My Form',
        'description': 'This is a form built with Form Builder',
        'submit_text': 'Submit',
        'show_reset': False,
        'reset_text': 'Reset'
    }
}

# (section, key) -> (expected type, required)
VALUE_TYPES: Dict[Tuple[str, str], Tuple[type, bool]] = {
    ('app', 'name'): (str, True),
    ('app', 'version'): (str, True),
    ('app', 'debug'): (bool, False),
    ('logging', 'level'): (str, False),
    ('ui', 'page_title'): (str, False),
    ('ui', 'subtitle'): (str, False),
    ('ui', 'show_schema_panel'): (bool, False),
    ('builder', 'label_prefix'): (str, False),
    ('builder', 'notify_on_change'): (bool, False),
    ('form_defaults', 'title'): (str, False),
    ('form_defaults', 'description'): (str, False),
    ('form_defaults', 'submit_text'): (str, False),
    ('form_defaults', 'show_reset'): (bool, False),
    ('form_defaults', 'reset_text'): (str, False),
}


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge update_dict into a copy of base_dict.

    Nested mappings are merged key by key; any other value in update_dict
    replaces the base value. Neither input is modified.
    """
    merged = deepcopy(base_dict)
    for key, value in update_dict.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def get_default_config() -> Dict[str, Any]:
    """Fresh copy of the built-in configuration."""
    return deepcopy(DEFAULT_CONFIG)


def _read_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Parse the YAML file, or return None when it cannot be used."""
    if not config_path.exists():
        logger.warning(f"No configuration file at {config_path}")
        return None

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Could not parse {config_path}: {e}")
        return None
    except (IOError, OSError) as e:
        logger.error(f"Could not read {config_path}: {e}")
        return None

    if content is None:
        logger.warning(f"Configuration file {config_path} is empty")
        return None
    if not isinstance(content, dict):
        logger.error(f"Configuration in {config_path} must be a mapping, got {type(content).__name__}")
        return None
    return content


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the builder configuration.

    Args:
        config_path: YAML file to read, config.yaml by default

    Returns:
        The file's values merged over the defaults
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    user_config = _read_config_file(config_path)
    if user_config is None:
        logger.info("Form builder is running on default configuration")
        return get_default_config()

    logger.info(f"Loaded configuration from {config_path}")
    return deep_merge(DEFAULT_CONFIG, user_config)


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Check that every section is present and values have the expected types.

    Returns:
        True if the configuration is usable as-is
    """
    for section in DEFAULT_CONFIG:
        if not isinstance(config.get(section), dict):
            logger.warning(f"Configuration section '{section}' is missing")
            return False

    for (section, key), (expected, required) in VALUE_TYPES.items():
        if key not in config[section]:
            if required:
                logger.warning(f"Configuration value {section}.{key} is required")
                return False
            continue
        if not isinstance(config[section][key], expected):
            logger.warning(f"Configuration value {section}.{key} must be of type {expected.__name__}")
            return False

    level = config['logging'].get('level', 'INFO')
    if level.upper() not in LOGGING_LEVELS:
        logger.warning(f"Unknown logging level '{level}'")
        return False

    if not config['builder'].get('label_prefix', 'Field').strip():
        logger.warning("builder.label_prefix must not be blank")
        return False

    return True


def get_config_value(config: Dict[str, Any], section: str, key: str, default: Any = None) -> Any:
    """Value of section.key, or default when either is missing."""
    section_values = config.get(section)
    if not isinstance(section_values, dict):
        return default
    return section_values.get(key, default)


def get_logging_level(level_str: Any) -> int:
    """Map a level name to its logging constant, INFO when unknown."""
    if not isinstance(level_str, str):
        return logging.INFO
    return LOGGING_LEVELS.get(level_str.upper(), logging.INFO)


def save_config(config: Dict[str, Any], config_path: Optional[Path] = None) -> bool:
    """
    Write the configuration back to YAML, keeping section order.

    Returns:
        True if the file was written
    """
    config_path = config_path if config_path is not None else DEFAULT_CONFIG_PATH
    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config, f, default_flow_style=False, indent=2, sort_keys=False, allow_unicode=True)
    except (IOError, OSError, yaml.YAMLError) as e:
        logger.error(f"Could not write configuration to {config_path}: {e}")
        return False

    logger.info(f"Saved configuration to {config_path}")
    return True
