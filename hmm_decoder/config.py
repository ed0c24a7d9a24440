"""
Configuration management system for hmm-decoder.

Provides default settings and configuration override capabilities.
"""

import copy
import os
import json
from typing import Dict, Any, Optional
from pathlib import Path

import jsonschema


DEFAULT_CONFIG = {
    'model': {
        'validate': True,
        'stochastic_tolerance': 1e-6
    },
    'inference': {
        'log_space': False,
        'batch_policy': 'abort'
    },
    'io': {
        'model_suffix': '.hmm',
        'observation_suffix': '.obs',
        'encoding': 'utf-8'
    },
    'logging': {
        'level': 'WARNING',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'file_logging': False,
        'log_file': 'hmm_decoder.log'
    }
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Schema for JSON configuration files; unknown sections are allowed
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "model": {
            "type": "object",
            "properties": {
                "validate": {"type": "boolean"},
                "stochastic_tolerance": {"type": "number", "exclusiveMinimum": 0}
            }
        },
        "inference": {
            "type": "object",
            "properties": {
                "log_space": {"type": "boolean"},
                "batch_policy": {"type": "string", "enum": ["abort", "collect"]}
            }
        },
        "io": {
            "type": "object",
            "properties": {
                "model_suffix": {"type": "string", "minLength": 1},
                "observation_suffix": {"type": "string", "minLength": 1},
                "encoding": {"type": "string", "minLength": 1}
            }
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL",
                             "debug", "info", "warning", "error", "critical"]
                },
                "format": {"type": "string"},
                "file_logging": {"type": "boolean"},
                "log_file": {"type": "string"}
            }
        }
    }
}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"Not a boolean: {value}")


def _parse_policy(value: str) -> str:
    lowered = value.strip().lower()
    if lowered not in ('abort', 'collect'):
        raise ValueError(f"Unknown batch policy: {value}")
    return lowered


def _parse_level(value: str) -> str:
    upper = value.strip().upper()
    if upper not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {value}")
    return upper


def _parse_tolerance(value: str) -> float:
    tolerance = float(value)
    if not tolerance > 0:
        raise ValueError(f"Tolerance must be positive: {value}")
    return tolerance


class ConfigManager:
    """Manages configuration settings with override capabilities."""

    def __init__(self):
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self._load_environment_overrides()

    def _load_environment_overrides(self):
        """Load configuration overrides from environment variables."""
        config_file = os.getenv('HMM_DECODER_CONFIG')
        if config_file and Path(config_file).exists():
            self.load_from_file(config_file)

        env_overrides = {
            'HMM_DECODER_LOG_LEVEL': ('logging', 'level', _parse_level),
            'HMM_DECODER_LOG_SPACE': ('inference', 'log_space', _parse_bool),
            'HMM_DECODER_BATCH_POLICY': ('inference', 'batch_policy', _parse_policy),
            'HMM_DECODER_TOLERANCE': ('model', 'stochastic_tolerance', _parse_tolerance)
        }

        for env_var, (section, key, type_func) in env_overrides.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    self._config[section][key] = type_func(value)
                except (ValueError, KeyError):
                    pass  # Ignore invalid environment values

    def get(self, section: str, key: Optional[str] = None) -> Any:
        """Get configuration value(s)."""
        if key is None:
            return self._config.get(section, {})
        return self._config.get(section, {}).get(key)

    def set(self, section: str, key: str, value: Any) -> None:
        """Set configuration value."""
        if section not in self._config:
            self._config[section] = {}
        self._config[section][key] = value

    def update(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration with dictionary."""
        for section, values in config_dict.items():
            if section not in self._config:
                self._config[section] = {}
            if isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def load_from_file(self, config_path: str) -> None:
        """Load and validate configuration from a JSON file."""
        try:
            with open(config_path, 'r') as f:
                file_config = json.load(f)
            jsonschema.validate(file_config, CONFIG_SCHEMA)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
        except jsonschema.ValidationError as e:
            raise ValueError(f"Invalid config in {config_path}: {e.message}")
        self.update(file_config)

    def save_to_file(self, config_path: str) -> None:
        """Save current configuration to JSON file."""
        parent = os.path.dirname(config_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(config_path, 'w') as f:
            json.dump(self._config, f, indent=2)

    def get_all(self) -> Dict[str, Any]:
        """Get complete configuration dictionary."""
        return copy.deepcopy(self._config)

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self._load_environment_overrides()


# Global configuration manager instance
_config_manager = ConfigManager()


def get_config(section: str, key: Optional[str] = None) -> Any:
    """Get configuration value(s) from global config manager."""
    return _config_manager.get(section, key)


def set_config(section: str, key: str, value: Any) -> None:
    """Set configuration value in global config manager."""
    _config_manager.set(section, key, value)


def update_config(config_dict: Dict[str, Any]) -> None:
    """Update global configuration with dictionary."""
    _config_manager.update(config_dict)


def load_config_file(config_path: str) -> None:
    """Load configuration from file into global config manager."""
    _config_manager.load_from_file(config_path)


def save_config_file(config_path: str) -> None:
    """Save global configuration to file."""
    _config_manager.save_to_file(config_path)


def get_all_config() -> Dict[str, Any]:
    """Get complete configuration dictionary."""
    return _config_manager.get_all()


def reset_config() -> None:
    """Reset global configuration to defaults."""
    _config_manager.reset_to_defaults()
