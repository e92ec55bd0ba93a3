"""
Configuration Management Module for the ZKL CLI

Handles hierarchical configuration loading: built-in defaults, then a JSON
configuration file, then environment variables.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / '.zkl.json',
    Path.cwd() / 'zkl.config.json',
    Path.home() / '.zkl' / 'config.json',
]

ENV_PREFIX = 'ZKL_'

# Environment variable -> dot-notation config key
ENV_MAPPING = {
    'ZKL_RPC_TIMEOUT': 'chain.timeout',
    'ZKL_EVALUATION_TIMEOUT': 'access.evaluation_timeout',
    'ZKL_OUTPUT_FORMAT': 'cli.output_format',
}

DEFAULT_CONFIG = {
    'chain': {
        'timeout': 30,
        # chain id (as string) -> RPC URL
        'rpc_overrides': {},
    },
    'access': {
        'evaluation_timeout': None,
    },
    'cli': {
        'output_format': 'table',
    },
}


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
        """
        self.logger = logging.getLogger('zkl-cli.config')
        self.config_file = config_file
        self._config_cache: Optional[Dict[str, Any]] = None
        self._config_sources: List[str] = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        configs = [DEFAULT_CONFIG]
        self._config_sources.append("defaults")

        if self.config_file:
            configs.append(self._load_config_file(Path(self.config_file)))
            self._config_sources.append(f"file:{self.config_file}")
        else:
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.exists():
                    configs.append(self._load_config_file(config_path))
                    self._config_sources.append(f"file:{config_path}")
                    self.logger.debug(f"Loaded config from {config_path}")
                    break

        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        self._config_cache = self._deep_merge(*configs)
        return self._config_cache

    def _load_config_file(self, path: Path) -> Dict[str, Any]:
        """
        Load configuration from a JSON file.

        Raises:
            ValueError: If the file is missing or not a JSON object
        """
        if not path.exists():
            raise ValueError(f"Config file not found: {path}")

        with open(path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration from mapped environment variables."""
        env_config: Dict[str, Any] = {}

        for env_name, key_path in ENV_MAPPING.items():
            value = os.environ.get(env_name)
            if value is None or value == '':
                continue

            current = env_config
            keys = key_path.split('.')
            for key in keys[:-1]:
                current = current.setdefault(key, {})
            current[keys[-1]] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ['true', 'yes']:
            return True
        if value.lower() in ['false', 'no']:
            return False

        try:
            if '.' in value:
                return float(value)
            return int(value)
        except ValueError:
            return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result: Dict[str, Any] = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                elif isinstance(value, dict):
                    result[key] = self._deep_merge(value)
                else:
                    result[key] = value

        return result

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'chain.timeout')
            default: Default value if key not found
        """
        return get_config_value(self.load(), key_path, default)

    def get_sources(self) -> List[str]:
        """Configuration sources applied, lowest precedence first."""
        self.load()
        return list(self._config_sources)


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """Look up a dot-notation path in a configuration dictionary."""
    current: Any = config
    for key in key_path.split('.'):
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return default
    return current


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """Load merged configuration."""
    return ConfigurationManager(config_file).load()
