"""
load the config from an optional comms.yaml and the environment
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import find_dotenv, load_dotenv

from . import __version__

DEFAULTS = {
    'transport': {
        'user_agent': f'comms/{__version__}',
        'follow_redirects': True,
        'max_redirects': 5,
        'max_connections': 20,
        'max_keepalive_connections': 10,
        'verify_ssl': True,
    },
    'logging': {
        'level': 'INFO',
        'format': 'json',
    },
}

ENV_OVERRIDES = {
    'COMMS_USER_AGENT': ('transport', 'user_agent'),
    'COMMS_FOLLOW_REDIRECTS': ('transport', 'follow_redirects'),
    'COMMS_MAX_REDIRECTS': ('transport', 'max_redirects'),
    'COMMS_MAX_CONNECTIONS': ('transport', 'max_connections'),
    'COMMS_VERIFY_SSL': ('transport', 'verify_ssl'),
    'COMMS_LOG_LEVEL': ('logging', 'level'),
    'COMMS_LOG_FORMAT': ('logging', 'format'),
}


def _coerce(env_var: str, raw: str, default):
    """Parse an environment value into the type of the setting it overrides."""
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
        raise ValueError(f"{env_var} must be a boolean, got {raw!r}")

    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{env_var} must be an integer, got {raw!r}") from None

    return raw


class Config:
    """Configuration loader that reads from a YAML file and environment variables."""

    def __init__(self, config_path: str = None, load_env: bool = False):
        """Initialize configuration loader.

        Args:
            config_path: Path to a YAML file. If None, COMMS_CONFIG is used;
                        without either only defaults and env overrides apply.
            load_env: Load the nearest .env file, searching up from the
                      working directory.
        """
        if load_env:
            load_dotenv(find_dotenv(usecwd=True))

        if config_path is None:
            config_path = os.getenv('COMMS_CONFIG')

        self.config_path = Path(config_path) if config_path else None
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file and override with environment variables."""
        config = {section: dict(values) for section, values in DEFAULTS.items()}

        if self.config_path is not None:
            try:
                with open(self.config_path, 'r') as f:
                    loaded = yaml.safe_load(f) or {}
            except FileNotFoundError:
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in configuration file: {e}")

            if not isinstance(loaded, dict):
                raise ValueError(f"Configuration file must contain a mapping: {self.config_path}")

            for section, values in loaded.items():
                if section in DEFAULTS:
                    if not isinstance(values, dict):
                        raise ValueError(f"Section '{section}' must be a mapping in {self.config_path}")
                    config[section].update(values)
                else:
                    config[section] = values

        for env_var, (section, key) in ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if raw is not None:
                config[section][key] = _coerce(env_var, raw, DEFAULTS[section][key])

        return config

    def get(self, section: str, key: str = None, default=None):
        """Get a whole section, or one key of it.

        Args:
            section: 'transport', 'logging' or any extra top-level key
            key: Setting inside the section
            default: Returned when the section or key is missing
        """
        values = self._config.get(section)
        if key is None:
            return default if values is None else values
        if not isinstance(values, dict):
            return default
        return values.get(key, default)

    @property
    def transport(self) -> Dict[str, Any]:
        """Get HTTP transport configuration."""
        return self.get('transport', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get('logging', default={})


class TransportConfig:
    """Settings for the httpx client built by HTTPTransport."""

    def __init__(
        self,
        user_agent: str = DEFAULTS['transport']['user_agent'],
        follow_redirects: bool = True,
        max_redirects: int = 5,
        max_connections: int = 20,
        max_keepalive_connections: int = 10,
        verify_ssl: bool = True,
    ):
        self.user_agent = user_agent
        self.follow_redirects = follow_redirects
        self.max_redirects = max_redirects
        self.max_connections = max_connections
        self.max_keepalive_connections = max_keepalive_connections
        self.verify_ssl = verify_ssl

    @classmethod
    def from_config(cls, config: Config) -> "TransportConfig":
        section = config.transport
        defaults = DEFAULTS['transport']
        return cls(**{key: section.get(key, value) for key, value in defaults.items()})


@lru_cache(maxsize=1)
def default_config() -> Config:
    """Process wide configuration, loaded on first use."""
    return Config()
