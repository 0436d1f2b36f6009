"""Configuration management for the i18n translator."""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..core.exceptions import ConfigurationError
from ..core.models import ProviderConfig, RateLimit
from ..translators.translator_factory import DEFAULT_TIERS

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration settings for the i18n translator.

    Provider credentials may live in the file (``providers.<name>.api_key``)
    or in the environment (``providers.<name>.api_key_env``, by default
    ``<NAME>_API_KEY``). The router never reads either; it is handed the
    :class:`ProviderConfig` list built here.
    """

    DEFAULT_CONFIG = {
        'providers': {
            'systran': {
                'enabled': True,
                'tier': 1,
                'api_key': '',
                'api_key_env': 'SYSTRAN_API_KEY',
                'batch_size': 50,
                'rate_limit_per_sec': 100,
                'burst': 100,
                'timeout': 30,
                'max_retries': 3,
            },
            'deepl': {
                'enabled': True,
                'tier': 2,
                'api_key': '',
                'api_key_env': 'DEEPL_API_KEY',
                'batch_size': 50,
                'rate_limit_per_sec': 10,
                'burst': 10,
                'timeout': 30,
                'max_retries': 3,
            },
            'google': {
                'enabled': True,
                'tier': 3,
                'api_key': '',
                'api_key_env': 'GOOGLE_API_KEY',
                'batch_size': 100,
                'rate_limit_per_sec': 100,
                'burst': 100,
                'timeout': 30,
                'max_retries': 3,
            },
            'openai': {
                'enabled': True,
                'tier': 4,
                'api_key': '',
                'api_key_env': 'OPENAI_API_KEY',
                'batch_size': 15,
                'rate_limit_per_sec': 5,
                'burst': 5,
                'timeout': 60,
                'max_retries': 3,
                'options': {'model': 'gpt-4o-mini'},
            },
            'gemini': {
                'enabled': False,
                'tier': 4,
                'api_key': '',
                'api_key_env': 'GEMINI_API_KEY',
                'batch_size': 15,
                'rate_limit_per_sec': 5,
                'burst': 5,
                'timeout': 60,
                'max_retries': 3,
                'options': {'model': 'gemini-2.0-flash'},
            },
        },
        'cache': {
            'capacity': 10000,
            'ttl': 7 * 24 * 60 * 60,
            'path': None,
        },
        'router': {
            'language_preferences': None,
            'skip_on_missing_key': True,
        },
        'languages': {
            'source': 'en',
            'targets': [],
        },
    }

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, uses default location.
        """
        if config_path is None:
            self.config_dir = Path.home() / '.config' / 'i18n-translator'
            self.config_path = self.config_dir / 'config.json'
        else:
            self.config_path = Path(config_path)
            self.config_dir = self.config_path.parent

        # Load or create config
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or create default if not exists."""
        try:
            if self.config_path.exists():
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config = json.load(f)
                return self._merge_with_defaults(config)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")

        # Return default config if loading fails
        return copy.deepcopy(self.DEFAULT_CONFIG)

    def _merge_with_defaults(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Merge a config dictionary with default values."""
        result = copy.deepcopy(self.DEFAULT_CONFIG)

        def merge(dest: Dict[str, Any], source: Dict[str, Any]) -> None:
            for key, value in source.items():
                if key in dest and isinstance(dest[key], dict) and isinstance(value, dict):
                    merge(dest[key], value)
                else:
                    dest[key] = value

        merge(result, config)
        return result

    def save(self) -> bool:
        """Save the current configuration to file.

        Returns:
            bool: True if save was successful, False otherwise
        """
        temp_path = self.config_path.with_suffix('.tmp')
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)

            # Write to a temporary file first
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(self._config, f, indent=2, ensure_ascii=False)

            # Replace the old config file atomically
            temp_path.replace(self.config_path)
            return True
        except (OSError, TypeError) as e:
            logger.error(f"Failed to save config to {self.config_path}: {e}")
            if temp_path.exists():
                temp_path.unlink()
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot notation key.

        Args:
            key: Dot-notation key (e.g., 'providers.deepl.batch_size')
            default: Default value if key is not found

        Returns:
            The configuration value or default if not found
        """
        try:
            parts = key.split('.')
            value = self._config
            for part in parts:
                value = value[part]
            return value
        except (KeyError, AttributeError, TypeError):
            return default

    def set(self, key: str, value: Any, save: bool = True) -> bool:
        """Set a configuration value by dot notation key.

        Args:
            key: Dot-notation key (e.g., 'providers.deepl.enabled')
            value: Value to set
            save: Whether to save the configuration after updating

        Returns:
            bool: True if the update was successful, False otherwise
        """
        parts = key.split('.')
        current = self._config

        # Navigate to the parent of the target key
        for part in parts[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = value

        if save:
            return self.save()
        return True

    def update(self, updates: Dict[str, Any], save: bool = True) -> bool:
        """Update multiple configuration values at once.

        Args:
            updates: Dictionary of key-value pairs to update
            save: Whether to save the configuration after updating

        Returns:
            bool: True if all updates were successful, False otherwise
        """
        for key, value in updates.items():
            self.set(key, value, save=False)

        if save:
            return self.save()
        return True

    def provider_configs(self, environ: Optional[Mapping[str, str]] = None) -> List[ProviderConfig]:
        """Build the provider list for a router, ordered by tier.

        Args:
            environ: Environment to read API keys from, ``os.environ`` by default

        Raises:
            ConfigurationError: If a provider block holds invalid values
        """
        environ = os.environ if environ is None else environ
        skip_missing = self.get('router.skip_on_missing_key', True)
        configs = []

        for name, block in self.get('providers', {}).items():
            if not block.get('enabled', True):
                logger.debug(f"Provider {name} is disabled")
                continue

            options = dict(block.get('options') or {})
            key_env = block.get('api_key_env') or f"{name.upper()}_API_KEY"
            api_key = block.get('api_key') or environ.get(key_env)
            if not api_key and skip_missing and not options.get('use_default_credentials'):
                logger.info(f"Skipping provider {name}: no API key in config or ${key_env}")
                continue

            try:
                configs.append(ProviderConfig(
                    name=name,
                    tier=block.get('tier', DEFAULT_TIERS.get(name, 4)),
                    api_key=api_key or None,
                    max_retries=int(block.get('max_retries', 3)),
                    request_timeout=float(block.get('timeout', 30)),
                    batch_size_limit=int(block.get('batch_size', 50)),
                    rate_limit=RateLimit(
                        requests_per_second=float(block.get('rate_limit_per_sec', 10)),
                        burst=int(block.get('burst', block.get('rate_limit_per_sec', 10))),
                        acquire_timeout=float(block.get('acquire_timeout', 10)),
                    ),
                    base_backoff=float(block.get('base_backoff', 1.0)),
                    max_backoff=float(block.get('max_backoff', 30.0)),
                    backoff_multiplier=float(block.get('backoff_multiplier', 2.0)),
                    jitter=float(block.get('jitter', 0.0)),
                    preferred_languages=frozenset(block.get('preferred_languages') or ()),
                    options=options,
                ))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid settings for provider {name}: {e}") from e

        return sorted(configs, key=lambda config: config.tier)

    def cache_settings(self) -> Dict[str, Any]:
        """Capacity, TTL (seconds) and optional file path of the translation cache."""
        return {
            'capacity': int(self.get('cache.capacity', 10000)),
            'ttl': self.get('cache.ttl'),
            'path': self.get('cache.path'),
        }

    def language_preferences(self) -> Optional[Dict[str, str]]:
        """Target language -> provider overrides, or None for the built-in table."""
        preferences = self.get('router.language_preferences')
        return dict(preferences) if preferences else None
