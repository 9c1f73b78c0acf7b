"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlparse

import yaml

from models import ConfigurationError

DEFAULT_WRAPPER_TAGS = ('Fragment', 'Prose', 'Layout')

DEFAULTS: Dict[str, Any] = {
    'sources': {
        'authors': '../datum.net/src/content/authors',
        'categories': '../datum.net/src/content/categories',
        'posts': '../datum.net/src/content/blog',
    },
    'data': {
        'json_path': 'data/data.json',
        'uploads_dir': 'data/uploads',
        'uploads_url_prefix': '/uploads',
    },
    'strapi': {
        'url': None,
        'api_token': None,
        'request_timeout': 30,
    },
    'content': {
        'wrapper_tags': list(DEFAULT_WRAPPER_TAGS),
        'progress_bars': False,
    },
}

# Environment variable -> dotted config path
ENV_KEYS = {
    'AUTHORS_SOURCE': 'sources.authors',
    'CATEGORIES_SOURCE': 'sources.categories',
    'POSTS_SOURCE': 'sources.posts',
    'DATA_JSON': 'data.json_path',
    'UPLOADS_DIR': 'data.uploads_dir',
    'UPLOADS_URL_PREFIX': 'data.uploads_url_prefix',
    'STRAPI_URL': 'strapi.url',
    'STRAPI_API_TOKEN': 'strapi.api_token',
}


@dataclass(frozen=True)
class SyncConfig:
    """Resolved run configuration, built once at startup and passed to the drivers."""

    authors_source: Path
    categories_source: Path
    posts_source: Path
    data_json: Path
    uploads_dir: Path
    uploads_url_prefix: str = '/uploads'
    strapi_url: Optional[str] = None
    strapi_api_token: Optional[str] = None
    request_timeout: float = 30
    wrapper_tags: Tuple[str, ...] = DEFAULT_WRAPPER_TAGS
    progress_bars: bool = False
    extensions: Tuple[str, ...] = field(default=('.md', '.mdx'))

    def require_strapi(self) -> None:
        """Check the settings the Strapi migration cannot run without.

        Raises:
            ConfigurationError: If the URL or token is missing or the URL is invalid
        """
        missing = [
            name for name, value in (
                ('STRAPI_URL', self.strapi_url),
                ('STRAPI_API_TOKEN', self.strapi_api_token)
            ) if not value or '${' in str(value)
        ]
        if missing:
            raise ConfigurationError(f"Missing required env vars: {', '.join(missing)}")
        ConfigLoader._validate_url(self.strapi_url, 'STRAPI_URL')

    def to_dict(self) -> Dict[str, Any]:
        """Nested view used for logging."""
        return {
            'sources': {
                'authors': str(self.authors_source),
                'categories': str(self.categories_source),
                'posts': str(self.posts_source),
            },
            'data': {
                'json_path': str(self.data_json),
                'uploads_dir': str(self.uploads_dir),
                'uploads_url_prefix': self.uploads_url_prefix,
            },
            'strapi': {
                'url': self.strapi_url,
                'api_token': self.strapi_api_token,
                'request_timeout': self.request_timeout,
            },
        }


class ConfigLoader:
    """Handles loading and validation of configuration."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            return {}

        if not isinstance(config_data, dict):
            raise ConfigurationError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @classmethod
    def build(
        cls,
        file_config: Optional[Dict[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> SyncConfig:
        """
        Merge defaults, config file, environment and CLI overrides into a SyncConfig.

        Later sources win: defaults < file < environment < overrides.

        Args:
            file_config: Parsed YAML configuration
            environ: Environment mapping (defaults to os.environ)
            overrides: Dotted-path values from the command line; None values are ignored

        Returns:
            Immutable SyncConfig
        """
        merged = cls._deep_merge(copy.deepcopy(DEFAULTS), file_config or {})

        environ = os.environ if environ is None else environ
        for env_name, path in ENV_KEYS.items():
            value = environ.get(env_name)
            if value:
                set_nested(merged, path, value)

        for path, value in (overrides or {}).items():
            if value is not None:
                set_nested(merged, path, value)

        cls.validate(merged)

        strapi_url = get_nested(merged, 'strapi.url')
        if strapi_url:
            strapi_url = str(strapi_url).rstrip('/')

        return SyncConfig(
            authors_source=Path(get_nested(merged, 'sources.authors')),
            categories_source=Path(get_nested(merged, 'sources.categories')),
            posts_source=Path(get_nested(merged, 'sources.posts')),
            data_json=Path(get_nested(merged, 'data.json_path')),
            uploads_dir=Path(get_nested(merged, 'data.uploads_dir')),
            uploads_url_prefix=str(get_nested(merged, 'data.uploads_url_prefix', '/uploads')).rstrip('/'),
            strapi_url=strapi_url or None,
            strapi_api_token=get_nested(merged, 'strapi.api_token') or None,
            request_timeout=get_nested(merged, 'strapi.request_timeout', 30),
            wrapper_tags=tuple(get_nested(merged, 'content.wrapper_tags') or ()),
            progress_bars=bool(get_nested(merged, 'content.progress_bars', False)),
        )

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration values that do not depend on the selected command.

        Raises:
            ConfigurationError: If validation fails
        """
        for path in ('sources.authors', 'sources.categories', 'sources.posts',
                     'data.json_path', 'data.uploads_dir'):
            cls._validate_required_field(config, path)

        timeout = get_nested(config, 'strapi.request_timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationError("strapi.request_timeout must be a positive number")

        wrapper_tags = get_nested(config, 'content.wrapper_tags', [])
        if not isinstance(wrapper_tags, (list, tuple)):
            raise ConfigurationError("content.wrapper_tags must be a list of tag names")

        data_json = get_nested(config, 'data.json_path')
        if os.path.isdir(str(data_json)):
            raise ConfigurationError(f"data.json_path '{data_json}' is a directory")

    @classmethod
    def _deep_merge(cls, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        for key, value in update.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                cls._deep_merge(base[key], value)
            else:
                base[key] = value
        return base

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field_path: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config, field_path)
        if value is None or value == '':
            raise ConfigurationError(f"Missing required configuration: {field_path}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ConfigurationError(
                f"Configuration field '{field_path}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https'):
            raise ConfigurationError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ConfigurationError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "strapi.url")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    value = config

    for key in path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def set_nested(config: dict, path: str, value: Any) -> None:
    """Set a nested configuration value using dot notation, creating sections."""
    keys = path.split('.')
    section = config
    for key in keys[:-1]:
        if not isinstance(section.get(key), dict):
            section[key] = {}
        section = section[key]
    section[keys[-1]] = value


__all__ = ['ConfigLoader', 'SyncConfig', 'get_nested', 'set_nested']
