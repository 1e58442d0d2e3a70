#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import logging
import sys

import toml
import yaml

from .exit_codes import ConfigError
from .searcher import MAX_RESULTS

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_dir() -> Path:
    """Directory holding the config file and the default index database."""
    return Path.home() / '.pawndex'


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. PAWNDEX_CONFIG environment variable
    2. ~/.pawndex/config.{json,toml,yaml,yml}
    """
    if 'PAWNDEX_CONFIG' in os.environ:
        path = Path(os.environ['PAWNDEX_CONFIG'])
        if path.exists():
            return path

    config_dir = get_config_dir()
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def _read_config_file(config_path: Path) -> dict:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration: defaults, then the config file, then environment."""
    if config_path is None:
        config_path = get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
            logger.error(f"Error loading config from {config_path}: {e}")
        else:
            if isinstance(file_config, dict):
                config = merge_configs(config, file_config)
            else:
                logger.error(f"Ignoring config {config_path}: top level is not a mapping")

    return apply_env_overrides(config)


def save_config(config: dict, config_path: Optional[Path] = None) -> Path:
    """Save configuration to file, in the format its suffix names."""
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'w') as f:
            toml.dump(config, f)
    elif suffix in ('.yaml', '.yml'):
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config() -> dict:
    """Get default configuration."""
    return {
        "github": {
            "token": "",
            "max_retries": 3,
            "base_delay_seconds": 1.0,
            "max_delay_seconds": 60.0,
            "timeout_seconds": 30.0
        },
        "search": {
            "queries": ["topic:pawn-package", "language:pawn", "topic:sa-mp"],
            "page_size": 100,
            "max_results": 1000,
            "page_delay_seconds": 1.0
        },
        "daemon": {
            "search_interval_seconds": 3600,
            "scrape_interval_seconds": 60,
            "workers": 4,
            "scrape_timeout_seconds": 10.0,
            "search_on_start": True
        },
        "database": {
            "path": ""
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s"
        }
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _parse_env_value(value: str) -> Any:
    lowered = value.lower()
    if lowered in ('true', 'yes', 'on'):
        return True
    if lowered in ('false', 'no', 'off'):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: PAWNDEX_SECTION_KEY
    For example: PAWNDEX_DAEMON_SCRAPE_INTERVAL_SECONDS=30

    A comma-separated value replaces a list setting, so
    PAWNDEX_SEARCH_QUERIES="topic:pawn-package,language:pawn" works.
    """
    env_prefix = "PAWNDEX_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                if isinstance(current_level[matched_key], list):
                    current_level[matched_key] = [v.strip() for v in value.split(',') if v.strip()]
                elif isinstance(current_level[matched_key], str):
                    current_level[matched_key] = value
                else:
                    current_level[matched_key] = _parse_env_value(value)
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # Path conflict: env var is longer but we found a non-dict value
                break

    return config


def configure_logging(config: Optional[dict] = None, level: Optional[str] = None) -> None:
    """
    Configure root logging from the ``logging`` section.

    ``level`` overrides the configured level (used by --verbose/--quiet).
    """
    section = (config or {}).get('logging', {})
    level_name = str(level or section.get('level', 'INFO')).upper()
    numeric = logging.getLevelName(level_name)
    if not isinstance(numeric, int):
        raise ConfigError(f"Unknown log level: {level_name}")

    # No-op if the root logger already has handlers; the level still applies
    logging.basicConfig(
        format=section.get('format', "%(levelname)s: %(message)s"),
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger().setLevel(numeric)


def _number(section: dict, key: str, name: str, kind=float, allow_zero: bool = False):
    value = section.get(key)
    try:
        number = kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name}.{key} must be a number, got {value!r}")
    if number < 0 or (number == 0 and not allow_zero):
        raise ConfigError(f"{name}.{key} must be positive, got {value!r}")
    return number


def daemon_settings(config: dict) -> Dict[str, Any]:
    """
    Validated keyword arguments for Daemon, Searcher and GitHubClient.

    Read once at startup; the daemon never re-reads its configuration.

    Raises:
        ConfigError: a setting is missing or out of range
    """
    daemon = config.get('daemon', {})
    search = config.get('search', {})
    github = config.get('github', {})

    queries = search.get('queries') or []
    if isinstance(queries, str):
        queries = [queries]
    if not queries or not all(isinstance(q, str) and q.strip() for q in queries):
        raise ConfigError("search.queries must be a non-empty list of query strings")

    page_size = _number(search, 'page_size', 'search', int)
    if page_size > 100:
        raise ConfigError(f"search.page_size must be at most 100, got {page_size}")
    max_results = _number(search, 'max_results', 'search', int)
    if max_results > MAX_RESULTS:
        raise ConfigError(f"search.max_results must be at most {MAX_RESULTS}, got {max_results}")

    return {
        'daemon': {
            'search_interval': _number(daemon, 'search_interval_seconds', 'daemon'),
            'scrape_interval': _number(daemon, 'scrape_interval_seconds', 'daemon'),
            'workers': _number(daemon, 'workers', 'daemon', int),
            'scrape_timeout': _number(daemon, 'scrape_timeout_seconds', 'daemon'),
            'search_on_start': bool(daemon.get('search_on_start', False)),
            'queries': tuple(q.strip() for q in queries),
        },
        'search': {
            'page_size': page_size,
            'max_results': max_results,
            'page_delay': _number(search, 'page_delay_seconds', 'search', allow_zero=True),
        },
        'github': {
            'token': github.get('token') or None,
            'max_retries': _number(github, 'max_retries', 'github', int, allow_zero=True),
            'base_delay': _number(github, 'base_delay_seconds', 'github', allow_zero=True),
            'max_delay': _number(github, 'max_delay_seconds', 'github', allow_zero=True),
            'timeout': _number(github, 'timeout_seconds', 'github'),
        },
    }
