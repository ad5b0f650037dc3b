#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("depmirror")

DEFAULT_CONFIG_FILE = "medusa.json"
ENV_PREFIX = "DEPMIRROR_"


class NoRepositoriesError(ConfigError):
    """The configuration has no (or an empty) repositories section."""
    def __init__(self, message: str = "No repositories defined/configured."):
        super().__init__(message)


def get_config_path(path: Optional[str] = None) -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. Explicit path (--config)
    2. DEPMIRROR_CONFIG environment variable
    3. medusa.json in the current directory
    """
    if path:
        return Path(path).expanduser()

    if 'DEPMIRROR_CONFIG' in os.environ:
        return Path(os.environ['DEPMIRROR_CONFIG']).expanduser()

    return Path.cwd() / DEFAULT_CONFIG_FILE


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "repodir": "",
        "require": [],
        "repositories": [],
        "satisconfig": "",
        "satisurl": "",
        "registry_url": "https://packagist.org",
        "workers": 4,
        "timeouts": {
            "http": 30,
            "git": 3600,
        },
    }


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    # Default to JSON format
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file.

    Raises:
        ConfigError: the file is missing or cannot be parsed
    """
    config_path = get_config_path(path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file {config_path} does not exist")

    try:
        file_config = _read_config_file(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if not isinstance(file_config, dict):
        raise ConfigError(f"Configuration in {config_path} must be a mapping")

    logger.debug(f"Using configuration file {config_path}")

    # Merge file config with defaults
    config = merge_configs(get_default_config(), file_config)

    # Apply environment variable overrides
    return apply_env_overrides(config)


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
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: DEPMIRROR_SECTION_KEY
    For example: DEPMIRROR_TIMEOUTS_HTTP=60 or DEPMIRROR_REPODIR=/srv/git
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == 'DEPMIRROR_CONFIG':
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if not matched_key:
                break

            # If we are at the end of the env var, we have found the key to set
            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            # Otherwise, we descend into the dictionary
            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


@dataclass
class MirrorConfig:
    """
    Typed view of the mirror configuration.

    Built once at startup and handed to the controllers. The engines never
    see the raw configuration dictionary.
    """
    repodir: str
    require: List[str] = field(default_factory=list)
    repositories: List[Dict[str, str]] = field(default_factory=list)
    satisconfig: str = ""
    satisurl: str = ""
    registry_url: str = "https://packagist.org"
    workers: int = 4
    http_timeout: float = 30
    git_timeout: float = 3600
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MirrorConfig':
        """
        Validate and convert a loaded configuration.

        Raises:
            ConfigError: a required key is missing or has the wrong shape
        """
        repodir = data.get('repodir')
        if not repodir or not isinstance(repodir, str):
            raise ConfigError("Configuration key 'repodir' is required")

        require = data.get('require') or []
        if not isinstance(require, list) or not all(isinstance(r, str) for r in require):
            raise ConfigError("Configuration key 'require' must be a list of package names")

        repositories = data.get('repositories') or []
        if not isinstance(repositories, list) or not all(isinstance(r, dict) for r in repositories):
            raise ConfigError("Configuration key 'repositories' must be a list of {name, url} entries")

        try:
            workers = int(data.get('workers', 4))
        except (TypeError, ValueError):
            raise ConfigError(f"Configuration key 'workers' must be an integer, got {data.get('workers')!r}")
        if workers < 1:
            raise ConfigError(f"Configuration key 'workers' must be at least 1, got {workers}")

        timeouts = data.get('timeouts') or {}

        return cls(
            repodir=os.path.expanduser(repodir),
            require=list(require),
            repositories=list(repositories),
            satisconfig=data.get('satisconfig') or "",
            satisurl=(data.get('satisurl') or "").rstrip('/'),
            registry_url=data.get('registry_url') or "https://packagist.org",
            workers=workers,
            http_timeout=float(timeouts.get('http', 30)),
            git_timeout=float(timeouts.get('git', 3600)),
            raw=data,
        )

    @classmethod
    def load(cls, path: Optional[str] = None) -> 'MirrorConfig':
        return cls.from_dict(load_config(path))

    def get_string(self, key: str) -> str:
        """Return a top level key as string, empty if missing."""
        value = self.raw.get(key)
        return "" if value is None else str(value)

    def get_require(self) -> List[str]:
        return list(self.require)

    def get_names_of_repositories(self) -> List[str]:
        """
        Names of all explicitly configured repositories.

        Raises:
            NoRepositoriesError: the repositories section is empty
        """
        names = [r['name'] for r in self.repositories if r.get('name')]
        if not names:
            raise NoRepositoriesError()
        return names

    def get_repository_url_of_package(self, name: str) -> Optional[str]:
        """Return the configured repository URL of package name, if any."""
        for entry in self.repositories:
            if entry.get('name') == name and entry.get('url'):
                return entry['url']
        return None

    def mirror_path(self, name: str) -> str:
        """On-disk location of the mirror of package name."""
        return os.path.join(self.repodir, f"{name}.git")

    def local_url_for(self, name: str) -> str:
        """
        URL under which the mirror of package name is published.

        Uses satisurl when configured, a file:// URL of the mirror otherwise.
        """
        if self.satisurl:
            return f"{self.satisurl}/{name}.git"
        path = os.path.abspath(os.path.normpath(self.mirror_path(name)))
        return "file:///" + path.lstrip('/')
