"""
Mirror configuration.

Settings are read from an optional YAML file and overridden by command-line
flags. The file uses upper-case keys:

    TOKEN_FILE: ~/.config/assetmirror/token
    GITHUB_OWNER: chronos-tachyon
    GITHUB_REPO: github-asset-mirror
    OUTPUT_DIR: /srv/mirror
    LOG_LEVEL: INFO
    LOG_DIR: /var/log/assetmirror
    GITHUB_API_BASE: https://api.github.com
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import platformdirs
import yaml

from assetmirror.constants import (
    CONFIG_APP_NAME,
    CONFIG_FILE_NAME,
    GITHUB_API_BASE,
    INDEX_FILE_NAME,
)
from assetmirror.exceptions import ConfigurationError
from assetmirror.log_utils import logger

# Config key -> MirrorConfig attribute
CONFIG_KEYS: Dict[str, str] = {
    "TOKEN_FILE": "token_file",
    "GITHUB_OWNER": "github_owner",
    "GITHUB_REPO": "github_repo",
    "OUTPUT_DIR": "output_dir",
    "LOG_LEVEL": "log_level",
    "LOG_DIR": "log_dir",
    "GITHUB_API_BASE": "github_api_base",
}

# Attribute -> flag named in error messages
REQUIRED_SETTINGS: Dict[str, str] = {
    "token_file": "-T / --token-file",
    "github_owner": "-O / --github-owner",
    "github_repo": "-R / --github-repo",
    "output_dir": "-d / --output-dir",
}


@dataclass
class MirrorConfig:
    token_file: str = ""
    github_owner: str = ""
    github_repo: str = ""
    output_dir: str = ""
    log_level: str = ""
    log_dir: str = ""
    github_api_base: str = GITHUB_API_BASE

    def merged(self, overrides: Dict[str, Any]) -> "MirrorConfig":
        """Return a copy with every non-empty value in `overrides` applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for name, value in overrides.items():
            if name not in values:
                raise ConfigurationError(f"unknown setting {name!r}")
            if value:
                values[name] = value
        return MirrorConfig(**values)

    def validate(self) -> None:
        """
        Check that every required setting has a value.

        Raises:
            ConfigurationError: For the first missing setting, naming its flag.
        """
        for name, flag in REQUIRED_SETTINGS.items():
            if not getattr(self, name):
                raise ConfigurationError(f"missing required flag {flag}")

    @property
    def index_path(self) -> str:
        return os.path.join(self.output_dir, INDEX_FILE_NAME)


def get_config_dir() -> str:
    return platformdirs.user_config_dir(CONFIG_APP_NAME)


def get_default_config_path() -> str:
    return os.path.join(get_config_dir(), CONFIG_FILE_NAME)


def config_from_dict(data: Dict[str, Any]) -> MirrorConfig:
    """
    Build a MirrorConfig from a parsed config document.

    Unknown keys are ignored with a warning; values must be scalars.
    """
    values: Dict[str, str] = {}
    for key, value in data.items():
        attr = CONFIG_KEYS.get(str(key).upper())
        if attr is None:
            logger.warning("Ignoring unknown configuration key %r", key)
            continue
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            raise ConfigurationError(
                f"configuration key {key!r} must be a single value",
                details=f"got {type(value).__name__}",
            )
        text = str(value)
        if attr.endswith(("_file", "_dir")):
            text = os.path.expanduser(text)
        values[attr] = text
    return MirrorConfig().merged(values)


def load_config_file(path: Optional[str] = None) -> MirrorConfig:
    """
    Load settings from a YAML config file.

    Parameters:
        path (Optional[str]): Explicit config file, which must exist. When omitted
            the platformdirs location is used if a file is present there.

    Returns:
        MirrorConfig: The loaded settings, or defaults when no file applies.

    Raises:
        ConfigurationError: If the file cannot be read or is not a YAML mapping.
    """
    if path is None:
        path = get_default_config_path()
        if not os.path.exists(path):
            logger.debug("No configuration file at %s", path)
            return MirrorConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(
            f"failed to read configuration file {path}", details=str(e)
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"failed to parse configuration file {path}", details=str(e)
        ) from e

    if data is None:
        return MirrorConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"configuration file {path} must contain a mapping",
            details=f"got {type(data).__name__}",
        )

    logger.debug("Loaded configuration from %s", path)
    return config_from_dict(data)


def read_token(token_file: str) -> str:
    """
    Read the GitHub access token from `token_file`, stripping surrounding whitespace.

    Raises:
        ConfigurationError: If the file cannot be read or is empty.
    """
    try:
        with open(token_file, "r", encoding="utf-8") as f:
            token = f.read().strip()
    except OSError as e:
        raise ConfigurationError(
            "failed to read GitHub access token from file",
            details=f"{token_file}: {e}",
        ) from e
    if not token:
        raise ConfigurationError(
            "GitHub access token file is empty", details=token_file
        )
    return token
