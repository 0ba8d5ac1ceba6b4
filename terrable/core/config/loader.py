"""
Configuration loader — reads terrable.yml into a Settings model.

Resolution order for the file:
    --config path  >  TERRABLE_CONFIG env var  >  ~/.terrable.yml  >  none

Environment overrides (TERRABLE_HOME, TERRABLE_BASE_URL,
TERRABLE_TIMEOUT) are applied on top of the file; an explicit
``root`` argument (the CLI's --root) wins over everything.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from terrable.core.errors import ConfigError
from terrable.core.models.settings import Settings

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TERRABLE_CONFIG"
DEFAULT_CONFIG_FILE = ".terrable.yml"

_ENV_OVERRIDES = {
    "TERRABLE_HOME": "root",
    "TERRABLE_BASE_URL": "base_url",
    "TERRABLE_TIMEOUT": "timeout",
}


def find_config_file(env: Mapping[str, str] | None = None) -> Path | None:
    """Locate the config file from the environment or the home directory.

    Returns:
        Path to the config file, or None if there is nothing to load.
    """
    env = os.environ if env is None else env
    explicit = env.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit).expanduser()

    candidate = Path.home() / DEFAULT_CONFIG_FILE
    if candidate.is_file():
        return candidate
    return None


def read_config(path: Path) -> dict:
    """Read a YAML config file into a plain mapping.

    Keys may be flat or nested under a top-level ``terrable:`` key.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading terrable config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    section = data.get("terrable", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected 'terrable' to be a mapping in {path}")
    return dict(section)


def load_settings(
    path: Path | None = None,
    *,
    root: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Build validated Settings from file, environment and overrides.

    Args:
        path: Explicit config file.  If None, ``find_config_file()`` is used.
        root: Explicit terrable root, overriding file and environment.
        env: Environment mapping (default: ``os.environ``).

    Raises:
        ConfigError: If the file or the resulting settings are invalid.
    """
    env = os.environ if env is None else env
    if path is None:
        path = find_config_file(env)

    data = read_config(path) if path is not None else {}

    for var, key in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[key] = value
    if root is not None:
        data["root"] = root

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid terrable configuration: {e}") from e

    logger.debug(
        "Settings: root=%s base_url=%s timeout=%ss",
        settings.root, settings.base_url, settings.timeout,
    )
    return settings
