"""
Path resolution for loadout configuration.

Config file lookup order:
1. $LOADOUT_CONFIG (if set, ~ expanded)
2. $XDG_CONFIG_HOME/loadout/loadout.toml (if that file exists)
3. ~/.config/loadout/loadout.toml
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from loadout.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "loadout"
CONFIG_FILE_NAME = "loadout.toml"


def get_home(env: Mapping[str, str] | None = None) -> Path:
    """
    Get the user's home directory from $HOME.

    Raises:
        ConfigError: If HOME is not set.
    """
    env = os.environ if env is None else env
    home = env.get("HOME")
    if not home:
        raise ConfigError("HOME environment variable not set")
    return Path(home)


def expand_tilde(path: str | Path, env: Mapping[str, str] | None = None) -> Path:
    """Expand a leading ``~`` or ``~/`` to $HOME. Other paths are returned unchanged."""
    text = str(path)
    if text == "~":
        return get_home(env)
    if text.startswith("~/"):
        return get_home(env) / text[2:]
    return Path(text)


def resolve_config_path(env: Mapping[str, str] | None = None) -> Path:
    """
    Locate loadout.toml.

    Returns:
        Path: The config path to load (may not exist for the default location)
    """
    env = os.environ if env is None else env

    explicit = env.get("LOADOUT_CONFIG")
    if explicit:
        path = expand_tilde(explicit, env)
        logger.debug("Config from $LOADOUT_CONFIG: %s", path)
        return path

    xdg_home = env.get("XDG_CONFIG_HOME")
    if xdg_home:
        path = Path(xdg_home) / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        if path.exists():
            logger.debug("Config from $XDG_CONFIG_HOME: %s", path)
            return path

    path = get_home(env) / ".config" / CONFIG_DIR_NAME / CONFIG_FILE_NAME
    logger.debug("Config from default location: %s", path)
    return path
