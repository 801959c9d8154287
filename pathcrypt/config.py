"""
PathCrypt - Config Store

Saves and loads small JSON config files in the per-user config directory:

    <user config dir>/pathcrypt/<app short name>/<config name>.cfg

File format:

    {
     "data": { ... }
    }
"""

import json
import logging
import os
import sys
from typing import Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_BASE_DIR = "pathcrypt"
CONFIG_SUFFIX = ".cfg"


def user_config_dir() -> str:
    """Return the OS config directory for the current user."""
    if sys.platform == "win32":
        path = os.environ.get("APPDATA")
        if not path:
            raise ConfigError("%APPDATA% is not defined")
        return path
    if sys.platform == "darwin":
        return os.path.join(os.path.expanduser("~"), "Library", "Application Support")
    path = os.environ.get("XDG_CONFIG_HOME")
    if path and os.path.isabs(path):
        return path
    return os.path.join(os.path.expanduser("~"), ".config")


class ConfigStore:
    """
    One named config file of one application.

    Usage:
        store = ConfigStore("myapp", "keys")
        store.save({"mnemonic": "..."})
        data = store.load()

    Args:
        app_short_name: Application folder name
        config_name: File name without suffix
        base_dir: Directory used instead of the user config directory
    """

    def __init__(self, app_short_name: str, config_name: str, base_dir: Optional[str] = None):
        self.app_short_name = app_short_name
        self.config_name = config_name
        self.base_dir = base_dir

    @property
    def path(self) -> str:
        base = self.base_dir or user_config_dir()
        return os.path.join(base, CONFIG_BASE_DIR, self.app_short_name,
                            self.config_name + CONFIG_SUFFIX)

    def save(self, data: dict) -> None:
        """Write ``data`` to the config file, creating folders as needed."""
        path = self.path
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"data": data}, f, indent=1)
        logger.debug("saved config %s", path)

    def load(self) -> dict:
        """
        Read the config file.

        Raises:
            FileNotFoundError: Config was never saved
            ConfigError: File content is not a valid config
        """
        path = self.path
        with open(path, "r", encoding="utf-8") as f:
            try:
                cfg = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"invalid config file {path}: {e}") from e
        if not isinstance(cfg, dict) or not isinstance(cfg.get("data"), dict):
            raise ConfigError(f"invalid config file {path}: no data object")
        logger.debug("loaded config %s", path)
        return cfg["data"]
