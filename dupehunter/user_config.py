"""
Per-user settings for dupehunter.

Each setting is resolved from the first source that defines it:

1. Environment variable (DUPEHUNTER_DISTANCE, DUPEHUNTER_WORKERS,
   DUPEHUNTER_DATA_DIR)
2. ``config.json`` in the config directory (``~/.dupehunter`` or
   DUPEHUNTER_CONFIG_DIR)
3. Built-in defaults from config.py

Command-line flags override all of these.

Example config.json:
{
    "default_distance": 12,
    "default_workers": 25,
    "data_dir": null
}
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

from .config import DATA_DIR, DEFAULT_DISTANCE, DEFAULT_WORKERS

logger = logging.getLogger(__name__)


# name -> (environment variable, default, converter)
SETTINGS: dict[str, tuple[str, Any, Callable[[Any], Any]]] = {
    'default_distance': ('DUPEHUNTER_DISTANCE', DEFAULT_DISTANCE, int),
    'default_workers': ('DUPEHUNTER_WORKERS', DEFAULT_WORKERS, int),
    'data_dir': ('DUPEHUNTER_DATA_DIR', None, str),
}


class UserConfig:
    """
    Process-wide settings resolver.

    The config file is read lazily on first access and cached until
    reload().
    """

    _instance: Optional['UserConfig'] = None
    _file_data: Optional[dict] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config_dir(self) -> Path:
        override = os.getenv('DUPEHUNTER_CONFIG_DIR')
        return Path(override) if override else Path.home() / '.dupehunter'

    @property
    def config_file_path(self) -> Path:
        return self.config_dir / 'config.json'

    def reload(self) -> None:
        """Forget the cached config file contents."""
        self._file_data = None

    def _file_settings(self) -> dict:
        if self._file_data is None:
            self._file_data = self._read_file()
        return self._file_data

    def _read_file(self) -> dict:
        path = self.config_file_path
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {path}: expected a JSON object")
            return {}
        logger.debug(f"Loaded settings from {path}")
        return data

    def resolve(self, name: str) -> Any:
        """
        Resolve one setting from environment, config file or default.

        A value that cannot be converted is reported and replaced with the
        default.

        Raises:
            KeyError: if name is not a known setting
        """
        env_var, default, convert = SETTINGS[name]

        raw = os.getenv(env_var)
        source = env_var
        if raw is None:
            raw = self._file_settings().get(name)
            source = str(self.config_file_path)
        if raw is None:
            return default

        try:
            return convert(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid {name} {raw!r} from {source}, using {default!r}")
            return default

    @property
    def default_distance(self) -> int:
        """Duplicate threshold; pairs strictly below it are flagged."""
        return self.resolve('default_distance')

    @property
    def default_workers(self) -> int:
        return self.resolve('default_workers')

    @property
    def data_dir(self) -> str:
        """Directory holding the fingerprint store."""
        custom = self.resolve('data_dir')
        return os.path.expanduser(custom) if custom else DATA_DIR

    def as_dict(self) -> dict:
        """Effective value of every setting."""
        return {name: getattr(self, name) for name in SETTINGS}

    def create_example_config(self) -> bool:
        """
        Write a config.json holding the built-in defaults.

        Returns:
            True on success, False if the file could not be written
        """
        example = {name: default for name, (_, default, _) in SETTINGS.items()}
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            self.config_file_path.write_text(json.dumps(example, indent=2), encoding='utf-8')
        except OSError as e:
            logger.error(f"Could not write {self.config_file_path}: {e}")
            return False
        logger.info(f"Wrote example config to {self.config_file_path}")
        return True


_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Get the process-wide UserConfig."""
    return _user_config
