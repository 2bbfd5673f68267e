"""Persistent settings stored in an INI file next to the working directory."""

import configparser
import logging
import os
from pathlib import Path
from typing import Optional, Union

from .config import CONFIG_SECTION, SAVE_FOLDER_KEY, SETTINGS_FILE_NAME
from .exceptions import SettingsError


def default_download_directory() -> Path:
    """Return the user's downloads directory.

    Honours ``XDG_DOWNLOAD_DIR`` when it is set, otherwise ``~/Downloads``.
    """
    xdg_dir = os.getenv('XDG_DOWNLOAD_DIR')
    if xdg_dir:
        return Path(os.path.expandvars(xdg_dir)).expanduser().resolve()
    return (Path.home() / 'Downloads').resolve()


class SettingsStore:
    """Reads and writes the ``SaveFolder`` setting of the ``Main`` section."""

    def __init__(self, settings_file: Union[str, Path] = SETTINGS_FILE_NAME,
                 logger: Optional[logging.Logger] = None) -> None:
        self.settings_file = Path(settings_file).resolve()
        self.logger = logger or logging.getLogger(__name__)
        self._parser = configparser.ConfigParser(interpolation=None)
        # Keep key case as written, e.g. "SaveFolder"
        self._parser.optionxform = str
        self._load()

    def _load(self) -> None:
        if not self.settings_file.exists():
            self.logger.debug(f"Creating settings file: {self.settings_file}")
            self._save()

        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                self._parser.read_file(f)
        except (OSError, configparser.Error) as e:
            raise SettingsError(f"Failed to read settings from {self.settings_file}: {e}")

        if not self._parser.has_section(CONFIG_SECTION):
            self._parser.add_section(CONFIG_SECTION)

    def _save(self) -> None:
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, 'w', encoding='utf-8') as f:
                self._parser.write(f)
        except OSError as e:
            raise SettingsError(f"Failed to write settings to {self.settings_file}: {e}")

    def get(self, key: str) -> Optional[str]:
        return self._parser.get(CONFIG_SECTION, key, fallback=None)

    def set(self, key: str, value: str) -> None:
        """Store a value and write the file immediately."""
        self._parser.set(CONFIG_SECTION, key, value)
        self._save()

    def load_save_folder(self) -> Path:
        """Return the configured output directory.

        When ``SaveFolder`` is missing or empty it is defaulted to the
        downloads directory and persisted back right away.

        Returns:
            Absolute path of the output directory.

        Raises:
            SettingsError: If the settings file cannot be written.
        """
        save_folder = self.get(SAVE_FOLDER_KEY)
        if not save_folder:
            default_folder = default_download_directory()
            self.logger.info(f"No save folder configured, using {default_folder}")
            self.set(SAVE_FOLDER_KEY, str(default_folder))
            return default_folder

        return Path(save_folder).expanduser().resolve()

    def set_save_folder(self, folder: Union[str, Path]) -> Path:
        resolved = Path(folder).expanduser().resolve()
        self.set(SAVE_FOLDER_KEY, str(resolved))
        return resolved
