"""
Persistent settings for the command line tool.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Optional


@dataclass
class SyncSettings:
    """Defaults applied when a flag is not given on the command line."""
    pattern: str = "*"
    recursive: bool = True
    respect_date: bool = True
    case_sensitive: bool = False
    max_workers: Optional[int] = None

    # Listing cache
    use_cache: bool = True
    cache_dir: str = ""

    # Logging
    log_level: str = "INFO"
    log_file: str = ""


class SettingsManager:
    """Manager for loading/saving settings."""

    def __init__(self, settings_path: Optional[Path | str] = None):
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self._settings: Optional[SyncSettings] = None

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'ContentSync' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'contentsync' / 'settings.json'

    @property
    def settings(self) -> SyncSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> SyncSettings:
        """Load settings from disk. Missing or unreadable files give defaults."""
        if not self.settings_path.exists():
            return SyncSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning(f"SettingsManager - Could not read {self.settings_path}: {e}")
            return SyncSettings()

        if not isinstance(data, dict):
            logging.warning(f"SettingsManager - Ignoring malformed settings in {self.settings_path}")
            return SyncSettings()

        return self._from_dict(data)

    def save(self, settings: Optional[SyncSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(settings), f, indent=2)
        except OSError as e:
            logging.error(f"SettingsManager - Could not save {self.settings_path}: {e}")
            return False

        self._settings = settings
        return True

    def reset(self) -> SyncSettings:
        """Reset to default settings."""
        self._settings = SyncSettings()
        self.save()
        return self._settings

    def _from_dict(self, data: dict) -> SyncSettings:
        """Convert a dictionary to settings, keeping defaults for bad values."""
        defaults = SyncSettings()
        values: dict[str, Any] = {}

        for f in fields(SyncSettings):
            if f.name not in data:
                continue
            value = data[f.name]
            default = getattr(defaults, f.name)

            if f.name == 'max_workers':
                if value is None or (isinstance(value, int) and not isinstance(value, bool) and value > 0):
                    values[f.name] = value
                else:
                    logging.warning(f"SettingsManager - Ignoring invalid max_workers: {value!r}")
            elif isinstance(value, type(default)):
                values[f.name] = value
            else:
                logging.warning(f"SettingsManager - Ignoring invalid {f.name}: {value!r}")

        return SyncSettings(**values)
