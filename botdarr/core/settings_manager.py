"""
Centralized settings management with per-plugin namespaces.
Backed by an INI file through QSettings.
"""

from typing import Any

from PyQt6.QtCore import QSettings

# Application constants
APP_NAME = "botdarr"
DEFAULT_SETTINGS_PATH = "botdarr.ini"


class SettingsManager:
    """
    Centralized settings management with per-plugin namespaces
    and type-safe access.
    """
    def __init__(self, path: str = DEFAULT_SETTINGS_PATH):
        self.path = path
        self.qsettings = QSettings(path, QSettings.Format.IniFormat)

    def get_plugin_setting(self, plugin_name: str, key: str, default: Any = None) -> Any:
        """
        Gets a namespaced setting for a plugin (INI section = plugin name).
        Type is inferred from the default value.
        """
        return self._coerce(self.qsettings.value(f"{plugin_name}/{key}", default), default)

    def set_plugin_setting(self, plugin_name: str, key: str, value: Any):
        self.qsettings.setValue(f"{plugin_name}/{key}", value)

    def get_global_setting(self, key: str, default: Any = None) -> Any:
        """
        Gets a global (application-level) setting.
        Type is inferred from the default value.
        """
        return self._coerce(self.qsettings.value(key, default), default)

    def set_global_setting(self, key: str, value: Any):
        self.qsettings.setValue(key, value)

    def sync(self):
        """Writes pending changes to the INI file."""
        self.qsettings.sync()

    def has_any_settings(self) -> bool:
        return bool(self.qsettings.allKeys())

    def clear_plugin_settings(self, plugin_name: str):
        """
        Clear all settings for a specific plugin.
        """
        self.qsettings.beginGroup(plugin_name)
        self.qsettings.remove("")  # Remove all keys in this group
        self.qsettings.endGroup()

    @staticmethod
    def _coerce(value: Any, default: Any) -> Any:
        # INI values come back as strings
        if isinstance(default, bool) and isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes", "on")
        if isinstance(default, int) and not isinstance(default, bool) and isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                return default
        return value
