"""
Abstract base class for all backend plugins.
Defines the plugin interface and lifecycle.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from .api_client import ApiClient
from .cache import MediaCache
from .event_bus import EventBus
from .models import Entry
from .secure_storage import SecureStorage
from .settings_manager import SettingsManager


class PluginBase(ABC):
    """
    Abstract base class that all backend plugins must inherit from.
    Each plugin owns the MediaCache of its backend.
    """

    def __init__(self, logger: logging.Logger, settings: SettingsManager, secure_storage: SecureStorage, api_client: ApiClient, event_bus: EventBus):
        """
        Initialize plugin with core services.

        Args:
            logger: Application logger
            settings: SettingsManager instance
            secure_storage: SecureStorage instance for credentials
            api_client: ApiClient instance
            event_bus: EventBus instance for inter-plugin communication
        """
        self.logger = logger
        self.settings = settings
        self.secure_storage = secure_storage
        self.api_client = api_client
        self.event_bus = event_bus
        self._cache = MediaCache(self.get_name(), self.fetch_all)

    # --- Required Methods ---

    @abstractmethod
    def get_name(self) -> str:
        """
        Return the name of the plugin, also used as its settings namespace.

        Returns:
            Plugin name (e.g., "radarr")
        """
        pass

    @abstractmethod
    def get_version(self) -> str:
        pass

    @abstractmethod
    def get_description(self) -> str:
        pass

    @abstractmethod
    def fetch_all(self) -> List[Entry]:
        """
        Return every entry the backend currently knows.

        Raises:
            FetchError: On network or backend errors
        """
        pass

    @abstractmethod
    def search(self, term: str) -> List[Entry]:
        """
        Search the backend for a term, in the backend's result order.

        Raises:
            FetchError: On network or backend errors
        """
        pass

    @abstractmethod
    def send_periodic_notifications(self, notifier):
        """
        Forward any periodic messages to the notifier
        (anything with a notify(service_name, text) method).
        """
        pass

    # --- Optional Methods ---

    @property
    def cache(self) -> MediaCache:
        return self._cache

    def is_enabled(self) -> bool:
        """
        Return True if the plugin is enabled in settings.
        Disabled plugins are not cached or scheduled.
        """
        return self.get_setting("enabled", True)

    def cleanup(self):
        """
        Called just before the plugin is unloaded.
        """
        pass

    # --- Helper Methods ---

    def get_setting(self, key: str, default=None):
        """
        Convenience method to get a plugin-namespaced setting.

        Args:
            key: Setting key
            default: Default value

        Returns:
            Setting value
        """
        return self.settings.get_plugin_setting(self.get_name(), key, default)

    def set_setting(self, key: str, value):
        self.settings.set_plugin_setting(self.get_name(), key, value)
