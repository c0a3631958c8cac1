#!/usr/bin/env python3
"""
botdarr - headless service entry point.
Builds the core services, discovers the backend plugins and starts
the cache refresh and notification jobs.
"""

import logging
import os
import threading
from datetime import timedelta

from botdarr import __version__
from botdarr.core import (
    setup_logging,
    SettingsManager,
    SecureStorage,
    ApiClient,
    PluginRegistry,
    EventBus,
    RefreshScheduler
)
from botdarr.core.settings_manager import APP_NAME, DEFAULT_SETTINGS_PATH

logger = logging.getLogger(__name__)


class Application:
    """
    Owns the core services for the lifetime of the process.
    """
    def __init__(self, settings: SettingsManager):
        self.settings = settings
        self.secure_storage = SecureStorage()
        self.api_client = ApiClient(timeout=settings.get_global_setting("request_timeout", 30))
        self.event_bus = EventBus()
        self.scheduler = RefreshScheduler(
            cache_interval=timedelta(minutes=settings.get_global_setting("cache_refresh_minutes", 2)),
            notification_interval=timedelta(hours=settings.get_global_setting("notification_hours", 1)),
        )
        self.registry = PluginRegistry(
            logging.getLogger("botdarr.plugins"),
            self.settings,
            self.secure_storage,
            self.api_client,
            self.event_bus
        )
        self._stopped = threading.Event()

        # The chat transport subscribes to these; without one they are logged
        self.event_bus.subscribe("notification", self._log_notification)
        self.event_bus.subscribe("item_added", self._log_item_added)

    def start(self) -> bool:
        """Returns False when there is nothing to run."""
        logger.info(f"🚀 Starting {APP_NAME} {__version__}...")
        self.registry.discover_plugins("botdarr.plugins")

        backends = self.registry.get_enabled_plugins()
        if not backends:
            logger.warning("⚠️  No backends configured. Set radarr/url or sonarr/url in the settings file.")
            return False

        logger.info(f"Enabled backends: {[b.get_name() for b in backends]}")
        self.scheduler.start_cache_refresh(backends)
        self.scheduler.start_notification_sweep(backends, self.event_bus)
        return True

    def run_forever(self):
        try:
            self._stopped.wait()
        except KeyboardInterrupt:
            logger.info("Interrupted")

    def stop(self):
        """Stops the jobs and releases the HTTP session."""
        logger.info("Application shutting down...")
        self._stopped.set()
        self.scheduler.shutdown(wait=False)
        self.registry.cleanup_all()
        self.api_client.close()

    @staticmethod
    def _log_notification(service_name: str, message: str):
        logger.info(f"[{service_name}] {message}")

    @staticmethod
    def _log_item_added(service_name: str, item_data: dict):
        logger.info(f"[{service_name}] added '{item_data.get('title', 'Unknown')}'")


def main():
    """
    Application entry point.
    """
    settings = SettingsManager(os.environ.get("BOTDARR_SETTINGS", DEFAULT_SETTINGS_PATH))
    setup_logging(
        settings.get_global_setting("log_level", "INFO"),
        settings.get_global_setting("log_file", "") or None,
    )

    app = Application(settings)
    try:
        if app.start():
            app.run_forever()
    finally:
        app.stop()


if __name__ == "__main__":
    main()
