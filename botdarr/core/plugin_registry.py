"""
Backend plugin discovery, loading, and management.
"""

import importlib
import inspect
import logging
import pkgutil
from typing import List, Optional

from .plugin_base import PluginBase

logger = logging.getLogger(__name__)


class PluginRegistry:
    """
    Handles discovery, loading, and management of backend plugins.
    """

    def __init__(self, *plugin_args):
        """
        Initialize registry with core services to pass to plugins.
        Args:
            *plugin_args: Arguments to pass to plugin constructors
                          (logger, settings, secure_storage, api_client, event_bus)
        """
        self.plugins: List[PluginBase] = []
        self.plugin_args = plugin_args

    def discover_plugins(self, package_name: str = "botdarr.plugins"):
        """
        Auto-discover plugins in a package.
        Looks for modules named 'plugin_*' and loads them.

        Args:
            package_name: Dotted name of the plugins package
        """
        logger.info(f"🔍 Discovering plugins in '{package_name}'...")

        package = importlib.import_module(package_name)
        plugin_modules = sorted(
            name for _, name, is_pkg in pkgutil.iter_modules(package.__path__)
            if name.startswith("plugin_") and not is_pkg
        )
        logger.info(f"Found {len(plugin_modules)} plugin modules: {plugin_modules}")

        for name in plugin_modules:
            module_name = f"{package_name}.{name}"
            try:
                self._load_plugin(module_name)
            except Exception as e:
                logger.error(f"❌ Failed to load plugin {module_name}: {e}", exc_info=True)

        logger.info(f"✅ Loaded {len(self.plugins)} plugins successfully")

    def _load_plugin(self, module_name: str):
        """
        Loads a single plugin module and instantiates its concrete PluginBase classes.
        Args:
            module_name: Full module name (e.g., 'botdarr.plugins.plugin_radarr')
        """
        logger.debug(f"Loading plugin module: {module_name}")
        module = importlib.import_module(module_name)

        plugin_classes = []
        for name, obj in inspect.getmembers(module, inspect.isclass):
            # Only classes defined here; base classes imported into the module are skipped
            if (issubclass(obj, PluginBase) and
                    obj.__module__ == module.__name__ and
                    not inspect.isabstract(obj)):
                plugin_classes.append((name, obj))

        if not plugin_classes:
            logger.debug(f"No concrete PluginBase subclass found in {module_name}")
            return

        for class_name, plugin_class in plugin_classes:
            try:
                plugin_instance = plugin_class(*self.plugin_args)
                self.plugins.append(plugin_instance)
                logger.info(
                    f"✅ Loaded plugin: {plugin_instance.get_name()} "
                    f"v{plugin_instance.get_version()}"
                )
            except Exception as e:
                logger.error(f"❌ Failed to instantiate {class_name}: {e}", exc_info=True)

    def get_all_plugins(self) -> List[PluginBase]:
        return self.plugins

    def get_plugin(self, name: str) -> Optional[PluginBase]:
        """
        Find a plugin by its name (case-insensitive).
        Args:
            name: Plugin name to search for

        Returns:
            PluginBase instance or None if not found
        """
        name_lower = name.lower()
        for plugin in self.plugins:
            if plugin.get_name().lower() == name_lower:
                return plugin
        return None

    def get_enabled_plugins(self) -> List[PluginBase]:
        return [p for p in self.plugins if p.is_enabled()]

    def cleanup_all(self):
        """
        Call cleanup() on all loaded plugins.
        Should be called before application shutdown.
        """
        logger.info("Cleaning up all plugins...")
        for plugin in self.plugins:
            try:
                plugin.cleanup()
            except Exception as e:
                logger.error(f"Error cleaning up plugin {plugin.get_name()}: {e}")
