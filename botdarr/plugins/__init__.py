"""
Backend plugins. Modules named plugin_* are discovered by the PluginRegistry.
"""
