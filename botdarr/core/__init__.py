"""
botdarr Core Framework
Provides the cache, scheduler and reconciliation services used by the backends.
"""

from .logging_handler import setup_logging
from .settings_manager import SettingsManager
from .secure_storage import SecureStorage
from .api_client import ApiClient
from .errors import BotdarrError, ConfigError, FetchError
from .models import (
    ClassifiedEntry, Entry, EntryStatus, MessageKind, QueueItem,
    ReconciliationResult, StatusMessage
)
from .cache import MediaCache
from .reconciler import reconcile
from .event_bus import EventBus
from .plugin_base import PluginBase
from .plugin_registry import PluginRegistry
from .scheduler import RefreshScheduler

__all__ = [
    'setup_logging',
    'SettingsManager',
    'SecureStorage',
    'ApiClient',
    'BotdarrError',
    'ConfigError',
    'FetchError',
    'ClassifiedEntry',
    'Entry',
    'EntryStatus',
    'MessageKind',
    'QueueItem',
    'ReconciliationResult',
    'StatusMessage',
    'MediaCache',
    'reconcile',
    'EventBus',
    'PluginBase',
    'PluginRegistry',
    'RefreshScheduler',
]
