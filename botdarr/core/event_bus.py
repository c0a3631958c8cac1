"""
Event bus for decoupled communication between backends and the chat layer.
Uses Qt signals for type-safe event publishing and subscription.
"""

import logging
from typing import Callable

from PyQt6.QtCore import QObject, Qt, pyqtSignal

logger = logging.getLogger(__name__)


class EventBus(QObject):
    """
    A simple event bus for decoupled plugin communication.
    Uses named signals for different event types.

    Events are published from scheduler and request threads with no Qt event
    loop running, so every subscription is a direct connection.
    """

    item_added = pyqtSignal(str, object)            # service_name, item_data (dict)
    notification = pyqtSignal(str, str)             # service_name, message

    def __init__(self):
        super().__init__()
        logger.debug("EventBus initialized")

    def publish(self, event_name: str, *args):
        """
        Publishes an event to the corresponding signal.
        """
        signal = self._signal(event_name)
        if signal is None:
            logger.warning(f"⚠️ Attempted to publish unknown event: {event_name}")
            return
        try:
            signal.emit(*args)
            logger.debug(f"📢 Event published: {event_name} with args: {args}")
        except Exception as e:
            logger.error(f"Error emitting event {event_name}: {e}", exc_info=True)

    def subscribe(self, event_name: str, slot: Callable):
        """
        Subscribes a slot (callback function) to an event signal.
        """
        signal = self._signal(event_name)
        if signal is None:
            logger.warning(f"⚠️ Attempted to subscribe to unknown event: {event_name}")
            return
        signal.connect(slot, type=Qt.ConnectionType.DirectConnection)
        logger.debug(f"📩 Subscribed to event: {event_name}")

    def unsubscribe(self, event_name: str, slot: Callable):
        signal = self._signal(event_name)
        if signal is None:
            logger.warning(f"⚠️ Attempted to unsubscribe from unknown event: {event_name}")
            return
        try:
            signal.disconnect(slot)
            logger.debug(f"📤 Unsubscribed from event: {event_name}")
        except TypeError as e:
            logger.error(f"Error unsubscribing from event {event_name}: {e}")

    def notify(self, service_name: str, message: str):
        """Notifier interface used by the periodic notification sweep."""
        self.publish("notification", service_name, message)

    def _signal(self, event_name: str):
        if event_name.startswith("_") or not hasattr(type(self), event_name):
            return None
        attr = getattr(type(self), event_name)
        if not isinstance(attr, pyqtSignal):
            return None
        return getattr(self, event_name)
