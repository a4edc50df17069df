"""
Event Bus Implementation.

This module provides an event bus for decoupled message routing in
ros2_gremsy. It lets the gimbal interface and the heartbeat monitor
subscribe to MAVLink messages without knowing about the connection.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventPriority(IntEnum):
    """Priority levels for event handlers."""

    HIGH = 0  # Processed first (e.g., link discovery)
    NORMAL = 50  # Default priority
    LOW = 100  # Processed last (e.g., logging)


@dataclass(frozen=True)
class MAVLinkMessageEvent:
    """
    Event representing a received MAVLink message.

    Attributes:
        timestamp: Monotonic timestamp when the message was received
        message_type: The MAVLink message type name (e.g., 'HEARTBEAT')
        message: The actual MAVLink message object
    """

    timestamp: float
    message_type: str
    message: Any


@dataclass
class _Subscription:
    """Internal class representing a subscription."""

    handler: Callable[[Any], None]
    priority: EventPriority = EventPriority.NORMAL


class EventBus:
    """
    Central event bus for routing MAVLink messages.

    Features:
    - Priority-based handler execution
    - Thread-safe subscription management

    Example:
        >>> bus = EventBus()
        >>> def handle_status(event: MAVLinkMessageEvent):
        ...     print(f"Got SYS_STATUS at {event.timestamp}")
        >>> unsubscribe = bus.subscribe_message('SYS_STATUS', handle_status)
        >>> unsubscribe()
    """

    __slots__ = ("_message_handlers", "_lock")

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._message_handlers: dict[str, list[_Subscription]] = {}

    def subscribe_message(
        self,
        message_type: str,
        handler: Callable[[MAVLinkMessageEvent], None],
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable[[], None]:
        """
        Subscribe to a specific MAVLink message type.

        Args:
            message_type: The MAVLink message type to subscribe to
                         (e.g., 'HEARTBEAT', 'MOUNT_ORIENTATION')
            handler: Callback function that receives MAVLinkMessageEvent
            priority: Handler priority (lower values = higher priority)

        Returns:
            Unsubscribe function - call it to remove the subscription
        """
        subscription = _Subscription(handler=handler, priority=priority)

        with self._lock:
            handlers = self._message_handlers.setdefault(message_type, [])
            handlers.append(subscription)
            handlers.sort(key=lambda s: s.priority)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._message_handlers.get(message_type)
                if handlers is None:
                    return
                try:
                    handlers.remove(subscription)
                except ValueError:
                    return  # Already removed
                if not handlers:
                    del self._message_handlers[message_type]

        return unsubscribe

    def publish_message(self, event: MAVLinkMessageEvent) -> None:
        """
        Publish a MAVLink message event to all subscribers.

        A handler that raises is logged and skipped; the remaining
        handlers still run.
        """
        with self._lock:
            handlers = list(self._message_handlers.get(event.message_type, []))

        # Invoke handlers outside the lock
        for subscription in handlers:
            try:
                subscription.handler(event)
            except Exception:
                logger.exception(
                    "Exception in message handler for %s",
                    event.message_type,
                )
