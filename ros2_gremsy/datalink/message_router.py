"""
Message Router.

This module provides the bridge between MAVConnection and EventBus,
routing incoming MAVLink messages to the event system.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import monotonic

from ros2_gremsy.core.events import MAVLinkMessageEvent

if TYPE_CHECKING:
    from ros2_gremsy.core.events import EventBus
    from ros2_gremsy.datalink.connection import MAVConnection

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes MAVLink messages from a connection to an event bus.

    Args:
        connection: The MAVConnection to receive messages from
        event_bus: The EventBus to publish events to
    """

    __slots__ = ("_connection", "_event_bus", "_attached")

    def __init__(
        self,
        connection: "MAVConnection",
        event_bus: "EventBus",
    ) -> None:
        self._connection = connection
        self._event_bus = event_bus
        self._attached = False

    def attach(self) -> None:
        """
        Attach to the connection and start routing messages.

        After calling this method, all incoming MAVLink messages
        will be published to the event bus.
        """
        if self._attached:
            return

        @self._connection.forward_message
        def on_message(_: "MAVConnection", msg: Any) -> None:
            if self._attached:
                self.route(msg)

        self._attached = True
        logger.debug("MessageRouter attached to connection")

    def route(self, msg: Any) -> None:
        """Publish a MAVLink message on the event bus."""
        if msg.get_type() == "BAD_DATA":
            return
        event = MAVLinkMessageEvent(
            timestamp=monotonic.monotonic(),
            message_type=msg.get_type(),
            message=msg,
        )
        self._event_bus.publish_message(event)

    def detach(self) -> None:
        """Stop routing; the connection keeps the (now inert) listener."""
        self._attached = False
        logger.debug("MessageRouter detached from connection")
