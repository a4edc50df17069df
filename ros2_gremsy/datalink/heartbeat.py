"""
Heartbeat Manager.

This module tracks the gimbal's HEARTBEAT to learn its MAVLink address
and to tell whether the link is still up.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable

import monotonic

from ros2_gremsy.core.events import EventPriority
from ros2_gremsy.datalink.dialect import mavlink

if TYPE_CHECKING:
    from ros2_gremsy.core.events import EventBus, MAVLinkMessageEvent

logger = logging.getLogger(__name__)


class HeartbeatManager:
    """
    Monitors gimbal heartbeats to track connection status.

    Only heartbeats sent by a gimbal (``MAV_TYPE_GIMBAL`` or the gimbal
    component id) are considered; autopilot and GCS heartbeats sharing
    the link are ignored.

    Args:
        timeout: Seconds without heartbeat before the link is dead
        on_connect: Callback when the gimbal is first heard from, called
            with (target_system, target_component)
    """

    __slots__ = (
        "_timeout",
        "_last_heartbeat",
        "_on_connect",
        "_target_system",
        "_target_component",
        "_unsubscribe",
    )

    def __init__(
        self,
        timeout: float = 5.0,
        on_connect: Callable[[int, int], None] | None = None,
    ) -> None:
        self._timeout = timeout
        self._last_heartbeat: float | None = None
        self._on_connect = on_connect
        self._target_system: int | None = None
        self._target_component: int | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, event_bus: "EventBus") -> None:
        """Attach to an event bus to receive heartbeat messages."""

        def handle_heartbeat(event: "MAVLinkMessageEvent") -> None:
            self.handle_heartbeat(event.message, event.timestamp)

        self._unsubscribe = event_bus.subscribe_message(
            "HEARTBEAT",
            handle_heartbeat,
            priority=EventPriority.HIGH,
        )

    def detach(self) -> None:
        """Detach from the event bus."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    @staticmethod
    def is_gimbal_heartbeat(msg: Any) -> bool:
        """Whether a heartbeat was sent by a gimbal."""
        return (
            msg.type == mavlink.MAV_TYPE_GIMBAL
            or msg.get_srcComponent() == mavlink.MAV_COMP_ID_GIMBAL
        )

    def handle_heartbeat(self, msg: Any, timestamp: float | None = None) -> None:
        """Handle an incoming heartbeat message."""
        if not self.is_gimbal_heartbeat(msg):
            return

        if timestamp is None:
            timestamp = monotonic.monotonic()
        self._last_heartbeat = timestamp

        if self._target_system is None:
            self._target_system = msg.get_srcSystem()
            self._target_component = msg.get_srcComponent()
            logger.info(
                "Gimbal found (system %d, component %d)",
                self._target_system,
                self._target_component,
            )
            if self._on_connect:
                try:
                    self._on_connect(self._target_system, self._target_component)
                except Exception:
                    logger.exception("Error in on_connect callback")

    @property
    def is_connected(self) -> bool:
        """Check if connection is active (received heartbeat within timeout)."""
        if self._last_heartbeat is None:
            return False
        return (monotonic.monotonic() - self._last_heartbeat) < self._timeout

    @property
    def target_system(self) -> int | None:
        """Get the detected gimbal system ID."""
        return self._target_system

    @property
    def target_component(self) -> int | None:
        """Get the detected gimbal component ID."""
        return self._target_component

    def wait_for_connection(self, timeout: float = 30.0) -> bool:
        """
        Wait for a gimbal heartbeat to be received.

        Returns:
            True if connection established, False if timed out
        """
        start = monotonic.monotonic()
        while not self.is_connected:
            if (monotonic.monotonic() - start) > timeout:
                return False
            time.sleep(0.1)
        return True
