"""
Data Link Layer.

This module provides the serial MAVLink connection and message routing
infrastructure.
"""

from ros2_gremsy.datalink.connection import MAVConnection, MAVWriter
from ros2_gremsy.datalink.heartbeat import HeartbeatManager
from ros2_gremsy.datalink.message_router import MessageRouter

__all__ = [
    "MAVConnection",
    "MAVWriter",
    "HeartbeatManager",
    "MessageRouter",
]
