"""
Core Infrastructure.

This module provides the foundational components used throughout ros2_gremsy:
- Exception classes
- Event bus for message routing
"""

from ros2_gremsy.core.exceptions import (
    APIException,
    ConfigurationError,
    GimbalException,
    LinkError,
    TimeoutError,
)
from ros2_gremsy.core.events import EventBus, EventPriority, MAVLinkMessageEvent

__all__ = [
    # Exceptions
    "APIException",
    "ConfigurationError",
    "GimbalException",
    "LinkError",
    "TimeoutError",
    # Events
    "EventBus",
    "EventPriority",
    "MAVLinkMessageEvent",
]
