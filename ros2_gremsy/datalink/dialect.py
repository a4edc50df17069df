"""
MAVLink Dialect.

Gremsy gimbals speak MAVLink 2: MOUNT_ORIENTATION (id 265) has no
MAVLink 1 encoding. Every encoder and parser in ros2_gremsy is built
from this module, whatever ``MAVLINK20`` says when pymavlink is imported.
"""

from __future__ import annotations

from typing import Any

from pymavlink.dialects.v20 import ardupilotmega as mavlink

WIRE_PROTOCOL_VERSION = mavlink.WIRE_PROTOCOL_VERSION


def new_mavlink(
    file: Any,
    source_system: int,
    source_component: int,
    use_native: bool = False,
) -> "mavlink.MAVLink":
    """Create a MAVLink 2 encoder/parser writing to ``file``."""
    return mavlink.MAVLink(
        file,
        srcSystem=source_system,
        srcComponent=source_component,
        use_native=use_native,
    )
