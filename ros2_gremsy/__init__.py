"""
ros2_gremsy API.

ROS 2 driver for Gremsy gimbals speaking MAVLink over a serial link.

The node (:mod:`ros2_gremsy.node`) is started with::

    ros2 run ros2_gremsy gremsy_node --ros-args --params-file config/gremsy.yaml

The gimbal side can also be used without ROS:

.. code:: python

    from ros2_gremsy import DriverConfig, GremsyDriver

    driver = GremsyDriver(DriverConfig(com_port="/dev/ttyUSB0"))
    driver.start()
    print(driver.poll_state())
    driver.shutdown()

All the logging is handled through the builtin Python `logging` module;
the node forwards it to its ROS logger.
"""

from __future__ import annotations

import os

# mavutil picks its dialect when first imported
os.environ.setdefault("MAVLINK20", "1")

# Core infrastructure
from ros2_gremsy.core.exceptions import (
    APIException,
    ConfigurationError,
    GimbalException,
    LinkError,
    TimeoutError,
)
from ros2_gremsy.core.events import EventBus, EventPriority, MAVLinkMessageEvent

# Data models
from ros2_gremsy.models.orientation import Quaternion, Vector3
from ros2_gremsy.models.status import (
    AxisInputMode,
    AxisMode,
    GimbalMode,
    GimbalStateFlag,
    GimbalStatus,
    MotorMode,
)
from ros2_gremsy.models.telemetry import (
    GimbalTimeStamps,
    MountOrientation,
    MountStatus,
    RawImu,
)

# Data link
from ros2_gremsy.datalink.connection import MAVConnection
from ros2_gremsy.datalink.heartbeat import HeartbeatManager
from ros2_gremsy.datalink.message_router import MessageRouter

# Gimbal and driver
from ros2_gremsy.gimbal.interface import GimbalInterface
from ros2_gremsy.parameters.config import DriverConfig
from ros2_gremsy.driver import GremsyDriver, ImuSample, TelemetryFrame

__all__ = [
    # Driver
    "DriverConfig",
    "GremsyDriver",
    "ImuSample",
    "TelemetryFrame",
    "GimbalInterface",
    # Exceptions
    "APIException",
    "ConfigurationError",
    "GimbalException",
    "LinkError",
    "TimeoutError",
    # Data models
    "AxisInputMode",
    "AxisMode",
    "GimbalMode",
    "GimbalStateFlag",
    "GimbalStatus",
    "GimbalTimeStamps",
    "MotorMode",
    "MountOrientation",
    "MountStatus",
    "Quaternion",
    "RawImu",
    "Vector3",
    # Data link
    "MAVConnection",
    "HeartbeatManager",
    "MessageRouter",
    # Event system
    "EventBus",
    "EventPriority",
    "MAVLinkMessageEvent",
]

# Version info
__version__ = "1.0.0"
