"""
Data Models.

This module provides the dataclasses and enumerations describing gimbal
state and telemetry.
"""

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

__all__ = [
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
]
