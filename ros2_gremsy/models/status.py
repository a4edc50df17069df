"""
Status Data Models.

This module provides the enumerations used to configure the gimbal and
the dataclass describing its reported status.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag


class GimbalStateFlag(IntFlag):
    """Operating state bits reported by the gimbal in SYS_STATUS."""

    OFF = 0x00
    INIT = 0x01
    ON = 0x02
    LOCK_MODE = 0x04
    FOLLOW_MODE = 0x08
    SEARCH_HOME = 0x10
    SET_HOME = 0x20
    ERROR = 0x40


class GimbalMode(IntEnum):
    """Gimbal operating mode, as set by the ``gimbal_mode`` parameter."""

    OFF = 0
    LOCK = 1
    FOLLOW = 2


class MotorMode(IntEnum):
    """Motor power command."""

    TURN_OFF = 0
    TURN_ON = 1


class AxisInputMode(IntEnum):
    """How setpoints for one axis are interpreted."""

    ANGLE_BODY_FRAME = 0
    ANGULAR_RATE = 1
    ANGLE_ABSOLUTE_FRAME = 2


@dataclass(frozen=True)
class AxisMode:
    """
    Control mode of a single gimbal axis.

    Attributes:
        input_mode: How setpoints for this axis are interpreted
        stabilize: Whether the axis is stabilized against vehicle motion
    """

    input_mode: AxisInputMode = AxisInputMode.ANGLE_ABSOLUTE_FRAME
    stabilize: bool = True


@dataclass
class GimbalStatus:
    """
    Gimbal status decoded from SYS_STATUS.

    Attributes:
        state: Operating state bits
        mode: Operating mode
        load: Processor load in per mille
        voltage_battery: Supply voltage in millivolts
        sensor_flags: Sensor health bitmask
    """

    state: GimbalStateFlag = GimbalStateFlag.OFF
    mode: int = GimbalMode.OFF
    load: int = 0
    voltage_battery: int = 0
    sensor_flags: int = 0

    def __str__(self) -> str:
        return f"GimbalStatus:state={int(self.state):#04x},mode={int(self.mode)}"

    @property
    def is_off(self) -> bool:
        """True when the motors are not powered."""
        return self.state == GimbalStateFlag.OFF

    @property
    def is_on(self) -> bool:
        """True once the motors are powered and the gimbal is running."""
        return bool(
            self.state
            & (GimbalStateFlag.ON | GimbalStateFlag.LOCK_MODE | GimbalStateFlag.FOLLOW_MODE)
        )

    @property
    def has_error(self) -> bool:
        """True when the gimbal reports an error."""
        return bool(self.state & GimbalStateFlag.ERROR)
