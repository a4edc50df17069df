"""
Telemetry Data Models.

Plain records for the gimbal messages polled by the driver. Values are
kept in the units the gimbal reports them in; conversion to SI happens
in :mod:`ros2_gremsy.conversions`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RawImu:
    """
    Raw IMU sample (MAVLink RAW_IMU).

    Accelerations are in mG, angular rates in mrad/s, magnetic field
    in mgauss.
    """

    time_usec: int
    xacc: int
    yacc: int
    zacc: int
    xgyro: int
    ygyro: int
    zgyro: int
    xmag: int = 0
    ymag: int = 0
    zmag: int = 0

    @classmethod
    def from_mavlink(cls, msg: Any) -> "RawImu":
        return cls(
            time_usec=msg.time_usec,
            xacc=msg.xacc,
            yacc=msg.yacc,
            zacc=msg.zacc,
            xgyro=msg.xgyro,
            ygyro=msg.ygyro,
            zgyro=msg.zgyro,
            xmag=msg.xmag,
            ymag=msg.ymag,
            zmag=msg.zmag,
        )


@dataclass(frozen=True)
class MountStatus:
    """
    Encoder angles of the mount (MAVLink MOUNT_STATUS), in degrees.

    Attributes:
        pointing_a: Tilt (pitch) axis
        pointing_b: Roll axis
        pointing_c: Pan (yaw) axis
    """

    pointing_a: float
    pointing_b: float
    pointing_c: float

    @classmethod
    def from_mavlink(cls, msg: Any) -> "MountStatus":
        return cls(
            pointing_a=float(msg.pointing_a),
            pointing_b=float(msg.pointing_b),
            pointing_c=float(msg.pointing_c),
        )


@dataclass(frozen=True)
class MountOrientation:
    """
    Mount orientation (MAVLink MOUNT_ORIENTATION), in degrees.

    Attributes:
        roll: Roll in the absolute frame
        pitch: Pitch in the absolute frame
        yaw: Yaw relative to the vehicle
        yaw_absolute: Yaw in the absolute frame, corrected for drift
    """

    time_boot_ms: int
    roll: float
    pitch: float
    yaw: float
    yaw_absolute: float

    @classmethod
    def from_mavlink(cls, msg: Any) -> "MountOrientation":
        return cls(
            time_boot_ms=msg.time_boot_ms,
            roll=msg.roll,
            pitch=msg.pitch,
            yaw=msg.yaw,
            yaw_absolute=msg.yaw_absolute,
        )


@dataclass
class GimbalTimeStamps:
    """Monotonic receive time of the latest message of each kind."""

    heartbeat: float | None = None
    sys_status: float | None = None
    raw_imu: float | None = None
    mount_status: float | None = None
    mount_orientation: float | None = None
