"""
Unit and frame conversions between gimbal telemetry and ROS conventions.

The gimbal reports angles in degrees and raw IMU samples in milli-units;
ROS messages carry radians and SI units.
"""

from __future__ import annotations

import math

from ros2_gremsy.models.orientation import Quaternion, Vector3
from ros2_gremsy.models.telemetry import MountOrientation, MountStatus, RawImu

DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi

STANDARD_GRAVITY = 9.80665


def axis_angle_quaternion(axis: tuple[float, float, float], angle: float) -> Quaternion:
    """
    Quaternion for a rotation of ``angle`` radians about a unit ``axis``.
    """
    s = math.sin(angle / 2.0)
    return Quaternion(
        x=axis[0] * s,
        y=axis[1] * s,
        z=axis[2] * s,
        w=math.cos(angle / 2.0),
    )


def convert_yxz_to_quaternion(roll: float, pitch: float, yaw: float) -> Quaternion:
    """
    Convert gimbal Euler angles (degrees) to a quaternion.

    The gimbal applies pitch about Y, then roll about X, then yaw about Z,
    with pitch and roll sign-flipped relative to the ROS frame::

        q = Ry(-pitch) * Rx(-roll) * Rz(yaw)

    Args:
        roll: Roll in degrees
        pitch: Pitch in degrees
        yaw: Yaw in degrees

    Returns:
        Unit quaternion
    """
    q_pitch = axis_angle_quaternion((0.0, 1.0, 0.0), -DEG_TO_RAD * pitch)
    q_roll = axis_angle_quaternion((1.0, 0.0, 0.0), -DEG_TO_RAD * roll)
    q_yaw = axis_angle_quaternion((0.0, 0.0, 1.0), DEG_TO_RAD * yaw)
    return q_pitch * q_roll * q_yaw


def linear_acceleration(imu: RawImu) -> Vector3:
    """Accelerations of a raw IMU sample in m/s^2."""
    scale = STANDARD_GRAVITY / 1000.0
    return Vector3(x=imu.xacc * scale, y=imu.yacc * scale, z=imu.zacc * scale)


def angular_velocity(imu: RawImu) -> Vector3:
    """Angular rates of a raw IMU sample in rad/s."""
    return Vector3(x=imu.xgyro / 1000.0, y=imu.ygyro / 1000.0, z=imu.zgyro / 1000.0)


def encoder_angles(mount_status: MountStatus) -> Vector3:
    """
    Mount encoder angles in radians.

    x is the roll encoder, y the tilt encoder and z the pan encoder.
    """
    return Vector3(
        x=mount_status.pointing_b * DEG_TO_RAD,
        y=mount_status.pointing_a * DEG_TO_RAD,
        z=mount_status.pointing_c * DEG_TO_RAD,
    )


def yaw_difference(orientation: MountOrientation) -> float:
    """Drift between the absolute and the vehicle-relative yaw, in radians."""
    return DEG_TO_RAD * (orientation.yaw_absolute - orientation.yaw)


def goal_to_move(
    goal: Vector3,
    yaw_offset: float = 0.0,
    lock_yaw_to_vehicle: bool = False,
) -> tuple[float, float, float]:
    """
    Turn a commanded orientation (radians) into move setpoints.

    Args:
        goal: Commanded orientation, x = roll, y = tilt, z = pan
        yaw_offset: Latest yaw drift from :func:`yaw_difference`
        lock_yaw_to_vehicle: Add ``yaw_offset`` to the commanded pan

    Returns:
        (tilt, roll, pan) in degrees
    """
    pan = goal.z
    if lock_yaw_to_vehicle:
        pan += yaw_offset
    return RAD_TO_DEG * goal.y, RAD_TO_DEG * goal.x, RAD_TO_DEG * pan
