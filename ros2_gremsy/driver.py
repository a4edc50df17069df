"""
Gremsy Driver.

This module holds the driver logic independent of ROS: the start-up
sequence that configures the gimbal, the telemetry poll and the goal
push performed on each timer tick, and shutdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import monotonic

from ros2_gremsy import conversions
from ros2_gremsy.datalink.connection import MAVConnection
from ros2_gremsy.gimbal.interface import GimbalInterface
from ros2_gremsy.models.orientation import Quaternion, Vector3
from ros2_gremsy.models.status import MotorMode

if TYPE_CHECKING:
    from ros2_gremsy.parameters.config import DriverConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImuSample:
    """
    IMU sample in SI units.

    Attributes:
        linear_acceleration: m/s^2
        angular_velocity: rad/s
        age: Seconds since the sample was received
    """

    linear_acceleration: Vector3
    angular_velocity: Vector3
    age: float


@dataclass(frozen=True)
class TelemetryFrame:
    """
    Telemetry gathered on one poll tick.

    A field is None when the gimbal has not sent the matching message yet.

    Attributes:
        imu: Latest IMU sample
        encoder: Encoder angles in radians (x roll, y tilt, z pan)
        orientation_global: Mount orientation with absolute yaw
        orientation_local: Mount orientation with yaw relative to the vehicle
        yaw_difference: Current yaw drift correction in radians
    """

    imu: ImuSample | None
    encoder: Vector3 | None
    orientation_global: Quaternion | None
    orientation_local: Quaternion | None
    yaw_difference: float


class GremsyDriver:
    """
    Drives a Gremsy gimbal from a :class:`DriverConfig`.

    Args:
        config: The driver configuration
        gimbal: Gimbal interface to use; by default one is created on a
            serial connection to ``config.com_port`` when :meth:`start`
            is called
    """

    def __init__(
        self,
        config: "DriverConfig",
        gimbal: GimbalInterface | None = None,
    ) -> None:
        self._config = config
        self._gimbal = gimbal
        self._goal: Vector3 | None = None
        self._yaw_difference = 0.0
        self._started = False

    @property
    def config(self) -> "DriverConfig":
        return self._config

    @property
    def gimbal(self) -> GimbalInterface | None:
        return self._gimbal

    @property
    def goal(self) -> Vector3 | None:
        """The latest commanded orientation, in radians."""
        return self._goal

    @property
    def yaw_difference(self) -> float:
        return self._yaw_difference

    @property
    def is_started(self) -> bool:
        return self._started

    def start(self) -> None:
        """
        Connect to the gimbal, turn it on and apply the configuration.

        Raises:
            LinkError: If the serial device cannot be opened
            TimeoutError: If the gimbal is not found, does not report its
                status or does not turn on within ``config.startup_timeout``
        """
        config = self._config
        if self._gimbal is None:
            connection = MAVConnection(config.com_port, baud=config.baud_rate)
            self._gimbal = GimbalInterface(connection)

        gimbal = self._gimbal
        gimbal.start()
        logger.info("Waiting for gimbal on %s", config.com_port)
        gimbal.wait_for_heartbeat(timeout=config.startup_timeout)
        status = gimbal.wait_for_status_report(timeout=config.startup_timeout)

        if status.is_off:
            logger.info("Gimbal is off, turning it on")
            gimbal.set_gimbal_motor_mode(MotorMode.TURN_ON)

        gimbal.wait_for_status(
            lambda status: status.is_on,
            timeout=config.startup_timeout,
            on_waiting=lambda status: logger.info("Waiting for gimbal to turn on"),
        )

        gimbal.set_gimbal_mode(config.gimbal_mode)
        gimbal.set_gimbal_axes_mode(
            config.tilt_axis_mode,
            config.roll_axis_mode,
            config.pan_axis_mode,
        )
        self._started = True
        logger.info(
            "Gimbal configured: mode=%s tilt=%s roll=%s pan=%s",
            config.gimbal_mode.name,
            config.tilt_axis_mode,
            config.roll_axis_mode,
            config.pan_axis_mode,
        )

    def set_goal(self, goal: Vector3) -> None:
        """Store a commanded orientation; the last one wins."""
        self._goal = goal

    def poll_state(self) -> TelemetryFrame:
        """Read the latest telemetry and update the yaw drift correction."""
        gimbal = self._gimbal

        imu = None
        raw_imu = gimbal.get_gimbal_raw_imu()
        if raw_imu is None:
            logger.debug("No RAW_IMU from the gimbal yet")
        else:
            received = gimbal.get_gimbal_time_stamps().raw_imu
            age = 0.0 if received is None else max(0.0, monotonic.monotonic() - received)
            imu = ImuSample(
                linear_acceleration=conversions.linear_acceleration(raw_imu),
                angular_velocity=conversions.angular_velocity(raw_imu),
                age=age,
            )

        encoder = None
        mount_status = gimbal.get_gimbal_mount_status()
        if mount_status is None:
            logger.debug("No MOUNT_STATUS from the gimbal yet")
        else:
            encoder = conversions.encoder_angles(mount_status)

        orientation_global = orientation_local = None
        orientation = gimbal.get_gimbal_mount_orientation()
        if orientation is None:
            logger.debug("No MOUNT_ORIENTATION from the gimbal yet")
        else:
            self._yaw_difference = conversions.yaw_difference(orientation)
            orientation_global = conversions.convert_yxz_to_quaternion(
                orientation.roll, orientation.pitch, orientation.yaw_absolute
            )
            orientation_local = conversions.convert_yxz_to_quaternion(
                orientation.roll, orientation.pitch, orientation.yaw
            )

        return TelemetryFrame(
            imu=imu,
            encoder=encoder,
            orientation_global=orientation_global,
            orientation_local=orientation_local,
            yaw_difference=self._yaw_difference,
        )

    def push_goal(self) -> tuple[float, float, float] | None:
        """
        Send the latest commanded orientation to the gimbal.

        Returns:
            The (tilt, roll, pan) setpoint sent, in degrees, or None when
            no goal has been received yet
        """
        goal = self._goal
        if goal is None:
            return None
        tilt, roll, pan = conversions.goal_to_move(
            goal,
            self._yaw_difference,
            self._config.lock_yaw_to_vehicle,
        )
        self._gimbal.set_gimbal_move(tilt, roll, pan)
        return tilt, roll, pan

    def shutdown(self) -> None:
        """Stop the gimbal interface and close the serial link."""
        if self._gimbal is not None:
            self._gimbal.stop()
        self._started = False
        logger.info("Gremsy driver stopped")
