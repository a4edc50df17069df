"""
Gimbal Interface.

This module provides the call surface the driver uses to talk to a
Gremsy gimbal: status and telemetry getters fed from incoming MAVLink
messages, and COMMAND_LONG based setters.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable

import monotonic

from ros2_gremsy.core.events import EventBus
from ros2_gremsy.core.exceptions import GimbalException, TimeoutError
from ros2_gremsy.datalink.dialect import mavlink
from ros2_gremsy.datalink.heartbeat import HeartbeatManager
from ros2_gremsy.datalink.message_router import MessageRouter
from ros2_gremsy.models.status import (
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

if TYPE_CHECKING:
    from ros2_gremsy.core.events import MAVLinkMessageEvent
    from ros2_gremsy.datalink.connection import MAVConnection

logger = logging.getLogger(__name__)

# Gremsy extensions to COMMAND_LONG
MAV_CMD_SET_MOTOR_MODE = mavlink.MAV_CMD_USER_1
MAV_CMD_SET_GIMBAL_MODE = mavlink.MAV_CMD_USER_2

# Rate of the HEARTBEAT announcing the onboard computer to the gimbal
COMPANION_HEARTBEAT_INTERVAL = 1.0


class GimbalInterface:
    """
    Controls and monitors a Gremsy gimbal over a MAVLink connection.

    Incoming SYS_STATUS, RAW_IMU, MOUNT_STATUS and MOUNT_ORIENTATION
    messages are cached as they arrive; the getters return the latest
    value. Setters encode a COMMAND_LONG addressed to the gimbal.

    While running, a HEARTBEAT is sent every ``heartbeat_interval``
    seconds so the gimbal sees the onboard computer, and loss or
    recovery of the gimbal heartbeat is logged.

    Args:
        connection: The MAVLink connection to the gimbal
        heartbeat_timeout: Seconds without heartbeat before the gimbal
            is considered disconnected
        heartbeat_interval: Seconds between our own heartbeats

    Example:
        >>> gimbal = GimbalInterface(MAVConnection("/dev/ttyUSB0", 115200))
        >>> gimbal.start()
        >>> gimbal.wait_for_heartbeat(timeout=5.0)
        >>> gimbal.set_gimbal_move(-45.0, 0.0, 0.0)
    """

    def __init__(
        self,
        connection: "MAVConnection",
        heartbeat_timeout: float = 5.0,
        heartbeat_interval: float = COMPANION_HEARTBEAT_INTERVAL,
    ) -> None:
        self._connection = connection
        self._event_bus = EventBus()
        self._router = MessageRouter(connection, self._event_bus)
        self._heartbeat = HeartbeatManager(
            timeout=heartbeat_timeout,
            on_connect=self._on_gimbal_found,
        )
        self._lock = threading.Lock()
        self._status = GimbalStatus()
        self._raw_imu: RawImu | None = None
        self._mount_status: MountStatus | None = None
        self._mount_orientation: MountOrientation | None = None
        self._time_stamps = GimbalTimeStamps()
        self._unsubscribe_fns: list[Callable[[], None]] = []
        self._running = False
        self._heartbeat_interval = heartbeat_interval
        self._last_heartbeat_sent: float | None = None
        self._link_up = False
        self._link_lost = False
        self._loop_registered = False

    def start(self) -> None:
        """Start receiving from the gimbal."""
        if self._running:
            return
        self._heartbeat.attach(self._event_bus)
        handlers = {
            "HEARTBEAT": self._handle_heartbeat,
            "SYS_STATUS": self._handle_sys_status,
            "RAW_IMU": self._handle_raw_imu,
            "MOUNT_STATUS": self._handle_mount_status,
            "MOUNT_ORIENTATION": self._handle_mount_orientation,
        }
        self._unsubscribe_fns = [
            self._event_bus.subscribe_message(name, handler)
            for name, handler in handlers.items()
        ]
        self._router.attach()
        if not self._loop_registered:
            self._connection.forward_loop(self._on_loop)
            self._loop_registered = True
        self._running = True
        self._connection.start()
        logger.debug("GimbalInterface started")

    def stop(self) -> None:
        """Stop receiving and close the connection."""
        if not self._running:
            return
        self._running = False
        self._router.detach()
        for unsub in self._unsubscribe_fns:
            unsub()
        self._unsubscribe_fns.clear()
        self._heartbeat.detach()
        self._connection.close()
        logger.debug("GimbalInterface stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        """Whether the gimbal heartbeat was received recently."""
        return self._heartbeat.is_connected

    @property
    def target_system(self) -> int | None:
        return self._heartbeat.target_system

    def _on_gimbal_found(self, system: int, component: int) -> None:
        self._connection.target_system = system
        self._connection.target_component = component

    def _on_loop(self, _: "MAVConnection") -> None:
        if not self._running:
            return
        self.send_heartbeat_if_due()
        self.check_link()

    def send_heartbeat_if_due(self, now: float | None = None) -> bool:
        """
        Send our HEARTBEAT when ``heartbeat_interval`` has elapsed.

        Returns:
            True if a heartbeat was sent
        """
        if now is None:
            now = monotonic.monotonic()
        last = self._last_heartbeat_sent
        if last is not None and now - last < self._heartbeat_interval:
            return False
        self._last_heartbeat_sent = now
        msg = self._connection.mav.heartbeat_encode(
            mavlink.MAV_TYPE_ONBOARD_CONTROLLER,
            mavlink.MAV_AUTOPILOT_INVALID,
            0,  # base_mode
            0,  # custom_mode
            mavlink.MAV_STATE_ACTIVE,
        )
        self._connection.send(msg)
        return True

    def check_link(self) -> bool:
        """Log loss and recovery of the gimbal heartbeat; returns the link state."""
        connected = self._heartbeat.is_connected
        if connected and not self._link_up:
            if self._link_lost:
                logger.info("Gimbal heartbeat regained")
            self._link_lost = False
        elif self._link_up and not connected:
            logger.warning("Gimbal heartbeat lost")
            self._link_lost = True
        self._link_up = connected
        return connected

    def _from_gimbal(self, msg: Any) -> bool:
        """Whether a message was sent by the gimbal we talk to."""
        if self._heartbeat.target_system is None:
            return msg.get_srcComponent() == mavlink.MAV_COMP_ID_GIMBAL
        return (
            msg.get_srcSystem() == self._heartbeat.target_system
            and msg.get_srcComponent() == self._heartbeat.target_component
        )

    def _handle_heartbeat(self, event: "MAVLinkMessageEvent") -> None:
        if self._from_gimbal(event.message):
            with self._lock:
                self._time_stamps.heartbeat = event.timestamp

    def _handle_sys_status(self, event: "MAVLinkMessageEvent") -> None:
        msg = event.message
        if not self._from_gimbal(msg):
            return
        status = GimbalStatus(
            state=GimbalStateFlag(msg.errors_count1),
            mode=msg.errors_count2,
            load=msg.load,
            voltage_battery=msg.voltage_battery,
            sensor_flags=msg.onboard_control_sensors_health,
        )
        with self._lock:
            previous = self._status
            self._status = status
            self._time_stamps.sys_status = event.timestamp
        if previous.state != status.state:
            logger.info("Gimbal state changed to %#04x", int(status.state))
            if status.has_error and not previous.has_error:
                logger.warning("Gimbal reports an error (%s)", status)

    def _handle_raw_imu(self, event: "MAVLinkMessageEvent") -> None:
        if not self._from_gimbal(event.message):
            return
        imu = RawImu.from_mavlink(event.message)
        with self._lock:
            self._raw_imu = imu
            self._time_stamps.raw_imu = event.timestamp

    def _handle_mount_status(self, event: "MAVLinkMessageEvent") -> None:
        if not self._from_gimbal(event.message):
            return
        mount_status = MountStatus.from_mavlink(event.message)
        with self._lock:
            self._mount_status = mount_status
            self._time_stamps.mount_status = event.timestamp

    def _handle_mount_orientation(self, event: "MAVLinkMessageEvent") -> None:
        if not self._from_gimbal(event.message):
            return
        orientation = MountOrientation.from_mavlink(event.message)
        with self._lock:
            self._mount_orientation = orientation
            self._time_stamps.mount_orientation = event.timestamp

    def get_gimbal_status(self) -> GimbalStatus:
        """
        Latest status.

        OFF until the first SYS_STATUS arrives; see :meth:`wait_for_status_report`.
        """
        with self._lock:
            return self._status

    def get_gimbal_raw_imu(self) -> RawImu | None:
        with self._lock:
            return self._raw_imu

    def get_gimbal_mount_status(self) -> MountStatus | None:
        with self._lock:
            return self._mount_status

    def get_gimbal_mount_orientation(self) -> MountOrientation | None:
        with self._lock:
            return self._mount_orientation

    def get_gimbal_time_stamps(self) -> GimbalTimeStamps:
        """Receive times of the cached messages (a copy)."""
        with self._lock:
            return replace(self._time_stamps)

    def wait_for_heartbeat(self, timeout: float = 10.0) -> None:
        """
        Block until the gimbal has been heard from.

        Raises:
            TimeoutError: If no gimbal heartbeat arrives in time
        """
        if not self._heartbeat.wait_for_connection(timeout):
            raise TimeoutError(f"No gimbal heartbeat received in {timeout}s")

    def wait_for_status_report(self, timeout: float = 10.0, interval: float = 0.1) -> GimbalStatus:
        """
        Block until the gimbal has reported its status at least once.

        Raises:
            TimeoutError: If no SYS_STATUS arrives in time
        """
        deadline = monotonic.monotonic() + timeout
        while True:
            with self._lock:
                reported = self._time_stamps.sys_status is not None
                status = self._status
            if reported:
                return status
            if monotonic.monotonic() > deadline:
                raise TimeoutError(f"No gimbal status received in {timeout}s")
            time.sleep(interval)

    def wait_for_status(
        self,
        predicate: Callable[[GimbalStatus], bool],
        timeout: float = 10.0,
        interval: float = 0.1,
        on_waiting: Callable[[GimbalStatus], None] | None = None,
    ) -> GimbalStatus:
        """
        Block until the reported status satisfies ``predicate``.

        Args:
            predicate: Condition on the status
            timeout: Maximum time to wait in seconds
            interval: Polling interval in seconds
            on_waiting: Called with the current status on each unsuccessful poll

        Returns:
            The status that satisfied the predicate

        Raises:
            TimeoutError: If the condition is not met in time
        """
        deadline = monotonic.monotonic() + timeout
        while True:
            status = self.get_gimbal_status()
            if predicate(status):
                return status
            if monotonic.monotonic() > deadline:
                raise TimeoutError(f"Gimbal did not reach the expected state in {timeout}s ({status})")
            if on_waiting:
                on_waiting(status)
            time.sleep(interval)

    def _send_command(
        self,
        command: int,
        param1: float = 0,
        param2: float = 0,
        param3: float = 0,
        param4: float = 0,
        param5: float = 0,
        param6: float = 0,
        param7: float = 0,
    ) -> None:
        if self._heartbeat.target_system is None:
            raise GimbalException("Cannot send command %d: gimbal not found yet" % command)
        msg = self._connection.mav.command_long_encode(
            self._heartbeat.target_system,
            self._heartbeat.target_component,
            command,
            0,  # confirmation
            param1,
            param2,
            param3,
            param4,
            param5,
            param6,
            param7,
        )
        self._connection.send(msg)

    def set_gimbal_motor_mode(self, mode: MotorMode) -> None:
        """Turn the gimbal motors on or off."""
        logger.debug("Setting motor mode %s", MotorMode(mode).name)
        self._send_command(MAV_CMD_SET_MOTOR_MODE, param7=int(mode))

    def set_gimbal_mode(self, mode: GimbalMode) -> None:
        """Select the gimbal operating mode (off, lock, follow)."""
        logger.debug("Setting gimbal mode %s", GimbalMode(mode).name)
        self._send_command(MAV_CMD_SET_GIMBAL_MODE, param7=int(mode))

    def set_gimbal_axes_mode(self, tilt: AxisMode, roll: AxisMode, pan: AxisMode) -> None:
        """Configure input mode and stabilization of the three axes."""
        logger.debug("Setting axes mode tilt=%s roll=%s pan=%s", tilt, roll, pan)
        self._send_command(
            mavlink.MAV_CMD_DO_MOUNT_CONFIGURE,
            param1=mavlink.MAV_MOUNT_MODE_MAVLINK_TARGETING,
            param2=int(roll.stabilize),
            param3=int(tilt.stabilize),
            param4=int(pan.stabilize),
            param5=int(roll.input_mode),
            param6=int(tilt.input_mode),
            param7=int(pan.input_mode),
        )

    def set_gimbal_move(self, tilt: float, roll: float, pan: float) -> None:
        """
        Move the gimbal.

        Args:
            tilt: Tilt (pitch) setpoint in degrees
            roll: Roll setpoint in degrees
            pan: Pan (yaw) setpoint in degrees

        The setpoints are angles or rates depending on each axis' input mode.
        """
        self._send_command(
            mavlink.MAV_CMD_DO_MOUNT_CONTROL,
            param1=tilt,
            param2=roll,
            param3=pan,
            param7=mavlink.MAV_MOUNT_MODE_MAVLINK_TARGETING,
        )
