"""
Driver Configuration.

This module provides the immutable configuration record read once from
the node parameters at start-up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ros2_gremsy.core.exceptions import ConfigurationError
from ros2_gremsy.models.status import AxisInputMode, AxisMode, GimbalMode
from ros2_gremsy.parameters.definitions import defaults, get_definition

logger = logging.getLogger(__name__)


def convert_int_to_gimbal_mode(value: int) -> GimbalMode:
    """
    Map the ``gimbal_mode`` parameter to a :class:`GimbalMode`.

    Raises:
        ConfigurationError: If the value is not a known mode
    """
    try:
        return GimbalMode(value)
    except ValueError:
        raise ConfigurationError(f"Invalid gimbal mode {value!r}, expected 0, 1 or 2") from None


def convert_int_to_axis_input_mode(value: int) -> AxisInputMode:
    """
    Map an ``*_axis_input_mode`` parameter to an :class:`AxisInputMode`.

    Raises:
        ConfigurationError: If the value is not a known input mode
    """
    try:
        return AxisInputMode(value)
    except ValueError:
        raise ConfigurationError(f"Invalid axis input mode {value!r}, expected 0, 1 or 2") from None


@dataclass(frozen=True)
class DriverConfig:
    """
    Gimbal driver configuration.

    Attributes:
        com_port: Serial device of the gimbal
        baud_rate: Serial baud rate
        state_poll_rate: Telemetry poll rate in Hz
        goal_push_rate: Command push rate in Hz
        gimbal_mode: Gimbal operating mode
        tilt_axis_input_mode: Input mode of the tilt axis
        tilt_axis_stabilize: Stabilize the tilt axis
        roll_axis_input_mode: Input mode of the roll axis
        roll_axis_stabilize: Stabilize the roll axis
        pan_axis_input_mode: Input mode of the pan axis
        pan_axis_stabilize: Stabilize the pan axis
        lock_yaw_to_vehicle: Correct commanded yaw for vehicle yaw drift
        frame_id: Frame id of the published messages
        startup_timeout: Seconds to wait for the gimbal at start-up
    """

    com_port: str = "/dev/ttyUSB0"
    baud_rate: int = 115200
    state_poll_rate: float = 10.0
    goal_push_rate: float = 60.0
    gimbal_mode: GimbalMode = GimbalMode.LOCK
    tilt_axis_input_mode: AxisInputMode = AxisInputMode.ANGLE_ABSOLUTE_FRAME
    tilt_axis_stabilize: bool = True
    roll_axis_input_mode: AxisInputMode = AxisInputMode.ANGLE_ABSOLUTE_FRAME
    roll_axis_stabilize: bool = True
    pan_axis_input_mode: AxisInputMode = AxisInputMode.ANGLE_ABSOLUTE_FRAME
    pan_axis_stabilize: bool = True
    lock_yaw_to_vehicle: bool = True
    frame_id: str = "gimbal_link"
    startup_timeout: float = 10.0

    def __post_init__(self) -> None:
        if not self.com_port:
            raise ConfigurationError("com_port must not be empty")
        for name in ("baud_rate", "state_poll_rate", "goal_push_rate", "startup_timeout"):
            value = getattr(self, name)
            definition = get_definition(name)
            if value <= 0 or value > definition.max_value:
                raise ConfigurationError(
                    f"{name} must be in (0, {definition.max_value}], got {value!r}"
                )

    @classmethod
    def from_parameters(cls, values: Mapping[str, Any]) -> "DriverConfig":
        """
        Build a configuration from raw parameter values.

        Missing names fall back to their defaults; unknown names are ignored.

        Raises:
            ConfigurationError: If a value is of the wrong kind or out of range
        """
        raw = defaults()
        raw.update({k: v for k, v in values.items() if k in raw})
        try:
            config = cls(
                com_port=str(raw["com_port"]),
                baud_rate=int(raw["baud_rate"]),
                state_poll_rate=float(raw["state_poll_rate"]),
                goal_push_rate=float(raw["goal_push_rate"]),
                gimbal_mode=convert_int_to_gimbal_mode(int(raw["gimbal_mode"])),
                tilt_axis_input_mode=convert_int_to_axis_input_mode(int(raw["tilt_axis_input_mode"])),
                tilt_axis_stabilize=bool(raw["tilt_axis_stabilize"]),
                roll_axis_input_mode=convert_int_to_axis_input_mode(int(raw["roll_axis_input_mode"])),
                roll_axis_stabilize=bool(raw["roll_axis_stabilize"]),
                pan_axis_input_mode=convert_int_to_axis_input_mode(int(raw["pan_axis_input_mode"])),
                pan_axis_stabilize=bool(raw["pan_axis_stabilize"]),
                lock_yaw_to_vehicle=bool(raw["lock_yaw_to_vehicle"]),
                frame_id=str(raw["frame_id"]),
                startup_timeout=float(raw["startup_timeout"]),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid parameter value: {e}") from e
        logger.debug("Loaded %s", config)
        return config

    @property
    def tilt_axis_mode(self) -> AxisMode:
        return AxisMode(self.tilt_axis_input_mode, self.tilt_axis_stabilize)

    @property
    def roll_axis_mode(self) -> AxisMode:
        return AxisMode(self.roll_axis_input_mode, self.roll_axis_stabilize)

    @property
    def pan_axis_mode(self) -> AxisMode:
        return AxisMode(self.pan_axis_input_mode, self.pan_axis_stabilize)

    @property
    def state_poll_period(self) -> float:
        """Telemetry timer period in seconds."""
        return 1.0 / self.state_poll_rate

    @property
    def goal_push_period(self) -> float:
        """Command timer period in seconds."""
        return 1.0 / self.goal_push_rate
