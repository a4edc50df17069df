"""
Parameter Definitions.

The table of node parameters: name, default, description and allowed
range. The ROS node declares them from this table and
:class:`~ros2_gremsy.parameters.config.DriverConfig` validates against it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ParameterDefinition:
    """
    One node parameter.

    Attributes:
        name: Parameter name
        default: Default value; its type is the parameter type
        description: Human readable description
        min_value: Inclusive lower bound for numeric parameters
        max_value: Inclusive upper bound for numeric parameters
        step: Step for integer ranges (0 = any)
    """

    name: str
    default: Any
    description: str
    min_value: float | None = None
    max_value: float | None = None
    step: float = 0

    @property
    def has_range(self) -> bool:
        return self.min_value is not None and self.max_value is not None


PARAMETERS: tuple[ParameterDefinition, ...] = (
    ParameterDefinition(
        "com_port",
        "/dev/ttyUSB0",
        "Serial device for the gimbal connection",
    ),
    ParameterDefinition(
        "baud_rate",
        115200,
        "Baudrate for the gimbal connection",
        1,
        4000000,
    ),
    ParameterDefinition(
        "state_poll_rate",
        10.0,
        "Rate in which the gimbal data is polled and published",
        0.0,
        300.0,
    ),
    ParameterDefinition(
        "goal_push_rate",
        60.0,
        "Rate in which the goals are pushed to the gimbal",
        0.0,
        300.0,
    ),
    ParameterDefinition(
        "gimbal_mode",
        1,
        "Control mode of the gimbal (0 off, 1 lock, 2 follow)",
        0,
        2,
        1,
    ),
    ParameterDefinition(
        "tilt_axis_input_mode",
        2,
        "Input mode of the gimbals tilt axis (0 body frame angle, 1 angular rate, 2 absolute frame angle)",
        0,
        2,
        1,
    ),
    ParameterDefinition(
        "tilt_axis_stabilize",
        True,
        "Stabilize the gimbals tilt axis",
    ),
    ParameterDefinition(
        "roll_axis_input_mode",
        2,
        "Input mode of the gimbals roll axis (0 body frame angle, 1 angular rate, 2 absolute frame angle)",
        0,
        2,
        1,
    ),
    ParameterDefinition(
        "roll_axis_stabilize",
        True,
        "Stabilize the gimbals roll axis",
    ),
    ParameterDefinition(
        "pan_axis_input_mode",
        2,
        "Input mode of the gimbals pan axis (0 body frame angle, 1 angular rate, 2 absolute frame angle)",
        0,
        2,
        1,
    ),
    ParameterDefinition(
        "pan_axis_stabilize",
        True,
        "Stabilize the gimbals pan axis",
    ),
    ParameterDefinition(
        "lock_yaw_to_vehicle",
        True,
        "Uses the yaw relative to the gimbal mount to prevent drift issues. "
        "Only a light stabilization is applied.",
    ),
    ParameterDefinition(
        "frame_id",
        "gimbal_link",
        "Frame id stamped on the published messages",
    ),
    ParameterDefinition(
        "startup_timeout",
        10.0,
        "Seconds to wait for the gimbal to be found and turned on",
        0.0,
        600.0,
    ),
)


def get_definition(name: str) -> ParameterDefinition:
    """Look up a parameter by name."""
    for definition in PARAMETERS:
        if definition.name == name:
            return definition
    raise KeyError(name)


def defaults() -> dict[str, Any]:
    """Default value of every parameter, by name."""
    return {definition.name: definition.default for definition in PARAMETERS}
