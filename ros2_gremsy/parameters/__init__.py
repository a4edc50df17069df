"""
Parameters Module.

This module provides the node parameter table and the driver configuration.
"""

from ros2_gremsy.parameters.config import (
    DriverConfig,
    convert_int_to_axis_input_mode,
    convert_int_to_gimbal_mode,
)
from ros2_gremsy.parameters.definitions import (
    PARAMETERS,
    ParameterDefinition,
    defaults,
    get_definition,
)

__all__ = [
    "DriverConfig",
    "PARAMETERS",
    "ParameterDefinition",
    "convert_int_to_axis_input_mode",
    "convert_int_to_gimbal_mode",
    "defaults",
    "get_definition",
]
