"""
Logging Module.

This module provides logging utilities and handlers.
"""

from ros2_gremsy.logs.handlers import (
    RosLoggerHandler,
    get_ros2_gremsy_logger,
    setup_ros2_gremsy_logging,
    teardown_ros2_gremsy_logging,
)

__all__ = [
    "RosLoggerHandler",
    "get_ros2_gremsy_logger",
    "setup_ros2_gremsy_logging",
    "teardown_ros2_gremsy_logging",
]
