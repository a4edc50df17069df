"""
Exception Classes.

This module defines the exception classes used throughout ros2_gremsy.
"""

from __future__ import annotations


class GimbalException(Exception):
    """
    Base class for ros2_gremsy related exceptions.

    :param message: Message string describing the exception
    """

    pass


# SDK-style name kept for callers written against the vendor API
APIException = GimbalException


class TimeoutError(GimbalException):
    """
    Raised by operations that have timeouts.

    This exception is raised when an operation exceeds its configured
    timeout period, such as:
    - Waiting for the gimbal heartbeat
    - Waiting for the motors to turn on
    """

    pass


class ConfigurationError(GimbalException):
    """Raised when a driver parameter holds an invalid value."""

    pass


class LinkError(GimbalException):
    """Raised when the serial MAVLink link is not usable."""

    pass
