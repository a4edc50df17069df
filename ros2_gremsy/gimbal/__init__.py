"""
Gimbal Module.

This module provides gimbal control functionality.
"""

from ros2_gremsy.gimbal.interface import GimbalInterface

__all__ = ["GimbalInterface"]
