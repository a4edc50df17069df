"""
Orientation Data Models.

Small value types shared by the driver and the ROS node so that the
driver logic does not depend on ROS message classes.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Vector3:
    """Three-axis vector (x = roll, y = pitch, z = yaw when used as angles)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __str__(self) -> str:
        return f"Vector3:x={self.x},y={self.y},z={self.z}"


@dataclass(frozen=True)
class Quaternion:
    """Unit quaternion in (x, y, z, w) order, as ROS messages use."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        """Hamilton product ``self * other``."""
        return Quaternion(
            x=self.w * other.x + self.x * other.w + self.y * other.z - self.z * other.y,
            y=self.w * other.y - self.x * other.z + self.y * other.w + self.z * other.x,
            z=self.w * other.z + self.x * other.y - self.y * other.x + self.z * other.w,
            w=self.w * other.w - self.x * other.x - self.y * other.y - self.z * other.z,
        )

    def __str__(self) -> str:
        return f"Quaternion:x={self.x},y={self.y},z={self.z},w={self.w}"
