"""
ROS 2 node for Gremsy gimbals.

Topics:
  Publishers:
    ~/imu (sensor_msgs/Imu) - gimbal IMU
    ~/encoder (geometry_msgs/Vector3Stamped) - encoder angles, radians
    ~/mount_orientation_global (geometry_msgs/QuaternionStamped) - absolute yaw
    ~/mount_orientation_local (geometry_msgs/QuaternionStamped) - yaw relative to vehicle

  Subscriptions:
    ~/goals (geometry_msgs/Vector3Stamped) - desired orientation, radians
"""

from __future__ import annotations

from typing import Any

import rclpy
from geometry_msgs.msg import QuaternionStamped, Vector3Stamped
from rcl_interfaces.msg import (
    FloatingPointRange,
    IntegerRange,
    ParameterDescriptor,
    ParameterType,
)
from rclpy.duration import Duration
from rclpy.logging import get_logger
from rclpy.node import Node
from sensor_msgs.msg import Imu

from ros2_gremsy.core.exceptions import GimbalException, LinkError
from ros2_gremsy.driver import GremsyDriver, TelemetryFrame
from ros2_gremsy.gimbal.interface import GimbalInterface
from ros2_gremsy.logs.handlers import setup_ros2_gremsy_logging, teardown_ros2_gremsy_logging
from ros2_gremsy.models.orientation import Quaternion, Vector3
from ros2_gremsy.parameters.config import DriverConfig
from ros2_gremsy.parameters.definitions import PARAMETERS, ParameterDefinition

QUEUE_DEPTH = 10


def get_param_descriptor(definition: ParameterDefinition) -> ParameterDescriptor:
    """Build the ROS parameter descriptor of a parameter definition."""
    default = definition.default
    descriptor = ParameterDescriptor(name=definition.name, description=definition.description)
    if isinstance(default, bool):
        descriptor.type = ParameterType.PARAMETER_BOOL
    elif isinstance(default, int):
        descriptor.type = ParameterType.PARAMETER_INTEGER
        if definition.has_range:
            descriptor.integer_range = [
                IntegerRange(
                    from_value=int(definition.min_value),
                    to_value=int(definition.max_value),
                    step=int(definition.step),
                )
            ]
    elif isinstance(default, float):
        descriptor.type = ParameterType.PARAMETER_DOUBLE
        if definition.has_range:
            descriptor.floating_point_range = [
                FloatingPointRange(
                    from_value=float(definition.min_value),
                    to_value=float(definition.max_value),
                    step=float(definition.step),
                )
            ]
    else:
        descriptor.type = ParameterType.PARAMETER_STRING
    return descriptor


def stamp_quaternion(quaternion: Quaternion, frame_id: str, stamp: Any) -> QuaternionStamped:
    msg = QuaternionStamped()
    msg.header.frame_id = frame_id
    msg.header.stamp = stamp
    msg.quaternion.x = quaternion.x
    msg.quaternion.y = quaternion.y
    msg.quaternion.z = quaternion.z
    msg.quaternion.w = quaternion.w
    return msg


class GremsyDriverNode(Node):
    """
    Bridges a Gremsy gimbal to ROS 2.

    Parameters are read once at start-up. The gimbal is turned on and
    configured before the telemetry and goal timers are created.

    Args:
        gimbal: Gimbal interface to drive instead of opening ``com_port``
        **kwargs: Forwarded to :class:`rclpy.node.Node`
    """

    def __init__(self, gimbal: GimbalInterface | None = None, **kwargs: Any) -> None:
        super().__init__("ros2_gremsy", **kwargs)
        self._log_handler = setup_ros2_gremsy_logging(self.get_logger())
        try:
            self._setup(gimbal)
        except Exception:
            self.destroy_node()
            raise

        self.get_logger().info(
            f"Gremsy driver running: poll {self.config.state_poll_rate} Hz, "
            f"goals {self.config.goal_push_rate} Hz"
        )

    def _setup(self, gimbal: GimbalInterface | None) -> None:
        self.declare_parameters_from_definitions()
        self.config = DriverConfig.from_parameters(
            {definition.name: self.get_parameter(definition.name).value for definition in PARAMETERS}
        )

        self.imu_pub = self.create_publisher(Imu, "~/imu", QUEUE_DEPTH)
        self.encoder_pub = self.create_publisher(Vector3Stamped, "~/encoder", QUEUE_DEPTH)
        self.mount_orientation_global_pub = self.create_publisher(
            QuaternionStamped, "~/mount_orientation_global", QUEUE_DEPTH
        )
        self.mount_orientation_local_pub = self.create_publisher(
            QuaternionStamped, "~/mount_orientation_local", QUEUE_DEPTH
        )

        self.goals_sub = self.create_subscription(
            Vector3Stamped, "~/goals", self.desired_orientation_callback, QUEUE_DEPTH
        )

        self.driver = GremsyDriver(self.config, gimbal=gimbal)
        self.driver.start()

        self.poll_timer = self.create_timer(
            self.config.state_poll_period, self.gimbal_state_timer_callback
        )
        self.goal_timer = self.create_timer(
            self.config.goal_push_period, self.gimbal_goal_timer_callback
        )

    def declare_parameters_from_definitions(self) -> None:
        for definition in PARAMETERS:
            self.declare_parameter(
                definition.name,
                definition.default,
                get_param_descriptor(definition),
            )

    def gimbal_state_timer_callback(self) -> None:
        """Poll gimbal telemetry and publish it."""
        self.get_logger().debug("Gimbal state timer callback")
        self.publish_telemetry(self.driver.poll_state())

    def publish_telemetry(self, frame: TelemetryFrame) -> None:
        now = self.get_clock().now()
        stamp = now.to_msg()
        frame_id = self.config.frame_id

        if frame.imu is not None:
            imu_msg = Imu()
            imu_msg.header.frame_id = frame_id
            imu_msg.header.stamp = (now - Duration(seconds=frame.imu.age)).to_msg()
            # Orientation is not estimated from the raw sample
            imu_msg.orientation_covariance[0] = -1.0
            acc = frame.imu.linear_acceleration
            imu_msg.linear_acceleration.x = acc.x
            imu_msg.linear_acceleration.y = acc.y
            imu_msg.linear_acceleration.z = acc.z
            gyro = frame.imu.angular_velocity
            imu_msg.angular_velocity.x = gyro.x
            imu_msg.angular_velocity.y = gyro.y
            imu_msg.angular_velocity.z = gyro.z
            self.imu_pub.publish(imu_msg)

        if frame.encoder is not None:
            encoder_msg = Vector3Stamped()
            encoder_msg.header.frame_id = frame_id
            encoder_msg.header.stamp = stamp
            encoder_msg.vector.x = frame.encoder.x
            encoder_msg.vector.y = frame.encoder.y
            encoder_msg.vector.z = frame.encoder.z
            self.encoder_pub.publish(encoder_msg)

        if frame.orientation_global is not None:
            self.mount_orientation_global_pub.publish(
                stamp_quaternion(frame.orientation_global, frame_id, stamp)
            )
        if frame.orientation_local is not None:
            self.mount_orientation_local_pub.publish(
                stamp_quaternion(frame.orientation_local, frame_id, stamp)
            )

    def gimbal_goal_timer_callback(self) -> None:
        """Push the latest goal to the gimbal."""
        self.get_logger().debug("Gimbal goal timer callback")
        try:
            self.driver.push_goal()
        except LinkError as e:
            self.get_logger().error(f"Gimbal link is down, goals are dropped: {e}", once=True)
        except GimbalException as e:
            self.get_logger().error(f"Failed to push goal: {e}", throttle_duration_sec=1.0)

    def desired_orientation_callback(self, msg: Vector3Stamped) -> None:
        self.driver.set_goal(Vector3(x=msg.vector.x, y=msg.vector.y, z=msg.vector.z))

    def destroy_node(self) -> bool:
        for timer in (getattr(self, "poll_timer", None), getattr(self, "goal_timer", None)):
            if timer is not None:
                timer.cancel()
        driver = getattr(self, "driver", None)
        if driver is not None:
            driver.shutdown()
        teardown_ros2_gremsy_logging(self._log_handler)
        return super().destroy_node()


def main(args: list[str] | None = None) -> None:
    """Entry point of ``ros2 run ros2_gremsy gremsy_node``."""
    rclpy.init(args=args)
    node = None
    try:
        node = GremsyDriverNode()
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    except GimbalException as e:
        get_logger("ros2_gremsy").fatal(f"Gremsy driver failed: {e}")
        raise SystemExit(1)
    finally:
        if node is not None:
            node.destroy_node()
        if rclpy.ok():
            rclpy.shutdown()


if __name__ == "__main__":
    main()
