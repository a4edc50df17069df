import os

from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description():
    default_params = os.path.join(
        get_package_share_directory("ros2_gremsy"), "config", "gremsy.yaml"
    )
    return LaunchDescription([
        DeclareLaunchArgument("params_file", default_value=default_params),
        DeclareLaunchArgument("com_port", default_value="/dev/ttyUSB0"),
        Node(
            package="ros2_gremsy",
            executable="gremsy_node",
            name="ros2_gremsy",
            output="screen",
            parameters=[
                LaunchConfiguration("params_file"),
                {"com_port": LaunchConfiguration("com_port")},
            ],
        ),
    ])
