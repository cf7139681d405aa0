"""
Joint Trajectory Action Launch File

AUTHORITY: INTERFACE ADAPTER - NO CONTROL AUTHORITY

Starts the multi-group joint trajectory action node, which:
- Serves FollowJointTrajectory per motion group and a fan-out server
- Relays DynamicJointTrajectory commands to the controller

The motion group layout comes from a YAML file (config_file argument,
defaulting to the packaged config/motion_groups.yaml).
"""
import os

from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import EnvironmentVariable, LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description():
    default_config = os.path.join(
        get_package_share_directory('robot_trajectory_action'), 'config', 'motion_groups.yaml')

    return LaunchDescription([
        DeclareLaunchArgument(
            'config_file',
            default_value=EnvironmentVariable('TRAJECTORY_ACTION_CONFIG', default_value=default_config),
            description='YAML file with topic_list, constraints and watchdog_period'
        ),
        DeclareLaunchArgument(
            'log_dir',
            default_value='',
            description='Directory for a detailed DEBUG log (empty: terminal only)'
        ),

        Node(
            package='robot_trajectory_action',
            executable='trajectory_action',
            name='joint_trajectory_action',
            output='screen',
            parameters=[{
                'config_file': LaunchConfiguration('config_file'),
                'log_dir': LaunchConfiguration('log_dir'),
            }]
        ),
    ])
