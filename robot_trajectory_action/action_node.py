#!/usr/bin/env python3
"""
Joint Trajectory Action Node

AUTHORITY: INTERFACE ADAPTER (No Control Authority)

Serves FollowJointTrajectory per motion group and relays the trajectories to
the robot controller as motoman_msgs/DynamicJointTrajectory.

Responsibilities:
- One action server per motion group (NS/G/joint_trajectory_action)
- One fan-out action server for multi-group goals (joint_trajectory_action)
- Supervise execution from controller feedback, motion replies and robot status

Explicit Non-Responsibilities:
- Motion control, interpolation, joint limits (Controller does this)
"""

import logging

import rclpy
from rclpy.action import ActionServer, CancelResponse, GoalResponse
from rclpy.callback_groups import ReentrantCallbackGroup
from rclpy.exceptions import ParameterUninitializedException
from rclpy.node import Node
from rclpy.parameter import Parameter
from rclpy.qos import HistoryPolicy, QoSProfile, ReliabilityPolicy
from rclpy.task import Future

from builtin_interfaces.msg import Duration as RosDuration
from builtin_interfaces.msg import Time as RosTime
from control_msgs.action import FollowJointTrajectory
from industrial_msgs.msg import RobotStatus as RosRobotStatus
from motoman_msgs.msg import DynamicJointPoint as RosDynamicJointPoint
from motoman_msgs.msg import DynamicJointsGroup as RosDynamicJointsGroup
from motoman_msgs.msg import DynamicJointTrajectory as RosDynamicJointTrajectory
from motoman_msgs.msg import MotionReplyResult as RosMotionReplyResult
from std_msgs.msg import Header as RosHeader

from . import messages
from .config import load_config
from .dispatcher import TrajectoryActionDispatcher
from .logging_utils import configure_logging

ROS_TYPES = {
    messages.DynamicJointTrajectory: RosDynamicJointTrajectory,
    messages.FollowJointTrajectoryFeedback: FollowJointTrajectory.Feedback,
    messages.MotionReplyResult: RosMotionReplyResult,
    messages.RobotStatus: RosRobotStatus,
}


# === Message conversion ===

def _to_ros_time(stamp):
    if isinstance(stamp, (int, float)):
        return RosTime(sec=int(stamp), nanosec=int((stamp - int(stamp)) * 1e9))
    return stamp


def _to_ros_duration(duration):
    if isinstance(duration, (int, float)):
        return RosDuration(sec=int(duration), nanosec=int((duration - int(duration)) * 1e9))
    return duration


def _to_ros_header(header):
    if isinstance(header, messages.Header):
        return RosHeader(stamp=_to_ros_time(header.stamp), frame_id=header.frame_id)
    return header


def to_ros_dynamic_trajectory(traj) -> RosDynamicJointTrajectory:
    """Build a motoman_msgs/DynamicJointTrajectory from the translator output."""
    msg = RosDynamicJointTrajectory()
    msg.header = _to_ros_header(traj.header)
    msg.joint_names = list(traj.joint_names)

    for point in traj.points:
        ros_point = RosDynamicJointPoint()
        ros_point.num_groups = point.num_groups
        for group in point.groups:
            ros_group = RosDynamicJointsGroup()
            ros_group.group_number = group.group_number
            ros_group.num_joints = group.num_joints
            ros_group.valid_fields = group.valid_fields
            ros_group.positions = [float(v) for v in group.positions]
            ros_group.velocities = [float(v) for v in group.velocities]
            ros_group.accelerations = [float(v) for v in group.accelerations]
            ros_group.effort = [float(v) for v in group.effort]
            ros_group.time_from_start = _to_ros_duration(group.time_from_start)
            ros_point.groups.append(ros_group)
        msg.points.append(ros_point)

    return msg


# === Action plumbing ===

class RosGoalHandle:
    """
    Adapts rclpy's ServerGoalHandle to accept/reject/succeed/abort/cancel.

    rclpy has already accepted the goal by the time it executes, so a reject
    is reported as an abort carrying the rejection's error code. The terminal
    state is applied when the execute coroutine resumes.
    """

    def __init__(self, goal_handle):
        self._goal_handle = goal_handle
        self.goal = goal_handle.request
        self.done = Future()
        self._outcome = None

    @property
    def key(self) -> bytes:
        return bytes(self._goal_handle.goal_id.uuid)

    def __eq__(self, other):
        return isinstance(other, RosGoalHandle) and self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def _finish(self, outcome, error_code, reason=''):
        if self._outcome is not None:
            return
        result = FollowJointTrajectory.Result()
        result.error_code = error_code
        result.error_string = reason
        self._outcome = outcome
        self.done.set_result(result)

    def accept(self):
        pass

    def reject(self, result_code=FollowJointTrajectory.Result.INVALID_GOAL, reason=''):
        self._finish('abort', result_code, reason)

    def succeed(self):
        self._finish('succeed', FollowJointTrajectory.Result.SUCCESSFUL)

    def abort(self, reason=''):
        self._finish('abort', FollowJointTrajectory.Result.SUCCESSFUL, reason)

    def cancel(self):
        self._finish('cancel', FollowJointTrajectory.Result.SUCCESSFUL, 'Canceled')

    def apply(self):
        """Move the rclpy goal into its terminal state and return the result."""
        result = self.done.result()
        if self._outcome == 'succeed':
            self._goal_handle.succeed()
        elif self._outcome == 'cancel' and self._goal_handle.is_cancel_requested:
            self._goal_handle.canceled()
        else:
            self._goal_handle.abort()
        return result


class RosActionServer:
    def __init__(self, node, name, goal_callback, cancel_callback, callback_group):
        self.node = node
        self.name = name
        self._goal_callback = goal_callback
        self._cancel_callback = cancel_callback
        self._callback_group = callback_group
        self._handles = {}
        self._server = None

    def start(self):
        self._server = ActionServer(
            self.node,
            FollowJointTrajectory,
            self.name,
            self._execute,
            callback_group=self._callback_group,
            goal_callback=lambda goal_request: GoalResponse.ACCEPT,
            cancel_callback=self._cancel,
        )

    async def _execute(self, goal_handle):
        handle = RosGoalHandle(goal_handle)
        self._handles[handle.key] = handle
        try:
            self._goal_callback(handle)
            await handle.done
        finally:
            self._handles.pop(handle.key, None)
        return handle.apply()

    def _cancel(self, goal_handle):
        handle = self._handles.get(bytes(goal_handle.goal_id.uuid))
        if handle is not None and self._cancel_callback(handle):
            return CancelResponse.ACCEPT
        return CancelResponse.REJECT

    def destroy(self):
        if self._server is not None:
            self._server.destroy()
            self._server = None


class RosPublisher:
    def __init__(self, node, publisher):
        self.node = node
        self.publisher = publisher

    def publish(self, msg):
        if isinstance(msg, messages.DynamicJointTrajectory):
            msg = to_ros_dynamic_trajectory(msg)
        self.publisher.publish(msg)

    def destroy(self):
        self.node.destroy_publisher(self.publisher)


class RosResource:
    def __init__(self, destroy):
        self._destroy = destroy

    def destroy(self):
        self._destroy()


class RosTransport:
    """Transport over an rclpy node."""

    def __init__(self, node: Node):
        self.node = node
        self.callback_group = ReentrantCallbackGroup()
        self.qos = QoSProfile(
            reliability=ReliabilityPolicy.RELIABLE,
            history=HistoryPolicy.KEEP_LAST,
            depth=1
        )

    def create_publisher(self, msg_type, topic):
        publisher = self.node.create_publisher(ROS_TYPES[msg_type], topic, self.qos)
        return RosPublisher(self.node, publisher)

    def create_subscription(self, msg_type, topic, callback):
        subscription = self.node.create_subscription(
            ROS_TYPES[msg_type], topic, callback, self.qos,
            callback_group=self.callback_group)
        return RosResource(lambda: self.node.destroy_subscription(subscription))

    def create_action_server(self, name, goal_callback, cancel_callback):
        return RosActionServer(self.node, name, goal_callback, cancel_callback,
                               self.callback_group)

    def create_timer(self, period, callback):
        timer = self.node.create_timer(period, callback, callback_group=self.callback_group)
        return RosResource(lambda: self.node.destroy_timer(timer))

    def now(self):
        return self.node.get_clock().now().to_msg()


class TrajectoryActionNode(Node):
    def __init__(self):
        super().__init__('joint_trajectory_action')

        self.declare_parameter('config_file', '')
        self.declare_parameter('log_dir', '')
        config_file = self.get_parameter('config_file').get_parameter_value().string_value
        log_dir = self.get_parameter('log_dir').get_parameter_value().string_value

        configure_logging(self.get_logger(), log_dir or None)

        # File and environment values become the parameter defaults
        config = load_config(config_file or None)
        self.declare_parameter('constraints.goal_threshold', config.goal_threshold)
        self.declare_parameter('watchdog_period', config.watchdog_period)
        self.declare_parameter('controller_joint_names',
                               config.controller_joint_names or Parameter.Type.STRING_ARRAY)

        config.goal_threshold = self.get_parameter(
            'constraints.goal_threshold').get_parameter_value().double_value
        config.watchdog_period = self.get_parameter(
            'watchdog_period').get_parameter_value().double_value
        try:
            joint_names = self.get_parameter('controller_joint_names').value
        except ParameterUninitializedException:
            joint_names = None
        if joint_names:
            config.controller_joint_names = list(joint_names)
        config.validate()

        self.get_logger().info('Joint Trajectory Action starting...')
        self.dispatcher = TrajectoryActionDispatcher(RosTransport(self), config)
        self.get_logger().info('Joint Trajectory Action Ready (Action Servers Active)')

    def destroy_node(self):
        """Clean shutdown."""
        self.get_logger().info('Shutting down Joint Trajectory Action')
        self.dispatcher.shutdown()
        super().destroy_node()


def main(args=None):
    rclpy.init(args=args)

    try:
        node = TrajectoryActionNode()
    except (ValueError, OSError) as e:
        logging.getLogger(__name__).error(f'Invalid configuration: {e}')
        rclpy.shutdown()
        raise SystemExit(1)

    try:
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    finally:
        node.destroy_node()
        rclpy.shutdown()


if __name__ == '__main__':
    main()
