"""
Trajectory Action Dispatcher

Owns one GoalSession and one FeedbackWatchdog per configured motion group
and routes inbound goals, cancels, feedback and motion replies to them.
A top-level fan-out action server accepts goals spanning several groups and
publishes them as one combined DynamicJointTrajectory.

The transport is any object providing create_publisher, create_subscription,
create_action_server, create_timer and now (see bus.InProcessTransport and
action_node.RosTransport).
"""

import logging
from typing import Dict

from .config import TrajectoryActionConfig, build_registry
from .groups import GroupRegistry, MotionGroup
from .messages import (
    DynamicJointTrajectory,
    FollowJointTrajectoryFeedback,
    FollowJointTrajectoryResult,
    MotionReplyResult,
    RobotStatus,
)
from .session import GoalSession, RobotStatusCache
from .translator import fan_out_joints_match, translate_fan_out
from .watchdog import FeedbackWatchdog

logger = logging.getLogger(__name__)

ACTION_SUFFIX = 'joint_trajectory_action'
COMMAND_SUFFIX = 'joint_path_command'
FEEDBACK_SUFFIX = 'feedback_states'
MOTION_REPLY_SUFFIX = 'joint_path_motion_reply'
ROBOT_STATUS_TOPIC = 'robot_status'


def topic_name(namespace: str, name: str, suffix: str) -> str:
    """Join non-empty parts: ``NS/G/suffix``."""
    return '/'.join(part.strip('/') for part in (namespace, name, suffix) if part.strip('/'))


class TrajectoryActionDispatcher:
    def __init__(self, transport, config: TrajectoryActionConfig, registry: GroupRegistry = None):
        self.transport = transport
        self.config = config
        self.registry = registry or build_registry(config)
        self.robot_status = RobotStatusCache()

        self.sessions: Dict[int, GoalSession] = {}
        self.watchdogs: Dict[int, FeedbackWatchdog] = {}
        self.action_servers = {}
        self._resources = []
        self.fan_out_publisher = None

        for group in self.registry:
            self._setup_group(group)

        self._track(transport.create_subscription(
            RobotStatus, ROBOT_STATUS_TOPIC, self.robot_status.update))

        if self.registry.is_single_group():
            logger.info('Single motion-group mode, no fan-out action server')
        else:
            self._setup_fan_out()

        logger.info(f'Trajectory action dispatcher ready with {self.registry.size()} group(s), '
                    f'goal threshold {config.goal_threshold}')

    def _track(self, resource):
        self._resources.append(resource)
        return resource

    def _setup_group(self, group: MotionGroup):
        ns, name = group.namespace, group.name
        publisher = self._track(self.transport.create_publisher(
            DynamicJointTrajectory, topic_name(ns, name, COMMAND_SUFFIX)))

        session = GoalSession(group, publisher, self.robot_status, self.config.goal_threshold)
        watchdog = FeedbackWatchdog(session, self.config.watchdog_period)
        self.sessions[group.group_id] = session
        self.watchdogs[group.group_id] = watchdog

        self._track(self.transport.create_subscription(
            FollowJointTrajectoryFeedback, topic_name(ns, name, FEEDBACK_SUFFIX),
            session.on_feedback))
        self._track(self.transport.create_subscription(
            MotionReplyResult, topic_name(ns, name, MOTION_REPLY_SUFFIX),
            session.on_motion_reply))
        self._track(self.transport.create_timer(self.config.watchdog_period, watchdog.tick))

        action_name = topic_name(ns, name, ACTION_SUFFIX)
        server = self._track(self.transport.create_action_server(
            action_name, session.on_goal, session.on_cancel))
        server.start()
        self.action_servers[group.group_id] = server
        logger.info(f'Group {group.group_id} ({len(group)} joints) serving {action_name}')

    def _setup_fan_out(self):
        self.fan_out_publisher = self._track(
            self.transport.create_publisher(DynamicJointTrajectory, COMMAND_SUFFIX))
        self._track(self.transport.create_subscription(
            MotionReplyResult, MOTION_REPLY_SUFFIX, self.on_fan_out_motion_reply))
        server = self._track(self.transport.create_action_server(
            ACTION_SUFFIX, self.on_fan_out_goal, self.on_fan_out_cancel))
        server.start()
        self.action_servers[None] = server

    # === Fan-out channel ===

    def on_fan_out_goal(self, goal_handle):
        """Translate and publish a multi-group goal. Delivery only, no completion tracking."""
        trajectory = goal_handle.goal.trajectory
        if not trajectory.points:
            logger.error('Fan-out trajectory action failed on empty trajectory')
            goal_handle.reject(FollowJointTrajectoryResult.INVALID_GOAL, 'Empty trajectory')
            return
        if not fan_out_joints_match(trajectory, self.registry):
            logger.error('Fan-out trajectory action failing on invalid joints')
            goal_handle.reject(FollowJointTrajectoryResult.INVALID_JOINTS,
                               'Joint names do not match')
            return

        goal_handle.accept()
        dyn_traj = translate_fan_out(trajectory, self.registry, self.transport.now())
        self.fan_out_publisher.publish(dyn_traj)
        logger.info(f'Published fan-out trajectory with {len(dyn_traj.points)} points '
                    f'for {self.registry.size()} groups')
        goal_handle.succeed()

    def on_fan_out_cancel(self, goal_handle) -> bool:
        logger.debug('Received fan-out cancel request, but no action is done.')
        return False

    def on_fan_out_motion_reply(self, msg):
        if msg.val == MotionReplyResult.SUCCESS:
            logger.debug('Fan-out motion reply: SUCCESS')
        else:
            logger.warning(f'Fan-out motion reply: {msg.val}')

    def shutdown(self):
        """Release every transport resource, newest first."""
        logger.info('Shutting down trajectory action dispatcher')
        while self._resources:
            self._resources.pop().destroy()
