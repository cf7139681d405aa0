"""
Goal Session (one per motion group)

Holds at most one in-flight goal for its group and drives it to exactly one
terminal outcome:

    IDLE --goal--> ACTIVE --feedback within tolerance--> IDLE (succeeded)
                   ACTIVE --cancel--------------------> IDLE (canceled)
                   ACTIVE --motion reply failure------> IDLE (rejected/aborted)
                   ACTIVE --watchdog / new goal-------> IDLE (aborted)

Every handler runs under the session lock, so callbacks for the same group
never interleave.
"""

import copy
import logging
import threading

from .groups import MotionGroup
from .messages import (
    FollowJointTrajectoryResult,
    MotionReplyResult,
    TriState,
    duration_to_sec,
)
from .tolerance import is_similar, within_goal_constraints
from .translator import stop_trajectory, translate_group

logger = logging.getLogger(__name__)


class SessionState:
    IDLE = 'IDLE'
    ACTIVE = 'ACTIVE'


class RobotStatusCache:
    """Latest robot status, shared by all sessions."""

    def __init__(self):
        self._lock = threading.Lock()
        self._status = None

    def update(self, msg):
        with self._lock:
            self._status = msg

    def latest(self):
        with self._lock:
            return self._status


class GoalSession:
    """Goal lifecycle for a single motion group."""

    def __init__(self, group: MotionGroup, publisher, robot_status: RobotStatusCache,
                 goal_threshold: float):
        self.group = group
        self.publisher = publisher
        self.robot_status = robot_status
        self.goal_threshold = goal_threshold
        self.lock = threading.RLock()

        self.state = SessionState.IDLE
        self.active_goal = None
        self.current_traj = None
        self.last_feedback = None
        self.feedback_seen_in_window = False

    @property
    def tag(self) -> str:
        return f'[group {self.group.group_id}]'

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    # === Action server callbacks ===

    def on_goal(self, goal_handle):
        """Handle a new FollowJointTrajectory goal for this group."""
        goal = goal_handle.goal
        trajectory = goal.trajectory

        with self.lock:
            if not trajectory.points:
                logger.error(f'{self.tag} Joint trajectory action failed on empty trajectory')
                goal_handle.reject(FollowJointTrajectoryResult.INVALID_GOAL, 'Empty trajectory')
            elif not is_similar(self.group.joint_names, trajectory.joint_names):
                logger.error(f'{self.tag} Joint trajectory action failing on invalid joints')
                goal_handle.reject(FollowJointTrajectoryResult.INVALID_JOINTS,
                                   'Joint names do not match')
            else:
                if self.is_active():
                    logger.warning(f'{self.tag} Received new goal, canceling current goal')
                    self.abort_active('Preempted by a new goal')
                self._start(goal_handle, trajectory)

        self._warn_unsupported(goal)

    def _start(self, goal_handle, trajectory):
        if within_goal_constraints(self.last_feedback, trajectory, self.group, self.goal_threshold):
            logger.info(f'{self.tag} Already within goal constraints, setting goal succeeded')
            goal_handle.accept()
            goal_handle.succeed()
            return

        goal_handle.accept()
        self.active_goal = goal_handle
        self.current_traj = copy.deepcopy(trajectory)
        self.state = SessionState.ACTIVE

        logger.info(f'{self.tag} Publishing trajectory with {len(trajectory.points)} points')
        self.publisher.publish(translate_group(self.current_traj, self.group))

    def _warn_unsupported(self, goal):
        if duration_to_sec(getattr(goal, 'goal_time_tolerance', None)) > 0.0:
            logger.warning('Ignoring goal time tolerance in action goal, '
                           'may be supported in the future')
        if getattr(goal, 'goal_tolerance', None):
            logger.warning('Ignoring goal tolerance in action, using parameter tolerance '
                           f'of {self.goal_threshold} instead')
        if getattr(goal, 'path_tolerance', None):
            logger.warning('Ignoring goal path tolerance, option not supported by '
                           'this driver')

    def on_cancel(self, goal_handle) -> bool:
        """Cancel the active goal if it is ``goal_handle``. Returns True if it was."""
        logger.debug(f'{self.tag} Received action cancel request')
        with self.lock:
            if not self.is_active() or self.active_goal != goal_handle:
                logger.warning(f'{self.tag} Active goal and goal cancel do not match, '
                               'ignoring cancel request')
                return False

            # Go IDLE first, the controller may reply to the stop synchronously
            goal_handle = self._clear()
            self.publisher.publish(stop_trajectory(self.group.joint_names))
            goal_handle.cancel()
            return True

    # === Controller callbacks ===

    def on_feedback(self, msg):
        """Handle FollowJointTrajectoryFeedback from the controller."""
        with self.lock:
            self.last_feedback = msg
            self.feedback_seen_in_window = True

            if not self.is_active():
                logger.debug(f'{self.tag} No active goal, ignoring feedback')
                return
            if not self.current_traj.points:
                logger.debug(f'{self.tag} Current trajectory is empty, ignoring feedback')
                return
            if not is_similar(self.group.joint_names, msg.joint_names):
                logger.error(f"{self.tag} Joint names from the controller don't match our joint names.")
                return

            if not within_goal_constraints(msg, self.current_traj, self.group, self.goal_threshold):
                return

            status = self.robot_status.latest()
            if status is None:
                logger.info(f'{self.tag} Inside goal constraints, return success for action')
                logger.warning('Robot status is not being published, the robot driver node '
                               'and controller code should be updated')
                self._succeed()
            elif status.in_motion.val == TriState.FALSE:
                logger.info(f'{self.tag} Inside goal constraints, stopped moving, '
                            'return success for action')
                self._succeed()
            elif status.in_motion.val == TriState.UNKNOWN:
                logger.info(f'{self.tag} Inside goal constraints, return success for action')
                logger.warning('Robot status in motion unknown, the robot driver node '
                               'and controller code should be updated')
                self._succeed()
            else:
                logger.debug(f'{self.tag} Within goal constraints but robot is still moving')

    def on_motion_reply(self, msg):
        """Handle a MotionReplyResult for this group."""
        logger.info(f'{self.tag} Received motion reply command: {msg.val}')
        with self.lock:
            if not self.is_active():
                logger.debug(f'{self.tag} No active goal, ignoring motion reply feedback')
                return

            if msg.val in (MotionReplyResult.INVALID, MotionReplyResult.NOT_READY):
                logger.info(f'{self.tag} Motion reply {msg.val}, rejecting goal')
                goal_handle = self._clear()
                goal_handle.reject(FollowJointTrajectoryResult.INVALID_GOAL,
                                   f'Controller replied {msg.val}')
            elif msg.val != MotionReplyResult.SUCCESS:
                logger.info(f'{self.tag} Motion reply {msg.val}, aborting goal')
                self.abort_active(f'Controller replied {msg.val}')

    # === Terminal transitions ===

    def abort_active(self, reason: str = ''):
        """Stop the controller and mark the active goal aborted."""
        with self.lock:
            if not self.is_active():
                return
            goal_handle = self._clear()
            # Stops the controller
            self.publisher.publish(stop_trajectory())
            goal_handle.abort(reason)

    def _succeed(self):
        goal_handle = self._clear()
        goal_handle.succeed()

    def _clear(self):
        goal_handle = self.active_goal
        self.active_goal = None
        self.current_traj = None
        self.state = SessionState.IDLE
        return goal_handle
