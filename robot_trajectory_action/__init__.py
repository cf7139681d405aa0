"""
Robot Trajectory Action - Package Init

AUTHORITY: INTERFACE ADAPTER - NO CONTROL AUTHORITY

This package:
- Serves FollowJointTrajectory goals per motion group
- Translates trajectories to the controller's DynamicJointTrajectory format
- Supervises execution from controller feedback and robot status
- Reports succeed / abort / reject to the client

This package does NOT:
- Interpolate or command motion (the controller does)
- Enforce path tolerances or goal time tolerances
- Check joint limits, kinematics or collisions
"""

from .config import DEFAULT_GOAL_THRESHOLD, TrajectoryActionConfig, build_registry, load_config
from .dispatcher import TrajectoryActionDispatcher, topic_name
from .groups import GroupConfigError, GroupRegistry, MotionGroup
from .session import GoalSession, RobotStatusCache, SessionState
from .tolerance import is_similar, within_goal_constraints
from .translator import fan_out_joints_match, stop_trajectory, translate_fan_out, translate_group
from .watchdog import WATCHDOG_PERIOD, FeedbackWatchdog
