"""
Message Definitions (Mirrors of the ROS interfaces)

Plain Python classes mirroring the structure of:
- trajectory_msgs/JointTrajectory
- control_msgs/FollowJointTrajectory (goal, result, feedback)
- motoman_msgs/DynamicJointTrajectory
- motoman_msgs/MotionReplyResult
- industrial_msgs/RobotStatus

Field names match the ROS messages so the core accepts either kind.
"""

from dataclasses import dataclass, field
from typing import List, Optional

# === Primitives ===

@dataclass
class Header:
    stamp: float = 0.0
    frame_id: str = ""

# === Trajectory Messages ===

@dataclass
class JointTrajectoryPoint:
    positions: List[float] = field(default_factory=list)
    velocities: List[float] = field(default_factory=list)
    accelerations: List[float] = field(default_factory=list)
    effort: List[float] = field(default_factory=list)
    time_from_start: float = 0.0  # Seconds (simplified from duration)

@dataclass
class JointTrajectory:
    header: Header = field(default_factory=Header)
    joint_names: List[str] = field(default_factory=list)
    points: List[JointTrajectoryPoint] = field(default_factory=list)

# === Controller wire format (motoman_msgs) ===

@dataclass
class DynamicJointsGroup:
    group_number: int = 0
    num_joints: int = 0
    valid_fields: int = 0
    positions: List[float] = field(default_factory=list)
    velocities: List[float] = field(default_factory=list)
    accelerations: List[float] = field(default_factory=list)
    effort: List[float] = field(default_factory=list)
    time_from_start: float = 0.0

@dataclass
class DynamicJointPoint:
    num_groups: int = 0
    groups: List[DynamicJointsGroup] = field(default_factory=list)

@dataclass
class DynamicJointTrajectory:
    header: Header = field(default_factory=Header)
    joint_names: List[str] = field(default_factory=list)
    points: List[DynamicJointPoint] = field(default_factory=list)

@dataclass
class MotionReplyResult:
    # Constants
    SUCCESS = 0
    BUSY = 1
    FAILURE = 2
    INVALID = 3
    ALARM = 4
    NOT_READY = 5
    MP_FAILURE = 6

    val: int = SUCCESS

# === Controller feedback ===

@dataclass
class JointTrajectoryState:
    positions: List[float] = field(default_factory=list)
    velocities: List[float] = field(default_factory=list)
    accelerations: List[float] = field(default_factory=list)
    effort: List[float] = field(default_factory=list)
    time_from_start: float = 0.0

@dataclass
class FollowJointTrajectoryFeedback:
    header: Header = field(default_factory=Header)
    joint_names: List[str] = field(default_factory=list)
    desired: JointTrajectoryState = field(default_factory=JointTrajectoryState)
    actual: JointTrajectoryState = field(default_factory=JointTrajectoryState)
    error: JointTrajectoryState = field(default_factory=JointTrajectoryState)

# === industrial_msgs ===

@dataclass
class TriState:
    # Constants
    UNKNOWN = -1
    FALSE = 0
    TRUE = 1

    val: int = UNKNOWN

@dataclass
class RobotStatus:
    header: Header = field(default_factory=Header)
    e_stopped: TriState = field(default_factory=TriState)
    drives_powered: TriState = field(default_factory=TriState)
    motion_possible: TriState = field(default_factory=TriState)
    in_motion: TriState = field(default_factory=TriState)
    in_error: TriState = field(default_factory=TriState)
    error_code: int = 0

# === Action (control_msgs/FollowJointTrajectory) ===

@dataclass
class JointTolerance:
    name: str = ""
    position: float = 0.0
    velocity: float = 0.0
    acceleration: float = 0.0

@dataclass
class FollowJointTrajectoryGoal:
    trajectory: JointTrajectory = field(default_factory=JointTrajectory)
    path_tolerance: List[JointTolerance] = field(default_factory=list)
    goal_tolerance: List[JointTolerance] = field(default_factory=list)
    goal_time_tolerance: float = 0.0

@dataclass
class FollowJointTrajectoryResult:
    # Constants
    SUCCESSFUL = 0
    INVALID_GOAL = -1
    INVALID_JOINTS = -2
    OLD_HEADER_TIMESTAMP = -3
    PATH_TOLERANCE_VIOLATED = -4
    GOAL_TOLERANCE_VIOLATED = -5

    error_code: int = SUCCESSFUL
    error_string: str = ""


def duration_to_sec(duration: Optional[object]) -> float:
    """Seconds from a float or a builtin_interfaces/Duration-like object."""
    if duration is None:
        return 0.0
    if isinstance(duration, (int, float)):
        return float(duration)
    return duration.sec + duration.nanosec * 1e-9
