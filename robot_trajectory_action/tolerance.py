"""Goal constraint checks against controller feedback."""

import logging
from typing import Sequence

from .groups import MotionGroup

logger = logging.getLogger(__name__)


def is_similar(lhs: Sequence[str], rhs: Sequence[str]) -> bool:
    """True when both joint name lists hold the same names, in any order."""
    return len(lhs) == len(rhs) and sorted(lhs) == sorted(rhs)


def within_goal_constraints(feedback, trajectory, group: MotionGroup,
                            goal_threshold: float) -> bool:
    """
    Check whether the latest feedback is within ``goal_threshold`` of the
    trajectory's final waypoint, for every joint of ``group``.

    Joints are matched by name on both sides, so their order in the feedback
    and in the trajectory does not matter. A joint missing on either side
    fails the check.
    """
    if not trajectory.points:
        logger.warning('Empty joint trajectory passed to check goal constraints, return false')
        return False
    if feedback is None:
        return False

    last = trajectory.points[-1]
    actual = list(feedback.actual.positions)
    target = list(last.positions)
    feedback_index = {name: i for i, name in enumerate(feedback.joint_names)}
    trajectory_index = {name: i for i, name in enumerate(trajectory.joint_names)}

    for joint in group.joint_names:
        i = feedback_index.get(joint)
        j = trajectory_index.get(joint)
        if i is None or j is None or i >= len(actual) or j >= len(target):
            logger.debug(f'Joint {joint} missing from feedback or trajectory')
            return False
        if abs(actual[i] - target[j]) > goal_threshold:
            return False

    return True
