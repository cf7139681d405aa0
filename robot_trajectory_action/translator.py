"""
Trajectory Translator

Converts an incoming joint trajectory into the controller's
DynamicJointTrajectory wire format.

Two modes:
- per-group: the trajectory addresses exactly one motion group.
- fan-out: the trajectory may list joints from several groups; every
  configured group gets an entry in every point, idle-filled with zeros when
  the trajectory does not reference it.

All functions are pure. Preconditions (matching joint names, consistent
channel lengths) are the caller's responsibility.
"""

import copy
from typing import List, Sequence

from .groups import GroupRegistry, MotionGroup
from .messages import DynamicJointPoint, DynamicJointsGroup, DynamicJointTrajectory

CHANNELS = ('positions', 'velocities', 'accelerations', 'effort')


def _channel_or_zeros(values: Sequence[float], num_joints: int) -> List[float]:
    if len(values) == 0:
        return [0.0] * num_joints
    return list(values)


def translate_group(trajectory, group: MotionGroup) -> DynamicJointTrajectory:
    """Per-group mode: one DynamicJointsGroup per point, header and joint names echoed."""
    num_joints = len(group)
    dyn_traj = DynamicJointTrajectory()

    for point in trajectory.points:
        dyn_group = DynamicJointsGroup(
            group_number=group.group_id,
            num_joints=num_joints,
            time_from_start=point.time_from_start,
        )
        for channel in CHANNELS:
            setattr(dyn_group, channel, _channel_or_zeros(getattr(point, channel), num_joints))

        dyn_traj.points.append(DynamicJointPoint(num_groups=1, groups=[dyn_group]))

    dyn_traj.header = trajectory.header
    dyn_traj.joint_names = list(trajectory.joint_names)
    return dyn_traj


def _fan_out_group(point, joint_names: List[str], group: MotionGroup) -> DynamicJointsGroup:
    num_joints = len(group)
    dyn_group = DynamicJointsGroup(
        group_number=group.group_id,
        num_joints=num_joints,
        time_from_start=point.time_from_start,
    )

    if group.first_joint in joint_names:
        start = joint_names.index(group.first_joint)
        for channel in CHANNELS:
            values = getattr(point, channel)
            if len(values) == 0:
                setattr(dyn_group, channel, [0.0] * num_joints)
            else:
                setattr(dyn_group, channel, list(values[start:start + num_joints]))
    else:
        # Group not referenced by this trajectory: idle fill
        for channel in CHANNELS:
            setattr(dyn_group, channel, [0.0] * num_joints)

    return dyn_group


def fan_out_joints_match(trajectory, registry: GroupRegistry) -> bool:
    """
    Check the fan-out preconditions: every joint belongs to a registered
    group, each referenced group appears as one contiguous block in its
    registered joint order, and every non-empty channel has one value per
    joint.
    """
    joint_names = list(trajectory.joint_names)
    if len(set(joint_names)) != len(joint_names):
        return False
    if not set(joint_names) <= set(registry.all_joint_names()):
        return False

    for group in registry:
        if not set(group.joint_names) & set(joint_names):
            continue
        if group.first_joint not in joint_names:
            return False
        start = joint_names.index(group.first_joint)
        if joint_names[start:start + len(group)] != list(group.joint_names):
            return False

    for point in trajectory.points:
        for channel in CHANNELS:
            values = getattr(point, channel)
            if len(values) != 0 and len(values) != len(joint_names):
                return False
    return True


def translate_fan_out(trajectory, registry: GroupRegistry, stamp) -> DynamicJointTrajectory:
    """
    Fan-out mode: every point addresses every registered group, in registry order.

    The outbound header is a copy of the input header with ``stamp`` as its
    time stamp; outbound joint names are all registered joints.
    """
    joint_names = list(trajectory.joint_names)
    groups = registry.groups()
    dyn_traj = DynamicJointTrajectory()

    for point in trajectory.points:
        dyn_point = DynamicJointPoint()
        for group in groups:
            dyn_point.groups.append(_fan_out_group(point, joint_names, group))
        dyn_point.num_groups = len(dyn_point.groups)
        dyn_traj.points.append(dyn_point)

    dyn_traj.header = copy.copy(trajectory.header)
    dyn_traj.header.stamp = stamp
    dyn_traj.joint_names = registry.all_joint_names()
    return dyn_traj


def stop_trajectory(joint_names: Sequence[str] = ()) -> DynamicJointTrajectory:
    """Empty trajectory; the controller treats it as a stop command."""
    return DynamicJointTrajectory(joint_names=list(joint_names))
