import pytest

from robot_trajectory_action.groups import GroupRegistry
from robot_trajectory_action.messages import Header, JointTrajectory, JointTrajectoryPoint
from robot_trajectory_action.translator import (
    fan_out_joints_match,
    stop_trajectory,
    translate_fan_out,
    translate_group,
)

from factories import trajectory


def test_translate_group_passes_channels_and_fills_missing(registry):
    group = registry.by_id(0)
    traj = trajectory(['j1', 'j2'], ([0.0, 0.0], 0.0), ([1.0, 2.0], 2.0))
    traj.points[1].velocities = [0.1, 0.2]

    dyn = translate_group(traj, group)

    assert dyn.header is traj.header
    assert dyn.joint_names == ['j1', 'j2']
    assert len(dyn.points) == 2
    for point in dyn.points:
        assert point.num_groups == 1
        assert len(point.groups) == 1

    last = dyn.points[1].groups[0]
    assert last.group_number == 0
    assert last.num_joints == 2
    assert last.positions == [1.0, 2.0]
    assert last.velocities == [0.1, 0.2]
    assert last.accelerations == [0.0, 0.0]
    assert last.effort == [0.0, 0.0]
    assert last.time_from_start == 2.0
    assert dyn.points[0].groups[0].velocities == [0.0, 0.0]


def test_translate_group_echoes_input_joint_order(registry):
    traj = trajectory(['j2', 'j1'], ([2.0, 1.0], 1.0))

    dyn = translate_group(traj, registry.by_id(0))

    assert dyn.joint_names == ['j2', 'j1']
    assert dyn.points[0].groups[0].positions == [2.0, 1.0]


def test_fan_out_with_missing_group(registry):
    traj = trajectory(['j1', 'j2'], ([0.5, 0.6], 1.0))

    dyn = translate_fan_out(traj, registry, stamp=99.0)

    assert dyn.joint_names == ['j1', 'j2', 'k1']
    assert len(dyn.points) == 1
    point = dyn.points[0]
    assert point.num_groups == 2

    arm, positioner = point.groups
    assert arm.group_number == 0 and arm.num_joints == 2
    assert arm.positions == [0.5, 0.6]
    assert arm.velocities == [0.0, 0.0]
    assert arm.accelerations == [0.0, 0.0]
    assert arm.effort == [0.0, 0.0]
    assert arm.time_from_start == 1.0

    assert positioner.group_number == 1 and positioner.num_joints == 1
    assert positioner.positions == [0.0]
    assert positioner.velocities == [0.0]
    assert positioner.accelerations == [0.0]
    assert positioner.effort == [0.0]
    assert positioner.time_from_start == 1.0


def test_fan_out_slices_each_group_from_concatenated_names(registry):
    traj = JointTrajectory(joint_names=['k1', 'j1', 'j2'])
    traj.points.append(JointTrajectoryPoint(
        positions=[3.0, 1.0, 2.0],
        velocities=[0.3, 0.1, 0.2],
        effort=[30.0, 10.0, 20.0],
        time_from_start=4.0))

    arm, positioner = translate_fan_out(traj, registry, stamp=0.0).points[0].groups

    assert arm.positions == [1.0, 2.0]
    assert arm.velocities == [0.1, 0.2]
    assert arm.accelerations == [0.0, 0.0]
    assert arm.effort == [10.0, 20.0]
    assert positioner.positions == [3.0]
    assert positioner.velocities == [0.3]
    assert positioner.effort == [30.0]


@pytest.mark.parametrize('num_points', [1, 3, 7])
def test_fan_out_dimensions(num_points):
    registry = GroupRegistry.from_topic_list([
        {'group': 0, 'joints': ['a1', 'a2', 'a3']},
        {'group': 1, 'joints': ['b1', 'b2']},
        {'group': 2, 'joints': ['c1']},
    ])
    points = [([float(i)] * 5, float(i)) for i in range(num_points)]
    traj = trajectory(['a1', 'a2', 'a3', 'c1', 'x9'], *points)

    dyn = translate_fan_out(traj, registry, stamp=0.0)

    assert len(dyn.points) == num_points
    for point in dyn.points:
        assert point.num_groups == 3
        assert len(point.groups) == 3
        for dyn_group, group in zip(point.groups, registry):
            for channel in (dyn_group.positions, dyn_group.velocities,
                            dyn_group.accelerations, dyn_group.effort):
                assert len(channel) == len(group)


def test_fan_out_zero_fills_empty_channels_for_every_group(registry):
    traj = JointTrajectory(joint_names=['j1', 'j2', 'k1'])
    traj.points.append(JointTrajectoryPoint(time_from_start=1.0))

    for dyn_group in translate_fan_out(traj, registry, stamp=0.0).points[0].groups:
        zeros = [0.0] * dyn_group.num_joints
        assert dyn_group.positions == zeros
        assert dyn_group.velocities == zeros
        assert dyn_group.accelerations == zeros
        assert dyn_group.effort == zeros


def test_fan_out_uses_configured_group_ids():
    registry = GroupRegistry.from_topic_list([
        {'group': 5, 'joints': ['b1']},
        {'group': 2, 'joints': ['a1']},
    ])
    traj = trajectory(['a1', 'b1'], ([1.0, 2.0], 1.0))

    groups = translate_fan_out(traj, registry, stamp=0.0).points[0].groups

    assert [g.group_number for g in groups] == [2, 5]
    assert [g.positions for g in groups] == [[1.0], [2.0]]


def test_fan_out_refreshes_stamp_without_touching_input(registry):
    traj = trajectory(['j1', 'j2'], ([0.5, 0.6], 1.0), frame_id='world', stamp=10.0)

    dyn = translate_fan_out(traj, registry, stamp=1234.5)

    assert dyn.header.stamp == 1234.5
    assert dyn.header.frame_id == 'world'
    assert traj.header == Header(stamp=10.0, frame_id='world')


def test_stop_trajectory_is_empty():
    stop = stop_trajectory(('j1', 'j2'))
    assert stop.points == []
    assert stop.joint_names == ['j1', 'j2']
    assert stop_trajectory().joint_names == []


@pytest.mark.parametrize('joint_names', [
    ['j1', 'j2'],
    ['k1'],
    ['j1', 'j2', 'k1'],
    ['k1', 'j1', 'j2'],
])
def test_fan_out_accepts_whole_groups_in_any_group_order(registry, joint_names):
    traj = trajectory(joint_names, ([0.0] * len(joint_names), 1.0))
    assert fan_out_joints_match(traj, registry)


@pytest.mark.parametrize('joint_names', [
    ['j1'],
    ['j2'],
    ['j2', 'j1'],
    ['j1', 'k1', 'j2'],
    ['j1', 'j2', 'x9'],
    ['j1', 'j2', 'j1'],
])
def test_fan_out_rejects_partial_interleaved_or_unknown_joints(registry, joint_names):
    traj = trajectory(joint_names, ([0.0] * len(joint_names), 1.0))
    assert not fan_out_joints_match(traj, registry)


def test_fan_out_rejects_channel_length_mismatch(registry):
    traj = trajectory(['j1', 'j2'], ([0.5, 0.6], 1.0))
    traj.points[0].velocities = [0.1]
    assert not fan_out_joints_match(traj, registry)
