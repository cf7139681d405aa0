"""Message builders shared by the test modules."""

from robot_trajectory_action.messages import (
    FollowJointTrajectoryFeedback,
    FollowJointTrajectoryGoal,
    Header,
    JointTrajectory,
    JointTrajectoryPoint,
    MotionReplyResult,
    RobotStatus,
    TriState,
)

TWO_GROUPS = [
    {'group': 0, 'name': 'arm', 'ns': 'cell', 'joints': ['j1', 'j2']},
    {'group': 1, 'name': 'positioner', 'ns': 'cell', 'joints': ['k1']},
]


def trajectory(joint_names, *points, frame_id='base_link', stamp=10.0):
    """points: (positions, time_from_start) tuples."""
    traj = JointTrajectory(header=Header(stamp=stamp, frame_id=frame_id),
                           joint_names=list(joint_names))
    for positions, t in points:
        traj.points.append(JointTrajectoryPoint(positions=list(positions), time_from_start=t))
    return traj


def goal(joint_names, *points, **kwargs):
    return FollowJointTrajectoryGoal(trajectory=trajectory(joint_names, *points), **kwargs)


def feedback(joint_names, positions):
    fb = FollowJointTrajectoryFeedback(joint_names=list(joint_names))
    fb.actual.positions = list(positions)
    return fb


def status(in_motion):
    return RobotStatus(in_motion=TriState(val=in_motion))


def reply(val):
    return MotionReplyResult(val=val)


class RecordingPublisher:
    def __init__(self):
        self.messages = []

    def publish(self, msg):
        self.messages.append(msg)

    def destroy(self):
        pass


class TopicRecorder:
    """Collects everything published on one bus topic."""

    def __init__(self, bus, topic):
        self.messages = []
        bus.subscribe(topic, self.messages.append)

    def __len__(self):
        return len(self.messages)

    @property
    def last(self):
        return self.messages[-1]
