"""
Fake Controller Emulator (Logic Only)

Simulates the multi-group robot controller on the in-process bus:
- Consumes DynamicJointTrajectory commands per group (NS/G/joint_path_command)
- Answers each command on NS/G/joint_path_motion_reply
- Moves each group toward its final waypoint at a bounded speed
- Publishes NS/G/feedback_states and the shared robot_status

This component replaces the real controller for validation purposes.
"""

import argparse
import logging
import threading
import time

from .bus import GoalStatus, InProcessTransport
from .config import load_config
from .dispatcher import (
    COMMAND_SUFFIX,
    FEEDBACK_SUFFIX,
    MOTION_REPLY_SUFFIX,
    ROBOT_STATUS_TOPIC,
    TrajectoryActionDispatcher,
    topic_name,
)
from .groups import GroupRegistry, MotionGroup
from .logging_utils import configure_logging
from .messages import (
    FollowJointTrajectoryFeedback,
    FollowJointTrajectoryGoal,
    JointTrajectory,
    JointTrajectoryPoint,
    MotionReplyResult,
    RobotStatus,
    TriState,
)

logger = logging.getLogger(__name__)


class FakeGroupController:
    """Controller state for one motion group."""

    def __init__(self, group: MotionGroup, max_velocity: float):
        self.group = group
        self.max_velocity = max_velocity
        self.positions = [0.0] * len(group)
        self.target = None
        self.reply = MotionReplyResult.SUCCESS

    def command(self, dyn_traj) -> int:
        """Load a trajectory. An empty trajectory is a stop command."""
        if not dyn_traj.points:
            self.target = None
            return MotionReplyResult.SUCCESS
        if self.reply != MotionReplyResult.SUCCESS:
            return self.reply
        last = dyn_traj.points[-1]
        for dyn_group in last.groups:
            if dyn_group.group_number == self.group.group_id:
                self.target = list(dyn_group.positions)
        return MotionReplyResult.SUCCESS

    def step(self, dt: float) -> bool:
        """Advance toward the target. Returns True while moving."""
        if self.target is None:
            return False
        max_step = self.max_velocity * dt
        moving = False
        for i, goal in enumerate(self.target):
            delta = goal - self.positions[i]
            if abs(delta) > max_step:
                self.positions[i] += max_step if delta > 0 else -max_step
                moving = True
            else:
                self.positions[i] = goal
        if not moving:
            self.target = None
        return moving


class FakeController:
    MAX_VELOCITY = 1.0  # rad/s

    def __init__(self, bus, registry: GroupRegistry, max_velocity: float = MAX_VELOCITY,
                 publish_status: bool = True):
        self.bus = bus
        self.registry = registry
        self.publish_status = publish_status
        self.lock = threading.Lock()
        self.running = False
        self.loop_thread = None
        self.feedback_enabled = True
        self.in_motion = False

        self.groups = {}
        for group in registry:
            self.groups[group.group_id] = FakeGroupController(group, max_velocity)
            self.bus.subscribe(topic_name(group.namespace, group.name, COMMAND_SUFFIX),
                               self._command_handler(group.group_id))

        if not registry.is_single_group():
            self.bus.subscribe(COMMAND_SUFFIX, self.handle_fan_out_command)

    def _command_handler(self, group_id):
        def handle(dyn_traj):
            self.handle_group_command(group_id, dyn_traj)
        return handle

    def handle_group_command(self, group_id, dyn_traj):
        """Receive a per-group trajectory from the 'wire'."""
        with self.lock:
            reply = self.groups[group_id].command(dyn_traj)
        logger.info(f'[CONTROLLER] Group {group_id}: {len(dyn_traj.points)} points, reply {reply}')
        group = self.registry.by_id(group_id)
        self.bus.publish(topic_name(group.namespace, group.name, MOTION_REPLY_SUFFIX),
                         MotionReplyResult(val=reply))

    def handle_fan_out_command(self, dyn_traj):
        """A fan-out trajectory moves every group it addresses."""
        with self.lock:
            for controller in self.groups.values():
                controller.command(dyn_traj)
        self.bus.publish(MOTION_REPLY_SUFFIX, MotionReplyResult(val=MotionReplyResult.SUCCESS))

    def set_reply(self, group_id, reply: int):
        """Fault injection: answer further commands for a group with ``reply``."""
        with self.lock:
            self.groups[group_id].reply = reply

    def step(self, dt: float = 0.01):
        """One control cycle: move, then publish feedback and status."""
        with self.lock:
            moving = [controller.step(dt) for controller in self.groups.values()]
            self.in_motion = any(moving)
            snapshot = [(c.group, list(c.positions)) for c in self.groups.values()]

        if self.feedback_enabled:
            for group, positions in snapshot:
                fb = FollowJointTrajectoryFeedback()
                fb.header.stamp = time.time()
                fb.joint_names = list(group.joint_names)
                fb.actual.positions = positions
                self.bus.publish(topic_name(group.namespace, group.name, FEEDBACK_SUFFIX), fb)

        if self.publish_status:
            status = RobotStatus()
            status.header.stamp = time.time()
            status.in_motion = TriState(val=TriState.TRUE if self.in_motion else TriState.FALSE)
            self.bus.publish(ROBOT_STATUS_TOPIC, status)

    def start(self, rate: float = 100.0):
        self.running = True
        self.loop_thread = threading.Thread(target=self.control_loop, args=(rate,), daemon=True)
        self.loop_thread.start()

    def control_loop(self, rate):
        """Fixed-rate control loop simulation."""
        dt = 1.0 / rate
        while self.running:
            self.step(dt)
            time.sleep(dt)

    def stop(self):
        self.running = False
        if self.loop_thread:
            self.loop_thread.join(timeout=1.0)


def _demo_goal(group: MotionGroup, target: float) -> FollowJointTrajectoryGoal:
    trajectory = JointTrajectory(joint_names=list(group.joint_names))
    trajectory.points.append(JointTrajectoryPoint(positions=[0.0] * len(group), time_from_start=0.0))
    trajectory.points.append(JointTrajectoryPoint(positions=[target] * len(group),
                                                  time_from_start=2.0))
    return FollowJointTrajectoryGoal(trajectory=trajectory)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Run the trajectory action against a fake controller')
    parser.add_argument('--config', help='YAML file with topic_list / controller_joint_names')
    parser.add_argument('--target', type=float, default=0.5, help='Joint target for every group (rad)')
    parser.add_argument('--timeout', type=float, default=10.0)
    args = parser.parse_args(argv)

    configure_logging()
    config = load_config(args.config)
    if not config.topic_list and not config.controller_joint_names:
        config.controller_joint_names = ['joint_1', 'joint_2', 'joint_3',
                                         'joint_4', 'joint_5', 'joint_6']

    print("=== TRAJECTORY ACTION SIMULATOR STARTING ===")
    transport = InProcessTransport()
    dispatcher = TrajectoryActionDispatcher(transport, config)
    controller = FakeController(transport.bus, dispatcher.registry)
    controller.start()
    transport.start_timers()

    handles = []
    for group in dispatcher.registry:
        server = dispatcher.action_servers[group.group_id]
        handles.append(server.send_goal(_demo_goal(group, args.target)))

    try:
        deadline = time.monotonic() + args.timeout
        while time.monotonic() < deadline and not all(h.is_terminal() for h in handles):
            time.sleep(0.1)
    except KeyboardInterrupt:
        print("Stopping...")
    finally:
        controller.stop()
        dispatcher.shutdown()

    for group, handle in zip(dispatcher.registry, handles):
        print(f"Group {group.group_id}: {handle.status}")
    print("=== SIMULATION ENDED ===")
    return 0 if all(h.status == GoalStatus.SUCCEEDED for h in handles) else 1


if __name__ == "__main__":
    raise SystemExit(main())
