"""
In-Process Transport

A lightweight, synchronous publish/subscribe bus with an action server
emulation, standing in for the ROS 2 middleware in the simulator and tests.
"""

import itertools
import logging
import threading
import time
from collections import defaultdict

from .messages import FollowJointTrajectoryGoal, FollowJointTrajectoryResult

logger = logging.getLogger(__name__)


class MessageBus:
    def __init__(self):
        self._subscribers = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic, callback):
        """Subscribe to a topic."""
        with self._lock:
            self._subscribers[topic].append(callback)

    def unsubscribe(self, topic, callback):
        with self._lock:
            if callback in self._subscribers[topic]:
                self._subscribers[topic].remove(callback)

    def publish(self, topic, message):
        """Publish a message to a topic (Synchronous delivery)."""
        with self._lock:
            # Copy list to avoid modification during iteration
            callbacks = list(self._subscribers[topic])

        for callback in callbacks:
            try:
                callback(message)
            except Exception:
                logger.exception(f'Exception in callback for {topic}')


class GoalStateError(RuntimeError):
    """Illegal goal handle transition (e.g. a second terminal outcome)."""


class GoalStatus:
    PENDING = 'PENDING'
    ACTIVE = 'ACTIVE'
    SUCCEEDED = 'SUCCEEDED'
    ABORTED = 'ABORTED'
    CANCELED = 'CANCELED'
    REJECTED = 'REJECTED'

    TERMINAL = (SUCCEEDED, ABORTED, CANCELED, REJECTED)


class InProcessGoalHandle:
    """
    Goal handle with actionlib-style status tracking.

    Every transition is recorded in ``transitions``; a transition out of a
    terminal status raises GoalStateError.
    """

    _ids = itertools.count(1)

    def __init__(self, goal: FollowJointTrajectoryGoal):
        self.goal_id = next(self._ids)
        self.goal = goal
        self.status = GoalStatus.PENDING
        self.result = None
        self.transitions = []

    def _transition(self, status, allowed, error_code=FollowJointTrajectoryResult.SUCCESSFUL,
                    reason=''):
        if self.status not in allowed:
            raise GoalStateError(f'Goal {self.goal_id}: cannot go from {self.status} to {status}')
        self.status = status
        self.transitions.append(status)
        if status in GoalStatus.TERMINAL:
            self.result = FollowJointTrajectoryResult(error_code=error_code, error_string=reason)

    def accept(self):
        self._transition(GoalStatus.ACTIVE, (GoalStatus.PENDING,))

    def reject(self, result_code=FollowJointTrajectoryResult.INVALID_GOAL, reason=''):
        self._transition(GoalStatus.REJECTED, (GoalStatus.PENDING, GoalStatus.ACTIVE),
                         result_code, reason)

    def succeed(self):
        self._transition(GoalStatus.SUCCEEDED, (GoalStatus.ACTIVE,))

    def abort(self, reason=''):
        # Default result code; the cause travels in error_string
        self._transition(GoalStatus.ABORTED, (GoalStatus.ACTIVE,), reason=reason)

    def cancel(self):
        self._transition(GoalStatus.CANCELED, (GoalStatus.PENDING, GoalStatus.ACTIVE))

    def is_terminal(self) -> bool:
        return self.status in GoalStatus.TERMINAL

    def __repr__(self):
        return f'InProcessGoalHandle(id={self.goal_id}, status={self.status})'


class BusPublisher:
    def __init__(self, bus, topic):
        self.bus = bus
        self.topic = topic

    def publish(self, msg):
        self.bus.publish(self.topic, msg)

    def destroy(self):
        pass


class BusSubscription:
    def __init__(self, bus, topic, callback):
        self.bus = bus
        self.topic = topic
        self.callback = callback
        bus.subscribe(topic, callback)

    def destroy(self):
        self.bus.unsubscribe(self.topic, self.callback)


class BusActionServer:
    def __init__(self, name, goal_callback, cancel_callback):
        self.name = name
        self.goal_callback = goal_callback
        self.cancel_callback = cancel_callback
        self.started = False

    def start(self):
        self.started = True

    def send_goal(self, goal: FollowJointTrajectoryGoal) -> InProcessGoalHandle:
        if not self.started:
            raise RuntimeError(f'Action server {self.name} is not started')
        handle = InProcessGoalHandle(goal)
        self.goal_callback(handle)
        return handle

    def cancel_goal(self, handle: InProcessGoalHandle) -> bool:
        return bool(self.cancel_callback(handle))

    def destroy(self):
        self.started = False


class BusTimer:
    """
    Periodic timer. ``fire()`` runs one tick synchronously; ``start()``
    runs ticks from a background thread every ``period`` seconds.
    """

    def __init__(self, period, callback):
        self.period = period
        self.callback = callback
        self.running = False
        self.thread = None

    def fire(self):
        self.callback()

    def start(self):
        self.running = True
        self.thread = threading.Thread(target=self._loop, daemon=True)
        self.thread.start()

    def _loop(self):
        next_tick = time.monotonic() + self.period
        while self.running:
            delay = next_tick - time.monotonic()
            if delay > 0:
                time.sleep(min(delay, 0.05))
                continue
            next_tick += self.period
            try:
                self.callback()
            except Exception:
                logger.exception('Exception in timer callback')

    def destroy(self):
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)


class InProcessTransport:
    """Transport backed by a MessageBus; records everything it creates by name."""

    def __init__(self, bus=None, clock=time.time):
        self.bus = bus or MessageBus()
        self.clock = clock
        self.publishers = {}
        self.subscriptions = []
        self.action_servers = {}
        self.timers = []

    def create_publisher(self, msg_type, topic):
        publisher = BusPublisher(self.bus, topic)
        self.publishers[topic] = publisher
        return publisher

    def create_subscription(self, msg_type, topic, callback):
        subscription = BusSubscription(self.bus, topic, callback)
        self.subscriptions.append(subscription)
        return subscription

    def create_action_server(self, name, goal_callback, cancel_callback):
        server = BusActionServer(name, goal_callback, cancel_callback)
        self.action_servers[name] = server
        return server

    def create_timer(self, period, callback):
        timer = BusTimer(period, callback)
        self.timers.append(timer)
        return timer

    def now(self):
        return self.clock()

    def fire_timers(self):
        for timer in list(self.timers):
            timer.fire()

    def start_timers(self):
        for timer in self.timers:
            timer.start()
