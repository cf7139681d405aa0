import pytest

from robot_trajectory_action.bus import InProcessTransport
from robot_trajectory_action.config import TrajectoryActionConfig
from robot_trajectory_action.dispatcher import TrajectoryActionDispatcher
from robot_trajectory_action.groups import GroupRegistry
from robot_trajectory_action.session import GoalSession, RobotStatusCache

from factories import TWO_GROUPS, RecordingPublisher


@pytest.fixture
def registry():
    return GroupRegistry.from_topic_list(TWO_GROUPS)


@pytest.fixture
def robot_status():
    return RobotStatusCache()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def session(registry, publisher, robot_status):
    """Session for group 0 (joints j1, j2) with a 0.01 goal threshold."""
    return GoalSession(registry.by_id(0), publisher, robot_status, goal_threshold=0.01)


@pytest.fixture
def transport():
    return InProcessTransport(clock=lambda: 1234.5)


@pytest.fixture
def dispatcher(transport):
    config = TrajectoryActionConfig(goal_threshold=0.01, watchdog_period=1.0,
                                    topic_list=TWO_GROUPS)
    dispatcher = TrajectoryActionDispatcher(transport, config)
    yield dispatcher
    dispatcher.shutdown()
