import logging
import os

import pytest
import yaml

from robot_trajectory_action.config import (
    DEFAULT_GOAL_THRESHOLD,
    TrajectoryActionConfig,
    build_registry,
    load_config,
)
from robot_trajectory_action.groups import GroupConfigError

from factories import TWO_GROUPS

PACKAGED_CONFIG = os.path.join(os.path.dirname(__file__), '..', 'config', 'motion_groups.yaml')


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('GOAL_THRESHOLD', 'WATCHDOG_PERIOD', 'TOPIC_LIST_FILE'):
        monkeypatch.delenv(name, raising=False)


def write_yaml(tmp_path, data, name='params.yaml'):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_defaults():
    config = load_config()

    assert config.goal_threshold == DEFAULT_GOAL_THRESHOLD == 0.01
    assert config.watchdog_period == 1.0
    assert config.topic_list is None
    assert config.controller_joint_names == []


def test_packaged_config_loads():
    config = load_config(PACKAGED_CONFIG)
    registry = build_registry(config)

    assert registry.size() == 3
    assert [g.name for g in registry] == ['arm_left', 'arm_right', 'torso']
    assert len(registry.by_id(0)) == 7
    assert registry.by_id(2).joint_names == ('torso_joint_b1',)


def test_plain_yaml(tmp_path):
    path = write_yaml(tmp_path, {
        'constraints': {'goal_threshold': 0.05},
        'watchdog_period': 2.0,
        'topic_list': TWO_GROUPS,
    })

    config = load_config(path)

    assert config.goal_threshold == 0.05
    assert config.watchdog_period == 2.0
    assert config.topic_list == TWO_GROUPS


def test_ros_parameter_file_layout(tmp_path):
    path = write_yaml(tmp_path, {
        'joint_trajectory_action': {
            'ros__parameters': {
                'constraints.goal_threshold': 0.02,
                'controller_joint_names': ['joint_1', 'joint_2'],
            },
        },
    })

    config = load_config(path)

    assert config.goal_threshold == 0.02
    assert config.controller_joint_names == ['joint_1', 'joint_2']


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = write_yaml(tmp_path, {'goal_threshold': 0.05, 'watchdog_period': 2.0})
    topics = write_yaml(tmp_path, {'topic_list': TWO_GROUPS}, name='topics.yaml')
    monkeypatch.setenv('GOAL_THRESHOLD', '0.003')
    monkeypatch.setenv('WATCHDOG_PERIOD', '0.25')
    monkeypatch.setenv('TOPIC_LIST_FILE', topics)

    config = load_config(path)

    assert config.goal_threshold == 0.003
    assert config.watchdog_period == 0.25
    assert config.topic_list == TWO_GROUPS


def test_keyword_overrides_win(monkeypatch):
    monkeypatch.setenv('GOAL_THRESHOLD', '0.003')

    config = load_config(goal_threshold=0.2, watchdog_period=None)

    assert config.goal_threshold == 0.2
    assert config.watchdog_period == 1.0


@pytest.mark.parametrize('overrides', [
    {'goal_threshold': 0.0},
    {'goal_threshold': -0.1},
    {'watchdog_period': 0.0},
])
def test_non_positive_values_are_rejected(overrides):
    with pytest.raises(ValueError):
        load_config(**overrides)


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / 'list.yaml'
    path.write_text('- 1\n- 2\n')
    with pytest.raises(ValueError):
        load_config(str(path))


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        load_config(str(tmp_path / 'missing.yaml'))


def test_build_registry_from_topic_list():
    registry = build_registry(TrajectoryActionConfig(topic_list=TWO_GROUPS))
    assert registry.size() == 2
    assert not registry.is_single_group()


def test_build_registry_falls_back_to_single_group(caplog):
    config = TrajectoryActionConfig(controller_joint_names=['joint_1', 'joint_2'])

    with caplog.at_level(logging.WARNING):
        registry = build_registry(config)

    assert registry.is_single_group()
    assert registry.all_joint_names() == ['joint_1', 'joint_2']
    assert 'single motion-group' in caplog.text


def test_build_registry_without_any_joints():
    with pytest.raises(GroupConfigError):
        build_registry(TrajectoryActionConfig())
