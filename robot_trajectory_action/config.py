"""
Configuration for the trajectory action server.

Sources, lowest priority first:
1. Defaults
2. YAML file (plain keys, or a ROS 2 parameter file ``<node>: ros__parameters``)
3. Environment (GOAL_THRESHOLD, WATCHDOG_PERIOD, TOPIC_LIST_FILE)
4. Explicit keyword overrides
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

import yaml

from .groups import GroupConfigError, GroupRegistry
from .watchdog import WATCHDOG_PERIOD

logger = logging.getLogger(__name__)

DEFAULT_GOAL_THRESHOLD = 0.01


@dataclass
class TrajectoryActionConfig:
    goal_threshold: float = DEFAULT_GOAL_THRESHOLD
    watchdog_period: float = WATCHDOG_PERIOD
    topic_list: Optional[List[Mapping]] = None
    controller_joint_names: List[str] = field(default_factory=list)

    def validate(self):
        if self.goal_threshold <= 0.0:
            raise ValueError(f'goal_threshold must be positive, got {self.goal_threshold}')
        if self.watchdog_period <= 0.0:
            raise ValueError(f'watchdog_period must be positive, got {self.watchdog_period}')
        return self


def _parameters(data: Mapping) -> Mapping:
    """Unwrap the ``<node>: ros__parameters`` layout if present."""
    for value in data.values():
        if isinstance(value, Mapping) and 'ros__parameters' in value:
            return value['ros__parameters'] or {}
    return data


def _read_yaml(path: str) -> Mapping:
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f'{path}: expected a mapping at top level')
    return _parameters(data)


def _apply(config: TrajectoryActionConfig, params: Mapping):
    constraints = params.get('constraints') or {}
    if 'goal_threshold' in constraints:
        config.goal_threshold = float(constraints['goal_threshold'])
    if 'constraints.goal_threshold' in params:
        config.goal_threshold = float(params['constraints.goal_threshold'])
    if 'goal_threshold' in params:
        config.goal_threshold = float(params['goal_threshold'])
    if 'watchdog_period' in params:
        config.watchdog_period = float(params['watchdog_period'])
    if params.get('topic_list') is not None:
        config.topic_list = list(params['topic_list'])
    if params.get('controller_joint_names'):
        config.controller_joint_names = [str(j) for j in params['controller_joint_names']]


def load_config(path: Optional[str] = None, **overrides) -> TrajectoryActionConfig:
    config = TrajectoryActionConfig()

    if path:
        logger.info(f'Loading configuration from {path}')
        _apply(config, _read_yaml(path))

    # Override from environment if present
    if 'GOAL_THRESHOLD' in os.environ:
        config.goal_threshold = float(os.environ['GOAL_THRESHOLD'])
    if 'WATCHDOG_PERIOD' in os.environ:
        config.watchdog_period = float(os.environ['WATCHDOG_PERIOD'])
    if os.environ.get('TOPIC_LIST_FILE'):
        topic_params = _read_yaml(os.environ['TOPIC_LIST_FILE'])
        config.topic_list = list(topic_params.get('topic_list') or [])

    _apply(config, {k: v for k, v in overrides.items() if v is not None})
    return config.validate()


def build_registry(config: TrajectoryActionConfig) -> GroupRegistry:
    """Registry from ``topic_list``, or a single synthetic group when it is absent."""
    if config.topic_list:
        return GroupRegistry.from_topic_list(config.topic_list)

    logger.warning('Expecting/assuming single motion-group controller configuration')
    if not config.controller_joint_names:
        raise GroupConfigError('No topic_list and no controller_joint_names configured')
    return GroupRegistry.single(config.controller_joint_names)
