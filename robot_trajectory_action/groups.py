"""
Motion Group Registry

Immutable lookup of the configured motion groups (group id, name, namespace,
ordered joint names). Populated once at startup; read-only afterwards.
"""

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence, Tuple


class GroupConfigError(ValueError):
    """Raised when the motion group configuration is inconsistent."""


@dataclass(frozen=True)
class MotionGroup:
    group_id: int
    name: str
    namespace: str
    joint_names: Tuple[str, ...]

    def __len__(self):
        return len(self.joint_names)

    @property
    def first_joint(self) -> str:
        return self.joint_names[0]


class GroupRegistry:
    """
    Ordered, immutable set of motion groups.

    Groups are kept in ascending group id order. Construction fails if ids
    collide or if two groups share a joint.
    """

    def __init__(self, groups: Iterable[MotionGroup]):
        ordered = sorted(groups, key=lambda g: g.group_id)
        if not ordered:
            raise GroupConfigError('At least one motion group is required')

        seen_joints = {}
        by_id = {}
        for group in ordered:
            if group.group_id < 0:
                raise GroupConfigError(f'Group id must be non-negative, got {group.group_id}')
            if group.group_id in by_id:
                raise GroupConfigError(f'Duplicate group id {group.group_id}')
            if not group.joint_names:
                raise GroupConfigError(f'Group {group.group_id} has no joints')
            if len(set(group.joint_names)) != len(group.joint_names):
                raise GroupConfigError(f'Group {group.group_id} lists a joint more than once')
            for joint in group.joint_names:
                if joint in seen_joints:
                    raise GroupConfigError(
                        f'Joint {joint} belongs to both group {seen_joints[joint]} '
                        f'and group {group.group_id}')
                seen_joints[joint] = group.group_id
            by_id[group.group_id] = group

        self._groups: Tuple[MotionGroup, ...] = tuple(ordered)
        self._by_id = by_id
        self._single = False

    @classmethod
    def from_topic_list(cls, topic_list: Sequence[Mapping]) -> 'GroupRegistry':
        """
        Build from a ``topic_list`` entry sequence.

        Each entry carries ``group`` (id), ``name``, ``ns`` and ``joints``.
        """
        groups = []
        for i, entry in enumerate(topic_list):
            missing = [key for key in ('group', 'joints') if key not in entry]
            if missing:
                raise GroupConfigError(f'topic_list[{i}] is missing {", ".join(missing)}')
            try:
                group_id = int(entry['group'])
            except (TypeError, ValueError) as e:
                raise GroupConfigError(f'topic_list[{i}] has an invalid group id: {e}') from e
            joints = entry['joints']
            if isinstance(joints, str):
                raise GroupConfigError(f'topic_list[{i}] joints must be a list of names')
            groups.append(MotionGroup(
                group_id=group_id,
                name=str(entry.get('name', '')),
                namespace=str(entry.get('ns', '')),
                joint_names=tuple(str(j) for j in joints),
            ))
        return cls(groups)

    @classmethod
    def single(cls, joint_names: Sequence[str]) -> 'GroupRegistry':
        """Degenerate registry: one synthetic, unnamed group with id 0."""
        registry = cls([MotionGroup(0, '', '', tuple(joint_names))])
        registry._single = True
        return registry

    def groups(self) -> List[MotionGroup]:
        return list(self._groups)

    def by_id(self, group_id: int) -> MotionGroup:
        try:
            return self._by_id[group_id]
        except KeyError:
            raise KeyError(f'No motion group with id {group_id}') from None

    def size(self) -> int:
        return len(self._groups)

    def is_single_group(self) -> bool:
        return self._single

    def all_joint_names(self) -> List[str]:
        names = []
        for group in self._groups:
            names.extend(group.joint_names)
        return names

    def __len__(self):
        return self.size()

    def __iter__(self):
        return iter(self._groups)
