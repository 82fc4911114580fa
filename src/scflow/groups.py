# groups.py
from __future__ import annotations

import hashlib
from typing import Collection, List, Sequence, Tuple

from .errors import InvalidGroupSpec, UnknownSampleInGroup
from .model import ExperimentGroup

GROUP_NAME_JOINER = "_"


def group_name(members: Sequence[str]) -> str:
    """Stable name for a member list; same members in same order -> same name."""
    return GROUP_NAME_JOINER.join(members)


def member_digest(members: Sequence[str]) -> str:
    """Short stable digest of an ordered member list."""
    return hashlib.sha1(",".join(members).encode("utf-8")).hexdigest()[:8]


def parse_group_spec(spec: str, index: int) -> List[str]:
    if not isinstance(spec, str) or not spec.strip():
        raise InvalidGroupSpec(group_index=index, reason="empty group specification")

    members = [m.strip() for m in spec.split(",")]
    if any(not m for m in members):
        raise InvalidGroupSpec(group_index=index, reason=f"empty member in {spec!r}")

    seen = set()
    for m in members:
        if m in seen:
            raise InvalidGroupSpec(group_index=index, reason=f"sample '{m}' listed twice")
        seen.add(m)
    return members


def resolve(group_specs: Sequence[str], known_samples: Collection[str]) -> Tuple[ExperimentGroup, ...]:
    """
    Turn comma-separated group specs into ExperimentGroups.

    Groups keep config order, members keep spec order. Every member must
    be a declared sample.
    """
    known = set(known_samples)
    groups: List[ExperimentGroup] = []
    names: dict[str, int] = {}
    seen_members: dict[Tuple[str, ...], int] = {}

    for index, spec in enumerate(group_specs):
        members = parse_group_spec(spec, index)
        for m in members:
            if m not in known:
                raise UnknownSampleInGroup(sample=m, group_index=index)

        key = tuple(members)
        if key in seen_members:
            raise InvalidGroupSpec(
                group_index=index,
                reason=f"same members as group #{seen_members[key]}",
            )
        seen_members[key] = index

        # "a,b" and "a_b" both join to "a_b"; the later one gets a suffix
        name = group_name(members)
        if name in names:
            name = f"{name}_{member_digest(members)}"
        names[name] = index
        groups.append(ExperimentGroup(name=name, members=key))

    return tuple(groups)
