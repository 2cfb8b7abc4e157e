"""Recount grouping: roll sub-effect skills up into their parent ability.

Group membership is static configuration, injected as a lookup from skill id
to ``RecountGroup``. Group rows are derived from the summed raw counters of
their members, never from averaged member percentages.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Collection, Iterable, Mapping
from typing import Literal

from pydantic import Field

from meterline.live.models import LiveBaseModel, RawSkillStats, SkillRow
from meterline.pipeline.rows import (
    NameResolver,
    compute_skill_rows,
    default_skill_name,
    skill_rate_fields,
)

logger = logging.getLogger(__name__)


class RecountGroup(LiveBaseModel):
    recount_id: int
    recount_name: str
    skill_ids: list[int] = []


GroupLookup = Callable[[int], RecountGroup | None]


class RecountTable:
    """Skill id -> recount group lookup built from static group definitions."""

    def __init__(self, groups: Iterable[RecountGroup] = ()) -> None:
        self._groups: dict[int, RecountGroup] = {}
        self._by_skill: dict[int, RecountGroup] = {}
        for group in groups:
            self._groups[group.recount_id] = group
            for skill_id in group.skill_ids:
                owner = self._by_skill.get(skill_id)
                if owner is not None:
                    logger.warning(
                        "Skill %d listed in recount groups %d and %d, keeping %d",
                        skill_id, owner.recount_id, group.recount_id, owner.recount_id,
                    )
                    continue
                self._by_skill[skill_id] = group

    def __len__(self) -> int:
        return len(self._groups)

    def group_for(self, skill_id: int) -> RecountGroup | None:
        return self._by_skill.get(skill_id)


class GroupRow(LiveBaseModel):
    recount_id: int
    recount_name: str
    skill_ids: list[int]
    total_dmg: int
    dps: float
    dmg_pct: float
    crit_rate: float
    crit_dmg_rate: float
    lucky_rate: float
    lucky_dmg_rate: float
    hits: int
    hits_per_minute: float
    crit_hits: int
    crit_total_value: int
    lucky_hits: int
    lucky_total_value: int
    children: list[SkillRow] = []


class GroupedSkills(LiveBaseModel):
    groups: list[GroupRow] = []
    ungrouped: list[SkillRow] = []


class DisplayRow(LiveBaseModel):
    depth: int
    kind: Literal["group", "skill"]
    key: int  # recount id for groups, skill id for skills
    parent_recount_id: int | None = None
    expanded: bool = False
    row: GroupRow | SkillRow = Field(union_mode="left_to_right")


def sum_skill_stats(stats: Iterable[RawSkillStats]) -> RawSkillStats:
    total_value = hits = crit_hits = crit_total_value = 0
    lucky_hits = lucky_total_value = 0
    for s in stats:
        total_value += s.total_value
        hits += s.hits
        crit_hits += s.crit_hits
        crit_total_value += s.crit_total_value
        lucky_hits += s.lucky_hits
        lucky_total_value += s.lucky_total_value
    return RawSkillStats(
        total_value=total_value,
        hits=hits,
        crit_hits=crit_hits,
        crit_total_value=crit_total_value,
        lucky_hits=lucky_hits,
        lucky_total_value=lucky_total_value,
    )


def group_skills(
    skills: Mapping[int, RawSkillStats],
    elapsed_ms: int,
    parent_total: int,
    group_of: GroupLookup,
    name_resolver: NameResolver | None = None,
) -> GroupedSkills:
    """Partition ``skills`` into recount groups and an ungrouped remainder.

    Group counters sum every member, so a member with hits but no total
    still counts toward the group's hits and ``skill_ids``. Children are
    skill rows and follow the skill-row rule: zero-total members are not
    listed. A group whose summed total is not positive is dropped.
    """
    resolve = name_resolver or default_skill_name
    groups: dict[int, RecountGroup] = {}
    members: dict[int, dict[int, RawSkillStats]] = {}
    ungrouped: dict[int, RawSkillStats] = {}

    for skill_id, stats in skills.items():
        group = group_of(skill_id)
        if group is None:
            ungrouped[skill_id] = stats
            continue
        groups.setdefault(group.recount_id, group)
        members.setdefault(group.recount_id, {})[skill_id] = stats

    group_rows = []
    for recount_id, member_stats in members.items():
        summed = sum_skill_stats(member_stats.values())
        if summed.total_value <= 0:
            continue
        group = groups[recount_id]
        group_rows.append(GroupRow(
            recount_id=recount_id,
            recount_name=group.recount_name,
            skill_ids=sorted(member_stats),
            crit_hits=summed.crit_hits,
            crit_total_value=summed.crit_total_value,
            lucky_hits=summed.lucky_hits,
            lucky_total_value=summed.lucky_total_value,
            children=compute_skill_rows(member_stats, elapsed_ms, parent_total, resolve),
            **skill_rate_fields(summed, elapsed_ms, parent_total),
        ))
    group_rows.sort(key=lambda r: r.total_dmg, reverse=True)

    return GroupedSkills(
        groups=group_rows,
        ungrouped=compute_skill_rows(ungrouped, elapsed_ms, parent_total, resolve),
    )


def sort_value(row: LiveBaseModel, field: str) -> float:
    """Numeric sort key; missing or non-numeric fields sort as 0."""
    value = getattr(row, field, 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value) if math.isfinite(value) else 0.0


def sort_rows(rows: Iterable, field: str = "total_dmg", descending: bool = True) -> list:
    return sorted(rows, key=lambda r: sort_value(r, field), reverse=descending)


def flatten_grouped_rows(
    grouped: GroupedSkills,
    expanded: Collection[int] = (),
    sort_key: str = "total_dmg",
    descending: bool = True,
    groups_first: bool = True,
) -> list[DisplayRow]:
    """Lay grouped skills out as a depth-annotated list for display.

    Top-level rows (groups and ungrouped skills) have depth 0. Children of a
    group in ``expanded`` follow it with depth 1. Groups and ungrouped skills
    are sorted independently and then concatenated.
    """
    group_block: list[DisplayRow] = []
    for group in sort_rows(grouped.groups, sort_key, descending):
        is_open = group.recount_id in expanded
        group_block.append(DisplayRow(
            depth=0,
            kind="group",
            key=group.recount_id,
            expanded=is_open,
            row=group,
        ))
        if not is_open:
            continue
        for child in sort_rows(group.children, sort_key, descending):
            group_block.append(DisplayRow(
                depth=1,
                kind="skill",
                key=child.skill_id,
                parent_recount_id=group.recount_id,
                row=child,
            ))

    skill_block = [
        DisplayRow(depth=0, kind="skill", key=row.skill_id, row=row)
        for row in sort_rows(grouped.ungrouped, sort_key, descending)
    ]

    if groups_first:
        return group_block + skill_block
    return skill_block + group_block
