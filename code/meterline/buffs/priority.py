"""Monitor filtering, priority ordering and text-mode truncation."""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Sequence

from pydantic import Field

from meterline.buffs.timer import ActiveBuff
from meterline.live.models import LiveBaseModel

TEXT_MAX_VISIBLE_MIN = 1
TEXT_MAX_VISIBLE_MAX = 20

RelatedLookup = Callable[[int], Collection[int]]


class BuffDisplayGroup(LiveBaseModel):
    """A named slot of the grouped text display with its own priority order."""

    name: str
    buff_ids: list[int] = []
    priority_ids: list[int] = []
    max_visible: int | None = Field(None, ge=TEXT_MAX_VISIBLE_MIN, le=TEXT_MAX_VISIBLE_MAX)


class BuffGroupView(LiveBaseModel):
    name: str
    buffs: list[ActiveBuff] = []


def clamp_max_visible(value: int) -> int:
    return max(TEXT_MAX_VISIBLE_MIN, min(value, TEXT_MAX_VISIBLE_MAX))


def is_monitored(
    buff: ActiveBuff,
    monitored_ids: Collection[int],
    monitor_all: bool = False,
    related_base_ids: RelatedLookup | None = None,
) -> bool:
    """A buff passes when monitored directly or through its source config."""
    if monitor_all or buff.base_id in monitored_ids:
        return True
    if buff.source_config_id == 0 or related_base_ids is None:
        return False
    return any(rid in monitored_ids for rid in related_base_ids(buff.source_config_id))


def filter_monitored(
    buffs: Iterable[ActiveBuff],
    monitored_ids: Collection[int],
    monitor_all: bool = False,
    related_base_ids: RelatedLookup | None = None,
) -> list[ActiveBuff]:
    if not monitored_ids and not monitor_all:
        return []
    monitored = set(monitored_ids)
    return [
        buff for buff in buffs
        if is_monitored(buff, monitored, monitor_all, related_base_ids)
    ]


def order_by_priority(
    buffs: Iterable[ActiveBuff],
    *priority_lists: Sequence[int],
) -> list[ActiveBuff]:
    """Stable sort by rank in each priority list in turn.

    Ids absent from a list rank after every id in it; ties keep the incoming
    (last-observed) order.
    """
    # unlisted ids rank at len(ids), past every listed position even with duplicates
    indexes = [
        ({base_id: idx for idx, base_id in reversed(list(enumerate(ids)))}, len(ids))
        for ids in priority_lists
    ]

    def rank(buff: ActiveBuff) -> tuple[int, ...]:
        return tuple(index.get(buff.base_id, unlisted) for index, unlisted in indexes)

    return sorted(buffs, key=rank)


def truncate_text_buffs(
    buffs: Iterable[ActiveBuff],
    priority_ids: Sequence[int],
    max_visible: int,
) -> list[ActiveBuff]:
    """Keep the ``max_visible`` highest-priority buffs (limit clamped to 1-20)."""
    return order_by_priority(buffs, priority_ids)[:clamp_max_visible(max_visible)]


def group_text_buffs(
    buffs: Iterable[ActiveBuff],
    groups: Sequence[BuffDisplayGroup],
    global_priority: Sequence[int],
    default_max_visible: int,
) -> list[BuffGroupView]:
    """Grouped text display: per-group priority first, then the profile's.

    A buff belongs to the first group listing its id; buffs in no group are
    collected in a trailing unnamed group under the global order.
    """
    pending = list(buffs)
    views = []
    for group in groups:
        wanted = set(group.buff_ids)
        members = [b for b in pending if b.base_id in wanted]
        pending = [b for b in pending if b.base_id not in wanted]
        limit = group.max_visible if group.max_visible is not None else default_max_visible
        ordered = order_by_priority(members, group.priority_ids, global_priority)
        views.append(BuffGroupView(
            name=group.name,
            buffs=ordered[:clamp_max_visible(limit)],
        ))
    if pending:
        views.append(BuffGroupView(
            name="",
            buffs=truncate_text_buffs(pending, global_priority, default_max_visible),
        ))
    return views
