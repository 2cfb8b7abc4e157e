"""Compose the per-tick buff display for a monitor profile."""

from __future__ import annotations

from meterline.buffs.layered import LayeredBuffView, resolve_layered_buffs
from meterline.buffs.priority import (
    BuffGroupView,
    filter_monitored,
    group_text_buffs,
    order_by_priority,
    truncate_text_buffs,
)
from meterline.buffs.profiles import MonitorProfile
from meterline.buffs.timer import ActiveBuff
from meterline.live.models import LiveBaseModel
from meterline.tables import StaticTables


class IconBuff(LiveBaseModel):
    buff: ActiveBuff
    name: str
    sprite_file: str


class TextBuff(LiveBaseModel):
    buff: ActiveBuff
    name: str


class TextBuffGroup(LiveBaseModel):
    name: str
    buffs: list[TextBuff] = []


class BuffDisplayState(LiveBaseModel):
    now_ms: int = 0
    active: list[ActiveBuff] = []
    icons: list[IconBuff] = []
    text: list[TextBuff] = []
    text_groups: list[TextBuffGroup] = []
    layered: list[LayeredBuffView] = []


def _text_buffs(buffs: list[ActiveBuff], tables: StaticTables) -> list[TextBuff]:
    return [TextBuff(buff=b, name=tables.buff_name(b.base_id)) for b in buffs]


def _text_group(view: BuffGroupView, tables: StaticTables) -> TextBuffGroup:
    return TextBuffGroup(name=view.name, buffs=_text_buffs(view.buffs, tables))


def build_display(
    active: list[ActiveBuff],
    profile: MonitorProfile,
    tables: StaticTables,
    now_ms: int,
) -> BuffDisplayState:
    """Split monitored active buffs into layered, icon and text views.

    Layered buffs get their composite visual only. A buff with a sprite in
    its definition is shown as an icon; everything else (including ids with
    no definition at all) falls back to text, which is priority-truncated.
    """
    monitored = filter_monitored(
        active,
        profile.monitored_buff_ids,
        profile.monitor_all_buffs,
        tables.related,
    )
    ordered = order_by_priority(monitored, profile.priority_buff_ids)

    layered = resolve_layered_buffs(ordered, tables.layered)
    layered_ids = {view.base_id for view in layered}

    icons = []
    text_candidates = []
    for buff in ordered:
        if buff.base_id in layered_ids:
            continue
        definition = tables.definitions.get(buff.base_id)
        if definition is not None and definition.has_sprite_file:
            icons.append(IconBuff(
                buff=buff, name=definition.name, sprite_file=definition.sprite_file,
            ))
        else:
            text_candidates.append(buff)

    text: list[TextBuff] = []
    text_groups: list[TextBuffGroup] = []
    if profile.grouped_display:
        views = group_text_buffs(
            text_candidates,
            profile.display_groups,
            profile.priority_buff_ids,
            profile.text_max_visible,
        )
        text_groups = [_text_group(view, tables) for view in views]
    else:
        text = _text_buffs(
            truncate_text_buffs(
                text_candidates, profile.priority_buff_ids, profile.text_max_visible,
            ),
            tables,
        )

    return BuffDisplayState(
        now_ms=now_ms,
        active=ordered,
        icons=icons,
        text=text,
        text_groups=text_groups,
        layered=layered,
    )
