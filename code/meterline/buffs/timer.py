"""Lazy-expiry projection of the buff map.

Nothing is scheduled per buff: liveness is recomputed from timestamps on
every tick, so an expired observation simply stops appearing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from meterline.live.models import BuffUpdateState, LiveBaseModel


class ActiveBuff(LiveBaseModel):
    buff_uuid: int
    base_id: int
    layer: int
    duration_ms: int
    create_time_ms: int
    source_config_id: int
    expires_at_ms: int
    remaining_ms: int


def remaining_ms(buff: BuffUpdateState, now_ms: int) -> int:
    return max(0, buff.create_time_ms + buff.duration_ms - now_ms)


def is_active(buff: BuffUpdateState, now_ms: int) -> bool:
    return buff.duration_ms > 0 and remaining_ms(buff, now_ms) > 0


def project_active_buffs(
    buffs: Mapping[int, BuffUpdateState] | Iterable[BuffUpdateState],
    now_ms: int,
) -> list[ActiveBuff]:
    """Unexpired buffs at ``now_ms``, in the order of ``buffs``."""
    if isinstance(buffs, Mapping):
        buffs = buffs.values()
    return [
        ActiveBuff(
            buff_uuid=buff.buff_uuid,
            base_id=buff.base_id,
            layer=buff.layer,
            duration_ms=buff.duration_ms,
            create_time_ms=buff.create_time_ms,
            source_config_id=buff.source_config_id,
            expires_at_ms=buff.create_time_ms + buff.duration_ms,
            remaining_ms=remaining_ms(buff, now_ms),
        )
        for buff in buffs
        if is_active(buff, now_ms)
    ]
