"""Composite ("layered") buff visuals chosen by stack count."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pydantic import Field

from meterline.buffs.timer import ActiveBuff
from meterline.live.models import LiveBaseModel


class LayeredBuffSpec(LiveBaseModel):
    base_id: int
    images: list[str] = Field(min_length=1)  # one image per stack count, 1-based

    @property
    def layer_count(self) -> int:
        return len(self.images)


class LayeredBuffView(LiveBaseModel):
    base_id: int
    layer: int
    image: str
    remaining_ms: int
    duration_ms: int


def clamp_layer(layer: int, layer_count: int) -> int:
    return max(1, min(layer, layer_count))


def resolve_layered_buffs(
    buffs: Iterable[ActiveBuff],
    specs: Mapping[int, LayeredBuffSpec],
) -> list[LayeredBuffView]:
    views = []
    for buff in buffs:
        spec = specs.get(buff.base_id)
        if spec is None or buff.duration_ms <= 0 or buff.remaining_ms <= 0:
            continue
        layer = clamp_layer(buff.layer, spec.layer_count)
        views.append(LayeredBuffView(
            base_id=buff.base_id,
            layer=layer,
            image=spec.images[layer - 1],
            remaining_ms=buff.remaining_ms,
            duration_ms=buff.duration_ms,
        ))
    return views
