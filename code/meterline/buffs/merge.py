"""Last-writer-wins merging of buff observations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from meterline.live.models import BuffUpdateState

logger = logging.getLogger(__name__)


def merge_buff_updates(
    current: Mapping[int, BuffUpdateState],
    updates: Iterable[BuffUpdateState],
) -> dict[int, BuffUpdateState]:
    """Merge a batch into the latest-observation-per-``base_id`` map.

    An update replaces the stored observation only when its ``create_time_ms``
    is strictly greater, so redelivered or reordered batches are harmless.
    Returns a new map (``current`` is left untouched); iteration order is
    last-observed order, a replaced id moving to the end.
    """
    merged = dict(current)
    discarded = 0
    for update in updates:
        existing = merged.get(update.base_id)
        if existing is not None and update.create_time_ms <= existing.create_time_ms:
            discarded += 1
            continue
        merged.pop(update.base_id, None)
        merged[update.base_id] = update
    if discarded:
        logger.debug("Discarded %d stale buff observations", discarded)
    return merged


def merge_buff_ids(user_ids: Iterable[int], default_ids: Iterable[int]) -> list[int]:
    """Ordered union: user-chosen ids first, then defaults not already present."""
    merged: list[int] = []
    seen: set[int] = set()
    for base_id in (*user_ids, *default_ids):
        if base_id not in seen:
            seen.add(base_id)
            merged.append(base_id)
    return merged
