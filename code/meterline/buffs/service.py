"""Background service that keeps the buff display fresh between network updates."""

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType

from meterline.buffs.display import BuffDisplayState, build_display
from meterline.buffs.merge import merge_buff_updates
from meterline.buffs.profiles import MonitorProfile
from meterline.buffs.timer import project_active_buffs
from meterline.live.models import BuffUpdateState
from meterline.tables import StaticTables
from meterline.utils import now_ms

logger = logging.getLogger(__name__)

Subscriber = Callable[[BuffDisplayState], None]


class BuffTimerService:
    """Owns the latest-observation-per-id buff map and the tick loop.

    The map has two writers, ``apply_updates`` (network batches) and
    ``tick`` (display refresh), both on the event loop. Merging builds a new
    map and swaps it in, so a tick never sees a half-applied batch.
    """

    def __init__(
        self,
        settings,
        profile: MonitorProfile,
        tables: StaticTables | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.settings = settings
        self._profile = profile
        self._tables = tables or StaticTables()
        self._clock = clock
        self._buffs: dict[int, BuffUpdateState] = {}
        self._display = BuffDisplayState()
        self._subscribers: list[Subscriber] = []
        self._task: asyncio.Task | None = None
        self._last_tick_ms: int | None = None
        self._stats: dict = {"ticks": 0, "batches": 0, "accepted": 0, "errors": 0}

    @property
    def buffs(self) -> Mapping[int, BuffUpdateState]:
        return MappingProxyType(self._buffs)

    @property
    def display(self) -> BuffDisplayState:
        return self._display

    @property
    def profile(self) -> MonitorProfile:
        return self._profile

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_profile(self, profile: MonitorProfile) -> None:
        self._profile = profile
        logger.info(
            "Buff profile updated: %d monitored, monitor_all=%s",
            len(profile.monitored_buff_ids), profile.monitor_all_buffs,
        )

    def apply_updates(self, updates: Iterable[BuffUpdateState]) -> int:
        """Merge a batch; returns how many observations were accepted."""
        previous = self._buffs
        merged = merge_buff_updates(previous, updates)
        accepted = sum(1 for base_id, buff in merged.items() if previous.get(base_id) is not buff)
        self._buffs = merged
        self._stats["batches"] += 1
        self._stats["accepted"] += accepted
        return accepted

    def clear(self) -> None:
        self._buffs = {}
        self._display = BuffDisplayState()
        logger.info("Buff map cleared")

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a per-tick callback; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers.remove(callback)

        return unsubscribe

    def project(self, now: int | None = None) -> BuffDisplayState:
        """Display state at ``now`` without touching the service state."""
        now = self._clock() if now is None else now
        active = project_active_buffs(self._buffs, now)
        return build_display(active, self._profile, self._tables, now)

    def tick(self, now: int | None = None) -> BuffDisplayState:
        """Recompute the active projection at ``now`` and notify subscribers."""
        now = self._clock() if now is None else now
        self._display = self.project(now)
        self._last_tick_ms = now
        self._stats["ticks"] += 1

        for callback in list(self._subscribers):
            try:
                callback(self._display)
            except Exception:
                self._stats["errors"] += 1
                logger.exception("Buff display subscriber failed")
        return self._display

    async def start(self):
        """Start the background tick loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._tick_loop())
        logger.info(
            "Buff timer started (interval=%dms)",
            self.settings.buffs.tick_interval_ms,
        )

    async def stop(self):
        """Stop the tick loop; no tick runs once this returns."""
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.info("Buff timer stopped")

    async def _tick_loop(self):
        interval = self.settings.buffs.tick_interval_ms / 1000
        while True:
            try:
                self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                self._stats["errors"] += 1
                logger.exception("Error in buff tick loop")
            await asyncio.sleep(interval)

    def get_status(self) -> dict:
        return {
            "running": self.running,
            "tick_interval_ms": self.settings.buffs.tick_interval_ms,
            "tracked": len(self._buffs),
            "active": len(self._display.active),
            "last_tick_ms": self._last_tick_ms,
            "subscribers": len(self._subscribers),
            "stats": dict(self._stats),
        }
