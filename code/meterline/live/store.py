import logging

from meterline.live.models import Snapshot
from meterline.utils import now_ms

logger = logging.getLogger(__name__)


class LiveStore:
    """Holds the most recent snapshot pushed by the collector.

    Each push replaces the reference wholesale; readers always see one
    complete snapshot.
    """

    def __init__(self) -> None:
        self._snapshot: Snapshot | None = None
        self._received_at_ms: int | None = None
        self._updates: int = 0

    @property
    def latest(self) -> Snapshot | None:
        return self._snapshot

    def update(self, snapshot: Snapshot) -> None:
        previous = self._snapshot
        if previous is not None and snapshot.elapsed_ms < previous.elapsed_ms:
            logger.info(
                "Snapshot elapsed went back (%d -> %d ms), treating as new encounter",
                previous.elapsed_ms, snapshot.elapsed_ms,
            )
        self._snapshot = snapshot
        self._received_at_ms = now_ms()
        self._updates += 1
        logger.debug(
            "Stored snapshot: %d entities, elapsed=%dms",
            len(snapshot.entities), snapshot.elapsed_ms,
        )

    def reset(self) -> None:
        self._snapshot = None
        self._received_at_ms = None
        logger.info("Live store reset")

    def get_status(self) -> dict:
        return {
            "has_snapshot": self._snapshot is not None,
            "updates": self._updates,
            "received_at_ms": self._received_at_ms,
            "elapsed_ms": self._snapshot.elapsed_ms if self._snapshot else None,
        }
