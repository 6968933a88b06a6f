"""Bounded, persisted time series of SLE data points."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from slemon.sle.models import DataFilter, SLEDataPoint
from slemon.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "sle_data_points"
MAX_DATA_POINTS = 10000

_points_adapter = TypeAdapter(list[SLEDataPoint])


@dataclass
class StoreStats:
    total_data_points: int
    sites_monitored: int
    oldest_data_point: int | None  # epoch milliseconds
    newest_data_point: int | None


def matches(point: SLEDataPoint, flt: DataFilter) -> bool:
    """True when a point satisfies every predicate set on the filter."""
    if flt.site_id and flt.site_id != "all" and point.site_id != flt.site_id:
        return False
    if flt.scope is not None and point.scope != flt.scope:
        return False
    if flt.metric_keys and point.metric_key not in flt.metric_keys:
        return False
    if flt.start_timestamp is not None and point.timestamp < flt.start_timestamp:
        return False
    if flt.end_timestamp is not None and point.timestamp > flt.end_timestamp:
        return False
    return True


class TimeSeriesStore:
    """Append-only buffer trimmed oldest-first to ``max_points``.

    Every mutation is written through to one key-value slot. Storage
    failures are logged; the in-memory buffer stays authoritative.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        max_points: int = MAX_DATA_POINTS,
        key: str = STORAGE_KEY,
    ) -> None:
        self.kv = kv
        self.max_points = max_points
        self.key = key
        self._points: list[SLEDataPoint] = []

    def __len__(self) -> int:
        return len(self._points)

    def append(self, points: Iterable[SLEDataPoint]) -> int:
        """Add points, trim the oldest beyond the cap, and persist.

        Returns the number of points evicted.
        """
        self._points.extend(points)
        excess = len(self._points) - self.max_points
        if excess > 0:
            del self._points[:excess]
            logger.info("Trimmed %d old data points", excess)
        self.persist()
        return max(excess, 0)

    def get_all(self) -> list[SLEDataPoint]:
        return list(self._points)

    def query(self, flt: DataFilter) -> list[SLEDataPoint]:
        return [p for p in self._points if matches(p, flt)]

    def clear(self) -> None:
        self._points = []
        self.persist()

    def persist(self) -> bool:
        """Write the buffer as a JSON array. Return False on storage failure."""
        try:
            payload = _points_adapter.dump_json(self._points, exclude_none=True)
            self.kv.set(self.key, payload.decode("utf-8"))
        except (SQLAlchemyError, OSError):
            logger.exception("Failed to persist %d data points", len(self._points))
            return False
        return True

    def restore(self) -> int:
        """Load the buffer from storage, replacing the in-memory copy.

        A missing, unreadable, or invalid slot leaves an empty buffer.
        Returns the number of points loaded.
        """
        try:
            raw = self.kv.get(self.key)
        except (SQLAlchemyError, OSError):
            logger.warning("Could not read stored data points", exc_info=True)
            self._points = []
            return 0

        if raw is None:
            self._points = []
            return 0

        try:
            points = _points_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable stored data points: %s", e.errors()[:1])
            self._points = []
            return 0

        # A store restored with a smaller cap keeps the newest points
        self._points = points[-self.max_points :]
        logger.info("Loaded %d data points from storage", len(self._points))
        return len(self._points)

    def stats(self) -> StoreStats:
        if not self._points:
            return StoreStats(0, 0, None, None)
        timestamps = [p.timestamp for p in self._points]
        return StoreStats(
            total_data_points=len(self._points),
            sites_monitored=len({p.site_id for p in self._points}),
            oldest_data_point=min(timestamps),
            newest_data_point=max(timestamps),
        )
