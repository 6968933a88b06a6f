"""Service Level Experience collection service.

Polls the controller's station list on a fixed interval, aggregates the
clients per site, derives SLE metrics, and keeps them in a bounded,
persisted time series. Subscribers are called after every change to the
stored data.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx

from slemon.controller.base import BaseControllerClient, ControllerError
from slemon.controller.payload import ParseError, parse_stations
from slemon.sle.aggregator import POOR_RSSI_THRESHOLD, aggregate_sites
from slemon.sle.catalog import MetricStatus, evaluate_metrics, time_range_bounds
from slemon.sle.models import DataFilter, Scope, SLEDataPoint
from slemon.sle.store import TimeSeriesStore
from slemon.sle.synthesizer import MetricSynthesizer

logger = logging.getLogger(__name__)

STATIONS_PATH = "/v1/stations"
COLLECTION_INTERVAL = 60  # seconds


@dataclass
class CollectionStats:
    total_data_points: int
    sites_monitored: int
    oldest_data_point: datetime | None
    newest_data_point: datetime | None
    is_collecting: bool
    collection_interval: int  # seconds


def _from_millis(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=UTC)


class SLECollectionService:
    """Owns the collection loop, the time-series store, and subscribers."""

    def __init__(
        self,
        api: BaseControllerClient,
        store: TimeSeriesStore,
        synthesizer: MetricSynthesizer | None = None,
        interval: int = COLLECTION_INTERVAL,
        poor_rssi_threshold: float = POOR_RSSI_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.api = api
        self.store = store
        self.synthesizer = synthesizer or MetricSynthesizer()
        self.interval = interval
        self.poor_rssi_threshold = poor_rssi_threshold
        self._clock = clock
        self._subscribers: set[Callable[[], None]] = set()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()
        self._last_timestamp = 0

        self.store.restore()

    async def start_collection(self) -> None:
        """Collect now, then once per interval until stopped."""
        if self._running:
            logger.info("SLE data collection already running")
            return
        logger.info("Starting SLE data collection (every %ds)", self.interval)
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())

    async def stop_collection(self) -> None:
        """Cancel the loop. A fetch in flight is abandoned with it."""
        if not self._running:
            return
        logger.info("Stopping SLE data collection")
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def is_collection_active(self) -> bool:
        return self._running

    async def _poll_loop(self) -> None:
        while self._running:
            await self.collect_once()
            await asyncio.sleep(self.interval)

    def _next_timestamp(self) -> int:
        now = int(self._clock() * 1000)
        self._last_timestamp = max(now, self._last_timestamp + 1)
        return self._last_timestamp

    async def collect_once(self) -> int:
        """Run one tick. Return the number of data points stored.

        Never raises for collection failures; they are logged and the
        tick contributes nothing.
        """
        async with self._lock:
            try:
                return await self._collect()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error collecting SLE data")
                return 0

    async def _collect(self) -> int:
        if not self.api.is_authenticated():
            logger.info("Skipping collection - not authenticated")
            return 0

        logger.debug("Fetching client data")
        try:
            resp = await self.api.make_authenticated_request(STATIONS_PATH, method="GET")
        except (httpx.HTTPError, ControllerError) as e:
            logger.warning("Failed to fetch stations: %s", e)
            return 0

        if not resp.is_success:
            logger.warning("Failed to fetch stations: HTTP %d", resp.status_code)
            return 0

        try:
            body = resp.json()
        except ValueError:
            logger.warning("Stations response was not valid JSON")
            return 0

        clients = parse_stations(body)
        if isinstance(clients, ParseError):
            logger.info("No clients found: %s", clients.reason)
            return 0
        if not clients:
            logger.info("No clients found")
            return 0

        logger.debug("Processing %d clients", len(clients))
        timestamp = self._next_timestamp()
        summaries = aggregate_sites(clients, timestamp, self.poor_rssi_threshold)

        points: list[SLEDataPoint] = []
        for summary in summaries.values():
            points.extend(self.synthesizer.synthesize(summary, timestamp))

        self.store.append(points)
        self._notify()

        logger.info("Collected %d data points from %d sites", len(points), len(summaries))
        return len(points)

    def get_data(self) -> list[SLEDataPoint]:
        return self.store.get_all()

    def get_filtered_data(self, flt: DataFilter) -> list[SLEDataPoint]:
        return self.store.query(flt)

    def get_current_metrics(
        self,
        scope: Scope,
        site_id: str = "all",
        metric_keys: Sequence[str] | None = None,
        time_range: str = "24h",
    ) -> list[MetricStatus]:
        """Latest value, health and trend per catalog metric over a named range."""
        start, end = time_range_bounds(time_range, int(self._clock() * 1000))
        points = self.store.query(
            DataFilter(site_id=site_id, scope=scope, start_timestamp=start, end_timestamp=end)
        )
        return evaluate_metrics(points, scope, metric_keys)

    def clear_data(self) -> None:
        self.store.clear()
        self._notify()
        logger.info("SLE data cleared")

    def get_stats(self) -> CollectionStats:
        stats = self.store.stats()
        return CollectionStats(
            total_data_points=stats.total_data_points,
            sites_monitored=stats.sites_monitored,
            oldest_data_point=_from_millis(stats.oldest_data_point),
            newest_data_point=_from_millis(stats.newest_data_point),
            is_collecting=self._running,
            collection_interval=self.interval,
        )

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for data changes. Returns an unsubscribe function."""
        self._subscribers.add(callback)

        def unsubscribe() -> None:
            self._subscribers.discard(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception:
                logger.exception("Error in SLE data subscriber")
