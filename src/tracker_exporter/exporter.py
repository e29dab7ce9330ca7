"""Metrics cache and Prometheus exposition.

``MetricsCache`` throttles scrape passes with a TTL, polls every tracker
concurrently on each pass, and keeps one snapshot per tracker. A tracker
that fails keeps its previous statistics and is reported down; it never
stops the others from updating.

``render()`` is synchronous and never scrapes; the HTTP layer calls
``refresh()`` first on each request.
"""

import asyncio
import logging
import time
from typing import Callable, Iterator, Mapping

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily

from tracker_exporter.config import DEFAULT_STATS_TTL, MIN_STATS_TTL
from tracker_exporter.models import MetricsSnapshot, StatisticsRecord
from tracker_exporter.scraping import TrackerClient

logger = logging.getLogger(__name__)

LABEL = "tracker"

# (metric name, StatisticsRecord field, help text)
STATISTIC_GAUGES = (
    ("tracker_upload_bytes", "uploaded", "Total upload in bytes"),
    ("tracker_download_bytes", "downloaded", "Total download in bytes"),
    ("tracker_buffer_bytes", "buffer", "Upload buffer in bytes"),
    ("tracker_ratio", "ratio", "User ratio"),
    ("tracker_bonus_points", "bonus", "User bonus points"),
    ("tracker_seeding_count", "seeding", "Number of torrents seeding"),
    ("tracker_leeching_count", "leeching", "Number of torrents leeching"),
    ("tracker_hit_and_runs_count", "hit_and_runs", "Number of hit and runs"),
)


class MetricsCache:
    """TTL-throttled, failure-isolating store of per-tracker snapshots.

    Passes are serialized by an ``asyncio.Lock``. A caller that waited on
    the lock re-checks the TTL, so a burst of requests shares one pass.
    The snapshot dict is replaced as a whole at the end of a pass, so a
    reader sees either the old or the new state, never a mix.
    """

    def __init__(
        self,
        clients: Mapping[str, TrackerClient],
        ttl: float = DEFAULT_STATS_TTL,
        *,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ):
        if ttl < MIN_STATS_TTL:
            logger.warning(
                "Stats TTL %.0fs is below the %.0fs minimum, clamping", ttl, MIN_STATS_TTL
            )
            ttl = MIN_STATS_TTL
        self.ttl = ttl
        self._clients = dict(clients)
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = asyncio.Lock()
        self._last_refresh: float | None = None
        self._snapshots: dict[str, MetricsSnapshot] = {
            name: MetricsSnapshot(tracker=name, statistics=StatisticsRecord.zeros())
            for name in self._clients
        }
        self._registry = CollectorRegistry(auto_describe=False)
        self._registry.register(_SnapshotCollector(self))

    @property
    def snapshots(self) -> dict[str, MetricsSnapshot]:
        """Current snapshots keyed by tracker name (a copy)."""
        return dict(self._snapshots)

    @property
    def last_refresh(self) -> float | None:
        """Clock reading at the start of the last completed pass."""
        return self._last_refresh

    def _is_fresh(self) -> bool:
        return (
            self._last_refresh is not None
            and self._clock() - self._last_refresh < self.ttl
        )

    async def refresh(self) -> None:
        """Scrape every tracker unless the last pass is younger than the TTL."""
        if self._is_fresh():
            return
        async with self._lock:
            if self._is_fresh():
                return
            started = self._clock()
            names = list(self._clients)
            logger.info("Refreshing statistics for %d trackers", len(names))
            results = await asyncio.gather(
                *(self._scrape(name) for name in names)
            )
            self._snapshots = dict(zip(names, results))
            self._last_refresh = started

    async def _scrape(self, name: str) -> MetricsSnapshot:
        """Poll one tracker; a failure yields a "down" copy of the old snapshot."""
        previous = self._snapshots[name]
        try:
            stats = await self._clients[name].get_statistics()
        except Exception as exc:  # noqa: BLE001
            logger.error("[%s] Scrape failed: %s", name, exc)
            return previous.model_copy(
                update={"up": False, "last_attempt": self._wall_clock()}
            )
        now = self._wall_clock()
        return MetricsSnapshot(
            tracker=name,
            statistics=stats,
            up=True,
            last_attempt=now,
            last_success=now,
        )

    def render(self) -> str:
        """Current snapshots in the Prometheus text exposition format."""
        return generate_latest(self._registry).decode("utf-8")


class _SnapshotCollector:
    """Custom collector reading straight from the cache's snapshots."""

    def __init__(self, cache: MetricsCache):
        self._cache = cache

    def collect(self) -> Iterator[GaugeMetricFamily]:
        snapshots = self._cache.snapshots

        for metric, field, help_text in STATISTIC_GAUGES:
            gauge = GaugeMetricFamily(metric, help_text, labels=[LABEL])
            for name, snapshot in snapshots.items():
                value = getattr(snapshot.statistics, field)
                if value is not None:
                    gauge.add_metric([name], float(value))
            yield gauge

        up = GaugeMetricFamily(
            "tracker_up_status",
            "Status of the last scrape (1 = success, 0 = failure)",
            labels=[LABEL],
        )
        attempted = GaugeMetricFamily(
            "tracker_last_scrape_timestamp_seconds",
            "Unix time of the last scrape attempt",
            labels=[LABEL],
        )
        for name, snapshot in snapshots.items():
            up.add_metric([name], 1.0 if snapshot.up else 0.0)
            if snapshot.last_attempt is not None:
                attempted.add_metric([name], snapshot.last_attempt)
        yield up
        yield attempted
