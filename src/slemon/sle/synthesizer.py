"""Derive SLE data points from a site summary.

Coverage, throughput, capacity, time-to-connect and roaming are computed
from signal and rate aggregates. Connect success, AP health and switch
health have no measured source yet; they come from an EstimationStrategy
so a real measurement can replace the estimate without touching the
catalog below.
"""

import random
from abc import ABC, abstractmethod

from slemon.sle.models import Scope, SiteSummary, SLEDataPoint

# avg RSSI above which the AP is assumed to be in good health
_GOOD_SIGNAL_RSSI = -70


class EstimationStrategy(ABC):
    """Source of the metrics that are estimated rather than measured."""

    @abstractmethod
    def wireless_connect_success(self, summary: SiteSummary) -> float:
        """Percent of successful wireless connects."""

    @abstractmethod
    def ap_health(self, summary: SiteSummary, good_signal: bool) -> float:
        """Percent of healthy APs."""

    @abstractmethod
    def switch_health(self, summary: SiteSummary) -> float:
        """Percent of healthy switches."""

    @abstractmethod
    def wired_connect_success(self, summary: SiteSummary) -> float:
        """Percent of successful wired connects."""


class RandomEstimation(EstimationStrategy):
    """Placeholder estimates drawn uniformly from plausible ranges.

    wireless connects 95-99, AP health 95-100 (good signal) or 80-90,
    switch health 92-99, wired connects 96-99.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def _between(self, low: float, high: float) -> float:
        return low + self.rng.random() * (high - low)

    def wireless_connect_success(self, summary: SiteSummary) -> float:
        return self._between(95, 99)

    def ap_health(self, summary: SiteSummary, good_signal: bool) -> float:
        if good_signal:
            return self._between(95, 100)
        return self._between(80, 90)

    def switch_health(self, summary: SiteSummary) -> float:
        return self._between(92, 99)

    def wired_connect_success(self, summary: SiteSummary) -> float:
        return self._between(96, 99)


def time_to_connect(avg_rssi: float) -> float:
    """Estimated seconds to associate, stepped by average RSSI."""
    if avg_rssi > -50:
        return 1.5
    if avg_rssi > -60:
        return 2.0
    if avg_rssi > -70:
        return 3.0
    return 5.0


class MetricSynthesizer:
    """Turns SiteSummary objects into wireless and wired SLE data points."""

    def __init__(self, estimation: EstimationStrategy | None = None) -> None:
        self.estimation = estimation or RandomEstimation()

    @staticmethod
    def _point(
        summary: SiteSummary,
        scope: Scope,
        timestamp: int,
        metric_key: str,
        value: float,
        unit: str,
    ) -> SLEDataPoint:
        return SLEDataPoint(
            metric_key=metric_key,
            scope=scope,
            site_id=summary.site_id,
            site_name=summary.site_name,
            timestamp=timestamp,
            value=round(value, 2),
            unit=unit,
        )

    def wireless(self, summary: SiteSummary, timestamp: int) -> list[SLEDataPoint]:
        """Wireless catalog; empty when the site has no wireless clients."""
        total = summary.wireless_clients
        if total <= 0:
            return []

        poor = summary.poor_signal_count
        coverage = poor / total * 100
        capacity = max(0, min(100, 100 - total * 2))
        roaming = min(5, 1 + (poor / total) * 3) if poor > 0 else 1.0
        good_signal = summary.avg_rssi > _GOOD_SIGNAL_RSSI

        est = self.estimation
        metrics = [
            ("coverage", coverage, "percent_poor_coverage"),
            ("throughput", summary.total_throughput, "Mbps"),
            ("capacity", capacity, "percent_available_channel_capacity"),
            ("successful_connects", est.wireless_connect_success(summary), "percent_success"),
            ("time_to_connect", time_to_connect(summary.avg_rssi), "seconds"),
            ("ap_health", est.ap_health(summary, good_signal), "percent_healthy"),
            ("roaming", roaming, "severity_score_1_to_5"),
        ]
        return [
            self._point(summary, Scope.wireless, timestamp, key, value, unit)
            for key, value, unit in metrics
        ]

    def wired(self, summary: SiteSummary, timestamp: int) -> list[SLEDataPoint]:
        """Wired catalog; empty when the site has no wired clients."""
        if summary.wired_clients <= 0:
            return []

        est = self.estimation
        metrics = [
            ("throughput", summary.total_throughput, "Mbps"),
            ("switch_health", est.switch_health(summary), "percent_healthy"),
            ("successful_connects", est.wired_connect_success(summary), "percent_success"),
        ]
        return [
            self._point(summary, Scope.wired, timestamp, key, value, unit)
            for key, value, unit in metrics
        ]

    def synthesize(self, summary: SiteSummary, timestamp: int) -> list[SLEDataPoint]:
        """All points for one site: wireless first, then wired."""
        return self.wireless(summary, timestamp) + self.wired(summary, timestamp)
