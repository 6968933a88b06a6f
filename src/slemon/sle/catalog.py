"""SLE metric catalog, status evaluation, and time-range presets."""

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from slemon.sle.models import Scope, SLEDataPoint


@dataclass(frozen=True)
class MetricDefinition:
    key: str
    name: str
    unit: str
    threshold_field: str


METRIC_CATALOG: dict[Scope, tuple[MetricDefinition, ...]] = {
    Scope.wireless: (
        MetricDefinition("time_to_connect", "Time to Connect", "seconds", "max_seconds"),
        MetricDefinition("coverage", "Coverage", "percent_poor_coverage", "max_percent"),
        MetricDefinition(
            "capacity",
            "Capacity",
            "percent_available_channel_capacity",
            "min_available_channel_capacity_percent",
        ),
        MetricDefinition("roaming", "Roaming", "severity_score_1_to_5", "max_severity"),
        MetricDefinition(
            "successful_connects", "Successful Connects", "percent_success", "min_percent"
        ),
        MetricDefinition("ap_health", "AP Health", "percent_healthy", "min_percent"),
    ),
    Scope.wired: (
        MetricDefinition("switch_health", "Switch Health", "percent_healthy", "min_percent"),
        MetricDefinition(
            "successful_connects", "Successful Connects", "percent_success", "min_percent"
        ),
    ),
    Scope.wan: (
        MetricDefinition("wan_link_health", "WAN Link Health", "percent_healthy", "min_percent"),
    ),
}


def get_definition(scope: Scope, key: str) -> MetricDefinition | None:
    """Look up a metric definition by scope and key."""
    for definition in METRIC_CATALOG[scope]:
        if definition.key == key:
            return definition
    return None


class MetricHealth(enum.StrEnum):
    healthy = "healthy"
    warning = "warning"
    critical = "critical"


class Trend(enum.StrEnum):
    up = "up"
    down = "down"
    stable = "stable"


@dataclass
class MetricStatus:
    """Latest value of one metric with its health and direction."""

    key: str
    name: str
    current_value: float
    status: MetricHealth
    trend: Trend
    unit: str


# Relative change (of the latest value) needed to call a trend up or down
_TREND_THRESHOLD = 0.05


def classify_value(unit: str, value: float) -> MetricHealth:
    """Map a metric value to healthy/warning/critical by its unit."""
    if "percent" in unit:
        if value < 60:
            return MetricHealth.critical
        if value < 80:
            return MetricHealth.warning
    elif unit == "seconds":
        if value > 10:
            return MetricHealth.critical
        if value > 5:
            return MetricHealth.warning
    elif unit == "severity_score_1_to_5":
        if value > 3.5:
            return MetricHealth.critical
        if value > 2.5:
            return MetricHealth.warning
    return MetricHealth.healthy


def compute_trend(latest: float, previous: float | None) -> Trend:
    if previous is None:
        return Trend.stable
    change = latest - previous
    if abs(change) > latest * _TREND_THRESHOLD:
        return Trend.up if change > 0 else Trend.down
    return Trend.stable


def evaluate_metrics(
    points: Iterable[SLEDataPoint],
    scope: Scope,
    metric_keys: Sequence[str] | None = None,
    cursor: int | None = None,
) -> list[MetricStatus]:
    """Summarize the latest value of each selected metric in a scope.

    Args:
        points: Data points in insertion (time) order
        scope: Which catalog to evaluate
        metric_keys: Subset of catalog keys (default: the whole catalog)
        cursor: Ignore points newer than this timestamp

    Returns:
        One MetricStatus per selected key known to the catalog. Metrics
        without data report value 0 and status critical.
    """
    if metric_keys is None:
        metric_keys = [d.key for d in METRIC_CATALOG[scope]]

    history: dict[str, list[float]] = {}
    for point in points:
        if point.scope != scope:
            continue
        if cursor is not None and point.timestamp > cursor:
            continue
        history.setdefault(point.metric_key, []).append(point.value)

    results: list[MetricStatus] = []
    for key in metric_keys:
        definition = get_definition(scope, key)
        if definition is None:
            continue

        values = history.get(key)
        if not values:
            results.append(
                MetricStatus(
                    key=key,
                    name=definition.name,
                    current_value=0,
                    status=MetricHealth.critical,
                    trend=Trend.stable,
                    unit=definition.unit,
                )
            )
            continue

        latest = values[-1]
        previous = values[-2] if len(values) > 1 else None
        results.append(
            MetricStatus(
                key=key,
                name=definition.name,
                current_value=latest,
                status=classify_value(definition.unit, latest),
                trend=compute_trend(latest, previous),
                unit=definition.unit,
            )
        )
    return results


_DAY_MS = 24 * 60 * 60 * 1000

TIME_RANGES: dict[str, int] = {
    "1h": _DAY_MS // 24,
    "6h": _DAY_MS // 4,
    "24h": _DAY_MS,
    "7d": 7 * _DAY_MS,
    "30d": 30 * _DAY_MS,
}


def time_range_bounds(name: str, now_ms: int) -> tuple[int, int]:
    """Return inclusive (start, end) timestamps for a named range ending now."""
    try:
        span = TIME_RANGES[name]
    except KeyError:
        raise ValueError(f"Unknown time range: {name!r}") from None
    return now_ms - span, now_ms
