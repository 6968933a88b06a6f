"""Client records, site summaries and SLE data points."""

import enum
import math
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class Scope(enum.StrEnum):
    wireless = "wireless"
    wired = "wired"
    wan = "wan"


class ClientRecord(BaseModel):
    """One connected station as reported by GET /v1/stations.

    Only the fields the site aggregation reads are kept. Controllers vary in
    what they put in each field, so an unusable value becomes None rather
    than rejecting the station.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    mac_address: str = ""
    site_id: str | None = None
    site_name: str | None = None
    is_wired: bool = False
    rssi: float | None = None  # dBm
    snr: float | None = None
    tx_rate: float | None = None  # Mbps
    rx_rate: float | None = None  # Mbps

    @field_validator("rssi", "snr", "tx_rate", "rx_rate", mode="before")
    @classmethod
    def lenient_number(cls, v: object) -> float | None:
        if isinstance(v, bool):
            return None
        if isinstance(v, int | float):
            number = float(v)
        elif isinstance(v, str):
            try:
                number = float(v)
            except ValueError:
                return None
        else:
            return None
        return number if math.isfinite(number) else None

    @field_validator("is_wired", mode="before")
    @classmethod
    def lenient_bool(cls, v: object) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() in ("true", "1", "yes")
        if isinstance(v, int | float):
            return v == 1
        return False

    @field_validator("site_id", "site_name", mode="before")
    @classmethod
    def lenient_label(cls, v: object) -> str | None:
        # Some controllers report numeric site ids
        if isinstance(v, str):
            return v
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return None

    @field_validator("mac_address", mode="before")
    @classmethod
    def lenient_mac(cls, v: object) -> str:
        return v if isinstance(v, str) else ""


@dataclass
class SiteSummary:
    """Per-site aggregate for one collection tick."""

    site_id: str
    site_name: str
    total_clients: int
    wireless_clients: int
    wired_clients: int
    avg_rssi: float
    avg_snr: float
    avg_tx_rate: float
    avg_rx_rate: float
    poor_signal_count: int
    total_throughput: float  # Mbps
    timestamp: int  # epoch milliseconds


class SLEDataPoint(BaseModel):
    """A single persisted metric sample."""

    model_config = ConfigDict(extra="ignore")

    metric_key: str
    scope: Scope
    site_id: str
    site_name: str | None = None
    timestamp: int  # epoch milliseconds
    value: float
    unit: str
    classifiers: dict[str, float] | None = None


@dataclass
class DataFilter:
    """Query predicates for the time-series store, combined with AND.

    ``site_id`` of None or "all" matches every site; an empty
    ``metric_keys`` matches every metric. Timestamp bounds are inclusive.
    """

    site_id: str | None = None
    scope: Scope | None = None
    metric_keys: frozenset[str] | None = None
    start_timestamp: int | None = None
    end_timestamp: int | None = None
