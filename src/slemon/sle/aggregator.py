"""Per-site aggregation of raw client records."""

from collections.abc import Iterable

from slemon.sle.models import ClientRecord, SiteSummary

# Site id used for records that carry none. A real site with this id is
# merged with unattributed clients.
UNKNOWN_SITE = "unknown"

POOR_RSSI_THRESHOLD = -70  # dBm


def _mean(values: Iterable[float | None]) -> float:
    """Average of the defined values; 0 when none are defined."""
    defined = [v for v in values if v is not None]
    if not defined:
        return 0
    return sum(defined) / len(defined)


def aggregate_sites(
    clients: Iterable[ClientRecord],
    timestamp: int,
    poor_rssi_threshold: float = POOR_RSSI_THRESHOLD,
) -> dict[str, SiteSummary]:
    """Group clients by site and compute one SiteSummary per site.

    Sites appear in order of their first client. A site with no clients
    never appears.
    """
    by_site: dict[str, list[ClientRecord]] = {}
    for client in clients:
        by_site.setdefault(client.site_id or UNKNOWN_SITE, []).append(client)

    summaries: dict[str, SiteSummary] = {}
    for site_id, site_clients in by_site.items():
        wireless = [c for c in site_clients if not c.is_wired]
        wired_count = len(site_clients) - len(wireless)

        avg_tx = _mean(c.tx_rate for c in site_clients)
        avg_rx = _mean(c.rx_rate for c in site_clients)
        poor = sum(1 for c in wireless if c.rssi is not None and c.rssi < poor_rssi_threshold)

        summaries[site_id] = SiteSummary(
            site_id=site_id,
            site_name=site_clients[0].site_name or f"Site {site_id}",
            total_clients=len(site_clients),
            wireless_clients=len(wireless),
            wired_clients=wired_count,
            avg_rssi=_mean(c.rssi for c in wireless),
            avg_snr=_mean(c.snr for c in wireless),
            avg_tx_rate=avg_tx,
            avg_rx_rate=avg_rx,
            poor_signal_count=poor,
            total_throughput=(avg_tx + avg_rx) / 2,
            timestamp=timestamp,
        )
    return summaries
