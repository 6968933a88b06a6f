"""Tests for SLE metric synthesis."""

import random

import pytest

from slemon.sle.models import Scope, SiteSummary
from slemon.sle.synthesizer import (
    EstimationStrategy,
    MetricSynthesizer,
    RandomEstimation,
    time_to_connect,
)

TS = 1_700_000_000_000


def _summary(**overrides) -> SiteSummary:
    values = dict(
        site_id="a",
        site_name="HQ",
        total_clients=3,
        wireless_clients=2,
        wired_clients=1,
        avg_rssi=-68.5,
        avg_snr=25.0,
        avg_tx_rate=120.0,
        avg_rx_rate=80.0,
        poor_signal_count=1,
        total_throughput=100.0,
        timestamp=TS,
    )
    values.update(overrides)
    return SiteSummary(**values)


class FixedEstimation(EstimationStrategy):
    def wireless_connect_success(self, summary):
        return 97.123

    def ap_health(self, summary, good_signal):
        return 99.0 if good_signal else 85.0

    def switch_health(self, summary):
        return 95.0

    def wired_connect_success(self, summary):
        return 98.0


def _by_key(points):
    return {p.metric_key: p for p in points}


class TestWirelessCatalog:
    def test_full_catalog(self):
        points = MetricSynthesizer(FixedEstimation()).wireless(_summary(), TS)
        assert [p.metric_key for p in points] == [
            "coverage",
            "throughput",
            "capacity",
            "successful_connects",
            "time_to_connect",
            "ap_health",
            "roaming",
        ]
        assert all(p.scope == Scope.wireless for p in points)
        assert all(p.timestamp == TS for p in points)
        assert all(p.site_id == "a" and p.site_name == "HQ" for p in points)

    def test_formulas(self):
        m = _by_key(MetricSynthesizer(FixedEstimation()).wireless(_summary(), TS))
        assert m["coverage"].value == 50.0
        assert m["throughput"].value == 100.0
        assert m["capacity"].value == 96
        assert m["successful_connects"].value == 97.12
        assert m["time_to_connect"].value == 3.0
        assert m["ap_health"].value == 99.0
        assert m["roaming"].value == 2.5
        assert m["capacity"].unit == "percent_available_channel_capacity"
        assert m["roaming"].unit == "severity_score_1_to_5"

    def test_no_wireless_clients_emits_nothing(self):
        points = MetricSynthesizer().wireless(_summary(wireless_clients=0), TS)
        assert points == []

    def test_capacity_clamped(self):
        m = _by_key(MetricSynthesizer().wireless(_summary(wireless_clients=500), TS))
        assert m["capacity"].value == 0

    def test_roaming_without_poor_signal(self):
        m = _by_key(MetricSynthesizer().wireless(_summary(poor_signal_count=0), TS))
        assert m["roaming"].value == 1.0

    def test_roaming_capped_at_five(self):
        summary = _summary(wireless_clients=2, poor_signal_count=2)
        m = _by_key(MetricSynthesizer().wireless(summary, TS))
        assert m["roaming"].value == 4.0
        assert m["roaming"].value <= 5

    def test_poor_signal_uses_low_ap_health(self):
        m = _by_key(MetricSynthesizer(FixedEstimation()).wireless(_summary(avg_rssi=-75), TS))
        assert m["ap_health"].value == 85.0

    def test_values_rounded(self):
        summary = _summary(wireless_clients=3, poor_signal_count=1, total_throughput=12.34567)
        m = _by_key(MetricSynthesizer().wireless(summary, TS))
        assert m["coverage"].value == 33.33
        assert m["throughput"].value == 12.35


class TestWiredCatalog:
    def test_catalog(self):
        points = MetricSynthesizer(FixedEstimation()).wired(_summary(), TS)
        assert [p.metric_key for p in points] == [
            "throughput",
            "switch_health",
            "successful_connects",
        ]
        assert all(p.scope == Scope.wired for p in points)

    def test_no_wired_clients_emits_nothing(self):
        assert MetricSynthesizer().wired(_summary(wired_clients=0), TS) == []

    def test_synthesize_combines_scopes(self):
        points = MetricSynthesizer().synthesize(_summary(), TS)
        assert len(points) == 10


class TestTimeToConnect:
    @pytest.mark.parametrize(
        ("rssi", "expected"),
        [(-40, 1.5), (-50, 2.0), (-55, 2.0), (-60, 3.0), (-68.5, 3.0), (-70, 5.0), (0, 1.5)],
    )
    def test_steps(self, rssi, expected):
        assert time_to_connect(rssi) == expected


class TestRandomEstimationBounds:
    def test_estimates_stay_in_range(self):
        synth = MetricSynthesizer(RandomEstimation(random.Random(42)))
        good = _summary(avg_rssi=-50)
        poor = _summary(avg_rssi=-80)
        for _ in range(500):
            w = _by_key(synth.wireless(good, TS))
            assert 95 <= w["successful_connects"].value <= 99
            assert 95 <= w["ap_health"].value <= 100

            w_poor = _by_key(synth.wireless(poor, TS))
            assert 80 <= w_poor["ap_health"].value <= 90

            wd = _by_key(synth.wired(good, TS))
            assert 92 <= wd["switch_health"].value <= 99
            assert 96 <= wd["successful_connects"].value <= 99

    def test_seeded_rng_is_reproducible(self):
        a = MetricSynthesizer(RandomEstimation(random.Random(7))).synthesize(_summary(), TS)
        b = MetricSynthesizer(RandomEstimation(random.Random(7))).synthesize(_summary(), TS)
        assert [p.value for p in a] == [p.value for p in b]
