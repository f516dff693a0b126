"""Tests for health classification and performance tiers."""

import pytest

from storage_health.models import (
    DiskId,
    DiskInfo,
    HealthClass,
    MetricKind,
    PerformanceTier,
    VolumeInfo,
)
from storage_health.rules import HEALTH_RULES, classify_health, grade, performance_tier


def volume(health="Healthy", operational="OK"):
    return VolumeInfo(letter="C", health_status=health, operational_status=operational)


def disk(health="Healthy", temperature=None):
    return DiskInfo(number=DiskId("0"), health_status=health, temperature_c=temperature)


def latency(read, write):
    return {MetricKind.READ_LATENCY_MS: read, MetricKind.WRITE_LATENCY_MS: write}


class TestClassifyHealth:
    def test_healthy(self):
        assert classify_health(volume(), disk(), 0)[0] is HealthClass.HEALTHY

    @pytest.mark.parametrize("errors", [0, 1, 50])
    def test_volume_warning_outranks_errors(self, errors):
        assert classify_health(volume("Warning"), disk(), errors)[0] is HealthClass.WARNING

    def test_disk_warning(self):
        assert classify_health(volume(), disk("Warning"), 0)[0] is HealthClass.WARNING

    def test_warning_outranks_unhealthy(self):
        assert classify_health(volume("Unhealthy"), disk("Warning"), 0)[0] is HealthClass.WARNING

    def test_unhealthy_is_failed(self):
        result = classify_health(volume(), disk("Unhealthy"), 3)[0]
        assert result is HealthClass.FAILED
        assert result.is_failed

    def test_not_ok_outranks_errors(self):
        result = classify_health(volume(operational="Degraded"), disk(), 4)[0]
        assert result is HealthClass.OFFLINE
        assert result.is_failed

    def test_not_ok_without_health_signal_is_offline(self):
        assert classify_health(volume(None, "Offline"), None, 0)[0] is HealthClass.OFFLINE

    def test_errors_on_otherwise_healthy_disk(self):
        health, reason = classify_health(volume(), disk(), 2)
        assert health is HealthClass.ERRORS
        assert "2 disk error event(s)" in reason

    def test_status_comparison_ignores_case(self):
        assert classify_health(volume("healthy", "ok"), disk("HEALTHY"), 0)[0] is HealthClass.HEALTHY

    def test_all_signals_absent_is_unknown(self):
        absent = VolumeInfo(letter="D")
        assert classify_health(absent, None, 0)[0] is HealthClass.UNKNOWN

    def test_unknown_strings_count_as_absent(self):
        assert classify_health(volume("Unknown", "Unknown"), None, 0)[0] is HealthClass.UNKNOWN

    def test_unresolved_disk_inherits_volume_health(self):
        assert classify_health(volume(), None, 0)[0] is HealthClass.HEALTHY

    def test_missing_disk_health_inherits_volume_health(self):
        assert classify_health(volume(), disk(health=None), 0)[0] is HealthClass.HEALTHY

    def test_absent_operational_status_is_not_offline(self):
        assert classify_health(volume("Healthy", None), disk(), 0)[0] is HealthClass.HEALTHY

    def test_unknown_operational_status_does_not_mean_offline(self):
        health, reason = classify_health(volume(operational="Unknown"), disk(), 1)
        assert health is HealthClass.ERRORS
        assert "operational" not in reason

    def test_rule_order(self):
        assert [r.result for r in HEALTH_RULES] == [
            HealthClass.HEALTHY,
            HealthClass.WARNING,
            HealthClass.FAILED,
            HealthClass.OFFLINE,
            HealthClass.ERRORS,
        ]


class TestPerformanceTier:
    @pytest.mark.parametrize(
        "read,write,expected",
        [
            (0.4, 0.8, PerformanceTier.EXCELLENT),
            (0.5, 1.5, PerformanceTier.GOOD),
            (4.0, 5.98, PerformanceTier.GOOD),
            (5.0, 5.0, PerformanceTier.FAIR),
            (14.0, 15.98, PerformanceTier.FAIR),
            (15.0, 15.0, PerformanceTier.POOR),
            (40.0, 80.0, PerformanceTier.POOR),
        ],
    )
    def test_bands(self, read, write, expected):
        assert performance_tier(latency(read, write)) is expected

    def test_boundary_of_one_ms_is_good(self):
        assert performance_tier(latency(1.0, 1.0)) is PerformanceTier.GOOD

    @pytest.mark.parametrize(
        "metrics",
        [
            {},
            {MetricKind.READ_LATENCY_MS: 0.2},
            {MetricKind.WRITE_LATENCY_MS: 0.2},
        ],
    )
    def test_missing_latency_is_unavailable(self, metrics):
        assert performance_tier(metrics) is PerformanceTier.UNAVAILABLE


class TestGrade:
    def test_scenario_healthy_excellent(self):
        health, tier, reasons = grade(volume(), disk(), latency(0.6, 0.6), 0)
        assert health is HealthClass.HEALTHY
        assert tier is PerformanceTier.EXCELLENT
        assert "Mean latency 0.60 ms" in reasons

    def test_no_disk_means_no_tier(self):
        health, tier, reasons = grade(VolumeInfo(letter="D"), None, latency(0.6, 0.6), 0)
        assert health is HealthClass.UNKNOWN
        assert tier is PerformanceTier.UNAVAILABLE
        assert "Latency not sampled" in reasons

    def test_hot_disk_noted(self):
        _, _, reasons = grade(volume(), disk(temperature=63), {}, 0)
        assert "High temperature (63C)" in reasons
