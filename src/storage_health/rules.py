from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .models import DiskInfo, HealthClass, MetricKind, PerformanceTier, VolumeInfo


def _signal(value: Optional[str]) -> Optional[str]:
    # "Unknown" from the storage API carries no more information than a missing value
    if value is None:
        return None
    text = value.strip().lower()
    if not text or text == "unknown":
        return None
    return text


def _operational(value: Optional[str]) -> Optional[str]:
    # Offline needs a status the volume actually reported. Get-Volume says
    # "Unknown" when it could not query the volume, which is no status at all.
    return _signal(value)


@dataclass(frozen=True)
class Signals:
    disk_health: Optional[str]
    volume_health: Optional[str]
    operational: Optional[str]
    errors: int

    @classmethod
    def of(cls, volume: VolumeInfo, disk: Optional[DiskInfo], errors: int) -> "Signals":
        return cls(
            disk_health=_signal(disk.health_status) if disk else None,
            volume_health=_signal(volume.health_status),
            operational=_operational(volume.operational_status),
            errors=errors,
        )

    def either(self, status: str) -> bool:
        return status in (self.disk_health, self.volume_health)


def _all_healthy(s: Signals) -> bool:
    known = [h for h in (s.disk_health, s.volume_health) if h is not None]
    return bool(known) and all(h == "healthy" for h in known) and s.errors == 0


@dataclass(frozen=True)
class HealthRule:
    result: HealthClass
    applies: Callable[[Signals], bool]
    reason: Callable[[Signals], str]


# Evaluated top to bottom; the first rule that applies decides.
HEALTH_RULES: Tuple[HealthRule, ...] = (
    HealthRule(
        HealthClass.HEALTHY,
        _all_healthy,
        lambda s: "Disk and volume report Healthy with no recent disk errors",
    ),
    HealthRule(
        HealthClass.WARNING,
        lambda s: s.either("warning"),
        lambda s: "Disk or volume health is Warning",
    ),
    HealthRule(
        HealthClass.FAILED,
        lambda s: s.either("unhealthy"),
        lambda s: "Disk or volume health is Unhealthy",
    ),
    # "Unknown" never reaches here as a status, see _operational
    HealthRule(
        HealthClass.OFFLINE,
        lambda s: s.operational is not None and s.operational != "ok",
        lambda s: f"Volume operational status is {s.operational}",
    ),
    HealthRule(
        HealthClass.ERRORS,
        lambda s: s.errors > 0,
        lambda s: f"{s.errors} disk error event(s) in the lookback window",
    ),
)


def classify_health(
    volume: VolumeInfo, disk: Optional[DiskInfo], errors: int
) -> Tuple[HealthClass, str]:
    signals = Signals.of(volume, disk, errors)
    for rule in HEALTH_RULES:
        if rule.applies(signals):
            return rule.result, rule.reason(signals)
    return HealthClass.UNKNOWN, "No health signal available"


# Upper bounds in ms, exclusive; anything slower is Poor.
TIER_BANDS: Tuple[Tuple[float, PerformanceTier], ...] = (
    (1, PerformanceTier.EXCELLENT),
    (5, PerformanceTier.GOOD),
    (15, PerformanceTier.FAIR),
)


def mean_latency(metrics: Dict[MetricKind, float]) -> Optional[float]:
    read = metrics.get(MetricKind.READ_LATENCY_MS)
    write = metrics.get(MetricKind.WRITE_LATENCY_MS)
    if read is None or write is None:
        return None
    return (read + write) / 2


def performance_tier(metrics: Dict[MetricKind, float]) -> PerformanceTier:
    latency = mean_latency(metrics)
    if latency is None:
        return PerformanceTier.UNAVAILABLE
    for bound, tier in TIER_BANDS:
        if latency < bound:
            return tier
    return PerformanceTier.POOR


def grade(
    volume: VolumeInfo,
    disk: Optional[DiskInfo],
    metrics: Dict[MetricKind, float],
    errors: int,
) -> Tuple[HealthClass, PerformanceTier, List[str]]:
    health, reason = classify_health(volume, disk, errors)
    reasons = [reason]
    # metrics are keyed by the disk ordinal, so they only exist for a resolved disk
    tier = performance_tier(metrics) if disk is not None else PerformanceTier.UNAVAILABLE
    latency = mean_latency(metrics) if disk is not None else None
    if latency is None:
        reasons.append("Latency not sampled")
    else:
        reasons.append(f"Mean latency {latency:.2f} ms")
    if disk is not None and disk.temperature_c is not None and disk.temperature_c >= 60:
        reasons.append(f"High temperature ({disk.temperature_c}C)")
    return health, tier, reasons
