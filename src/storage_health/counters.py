from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import DiskId, MetricKind, PerformanceTable
from .platform import JsonRunner, SourceUnavailable, as_list, run_powershell_json

logger = logging.getLogger(__name__)

DEFAULT_SAMPLES = 5
DEFAULT_INTERVAL_SEC = 1

_MIB = 2 ** 20


def _ms(value: float) -> float:
    return round(value * 1000, 2)


def _mbps(value: float) -> float:
    return round(value / _MIB, 2)


def _count(value: float) -> int:
    return int(round(value))


def _plain(value: float) -> float:
    return round(value, 2)


# counter name (lower case, as Get-Counter reports it) -> metric and unit conversion
COUNTERS: Dict[str, Tuple[MetricKind, Callable[[float], float]]] = {
    "avg. disk sec/read": (MetricKind.READ_LATENCY_MS, _ms),
    "avg. disk sec/write": (MetricKind.WRITE_LATENCY_MS, _ms),
    "current disk queue length": (MetricKind.QUEUE_LENGTH, _plain),
    "disk reads/sec": (MetricKind.READ_IOPS, _count),
    "disk writes/sec": (MetricKind.WRITE_IOPS, _count),
    "disk read bytes/sec": (MetricKind.READ_MBPS, _mbps),
    "disk write bytes/sec": (MetricKind.WRITE_MBPS, _mbps),
}

_PATH_INSTANCE = re.compile(r"\(([^)]*)\)\\[^\\]*$")


def _counter_script(samples: int, interval: int) -> str:
    paths = ",".join(f"'\\PhysicalDisk(*)\\{name}'" for name in COUNTERS)
    return (
        f"Get-Counter -Counter @({paths}) -SampleInterval {interval} -MaxSamples {samples} "
        "-ErrorAction Stop | ForEach-Object { $_.CounterSamples } | "
        "Select-Object Path,InstanceName,CookedValue | ConvertTo-Json -Depth 3"
    )


def _instance_of(sample: Dict[str, Any]) -> Optional[str]:
    instance = sample.get("InstanceName")
    if instance:
        return str(instance)
    m = _PATH_INSTANCE.search(str(sample.get("Path") or ""))
    return m.group(1) if m else None


def aggregate_samples(samples: List[Dict[str, Any]]) -> PerformanceTable:
    """Average raw counter samples per disk and metric, converting units."""
    buckets: Dict[Tuple[DiskId, str], List[float]] = {}
    for sample in samples:
        if not isinstance(sample, dict):
            continue
        path = str(sample.get("Path") or "")
        name = path.rsplit("\\", 1)[-1].strip().lower()
        if name not in COUNTERS:
            continue
        # "_Total" and other non-disk instances carry no ordinal
        disk = DiskId.parse(_instance_of(sample))
        if disk is None:
            logger.debug("Dropping counter sample without disk ordinal: %s", path)
            continue
        try:
            value = float(sample.get("CookedValue"))
        except (TypeError, ValueError):
            continue
        buckets.setdefault((disk, name), []).append(value)

    table: PerformanceTable = {}
    for (disk, name), values in buckets.items():
        kind, convert = COUNTERS[name]
        table.setdefault(disk, {})[kind] = convert(sum(values) / len(values))
    return table


def sample_performance(
    samples: int = DEFAULT_SAMPLES,
    interval: int = DEFAULT_INTERVAL_SEC,
    run_json: JsonRunner = run_powershell_json,
    unavailable: Optional[List[str]] = None,
) -> PerformanceTable:
    """Sample physical disk counters; blocks for about samples x interval seconds.

    Returns an empty table when the counter subsystem cannot be read, and
    appends ``"performance counters"`` to ``unavailable`` when given.
    """
    logger.info("Sampling disk performance counters (%d x %ds)", samples, interval)
    try:
        raw = run_json(_counter_script(samples, interval))
    except SourceUnavailable as exc:
        logger.warning("Performance counters unavailable: %s", exc)
        if unavailable is not None:
            unavailable.append("performance counters")
        return {}
    table = aggregate_samples(as_list(raw))
    logger.debug("Collected performance metrics for disks: %s", sorted(table))
    return table
