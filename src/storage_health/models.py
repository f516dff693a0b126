from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

_LEADING_ORDINAL = re.compile(r"^\s*(\d+)(?:\s|$)")


class DiskId(str):
    """Physical disk ordinal, the join key shared by every collector."""

    @classmethod
    def parse(cls, value: Any) -> Optional["DiskId"]:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return cls(str(value)) if value >= 0 else None
        m = _LEADING_ORDINAL.match(str(value))
        if not m:
            return None
        return cls(str(int(m.group(1))))


class MetricKind(str, Enum):
    READ_LATENCY_MS = "ReadLatencyMs"
    WRITE_LATENCY_MS = "WriteLatencyMs"
    QUEUE_LENGTH = "QueueLength"
    READ_IOPS = "ReadIOPS"
    WRITE_IOPS = "WriteIOPS"
    READ_MBPS = "ReadMBps"
    WRITE_MBPS = "WriteMBps"


class HealthClass(str, Enum):
    HEALTHY = "Healthy"
    WARNING = "Warning"
    FAILED = "Failed"
    OFFLINE = "Offline"
    ERRORS = "Errors"
    UNKNOWN = "Unknown"

    @property
    def is_failed(self) -> bool:
        return self in (HealthClass.FAILED, HealthClass.OFFLINE, HealthClass.ERRORS)


class PerformanceTier(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    UNAVAILABLE = "Unavailable"


PerformanceTable = Dict[DiskId, Dict[MetricKind, float]]
ErrorTally = Dict[DiskId, int]


@dataclass
class VolumeInfo:
    letter: str
    label: Optional[str] = None
    file_system: Optional[str] = None
    size_bytes: Optional[int] = None
    free_bytes: Optional[int] = None
    allocation_unit: Optional[int] = None
    health_status: Optional[str] = None
    operational_status: Optional[str] = None


@dataclass
class DiskInfo:
    number: DiskId
    model: Optional[str] = None
    serial: Optional[str] = None
    size_bytes: Optional[int] = None
    firmware: Optional[str] = None
    health_status: Optional[str] = None
    media_type: Optional[str] = None
    partition_style: Optional[str] = None
    temperature_c: Optional[int] = None
    wear_percent: Optional[int] = None


@dataclass
class DriveReport:
    volume: VolumeInfo
    disk: Optional[DiskInfo]
    metrics: Dict[MetricKind, float]
    error_count: int
    health: HealthClass
    tier: PerformanceTier
    reasons: List[str] = field(default_factory=list)


@dataclass
class Snapshot:
    generated_at: datetime
    host: str
    rows: List[DriveReport]
    unavailable_sources: List[str] = field(default_factory=list)
