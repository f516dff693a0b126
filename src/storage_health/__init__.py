"""Storage health snapshot: per-drive health and performance from Windows storage sources."""

__version__ = "0.1.0"

from .models import (
    DiskId,
    DiskInfo,
    DriveReport,
    HealthClass,
    MetricKind,
    PerformanceTier,
    Snapshot,
    VolumeInfo,
)
from .platform import SourceUnavailable
from .config import Settings, load_settings
from .counters import sample_performance
from .eventlog import extract_disk_id, tally_errors
from .volumes import DiskCatalog, list_volumes
from .rules import classify_health, grade, performance_tier
from .report import assemble, build_report, row_to_dict

__all__ = [
    "DiskId",
    "DiskInfo",
    "DriveReport",
    "HealthClass",
    "MetricKind",
    "PerformanceTier",
    "Snapshot",
    "VolumeInfo",
    "SourceUnavailable",
    "Settings",
    "load_settings",
    "sample_performance",
    "extract_disk_id",
    "tally_errors",
    "DiskCatalog",
    "list_volumes",
    "classify_health",
    "grade",
    "performance_tier",
    "assemble",
    "build_report",
    "row_to_dict",
]
