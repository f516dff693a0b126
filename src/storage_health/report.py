from __future__ import annotations

import csv
import json
import logging
import socket
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import Settings
from .counters import sample_performance
from .eventlog import tally_errors
from .models import DriveReport, ErrorTally, MetricKind, PerformanceTable, Snapshot, VolumeInfo
from .platform import JsonRunner, run_powershell_json
from .rules import grade
from .volumes import DiskCatalog, free_percent, list_volumes, to_gib

logger = logging.getLogger(__name__)

UNAVAILABLE = "Unavailable"

COLUMNS = [
    "Drive",
    "Label",
    "FileSystem",
    "SizeGB",
    "FreeGB",
    "FreePercent",
    "AllocationUnit",
    "VolumeHealth",
    "OperationalStatus",
    "DiskNumber",
    "Model",
    "Serial",
    "DiskSizeGB",
    "Firmware",
    "DiskHealth",
    "MediaType",
    "PartitionStyle",
    "TemperatureC",
    "WearPercent",
] + [kind.value for kind in MetricKind] + [
    "ErrorCount",
    "Health",
    "Performance",
    "Notes",
]


def assemble(
    volumes: List[VolumeInfo],
    catalog: DiskCatalog,
    performance: PerformanceTable,
    errors: ErrorTally,
) -> List[DriveReport]:
    """Join every volume with its disk, metrics and error count, grade, sort by letter."""
    rows: List[DriveReport] = []
    for volume in volumes:
        disk = catalog.resolve(volume.letter)
        metrics = dict(performance.get(disk.number, {})) if disk else {}
        count = errors.get(disk.number, 0) if disk else 0
        health, tier, reasons = grade(volume, disk, metrics, count)
        rows.append(
            DriveReport(
                volume=volume,
                disk=disk,
                metrics=metrics,
                error_count=count,
                health=health,
                tier=tier,
                reasons=reasons,
            )
        )
    rows.sort(key=lambda r: r.volume.letter)
    return rows


def build_report(
    settings: Optional[Settings] = None, run_json: Optional[JsonRunner] = None
) -> Snapshot:
    """Collect from every source in turn and grade each lettered volume.

    Never raises for a missing source: each one degrades to no data and is
    listed in ``Snapshot.unavailable_sources``.
    """
    settings = settings or Settings()
    if run_json is None:
        run_json = partial(run_powershell_json, exe=settings.powershell)
    unavailable: List[str] = []

    performance = sample_performance(
        settings.sample_count, settings.sample_interval_sec, run_json, unavailable
    )
    errors = tally_errors(
        settings.lookback_hours, settings.event_ids, settings.log_name, run_json, unavailable
    )
    volumes = list_volumes(run_json, unavailable)
    catalog = DiskCatalog.load(run_json, unavailable)

    rows = assemble(volumes, catalog, performance, errors)
    logger.info("Report built for %d volume(s)", len(rows))
    return Snapshot(
        generated_at=datetime.now(timezone.utc),
        host=socket.gethostname(),
        rows=rows,
        unavailable_sources=unavailable,
    )


def _or_unavailable(value: Any) -> Any:
    return UNAVAILABLE if value is None else value


def row_to_dict(row: DriveReport) -> Dict[str, Any]:
    vol = row.volume
    disk = row.disk
    values: Dict[str, Any] = {
        "Drive": f"{vol.letter}:",
        "Label": vol.label,
        "FileSystem": vol.file_system,
        "SizeGB": to_gib(vol.size_bytes),
        "FreeGB": to_gib(vol.free_bytes),
        "FreePercent": free_percent(vol.free_bytes, vol.size_bytes),
        "AllocationUnit": vol.allocation_unit,
        "VolumeHealth": vol.health_status,
        "OperationalStatus": vol.operational_status,
        "DiskNumber": disk.number if disk else None,
        "Model": disk.model if disk else None,
        "Serial": disk.serial if disk else None,
        "DiskSizeGB": to_gib(disk.size_bytes) if disk else None,
        "Firmware": disk.firmware if disk else None,
        "DiskHealth": disk.health_status if disk else None,
        "MediaType": disk.media_type if disk else None,
        "PartitionStyle": disk.partition_style if disk else None,
        "TemperatureC": disk.temperature_c if disk else None,
        "WearPercent": disk.wear_percent if disk else None,
    }
    for kind in MetricKind:
        values[kind.value] = row.metrics.get(kind)
    values["ErrorCount"] = row.error_count
    values["Health"] = row.health.value
    values["Performance"] = row.tier.value
    values["Notes"] = "; ".join(row.reasons)
    return {name: _or_unavailable(values[name]) for name in COLUMNS}


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    return {
        "generated_at": snapshot.generated_at.isoformat(),
        "host": snapshot.host,
        "unavailable_sources": list(snapshot.unavailable_sources),
        "drives": [row_to_dict(r) for r in snapshot.rows],
    }


def write_json(snapshot: Snapshot, path: Union[str, Path]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot_to_dict(snapshot), f, ensure_ascii=False, indent=2)


def write_csv(snapshot: Snapshot, path: Union[str, Path]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=COLUMNS)
        writer.writeheader()
        for row in snapshot.rows:
            writer.writerow(row_to_dict(row))


SUMMARY_COLUMNS = ["Drive", "Model", "MediaType", "SizeGB", "FreePercent", "TemperatureC", "ErrorCount", "Health", "Performance"]


def format_table(snapshot: Snapshot) -> str:
    """Plain text summary, one line per drive."""
    table = [SUMMARY_COLUMNS] + [
        [str(d[c]) for c in SUMMARY_COLUMNS] for d in map(row_to_dict, snapshot.rows)
    ]
    widths = [max(len(line[i]) for line in table) for i in range(len(SUMMARY_COLUMNS))]
    lines = ["  ".join(cell.ljust(w) for cell, w in zip(line, widths)).rstrip() for line in table]
    if snapshot.unavailable_sources:
        lines.append("")
        lines.append("Unavailable sources: " + ", ".join(snapshot.unavailable_sources))
    return "\n".join(lines)
