from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .models import DiskId, DiskInfo, VolumeInfo
from .platform import JsonRunner, SourceUnavailable, as_list, run_powershell_json

logger = logging.getLogger(__name__)

_GIB = 2 ** 30

VOLUME_QUERY = (
    "Get-Volume | Where-Object DriveLetter | Select-Object "
    "@{n='DriveLetter';e={[string]$_.DriveLetter}},FileSystemLabel,FileSystem,Size,SizeRemaining,"
    "AllocationUnitSize,@{n='HealthStatus';e={[string]$_.HealthStatus}},"
    "@{n='OperationalStatus';e={[string]$_.OperationalStatus}} | ConvertTo-Json -Depth 3"
)
PARTITION_QUERY = (
    "Get-Partition | Where-Object DriveLetter | Select-Object DiskNumber,"
    "@{n='DriveLetter';e={[string]$_.DriveLetter}} | ConvertTo-Json -Depth 3"
)
DISK_QUERY = (
    "Get-Disk | Select-Object Number,FriendlyName,SerialNumber,Size,FirmwareVersion,"
    "@{n='HealthStatus';e={[string]$_.HealthStatus}},"
    "@{n='PartitionStyle';e={[string]$_.PartitionStyle}} | ConvertTo-Json -Depth 3"
)
MEDIA_QUERY = (
    "Get-PhysicalDisk | Select-Object DeviceId,"
    "@{n='MediaType';e={[string]$_.MediaType}} | ConvertTo-Json -Depth 3"
)
RELIABILITY_QUERY = (
    "Get-PhysicalDisk | Get-StorageReliabilityCounter | "
    "Select-Object DeviceId,Temperature,Wear | ConvertTo-Json -Depth 3"
)


def to_gib(value: Optional[int]) -> Optional[float]:
    if value is None:
        return None
    return round(value / _GIB, 2)


def free_percent(free: Optional[int], total: Optional[int]) -> Optional[float]:
    if free is None:
        return None
    if not total:
        return 0.0
    return round(free / total * 100, 1)


def _letter(value: Any) -> Optional[str]:
    if not value:
        return None
    letter = str(value).strip().rstrip(":").upper()
    return letter or None


def _str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _label(value: Any) -> Optional[str]:
    # an empty label is a real label, only a missing one is unavailable
    return None if value is None else str(value).strip()


def _int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _query(
    run_json: JsonRunner, script: str, source: str, unavailable: Optional[List[str]]
) -> Optional[List[Any]]:
    try:
        return [r for r in as_list(run_json(script)) if isinstance(r, dict)]
    except SourceUnavailable as exc:
        logger.warning("%s unavailable: %s", source.capitalize(), exc)
        if unavailable is not None:
            unavailable.append(source)
        return None


def list_volumes(
    run_json: JsonRunner = run_powershell_json, unavailable: Optional[List[str]] = None
) -> List[VolumeInfo]:
    """Lettered volumes only; the first entry wins when a letter repeats."""
    rows = _query(run_json, VOLUME_QUERY, "volumes", unavailable) or []
    seen: Set[str] = set()
    result: List[VolumeInfo] = []
    for v in rows:
        letter = _letter(v.get("DriveLetter"))
        if not letter or letter in seen:
            continue
        seen.add(letter)
        result.append(
            VolumeInfo(
                letter=letter,
                label=_label(v.get("FileSystemLabel")),
                file_system=_str(v.get("FileSystem")),
                size_bytes=_int(v.get("Size")),
                free_bytes=_int(v.get("SizeRemaining")),
                allocation_unit=_int(v.get("AllocationUnitSize")),
                health_status=_str(v.get("HealthStatus")),
                operational_status=_str(v.get("OperationalStatus")),
            )
        )
    return result


@dataclass
class DiskCatalog:
    """Partition-to-disk mapping and disk attributes, queried once per run."""

    letters: Dict[str, Set[DiskId]] = field(default_factory=dict)
    disks: Dict[DiskId, DiskInfo] = field(default_factory=dict)

    @classmethod
    def load(
        cls, run_json: JsonRunner = run_powershell_json, unavailable: Optional[List[str]] = None
    ) -> "DiskCatalog":
        catalog = cls()

        for p in _query(run_json, PARTITION_QUERY, "partitions", unavailable) or []:
            letter = _letter(p.get("DriveLetter"))
            disk = DiskId.parse(p.get("DiskNumber"))
            if letter and disk is not None:
                catalog.letters.setdefault(letter, set()).add(disk)

        for d in _query(run_json, DISK_QUERY, "disks", unavailable) or []:
            number = DiskId.parse(d.get("Number"))
            if number is None:
                continue
            catalog.disks[number] = DiskInfo(
                number=number,
                model=_str(d.get("FriendlyName")),
                serial=_str(d.get("SerialNumber")),
                size_bytes=_int(d.get("Size")),
                firmware=_str(d.get("FirmwareVersion")),
                health_status=_str(d.get("HealthStatus")),
                partition_style=_str(d.get("PartitionStyle")),
            )

        if catalog.disks:
            catalog._add_media_types(run_json, unavailable)
            catalog._add_reliability(run_json, unavailable)
        return catalog

    def _add_media_types(self, run_json: JsonRunner, unavailable: Optional[List[str]]) -> None:
        for m in _query(run_json, MEDIA_QUERY, "media types", unavailable) or []:
            disk = self.disks.get(DiskId.parse(m.get("DeviceId")))
            if disk is not None:
                media = _str(m.get("MediaType"))
                disk.media_type = None if media == "Unspecified" else media

    def _add_reliability(self, run_json: JsonRunner, unavailable: Optional[List[str]]) -> None:
        for r in _query(run_json, RELIABILITY_QUERY, "reliability counters", unavailable) or []:
            disk = self.disks.get(DiskId.parse(r.get("DeviceId")))
            if disk is None:
                continue
            temperature = _int(r.get("Temperature"))
            # drives without a sensor report 0
            disk.temperature_c = temperature if temperature else None
            disk.wear_percent = _int(r.get("Wear"))

    def resolve(self, letter: str) -> Optional[DiskInfo]:
        numbers = self.letters.get(_letter(letter) or "", set())
        if len(numbers) != 1:
            if numbers:
                logger.info("Volume %s: spans disks %s", letter, sorted(numbers))
            else:
                logger.info("Volume %s: no backing disk found", letter)
            return None
        number = next(iter(numbers))
        disk = self.disks.get(number)
        if disk is None:
            logger.info("Volume %s: disk %s not listed", letter, number)
        return disk
