"""Shared test fixtures."""

import copy
from typing import Any, Dict, List

import pytest

from storage_health.platform import SourceUnavailable

GIB = 2 ** 30


class FakeRunner:
    """Stand-in for run_powershell_json keyed by a keyword in the script.

    Keys are tried in insertion order, so list more specific keywords first.
    A script that matches no key behaves like an unreachable source.
    """

    def __init__(self, outputs: Dict[str, Any]):
        self.outputs = outputs
        self.scripts: List[str] = []

    def __call__(self, script: str) -> Any:
        self.scripts.append(script)
        for keyword, output in self.outputs.items():
            if keyword in script:
                if isinstance(output, Exception):
                    raise output
                return copy.deepcopy(output)
        raise SourceUnavailable(f"No fake output for: {script[:40]}")

    def ran(self, keyword: str) -> bool:
        return any(keyword in s for s in self.scripts)


def _sample(instance, counter, value):
    return {
        "Path": f"\\\\host\\physicaldisk({instance})\\{counter}",
        "InstanceName": instance,
        "CookedValue": value,
    }


@pytest.fixture
def counter_samples():
    return [
        _sample("0 c:", "avg. disk sec/read", 0.0005),
        _sample("0 c:", "avg. disk sec/read", 0.0007),
        _sample("0 c:", "avg. disk sec/write", 0.0004),
        _sample("0 c:", "avg. disk sec/write", 0.0008),
        _sample("0 c:", "disk reads/sec", 10.4),
        _sample("0 c:", "disk reads/sec", 11.0),
        _sample("0 c:", "disk read bytes/sec", 1048576),
        _sample("0 c:", "disk read bytes/sec", 3145728),
        _sample("1 e:", "avg. disk sec/read", 0.012),
        _sample("1 e:", "avg. disk sec/write", 0.020),
        _sample("_total", "avg. disk sec/read", 0.004),
    ]


@pytest.fixture
def events():
    return [
        {"Id": 153, "Message": "The IO operation at logical block address 0x12 for Disk 1 was retried."},
        {"Id": 11, "Message": "The driver detected a controller error on \\\\.\\PhysicalDrive1."},
        {"Id": 129, "Message": "Reset to device, \\Device\\RaidPort0, was issued."},
    ]


@pytest.fixture
def volumes():
    return [
        {
            "DriveLetter": "E",
            "FileSystemLabel": "Archive",
            "FileSystem": "NTFS",
            "Size": 2000 * GIB,
            "SizeRemaining": 500 * GIB,
            "AllocationUnitSize": 4096,
            "HealthStatus": "Warning",
            "OperationalStatus": "OK",
        },
        {
            "DriveLetter": "C",
            "FileSystemLabel": "System",
            "FileSystem": "NTFS",
            "Size": 500 * GIB,
            "SizeRemaining": 125 * GIB,
            "AllocationUnitSize": 4096,
            "HealthStatus": "Healthy",
            "OperationalStatus": "OK",
        },
        {
            "DriveLetter": "D",
            "FileSystemLabel": "",
            "FileSystem": None,
            "Size": 0,
            "SizeRemaining": 0,
            "AllocationUnitSize": None,
            "HealthStatus": "Unknown",
            "OperationalStatus": "Unknown",
        },
    ]


@pytest.fixture
def partitions():
    return [
        {"DiskNumber": 0, "DriveLetter": "C"},
        {"DiskNumber": 1, "DriveLetter": "E"},
    ]


@pytest.fixture
def disks():
    return [
        {
            "Number": 0,
            "FriendlyName": "Samsung SSD 980 PRO",
            "SerialNumber": "S5GXNF0R123456",
            "Size": 1000 * GIB,
            "FirmwareVersion": "5B2QGXA7",
            "HealthStatus": "Healthy",
            "PartitionStyle": "GPT",
        },
        {
            "Number": 1,
            "FriendlyName": "WDC WD40EFRX",
            "SerialNumber": "WD-WCC7K0ABCDEF",
            "Size": 4000 * GIB,
            "FirmwareVersion": "82.00A82",
            "HealthStatus": "Healthy",
            "PartitionStyle": "GPT",
        },
    ]


@pytest.fixture
def outputs(counter_samples, events, volumes, partitions, disks):
    return {
        "Get-Counter": counter_samples,
        "Get-WinEvent": events,
        "Get-Volume": volumes,
        "Get-Partition": partitions,
        "Get-Disk": disks,
        "Get-StorageReliabilityCounter": [
            {"DeviceId": "0", "Temperature": 38, "Wear": 2},
            {"DeviceId": "1", "Temperature": 0, "Wear": None},
        ],
        "Get-PhysicalDisk": [
            {"DeviceId": "0", "MediaType": "SSD"},
            {"DeviceId": "1", "MediaType": "HDD"},
        ],
    }


@pytest.fixture
def runner(outputs):
    return FakeRunner(outputs)
