from __future__ import annotations

import json
import logging
import platform
import subprocess
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

JsonRunner = Callable[[str], Any]


class SourceUnavailable(RuntimeError):
    """A backing system query could not be run or returned unusable output."""


def run_powershell_json(cmd: str, exe: str = "powershell") -> Any:
    """Run a PowerShell pipeline ending in ConvertTo-Json and decode it.

    Empty output decodes to an empty list: a query such as Get-WinEvent with
    -ErrorAction SilentlyContinue prints nothing when nothing matched.
    """
    if platform.system() != "Windows":
        raise SourceUnavailable(f"PowerShell storage queries need Windows, not {platform.system()}")
    ps_cmd = [exe, "-NoProfile", "-NonInteractive", "-Command", cmd]
    logger.debug("Running: %s", cmd)
    try:
        proc = subprocess.run(ps_cmd, capture_output=True, text=True)
    except OSError as exc:
        raise SourceUnavailable(f"Cannot start {exe}: {exc}") from exc
    out = proc.stdout.strip()
    if not out:
        if proc.returncode != 0:
            raise SourceUnavailable(proc.stderr.strip() or f"{exe} exited with {proc.returncode}")
        return []
    try:
        return json.loads(out)
    except json.JSONDecodeError as exc:
        raise SourceUnavailable(f"{exe} returned non-JSON output") from exc


def as_list(data: Any) -> List[Any]:
    # ConvertTo-Json emits a bare object when the pipeline held one item
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)
