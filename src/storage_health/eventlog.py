from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import DiskId, ErrorTally
from .platform import JsonRunner, SourceUnavailable, as_list, run_powershell_json

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_HOURS = 24
DEFAULT_LOG_NAME = "System"

# System log ids raised by disk, storport and ntfs providers
DEFAULT_EVENT_IDS = (
    7,    # bad block on the device
    9,    # controller did not respond within the timeout
    11,   # controller error
    15,   # device not ready for access
    51,   # error detected during a paging operation
    52,   # failure predicted by the drive's self-test
    55,   # file system structure corrupt
    129,  # reset issued to the device
    153,  # I/O operation retried
    157,  # disk surprise removed
)

# Tried in order; the first pattern that matches attributes the event.
DISK_PATTERNS = (
    re.compile(r"\bdisk\s+(\d+)\b", re.IGNORECASE),
    re.compile(r"PhysicalDrive(\d+)", re.IGNORECASE),
)


def extract_disk_id(message: Optional[str]) -> Optional[DiskId]:
    if not message:
        return None
    for pattern in DISK_PATTERNS:
        m = pattern.search(message)
        if m:
            return DiskId.parse(m.group(1))
    return None


def count_events(events: Iterable[Dict[str, Any]]) -> ErrorTally:
    tally: ErrorTally = {}
    for event in events:
        if not isinstance(event, dict):
            continue
        disk = extract_disk_id(event.get("Message"))
        if disk is None:
            logger.debug("Event %s could not be attributed to a disk", event.get("Id"))
            continue
        tally[disk] = tally.get(disk, 0) + 1
    return tally


def valid_event_ids(values: Any) -> List[int]:
    """Event ids as ints; a string is split on commas, bad entries are dropped."""
    if values is None:
        return []
    if isinstance(values, (str, int, float)):
        values = str(values).replace(";", ",").split(",")
    ids: List[int] = []
    for value in values:
        if isinstance(value, bool):
            logger.warning("Ignoring invalid event id: %r", value)
            continue
        try:
            ids.append(int(str(value).strip()))
        except ValueError:
            if str(value).strip():
                logger.warning("Ignoring invalid event id: %r", value)
    return ids


def _event_script(log_name: str, event_ids: Sequence[int], lookback_hours: float) -> str:
    ids = ",".join(str(i) for i in event_ids)
    return (
        f"$filter = @{{LogName='{log_name}'; Id={ids}; StartTime=(Get-Date).AddHours(-{lookback_hours})}}; "
        "try { $events = Get-WinEvent -FilterHashtable $filter -ErrorAction Stop } "
        "catch { if ($_.FullyQualifiedErrorId -like 'NoMatchingEventsFound*') { $events = @() } else { throw } }; "
        "$events | Select-Object Id,ProviderName,"
        "@{n='TimeCreated';e={$_.TimeCreated.ToString('o')}},Message | ConvertTo-Json -Depth 3"
    )


def tally_errors(
    lookback_hours: float = DEFAULT_LOOKBACK_HOURS,
    event_ids: Sequence[int] = DEFAULT_EVENT_IDS,
    log_name: str = DEFAULT_LOG_NAME,
    run_json: JsonRunner = run_powershell_json,
    unavailable: Optional[List[str]] = None,
) -> ErrorTally:
    """Count disk error events in the lookback window, keyed by disk ordinal.

    Events whose message names no disk are dropped. An unreadable log yields an
    empty tally and appends ``"event log"`` to ``unavailable`` when given.
    """
    event_ids = valid_event_ids(event_ids)
    if not event_ids:
        return {}
    try:
        raw = run_json(_event_script(log_name, event_ids, lookback_hours))
    except SourceUnavailable as exc:
        logger.warning("Event log %s unavailable: %s", log_name, exc)
        if unavailable is not None:
            unavailable.append("event log")
        return {}
    events = as_list(raw)
    tally = count_events(events)
    logger.info(
        "Scanned %d disk error events from the last %sh, %d attributed",
        len(events),
        lookback_hours,
        sum(tally.values()),
    )
    return tally
