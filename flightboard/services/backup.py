"""
Static emergency flight list.

Served only when the feed is unreachable and nothing has been cached
yet. Every entry is stamped with the time of the request so the screen
always shows something current-looking instead of going blank.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence, Tuple

from flightboard.ingestion.airports import airport_name
from flightboard.models import ClassifiedResult, Direction, NormalizedFlight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackupFlight:
    """One hand-authored board entry."""
    flight_id: str
    origin_code: str
    direction: Direction


DEFAULT_BACKUP_FLIGHTS: Tuple[BackupFlight, ...] = (
    BackupFlight('WF540', 'OSL', Direction.ARRIVAL),
    BackupFlight('WF612', 'SVG', Direction.ARRIVAL),
    BackupFlight('WF721', 'TRD', Direction.ARRIVAL),
    BackupFlight('WF541', 'OSL', Direction.DEPARTURE),
    BackupFlight('WF613', 'SVG', Direction.DEPARTURE),
    BackupFlight('WF722', 'TRD', Direction.DEPARTURE),
)


def parse_backup_flights(value: str) -> Tuple[BackupFlight, ...]:
    """
    Parse 'WF540:OSL:A,WF541:OSL:D' into backup entries.

    Returns the built-in list when value is empty.
    """
    if not value or not value.strip():
        return DEFAULT_BACKUP_FLIGHTS

    entries = []
    for item in value.split(','):
        item = item.strip()
        if not item:
            continue
        try:
            flight_id, origin_code, direction = (part.strip() for part in item.split(':'))
            entries.append(BackupFlight(flight_id, origin_code.upper(), Direction(direction.upper())))
        except ValueError as e:
            raise ValueError(f'Invalid backup flight entry {item!r}: expected ID:ORIGIN:A|D') from e
    return tuple(entries)


def backup_result(
    entries: Sequence[BackupFlight],
    now: datetime,
    name_lookup: Callable[[str], str] = airport_name,
) -> ClassifiedResult:
    """Build a board from the backup list with every time set to now."""
    result = ClassifiedResult()
    for entry in entries:
        flight = NormalizedFlight(
            flight_id=entry.flight_id,
            raw_id=entry.flight_id,
            origin_code=entry.origin_code,
            origin_name=name_lookup(entry.origin_code) or entry.origin_code,
            scheduled_time=now,
            effective_time=now,
            direction=entry.direction,
        )
        result.for_direction(entry.direction).relevant.append(flight)
    return result
