"""
Flight models - the canonical records flowing through the board pipeline.

A NormalizedFlight is built once per fetch cycle by the feed client and
discarded after classification and serialization. Its effective time is
resolved at construction and never recomputed downstream.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


class Direction(str, Enum):
    """Movement direction as encoded by the feed's arr_dep field."""
    ARRIVAL = 'A'
    DEPARTURE = 'D'


class Bucket(str, Enum):
    """
    Classification outcome for a single flight.

    - RELEVANT: inside the display window (just landed / about to leave)
    - ARCHIVE: happened or happens today, outside the window
    - DROPPED: excluded from every output list
    """
    RELEVANT = 'relevant'
    ARCHIVE = 'archive'
    DROPPED = 'dropped'


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with seconds precision."""
    return value.astimezone(timezone.utc).replace(microsecond=0).strftime('%Y-%m-%dT%H:%M:%SZ')


@dataclass(frozen=True)
class NormalizedFlight:
    """
    One flight after feed normalization.

    flight_id is whitespace-free and at most 6 characters; raw_id keeps
    the identifier as the feed sent it for blacklist matching.
    """
    flight_id: str
    raw_id: str
    origin_code: str
    origin_name: str
    scheduled_time: datetime
    effective_time: datetime
    direction: Direction
    status_code: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for the structured payload."""
        return {
            'id': self.flight_id,
            'from': self.origin_name,
            'time': format_timestamp(self.effective_time),
            'type': self.direction.value,
        }

    def to_flat_dict(self) -> dict:
        """Minimal representation for the flat payload."""
        return {
            'id': self.flight_id,
            'from': self.origin_name,
            'time': format_timestamp(self.effective_time),
        }


@dataclass
class DirectionBuckets:
    """Relevant and archive lists for one direction."""
    relevant: List[NormalizedFlight] = field(default_factory=list)
    archive: List[NormalizedFlight] = field(default_factory=list)

    def to_dict(self) -> Dict[str, list]:
        return {
            'relevant': [f.to_dict() for f in self.relevant],
            'archive': [f.to_dict() for f in self.archive],
        }


@dataclass
class ClassifiedResult:
    """Output of one classification cycle, per direction."""
    arrivals: DirectionBuckets = field(default_factory=DirectionBuckets)
    departures: DirectionBuckets = field(default_factory=DirectionBuckets)

    def for_direction(self, direction: Direction) -> DirectionBuckets:
        if direction is Direction.ARRIVAL:
            return self.arrivals
        return self.departures

    @property
    def is_empty(self) -> bool:
        return not (
            self.arrivals.relevant or self.arrivals.archive
            or self.departures.relevant or self.departures.archive
        )

    def to_dict(self) -> dict:
        """Structured payload: {arrivals:{relevant,archive}, departures:{...}}."""
        return {
            'arrivals': self.arrivals.to_dict(),
            'departures': self.departures.to_dict(),
        }

    def to_flat_list(self) -> List[dict]:
        """Flat payload: relevant arrivals followed by relevant departures."""
        return [
            f.to_flat_dict()
            for f in self.arrivals.relevant + self.departures.relevant
        ]

    def summary(self) -> str:
        return (
            f'Arr: {len(self.arrivals.relevant)}/{len(self.arrivals.archive)}, '
            f'Dep: {len(self.departures.relevant)}/{len(self.departures.archive)}'
        )
