"""
Flight classification - decides what the signage screen shows.

Each normalized flight passes through, in order:
1. Carrier allowlist (flight id prefix)
2. Blacklist (optionally whitespace-normalized id)
3. Day filter (same calendar date as now in the display timezone)
4. Signed age: minutes since effective time, negative for the future
5. Direction windows:
   - Arrival: must have happened (age > 0);
     min_age < age < max_age → RELEVANT, otherwise ARCHIVE
   - Departure: must be ahead (minutes to departure > 0);
     min_future < minutes < max_future → RELEVANT, otherwise ARCHIVE

Anything that fails a filter or a direction precondition is DROPPED and
appears in no list. Flights from another calendar day are dropped rather
than archived so yesterday's and tomorrow's schedule never reach the
screen.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import FrozenSet, Iterable

from dateutil import tz

from flightboard.config import config
from flightboard.models import Bucket, ClassifiedResult, Direction, NormalizedFlight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationRules:
    """Carrier filters and display windows (minutes)."""
    carrier_prefix: str = 'WF'
    blocked_ids: FrozenSet[str] = frozenset()
    normalize_blacklist_whitespace: bool = True
    arr_min_age: float = 15
    arr_max_age: float = 60
    dep_min_future: float = 15
    dep_max_future: float = 90

    @classmethod
    def from_config(cls) -> 'ClassificationRules':
        """Build rules from application configuration."""
        return cls(
            carrier_prefix=config.filters.carrier_prefix,
            blocked_ids=config.filters.blocked_ids,
            normalize_blacklist_whitespace=config.filters.normalize_blacklist_whitespace,
            arr_min_age=config.windows.arr_min_age,
            arr_max_age=config.windows.arr_max_age,
            dep_min_future=config.windows.dep_min_future,
            dep_max_future=config.windows.dep_max_future,
        )


def resolve_timezone(name: str) -> tzinfo:
    """Look up a display timezone by IANA name."""
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f'Unknown timezone: {name!r}')
    return zone


def minutes_between(earlier: datetime, later: datetime) -> float:
    """Signed minutes from earlier to later."""
    return (later - earlier).total_seconds() / 60


class Classifier:
    """
    Buckets normalized flights into relevant and archive lists.

    Pure function of (flights, rules, timezone, now): classifying the same
    input twice gives the same assignments in the same order.
    """

    def __init__(
        self,
        rules: ClassificationRules = None,
        display_tz: tzinfo = None,
    ):
        self.rules = rules or ClassificationRules.from_config()
        self.display_tz = display_tz if display_tz is not None else resolve_timezone(config.display.timezone)

    def is_blocked(self, flight: NormalizedFlight) -> bool:
        """Check the feed's id against the blacklist."""
        candidate = flight.raw_id
        if self.rules.normalize_blacklist_whitespace:
            candidate = ''.join(candidate.split())
        return candidate.upper() in self.rules.blocked_ids

    def is_same_day(self, flight: NormalizedFlight, now: datetime) -> bool:
        local_flight = flight.effective_time.astimezone(self.display_tz)
        local_now = now.astimezone(self.display_tz)
        return local_flight.date() == local_now.date()

    def bucket_for(self, flight: NormalizedFlight, now: datetime) -> Bucket:
        """Classify a single flight relative to now."""
        rules = self.rules

        if not flight.flight_id.startswith(rules.carrier_prefix):
            return Bucket.DROPPED

        if self.is_blocked(flight):
            return Bucket.DROPPED

        if not self.is_same_day(flight, now):
            return Bucket.DROPPED

        # Positive = in the past, negative = in the future
        age_minutes = minutes_between(flight.effective_time, now)

        if flight.direction is Direction.ARRIVAL:
            if age_minutes <= 0:
                return Bucket.DROPPED
            if rules.arr_min_age < age_minutes < rules.arr_max_age:
                return Bucket.RELEVANT
            return Bucket.ARCHIVE

        minutes_to_departure = -age_minutes
        if minutes_to_departure <= 0:
            return Bucket.DROPPED
        if rules.dep_min_future < minutes_to_departure < rules.dep_max_future:
            return Bucket.RELEVANT
        return Bucket.ARCHIVE

    def classify(
        self,
        flights: Iterable[NormalizedFlight],
        now: datetime,
    ) -> ClassifiedResult:
        """
        Classify flights into per-direction buckets.

        Lists keep feed order; ordering for display is the sorter's job.
        """
        result = ClassifiedResult()
        dropped = 0

        for flight in flights:
            bucket = self.bucket_for(flight, now)
            if bucket is Bucket.DROPPED:
                dropped += 1
                continue

            target = result.for_direction(flight.direction)
            if bucket is Bucket.RELEVANT:
                target.relevant.append(flight)
            else:
                target.archive.append(flight)

        logger.debug(f'Classified flights: {result.summary()}, dropped {dropped}')
        return result
