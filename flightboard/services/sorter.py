"""
Display ordering for classified flights.

Arrivals, relevant and archive: most recent first.
Departures, relevant and archive: soonest first.

Python's sort is stable in both directions, so flights sharing an
effective time keep their feed order.
"""

from typing import List

from flightboard.models import ClassifiedResult, DirectionBuckets, NormalizedFlight


def _by_effective_time(flight: NormalizedFlight):
    return flight.effective_time


def newest_first(flights: List[NormalizedFlight]) -> List[NormalizedFlight]:
    return sorted(flights, key=_by_effective_time, reverse=True)


def soonest_first(flights: List[NormalizedFlight]) -> List[NormalizedFlight]:
    return sorted(flights, key=_by_effective_time)


def sort_for_display(result: ClassifiedResult) -> ClassifiedResult:
    """Return a new result with every bucket in display order."""
    return ClassifiedResult(
        arrivals=DirectionBuckets(
            relevant=newest_first(result.arrivals.relevant),
            archive=newest_first(result.arrivals.archive),
        ),
        departures=DirectionBuckets(
            relevant=soonest_first(result.departures.relevant),
            archive=soonest_first(result.departures.archive),
        ),
    )
