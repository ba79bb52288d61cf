"""
Flight models for FlightBoard.

Plain dataclasses, no persistence: every record lives for one fetch
cycle, and only the classified result outlives it inside the cache.
"""

from flightboard.models.flight import (
    Bucket,
    ClassifiedResult,
    Direction,
    DirectionBuckets,
    NormalizedFlight,
    format_timestamp,
)

__all__ = [
    'Bucket',
    'ClassifiedResult',
    'Direction',
    'DirectionBuckets',
    'NormalizedFlight',
    'format_timestamp',
]
