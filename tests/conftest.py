"""Shared fixtures for FlightBoard tests."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest
from dateutil import tz

from flightboard.ingestion import UpstreamTimeout
from flightboard.models import Direction, NormalizedFlight
from flightboard.services import BackupFlight, ClassificationRules, Classifier


NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_flight(
    flight_id: str = 'WF540',
    direction: Direction = Direction.ARRIVAL,
    minutes_from_now: float = -20,
    now: datetime = NOW,
    origin_code: str = 'OSL',
    raw_id: Optional[str] = None,
) -> NormalizedFlight:
    """Build a flight whose effective time is offset from now."""
    when = now + timedelta(minutes=minutes_from_now)
    return NormalizedFlight(
        flight_id=''.join(flight_id.split())[:6],
        raw_id=raw_id if raw_id is not None else flight_id,
        origin_code=origin_code,
        origin_name=origin_code,
        scheduled_time=when,
        effective_time=when,
        direction=direction,
    )


class FakeFeedClient:
    """
    Stand-in for FeedClient.fetch_board.

    Returns the configured flights, raises the configured error, and can
    block until released to hold a fetch in flight.
    """

    base_url = 'https://feed.test/XmlFeed'
    airport_code = 'BGO'
    hours_back = 24
    hours_forward = 4

    def __init__(self, flights: Optional[List[NormalizedFlight]] = None):
        self.flights = flights or []
        self.error: Optional[BaseException] = None
        self.calls = 0
        self.started = threading.Event()
        self.release = threading.Event()
        self.release.set()

    def fetch_board(self, now: datetime) -> List[NormalizedFlight]:
        self.calls += 1
        self.started.set()
        self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return list(self.flights)

    def fail_with(self, error: BaseException = None) -> None:
        self.error = error or UpstreamTimeout('Feed did not answer within 10s')

    @property
    def stats(self) -> dict:
        return {'fetch_count': self.calls, 'error_count': 0, 'last_fetch_time': 0, 'verify_tls': False}


class Clock:
    """Settable clock for TTL tests."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def flight_factory() -> Callable[..., NormalizedFlight]:
    return make_flight


@pytest.fixture
def rules() -> ClassificationRules:
    """Default Bergen rules with a small blacklist."""
    return ClassificationRules(
        carrier_prefix='WF',
        blocked_ids=frozenset({'WF451', 'WF150'}),
        normalize_blacklist_whitespace=True,
        arr_min_age=15,
        arr_max_age=60,
        dep_min_future=15,
        dep_max_future=90,
    )


@pytest.fixture
def classifier(rules: ClassificationRules) -> Classifier:
    return Classifier(rules, display_tz=tz.UTC)


@pytest.fixture
def backup_flights() -> List[BackupFlight]:
    return [
        BackupFlight('WF540', 'OSL', Direction.ARRIVAL),
        BackupFlight('WF541', 'SVG', Direction.DEPARTURE),
    ]


@pytest.fixture
def sample_flights() -> List[NormalizedFlight]:
    """One flight per interesting bucket, in feed order."""
    return [
        make_flight('WF540', Direction.ARRIVAL, -20),      # relevant
        make_flight('WF612', Direction.ARRIVAL, -90),      # archive
        make_flight('SK4010', Direction.ARRIVAL, -30),     # wrong carrier
        make_flight('WF541', Direction.DEPARTURE, 45),     # relevant
        make_flight('WF613', Direction.DEPARTURE, 5),      # archive
        make_flight('WF 451', Direction.DEPARTURE, 30),    # blacklisted
    ]


@pytest.fixture
def fake_client(sample_flights) -> FakeFeedClient:
    return FakeFeedClient(sample_flights)


@pytest.fixture
def clock() -> Clock:
    return Clock()
