"""
Tests for flight classification.

Tests cover:
- Carrier allowlist and blacklist (with and without whitespace normalization)
- Calendar-day filter in the display timezone
- Arrival and departure window boundaries
- Idempotence and feed-order preservation
"""

from datetime import datetime, timezone

import pytest
from dateutil import tz

from conftest import NOW, make_flight
from flightboard.models import Bucket, Direction, NormalizedFlight
from flightboard.services import ClassificationRules, Classifier, resolve_timezone


# =============================================================================
# FILTERS
# =============================================================================


class TestCarrierFilters:
    """Tests for allowlist and blacklist handling."""

    def test_other_carrier_is_dropped(self, classifier):
        flight = make_flight('SK4010', Direction.ARRIVAL, -20)
        assert classifier.bucket_for(flight, NOW) is Bucket.DROPPED

    def test_other_carrier_never_in_output(self, classifier):
        flights = [
            make_flight('SK4010', Direction.ARRIVAL, -20),
            make_flight('DY620', Direction.ARRIVAL, -90),
            make_flight('KL1183', Direction.DEPARTURE, 30),
            make_flight('SK4011', Direction.DEPARTURE, 200),
        ]

        result = classifier.classify(flights, NOW)

        assert result.is_empty

    def test_blacklisted_id_is_dropped(self, classifier):
        flight = make_flight('WF451', Direction.DEPARTURE, 30)
        assert classifier.bucket_for(flight, NOW) is Bucket.DROPPED

    def test_blacklist_matches_id_with_embedded_space(self, classifier):
        flight = make_flight('WF 451', Direction.DEPARTURE, 30)
        assert classifier.bucket_for(flight, NOW) is Bucket.DROPPED

    def test_blacklist_without_normalization_matches_exact_id_only(self, rules):
        literal = Classifier(
            ClassificationRules(
                blocked_ids=rules.blocked_ids,
                normalize_blacklist_whitespace=False,
            ),
            display_tz=tz.UTC,
        )

        assert literal.bucket_for(make_flight('WF451', Direction.DEPARTURE, 30), NOW) is Bucket.DROPPED
        assert literal.bucket_for(make_flight('WF 451', Direction.DEPARTURE, 30), NOW) is Bucket.RELEVANT

    def test_blacklist_checks_feed_id_before_truncation(self, classifier):
        # 'WF4511' is not 'WF451' even though both fit the display width
        flight = make_flight('WF4511', Direction.DEPARTURE, 30)
        assert classifier.bucket_for(flight, NOW) is Bucket.RELEVANT

    def test_empty_prefix_allows_every_carrier(self):
        open_classifier = Classifier(ClassificationRules(carrier_prefix=''), display_tz=tz.UTC)
        flight = make_flight('SK4010', Direction.ARRIVAL, -20)
        assert open_classifier.bucket_for(flight, NOW) is Bucket.RELEVANT


# =============================================================================
# DAY FILTER
# =============================================================================


class TestDayFilter:
    """Tests for dropping flights from other calendar days."""

    def test_flight_from_previous_day_is_dropped_not_archived(self, classifier):
        now = datetime(2024, 1, 2, 0, 30, tzinfo=timezone.utc)
        flight = make_flight('WF540', Direction.ARRIVAL, -40, now=now)

        assert classifier.bucket_for(flight, now) is Bucket.DROPPED

    def test_departure_tomorrow_is_dropped(self, classifier):
        now = datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc)
        flight = make_flight('WF541', Direction.DEPARTURE, 45, now=now)

        assert classifier.bucket_for(flight, now) is Bucket.DROPPED

    def test_day_boundary_follows_display_timezone(self, rules):
        # Flight at 23:30Z is 00:30 in Oslo, the same local day as now (01:10)
        now = datetime(2024, 1, 2, 0, 10, tzinfo=timezone.utc)
        flight = make_flight('WF540', Direction.ARRIVAL, -40, now=now)

        oslo = Classifier(rules, display_tz=resolve_timezone('Europe/Oslo'))
        utc = Classifier(rules, display_tz=tz.UTC)

        assert oslo.bucket_for(flight, now) is Bucket.RELEVANT
        assert utc.bucket_for(flight, now) is Bucket.DROPPED

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValueError):
            resolve_timezone('Mars/Olympus_Mons')


# =============================================================================
# WINDOWS
# =============================================================================


class TestArrivalWindow:
    """Tests for arrival bucketing by minutes since landing."""

    @pytest.mark.parametrize('age, expected', [
        (20, Bucket.RELEVANT),
        (15.5, Bucket.RELEVANT),
        (59, Bucket.RELEVANT),
        (15, Bucket.ARCHIVE),
        (10, Bucket.ARCHIVE),
        (1, Bucket.ARCHIVE),
        (60, Bucket.ARCHIVE),
        (90, Bucket.ARCHIVE),
        (0, Bucket.DROPPED),
        (-10, Bucket.DROPPED),
    ])
    def test_bucket_by_age(self, classifier, age, expected):
        flight = make_flight('WF540', Direction.ARRIVAL, -age)
        assert classifier.bucket_for(flight, NOW) is expected

    def test_status_without_time_uses_schedule(self, classifier):
        # Arrival scheduled 11:40, status code present but no status time
        scheduled = datetime(2024, 1, 1, 11, 40, tzinfo=timezone.utc)
        flight = NormalizedFlight(
            flight_id='WF540',
            raw_id='WF540',
            origin_code='OSL',
            origin_name='OSLO',
            scheduled_time=scheduled,
            effective_time=scheduled,
            direction=Direction.ARRIVAL,
            status_code='A',
        )

        assert classifier.bucket_for(flight, NOW) is Bucket.RELEVANT

    def test_classification_uses_effective_time(self, classifier):
        # Scheduled 10:30 (archive) but landed 11:45 (relevant)
        flight = NormalizedFlight(
            flight_id='WF540',
            raw_id='WF540',
            origin_code='OSL',
            origin_name='OSLO',
            scheduled_time=datetime(2024, 1, 1, 10, 30, tzinfo=timezone.utc),
            effective_time=datetime(2024, 1, 1, 11, 40, tzinfo=timezone.utc),
            direction=Direction.ARRIVAL,
            status_code='A',
        )

        assert classifier.bucket_for(flight, NOW) is Bucket.RELEVANT


class TestDepartureWindow:
    """Tests for departure bucketing by minutes until departure."""

    @pytest.mark.parametrize('minutes, expected', [
        (30, Bucket.RELEVANT),
        (16, Bucket.RELEVANT),
        (89, Bucket.RELEVANT),
        (15, Bucket.ARCHIVE),
        (5, Bucket.ARCHIVE),
        (90, Bucket.ARCHIVE),
        (120, Bucket.ARCHIVE),
        (0, Bucket.DROPPED),
        (-5, Bucket.DROPPED),
    ])
    def test_bucket_by_minutes_to_departure(self, classifier, minutes, expected):
        flight = make_flight('WF541', Direction.DEPARTURE, minutes)
        assert classifier.bucket_for(flight, NOW) is expected

    def test_windows_are_tunable_per_direction(self):
        strict = Classifier(
            ClassificationRules(dep_min_future=20, arr_max_age=30),
            display_tz=tz.UTC,
        )

        assert strict.bucket_for(make_flight('WF541', Direction.DEPARTURE, 18), NOW) is Bucket.ARCHIVE
        assert strict.bucket_for(make_flight('WF540', Direction.ARRIVAL, -45), NOW) is Bucket.ARCHIVE
        assert strict.bucket_for(make_flight('WF540', Direction.ARRIVAL, -25), NOW) is Bucket.RELEVANT


# =============================================================================
# CLASSIFY
# =============================================================================


class TestClassify:
    """Tests for building per-direction result lists."""

    def test_buckets_per_direction(self, classifier, sample_flights):
        result = classifier.classify(sample_flights, NOW)

        assert [f.flight_id for f in result.arrivals.relevant] == ['WF540']
        assert [f.flight_id for f in result.arrivals.archive] == ['WF612']
        assert [f.flight_id for f in result.departures.relevant] == ['WF541']
        assert [f.flight_id for f in result.departures.archive] == ['WF613']

    def test_feed_order_preserved_within_bucket(self, classifier):
        flights = [
            make_flight('WF100', Direction.ARRIVAL, -50),
            make_flight('WF101', Direction.ARRIVAL, -20),
            make_flight('WF102', Direction.ARRIVAL, -30),
        ]

        result = classifier.classify(flights, NOW)

        assert [f.flight_id for f in result.arrivals.relevant] == ['WF100', 'WF101', 'WF102']

    def test_classification_is_idempotent(self, classifier, sample_flights):
        first = classifier.classify(sample_flights, NOW)
        second = classifier.classify(sample_flights, NOW)

        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_no_flights_gives_empty_result(self, classifier):
        result = classifier.classify([], NOW)
        assert result.is_empty
        assert result.to_dict() == {
            'arrivals': {'relevant': [], 'archive': []},
            'departures': {'relevant': [], 'archive': []},
        }
