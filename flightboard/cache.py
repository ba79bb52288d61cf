"""
In-memory board cache with single-flight refresh and tiered fallback.

Holds exactly one classified board and decides, per request, where the
answer comes from. Tiers are tried in order until one produces a board:

    cache   entry younger than the TTL, no upstream call
    live    one fetch → classify → sort cycle, stored on success
    stale   last good entry of any age when the feed fails
    backup  static emergency list stamped with the request time

Design rationale:
Many signage clients poll the same endpoint. Readers never block on the
cache slot, and a cache miss triggers at most one upstream request: any
caller arriving while a fetch is in flight waits for that fetch and gets
its outcome (board or exception) instead of starting another. A feed
failure is never shown to clients; it only changes which tier answers.
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Optional, Sequence, TypeVar

from flightboard.config import config
from flightboard.ingestion import FeedClient, UpstreamError, UpstreamUnavailable
from flightboard.models import ClassifiedResult
from flightboard.services import (
    BackupFlight,
    Classifier,
    backup_result,
    parse_backup_flights,
    sort_for_display,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SingleFlight:
    """
    Collapse concurrent calls with the same key into one execution.

    The first caller for a key runs the function; callers arriving before
    it finishes wait on a shared Future and receive the same return value
    or the same exception. The key is released whether the call succeeds
    or fails.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: Dict[Hashable, Future] = {}

    def do(self, key: Hashable, fn: Callable[[], T]) -> T:
        with self._lock:
            future = self._calls.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._calls[key] = future

        if not leader:
            return future.result()

        try:
            result = fn()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._calls.pop(key, None)

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._calls


class ServeSource(str, Enum):
    """Fallback tier that produced a response."""
    CACHE = 'cache'
    LIVE = 'live'
    STALE = 'stale'
    BACKUP = 'backup'


@dataclass(frozen=True)
class CacheEntry:
    """Last successfully classified board."""
    payload: ClassifiedResult
    fetched_at: datetime


@dataclass(frozen=True)
class ServedFlights:
    """Board handed to the HTTP layer, with where it came from."""
    result: ClassifiedResult
    source: ServeSource
    fetched_at: Optional[datetime]


class FlightBoard:
    """
    Owns the cache slot, the fetch guard and the fallback policy.

    Constructed once per process by the app factory; all access goes
    through get_flights().
    """

    def __init__(
        self,
        client: Optional[FeedClient] = None,
        classifier: Optional[Classifier] = None,
        ttl_seconds: Optional[float] = None,
        backup_flights: Optional[Sequence[BackupFlight]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client or FeedClient.from_config()
        self.classifier = classifier or Classifier()
        self.ttl = timedelta(seconds=config.cache.ttl_seconds if ttl_seconds is None else ttl_seconds)
        self.backup_flights = (
            tuple(backup_flights) if backup_flights is not None
            else parse_backup_flights(config.display.backup_flights)
        )
        self.clock = clock

        self._entry: Optional[CacheEntry] = None
        self._lock = threading.Lock()
        self._single_flight = SingleFlight()
        self._fetch_key = (
            self.client.base_url,
            self.client.airport_code,
            self.client.hours_back,
            self.client.hours_forward,
        )

        self._tiers = (
            self._from_fresh_cache,
            self._from_live_fetch,
            self._from_stale_cache,
            self._from_backup,
        )

        # Statistics
        self._hits = 0
        self._misses = 0
        self._upstream_fetches = 0
        self._upstream_failures = 0
        self._last_failure: Optional[str] = None
        self._stale_served = 0
        self._backup_served = 0
        self._last_source: Optional[ServeSource] = None

    # -------------------------------------------------------------------------
    # Public contract
    # -------------------------------------------------------------------------

    def get_flights(self) -> ServedFlights:
        """Return the best available board. Never raises for feed failures."""
        now = self.clock()
        for tier in self._tiers:
            served = tier(now)
            if served is not None:
                self._last_source = served.source
                return served

        # The backup tier always answers
        raise RuntimeError('No fallback tier produced a board')

    @property
    def entry(self) -> Optional[CacheEntry]:
        with self._lock:
            return self._entry

    def is_fresh(self, entry: Optional[CacheEntry], now: datetime) -> bool:
        return entry is not None and now - entry.fetched_at < self.ttl

    # -------------------------------------------------------------------------
    # Fallback tiers
    # -------------------------------------------------------------------------

    def _from_fresh_cache(self, now: datetime) -> Optional[ServedFlights]:
        entry = self.entry
        if self.is_fresh(entry, now):
            self._hits += 1
            logger.debug('Serving board from cache')
            return ServedFlights(entry.payload, ServeSource.CACHE, entry.fetched_at)

        self._misses += 1
        return None

    def _from_live_fetch(self, now: datetime) -> Optional[ServedFlights]:
        try:
            entry = self._single_flight.do(self._fetch_key, lambda: self._refresh(now))
        except UpstreamError as e:
            logger.warning(f'Feed unavailable ({self._describe_failure(e)}): {e}')
            return None
        except Exception:
            logger.exception('Unexpected error while refreshing board')
            return None

        return ServedFlights(entry.payload, ServeSource.LIVE, entry.fetched_at)

    def _from_stale_cache(self, now: datetime) -> Optional[ServedFlights]:
        entry = self.entry
        if entry is None:
            return None

        self._stale_served += 1
        age = (now - entry.fetched_at).total_seconds()
        logger.warning(f'Serving stale board fetched {age:.0f}s ago')
        return ServedFlights(entry.payload, ServeSource.STALE, entry.fetched_at)

    def _from_backup(self, now: datetime) -> ServedFlights:
        self._backup_served += 1
        logger.warning('No cached board available, serving static backup list')
        return ServedFlights(backup_result(self.backup_flights, now), ServeSource.BACKUP, None)

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    def _refresh(self, now: datetime) -> CacheEntry:
        """
        Run one fetch → classify → sort cycle and store the result.

        Called by the single-flight leader only. Re-checks the slot first
        so a caller that just missed a completed refresh reuses it.
        """
        entry = self.entry
        if self.is_fresh(entry, self.clock()):
            return entry

        self._upstream_fetches += 1
        try:
            flights = self.client.fetch_board(now)
            result = sort_for_display(self.classifier.classify(flights, now))
        except Exception as e:
            # Counted once per upstream cycle, not once per waiting caller
            self._upstream_failures += 1
            self._last_failure = self._describe_failure(e)
            raise

        entry = CacheEntry(payload=result, fetched_at=now)
        with self._lock:
            self._entry = entry

        logger.info(f'Board refreshed: {result.summary()}')
        return entry

    @staticmethod
    def _describe_failure(error: BaseException) -> str:
        if isinstance(error, UpstreamUnavailable) and error.status_code is not None:
            return f'{type(error).__name__}, HTTP {error.status_code}'
        return type(error).__name__

    @property
    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        entry = self.entry
        lookups = self._hits + self._misses
        return {
            'has_entry': entry is not None,
            'fetched_at': entry.fetched_at.isoformat() if entry else None,
            'ttl_seconds': self.ttl.total_seconds(),
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': self._hits / lookups if lookups > 0 else 0,
            'upstream_fetches': self._upstream_fetches,
            'upstream_failures': self._upstream_failures,
            'last_failure': self._last_failure,
            'stale_served': self._stale_served,
            'backup_served': self._backup_served,
            'fetch_in_flight': self._single_flight.in_flight(self._fetch_key),
            'last_source': self._last_source.value if self._last_source else None,
        }
