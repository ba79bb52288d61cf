"""
Avinor flight feed client.

Handles communication with the airport XmlFeed, including:
- Query construction (airport, time window, direction)
- A transport that tolerates the feed's non-standard TLS certificate
- Reply shape detection and normalization
- Mapping transport and decoding failures onto UpstreamError

The feed answers in one of two shapes:

    NATIVE      XML document:
                <airport name="BGO">
                  <flights lastUpdate="...">
                    <flight uniqueID="...">
                      <flight_id>WF540</flight_id>
                      <schedule_time>2024-01-01T11:40:00Z</schedule_time>
                      <arr_dep>A</arr_dep>
                      <airport>OSL</airport>
                      <status code="A" time="2024-01-01T11:38:00Z"/>
                    </flight>
                    ...

    STRUCTURED  Pre-decoded object: {"flights": [{"flight_id": "WF540", ...}]}

Both are turned into field groups (tag -> value or list of values) and
then unwrapped by a single normalize_record().
"""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from xml.etree import ElementTree

import requests
import urllib3

from flightboard.config import config
from flightboard.ingestion.airports import airport_name
from flightboard.ingestion.errors import (
    UpstreamMalformedResponse,
    UpstreamParseFailure,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from flightboard.models import Direction, NormalizedFlight

logger = logging.getLogger(__name__)


# Status codes whose time replaces the scheduled time:
# A = arrived, E = new estimated time, D = departed
OVERRIDE_STATUS_CODES = frozenset({'A', 'E', 'D'})

MAX_FLIGHT_ID_LENGTH = 6

ACCEPT_HEADER = 'text/html,application/xhtml+xml,application/xml'

XML_CONTENT_TYPES = ('application/xml', 'text/xml', 'application/xhtml+xml')

_BOM_AND_WHITESPACE = b'\xef\xbb\xbf \t\r\n'


class ReplyKind(str, Enum):
    """Which shape the feed answered in."""
    NATIVE = 'native'
    STRUCTURED = 'structured'


@dataclass
class FeedReply:
    """
    Tagged feed reply.

    payload holds raw bytes for NATIVE and the decoded object for
    STRUCTURED.
    """
    kind: ReplyKind
    payload: Any


@dataclass
class FeedResult:
    """Normalized flights for one direction query."""
    direction: Direction
    flights: List[NormalizedFlight]
    record_count: int
    kind: ReplyKind

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0


# =============================================================================
# Reply decoding
# =============================================================================


def detect_reply(content_type: Optional[str], body: bytes) -> FeedReply:
    """
    Tag a raw HTTP reply with its shape.

    Raises UpstreamMalformedResponse for error pages and anything that is
    neither XML nor JSON, and UpstreamParseFailure for JSON that does not
    decode.
    """
    mime = (content_type or '').split(';')[0].strip().lower()
    head = (body or b'').lstrip(_BOM_AND_WHITESPACE)[:64].lower()

    if head.startswith(b'<?xml') or head.startswith(b'<airport'):
        return FeedReply(ReplyKind.NATIVE, body)

    if mime.endswith('json') or head.startswith(b'{'):
        try:
            return FeedReply(ReplyKind.STRUCTURED, json.loads(body))
        except ValueError as e:
            raise UpstreamParseFailure(f'Undecodable JSON reply: {e}') from e

    if mime in XML_CONTENT_TYPES and head.startswith(b'<') and not head.startswith(b'<!doctype html'):
        return FeedReply(ReplyKind.NATIVE, body)

    snippet = head[:32].decode('utf-8', errors='replace')
    raise UpstreamMalformedResponse(
        f'Unexpected reply (content-type={mime or "none"}, starts with {snippet!r})'
    )


def _element_value(element: ElementTree.Element) -> Any:
    """Attributes for attribute-carrying elements, stripped text otherwise."""
    if element.attrib:
        return dict(element.attrib)
    return (element.text or '').strip()


def _records_from_xml(body: bytes) -> List[Dict[str, List[Any]]]:
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError as e:
        raise UpstreamParseFailure(f'Unparseable XML reply: {e}') from e

    if root.tag != 'airport':
        raise UpstreamMalformedResponse(f'Unexpected XML root element <{root.tag}>')

    flights = root.find('flights')
    if flights is None:
        return []

    records = []
    for flight in flights.findall('flight'):
        # Field groups keyed by tag, each a list of occurrences
        record: Dict[str, List[Any]] = {}
        for child in flight:
            record.setdefault(child.tag, []).append(_element_value(child))
        records.append(record)
    return records


def _records_from_object(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict) and 'airport' in payload and 'flights' not in payload:
        payload = unwrap(payload['airport'])

    if not isinstance(payload, dict) or 'flights' not in payload:
        raise UpstreamMalformedResponse('Structured reply has no flights collection')

    flights = payload['flights']
    # xml2js-style nesting: {"flights": [{"flight": [...]}]}
    if isinstance(flights, list) and len(flights) == 1 and isinstance(flights[0], dict) and 'flight' in flights[0]:
        flights = flights[0]
    if isinstance(flights, dict):
        flights = flights.get('flight') or []
    if flights is None:
        return []
    # A lone child comes through as an object, not a one-element list
    if isinstance(flights, dict):
        flights = [flights]
    if not isinstance(flights, list):
        raise UpstreamMalformedResponse('Structured reply flights collection is not a list')

    return [record for record in flights if _is_flight_record(record)]


def _is_flight_record(record: Any) -> bool:
    """True for a field group; attribute-only groups ({"$": ...}) are not flights."""
    return isinstance(record, dict) and any(key != '$' for key in record)


def extract_records(reply: FeedReply) -> List[Dict[str, Any]]:
    """Turn a tagged reply into field groups, one dict per flight."""
    if reply.kind is ReplyKind.NATIVE:
        return _records_from_xml(reply.payload)
    if reply.kind is ReplyKind.STRUCTURED:
        return _records_from_object(reply.payload)
    raise ValueError(f'Unknown reply kind: {reply.kind}')


# =============================================================================
# Record normalization
# =============================================================================


def unwrap(value: Any) -> Any:
    """Return the single element of a one-element sequence, else the value."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _text(value: Any) -> str:
    value = unwrap(value)
    if value is None:
        return ''
    return str(value).strip()


def _status_fields(status: Any) -> Tuple[str, str]:
    """
    Extract (code, time) from a status field.

    Accepts element attributes, a plain dict, or the {'$': {...}} shape of
    XML-to-object converters.
    """
    status = unwrap(status)
    if isinstance(status, dict):
        attrs = status.get('$', status)
        if not isinstance(attrs, dict):
            return '', ''
        return _text(attrs.get('code')).upper(), _text(attrs.get('time'))
    return _text(status).upper(), ''


def parse_feed_time(value: Optional[str]) -> Optional[datetime]:
    """Parse feed timestamp, assuming UTC when no offset is given."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_flight_id(raw_id: str) -> str:
    """Remove all whitespace and cap at the display length."""
    return ''.join(raw_id.split())[:MAX_FLIGHT_ID_LENGTH]


def normalize_record(
    record: Dict[str, Any],
    name_lookup: Callable[[str], str] = airport_name,
) -> Optional[NormalizedFlight]:
    """
    Convert one field-group record to a NormalizedFlight.

    Returns None if the record lacks an id, a parseable schedule time or
    a known direction.
    """
    raw_id = _text(record.get('flight_id'))
    if not raw_id:
        return None

    try:
        direction = Direction(_text(record.get('arr_dep')).upper())
    except ValueError:
        logger.debug(f'Skipping {raw_id}: unknown direction {record.get("arr_dep")!r}')
        return None

    scheduled = parse_feed_time(_text(record.get('schedule_time')))
    if scheduled is None:
        logger.debug(f'Skipping {raw_id}: bad schedule_time {record.get("schedule_time")!r}')
        return None

    effective = scheduled
    status_code, status_time = _status_fields(record.get('status'))
    if status_code in OVERRIDE_STATUS_CODES and status_time:
        effective = parse_feed_time(status_time) or scheduled

    origin_code = _text(record.get('airport')).upper()

    return NormalizedFlight(
        flight_id=normalize_flight_id(raw_id),
        raw_id=raw_id,
        origin_code=origin_code,
        origin_name=name_lookup(origin_code) or origin_code,
        scheduled_time=scheduled,
        effective_time=effective,
        direction=direction,
        status_code=status_code or None,
    )


# =============================================================================
# Client
# =============================================================================


class FeedClient:
    """
    Client for the airport flight feed.

    Handles:
    - GET requests per direction over a [now - back, now + forward] window
    - Relaxed TLS verification for the feed's certificate
    - Bounded timeouts, no retries (the next poll retries naturally)
    """

    def __init__(
        self,
        base_url: str = 'https://asrv.avinor.no/XmlFeed/v1.0',
        airport_code: str = 'BGO',
        hours_back: float = 24,
        hours_forward: float = 4,
        timeout: float = 10,
        verify_tls: bool = False,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.airport_code = airport_code
        self.hours_back = hours_back
        self.hours_forward = hours_forward
        self.timeout = timeout
        self.verify_tls = verify_tls

        self.session = session or requests.Session()
        self.session.verify = verify_tls
        if not verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            logger.info('Feed client running without TLS certificate verification')

        self._fetch_count = 0
        self._error_count = 0
        self._last_fetch_time: float = 0

    @classmethod
    def from_config(cls) -> 'FeedClient':
        """Create client from application configuration."""
        return cls(
            base_url=config.feed.base_url,
            airport_code=config.feed.airport_code,
            hours_back=config.feed.hours_back,
            hours_forward=config.feed.hours_forward,
            timeout=config.feed.timeout_seconds,
            verify_tls=config.feed.verify_tls,
        )

    def window(self, now: datetime) -> Tuple[datetime, datetime]:
        """Query window around now."""
        return (
            now - timedelta(hours=self.hours_back),
            now + timedelta(hours=self.hours_forward),
        )

    def build_params(
        self,
        direction: Direction,
        time_from: datetime,
        time_to: datetime,
    ) -> dict:
        """Query parameters; window bounds in UTC without fractional seconds."""
        return {
            'airport': self.airport_code,
            'timeFrom': time_from.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S'),
            'timeTo': time_to.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S'),
            'direction': direction.value,
        }

    def fetch(
        self,
        direction: Direction,
        time_from: datetime,
        time_to: datetime,
    ) -> FeedResult:
        """
        Fetch and normalize flights for one direction.

        Raises:
            UpstreamTimeout, UpstreamUnavailable, UpstreamMalformedResponse,
            UpstreamParseFailure
        """
        params = self.build_params(direction, time_from, time_to)
        logger.debug(f'Fetching feed: {self.base_url} params={params}')

        try:
            response = self.session.get(
                self.base_url,
                params=params,
                headers={'Accept': ACCEPT_HEADER},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            self._error_count += 1
            logger.error(f'Feed timeout after {self.timeout}s (direction={direction.value})')
            raise UpstreamTimeout(f'Feed did not answer within {self.timeout}s') from e
        except requests.exceptions.HTTPError as e:
            self._error_count += 1
            status = e.response.status_code if e.response is not None else None
            logger.error(f'Feed API error: {status}')
            raise UpstreamUnavailable(f'Feed answered HTTP {status}', status_code=status) from e
        except requests.exceptions.RequestException as e:
            self._error_count += 1
            logger.error(f'Feed request failed: {e}')
            raise UpstreamUnavailable(f'Feed request failed: {e}') from e

        try:
            reply = detect_reply(response.headers.get('Content-Type'), response.content)
            records = extract_records(reply)
        except (UpstreamMalformedResponse, UpstreamParseFailure) as e:
            self._error_count += 1
            logger.error(f'Feed reply rejected: {e}')
            raise

        flights = []
        for record in records:
            flight = normalize_record(record)
            if flight is not None:
                flights.append(flight)

        self._fetch_count += 1
        self._last_fetch_time = time.time()

        if not records:
            logger.info(f'Feed returned no flights (direction={direction.value})')
        else:
            logger.info(
                f'Received {len(records)} records from feed '
                f'({reply.kind.value}, direction={direction.value}), {len(flights)} usable'
            )

        return FeedResult(
            direction=direction,
            flights=flights,
            record_count=len(records),
            kind=reply.kind,
        )

    def fetch_board(self, now: datetime) -> List[NormalizedFlight]:
        """
        Fetch arrivals and departures for the window around now.

        Both queries run concurrently, so a cycle is bounded by one timeout
        rather than two. Flights are returned arrivals first. Any
        UpstreamError from either query propagates; a partial board is
        never returned.
        """
        time_from, time_to = self.window(now)
        directions = (Direction.ARRIVAL, Direction.DEPARTURE)
        with ThreadPoolExecutor(max_workers=len(directions)) as executor:
            futures = [
                executor.submit(self.fetch, direction, time_from, time_to)
                for direction in directions
            ]
            results = [future.result() for future in futures]

        flights: List[NormalizedFlight] = []
        for result in results:
            flights.extend(result.flights)
        return flights

    @property
    def stats(self) -> dict:
        """Get feed client statistics."""
        return {
            'fetch_count': self._fetch_count,
            'error_count': self._error_count,
            'last_fetch_time': self._last_fetch_time,
            'verify_tls': self.verify_tls,
        }
