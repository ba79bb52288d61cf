"""
Data ingestion module for FlightBoard.

Handles polling the airport flight feed and normalizing its replies
into NormalizedFlight records.
"""

from flightboard.ingestion.errors import (
    UpstreamError,
    UpstreamMalformedResponse,
    UpstreamParseFailure,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from flightboard.ingestion.feed_client import FeedClient, FeedResult, ReplyKind

__all__ = [
    'FeedClient',
    'FeedResult',
    'ReplyKind',
    'UpstreamError',
    'UpstreamMalformedResponse',
    'UpstreamParseFailure',
    'UpstreamTimeout',
    'UpstreamUnavailable',
]
