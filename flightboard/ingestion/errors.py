"""
Upstream failure taxonomy.

Every failure of a feed call surfaces as an UpstreamError subclass. The
orchestrator catches the base class and falls back; nothing here ever
reaches the HTTP layer as an error status.

A reply that parses but holds zero flights is not an error: it is a
FeedResult whose is_empty is true.
"""

from typing import Optional


class UpstreamError(Exception):
    """Base class for anything that prevents a usable feed reply."""


class UpstreamTimeout(UpstreamError):
    """The feed did not answer within the configured timeout."""


class UpstreamUnavailable(UpstreamError):
    """Connection failure or non-2xx HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamMalformedResponse(UpstreamError):
    """The reply is an error page or some other unexpected document."""


class UpstreamParseFailure(UpstreamError):
    """The reply claims a known format but cannot be decoded."""
