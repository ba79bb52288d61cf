"""
Configuration management for FlightBoard.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here so the display windows, the
carrier rules and the cache lifetime can be tuned per deployment
without touching code.
"""

import os
from dataclasses import dataclass
from typing import FrozenSet

from dotenv import load_dotenv

load_dotenv()


DEFAULT_BLOCKED_IDS = (
    # Ørsta/Volda & Sogndal
    'WF150', 'WF151', 'WF152', 'WF153',
    'WF158', 'WF159', 'WF163', 'WF170',
    # Ålesund
    'WF451', 'WF452', 'WF453', 'WF454', 'WF455',
    'WF456', 'WF466',
    'WF457', 'WF458', 'WF459', 'WF460', 'WF461', 'WF462',
)

PAYLOAD_SHAPES = ('structured', 'flat')


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_id_list(value: str) -> FrozenSet[str]:
    """Parse 'WF150, WF151' into a set of ids with whitespace removed."""
    return frozenset(
        ''.join(item.split()).upper()
        for item in value.split(',')
        if item.strip()
    )


def _blocked_ids_from_env() -> FrozenSet[str]:
    raw = os.getenv('BLOCKED_IDS')
    if raw is None:
        return frozenset(DEFAULT_BLOCKED_IDS)
    return _parse_id_list(raw)


@dataclass(frozen=True)
class FeedConfig:
    """Upstream flight feed settings."""
    base_url: str = os.getenv('FEED_BASE_URL', 'https://asrv.avinor.no/XmlFeed/v1.0')
    airport_code: str = os.getenv('AIRPORT_CODE', 'BGO')
    hours_back: float = float(os.getenv('HOURS_BACK', '24'))
    hours_forward: float = float(os.getenv('HOURS_FORWARD', '4'))
    timeout_seconds: float = float(os.getenv('FEED_TIMEOUT_SECONDS', '10'))

    # The feed presents a certificate that standard validation rejects
    verify_tls: bool = _parse_bool(os.getenv('FEED_VERIFY_TLS', '0'))


@dataclass(frozen=True)
class WindowConfig:
    """Display windows in minutes, tunable per direction."""
    arr_min_age: float = float(os.getenv('ARR_MIN_AGE', '15'))
    arr_max_age: float = float(os.getenv('ARR_MAX_AGE', '60'))
    dep_min_future: float = float(os.getenv('DEP_MIN_FUTURE', '15'))
    dep_max_future: float = float(os.getenv('DEP_MAX_FUTURE', '90'))


@dataclass(frozen=True)
class FilterConfig:
    """Carrier allowlist and flight id blacklist."""
    carrier_prefix: str = os.getenv('CARRIER_PREFIX', 'WF')
    blocked_ids: FrozenSet[str] = _blocked_ids_from_env()
    normalize_blacklist_whitespace: bool = _parse_bool(
        os.getenv('BLACKLIST_NORMALIZE_WHITESPACE', '1')
    )


@dataclass(frozen=True)
class CacheConfig:
    """In-memory cache settings."""
    ttl_seconds: int = int(os.getenv('CACHE_TTL_SECONDS', '180'))


@dataclass(frozen=True)
class DisplayConfig:
    """How the board is presented to the signage clients."""
    timezone: str = os.getenv('DISPLAY_TIMEZONE', 'Europe/Oslo')
    payload_shape: str = os.getenv('PAYLOAD_SHAPE', 'structured').strip().lower()

    # 'WF540:OSL:A,WF541:OSL:D' replaces the built-in emergency list
    backup_flights: str = os.getenv('BACKUP_FLIGHTS', '')


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    feed: FeedConfig
    windows: WindowConfig
    filters: FilterConfig
    cache: CacheConfig
    display: DisplayConfig

    # Flask settings
    port: int
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    display = DisplayConfig()
    if display.payload_shape not in PAYLOAD_SHAPES:
        raise ValueError(
            f'PAYLOAD_SHAPE must be one of {PAYLOAD_SHAPES}, got {display.payload_shape!r}'
        )

    return AppConfig(
        feed=FeedConfig(),
        windows=WindowConfig(),
        filters=FilterConfig(),
        cache=CacheConfig(),
        display=display,
        port=int(os.getenv('PORT', '5000')),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()

