"""
API module for FlightBoard.

Provides REST endpoints for:
- The flight board consumed by the signage screens
- Cache and feed status
"""

from flightboard.api.flights import flights_bp
from flightboard.api.metrics import metrics_bp

__all__ = ['flights_bp', 'metrics_bp']
