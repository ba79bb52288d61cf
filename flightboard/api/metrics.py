"""
Status API endpoint.

Provides:
- GET /api/metrics/status - Cache and feed statistics plus active settings
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from flightboard.config import config

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__, url_prefix='/api/metrics')


@metrics_bp.route('/status', methods=['GET'])
def get_system_status():
    """
    Get board health and status information.

    Returns:
    - Cache statistics (hits, fallbacks served, last fetch)
    - Feed client statistics
    - Display rules in effect
    """
    board = current_app.config['FLIGHT_BOARD']
    cache_stats = board.stats
    rules = board.classifier.rules

    return jsonify({
        'status': 'degraded' if cache_stats['last_source'] in ('stale', 'backup') else 'healthy',
        'cache': cache_stats,
        'feed': board.client.stats,
        'config': {
            'airport': board.client.airport_code,
            'hours_back': board.client.hours_back,
            'hours_forward': board.client.hours_forward,
            'carrier_prefix': rules.carrier_prefix,
            'blocked_ids': sorted(rules.blocked_ids),
            'arrival_window': [rules.arr_min_age, rules.arr_max_age],
            'departure_window': [rules.dep_min_future, rules.dep_max_future],
            'payload_shape': current_app.config['PAYLOAD_SHAPE'],
            'timezone': config.display.timezone,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
