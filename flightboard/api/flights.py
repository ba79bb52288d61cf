"""
Flight board API endpoint.

Provides:
- GET /api/flights - Current board for the signage screens

Always answers 200. The body is fresh, cached, stale or the static
backup list; the X-Flights-Source header says which.

Payload shape is fixed per deployment by PAYLOAD_SHAPE:
- structured: {"arrivals": {"relevant": [...], "archive": [...]},
               "departures": {"relevant": [...], "archive": [...]}}
              entries {"id", "from", "time", "type"}
- flat:       [{"id", "from", "time"}, ...] relevant arrivals, then
              relevant departures
"""

import logging

from flask import Blueprint, current_app, jsonify

logger = logging.getLogger(__name__)

flights_bp = Blueprint('flights', __name__, url_prefix='/api/flights')


@flights_bp.route('', methods=['GET'])
def list_flights():
    """Serve the current board in the deployment's payload shape."""
    board = current_app.config['FLIGHT_BOARD']
    served = board.get_flights()

    if current_app.config['PAYLOAD_SHAPE'] == 'flat':
        body = served.result.to_flat_list()
    else:
        body = served.result.to_dict()

    response = jsonify(body)
    response.headers['X-Flights-Source'] = served.source.value
    if served.fetched_at is not None:
        response.headers['X-Flights-Fetched-At'] = served.fetched_at.isoformat()
    return response
