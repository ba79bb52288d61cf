"""
FlightBoard Flask Application.

Main entry point for the web application. Initializes:
- The flight board (feed client, classifier, cache)
- API routes
- Liveness endpoints

Usage:
    python -m flightboard.app

Or with gunicorn:
    gunicorn 'flightboard.app:create_app()'
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from flightboard.api import flights_bp, metrics_bp
from flightboard.cache import FlightBoard
from flightboard.config import config

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(board: Optional[FlightBoard] = None, payload_shape: Optional[str] = None) -> Flask:
    """
    Application factory for Flask.

    Args:
        board: Flight board to serve. Built from configuration if None;
               pass one in for testing.
        payload_shape: 'structured' or 'flat'. Defaults to PAYLOAD_SHAPE.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}}, send_wildcard=True)

    app.config['FLIGHT_BOARD'] = board or FlightBoard()
    app.config['PAYLOAD_SHAPE'] = payload_shape or config.display.payload_shape

    app.register_blueprint(flights_bp)
    app.register_blueprint(metrics_bp)

    logger.info(
        f'Serving {config.feed.airport_code} board '
        f'(payload={app.config["PAYLOAD_SHAPE"]}, ttl={config.cache.ttl_seconds}s)'
    )

    # -------------------------------------------------------------------------
    # Liveness routes
    # -------------------------------------------------------------------------

    @app.route('/')
    def index():
        """Plaintext liveness marker."""
        return 'FlightBoard is running', 200, {'Content-Type': 'text/plain; charset=utf-8'}

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    logger.info(f'Starting FlightBoard on http://localhost:{config.port}')
    logger.info(f'Board: http://localhost:{config.port}/api/flights')

    app.run(
        host='0.0.0.0',
        port=config.port,
        debug=config.debug,
        use_reloader=False,
    )


if __name__ == '__main__':
    run_development_server()
