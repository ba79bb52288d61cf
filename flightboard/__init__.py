"""
FlightBoard Package.

Arrivals/departures signage backend built with Flask and requests.

Modules:
    api/         REST endpoints for the board and its status
    models/      Flight dataclasses (NormalizedFlight, ClassifiedResult)
    ingestion/   Airport feed client, reply normalization, airport names
    services/    Classification, display ordering, emergency backup list
    cache.py     Single-slot board cache with single-flight refresh and fallback
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
