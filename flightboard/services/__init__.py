"""
Board services: classification, display ordering and the emergency list.
"""

from flightboard.services.backup import BackupFlight, DEFAULT_BACKUP_FLIGHTS, backup_result, parse_backup_flights
from flightboard.services.classifier import ClassificationRules, Classifier, resolve_timezone
from flightboard.services.sorter import sort_for_display

__all__ = [
    'BackupFlight',
    'ClassificationRules',
    'Classifier',
    'DEFAULT_BACKUP_FLIGHTS',
    'backup_result',
    'parse_backup_flights',
    'resolve_timezone',
    'sort_for_display',
]
