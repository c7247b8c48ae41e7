"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.feeder_repository import FeederRepository
from repositories.planning_repository import PlanningRepository
from repositories.telemetry_repository import TelemetryRepository

__all__ = [
    "BaseRepository",
    "FeederRepository",
    "PlanningRepository",
    "TelemetryRepository",
]
