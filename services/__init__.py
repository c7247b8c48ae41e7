"""Services package - Business logic layer"""

from services.feeder_service import FeederService
from services.planning_service import PlanningService
from services.command_service import CommandService
from services.telemetry_service import TelemetryService

__all__ = [
    "FeederService",
    "PlanningService",
    "CommandService",
    "TelemetryService",
]
