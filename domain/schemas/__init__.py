"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.feeder_schemas import (
    FeederRequest,
    FeederRenameRequest,
    QuantityRequest,
    FeederStatus,
    FeederStatusResponse,
    CheckInResponse,
)
from domain.schemas.planning_schemas import (
    MealSpec,
    PlanningSpec,
    PlanningRequest,
    PlanningResponse,
    PlanningUpdateResponse,
    PlanningHistoryResponse,
    PlanningVersionRequest,
)
from domain.schemas.command_schemas import CommandResult, CommandResponse
from domain.schemas.telemetry_schemas import (
    MealReport,
    AlertReport,
    DeviceReport,
    ReportResponse,
)

__all__ = [
    # Feeder schemas
    "FeederRequest",
    "FeederRenameRequest",
    "QuantityRequest",
    "FeederStatus",
    "FeederStatusResponse",
    "CheckInResponse",
    # Planning schemas
    "MealSpec",
    "PlanningSpec",
    "PlanningRequest",
    "PlanningResponse",
    "PlanningUpdateResponse",
    "PlanningHistoryResponse",
    "PlanningVersionRequest",
    # Command schemas
    "CommandResult",
    "CommandResponse",
    # Telemetry schemas
    "MealReport",
    "AlertReport",
    "DeviceReport",
    "ReportResponse",
]
