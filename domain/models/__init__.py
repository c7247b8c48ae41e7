"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    create_db_engine,
    create_session_factory,
    check_database_ready,
    init_database,
    get_db_session,
)
from domain.models.feeder import Feeder, FeederAddress
from domain.models.planning import Planning, Meal
from domain.models.telemetry import MealFedEvent, FeederAlert, UnknownData

__all__ = [
    # Database
    "Base",
    "create_db_engine",
    "create_session_factory",
    "check_database_ready",
    "init_database",
    "get_db_session",
    # Registry models
    "Feeder",
    "FeederAddress",
    # Schedule models
    "Planning",
    "Meal",
    # Telemetry models
    "MealFedEvent",
    "FeederAlert",
    "UnknownData",
]
