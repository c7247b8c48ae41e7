"""
Schedule synchronizer: durable, versioned feeding plannings.

The stored planning is the source of truth. Live delivery to the feeder is
the command service's job and never changes what is stored here.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.exceptions import NotFoundOrUnauthorizedError
from app.utils import to_naive_utc, utcnow
from domain.models import Feeder, Planning
from domain.schemas.planning_schemas import MealSpec, PlanningSpec
from repositories import FeederRepository, PlanningRepository
from services.feeder_service import validate_identifier

logger = logging.getLogger("feedersync.planning")


def planning_to_spec(planning: Optional[Planning]) -> PlanningSpec:
    """Convert a stored version to its value object; None gives an empty planning"""
    if planning is None:
        return PlanningSpec()
    return PlanningSpec(
        version=planning.created_at,
        meals=[
            MealSpec(time=m.time_of_day, quantity=m.quantity, enabled=m.enabled)
            for m in planning.meals
        ],
    )


class PlanningService:
    @staticmethod
    def _feeder(db: Session, identifier: str) -> Feeder:
        feeder = FeederRepository(db).get_by_identifier(validate_identifier(identifier))
        if feeder is None:
            raise NotFoundOrUnauthorizedError(code="FEEDER_NOT_FOUND")
        return feeder

    @staticmethod
    def get_current_planning(db: Session, identifier: str) -> PlanningSpec:
        """
        Latest stored planning for a feeder.

        A feeder that never had a planning gets an empty one (no meals,
        no version); that is not an error.
        """
        feeder = PlanningService._feeder(db, identifier)
        return planning_to_spec(PlanningRepository(db).get_current(feeder.feeder_id))

    @staticmethod
    def record_planning(db: Session, identifier: str, planning: PlanningSpec) -> PlanningSpec:
        """
        Store planning as the feeder's new current version.

        Header and meals commit together or not at all. An empty meal list
        is a valid planning (schedule cleared).

        Args:
            db: Database session
            identifier: Feeder identifier
            planning: Schedule to store; its own version is ignored

        Returns:
            The stored planning, carrying its new version

        Raises:
            NotFoundOrUnauthorizedError: If the feeder does not exist
            StorageTransactionFailed: If the write was rolled back
        """
        feeder = PlanningService._feeder(db, identifier)
        stored = PlanningRepository(db).record_version(
            feeder.feeder_id, planning.meals, utcnow()
        )
        result = planning_to_spec(stored)
        logger.info(
            f"planning_recorded identifier={feeder.identifier} "
            f"version={result.version.isoformat()} meals={len(result.meals)}"
        )
        return result

    @staticmethod
    def get_planning_version(db: Session, identifier: str, version: datetime) -> Optional[PlanningSpec]:
        """A past version, or None if there is no planning with that timestamp"""
        feeder = PlanningService._feeder(db, identifier)
        stored = PlanningRepository(db).get_version(feeder.feeder_id, to_naive_utc(version))
        return planning_to_spec(stored) if stored is not None else None

    @staticmethod
    def list_versions(db: Session, identifier: str, limit: int = 50) -> List[datetime]:
        """Stored versions, newest first"""
        feeder = PlanningService._feeder(db, identifier)
        return PlanningRepository(db).list_versions(feeder.feeder_id, limit=limit)
