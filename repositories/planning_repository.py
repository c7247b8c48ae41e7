"""
Planning Repository - Data access layer for versioned feeding schedules
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy import func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.exceptions import StorageTransactionFailed
from domain.models import Planning, Meal
from domain.schemas.planning_schemas import MealSpec
from repositories.base import BaseRepository


class PlanningRepository(BaseRepository[Planning]):
    """Repository for planning versions and their meals"""

    def __init__(self, db: Session):
        super().__init__(db, Planning)

    def get_current(self, feeder_id: int) -> Optional[Planning]:
        """Latest version; the larger id wins if two share a timestamp"""
        return (
            self.db.query(Planning)
            .options(selectinload(Planning.meals))
            .filter(Planning.feeder_id == feeder_id)
            .order_by(Planning.created_at.desc(), Planning.planning_id.desc())
            .first()
        )

    def get_version(self, feeder_id: int, version: datetime) -> Optional[Planning]:
        """Planning created at exactly `version`"""
        return (
            self.db.query(Planning)
            .options(selectinload(Planning.meals))
            .filter(Planning.feeder_id == feeder_id, Planning.created_at == version)
            .order_by(Planning.planning_id.desc())
            .first()
        )

    def list_versions(self, feeder_id: int, limit: int = 50) -> List[datetime]:
        """Version timestamps, newest first"""
        rows = self.db.execute(
            select(Planning.created_at)
            .where(Planning.feeder_id == feeder_id)
            .order_by(Planning.created_at.desc(), Planning.planning_id.desc())
            .limit(limit)
        )
        return [r.created_at for r in rows]

    def latest_version(self, feeder_id: int) -> Optional[datetime]:
        return self.db.execute(
            select(func.max(Planning.created_at)).where(Planning.feeder_id == feeder_id)
        ).scalar()

    def record_version(
        self, feeder_id: int, meals: Sequence[MealSpec], now: datetime
    ) -> Planning:
        """
        Store a new planning version and its meals in one transaction.

        The header is flushed to obtain its id, the meals are bulk-inserted,
        and only then is the transaction committed. Any failure rolls back
        both, so readers never see a header without its meals.

        Args:
            feeder_id: Owning feeder
            meals: Meals in device order
            now: Proposed version timestamp

        Returns:
            The stored Planning

        Raises:
            StorageTransactionFailed: If anything could not be written
        """
        try:
            version = self._next_version(feeder_id, now)
            planning = Planning(feeder_id=feeder_id, created_at=version)
            self.db.add(planning)
            self.db.flush()
            if meals:
                self._insert_meals(planning.planning_id, meals)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageTransactionFailed(
                "Could not store planning",
                details={"feeder_id": feeder_id},
                code="PLANNING_WRITE_FAILED",
            ) from e

        return planning

    def _next_version(self, feeder_id: int, now: datetime) -> datetime:
        # Versions must strictly increase even if the clock did not move
        latest = self.latest_version(feeder_id)
        if latest is not None and now <= latest:
            return latest + timedelta(microseconds=1)
        return now

    def _insert_meals(self, planning_id: int, meals: Sequence[MealSpec]) -> None:
        rows = [
            {
                "planning_id": planning_id,
                "position": position,
                "time_of_day": meal.time,
                "quantity": meal.quantity,
                "enabled": meal.enabled,
            }
            for position, meal in enumerate(meals)
        ]
        self.db.execute(insert(Meal), rows)
