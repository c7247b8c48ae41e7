"""
Feeding schedule models. A planning row is a version; it is never updated.
"""

from sqlalchemy import (
    Column,
    Integer,
    DateTime,
    Time,
    Numeric,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from domain.models.database import Base


class Planning(Base):
    """One version of a feeder's schedule"""

    __tablename__ = "planning"

    planning_id = Column(Integer, primary_key=True, autoincrement=True)
    feeder_id = Column(
        Integer, ForeignKey("feeder.feeder_id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, nullable=False)

    feeder = relationship("Feeder", back_populates="plannings")
    meals = relationship(
        "Meal",
        back_populates="planning",
        cascade="all, delete-orphan",
        order_by="Meal.position",
    )

    __table_args__ = (Index("ix_planning_feeder_created", "feeder_id", "created_at"),)


class Meal(Base):
    """A scheduled feeding inside a planning"""

    __tablename__ = "meal"

    meal_id = Column(Integer, primary_key=True, autoincrement=True)
    planning_id = Column(
        Integer, ForeignKey("planning.planning_id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, nullable=False)
    time_of_day = Column(Time, nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)

    planning = relationship("Planning", back_populates="meals")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_meal_quantity_nonneg"),
    )
