from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any
from datetime import datetime, time as time_of_day
from decimal import Decimal

from app.exceptions import ServiceValidationError
from domain.quantity import Quantity


class MealSpec(BaseModel):
    """One scheduled feeding: time of day, portion and whether it is active"""

    time: time_of_day = Field(..., description="Time of day, e.g. '08:00'")
    quantity: Decimal = Field(..., description="Portion to dispense")
    enabled: bool = Field(default=True, description="Disabled meals stay scheduled but are skipped")

    model_config = {"from_attributes": True}

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: time_of_day) -> time_of_day:
        """Feeders schedule to the minute"""
        if v.second or v.microsecond:
            raise ServiceValidationError(
                f"Meal time must be a whole minute: {v.isoformat()}", code="INVALID_MEAL_TIME"
            )
        if v.tzinfo is not None:
            raise ServiceValidationError(
                f"Meal time must not carry a timezone: {v.isoformat()}", code="INVALID_MEAL_TIME"
            )
        return v

    @field_validator("quantity", mode="before")
    @classmethod
    def validate_quantity(cls, v: Any) -> Decimal:
        """Portions go through the Quantity value object"""
        return Quantity(v).amount

    def to_device(self) -> dict:
        return {
            "time": self.time.strftime("%H:%M"),
            "quantity": Quantity(self.quantity).to_json(),
            "enabled": self.enabled,
        }


class PlanningSpec(BaseModel):
    """An ordered feeding schedule.

    Meals are sorted by time of day; meals sharing a time keep the order they
    were given in. `version` is the creation timestamp once stored.
    """

    meals: List[MealSpec] = Field(default_factory=list)
    version: Optional[datetime] = Field(
        default=None, description="Creation timestamp of the stored version"
    )

    model_config = {"from_attributes": True}

    @field_validator("meals")
    @classmethod
    def order_meals(cls, v: List[MealSpec]) -> List[MealSpec]:
        # sorted() is stable, duplicates keep insertion order
        return sorted(v, key=lambda meal: meal.time)

    def same_meals(self, other: "PlanningSpec") -> bool:
        """Compare schedules regardless of version"""
        return self.meals == other.meals

    def to_device(self) -> list[dict]:
        return [meal.to_device() for meal in self.meals]


class PlanningRequest(BaseModel):
    """Schema for replacing a feeder's schedule"""

    identifier: str = Field(..., min_length=1, max_length=64)
    meals: List[MealSpec] = Field(default_factory=list)


class PlanningResponse(BaseModel):
    """Schema for a stored schedule"""

    success: bool = True
    identifier: str
    version: Optional[datetime] = None
    meals: List[MealSpec]


class PlanningUpdateResponse(PlanningResponse):
    """Durable write result plus the outcome of the live push"""

    delivered: bool
    delivery_status: str


class PlanningHistoryResponse(BaseModel):
    success: bool = True
    identifier: str
    versions: List[datetime]


class PlanningVersionRequest(BaseModel):
    """Schema for fetching one stored version, as listed by the history route"""

    identifier: str = Field(..., min_length=1, max_length=64)
    version: datetime
