from pydantic import BaseModel, Field
from typing import Optional, Literal, Union, Any
from datetime import datetime


class MealReport(BaseModel):
    """A feeder reporting a dispensed meal"""

    type: Literal["meal"]
    quantity: Any
    fed_at: Optional[datetime] = Field(
        default=None, description="When the meal was served; defaults to reception time"
    )


class AlertReport(BaseModel):
    """A feeder raising an anomaly"""

    type: Literal["alert"]
    alert_type: str = Field(..., min_length=1, max_length=32)
    payload: Optional[str] = None


DeviceReport = Union[MealReport, AlertReport]


class ReportResponse(BaseModel):
    success: bool = True
    accepted: bool = Field(..., description="False when the report was quarantined or dropped")
