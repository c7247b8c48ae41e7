from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime
from decimal import Decimal


class FeederRequest(BaseModel):
    """Every feeder route names its target in the body"""

    identifier: str = Field(..., min_length=1, max_length=64)


class FeederRenameRequest(FeederRequest):
    name: str = Field(..., min_length=1, max_length=128)


class QuantityRequest(FeederRequest):
    """Portion for feed-now or default-quantity commands.

    Kept as a raw value so the Quantity value object decides what is valid.
    """

    quantity: Optional[Any] = Field(
        default=None, description="Portion; feed-now falls back to the remembered default"
    )


class FeederStatus(BaseModel):
    """What the registry knows about a feeder"""

    identifier: str
    name: Optional[str] = None
    default_quantity: Optional[Decimal] = None
    ip_address: Optional[str] = None
    last_check_in: Optional[datetime] = None
    online: bool = False

    model_config = {"from_attributes": True}


class FeederStatusResponse(FeederStatus):
    success: bool = True


class CheckInResponse(BaseModel):
    """Answer to a device check-in: the schedule it should be running"""

    success: bool = True
    identifier: str
    planning_version: Optional[datetime] = None
    meals: list[dict]
