"""Device-facing routes: check-in and telemetry reports"""

import json
import anyio.to_thread
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import Field, TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from api.dependencies import get_db, get_client_ip
from app.exceptions import InvalidQuantity, ServiceValidationError
from domain.quantity import Quantity
from domain.schemas.feeder_schemas import CheckInResponse
from domain.schemas.telemetry_schemas import DeviceReport, MealReport, ReportResponse
from services import FeederService, PlanningService, TelemetryService
from services.feeder_service import validate_identifier

router = APIRouter(prefix="/api/device", tags=["Devices"])
logger = logging.getLogger("feedersync.api.devices")

report_adapter = TypeAdapter(Annotated[DeviceReport, Field(discriminator="type")])


@router.post("/{identifier}/checkin", response_model=CheckInResponse)
def check_in(
    identifier: str,
    client_ip: Optional[str] = Depends(get_client_ip),
    db: Session = Depends(get_db),
):
    """
    Liveness report from a feeder.

    The answer carries the current stored planning so a feeder that missed
    a live push re-syncs here.
    """
    if client_ip is None:
        raise ServiceValidationError("Could not determine source address", code="INVALID_IP")
    FeederService.check_in(db, identifier, client_ip)
    planning = PlanningService.get_current_planning(db, identifier)
    return CheckInResponse(
        identifier=identifier,
        planning_version=planning.version,
        meals=planning.to_device(),
    )


def _type_tag(raw: bytes) -> Optional[str]:
    """Best guess at what the device meant to send"""
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("type") is not None:
        return str(data["type"])
    return None


def _store_report(db: Session, identifier: str, raw: bytes, client_ip: Optional[str]) -> bool:
    try:
        parsed = report_adapter.validate_json(raw)
        if isinstance(parsed, MealReport):
            quantity = Quantity(parsed.quantity)
    except (ValidationError, InvalidQuantity) as e:
        logger.info(f"Unparseable report identifier={identifier} ip={client_ip}: {e}")
        TelemetryService.log_unknown_data(db, _type_tag(raw), raw, client_ip)
        return False

    if isinstance(parsed, MealReport):
        return TelemetryService.record_meal(db, identifier, quantity, parsed.fed_at)
    return TelemetryService.log_alert(db, identifier, parsed.alert_type, parsed.payload)


@router.post("/{identifier}/report", response_model=ReportResponse)
async def report(
    identifier: str,
    request: Request,
    client_ip: Optional[str] = Depends(get_client_ip),
    db: Session = Depends(get_db),
):
    """
    Meal and alert reports from a feeder.

    Anything that does not parse as a known report is quarantined instead of
    being rejected. Only an invalid identifier in the path is refused (400).
    """
    identifier = validate_identifier(identifier)
    raw = await request.body()
    accepted = await anyio.to_thread.run_sync(_store_report, db, identifier, raw, client_ip)
    return ReportResponse(accepted=accepted)
