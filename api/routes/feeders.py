"""User-facing feeder routes: claim, status, commands and planning"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from api.dependencies import get_db, get_client_ip, get_command_service, get_current_user_id
from app.exceptions import ConflictError, NotFoundError
from domain.enums import CommandStatus
from domain.quantity import Quantity
from domain.schemas.command_schemas import CommandResponse, CommandResult
from domain.schemas.feeder_schemas import (
    FeederRequest,
    FeederRenameRequest,
    FeederStatusResponse,
    QuantityRequest,
)
from domain.schemas.planning_schemas import (
    PlanningSpec,
    PlanningRequest,
    PlanningResponse,
    PlanningUpdateResponse,
    PlanningHistoryResponse,
    PlanningVersionRequest,
)
from services import CommandService, FeederService, PlanningService

router = APIRouter(prefix="/api/feeder", tags=["Feeders"])
logger = logging.getLogger("feedersync.api.feeders")

COMMAND_HTTP_STATUS = {
    CommandStatus.SUCCESS: status.HTTP_200_OK,
    CommandStatus.REJECTED: status.HTTP_409_CONFLICT,
    CommandStatus.UNREACHABLE: status.HTTP_502_BAD_GATEWAY,
    CommandStatus.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


def command_response(result: CommandResult) -> JSONResponse:
    """Map a command outcome to its HTTP status"""
    return JSONResponse(
        status_code=COMMAND_HTTP_STATUS[result.status],
        content=CommandResponse.from_result(result).model_dump(mode="json"),
    )


def parse_quantity(value) -> Optional[Quantity]:
    return None if value is None else Quantity(value)


@router.post("/claim")
def claim_feeder(
    body: FeederRequest,
    user_id: int = Depends(get_current_user_id),
    client_ip: Optional[str] = Depends(get_client_ip),
    db: Session = Depends(get_db),
):
    """
    Claim an unowned feeder.

    The request must come from an address the feeder checked in from. Every
    failure, whatever the cause, is reported the same way.
    """
    if not FeederService.claim(db, body.identifier, user_id, client_ip or ""):
        raise ConflictError("Feeder not found", code="FEEDER_UNAVAILABLE")
    return {"success": True, "identifier": body.identifier}


@router.post("/status", response_model=FeederStatusResponse)
def feeder_status(
    body: FeederRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Registry view of an owned feeder"""
    FeederService.require_association(db, body.identifier, user_id)
    feeder_status = FeederService.get_status(db, body.identifier)
    return FeederStatusResponse(**feeder_status.model_dump())


@router.put("/name")
def rename_feeder(
    body: FeederRenameRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    FeederService.require_association(db, body.identifier, user_id)
    FeederService.set_name(db, body.identifier, body.name)
    return {"success": True, "identifier": body.identifier, "name": body.name}


@router.put("/feed")
def feed_now(
    body: QuantityRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    commands: CommandService = Depends(get_command_service),
):
    """Dispense now; without a quantity the remembered default is used"""
    quantity = parse_quantity(body.quantity)
    FeederService.require_association(db, body.identifier, user_id)
    return command_response(commands.feed_now(db, body.identifier, quantity))


@router.put("/quantity")
def set_default_quantity(
    body: QuantityRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    commands: CommandService = Depends(get_command_service),
):
    quantity = Quantity(body.quantity)
    FeederService.require_association(db, body.identifier, user_id)
    return command_response(commands.set_default_quantity(db, body.identifier, quantity))


@router.post("/planning", response_model=PlanningResponse)
def get_planning(
    body: FeederRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Current stored planning (empty if none was ever set)"""
    FeederService.require_association(db, body.identifier, user_id)
    planning = PlanningService.get_current_planning(db, body.identifier)
    return PlanningResponse(
        identifier=body.identifier, version=planning.version, meals=planning.meals
    )


@router.put("/planning", response_model=PlanningUpdateResponse)
def set_planning(
    body: PlanningRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    commands: CommandService = Depends(get_command_service),
):
    """
    Replace the feeder's planning.

    The new version is stored first and is authoritative. It is then pushed
    to the feeder; a failed push is reported but does not fail the request,
    since the feeder picks the planning up at its next check-in.
    """
    FeederService.require_association(db, body.identifier, user_id)
    stored = PlanningService.record_planning(db, body.identifier, PlanningSpec(meals=body.meals))

    delivery = commands.set_planning(db, body.identifier, stored)
    if not delivery.success:
        logger.warning(
            f"Planning stored but not delivered identifier={body.identifier} "
            f"status={delivery.status.value}"
        )
    return PlanningUpdateResponse(
        identifier=body.identifier,
        version=stored.version,
        meals=stored.meals,
        delivered=delivery.success,
        delivery_status=delivery.status.value,
    )


@router.post("/planning/history", response_model=PlanningHistoryResponse)
def planning_history(
    body: FeederRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    FeederService.require_association(db, body.identifier, user_id)
    return PlanningHistoryResponse(
        identifier=body.identifier,
        versions=PlanningService.list_versions(db, body.identifier),
    )


@router.post("/planning/version", response_model=PlanningResponse)
def planning_version(
    body: PlanningVersionRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """One past planning, addressed by a version from the history route"""
    FeederService.require_association(db, body.identifier, user_id)
    planning = PlanningService.get_planning_version(db, body.identifier, body.version)
    if planning is None:
        raise NotFoundError("Planning version not found", code="PLANNING_VERSION_NOT_FOUND")
    return PlanningResponse(
        identifier=body.identifier, version=planning.version, meals=planning.meals
    )
