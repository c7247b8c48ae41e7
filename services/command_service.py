"""
Command dispatcher: live commands to feeders.

Each command is one attempt bounded by a timeout. Unreachable, rejected and
timed-out commands come back as distinct CommandResult statuses; none of
them is retried here. A timed-out command may still be carried out by the
feeder.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Optional

from sqlalchemy.orm import Session

from adapters.device_transport import DeviceCommand, DeviceTransport
from app.exceptions import (
    DeviceTimeoutError,
    DeviceUnreachableError,
    NotFoundOrUnauthorizedError,
    ServiceValidationError,
)
from domain.enums import CommandStatus
from domain.quantity import Quantity
from domain.schemas.command_schemas import CommandResult
from domain.schemas.planning_schemas import PlanningSpec
from repositories import FeederRepository
from services.feeder_service import FeederService, validate_identifier

logger = logging.getLogger("feedersync.commands")


class CommandService:
    def __init__(self, transport: DeviceTransport, timeout_sec: float, max_workers: int = 8):
        self.transport = transport
        self.timeout_sec = timeout_sec
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="feeder-command"
        )

    def shutdown(self) -> None:
        """Stop accepting commands; in-flight sends are not waited for"""
        self._executor.shutdown(wait=False)

    def feed_now(self, db: Session, identifier: str, quantity: Optional[Quantity] = None) -> CommandResult:
        """
        Dispense a portion immediately.

        Without a quantity the feeder's remembered default is used.

        Raises:
            ServiceValidationError: If no quantity is given and none is remembered
            NotFoundOrUnauthorizedError: If the feeder does not exist
        """
        identifier = validate_identifier(identifier)
        feeder = self._feeder(db, identifier)
        if quantity is None:
            if feeder.default_quantity is None:
                raise ServiceValidationError(
                    "No quantity given and no default quantity remembered",
                    code="MISSING_QUANTITY",
                )
            quantity = Quantity(feeder.default_quantity)
        return self._dispatch(feeder.ip_address, DeviceCommand.feed_now(identifier, quantity))

    def set_default_quantity(self, db: Session, identifier: str, quantity: Quantity) -> CommandResult:
        """
        Change the portion the feeder uses for its button and the server's
        remembered default. The server copy is only updated once the feeder
        accepted the change, and failing to store it does not fail the command.
        """
        identifier = validate_identifier(identifier)
        feeder = self._feeder(db, identifier)
        result = self._dispatch(
            feeder.ip_address, DeviceCommand.set_default_quantity(identifier, quantity)
        )
        if result.success:
            FeederService.remember_default_quantity(db, identifier, quantity)
        return result

    def set_planning(self, db: Session, identifier: str, planning: PlanningSpec) -> CommandResult:
        """Push a whole schedule to the feeder. Does not store anything."""
        identifier = validate_identifier(identifier)
        feeder = self._feeder(db, identifier)
        return self._dispatch(feeder.ip_address, DeviceCommand.set_planning(identifier, planning))

    @staticmethod
    def _feeder(db: Session, identifier: str):
        feeder = FeederRepository(db).get_by_identifier(identifier)
        if feeder is None:
            raise NotFoundOrUnauthorizedError(code="FEEDER_NOT_FOUND")
        return feeder

    def _dispatch(self, endpoint_ip: Optional[str], command: DeviceCommand) -> CommandResult:
        def result(status: CommandStatus, message: Optional[str] = None) -> CommandResult:
            logger.info(
                f"command_dispatched identifier={command.identifier} "
                f"command={command.command.value} endpoint={endpoint_ip} status={status.value}"
            )
            return CommandResult(command.identifier, command.command, status, message)

        if not endpoint_ip:
            return result(CommandStatus.UNREACHABLE, "Feeder never checked in")

        future = self._executor.submit(self.transport.send, endpoint_ip, command)
        try:
            ack = future.result(timeout=self.timeout_sec)
        except FutureTimeoutError:
            # The send keeps running in the pool; its outcome is dropped
            return result(CommandStatus.TIMEOUT, "Feeder did not answer in time")
        except DeviceTimeoutError as e:
            return result(CommandStatus.TIMEOUT, str(e))
        except DeviceUnreachableError as e:
            return result(CommandStatus.UNREACHABLE, str(e))
        except Exception as e:
            logger.exception(f"Transport failure identifier={command.identifier}: {e}")
            return result(CommandStatus.UNREACHABLE, "Transport error")

        if not ack.accepted:
            return result(CommandStatus.REJECTED, ack.message or "Feeder rejected the command")
        return result(CommandStatus.SUCCESS, ack.message)
