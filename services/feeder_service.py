"""
Feeder registry and ownership.

Every method takes a fresh session and re-reads the store; nothing about a
feeder is cached between requests.
"""

from datetime import datetime, timedelta
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    NotFoundOrUnauthorizedError,
    ServiceValidationError,
    StorageTransactionFailed,
)
from app.utils import normalize_ip, utcnow
from domain.models import Feeder
from domain.quantity import Quantity
from domain.schemas.feeder_schemas import FeederStatus
from repositories import FeederRepository

logger = logging.getLogger("feedersync.registry")

IDENTIFIER_MAX_LENGTH = 64


def validate_identifier(identifier: Optional[str]) -> str:
    """Reject missing or oversized identifiers before touching storage"""
    if identifier is None or not str(identifier).strip():
        raise ServiceValidationError("No feeder identifier given", code="MISSING_IDENTIFIER")
    identifier = str(identifier).strip()
    if len(identifier) > IDENTIFIER_MAX_LENGTH:
        raise ServiceValidationError(
            f"Feeder identifier longer than {IDENTIFIER_MAX_LENGTH} characters",
            code="INVALID_IDENTIFIER",
        )
    return identifier


class FeederService:
    @staticmethod
    def check_in(db: Session, identifier: str, source_ip: str) -> Feeder:
        """
        Record a device check-in.

        Creates the feeder (unowned, unnamed) on first contact. Always
        refreshes its last known IP and check-in time, and remembers the
        address for future claims.

        Args:
            db: Database session
            identifier: Feeder identifier
            source_ip: Address the check-in came from

        Returns:
            The feeder row after the update

        Raises:
            ServiceValidationError: If identifier or IP is invalid
            StorageTransactionFailed: If the registry could not be written
        """
        identifier = validate_identifier(identifier)
        ip = normalize_ip(source_ip)
        if ip is None:
            raise ServiceValidationError(f"Invalid source address: {source_ip!r}", code="INVALID_IP")

        try:
            feeder = FeederRepository(db).record_check_in(identifier, ip, utcnow())
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"check_in failed identifier={identifier} ip={ip}: {e}")
            raise StorageTransactionFailed("Could not record check-in", code="CHECK_IN_FAILED") from e

        logger.info(f"feeder_check_in identifier={identifier} ip={ip} owner={feeder.owner_id}")
        return feeder

    @staticmethod
    def get_last_check_in(db: Session, identifier: str) -> Optional[datetime]:
        """None means the feeder never checked in"""
        feeder = FeederRepository(db).get_by_identifier(validate_identifier(identifier))
        return feeder.last_check_in if feeder else None

    @staticmethod
    def set_name(db: Session, identifier: str, name: Optional[str]) -> bool:
        """Rename a feeder; returns whether it existed"""
        identifier = validate_identifier(identifier)
        name = name.strip() if name else None
        try:
            found = FeederRepository(db).set_name(identifier, name or None)
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageTransactionFailed("Could not rename feeder") from e
        logger.info(f"feeder_renamed identifier={identifier} found={found}")
        return found

    @staticmethod
    def remember_default_quantity(db: Session, identifier: str, quantity: Quantity) -> bool:
        """
        Store the portion to use when a feed command omits one.

        Best-effort: a storage failure is logged and reported as False so
        the command that triggered it still completes.
        """
        try:
            return FeederRepository(db).set_default_quantity(identifier, quantity.amount)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(
                f"Could not remember default quantity identifier={identifier} "
                f"quantity={quantity}: {e}"
            )
            return False

    @staticmethod
    def reassign_owner(db: Session, identifier: str, user_id: Optional[int]) -> bool:
        """Administrative owner change; bypasses the claim conditions"""
        identifier = validate_identifier(identifier)
        try:
            found = FeederRepository(db).set_owner(identifier, user_id)
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageTransactionFailed("Could not reassign feeder") from e
        logger.warning(f"feeder_reassigned identifier={identifier} owner={user_id} found={found}")
        return found

    @staticmethod
    def claim(db: Session, identifier: str, user_id: int, claimant_ip: str) -> bool:
        """
        Take ownership of an unowned feeder.

        Succeeds only if the feeder exists, has no owner, and has checked in
        from claimant_ip. The check and the write are one conditional
        UPDATE, so concurrent claims cannot both win. A failed claim changes
        nothing.

        Returns:
            True if user_id now owns the feeder because of this call
        """
        identifier = validate_identifier(identifier)
        ip = normalize_ip(claimant_ip)
        if ip is None:
            logger.info(f"claim_rejected identifier={identifier} user_id={user_id} reason=invalid_ip")
            return False

        try:
            claimed = FeederRepository(db).claim(identifier, user_id, ip)
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageTransactionFailed("Could not claim feeder") from e

        logger.info(f"feeder_claim identifier={identifier} user_id={user_id} ip={ip} success={claimed}")
        return claimed

    @staticmethod
    def check_association(db: Session, identifier: str, user_id: int) -> Optional[Feeder]:
        """The feeder if user_id owns it, otherwise None (absent or foreign alike)"""
        return FeederRepository(db).get_owned(validate_identifier(identifier), user_id)

    @staticmethod
    def require_association(db: Session, identifier: str, user_id: int) -> Feeder:
        feeder = FeederService.check_association(db, identifier, user_id)
        if feeder is None:
            raise NotFoundOrUnauthorizedError(code="FEEDER_NOT_FOUND")
        return feeder

    @staticmethod
    def get_status(db: Session, identifier: str, online_window_sec: Optional[int] = None) -> FeederStatus:
        """
        Registry view of a feeder.

        A feeder counts as online when it checked in within the window.

        Raises:
            NotFoundOrUnauthorizedError: If the feeder does not exist
        """
        feeder = FeederRepository(db).get_by_identifier(validate_identifier(identifier))
        if feeder is None:
            raise NotFoundOrUnauthorizedError(code="FEEDER_NOT_FOUND")

        window = timedelta(seconds=online_window_sec or settings.feeder_online_window_sec)
        online = feeder.last_check_in is not None and utcnow() - feeder.last_check_in <= window
        return FeederStatus(
            identifier=feeder.identifier,
            name=feeder.name,
            default_quantity=feeder.default_quantity,
            ip_address=feeder.ip_address,
            last_check_in=feeder.last_check_in,
            online=online,
        )
