"""
Telemetry and quarantine log.

Writes here are best-effort. A lost telemetry point must never block the
device-facing path, so storage errors are logged and reported as False.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.utils import normalize_ip, to_hex, to_naive_utc, utcnow
from domain.models import MealFedEvent, UnknownData
from domain.quantity import Quantity
from repositories import TelemetryRepository

logger = logging.getLogger("feedersync.telemetry")


class TelemetryService:
    @staticmethod
    def record_meal(
        db: Session, identifier: str, quantity: Quantity, fed_at: Optional[datetime] = None
    ) -> bool:
        """Append a dispensed meal; returns False if it could not be stored"""
        fed_at = to_naive_utc(fed_at) if fed_at else utcnow()
        try:
            TelemetryRepository(db).add_meal_event(
                identifier, fed_at.date(), fed_at.time(), quantity.amount
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Could not record meal identifier={identifier}: {e}")
            return False
        logger.info(f"meal_fed identifier={identifier} quantity={quantity} at={fed_at.isoformat()}")
        return True

    @staticmethod
    def log_alert(db: Session, identifier: str, alert_type: str, payload: Optional[str] = None) -> bool:
        """Append a feeder alert; returns False if it could not be stored"""
        try:
            TelemetryRepository(db).add_alert(identifier, alert_type[:32], payload, utcnow())
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Could not log alert identifier={identifier} type={alert_type}: {e}")
            return False
        logger.warning(f"feeder_alert identifier={identifier} type={alert_type}")
        return True

    @staticmethod
    def is_noise(payload: bytes | str) -> bool:
        """True for the incomplete transmission some firmwares send repeatedly"""
        return to_hex(payload) == settings.quarantine_noise_signature

    @staticmethod
    def log_unknown_data(
        db: Session, type_tag: Optional[str], payload: bytes | str, source_ip: Optional[str]
    ) -> bool:
        """
        Quarantine input that could not be understood.

        The known noise signature is dropped without a trace. Everything else
        is stored with its type tag cut to `unknown_type_max_length`.

        Returns:
            True if a row was stored
        """
        if TelemetryService.is_noise(payload):
            logger.debug(f"Dropped known noise payload from {source_ip}")
            return False

        tag = type_tag[: settings.unknown_type_max_length] if type_tag else None
        ip = normalize_ip(source_ip) or source_ip
        try:
            TelemetryRepository(db).add_unknown(tag, to_hex(payload), ip, utcnow())
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Could not quarantine data type={tag} ip={ip}: {e}")
            return False
        logger.warning(f"unknown_data_quarantined type={tag} ip={ip} size={len(to_hex(payload)) // 2}")
        return True

    @staticmethod
    def recent_meals(db: Session, identifier: str, limit: int = 20) -> List[MealFedEvent]:
        return TelemetryRepository(db).recent_meals(identifier, limit=limit)

    @staticmethod
    def recent_unknown_data(db: Session, limit: int = 50) -> List[UnknownData]:
        return TelemetryRepository(db).recent_unknown(limit=limit)
