"""Repository for telemetry and quarantine rows"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from domain.models import MealFedEvent, FeederAlert, UnknownData
from repositories.base import BaseRepository


class TelemetryRepository(BaseRepository[MealFedEvent]):
    """Append-only access to meal events, alerts and quarantined data"""

    def __init__(self, db: Session):
        super().__init__(db, MealFedEvent)

    def add_meal_event(
        self, identifier: str, fed_on: date, fed_at: time, quantity: Decimal
    ) -> MealFedEvent:
        return self.add(
            MealFedEvent(
                feeder_identifier=identifier,
                fed_on=fed_on,
                fed_at=fed_at,
                quantity=quantity,
            )
        )

    def add_alert(
        self, identifier: str, alert_type: str, payload: Optional[str], raised_at: datetime
    ) -> FeederAlert:
        alert = FeederAlert(
            feeder_identifier=identifier,
            alert_type=alert_type,
            payload=payload,
            raised_at=raised_at,
        )
        self.db.add(alert)
        self.db.commit()
        self.db.refresh(alert)
        return alert

    def add_unknown(
        self,
        type_tag: Optional[str],
        payload_hex: str,
        source_ip: Optional[str],
        received_at: datetime,
    ) -> UnknownData:
        row = UnknownData(
            type_tag=type_tag,
            payload=payload_hex,
            source_ip=source_ip,
            received_at=received_at,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def recent_meals(self, identifier: str, limit: int = 20) -> List[MealFedEvent]:
        """Latest dispensed meals for a feeder"""
        return (
            self.db.query(MealFedEvent)
            .filter(MealFedEvent.feeder_identifier == identifier)
            .order_by(MealFedEvent.recorded_at.desc(), MealFedEvent.event_id.desc())
            .limit(limit)
            .all()
        )

    def recent_alerts(self, identifier: str, limit: int = 20) -> List[FeederAlert]:
        return (
            self.db.query(FeederAlert)
            .filter(FeederAlert.feeder_identifier == identifier)
            .order_by(FeederAlert.raised_at.desc(), FeederAlert.alert_id.desc())
            .limit(limit)
            .all()
        )

    def recent_unknown(self, limit: int = 50) -> List[UnknownData]:
        """Latest quarantined payloads"""
        return (
            self.db.query(UnknownData)
            .order_by(UnknownData.received_at.desc(), UnknownData.unknown_id.desc())
            .limit(limit)
            .all()
        )
