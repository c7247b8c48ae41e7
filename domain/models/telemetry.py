"""
Append-only telemetry and quarantine tables.

Rows reference feeders by identifier rather than foreign key: devices may
report before their first check-in is stored.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Time, Numeric

from app.utils import utcnow
from domain.models.database import Base


class MealFedEvent(Base):
    """A meal a feeder reports having dispensed"""

    __tablename__ = "meal_fed_event"

    event_id = Column(Integer, primary_key=True, autoincrement=True)
    feeder_identifier = Column(String(64), nullable=False, index=True)
    fed_on = Column(Date, nullable=False)
    fed_at = Column(Time, nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    recorded_at = Column(DateTime, nullable=False, default=utcnow)


class FeederAlert(Base):
    """An anomaly raised by a feeder (jam, empty hopper, ...)"""

    __tablename__ = "feeder_alert"

    alert_id = Column(Integer, primary_key=True, autoincrement=True)
    feeder_identifier = Column(String(64), nullable=False, index=True)
    alert_type = Column(String(32), nullable=False)
    payload = Column(Text)
    raised_at = Column(DateTime, nullable=False, default=utcnow)


class UnknownData(Base):
    """Quarantined input that could not be understood"""

    __tablename__ = "unknown_data"

    unknown_id = Column(Integer, primary_key=True, autoincrement=True)
    received_at = Column(DateTime, nullable=False, default=utcnow)
    type_tag = Column(String(32))
    source_ip = Column(String(45))
    payload = Column(Text)  # hex
