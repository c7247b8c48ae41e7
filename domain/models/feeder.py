"""
Feeder registry models.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Numeric,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from app.utils import utcnow
from domain.models.database import Base


class Feeder(Base):
    """A physical feeder known to the coordinator"""

    __tablename__ = "feeder"

    feeder_id = Column(Integer, primary_key=True, autoincrement=True)
    identifier = Column(String(64), nullable=False, unique=True)
    owner_id = Column(Integer, nullable=True, index=True)
    name = Column(Text)
    default_quantity = Column(Numeric(10, 2))
    ip_address = Column(String(45))
    last_check_in = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    addresses = relationship(
        "FeederAddress", back_populates="feeder", cascade="all, delete-orphan"
    )
    plannings = relationship(
        "Planning", back_populates="feeder", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "default_quantity IS NULL OR default_quantity >= 0",
            name="ck_feeder_default_quantity_nonneg",
        ),
    )


class FeederAddress(Base):
    """Every IP address a feeder has checked in from"""

    __tablename__ = "feeder_address"

    address_id = Column(Integer, primary_key=True, autoincrement=True)
    feeder_id = Column(
        Integer, ForeignKey("feeder.feeder_id", ondelete="CASCADE"), nullable=False
    )
    ip_address = Column(String(45), nullable=False)
    first_seen = Column(DateTime, nullable=False, default=utcnow)
    last_seen = Column(DateTime, nullable=False, default=utcnow)

    feeder = relationship("Feeder", back_populates="addresses")

    __table_args__ = (
        UniqueConstraint("feeder_id", "ip_address", name="uq_feeder_address"),
    )
