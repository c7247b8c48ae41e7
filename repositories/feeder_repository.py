"""
Feeder Repository - Data access layer for the device registry
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.models import Feeder, FeederAddress
from repositories.base import BaseRepository


class FeederRepository(BaseRepository[Feeder]):
    """Repository for feeder registry data access"""

    def __init__(self, db: Session):
        super().__init__(db, Feeder)

    def get_by_identifier(self, identifier: str) -> Optional[Feeder]:
        """Get feeder by its firmware identifier"""
        return self.db.query(Feeder).filter(Feeder.identifier == identifier).first()

    def get_owned(self, identifier: str, user_id: int) -> Optional[Feeder]:
        """Get feeder only if it belongs to user_id"""
        return (
            self.db.query(Feeder)
            .filter(Feeder.identifier == identifier, Feeder.owner_id == user_id)
            .first()
        )

    def get_by_owner(self, user_id: int) -> List[Feeder]:
        """All feeders claimed by a user"""
        return (
            self.db.query(Feeder)
            .filter(Feeder.owner_id == user_id)
            .order_by(Feeder.identifier)
            .all()
        )

    def get_addresses(self, feeder_id: int) -> List[str]:
        """IP addresses the feeder has checked in from"""
        rows = self.db.execute(
            select(FeederAddress.ip_address)
            .where(FeederAddress.feeder_id == feeder_id)
            .order_by(FeederAddress.first_seen)
        )
        return [r.ip_address for r in rows]

    def record_check_in(self, identifier: str, ip_address: str, now: datetime) -> Feeder:
        """
        Upsert the feeder and the address it checked in from, then commit.

        Concurrent first check-ins race on the unique constraints; the loser
        rolls back and retries, at which point both rows exist and the
        update path applies.

        Args:
            identifier: Feeder identifier
            ip_address: Source address of the check-in
            now: Check-in timestamp

        Returns:
            The refreshed Feeder row
        """
        try:
            return self._check_in_once(identifier, ip_address, now)
        except IntegrityError:
            self.db.rollback()
        # A concurrent first check-in inserted the rows; the update path applies now
        return self._check_in_once(identifier, ip_address, now)

    def _check_in_once(self, identifier: str, ip_address: str, now: datetime) -> Feeder:
        feeder = self._upsert_feeder(identifier, ip_address, now)
        self._upsert_address(feeder.feeder_id, ip_address, now)
        self.db.commit()
        self.db.refresh(feeder)
        return feeder

    def _upsert_feeder(self, identifier: str, ip_address: str, now: datetime) -> Feeder:
        result = self.db.execute(
            update(Feeder)
            .where(Feeder.identifier == identifier)
            .values(ip_address=ip_address, last_check_in=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return self.get_by_identifier(identifier)

        feeder = Feeder(
            identifier=identifier,
            ip_address=ip_address,
            last_check_in=now,
            created_at=now,
        )
        self.db.add(feeder)
        self.db.flush()
        return feeder

    def _upsert_address(self, feeder_id: int, ip_address: str, now: datetime) -> None:
        result = self.db.execute(
            update(FeederAddress)
            .where(
                FeederAddress.feeder_id == feeder_id,
                FeederAddress.ip_address == ip_address,
            )
            .values(last_seen=now)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            self.db.add(
                FeederAddress(
                    feeder_id=feeder_id,
                    ip_address=ip_address,
                    first_seen=now,
                    last_seen=now,
                )
            )
            self.db.flush()

    def claim(self, identifier: str, user_id: int, ip_address: str) -> bool:
        """
        Give an unowned feeder to user_id if it has checked in from ip_address.

        A single conditional UPDATE: of any number of concurrent claims on the
        same feeder, exactly one can match `owner_id IS NULL`.

        Returns:
            True if this call set the owner
        """
        seen_from_claimant = (
            select(FeederAddress.address_id)
            .where(
                FeederAddress.feeder_id == Feeder.feeder_id,
                FeederAddress.ip_address == ip_address,
            )
            .exists()
        )
        result = self.db.execute(
            update(Feeder)
            .where(
                Feeder.identifier == identifier,
                Feeder.owner_id.is_(None),
                seen_from_claimant,
            )
            .values(owner_id=user_id)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def set_owner(self, identifier: str, user_id: Optional[int]) -> bool:
        """Unconditionally replace the owner (administrative reassignment)"""
        return self._update_one(identifier, owner_id=user_id)

    def set_name(self, identifier: str, name: Optional[str]) -> bool:
        """Rename a feeder; False if no row matched"""
        return self._update_one(identifier, name=name)

    def set_default_quantity(self, identifier: str, quantity: Decimal) -> bool:
        """Store the portion used when a feed command omits one"""
        return self._update_one(identifier, default_quantity=quantity)

    def _update_one(self, identifier: str, **values) -> bool:
        result = self.db.execute(
            update(Feeder)
            .where(Feeder.identifier == identifier)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount > 0
