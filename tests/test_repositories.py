"""
Tests for the data access layer.

- FeederRepository: check-in upsert, address history, conditional claim
- PlanningRepository: transactional version writes, version ordering
- TelemetryRepository: append-only rows

All tests run against a real (SQLite) database created per test.
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.exceptions import StorageTransactionFailed
from domain.models import Feeder, FeederAddress, Planning, Meal
from repositories import FeederRepository, PlanningRepository, TelemetryRepository
from test_fixtures import make_planning, unique_identifier


NOW = datetime(2026, 10, 19, 8, 0, 0)


# =============================================================================
# FEEDER REPOSITORY TESTS
# =============================================================================


def test_check_in_creates_unowned_feeder(db_session: Session):
    repo = FeederRepository(db_session)
    identifier = unique_identifier()

    feeder = repo.record_check_in(identifier, "10.0.0.7", NOW)

    assert feeder.feeder_id is not None
    assert feeder.identifier == identifier
    assert feeder.owner_id is None
    assert feeder.name is None
    assert feeder.ip_address == "10.0.0.7"
    assert feeder.last_check_in == NOW
    assert repo.get_addresses(feeder.feeder_id) == ["10.0.0.7"]
    assert repo.get_by_id(feeder.feeder_id).identifier == identifier


def test_check_in_is_idempotent_and_refreshes_ip(db_session: Session):
    repo = FeederRepository(db_session)
    identifier = unique_identifier()

    first = repo.record_check_in(identifier, "10.0.0.7", NOW)
    second = repo.record_check_in(identifier, "10.0.0.8", NOW + timedelta(minutes=5))
    third = repo.record_check_in(identifier, "10.0.0.7", NOW + timedelta(minutes=10))

    assert first.feeder_id == second.feeder_id == third.feeder_id
    assert db_session.query(Feeder).filter(Feeder.identifier == identifier).count() == 1
    assert third.ip_address == "10.0.0.7"
    assert third.last_check_in == NOW + timedelta(minutes=10)
    assert sorted(repo.get_addresses(first.feeder_id)) == ["10.0.0.7", "10.0.0.8"]

    address = (
        db_session.query(FeederAddress)
        .filter(FeederAddress.feeder_id == first.feeder_id, FeederAddress.ip_address == "10.0.0.7")
        .one()
    )
    assert address.first_seen == NOW
    assert address.last_seen == NOW + timedelta(minutes=10)


def test_check_in_does_not_touch_owner_or_name(db_session: Session):
    repo = FeederRepository(db_session)
    identifier = unique_identifier()
    repo.record_check_in(identifier, "10.0.0.7", NOW)
    assert repo.claim(identifier, 7, "10.0.0.7")
    repo.set_name(identifier, "Kitchen")

    feeder = repo.record_check_in(identifier, "10.0.0.9", NOW + timedelta(hours=1))

    assert feeder.owner_id == 7
    assert feeder.name == "Kitchen"


def test_claim_requires_check_in_from_claimant_ip(db_session: Session):
    repo = FeederRepository(db_session)
    identifier = unique_identifier()
    repo.record_check_in(identifier, "10.0.0.7", NOW)

    assert repo.claim(identifier, 7, "192.168.1.20") is False
    assert repo.get_by_identifier(identifier).owner_id is None

    assert repo.claim(identifier, 7, "10.0.0.7") is True
    assert repo.get_by_identifier(identifier).owner_id == 7


def test_claim_accepts_any_previous_address(db_session: Session):
    repo = FeederRepository(db_session)
    identifier = unique_identifier()
    repo.record_check_in(identifier, "10.0.0.7", NOW)
    repo.record_check_in(identifier, "10.0.0.8", NOW + timedelta(minutes=1))

    assert repo.claim(identifier, 7, "10.0.0.7") is True


def test_claim_unknown_feeder(db_session: Session):
    repo = FeederRepository(db_session)
    assert repo.claim(unique_identifier(), 7, "10.0.0.7") is False


def test_claim_never_overwrites_owner(db_session: Session):
    repo = FeederRepository(db_session)
    identifier = unique_identifier()
    repo.record_check_in(identifier, "10.0.0.7", NOW)

    assert repo.claim(identifier, 7, "10.0.0.7") is True
    assert repo.claim(identifier, 9, "10.0.0.7") is False
    assert repo.claim(identifier, 7, "10.0.0.7") is False
    assert repo.get_by_identifier(identifier).owner_id == 7


def test_get_owned_hides_foreign_feeders(db_session: Session):
    repo = FeederRepository(db_session)
    identifier = unique_identifier()
    repo.record_check_in(identifier, "10.0.0.7", NOW)
    repo.claim(identifier, 7, "10.0.0.7")

    assert repo.get_owned(identifier, 7) is not None
    assert repo.get_owned(identifier, 9) is None
    assert repo.get_owned(unique_identifier(), 7) is None
    assert [f.identifier for f in repo.get_by_owner(7)] == [identifier]


def test_update_helpers_report_missing_rows(db_session: Session):
    repo = FeederRepository(db_session)
    identifier = unique_identifier()
    repo.record_check_in(identifier, "10.0.0.7", NOW)

    assert repo.set_name(identifier, "Garage") is True
    assert repo.set_default_quantity(identifier, Decimal("25")) is True
    assert repo.set_owner(identifier, 11) is True
    assert repo.set_name(unique_identifier(), "Nope") is False

    feeder = repo.get_by_identifier(identifier)
    assert feeder.name == "Garage"
    assert feeder.default_quantity == Decimal("25")
    assert feeder.owner_id == 11


# =============================================================================
# PLANNING REPOSITORY TESTS
# =============================================================================


def _feeder(db_session: Session) -> Feeder:
    return FeederRepository(db_session).record_check_in(unique_identifier(), "10.0.0.7", NOW)


def test_record_version_stores_header_and_meals(db_session: Session):
    feeder = _feeder(db_session)
    repo = PlanningRepository(db_session)
    planning = make_planning(("08:00", 20), ("18:00", 15, False))

    stored = repo.record_version(feeder.feeder_id, planning.meals, NOW)

    assert stored.created_at == NOW
    current = repo.get_current(feeder.feeder_id)
    assert current.planning_id == stored.planning_id
    assert [(m.position, m.quantity, m.enabled) for m in current.meals] == [
        (0, Decimal("20"), True),
        (1, Decimal("15"), False),
    ]


def test_record_version_with_no_meals(db_session: Session):
    feeder = _feeder(db_session)
    repo = PlanningRepository(db_session)

    stored = repo.record_version(feeder.feeder_id, [], NOW)

    assert repo.get_current(feeder.feeder_id).planning_id == stored.planning_id
    assert repo.get_current(feeder.feeder_id).meals == []


def test_versions_strictly_increase_when_clock_stalls(db_session: Session):
    feeder = _feeder(db_session)
    repo = PlanningRepository(db_session)

    first = repo.record_version(feeder.feeder_id, make_planning(("08:00", 20)).meals, NOW)
    second = repo.record_version(feeder.feeder_id, make_planning(("09:00", 20)).meals, NOW)
    # Clock went backwards
    third = repo.record_version(
        feeder.feeder_id, make_planning(("10:00", 20)).meals, NOW - timedelta(seconds=3)
    )

    assert first.created_at < second.created_at < third.created_at
    assert repo.get_current(feeder.feeder_id).planning_id == third.planning_id
    assert repo.list_versions(feeder.feeder_id) == [
        third.created_at,
        second.created_at,
        first.created_at,
    ]


def test_old_versions_are_retained(db_session: Session):
    feeder = _feeder(db_session)
    repo = PlanningRepository(db_session)
    first = repo.record_version(feeder.feeder_id, make_planning(("08:00", 20)).meals, NOW)
    repo.record_version(feeder.feeder_id, make_planning(("09:00", 30)).meals, NOW + timedelta(hours=1))

    old = repo.get_version(feeder.feeder_id, first.created_at)

    assert old is not None
    assert [m.quantity for m in old.meals] == [Decimal("20")]
    assert db_session.query(Planning).filter(Planning.feeder_id == feeder.feeder_id).count() == 2


def test_failed_meal_insert_rolls_back_header(db_session: Session, monkeypatch):
    """A failure after the header insert leaves no trace of the new version"""
    feeder = _feeder(db_session)
    repo = PlanningRepository(db_session)
    previous = repo.record_version(feeder.feeder_id, make_planning(("08:00", 20)).meals, NOW)

    def broken_insert(planning_id, meals):
        raise OperationalError("INSERT INTO meal", {}, Exception("disk I/O error"))

    monkeypatch.setattr(repo, "_insert_meals", broken_insert)

    with pytest.raises(StorageTransactionFailed):
        repo.record_version(
            feeder.feeder_id, make_planning(("12:00", 50)).meals, NOW + timedelta(hours=1)
        )

    assert repo.get_current(feeder.feeder_id).planning_id == previous.planning_id
    assert db_session.query(Planning).filter(Planning.feeder_id == feeder.feeder_id).count() == 1
    assert db_session.query(Meal).count() == 1


# =============================================================================
# TELEMETRY REPOSITORY TESTS
# =============================================================================


def test_telemetry_rows_are_appended(db_session: Session):
    repo = TelemetryRepository(db_session)
    identifier = unique_identifier()

    repo.add_meal_event(identifier, NOW.date(), NOW.time(), Decimal("20"))
    repo.add_meal_event(identifier, NOW.date(), (NOW + timedelta(hours=10)).time(), Decimal("15"))
    repo.add_alert(identifier, "jam", "motor stalled", NOW)
    repo.add_unknown("ping", "00ff", "1.2.3.4", NOW)

    meals = repo.recent_meals(identifier)
    assert len(meals) == 2
    assert {m.quantity for m in meals} == {Decimal("20"), Decimal("15")}
    assert [a.alert_type for a in repo.recent_alerts(identifier)] == ["jam"]
    unknown = repo.recent_unknown()
    assert len(unknown) == 1
    assert unknown[0].payload == "00ff"
    assert unknown[0].source_ip == "1.2.3.4"
