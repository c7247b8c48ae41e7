"""
Tests for the command dispatcher and the HTTP device transport.

The dispatcher runs against FakeTransport; the HTTP transport runs against
httpx.MockTransport so no real feeder is needed.
"""

import json
import pytest
from decimal import Decimal

import httpx
from sqlalchemy.orm import Session

from adapters import DeviceCommand, HttpDeviceTransport
from app.exceptions import (
    DeviceTimeoutError,
    DeviceUnreachableError,
    NotFoundOrUnauthorizedError,
    ServiceValidationError,
)
from domain.enums import CommandStatus, CommandType
from domain.models import Feeder
from domain.quantity import Quantity
from services import CommandService, FeederService
from test_fixtures import FakeTransport, make_planning, unique_identifier


@pytest.fixture
def feeder_id(db_session: Session) -> str:
    identifier = unique_identifier()
    FeederService.check_in(db_session, identifier, "10.0.0.7")
    return identifier


def make_service(outcome: str = "ack", timeout_sec: float = 2.0):
    transport = FakeTransport(outcome)
    return CommandService(transport, timeout_sec=timeout_sec, max_workers=2), transport


# =============================================================================
# DISPATCH OUTCOMES
# =============================================================================


def test_feed_now_success(db_session: Session, feeder_id: str):
    service, transport = make_service("ack")
    try:
        result = service.feed_now(db_session, feeder_id, Quantity(20))
    finally:
        service.shutdown()

    assert result.status == CommandStatus.SUCCESS
    assert result.success is True
    assert result.command == CommandType.FEED_NOW
    ip, command = transport.sent[0]
    assert ip == "10.0.0.7"
    assert command.to_payload() == {
        "command": "feed_now",
        "identifier": feeder_id,
        "quantity": 20,
    }


@pytest.mark.parametrize(
    "outcome, expected",
    [
        ("reject", CommandStatus.REJECTED),
        ("unreachable", CommandStatus.UNREACHABLE),
        ("timeout", CommandStatus.TIMEOUT),
    ],
)
def test_failure_outcomes_are_distinct(db_session: Session, feeder_id: str, outcome, expected):
    service, transport = make_service(outcome)
    try:
        result = service.feed_now(db_session, feeder_id, Quantity(5))
    finally:
        service.shutdown()

    assert result.status == expected
    assert result.success is False
    assert len(transport.sent) == 1


def test_rejection_carries_feeder_message(db_session: Session, feeder_id: str):
    service, _ = make_service("reject")
    try:
        result = service.feed_now(db_session, feeder_id, Quantity(5))
    finally:
        service.shutdown()

    assert result.message == "hopper empty"


def test_silent_feeder_times_out(db_session: Session, feeder_id: str):
    """The dispatcher bounds the wait even if the transport never returns"""
    service, transport = make_service("hang", timeout_sec=0.2)
    try:
        result = service.feed_now(db_session, feeder_id, Quantity(5))
    finally:
        transport.release.set()
        service.shutdown()

    assert result.status == CommandStatus.TIMEOUT


def test_unexpected_transport_error_is_unreachable(db_session: Session, feeder_id: str):
    class Exploding(FakeTransport):
        def send(self, endpoint_ip, command):
            raise RuntimeError("socket closed")

    service = CommandService(Exploding(), timeout_sec=1.0, max_workers=1)
    try:
        result = service.feed_now(db_session, feeder_id, Quantity(5))
    finally:
        service.shutdown()

    assert result.status == CommandStatus.UNREACHABLE


def test_feeder_without_address_is_unreachable(db_session: Session):
    identifier = unique_identifier()
    db_session.add(Feeder(identifier=identifier))
    db_session.commit()
    service, transport = make_service("ack")
    try:
        result = service.feed_now(db_session, identifier, Quantity(5))
    finally:
        service.shutdown()

    assert result.status == CommandStatus.UNREACHABLE
    assert transport.sent == []


def test_unknown_feeder(db_session: Session):
    service, _ = make_service()
    try:
        with pytest.raises(NotFoundOrUnauthorizedError):
            service.feed_now(db_session, unique_identifier(), Quantity(5))
    finally:
        service.shutdown()


# =============================================================================
# DEFAULT QUANTITY
# =============================================================================


def test_feed_now_without_quantity_needs_a_default(db_session: Session, feeder_id: str):
    service, transport = make_service()
    try:
        with pytest.raises(ServiceValidationError):
            service.feed_now(db_session, feeder_id)
    finally:
        service.shutdown()
    assert transport.sent == []


def test_accepted_default_quantity_is_remembered(db_session: Session, feeder_id: str):
    service, transport = make_service("ack")
    try:
        result = service.set_default_quantity(db_session, feeder_id, Quantity("12.5"))
        assert result.status == CommandStatus.SUCCESS
        assert transport.last.arguments == {"quantity": 12.5}

        service.feed_now(db_session, feeder_id)
    finally:
        service.shutdown()

    assert FeederService.get_status(db_session, feeder_id).default_quantity == Decimal("12.5")
    assert transport.last.command == CommandType.FEED_NOW
    assert transport.last.arguments == {"quantity": 12.5}


def test_feed_uses_exactly_the_default_the_feeder_accepted(db_session: Session, feeder_id: str):
    service, transport = make_service("ack")
    try:
        service.set_default_quantity(db_session, feeder_id, Quantity("7.77"))
        told = transport.last.arguments["quantity"]
        service.feed_now(db_session, feeder_id)
    finally:
        service.shutdown()

    assert told == 7.77
    assert transport.last.arguments == {"quantity": told}


def test_rejected_default_quantity_is_not_remembered(db_session: Session, feeder_id: str):
    service, _ = make_service("reject")
    try:
        result = service.set_default_quantity(db_session, feeder_id, Quantity(30))
    finally:
        service.shutdown()

    assert result.status == CommandStatus.REJECTED
    assert FeederService.get_status(db_session, feeder_id).default_quantity is None


def test_set_planning_pushes_device_payload(db_session: Session, feeder_id: str):
    service, transport = make_service("ack")
    try:
        result = service.set_planning(db_session, feeder_id, make_planning(("08:00", 20)))
    finally:
        service.shutdown()

    assert result.status == CommandStatus.SUCCESS
    assert transport.last.to_payload() == {
        "command": "set_planning",
        "identifier": feeder_id,
        "meals": [{"time": "08:00", "quantity": 20, "enabled": True}],
    }


# =============================================================================
# HTTP TRANSPORT
# =============================================================================


def http_transport(handler) -> HttpDeviceTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpDeviceTransport(port=8080, path="command", client=client)


def test_http_transport_posts_json_command():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    transport = http_transport(handler)
    ack = transport.send("10.0.0.7", DeviceCommand.feed_now("feeder-42", Quantity(20)))

    assert ack.accepted is True
    assert seen["url"] == "http://10.0.0.7:8080/command"
    assert seen["body"] == {"command": "feed_now", "identifier": "feeder-42", "quantity": 20}


def test_http_transport_brackets_ipv6():
    transport = HttpDeviceTransport(port=8080)
    assert transport.url_for("fe80::1") == "http://[fe80::1]:8080/command"


@pytest.mark.parametrize(
    "response, message",
    [
        (httpx.Response(200, json={"success": False, "error": "jammed"}), "jammed"),
        (httpx.Response(500, text="oops"), "HTTP 500"),
    ],
)
def test_http_transport_rejections(response, message):
    transport = http_transport(lambda request: response)

    ack = transport.send("10.0.0.7", DeviceCommand.feed_now("feeder-42", Quantity(1)))

    assert ack.accepted is False
    assert ack.message == message


def test_http_transport_connection_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DeviceUnreachableError):
        http_transport(handler).send("10.0.0.7", DeviceCommand.feed_now("f", Quantity(1)))


def test_http_transport_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(DeviceTimeoutError):
        http_transport(handler).send("10.0.0.7", DeviceCommand.feed_now("f", Quantity(1)))
