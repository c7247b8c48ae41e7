"""
Tests for the Quantity value object and the meal/planning value objects.
"""

import pytest
from datetime import time
from decimal import Decimal

from app.exceptions import InvalidQuantity, ServiceValidationError
from domain.quantity import Quantity
from domain.schemas.planning_schemas import MealSpec, PlanningSpec
from test_fixtures import make_planning


@pytest.mark.parametrize(
    "value, expected",
    [
        (20, Decimal("20")),
        ("15", Decimal("15")),
        (" 7.5 ", Decimal("7.5")),
        (0, Decimal("0")),
        (12.25, Decimal("12.25")),
        (Decimal("3"), Decimal("3")),
    ],
)
def test_quantity_accepts_non_negative_numbers(value, expected):
    assert Quantity(value).amount == expected


@pytest.mark.parametrize(
    "value", [-1, "-0.5", "abc", "", None, True, float("nan"), "Infinity", [], {}]
)
def test_quantity_rejects_invalid_values(value):
    with pytest.raises(InvalidQuantity):
        Quantity(value)


def test_invalid_quantity_is_a_validation_error():
    """Bad portions are rejected as client errors (400)"""
    with pytest.raises(ServiceValidationError) as exc_info:
        Quantity("lots")
    assert exc_info.value.http_status == 400


def test_quantity_equality_and_json():
    assert Quantity("20.0") == Quantity(20)
    assert Quantity(20).to_json() == 20
    assert Quantity("7.5").to_json() == 7.5
    assert Quantity(Quantity(4)).amount == Decimal("4")


def test_meal_parses_time_and_validates_quantity():
    meal = MealSpec(time="08:00", quantity="20")
    assert meal.time == time(8, 0)
    assert meal.quantity == Decimal("20")
    assert meal.enabled is True

    with pytest.raises(InvalidQuantity):
        MealSpec(time="08:00", quantity=-5)


def test_planning_orders_meals_by_time_with_stable_ties():
    planning = make_planning(("18:00", 10), ("08:00", 20), ("08:00", 30), ("12:00", 5))

    assert [m.time for m in planning.meals] == [time(8), time(8), time(12), time(18)]
    # Same time keeps input order
    assert [m.quantity for m in planning.meals[:2]] == [Decimal("20"), Decimal("30")]


def test_planning_device_payload():
    planning = make_planning(("08:00", 20), ("19:30", 12.5, False))

    assert planning.to_device() == [
        {"time": "08:00", "quantity": 20, "enabled": True},
        {"time": "19:30", "quantity": 12.5, "enabled": False},
    ]


def test_empty_planning_is_valid():
    planning = PlanningSpec()
    assert planning.meals == []
    assert planning.version is None


@pytest.mark.parametrize("value", ["12.345", Decimal("0.001"), 7.777, "100000000", Decimal("1E+9")])
def test_quantity_rejects_what_the_store_cannot_hold(value):
    """Two decimal places, at most 99999999.99"""
    with pytest.raises(InvalidQuantity):
        Quantity(value)


@pytest.mark.parametrize("value", ["12.34", "20.000", "99999999.99", 0.1])
def test_quantity_accepts_storable_values(value):
    assert Quantity(value).amount == Decimal(str(value))


def test_meal_time_must_be_whole_minute():
    with pytest.raises(ServiceValidationError):
        MealSpec(time="08:00:30", quantity=20)
    with pytest.raises(ServiceValidationError):
        MealSpec(time=time(8, 0, 0, 500), quantity=20)

    meal = MealSpec(time="08:00:00", quantity=20)
    assert meal.to_device()["time"] == "08:00"
