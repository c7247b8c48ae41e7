"""
Portion amount value object.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from app.exceptions import InvalidQuantity

# Every quantity column is Numeric(10, 2)
QUANTITY_PLACES = 2
QUANTITY_MAX = Decimal("99999999.99")


class Quantity:
    """A validated, non-negative portion amount (grams on current feeders).

    Accepts ints, floats, Decimals and numeric strings with at most two
    decimal places, up to QUANTITY_MAX. Raises InvalidQuantity for anything
    else, including booleans, NaN and infinities.
    """

    __slots__ = ("_amount",)

    def __init__(self, value: Any):
        self._amount = self._parse(value)

    @staticmethod
    def _parse(value: Any) -> Decimal:
        if isinstance(value, Quantity):
            return value.amount
        if value is None or isinstance(value, bool):
            raise InvalidQuantity(f"Invalid quantity: {value!r}")
        if isinstance(value, str):
            value = value.strip()
        try:
            amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidQuantity(f"Invalid quantity: {value!r}")
        if not amount.is_finite():
            raise InvalidQuantity(f"Invalid quantity: {value!r}")
        if amount < 0:
            raise InvalidQuantity(
                f"Quantity must not be negative: {value!r}", code="NEGATIVE_QUANTITY"
            )
        if amount > QUANTITY_MAX:
            raise InvalidQuantity(
                f"Quantity must not exceed {QUANTITY_MAX}: {value!r}", code="QUANTITY_TOO_LARGE"
            )
        # 20.000 is fine, 12.345 is not
        if amount != amount.quantize(Decimal(1).scaleb(-QUANTITY_PLACES)):
            raise InvalidQuantity(
                f"Quantity allows at most {QUANTITY_PLACES} decimal places: {value!r}",
                code="QUANTITY_TOO_PRECISE",
            )
        return amount

    @property
    def amount(self) -> Decimal:
        return self._amount

    def __eq__(self, other) -> bool:
        if isinstance(other, Quantity):
            return self._amount == other._amount
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._amount)

    def __repr__(self) -> str:
        return f"Quantity({self._amount})"

    def __str__(self) -> str:
        return str(self._amount)

    def to_json(self) -> float | int:
        """Plain number for device and API payloads"""
        if self._amount == self._amount.to_integral_value():
            return int(self._amount)
        return float(self._amount)
