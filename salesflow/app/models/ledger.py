from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from salesflow.app.core.exceptions import IndexOutOfRange, InvalidPrice, InvalidQuantity

ZERO = Decimal("0")

# Editable fields that never affect totals.
_TEXT_FIELDS = {"item_reference", "description"}


def _new_line_id() -> str:
    return uuid.uuid4().hex


# ─── Input coercion ───────────────────────────────────────────────────────────


def coerce_quantity(value: Any) -> int:
    """Return ``value`` as a positive int or raise ``InvalidQuantity``."""
    if isinstance(value, bool) or value is None:
        raise InvalidQuantity(f"Quantity must be a positive integer, got {value!r}")
    if isinstance(value, int):
        quantity = value
    else:
        try:
            as_decimal = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidQuantity(f"Quantity must be a positive integer, got {value!r}")
        if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
            raise InvalidQuantity(f"Quantity must be a positive integer, got {value!r}")
        quantity = int(as_decimal)
    if quantity <= 0:
        raise InvalidQuantity("Quantity must be greater than zero")
    return quantity


def coerce_price(value: Any) -> Decimal:
    """Return ``value`` as a non-negative Decimal or raise ``InvalidPrice``."""
    if isinstance(value, bool) or value is None:
        raise InvalidPrice(f"Unit price must be a number, got {value!r}")
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidPrice(f"Unit price must be a number, got {value!r}")
    if not price.is_finite():
        raise InvalidPrice(f"Unit price must be a finite number, got {value!r}")
    if price < ZERO:
        raise InvalidPrice("Unit price cannot be negative")
    return price


# ─── Line Item ────────────────────────────────────────────────────────────────


class LineItem(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    line_id: str = Field(default_factory=_new_line_id)
    item_reference: str
    description: str = ""
    quantity: int
    unit_price: Decimal

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero")
        return v

    @field_validator("unit_price")
    @classmethod
    def price_not_negative(cls, v: Decimal) -> Decimal:
        if v < ZERO:
            raise ValueError("Unit price cannot be negative")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


# ─── Ledger ───────────────────────────────────────────────────────────────────


class DocumentLedger(BaseModel):
    """Ordered line items of one document draft.

    The same item may appear on several lines.  Each mutation validates its
    input before touching the ledger, so a failed call changes nothing.
    """

    lines: list[LineItem] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.lines)

    def add_line(
        self,
        item_reference: str,
        quantity: Any = 1,
        unit_price: Any = None,
        description: str = "",
    ) -> LineItem:
        line = LineItem(
            item_reference=item_reference,
            description=description,
            quantity=coerce_quantity(quantity),
            unit_price=coerce_price(unit_price),
        )
        self.lines.append(line)
        return line

    def update_line(self, index: int, field: str, value: Any) -> LineItem:
        line = self._line_at(index)
        if field == "quantity":
            value = coerce_quantity(value)
        elif field == "unit_price":
            value = coerce_price(value)
        elif field in _TEXT_FIELDS:
            value = "" if value is None else str(value)
        else:
            raise ValueError(f"Unknown line field '{field}'")
        setattr(line, field, value)
        return line

    def remove_line(self, index: int) -> LineItem:
        self._line_at(index)
        return self.lines.pop(index)

    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)

    def value_copy(self) -> DocumentLedger:
        """Independent copy carrying item, description, quantity and price."""
        return DocumentLedger(
            lines=[
                LineItem(
                    item_reference=line.item_reference,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in self.lines
            ]
        )

    def _line_at(self, index: int) -> LineItem:
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexOutOfRange(f"Line index must be an integer, got {index!r}")
        if index < 0 or index >= len(self.lines):
            raise IndexOutOfRange(
                f"Line index {index} out of range for ledger of {len(self.lines)} lines"
            )
        return self.lines[index]
