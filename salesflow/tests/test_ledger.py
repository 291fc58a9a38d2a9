"""Tests for the line item ledger."""
from __future__ import annotations

from decimal import Decimal

import pytest

from salesflow.app.core.exceptions import IndexOutOfRange, InvalidPrice, InvalidQuantity
from salesflow.app.models.ledger import DocumentLedger
from salesflow.tests.conftest import make_ledger


# ─── TestAddLine ──────────────────────────────────────────────────────────────


class TestAddLine:
    def test_add_line_computes_line_total(self) -> None:
        ledger = DocumentLedger()
        line = ledger.add_line("ITEM-1", quantity=3, unit_price=Decimal("12.50"))
        assert line.line_total == Decimal("37.50")
        assert len(ledger) == 1

    def test_quantity_defaults_to_one(self) -> None:
        ledger = DocumentLedger()
        line = ledger.add_line("ITEM-1", unit_price=Decimal("99"))
        assert line.quantity == 1
        assert line.line_total == Decimal("99")

    def test_string_price_is_read_as_decimal(self) -> None:
        ledger = DocumentLedger()
        line = ledger.add_line("ITEM-1", quantity=2, unit_price="0.10")
        assert line.unit_price == Decimal("0.10")
        assert line.line_total == Decimal("0.20")

    def test_zero_price_allowed(self) -> None:
        """Free items are valid lines."""
        ledger = DocumentLedger()
        line = ledger.add_line("SAMPLE", quantity=1, unit_price=0)
        assert line.line_total == Decimal("0")

    def test_same_item_twice_is_two_lines(self) -> None:
        ledger = DocumentLedger()
        ledger.add_line("ITEM-1", quantity=1, unit_price=Decimal("10"))
        ledger.add_line("ITEM-1", quantity=2, unit_price=Decimal("9"))
        assert len(ledger) == 2
        assert ledger.subtotal() == Decimal("28")

    @pytest.mark.parametrize("quantity", [0, -1, Decimal("1.5"), 2.5, "abc", None, True])
    def test_invalid_quantity_rejected(self, quantity: object) -> None:
        ledger = DocumentLedger()
        with pytest.raises(InvalidQuantity):
            ledger.add_line("ITEM-1", quantity=quantity, unit_price=Decimal("10"))
        assert len(ledger) == 0

    def test_integral_decimal_quantity_accepted(self) -> None:
        ledger = DocumentLedger()
        line = ledger.add_line("ITEM-1", quantity=Decimal("4.0"), unit_price=Decimal("2"))
        assert line.quantity == 4

    @pytest.mark.parametrize("price", [Decimal("-0.01"), -5, "x", None, Decimal("NaN"), "Infinity"])
    def test_invalid_price_rejected(self, price: object) -> None:
        ledger = DocumentLedger()
        with pytest.raises(InvalidPrice):
            ledger.add_line("ITEM-1", quantity=1, unit_price=price)
        assert len(ledger) == 0


# ─── TestUpdateLine ───────────────────────────────────────────────────────────


class TestUpdateLine:
    def test_update_quantity_recomputes_total(self) -> None:
        ledger = make_ledger((2, "100"))
        ledger.update_line(0, "quantity", 5)
        assert ledger.lines[0].line_total == Decimal("500")
        assert ledger.subtotal() == Decimal("500")

    def test_update_price_recomputes_total(self) -> None:
        ledger = make_ledger((2, "100"))
        ledger.update_line(0, "unit_price", Decimal("80.25"))
        assert ledger.lines[0].line_total == Decimal("160.50")

    def test_update_description_leaves_totals(self) -> None:
        ledger = make_ledger((2, "100"))
        ledger.update_line(0, "description", "Blue, large")
        assert ledger.lines[0].description == "Blue, large"
        assert ledger.subtotal() == Decimal("200")

    def test_index_out_of_range(self) -> None:
        ledger = make_ledger((2, "100"))
        with pytest.raises(IndexOutOfRange):
            ledger.update_line(1, "quantity", 3)

    def test_negative_index_rejected(self) -> None:
        """No Python-style wraparound for line indexes."""
        ledger = make_ledger((2, "100"))
        with pytest.raises(IndexOutOfRange):
            ledger.update_line(-1, "quantity", 3)

    def test_invalid_update_changes_nothing(self) -> None:
        ledger = make_ledger((2, "100"))
        with pytest.raises(InvalidQuantity):
            ledger.update_line(0, "quantity", 0)
        with pytest.raises(InvalidPrice):
            ledger.update_line(0, "unit_price", Decimal("-1"))
        assert ledger.lines[0].quantity == 2
        assert ledger.lines[0].unit_price == Decimal("100")
        assert ledger.subtotal() == Decimal("200")

    def test_unknown_field_rejected(self) -> None:
        ledger = make_ledger((2, "100"))
        with pytest.raises(ValueError, match="Unknown line field"):
            ledger.update_line(0, "line_total", Decimal("1"))


# ─── TestRemoveLine ───────────────────────────────────────────────────────────


class TestRemoveLine:
    def test_remove_shifts_display_order_only(self) -> None:
        ledger = make_ledger((1, "10"), (1, "20"), (1, "30"))
        third_id = ledger.lines[2].line_id
        removed = ledger.remove_line(1)
        assert removed.unit_price == Decimal("20")
        assert len(ledger) == 2
        assert ledger.lines[1].line_id == third_id

    def test_remove_out_of_range(self) -> None:
        ledger = DocumentLedger()
        with pytest.raises(IndexOutOfRange):
            ledger.remove_line(0)


# ─── TestSubtotal ─────────────────────────────────────────────────────────────


class TestSubtotal:
    def test_empty_ledger_subtotal_is_zero(self) -> None:
        assert DocumentLedger().subtotal() == Decimal("0")

    def test_subtotal_is_sum_of_quantity_times_price(self) -> None:
        ledger = make_ledger((2, "100"), (1, "50"), (7, "0.33"))
        expected = sum(line.quantity * line.unit_price for line in ledger.lines)
        assert ledger.subtotal() == expected == Decimal("252.31")

    def test_decimal_sum_has_no_float_drift(self) -> None:
        ledger = make_ledger(*[(1, "0.1")] * 3)
        assert ledger.subtotal() == Decimal("0.3")


# ─── TestValueCopy ────────────────────────────────────────────────────────────


class TestValueCopy:
    def test_copy_is_independent(self) -> None:
        ledger = make_ledger((2, "100"))
        copy = ledger.value_copy()
        ledger.update_line(0, "quantity", 9)
        ledger.add_line("ITEM-X", quantity=1, unit_price=Decimal("1"))
        assert len(copy) == 1
        assert copy.lines[0].quantity == 2
        assert copy.lines[0] is not ledger.lines[0]
