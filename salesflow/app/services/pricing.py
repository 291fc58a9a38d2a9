"""Document totals: subtotal, tax, discount and grand total.

All arithmetic stays in ``Decimal`` at full precision.  Rounding to the
currency's minor unit happens only in ``round_money`` / ``ComputedTotals.rounded``,
which callers use when displaying or persisting.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel

from salesflow.app.core.config import settings
from salesflow.app.models.documents import (
    ApplyDiscountOn,
    DocumentType,
    PricingParameters,
)
from salesflow.app.models.ledger import DocumentLedger

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# ISO 4217 minor units that differ from the usual two decimals.
_MINOR_UNITS: dict[str, int] = {
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "BHD": 3,
    "JOD": 3,
    "KWD": 3,
    "OMR": 3,
    "TND": 3,
}
_DEFAULT_MINOR_UNITS = 2


class ComputedTotals(BaseModel):
    subtotal: Decimal
    net_total: Decimal
    tax_amount: Decimal
    total_taxes_and_charges: Decimal
    discount_base: Decimal
    discount_amount: Decimal
    grand_total: Decimal

    def rounded(self, currency: str) -> ComputedTotals:
        return ComputedTotals(
            **{name: round_money(value, currency) for name, value in self}
        )


def minor_units(currency: str) -> int:
    return _MINOR_UNITS.get(currency.upper(), _DEFAULT_MINOR_UNITS)


def round_money(value: Decimal, currency: str) -> Decimal:
    quantum = Decimal(1).scaleb(-minor_units(currency))
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def effective_discount(base: Decimal, pricing: PricingParameters) -> Decimal:
    """Discount actually applied.

    An explicit ``discount_amount`` replaces the percentage-derived discount;
    the two are never added together.
    """
    if pricing.discount_amount > ZERO:
        return pricing.discount_amount
    return base * pricing.additional_discount_percent / HUNDRED


def compute_totals(ledger: DocumentLedger, pricing: PricingParameters) -> ComputedTotals:
    subtotal = ledger.subtotal()
    net_total = subtotal

    tax_amount = net_total * pricing.tax_rate_percent / HUNDRED
    total_taxes_and_charges = tax_amount + pricing.additional_charges

    if pricing.apply_discount_on == ApplyDiscountOn.NET_TOTAL:
        base = net_total
    else:
        base = net_total + total_taxes_and_charges

    discount = effective_discount(base, pricing)
    grand_total = max(ZERO, net_total + total_taxes_and_charges - discount)

    return ComputedTotals(
        subtotal=subtotal,
        net_total=net_total,
        tax_amount=tax_amount,
        total_taxes_and_charges=total_taxes_and_charges,
        discount_base=base,
        discount_amount=discount,
        grand_total=grand_total,
    )


def default_pricing(document_type: DocumentType) -> PricingParameters:
    """Fresh pricing for a new or converted document of ``document_type``.

    Delivery notes carry no tax or discount of their own; quotations and
    sales orders start from the configured VAT rate.
    """
    if document_type == DocumentType.DELIVERY_NOTE:
        return PricingParameters()
    return PricingParameters(
        tax_rate_percent=settings.DEFAULT_TAX_RATE_PERCENT,
        apply_discount_on=ApplyDiscountOn(settings.DEFAULT_APPLY_DISCOUNT_ON),
    )
