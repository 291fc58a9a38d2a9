from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, field_validator

from salesflow.app.models.documents import DocumentStatus, DocumentType, PricingParameters


class DocumentKind(str, enum.Enum):
    """URL slug for each document type."""

    QUOTATION = "quotation"
    SALES_ORDER = "sales-order"
    DELIVERY_NOTE = "delivery-note"

    @property
    def document_type(self) -> DocumentType:
        return _KIND_TO_TYPE[self]


_KIND_TO_TYPE = {
    DocumentKind.QUOTATION: DocumentType.QUOTATION,
    DocumentKind.SALES_ORDER: DocumentType.SALES_ORDER,
    DocumentKind.DELIVERY_NOTE: DocumentType.DELIVERY_NOTE,
}


# ─── Request ──────────────────────────────────────────────────────────────────


class LineIn(BaseModel):
    """A line as entered on the form.  Without ``unit_price`` the catalog price is used."""

    item_reference: str
    quantity: int | Decimal = 1
    unit_price: Decimal | None = None
    description: str = ""


class TotalsRequest(BaseModel):
    lines: list[LineIn]
    pricing: PricingParameters = PricingParameters()
    currency: str | None = None


class DocumentCreate(BaseModel):
    customer_reference: str
    currency: str | None = None
    transaction_date: date | None = None
    valid_until: date | None = None
    delivery_date: date | None = None
    lines: list[LineIn]
    pricing: PricingParameters | None = None

    @field_validator("customer_reference")
    @classmethod
    def customer_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Customer is required")
        return v.strip()

    @field_validator("lines")
    @classmethod
    def at_least_one(cls, v: list[LineIn]) -> list[LineIn]:
        if not v:
            raise ValueError("Document must have at least one item")
        return v


class DocumentUpdate(BaseModel):
    lines: list[LineIn] | None = None
    pricing: PricingParameters | None = None
    valid_until: date | None = None
    delivery_date: date | None = None


class StatusUpdate(BaseModel):
    status: DocumentStatus


class ConvertRequest(BaseModel):
    target: DocumentKind


# ─── Response ─────────────────────────────────────────────────────────────────


class TotalsOut(BaseModel):
    subtotal: str
    net_total: str
    tax_amount: str
    total_taxes_and_charges: str
    discount_base: str
    discount_amount: str
    grand_total: str


class LineOut(BaseModel):
    line_id: str
    item_reference: str
    description: str
    quantity: int
    unit_price: str
    line_total: str


class PricingOut(BaseModel):
    tax_rate_percent: str
    additional_charges: str
    additional_discount_percent: str
    discount_amount: str
    apply_discount_on: str


class DocumentOut(BaseModel):
    id: str | None
    document_type: str
    customer_reference: str
    currency: str
    transaction_date: str
    status: str
    valid_until: str | None
    delivery_date: str | None
    linked_source_id: str | None
    items: list[LineOut]
    pricing: PricingOut
    totals: TotalsOut
    validity: str
    actions: list[str]


class QuotationSummaryOut(BaseModel):
    quotation_count: int
    draft_quotations: int
    approved_quotations: int
    expiring_quotations: int
    expired_quotations: int
