from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from salesflow.app.models.ledger import DocumentLedger

ZERO = Decimal("0")
HUNDRED = Decimal("100")


# ─── Enums ────────────────────────────────────────────────────────────────────


class DocumentType(str, enum.Enum):
    QUOTATION = "Quotation"
    SALES_ORDER = "Sales Order"
    DELIVERY_NOTE = "Delivery Note"


class DocumentStatus(str, enum.Enum):
    DRAFT = "Draft"
    # Quotation
    SENT = "Sent"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CONVERTED_TO_ORDER = "Converted To Order"
    # Sales Order
    CONFIRMED = "Confirmed"
    PARTIALLY_FULFILLED = "Partially Fulfilled"
    FULFILLED = "Fulfilled"
    # Delivery Note
    SUBMITTED = "Submitted"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ApplyDiscountOn(str, enum.Enum):
    GRAND_TOTAL = "Grand Total"
    NET_TOTAL = "Net Total"


STATUSES_BY_TYPE: dict[DocumentType, frozenset[DocumentStatus]] = {
    DocumentType.QUOTATION: frozenset({
        DocumentStatus.DRAFT,
        DocumentStatus.SENT,
        DocumentStatus.APPROVED,
        DocumentStatus.REJECTED,
        DocumentStatus.CONVERTED_TO_ORDER,
    }),
    DocumentType.SALES_ORDER: frozenset({
        DocumentStatus.DRAFT,
        DocumentStatus.CONFIRMED,
        DocumentStatus.PARTIALLY_FULFILLED,
        DocumentStatus.FULFILLED,
        DocumentStatus.CANCELLED,
    }),
    DocumentType.DELIVERY_NOTE: frozenset({
        DocumentStatus.DRAFT,
        DocumentStatus.SUBMITTED,
        DocumentStatus.COMPLETED,
        DocumentStatus.CANCELLED,
    }),
}


# ─── Pricing Parameters ───────────────────────────────────────────────────────


class PricingParameters(BaseModel):
    tax_rate_percent: Decimal = ZERO
    additional_charges: Decimal = ZERO
    additional_discount_percent: Decimal = ZERO
    discount_amount: Decimal = ZERO
    apply_discount_on: ApplyDiscountOn = ApplyDiscountOn.GRAND_TOTAL

    @field_validator("tax_rate_percent", "additional_discount_percent")
    @classmethod
    def percent_in_range(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < ZERO or v > HUNDRED:
            raise ValueError("Percentage must be between 0 and 100")
        return v

    @field_validator("additional_charges", "discount_amount")
    @classmethod
    def amount_not_negative(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < ZERO:
            raise ValueError("Amount cannot be negative")
        return v


# ─── Sales Document ───────────────────────────────────────────────────────────


class SalesDocument(BaseModel):
    id: str | None = None
    document_type: DocumentType
    customer_reference: str
    currency: str
    transaction_date: date
    status: DocumentStatus = DocumentStatus.DRAFT
    ledger: DocumentLedger = Field(default_factory=DocumentLedger)
    pricing: PricingParameters = Field(default_factory=PricingParameters)
    valid_until: date | None = None
    delivery_date: date | None = None
    linked_source_id: str | None = None

    @field_validator("customer_reference")
    @classmethod
    def customer_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Customer is required")
        return v.strip()

    @model_validator(mode="after")
    def validate_type_fields(self) -> "SalesDocument":
        if self.status not in STATUSES_BY_TYPE[self.document_type]:
            raise ValueError(
                f"Status '{self.status.value}' is not valid for {self.document_type.value}"
            )
        if self.valid_until is not None and self.document_type != DocumentType.QUOTATION:
            raise ValueError("valid_until applies to quotations only")
        return self

    @property
    def is_saved(self) -> bool:
        return self.id is not None
