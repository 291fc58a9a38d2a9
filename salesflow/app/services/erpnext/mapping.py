"""Translate between ``SalesDocument`` and ERPNext resource JSON.

Our lifecycle status travels in ``workflow_state``.  Documents that never
went through this service carry only ERPNext's own ``docstatus``/``status``,
which are mapped onto the closest lifecycle status.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from salesflow.app.models.documents import (
    STATUSES_BY_TYPE,
    ApplyDiscountOn,
    DocumentStatus,
    DocumentType,
    PricingParameters,
    SalesDocument,
)
from salesflow.app.models.ledger import DocumentLedger
from salesflow.app.services.pricing import compute_totals, round_money

S = DocumentStatus
ZERO = Decimal("0")
HUNDRED = Decimal("100")

DOCSTATUS_DRAFT = 0
DOCSTATUS_SUBMITTED = 1
DOCSTATUS_CANCELLED = 2

# Item-level field ERPNext uses to link a line back to its source document.
_SOURCE_LINK_FIELD: dict[DocumentType, str] = {
    DocumentType.SALES_ORDER: "prevdoc_docname",
    DocumentType.DELIVERY_NOTE: "against_sales_order",
}
# Header-level fallback used by older documents.
_SOURCE_HEADER_FIELD: dict[DocumentType, str] = {
    DocumentType.SALES_ORDER: "quotation",
    DocumentType.DELIVERY_NOTE: "sales_order",
}

LIST_FIELDS = [
    "name",
    "party_name",
    "customer",
    "currency",
    "transaction_date",
    "posting_date",
    "valid_till",
    "status",
    "docstatus",
    "workflow_state",
]


# ─── Outbound ─────────────────────────────────────────────────────────────────


def _money(value: Decimal, currency: str) -> float:
    return float(round_money(value, currency))


def to_erpnext(document: SalesDocument) -> dict[str, Any]:
    """Build the resource payload, totals rounded to the currency's minor unit."""
    currency = document.currency
    totals = compute_totals(document.ledger, document.pricing).rounded(currency)
    pricing = document.pricing
    link_field = _SOURCE_LINK_FIELD.get(document.document_type)

    items: list[dict[str, Any]] = []
    for line in document.ledger.lines:
        item: dict[str, Any] = {
            "item_code": line.item_reference,
            "description": line.description,
            "qty": line.quantity,
            "rate": _money(line.unit_price, currency),
            "amount": _money(line.line_total, currency),
        }
        if link_field and document.linked_source_id:
            item[link_field] = document.linked_source_id
        items.append(item)

    payload: dict[str, Any] = {
        "currency": currency,
        "docstatus": _docstatus_for(document.status),
        "workflow_state": document.status.value,
        "items": items,
        "vat_rate": float(pricing.tax_rate_percent),
        "additional_charges": _money(pricing.additional_charges, currency),
        "apply_discount_on": pricing.apply_discount_on.value,
        "additional_discount_percentage": float(pricing.additional_discount_percent),
        "discount_amount": _money(pricing.discount_amount, currency),
        "total": float(totals.subtotal),
        "net_total": float(totals.net_total),
        "total_taxes_and_charges": float(totals.total_taxes_and_charges),
        "grand_total": float(totals.grand_total),
    }

    if document.document_type == DocumentType.QUOTATION:
        payload["quotation_to"] = "Customer"
        payload["party_name"] = document.customer_reference
        payload["transaction_date"] = document.transaction_date.isoformat()
        if document.valid_until is not None:
            payload["valid_till"] = document.valid_until.isoformat()
    elif document.document_type == DocumentType.SALES_ORDER:
        payload["customer"] = document.customer_reference
        payload["transaction_date"] = document.transaction_date.isoformat()
        delivery = document.delivery_date or document.transaction_date
        payload["delivery_date"] = delivery.isoformat()
    else:
        payload["customer"] = document.customer_reference
        payload["posting_date"] = document.transaction_date.isoformat()

    return payload


def _docstatus_for(status: DocumentStatus) -> int:
    if status == S.DRAFT:
        return DOCSTATUS_DRAFT
    if status == S.CANCELLED:
        return DOCSTATUS_CANCELLED
    return DOCSTATUS_SUBMITTED


# ─── Inbound ──────────────────────────────────────────────────────────────────


def from_erpnext(document_type: DocumentType, data: dict[str, Any]) -> SalesDocument:
    """Build a ``SalesDocument`` from an ERPNext resource (or list row).

    Raises ``ValueError``/``KeyError`` on malformed data; the store wraps
    those in ``PersistenceError``.
    """
    ledger = DocumentLedger()
    for row in data.get("items") or []:
        ledger.add_line(
            row["item_code"],
            quantity=row.get("qty", 1),
            unit_price=row.get("rate", 0),
            description=row.get("description") or "",
        )

    if document_type == DocumentType.QUOTATION:
        customer = data.get("party_name") or data.get("customer_name") or ""
        transaction_date = _parse_date(data.get("transaction_date"))
    elif document_type == DocumentType.SALES_ORDER:
        customer = data.get("customer") or ""
        transaction_date = _parse_date(data.get("transaction_date"))
    else:
        customer = data.get("customer") or ""
        transaction_date = _parse_date(data.get("posting_date"))

    return SalesDocument(
        id=data.get("name"),
        document_type=document_type,
        customer_reference=customer,
        currency=data.get("currency") or "",
        transaction_date=transaction_date,
        status=status_from_erpnext(document_type, data),
        ledger=ledger,
        pricing=_pricing_from(data),
        valid_until=(
            _parse_date(data.get("valid_till"))
            if document_type == DocumentType.QUOTATION and data.get("valid_till")
            else None
        ),
        delivery_date=(
            _parse_date(data.get("delivery_date"))
            if document_type == DocumentType.SALES_ORDER and data.get("delivery_date")
            else None
        ),
        linked_source_id=_source_link(document_type, data),
    )


def status_from_erpnext(document_type: DocumentType, data: dict[str, Any]) -> DocumentStatus:
    workflow_state = data.get("workflow_state")
    if workflow_state:
        try:
            status = DocumentStatus(workflow_state)
        except ValueError:
            status = None
        if status is not None and status in STATUSES_BY_TYPE[document_type]:
            return status

    docstatus = int(data.get("docstatus") or DOCSTATUS_DRAFT)
    erp_status = data.get("status") or ""

    if docstatus == DOCSTATUS_DRAFT:
        return S.DRAFT

    if document_type == DocumentType.QUOTATION:
        if docstatus == DOCSTATUS_CANCELLED or erp_status == "Lost":
            return S.REJECTED
        if erp_status in ("Ordered", "Partially Ordered"):
            return S.CONVERTED_TO_ORDER
        # A submitted quotation is ready to be ordered.
        return S.APPROVED

    if docstatus == DOCSTATUS_CANCELLED:
        return S.CANCELLED

    if document_type == DocumentType.SALES_ORDER:
        per_delivered = Decimal(str(data.get("per_delivered") or 0))
        if erp_status in ("To Bill", "Completed", "Closed") or per_delivered >= HUNDRED:
            return S.FULFILLED
        if per_delivered > ZERO:
            return S.PARTIALLY_FULFILLED
        return S.CONFIRMED

    if erp_status in ("Completed", "Closed"):
        return S.COMPLETED
    return S.SUBMITTED


def _pricing_from(data: dict[str, Any]) -> PricingParameters:
    tax_rate = data.get("vat_rate")
    if tax_rate is None:
        tax_rate = sum(
            (
                Decimal(str(row.get("rate") or 0))
                for row in data.get("taxes") or []
                if row.get("charge_type") == "On Net Total"
            ),
            ZERO,
        )
    return PricingParameters(
        tax_rate_percent=Decimal(str(tax_rate)),
        additional_charges=Decimal(str(data.get("additional_charges") or 0)),
        additional_discount_percent=Decimal(str(data.get("additional_discount_percentage") or 0)),
        discount_amount=Decimal(str(data.get("discount_amount") or 0)),
        apply_discount_on=ApplyDiscountOn(data.get("apply_discount_on") or ApplyDiscountOn.GRAND_TOTAL.value),
    )


def _source_link(document_type: DocumentType, data: dict[str, Any]) -> str | None:
    link_field = _SOURCE_LINK_FIELD.get(document_type)
    if link_field is None:
        return None
    for row in data.get("items") or []:
        if row.get(link_field):
            return row[link_field]
    return data.get(_SOURCE_HEADER_FIELD[document_type]) or None


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if not value:
        raise ValueError("Missing document date")
    return date.fromisoformat(str(value)[:10])
