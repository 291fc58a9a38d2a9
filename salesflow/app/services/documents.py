from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from salesflow.app.core.config import settings
from salesflow.app.models.documents import DocumentStatus, DocumentType, SalesDocument
from salesflow.app.models.ledger import LineItem, coerce_quantity
from salesflow.app.services.conversion import convert
from salesflow.app.services.lifecycle import (
    available_actions,
    mark_converted,
    open_for_edit,
    transition,
)
from salesflow.app.services.pricing import compute_totals, default_pricing
from salesflow.app.services.store import DocumentStore
from salesflow.app.services.validity import as_date, classify, quotation_summary

logger = logging.getLogger(__name__)


def new_draft(
    document_type: DocumentType,
    customer_reference: str,
    *,
    currency: str | None = None,
    transaction_date: date | None = None,
    valid_until: date | None = None,
    delivery_date: date | None = None,
    now: date | datetime | None = None,
) -> SalesDocument:
    """Start an unsaved draft with the type's default pricing.

    Quotations default to ``QUOTATION_VALIDITY_DAYS`` of validity; sales
    orders default to delivery on the transaction date.
    """
    today = transaction_date or as_date(now or datetime.now(timezone.utc))
    if document_type == DocumentType.QUOTATION and valid_until is None:
        valid_until = today + timedelta(days=settings.QUOTATION_VALIDITY_DAYS)
    if document_type == DocumentType.SALES_ORDER and delivery_date is None:
        delivery_date = today

    return SalesDocument(
        document_type=document_type,
        customer_reference=customer_reference,
        currency=currency or settings.DEFAULT_CURRENCY,
        transaction_date=today,
        pricing=default_pricing(document_type),
        valid_until=valid_until,
        delivery_date=delivery_date,
    )


def add_catalog_line(
    store: DocumentStore,
    document: SalesDocument,
    item_reference: str,
    quantity: Any = 1,
    description: str = "",
) -> LineItem:
    """Append a new line priced at the item's current catalog price."""
    coerce_quantity(quantity)
    price = store.fetch_catalog_price(item_reference)
    return document.ledger.add_line(
        item_reference, quantity=quantity, unit_price=price, description=description
    )


def save_document(store: DocumentStore, document: SalesDocument) -> SalesDocument:
    """Create or update ``document``.  Its id is assigned only on success."""
    if document.id is None:
        document.id = store.create_document(document.document_type, document)
    else:
        store.update_document(document.document_type, document.id, document)
    return document


def load_for_edit(
    store: DocumentStore,
    document_type: DocumentType,
    document_id: str,
    now: date | datetime,
) -> SalesDocument:
    return open_for_edit(store.fetch_document(document_type, document_id), now)


def change_status(
    store: DocumentStore, document: SalesDocument, target: DocumentStatus
) -> SalesDocument:
    """Apply a lifecycle transition and persist it.

    The transition is tried on a copy; ``document`` changes only once the
    store has accepted the new status.
    """
    return _persist_status(store, document, lambda d: transition(d, target))


def _persist_status(
    store: DocumentStore,
    document: SalesDocument,
    apply: Callable[[SalesDocument], SalesDocument],
) -> SalesDocument:
    candidate = apply(document.model_copy(deep=True))
    save_document(store, candidate)
    document.id = candidate.id
    document.status = candidate.status
    return document


def convert_and_save(
    store: DocumentStore,
    source: SalesDocument,
    target_type: DocumentType,
    now: date | datetime | None = None,
) -> SalesDocument:
    """Convert ``source``, persist the new draft, then mark a quotation converted."""
    target = convert(source, target_type, now)
    save_document(store, target)

    if source.document_type == DocumentType.QUOTATION:
        try:
            _persist_status(store, source, mark_converted)
        except Exception:
            logger.error(
                "%s %s created but quotation %s could not be marked converted",
                target_type.value,
                target.id,
                source.id,
            )
            raise
    return target


def quotation_dashboard(
    store: DocumentStore, now: date | datetime, limit: int = 50
) -> dict:
    return quotation_summary(store.list_documents(DocumentType.QUOTATION, limit), now)


def document_to_dict(document: SalesDocument, now: date | datetime) -> dict:
    """Response dict with totals rounded for display."""
    totals = compute_totals(document.ledger, document.pricing).rounded(document.currency)
    return {
        "id": document.id,
        "document_type": document.document_type.value,
        "customer_reference": document.customer_reference,
        "currency": document.currency,
        "transaction_date": document.transaction_date.isoformat(),
        "status": document.status.value,
        "valid_until": document.valid_until.isoformat() if document.valid_until else None,
        "delivery_date": document.delivery_date.isoformat() if document.delivery_date else None,
        "linked_source_id": document.linked_source_id,
        "items": [
            {
                "line_id": line.line_id,
                "item_reference": line.item_reference,
                "description": line.description,
                "quantity": line.quantity,
                "unit_price": str(line.unit_price),
                "line_total": str(line.line_total),
            }
            for line in document.ledger.lines
        ],
        "pricing": {
            "tax_rate_percent": str(document.pricing.tax_rate_percent),
            "additional_charges": str(document.pricing.additional_charges),
            "additional_discount_percent": str(document.pricing.additional_discount_percent),
            "discount_amount": str(document.pricing.discount_amount),
            "apply_discount_on": document.pricing.apply_discount_on.value,
        },
        "totals": {name: str(value) for name, value in totals},
        "validity": classify(document, now).value,
        "actions": available_actions(document, now),
    }
